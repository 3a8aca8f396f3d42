"""
Application State - explicit, passed-by-reference store shared by the services
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vitrina.schemas import InternalAsset, Product

ENTITIES = ("product", "asset", "settings")


@dataclass
class AppState:
    products: List[Product] = field(default_factory=list)
    assets: List[InternalAsset] = field(default_factory=list)
    settings: Optional[Dict[str, Any]] = None
    currency: str = "CLP"
    loading: Dict[str, bool] = field(default_factory=lambda: {e: False for e in ENTITIES})

    def is_loading(self, entity: str) -> bool:
        return self.loading.get(entity, False)

    def find_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def find_asset(self, asset_id: str) -> Optional[InternalAsset]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    def replace_product(self, product: Product):
        """Insert or replace by id, keeping list position"""
        for i, existing in enumerate(self.products):
            if existing.id == product.id:
                self.products[i] = product
                return
        self.products.insert(0, product)

    def replace_asset(self, asset: InternalAsset):
        for i, existing in enumerate(self.assets):
            if existing.id == asset.id:
                self.assets[i] = asset
                return
        self.assets.append(asset)

    def toggle_currency(self) -> str:
        self.currency = "USD" if self.currency == "CLP" else "CLP"
        return self.currency
