"""
In-Memory Gateway - process-local record store for development and tests
"""
import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from vitrina.core.exceptions import GatewayError
from vitrina.schemas import InternalAsset, Product, ProductStatus
from .base import PersistenceGateway


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryGateway(PersistenceGateway):
    """
    latency delays every call (seconds); operations named in fail_operations
    raise GatewayError, which lets callers rehearse slow or broken backends.
    """
    GATEWAY_NAME = "memory"

    def __init__(
        self,
        products: Iterable[Product] = (),
        assets: Iterable[InternalAsset] = (),
        settings: Optional[Dict[str, Any]] = None,
        latency: float = 0,
        fail_operations: Iterable[str] = (),
    ):
        self.products: Dict[str, Product] = {p.id: p for p in products}
        self.assets: Dict[str, InternalAsset] = {a.id: a for a in assets}
        self.settings = dict(settings) if settings is not None else None
        self.latency = latency
        self.fail_operations = set(fail_operations)
        self.calls: List[str] = []

    async def _enter(self, operation: str):
        self.calls.append(operation)
        if self.latency:
            await asyncio.sleep(self.latency)
        if operation in self.fail_operations:
            raise GatewayError(f"{operation} failed", operation=operation)

    # ========== Products ==========

    async def list_products(self) -> List[Product]:
        await self._enter("list_products")
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(
            self.products.values(),
            key=lambda p: p.created_at or epoch,
            reverse=True,
        )

    async def get_product(self, product_id: str) -> Optional[Product]:
        await self._enter("get_product")
        return self.products.get(product_id)

    async def create_product(self, payload: Dict[str, Any]) -> Product:
        await self._enter("create_product")
        now = _now()
        data = dict(payload)
        data.setdefault("id", str(uuid.uuid4()))
        data.setdefault("created_at", now)
        data["updated_at"] = now
        product = Product.model_validate(data)
        self.products[product.id] = product
        return product

    async def create_products_bulk(self, payloads: List[Dict[str, Any]]) -> List[Product]:
        await self._enter("create_products_bulk")
        now = _now()
        created = []
        for payload in payloads:
            data = dict(payload)
            data.setdefault("id", str(uuid.uuid4()))
            data.setdefault("created_at", now)
            data["updated_at"] = now
            created.append(Product.model_validate(data))
        for product in created:
            self.products[product.id] = product
        return created

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Product:
        await self._enter("update_product")
        existing = self.products.get(product_id)
        if existing is None:
            raise GatewayError(f"Product {product_id} not found", operation="update_product", status_code=404)
        data = existing.model_dump(by_alias=True)
        data.update(fields)
        data["updated_at"] = _now()
        product = Product.model_validate(data)
        self.products[product_id] = product
        return product

    async def delete_products(self, product_ids: List[str]) -> None:
        await self._enter("delete_products")
        for product_id in product_ids:
            self.products.pop(product_id, None)

    async def update_status_bulk(self, product_ids: List[str], status: ProductStatus) -> None:
        await self._enter("update_status_bulk")
        for product_id in product_ids:
            existing = self.products.get(product_id)
            if existing is not None:
                self.products[product_id] = existing.model_copy(
                    update={"status": ProductStatus(status), "updated_at": _now()}
                )

    async def increment_clicks(self, product_id: str) -> None:
        await self._enter("increment_clicks")
        existing = self.products.get(product_id)
        if existing is not None:
            self.products[product_id] = existing.model_copy(
                update={"whatsapp_clicks": existing.whatsapp_clicks + 1}
            )

    # ========== Internal Assets ==========

    async def list_assets(self) -> List[InternalAsset]:
        await self._enter("list_assets")
        return sorted(self.assets.values(), key=lambda a: a.name)

    async def create_asset(self, payload: Dict[str, Any]) -> InternalAsset:
        await self._enter("create_asset")
        now = _now()
        data = dict(payload)
        data.setdefault("id", str(uuid.uuid4()))
        data.setdefault("created_at", now)
        data["updated_at"] = now
        asset = InternalAsset.model_validate(data)
        self.assets[asset.id] = asset
        return asset

    async def update_asset(self, asset_id: str, fields: Dict[str, Any]) -> InternalAsset:
        await self._enter("update_asset")
        existing = self.assets.get(asset_id)
        if existing is None:
            raise GatewayError(f"Asset {asset_id} not found", operation="update_asset", status_code=404)
        data = existing.model_dump()
        data.update(fields)
        data["updated_at"] = _now()
        asset = InternalAsset.model_validate(data)
        self.assets[asset_id] = asset
        return asset

    async def delete_assets(self, asset_ids: List[str]) -> None:
        await self._enter("delete_assets")
        for asset_id in asset_ids:
            self.assets.pop(asset_id, None)

    # ========== Settings ==========

    async def get_settings(self) -> Optional[Dict[str, Any]]:
        await self._enter("get_settings")
        return dict(self.settings) if self.settings is not None else None

    async def update_settings(self, fields: Dict[str, Any]) -> None:
        await self._enter("update_settings")
        self.settings = {**(self.settings or {}), **fields, "updated_at": _now().isoformat()}
