"""
Base Persistence Gateway - abstract contract for the hosted data service
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

from vitrina.schemas import InternalAsset, Product, ProductStatus

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):
    """
    Record store consumed by the engine.
    Implementations raise GatewayError on any failed call.
    """
    GATEWAY_NAME: str = "base"

    # ========== Products ==========

    @abstractmethod
    async def list_products(self) -> List[Product]:
        """All products, newest first"""
        pass

    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def create_product(self, payload: Dict[str, Any]) -> Product:
        pass

    @abstractmethod
    async def create_products_bulk(self, payloads: List[Dict[str, Any]]) -> List[Product]:
        """Insert many products in one call; all or nothing"""
        pass

    @abstractmethod
    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Product:
        pass

    @abstractmethod
    async def delete_products(self, product_ids: List[str]) -> None:
        pass

    @abstractmethod
    async def update_status_bulk(self, product_ids: List[str], status: ProductStatus) -> None:
        pass

    async def increment_clicks(self, product_id: str) -> None:
        """Interest counter (optional implementation)"""
        raise NotImplementedError("Click tracking not implemented for this gateway")

    # ========== Internal Assets ==========

    @abstractmethod
    async def list_assets(self) -> List[InternalAsset]:
        """All internal assets ordered by name"""
        pass

    @abstractmethod
    async def create_asset(self, payload: Dict[str, Any]) -> InternalAsset:
        pass

    @abstractmethod
    async def update_asset(self, asset_id: str, fields: Dict[str, Any]) -> InternalAsset:
        pass

    @abstractmethod
    async def delete_assets(self, asset_ids: List[str]) -> None:
        pass

    # ========== Settings ==========

    @abstractmethod
    async def get_settings(self) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def update_settings(self, fields: Dict[str, Any]) -> None:
        pass

    # ========== Utilities ==========

    def _log_call(self, method: str, endpoint: str, status_code: int):
        logger.info(f"[{self.GATEWAY_NAME}] {method} {endpoint} -> {status_code}")
