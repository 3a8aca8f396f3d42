"""
Supabase REST Gateway (PostgREST)
API Documentation: https://postgrest.org/en/stable/references/api.html
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar
import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError
import logging

from vitrina.core.exceptions import GatewayError
from vitrina.schemas import InternalAsset, Product, ProductStatus
from .base import PersistenceGateway

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class SupabaseGateway(PersistenceGateway):
    """
    Talks to the hosted tables over the REST interface.
    """
    GATEWAY_NAME = "supabase"

    # Tables
    PRODUCTS = "products"
    ASSETS = "internal_assets"
    SETTINGS = "brand_settings"
    SETTINGS_ROW = "current"

    def __init__(
        self,
        rest_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rest_url = rest_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    # ========== Transport ==========

    def _build_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @staticmethod
    def _in_filter(ids: List[str]) -> str:
        return "in.(" + ",".join(ids) + ")"

    async def _request(
        self,
        method: str,
        table: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.rest_url}/{table}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=self._build_headers(prefer),
                )
        except httpx.HTTPError as e:
            logger.error(f"[{self.GATEWAY_NAME}] {operation} failed: {e}")
            raise GatewayError(f"{operation} failed: {e}", operation=operation) from e

        self._log_call(method, f"/{table}", response.status_code)

        if response.status_code >= 400:
            detail = response.text[:200]
            logger.error(f"[{self.GATEWAY_NAME}] {operation} -> {response.status_code}: {detail}")
            raise GatewayError(
                f"{operation} failed with status {response.status_code}",
                operation=operation,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"[{self.GATEWAY_NAME}] {operation} returned invalid JSON: {e}")
            raise GatewayError(f"{operation} returned invalid JSON", operation=operation) from e

    @classmethod
    def _parse(cls, model: Type[M], row: Any, operation: str) -> M:
        try:
            return model.model_validate(row)
        except PydanticValidationError as e:
            logger.error(f"[{cls.GATEWAY_NAME}] {operation} returned a malformed row: {e}")
            raise GatewayError(f"{operation} returned a malformed row", operation=operation) from e

    @staticmethod
    def _single(rows: Any, operation: str) -> Dict[str, Any]:
        if not rows:
            raise GatewayError(f"{operation} returned no rows", operation=operation, status_code=404)
        if isinstance(rows, list):
            return rows[0]
        return rows

    # ========== Products ==========

    async def list_products(self) -> List[Product]:
        rows = await self._request(
            "GET", self.PRODUCTS, "list_products",
            params={"select": "*", "order": "created_at.desc"},
        )
        return [self._parse(Product, r, "list_products") for r in rows or []]

    async def get_product(self, product_id: str) -> Optional[Product]:
        rows = await self._request(
            "GET", self.PRODUCTS, "get_product",
            params={"select": "*", "id": f"eq.{product_id}"},
        )
        if not rows:
            return None
        return self._parse(Product, rows[0], "get_product")

    async def create_product(self, payload: Dict[str, Any]) -> Product:
        rows = await self._request(
            "POST", self.PRODUCTS, "create_product",
            json=payload, prefer="return=representation",
        )
        return self._parse(Product, self._single(rows, "create_product"), "create_product")

    async def create_products_bulk(self, payloads: List[Dict[str, Any]]) -> List[Product]:
        if not payloads:
            return []
        rows = await self._request(
            "POST", self.PRODUCTS, "create_products_bulk",
            json=payloads, prefer="return=representation",
        )
        return [self._parse(Product, r, "create_products_bulk") for r in rows or []]

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Product:
        rows = await self._request(
            "PATCH", self.PRODUCTS, "update_product",
            params={"id": f"eq.{product_id}"},
            json=fields, prefer="return=representation",
        )
        return self._parse(Product, self._single(rows, "update_product"), "update_product")

    async def delete_products(self, product_ids: List[str]) -> None:
        if not product_ids:
            return
        await self._request(
            "DELETE", self.PRODUCTS, "delete_products",
            params={"id": self._in_filter(product_ids)},
        )

    async def update_status_bulk(self, product_ids: List[str], status: ProductStatus) -> None:
        if not product_ids:
            return
        await self._request(
            "PATCH", self.PRODUCTS, "update_status_bulk",
            params={"id": self._in_filter(product_ids)},
            json={"status": ProductStatus(status).value},
        )

    async def increment_clicks(self, product_id: str) -> None:
        await self._request(
            "POST", "rpc/increment_whatsapp_clicks", "increment_clicks",
            json={"product_id": product_id},
        )

    # ========== Internal Assets ==========

    async def list_assets(self) -> List[InternalAsset]:
        rows = await self._request(
            "GET", self.ASSETS, "list_assets",
            params={"select": "*", "order": "name.asc"},
        )
        return [self._parse(InternalAsset, r, "list_assets") for r in rows or []]

    async def create_asset(self, payload: Dict[str, Any]) -> InternalAsset:
        rows = await self._request(
            "POST", self.ASSETS, "create_asset",
            json=payload, prefer="return=representation",
        )
        return self._parse(InternalAsset, self._single(rows, "create_asset"), "create_asset")

    async def update_asset(self, asset_id: str, fields: Dict[str, Any]) -> InternalAsset:
        rows = await self._request(
            "PATCH", self.ASSETS, "update_asset",
            params={"id": f"eq.{asset_id}"},
            json=fields, prefer="return=representation",
        )
        return self._parse(InternalAsset, self._single(rows, "update_asset"), "update_asset")

    async def delete_assets(self, asset_ids: List[str]) -> None:
        if not asset_ids:
            return
        await self._request(
            "DELETE", self.ASSETS, "delete_assets",
            params={"id": self._in_filter(asset_ids)},
        )

    # ========== Settings ==========

    async def get_settings(self) -> Optional[Dict[str, Any]]:
        rows = await self._request(
            "GET", self.SETTINGS, "get_settings",
            params={"select": "*", "id": f"eq.{self.SETTINGS_ROW}"},
        )
        if not rows:
            return None
        if not isinstance(rows, list) or not isinstance(rows[0], dict):
            raise GatewayError("get_settings returned a malformed row", operation="get_settings")
        return rows[0]

    async def update_settings(self, fields: Dict[str, Any]) -> None:
        data = dict(fields)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        await self._request(
            "PATCH", self.SETTINGS, "update_settings",
            params={"id": f"eq.{self.SETTINGS_ROW}"},
            json=data,
        )
