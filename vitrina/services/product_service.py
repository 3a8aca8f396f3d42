"""
Product Service - validated writes of products and internal assets
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vitrina.core.exceptions import GatewayError, ValidationError
from vitrina.core.state import AppState
from vitrina.integrations.base import PersistenceGateway
from vitrina.schemas import (
    AssetDraft, ImportRow, InternalAsset, Product, ProductDraft, ProductStatus, ProductVariant,
    parse_import_lines, sanitize_asset_update, sanitize_product_update,
)
from .notifications import NotificationChannel
from .stock_service import set_primary, sync_caches, variant_caches

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class ImportResult:
    created: List[Product] = field(default_factory=list)
    skipped: List[ImportRow] = field(default_factory=list)


def _summarize(result: BulkResult, notifications: NotificationChannel):
    """One notification for the whole batch"""
    if result.ok:
        notifications.success(f"{result.total} items actualizados")
    elif result.succeeded:
        notifications.error(
            f"{len(result.succeeded)} de {result.total} items actualizados; "
            f"{len(result.failed)} fallaron"
        )
    else:
        notifications.error("Error en actualización masiva")


def _with_variant_caches(clean: Dict[str, Any]) -> Dict[str, Any]:
    """A write that replaces the variant list also rewrites the stock/unit_cost caches"""
    if not clean.get("variants"):
        return clean
    variants = [ProductVariant.model_validate(v) for v in clean["variants"]]
    return {**clean, **variant_caches(variants)}


class ProductService:
    """
    Every write is validated before reaching the gateway. Local state is only
    touched after the gateway confirms; gateway failures are always surfaced.
    """

    def __init__(self, state: AppState, gateway: PersistenceGateway, notifications: NotificationChannel):
        self.state = state
        self.gateway = gateway
        self.notifications = notifications

    # ========== Products ==========

    async def get_product(self, product_id: str) -> Optional[Product]:
        product = self.state.find_product(product_id)
        if product is None:
            product = await self.gateway.get_product(product_id)
        return product

    async def save_product(self, draft: ProductDraft, product_id: Optional[str] = None) -> Product:
        """Create (no id) or fully update a product from its form draft"""
        payload = sync_caches(draft).to_payload()

        try:
            if product_id:
                product = await self.gateway.update_product(product_id, payload)
            else:
                product = await self.gateway.create_product(payload)
        except GatewayError:
            self.notifications.error("Error al guardar el producto")
            raise

        self.state.replace_product(product)
        self.notifications.success(
            "Producto actualizado con éxito" if product_id else "Producto creado con éxito"
        )
        logger.info(f"Product saved: {product.id} ({product.name})")
        return product

    async def update_fields(self, product_id: str, fields: Dict[str, Any]) -> Product:
        clean = _with_variant_caches(sanitize_product_update(fields))
        try:
            product = await self.gateway.update_product(product_id, clean)
        except GatewayError:
            self.notifications.error("No se pudo actualizar el producto")
            raise
        self.state.replace_product(product)
        return product

    async def set_primary_variant(self, product_id: str, variant_id: str) -> Product:
        product = await self.get_product(product_id)
        if product is None:
            raise ValidationError({"id": "Producto no encontrado"})
        if not any(v.id == variant_id for v in product.variants):
            raise ValidationError({"variant_id": "Variante no encontrada"})

        updated = set_primary(product, variant_id)
        return await self.update_fields(product_id, {
            "variants": updated.variants,
            "images": updated.images,
        })

    async def save_stock_sheet(
        self,
        product_id: str,
        variants: List[ProductVariant],
        unit_cost: Optional[int] = None,
        location: Optional[str] = None,
    ) -> Product:
        """
        Back-office inline edit of cost, location and per-variant stock.
        The sheet carries one cost per product: with variants it becomes the
        cost of every variant, so the synced cache equals what was entered.
        """
        product = await self.get_product(product_id)
        if product is None:
            raise ValidationError({"id": "Producto no encontrado"})

        draft = ProductDraft.from_product(product)
        draft.variants = list(variants)
        if unit_cost is not None:
            draft.unit_cost = unit_cost
            draft.variants = [v.model_copy(update={"unit_cost": unit_cost}) for v in draft.variants]
        if location is not None:
            draft.location = location
        draft = sync_caches(draft)

        fields: Dict[str, Any] = {
            "variants": draft.variants,
            "stock": draft.stock,
            "unit_cost": draft.unit_cost,
        }
        if location is not None:
            fields["location"] = location
        product = await self.update_fields(product_id, fields)
        self.notifications.success("Ficha técnica actualizada")
        return product

    async def duplicate_product(self, product_id: str) -> Product:
        original = await self.gateway.get_product(product_id)
        if original is None:
            raise ValidationError({"id": "No se pudo encontrar el producto original"})

        draft = ProductDraft.from_product(original)
        draft.name = f"{original.name} (Copia)"
        payload = sync_caches(draft).to_payload()
        payload["whatsapp_clicks"] = 0
        try:
            product = await self.gateway.create_product(payload)
        except GatewayError:
            self.notifications.error("Error al duplicar el producto")
            raise
        self.state.replace_product(product)
        self.notifications.success("Producto duplicado")
        return product

    async def import_products(self, text: str) -> ImportResult:
        """
        Bulk create from `name, price, category, stock` lines.
        Invalid lines are skipped and returned; valid ones go in one gateway call.
        """
        rows = parse_import_lines(text)
        valid = [row for row in rows if row.is_valid]
        if not valid:
            raise ValidationError({"rows": "No hay filas válidas para importar"})

        try:
            created = await self.gateway.create_products_bulk([row.to_payload() for row in valid])
        except GatewayError:
            self.notifications.error("Error al importar productos")
            raise

        for product in created:
            self.state.replace_product(product)
        self.notifications.success(f"{len(created)} productos importados correctamente")
        logger.info(f"Imported {len(created)} products, skipped {len(rows) - len(valid)} lines")
        return ImportResult(created=created, skipped=[row for row in rows if not row.is_valid])

    async def delete_products(self, product_ids: List[str]) -> int:
        if not product_ids:
            return 0
        try:
            await self.gateway.delete_products(product_ids)
        except GatewayError:
            self.notifications.error("Error al eliminar productos en lote")
            raise

        removed = set(product_ids)
        self.state.products = [p for p in self.state.products if p.id not in removed]
        self.notifications.success(f"{len(product_ids)} items eliminados")
        return len(product_ids)

    async def update_status_bulk(self, product_ids: List[str], status: ProductStatus) -> int:
        if not product_ids:
            return 0
        status = ProductStatus(status)
        try:
            await self.gateway.update_status_bulk(product_ids, status)
        except GatewayError:
            self.notifications.error("Error al actualizar productos en lote")
            raise

        targets = set(product_ids)
        self.state.products = [
            p.model_copy(update={"status": status}) if p.id in targets else p
            for p in self.state.products
        ]
        self.notifications.success(f"{len(product_ids)} items actualizados")
        return len(product_ids)

    async def bulk_update(self, product_ids: List[str], fields: Dict[str, Any]) -> BulkResult:
        """
        Apply the same change to many products, one gateway call each.
        Not transactional: partial failures are reported, never rolled back.
        """
        clean = _with_variant_caches(sanitize_product_update(fields))
        outcomes = await asyncio.gather(
            *(self.gateway.update_product(pid, clean) for pid in product_ids),
            return_exceptions=True,
        )

        result = BulkResult()
        for pid, outcome in zip(product_ids, outcomes):
            if isinstance(outcome, GatewayError):
                result.failed[pid] = str(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(pid)
                self.state.replace_product(outcome)

        if result.failed:
            logger.warning(f"Bulk update: {len(result.failed)}/{result.total} failed")
        _summarize(result, self.notifications)
        return result

    async def record_interest(self, product_id: str) -> bool:
        """Bump the WhatsApp interest counter; failures are logged only"""
        try:
            await self.gateway.increment_clicks(product_id)
            return True
        except (GatewayError, NotImplementedError) as e:
            logger.error(f"Error incrementing clicks for {product_id}: {e}")
            return False

    # ========== Internal Assets ==========

    async def save_asset(self, draft: AssetDraft, asset_id: Optional[str] = None) -> InternalAsset:
        payload = draft.to_payload()
        try:
            if asset_id:
                asset = await self.gateway.update_asset(asset_id, payload)
            else:
                asset = await self.gateway.create_asset(payload)
        except GatewayError:
            self.notifications.error("Error al guardar el activo")
            raise

        self.state.replace_asset(asset)
        self.notifications.success("Activo actualizado" if asset_id else "Activo creado")
        return asset

    async def delete_assets(self, asset_ids: List[str]) -> int:
        if not asset_ids:
            return 0
        try:
            await self.gateway.delete_assets(asset_ids)
        except GatewayError:
            self.notifications.error("Error en eliminación masiva")
            raise

        removed = set(asset_ids)
        self.state.assets = [a for a in self.state.assets if a.id not in removed]
        self.notifications.success(f"{len(asset_ids)} items eliminados")
        return len(asset_ids)

    async def bulk_update_assets(self, asset_ids: List[str], fields: Dict[str, Any]) -> BulkResult:
        """Bulk relocate / recategorize internal assets"""
        clean = sanitize_asset_update(fields)

        outcomes = await asyncio.gather(
            *(self.gateway.update_asset(aid, clean) for aid in asset_ids),
            return_exceptions=True,
        )

        result = BulkResult()
        for aid, outcome in zip(asset_ids, outcomes):
            if isinstance(outcome, GatewayError):
                result.failed[aid] = str(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(aid)
                self.state.replace_asset(outcome)

        _summarize(result, self.notifications)
        return result
