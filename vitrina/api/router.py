"""
API Router - JSON Endpoints
"""
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from vitrina.api.deps import get_context
from vitrina.api.webhooks import webhook_router
from vitrina.context import AppContext
from vitrina.core.config import settings
from vitrina.core.state import ENTITIES
from vitrina.schemas import (
    ALL, AdminSort, AssetDraft, AssetWrite, CatalogQuery, CostLineItem, InternalAsset,
    PricingRequest, Product, ProductDraft, ProductStatus, ProductWrite, parse_import_lines,
)
from vitrina.services import PricingCalculator
from vitrina.services import catalog_service, cost_ledger, pricing_service, stock_service

api_router = APIRouter(tags=["API"])

# Include sub-routers
api_router.include_router(webhook_router)


class IdsBody(BaseModel):
    ids: List[str]


class StatusBody(BaseModel):
    ids: List[str]
    status: ProductStatus


class BulkFieldsBody(BaseModel):
    ids: List[str]
    fields: Dict[str, Any]


class PrimaryBody(BaseModel):
    variant_id: str


class ImportBody(BaseModel):
    text: str


def _usd_rate(ctx: AppContext) -> int:
    brand = ctx.state.settings or {}
    return brand.get("usd_exchange_rate") or settings.USD_EXCHANGE_RATE


def _product_out(p: Product, currency: str = "CLP", usd_rate: int = settings.USD_EXCHANGE_RATE) -> dict:
    totals = stock_service.aggregate(p)
    data = p.model_dump(by_alias=True, mode="json")
    data.update({
        "stock_total": totals.stock,
        "inventory_value": totals.value,
        "is_low": stock_service.is_product_low(p),
        "display_price": catalog_service.display_price(p.price, currency, usd_rate),
    })
    return data


def _asset_out(a: InternalAsset) -> dict:
    data = a.model_dump(mode="json")
    data.update({
        "inventory_value": stock_service.asset_value(a),
        "is_low": stock_service.is_asset_low(a),
    })
    return data


# ===================== HEALTH & STATUS =====================

@api_router.get("/status")
async def api_status(ctx: AppContext = Depends(get_context)):
    return {
        "status": "ok",
        "version": "1.0.0",
        "gateway": ctx.gateway.GATEWAY_NAME,
        "loading": dict(ctx.state.loading),
        "timestamp": datetime.now().isoformat(),
    }


@api_router.get("/notifications")
async def list_notifications(ctx: AppContext = Depends(get_context)):
    return [
        {"id": n.id, "level": n.level.value, "message": n.message, "created_at": n.created_at.isoformat()}
        for n in ctx.notifications.history
    ]


@api_router.post("/refresh/{entity}")
async def refresh_entity(entity: str, ctx: AppContext = Depends(get_context)):
    if entity not in ENTITIES:
        raise HTTPException(status_code=404, detail=f"Unknown entity '{entity}'")
    ok = await ctx.coordinator.refresh(entity, silent=False)
    return {"entity": entity, "ok": ok}


# ===================== PUBLIC CATALOG =====================

@api_router.get("/catalog")
async def public_catalog(
    query: CatalogQuery = Depends(),
    currency: str = Query("CLP"),
    ctx: AppContext = Depends(get_context),
):
    products = catalog_service.view(ctx.state.products, query, public=True)
    rate = _usd_rate(ctx)
    return {
        "products": [_product_out(p, currency, rate) for p in products],
        "total": len(products),
        "active_filters": catalog_service.active_filter_count(query),
    }


@api_router.get("/catalog/facets")
async def catalog_facets(ctx: AppContext = Depends(get_context)):
    products = ctx.state.products
    return {
        "categories": catalog_service.facet_values(products, "category"),
        "collections": catalog_service.facet_values(products, "collection"),
        "statuses": [ALL] + [s.value for s in ProductStatus if s != ProductStatus.SOLD_OUT],
        "price_max": settings.PRICE_SENTINEL_MAX,
    }


@api_router.get("/catalog/{product_id}")
async def catalog_product(product_id: str, ctx: AppContext = Depends(get_context)):
    product = ctx.state.find_product(product_id)
    if not product or not catalog_service.is_publicly_visible(product):
        raise HTTPException(status_code=404, detail="Product not found")
    return _product_out(product, usd_rate=_usd_rate(ctx))


@api_router.post("/catalog/{product_id}/interest")
async def register_interest(product_id: str, ctx: AppContext = Depends(get_context)):
    return {"recorded": await ctx.products.record_interest(product_id)}


# ===================== BACK OFFICE LISTS =====================

@api_router.get("/admin/products")
async def admin_products(
    search: str = Query(""),
    category: str = Query(ALL),
    sort: AdminSort = Query(AdminSort.NAME_ASC),
    ctx: AppContext = Depends(get_context),
):
    items = catalog_service.admin_view(ctx.state.products, search, category, sort)
    return {"products": [_product_out(p) for p in items], "total": len(items)}


@api_router.get("/admin/assets")
async def admin_assets(
    search: str = Query(""),
    category: str = Query(ALL),
    sort: AdminSort = Query(AdminSort.NAME_ASC),
    ctx: AppContext = Depends(get_context),
):
    items = catalog_service.admin_view(ctx.state.assets, search, category, sort)
    return {"assets": [_asset_out(a) for a in items], "total": len(items)}


@api_router.get("/inventory/summary")
async def inventory_summary(ctx: AppContext = Depends(get_context)):
    products = ctx.state.products
    return {
        "products": asdict(stock_service.inventory_summary(products)),
        "assets": asdict(stock_service.asset_summary(ctx.state.assets)),
        "potential_sales": stock_service.potential_sales(products),
        "categories": stock_service.category_breakdown(products),
    }


# ===================== PRICING =====================

@api_router.post("/pricing/calculate")
async def calculate_price(data: PricingRequest):
    fixed = [CostLineItem(i.id, i.label, cost_ledger.clamp_cost(i.value)) for i in data.fixed_items]
    custom = [CostLineItem(i.id, i.label, cost_ledger.clamp_cost(i.value)) for i in data.custom_items]
    total = cost_ledger.total_cost(fixed, custom)
    try:
        result = pricing_service.calculate(total, data.mode, data.markup_multiplier, data.target_price)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"mode": data.mode.value, **asdict(result)}


@api_router.get("/pricing/products/{product_id}")
async def price_existing_product(product_id: str, ctx: AppContext = Depends(get_context)):
    product = ctx.state.find_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    calculator = PricingCalculator()
    calculator.load_product(product)
    return {
        "product_id": product.id,
        "costs": [asdict(item) for item in calculator.ledger.fixed_items],
        "mode": calculator.mode.value,
        **asdict(calculator.result),
    }


@api_router.get("/pricing/roi-ranking")
async def roi_ranking(
    limit: Optional[int] = Query(None, ge=1),
    ctx: AppContext = Depends(get_context),
):
    ranking = pricing_service.rank_by_roi(ctx.state.products)
    if limit:
        ranking = ranking[:limit]
    return [
        {
            "id": e.product.id,
            "name": e.product.name,
            "price": e.product.price,
            "unit_cost": e.product.unit_cost,
            "profit": e.profit,
            "roi": e.roi,
            "margin": e.margin,
        }
        for e in ranking
    ]


# ===================== PRODUCTS =====================

@api_router.post("/products")
async def create_product(data: ProductWrite, ctx: AppContext = Depends(get_context)):
    product = await ctx.products.save_product(ProductDraft(**dict(data)))
    return _product_out(product)


@api_router.put("/products/{product_id}")
async def replace_product(product_id: str, data: ProductWrite, ctx: AppContext = Depends(get_context)):
    product = await ctx.products.save_product(ProductDraft(**dict(data)), product_id=product_id)
    return _product_out(product)


@api_router.patch("/products/{product_id}")
async def update_product(product_id: str, fields: Dict[str, Any], ctx: AppContext = Depends(get_context)):
    product = await ctx.products.update_fields(product_id, fields)
    return _product_out(product)


@api_router.post("/products/{product_id}/primary")
async def set_primary_variant(product_id: str, data: PrimaryBody, ctx: AppContext = Depends(get_context)):
    product = await ctx.products.set_primary_variant(product_id, data.variant_id)
    return _product_out(product)


@api_router.post("/products/{product_id}/duplicate")
async def duplicate_product(product_id: str, ctx: AppContext = Depends(get_context)):
    product = await ctx.products.duplicate_product(product_id)
    return _product_out(product)


@api_router.post("/products/bulk-delete")
async def bulk_delete_products(data: IdsBody, ctx: AppContext = Depends(get_context)):
    return {"deleted": await ctx.products.delete_products(data.ids)}


@api_router.post("/products/bulk-status")
async def bulk_status(data: StatusBody, ctx: AppContext = Depends(get_context)):
    return {"updated": await ctx.products.update_status_bulk(data.ids, data.status)}


@api_router.post("/products/bulk-update")
async def bulk_update_products(data: BulkFieldsBody, ctx: AppContext = Depends(get_context)):
    result = await ctx.products.bulk_update(data.ids, data.fields)
    return {"succeeded": result.succeeded, "failed": result.failed}


@api_router.post("/products/import/preview")
async def preview_import(data: ImportBody):
    rows = parse_import_lines(data.text)
    return {
        "rows": [asdict(row) for row in rows],
        "valid": sum(1 for row in rows if row.is_valid),
        "total": len(rows),
    }


@api_router.post("/products/import")
async def import_products(data: ImportBody, ctx: AppContext = Depends(get_context)):
    result = await ctx.products.import_products(data.text)
    return {
        "created": [_product_out(p) for p in result.created],
        "skipped": [asdict(row) for row in result.skipped],
    }


# ===================== INTERNAL ASSETS =====================

def _asset_draft(data: AssetWrite) -> AssetDraft:
    return AssetDraft(**{k: v for k, v in dict(data).items() if v is not None})


@api_router.post("/assets")
async def create_asset(data: AssetWrite, ctx: AppContext = Depends(get_context)):
    asset = await ctx.products.save_asset(_asset_draft(data))
    return _asset_out(asset)


@api_router.put("/assets/{asset_id}")
async def replace_asset(asset_id: str, data: AssetWrite, ctx: AppContext = Depends(get_context)):
    asset = await ctx.products.save_asset(_asset_draft(data), asset_id=asset_id)
    return _asset_out(asset)


@api_router.post("/assets/bulk-delete")
async def bulk_delete_assets(data: IdsBody, ctx: AppContext = Depends(get_context)):
    return {"deleted": await ctx.products.delete_assets(data.ids)}


@api_router.post("/assets/bulk-update")
async def bulk_update_assets(data: BulkFieldsBody, ctx: AppContext = Depends(get_context)):
    result = await ctx.products.bulk_update_assets(data.ids, data.fields)
    return {"succeeded": result.succeeded, "failed": result.failed}
