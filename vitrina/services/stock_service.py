"""
Stock Service - variant stock & value aggregation, primary variant, low-stock alerts
"""
import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from vitrina.core.config import settings
from vitrina.schemas import InternalAsset, Product, ProductDraft, ProductVariant


@dataclass(frozen=True)
class StockValue:
    stock: int
    value: int


@dataclass(frozen=True)
class InventorySummary:
    total_value: int
    total_units: int
    low_stock_count: int
    item_count: int


def aggregate(product) -> StockValue:
    """
    Authoritative stock and inventory value.
    Variants win over the top-level stock/unit_cost caches when present.
    """
    variants = product.variants or []
    if not variants:
        stock = product.stock or 0
        return StockValue(stock=stock, value=stock * (product.unit_cost or 0))

    stock = 0
    value = 0
    for v in variants:
        stock += v.stock or 0
        value += (v.stock or 0) * (v.unit_cost or 0)
    return StockValue(stock=stock, value=value)


def variant_caches(variants: List[ProductVariant]) -> Dict[str, int]:
    """
    Display caches derived from a variant list.
    unit_cost is the stock-weighted average cost; with no units on hand
    it falls back to the primary (or first) variant's cost.
    """
    stock = 0
    value = 0
    for v in variants:
        stock += v.stock or 0
        value += (v.stock or 0) * (v.unit_cost or 0)
    if stock > 0:
        unit_cost = round(value / stock)
    else:
        reference = next((v for v in variants if v.is_primary), variants[0])
        unit_cost = reference.unit_cost or 0
    return {"stock": stock, "unit_cost": unit_cost}


def sync_caches(draft: ProductDraft) -> ProductDraft:
    """Overwrite stock/unit_cost display caches from the variant list"""
    if not draft.variants:
        return draft
    return dataclasses.replace(draft, **variant_caches(draft.variants))


def _with_fields(obj, **fields):
    if isinstance(obj, ProductDraft):
        return dataclasses.replace(obj, **fields)
    return obj.model_copy(update=fields)


def set_primary(product, variant_id: str):
    """
    Mark exactly one variant primary in a single pass over the list and move
    its first image to the cover position. Works on Product and ProductDraft.
    """
    if not any(v.id == variant_id for v in product.variants):
        return product

    variants: List[ProductVariant] = [
        v.model_copy(update={"is_primary": v.id == variant_id}) for v in product.variants
    ]
    images = list(product.images)

    primary = next(v for v in variants if v.is_primary)
    if primary.images:
        cover = primary.images[0]
        images = [cover] + [img for img in images if img != cover]

    return _with_fields(product, variants=variants, images=images)


def is_low(stock: Optional[int], minimum: int = settings.LOW_STOCK_THRESHOLD) -> bool:
    return (stock or 0) <= minimum


def is_product_low(product: Product, minimum: int = settings.LOW_STOCK_THRESHOLD) -> bool:
    """A product with variants is low as soon as any one variant is low"""
    if product.variants:
        return any(is_low(v.stock, minimum) for v in product.variants)
    return is_low(product.stock, minimum)


def low_variants(product: Product, minimum: int = settings.LOW_STOCK_THRESHOLD) -> List[ProductVariant]:
    return [v for v in product.variants if is_low(v.stock, minimum)]


def is_asset_low(asset: InternalAsset) -> bool:
    return is_low(asset.stock, asset.min_stock or 0)


def asset_value(asset: InternalAsset) -> int:
    return (asset.stock or 0) * (asset.unit_cost or 0)


def inventory_summary(products: Iterable[Product], minimum: int = settings.LOW_STOCK_THRESHOLD) -> InventorySummary:
    total_value = 0
    total_units = 0
    low = 0
    count = 0
    for p in products:
        totals = aggregate(p)
        total_value += totals.value
        total_units += totals.stock
        if is_product_low(p, minimum):
            low += 1
        count += 1
    return InventorySummary(total_value=total_value, total_units=total_units, low_stock_count=low, item_count=count)


def asset_summary(assets: Iterable[InternalAsset]) -> InventorySummary:
    total_value = 0
    total_units = 0
    low = 0
    count = 0
    for a in assets:
        total_value += asset_value(a)
        total_units += a.stock or 0
        if is_asset_low(a):
            low += 1
        count += 1
    return InventorySummary(total_value=total_value, total_units=total_units, low_stock_count=low, item_count=count)


def potential_sales(products: Iterable[Product]) -> int:
    """Retail value of everything on hand at list price"""
    return sum(p.price * aggregate(p).stock for p in products)


def category_breakdown(products: Iterable[Product]) -> List[Dict]:
    products = list(products)
    categories = []
    for p in products:
        if p.category and p.category not in categories:
            categories.append(p.category)

    rows = []
    for cat in categories:
        items = [p for p in products if p.category == cat]
        value = sum(p.price * aggregate(p).stock for p in items)
        clicks = sum(p.whatsapp_clicks or 0 for p in items)
        rows.append({
            "category": cat,
            "count": len(items),
            "value": value,
            "clicks": clicks,
        })

    rows.sort(key=lambda r: r["value"], reverse=True)
    return rows
