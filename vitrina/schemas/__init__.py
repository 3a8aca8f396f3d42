# Schemas Package
from .product import Product, ProductVariant, ProductStatus, ProductWrite
from .asset import InternalAsset, AssetWrite
from .pricing import CostLineItem, PricingResult, PricingMode, RoiEntry, PricingRequest
from .catalog import ALL, CatalogQuery, SortOption, AdminSort
from .drafts import (
    ProductDraft, AssetDraft, ImportRow,
    sanitize_product_update, sanitize_asset_update, parse_import_lines,
)

__all__ = [
    "Product", "ProductVariant", "ProductStatus", "ProductWrite",
    "InternalAsset", "AssetWrite",
    "CostLineItem", "PricingResult", "PricingMode", "RoiEntry", "PricingRequest",
    "ALL", "CatalogQuery", "SortOption", "AdminSort",
    "ProductDraft", "AssetDraft", "ImportRow",
    "sanitize_product_update", "sanitize_asset_update", "parse_import_lines",
]
