# Services Package
from .notifications import NotificationChannel, Notification, NotificationLevel
from .cost_ledger import CostLedger
from .pricing_service import PricingCalculator
from .catalog_service import CatalogSession, SearchDebouncer
from .refresh_service import RefreshCoordinator, guarded_fetch
from .product_service import ProductService, BulkResult, ImportResult
from . import cost_ledger
from . import pricing_service
from . import stock_service
from . import catalog_service

__all__ = [
    "NotificationChannel",
    "Notification",
    "NotificationLevel",
    "CostLedger",
    "PricingCalculator",
    "CatalogSession",
    "SearchDebouncer",
    "RefreshCoordinator",
    "guarded_fetch",
    "ProductService",
    "BulkResult",
    "ImportResult",
    "cost_ledger",
    "pricing_service",
    "stock_service",
    "catalog_service",
]
