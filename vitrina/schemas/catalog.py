"""
Catalog Filter/Sort Schemas
"""
import enum

from pydantic import BaseModel

from vitrina.core.config import settings

ALL = "All"


class SortOption(str, enum.Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class AdminSort(str, enum.Enum):
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    STOCK_ASC = "stock_asc"
    STOCK_DESC = "stock_desc"
    CATEGORY = "category"
    COLLECTION = "collection"
    STATUS = "status"


class CatalogQuery(BaseModel):
    search: str = ""
    min_price: int = 0
    max_price: int = settings.PRICE_SENTINEL_MAX  # sentinel = no upper bound
    status: str = ALL
    category: str = ALL
    collection: str = ALL
    sort: SortOption = SortOption.NEWEST
