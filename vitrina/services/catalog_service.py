"""
Catalog Service - multi-predicate filtering and sorting of product collections
"""
import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Union

from vitrina.core.config import settings
from vitrina.schemas import (
    ALL, AdminSort, CatalogQuery, InternalAsset, Product, ProductStatus, SortOption,
)
from .stock_service import aggregate

logger = logging.getLogger(__name__)

Listable = Union[Product, InternalAsset]


# ===================== PREDICATES =====================

def matches_search(product: Product, search: str) -> bool:
    q = (search or "").lower()
    if not q:
        return True
    if q in product.name.lower():
        return True
    return bool(product.description) and q in product.description.lower()


def matches_price(product: Product, min_price: int, max_price: int) -> bool:
    if product.price < min_price:
        return False
    if max_price == settings.PRICE_SENTINEL_MAX:
        return True
    return product.price <= max_price


def _matches_option(value, selected: str) -> bool:
    return selected == ALL or value == selected


def is_publicly_visible(product: Product) -> bool:
    return product.status != ProductStatus.SOLD_OUT


# ===================== PUBLIC CATALOG =====================

def _created_ts(product: Product) -> float:
    return product.created_at.timestamp() if product.created_at else 0.0


def sort_products(products: Iterable[Product], sort: SortOption) -> List[Product]:
    """Stable: ties keep their incoming relative order"""
    sort = SortOption(sort)
    if sort == SortOption.PRICE_ASC:
        return sorted(products, key=lambda p: p.price)
    if sort == SortOption.PRICE_DESC:
        return sorted(products, key=lambda p: p.price, reverse=True)
    return sorted(products, key=_created_ts, reverse=True)


def view(products: Iterable[Product], query: CatalogQuery, public: bool = True) -> List[Product]:
    result = []
    for p in products:
        # Sold out pieces never reach the public storefront
        if public and not is_publicly_visible(p):
            continue
        if not matches_search(p, query.search):
            continue
        if not matches_price(p, query.min_price, query.max_price):
            continue
        if not _matches_option(p.status, query.status):
            continue
        if not _matches_option(p.category, query.category):
            continue
        if not _matches_option(p.collection, query.collection):
            continue
        result.append(p)
    return sort_products(result, query.sort)


def facet_values(products: Iterable[Product], field: str) -> List[str]:
    """["All", ...distinct non-empty values in first-seen order]"""
    values = [ALL]
    for p in products:
        value = getattr(p, field, None)
        if value and value not in values:
            values.append(value)
    return values


def active_filter_count(query: CatalogQuery) -> int:
    return sum([
        query.status != ALL,
        query.category != ALL,
        query.collection != ALL,
        query.min_price > 0 or query.max_price < settings.PRICE_SENTINEL_MAX,
        SortOption(query.sort) != SortOption.NEWEST,
    ])


def display_price(price: int, currency: str = "CLP", usd_rate: int = settings.USD_EXCHANGE_RATE) -> int:
    if currency == "USD":
        return round(price / usd_rate) if usd_rate else 0
    return price


# ===================== BACK-OFFICE LISTS =====================

def _stock_of(item: Listable) -> int:
    if isinstance(item, Product):
        return aggregate(item).stock
    return item.stock or 0


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, ProductStatus):
        value = value.value
    return str(value).casefold()


ADMIN_SORT_KEYS = {
    AdminSort.NAME_ASC: (lambda i: _text(i.name), False),
    AdminSort.NAME_DESC: (lambda i: _text(i.name), True),
    AdminSort.STOCK_ASC: (_stock_of, False),
    AdminSort.STOCK_DESC: (_stock_of, True),
    AdminSort.CATEGORY: (lambda i: _text(i.category), False),
    # Internal assets carry no collection/status: all tie, order is kept
    AdminSort.COLLECTION: (lambda i: _text(getattr(i, "collection", None)), False),
    AdminSort.STATUS: (lambda i: _text(getattr(i, "status", None)), False),
}


def admin_sort(items: Iterable[Listable], sort: AdminSort) -> List[Listable]:
    key, reverse = ADMIN_SORT_KEYS[AdminSort(sort)]
    return sorted(items, key=key, reverse=reverse)


def admin_view(
    items: Iterable[Listable],
    search: str = "",
    category: str = ALL,
    sort: AdminSort = AdminSort.NAME_ASC,
) -> List[Listable]:
    """Back-office search: name, plus category for internal assets"""
    q = (search or "").lower()
    result = []
    for item in items:
        if q:
            hit = q in item.name.lower()
            if not hit and isinstance(item, InternalAsset):
                hit = q in (item.category or "").lower()
            if not hit:
                continue
        if not _matches_option(item.category, category):
            continue
        result.append(item)
    return admin_sort(result, sort)


# ===================== DEBOUNCED SEARCH =====================

class SearchDebouncer:
    """
    Holds back search input until typing settles.
    A new value always cancels the still-pending timer.
    """

    def __init__(
        self,
        delay_ms: int = settings.SEARCH_DEBOUNCE_MS,
        on_settle: Optional[Callable[[str], None]] = None,
    ):
        self.delay = delay_ms / 1000
        self.on_settle = on_settle
        self.settled = ""
        self._pending: Optional[str] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    def push(self, value: str):
        if self._handle is not None:
            self._handle.cancel()
        self._pending = value
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._settle)

    def flush(self):
        if self._handle is not None:
            self._handle.cancel()
            self._settle()

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def _settle(self):
        self._handle = None
        self.settled = self._pending or ""
        self._pending = None
        if self.on_settle:
            self.on_settle(self.settled)


class CatalogSession:
    """
    Storefront browsing session: typed search is debounced, every other
    filter applies immediately. results() always reflects the settled query.
    """

    def __init__(
        self,
        source: Callable[[], Sequence[Product]],
        public: bool = True,
        delay_ms: int = settings.SEARCH_DEBOUNCE_MS,
    ):
        self.source = source
        self.public = public
        self.query = CatalogQuery()
        self.raw_search = ""
        self.debouncer = SearchDebouncer(delay_ms, on_settle=self._apply_search)

    def _apply_search(self, text: str):
        self.query = self.query.model_copy(update={"search": text})
        logger.debug(f"Catalog search settled: '{text}'")

    def type_search(self, text: str):
        self.raw_search = text
        self.debouncer.push(text)

    def set_filters(self, **filters):
        if "search" in filters:
            raise ValueError("search goes through type_search()")
        self.query = self.query.model_copy(update=filters)

    def clear(self):
        self.debouncer.cancel()
        self.raw_search = ""
        self.query = CatalogQuery()

    def results(self) -> List[Product]:
        return view(self.source(), self.query, public=self.public)

    def facets(self) -> dict:
        products = self.source()
        return {
            "categories": facet_values(products, "category"),
            "collections": facet_values(products, "collection"),
        }
