import asyncio

import pytest

from vitrina.schemas import ALL, AdminSort, CatalogQuery, ProductStatus, SortOption
from vitrina.services import catalog_service
from vitrina.services.catalog_service import CatalogSession, SearchDebouncer
from conftest import make_asset, make_product, make_variant


@pytest.fixture
def shelf():
    return [
        make_product(name="Anillo Luna", price=25000, category="Anillos", collection="Noche"),
        make_product(name="Collar Sol", price=90000, category="Collares", description="Plata con luna grabada"),
        make_product(name="Aros Estrella", price=25000, category="Aros", status=ProductStatus.MADE_TO_ORDER),
        make_product(name="Pulsera Agotada", price=15000, category="Pulseras", status=ProductStatus.SOLD_OUT),
        make_product(name="Anillo Premium", price=450000, category="Anillos", collection="Noche"),
    ]


def test_public_view_never_shows_sold_out(shelf):
    query = CatalogQuery(status=ProductStatus.SOLD_OUT.value)
    assert catalog_service.view(shelf, query) == []

    names = [p.name for p in catalog_service.view(shelf, CatalogQuery())]
    assert "Pulsera Agotada" not in names
    assert len(names) == 4


def test_admin_view_keeps_sold_out(shelf):
    result = catalog_service.view(shelf, CatalogQuery(status=ProductStatus.SOLD_OUT.value), public=False)
    assert [p.name for p in result] == ["Pulsera Agotada"]


def test_search_matches_name_or_description(shelf):
    result = catalog_service.view(shelf, CatalogQuery(search="LUNA"))
    assert {p.name for p in result} == {"Anillo Luna", "Collar Sol"}


def test_max_price_sentinel_means_unbounded(shelf):
    result = catalog_service.view(shelf, CatalogQuery())
    assert any(p.price == 450000 for p in result)

    capped = catalog_service.view(shelf, CatalogQuery(max_price=100000))
    assert all(p.price <= 100000 for p in capped)
    assert len(capped) == 3

    floor = catalog_service.view(shelf, CatalogQuery(min_price=50000))
    assert {p.name for p in floor} == {"Collar Sol", "Anillo Premium"}


def test_category_and_collection_filters(shelf):
    result = catalog_service.view(shelf, CatalogQuery(category="Anillos", collection="Noche"))
    assert {p.name for p in result} == {"Anillo Luna", "Anillo Premium"}
    assert catalog_service.view(shelf, CatalogQuery(category="Broches")) == []


def test_newest_first_by_default(shelf):
    result = catalog_service.view(shelf, CatalogQuery())
    stamps = [p.created_at for p in result]
    assert stamps == sorted(stamps, reverse=True)


def test_price_sort_is_stable_for_ties(shelf):
    asc = catalog_service.sort_products(shelf, SortOption.PRICE_ASC)
    tied = [p.name for p in asc if p.price == 25000]
    assert tied == ["Anillo Luna", "Aros Estrella"]

    desc = catalog_service.sort_products(shelf, SortOption.PRICE_DESC)
    assert desc[0].price == 450000
    assert [p.name for p in desc if p.price == 25000] == ["Anillo Luna", "Aros Estrella"]


def test_facets_and_active_filter_count(shelf):
    assert catalog_service.facet_values(shelf, "collection") == [ALL, "Noche"]
    assert catalog_service.facet_values(shelf, "category")[:3] == [ALL, "Anillos", "Collares"]

    assert catalog_service.active_filter_count(CatalogQuery()) == 0
    query = CatalogQuery(category="Anillos", max_price=100000, sort=SortOption.PRICE_ASC)
    assert catalog_service.active_filter_count(query) == 3


def test_display_price_in_usd():
    assert catalog_service.display_price(95000, "USD", 950) == 100
    assert catalog_service.display_price(95000, "CLP", 950) == 95000
    assert catalog_service.display_price(95000, "USD", 0) == 0


def test_admin_sort_by_stock_uses_variants():
    a = make_product(name="b", stock=9)
    b = make_product(name="a", variants=[make_variant(stock=1), make_variant(stock=1)])
    c = make_product(name="C", stock=5)
    assert [p.name for p in catalog_service.admin_sort([a, b, c], AdminSort.STOCK_ASC)] == ["a", "C", "b"]
    assert [p.name for p in catalog_service.admin_sort([a, b, c], AdminSort.NAME_ASC)] == ["a", "b", "C"]
    assert [p.name for p in catalog_service.admin_sort([a, b, c], AdminSort.NAME_DESC)] == ["C", "b", "a"]


def test_admin_view_searches_asset_category():
    assets = [
        make_asset(name="Cadena 45cm", category="Cadenas"),
        make_asset(name="Caja regalo", category="Empaque"),
        make_asset(name="Bolsa", category="Empaque"),
    ]
    result = catalog_service.admin_view(assets, search="empaque")
    assert [a.name for a in result] == ["Bolsa", "Caja regalo"]
    assert len(catalog_service.admin_view(assets, category="Cadenas")) == 1
    # collection does not exist on assets; input order is kept
    assert catalog_service.admin_sort(assets, AdminSort.COLLECTION) == assets


def test_debouncer_only_settles_last_value():
    settled = []

    async def scenario():
        debouncer = SearchDebouncer(delay_ms=20, on_settle=settled.append)
        debouncer.push("a")
        debouncer.push("an")
        debouncer.push("ani")
        assert debouncer.is_pending
        await asyncio.sleep(0.08)
        assert not debouncer.is_pending
        return debouncer.settled

    assert asyncio.run(scenario()) == "ani"
    assert settled == ["ani"]


def test_debouncer_cancel_drops_pending_value():
    settled = []

    async def scenario():
        debouncer = SearchDebouncer(delay_ms=20, on_settle=settled.append)
        debouncer.push("collar")
        debouncer.cancel()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert settled == []


def test_catalog_session_debounces_search_but_not_filters(shelf):

    async def scenario():
        session = CatalogSession(lambda: shelf, delay_ms=20)
        session.set_filters(category="Anillos")
        assert len(session.results()) == 2

        session.type_search("lun")
        # search not applied until typing settles
        assert len(session.results()) == 2
        await asyncio.sleep(0.06)
        return [p.name for p in session.results()]

    assert asyncio.run(scenario()) == ["Anillo Luna"]


def test_catalog_session_rejects_direct_search(shelf):
    session = CatalogSession(lambda: shelf)
    with pytest.raises(ValueError):
        session.set_filters(search="x")
    session.clear()
    assert session.query == CatalogQuery()
