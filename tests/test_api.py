import asyncio

import pytest
from fastapi.testclient import TestClient

from main import app
from vitrina.api.deps import get_context
from vitrina.context import build_context
from vitrina.integrations import InMemoryGateway
from vitrina.schemas import ProductStatus
from conftest import make_asset, make_product, make_variant


@pytest.fixture
def ctx():
    gateway = InMemoryGateway(
        products=[
            make_product(id="luna", name="Anillo Luna", price=95000, category="Anillos", stock=4, unit_cost=30000),
            make_product(id="sol", name="Collar Sol", price=40000, category="Collares", stock=1, unit_cost=10000),
            make_product(id="out", name="Pulsera", price=20000, status=ProductStatus.SOLD_OUT),
        ],
        assets=[make_asset(id="caja", name="Caja regalo", stock=3, min_stock=5, unit_cost=500)],
        settings={"id": "current", "usd_exchange_rate": 950},
    )
    context = build_context(gateway=gateway)
    asyncio.run(context.coordinator.refresh_all())
    return context


@pytest.fixture
def client(ctx):
    app.dependency_overrides[get_context] = lambda: ctx
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_public_catalog_hides_sold_out(client):
    data = client.get("/api/catalog").json()
    assert data["total"] == 2
    assert {p["id"] for p in data["products"]} == {"luna", "sol"}
    assert client.get("/api/catalog/out").status_code == 404


def test_catalog_filters_and_usd(client):
    data = client.get("/api/catalog", params={"category": "Anillos", "currency": "USD"}).json()
    assert [p["id"] for p in data["products"]] == ["luna"]
    assert data["products"][0]["display_price"] == 100
    assert data["active_filters"] == 1

    data = client.get("/api/catalog", params={"sort": "price_asc"}).json()
    assert [p["id"] for p in data["products"]] == ["sol", "luna"]


def test_catalog_facets(client):
    data = client.get("/api/catalog/facets").json()
    assert data["categories"][0] == "All"
    assert "Agotado" not in data["statuses"]


def test_pricing_calculate(client):
    body = {
        "mode": "target",
        "fixed_items": [{"id": "material", "value": 40000}, {"id": "labor", "value": 25000}],
        "custom_items": [{"id": "c1", "value": -10}],
        "target_price": 130000,
    }
    data = client.post("/api/pricing/calculate", json=body).json()
    assert data["total_cost"] == 65000
    assert data["margin_percent"] == pytest.approx(50.0)
    assert data["roi"] == pytest.approx(100.0)

    bad = client.post("/api/pricing/calculate", json={"mode": "markup", "markup_multiplier": 0})
    assert bad.status_code == 400


def test_pricing_from_product_and_ranking(client):
    data = client.get("/api/pricing/products/luna").json()
    assert data["total_cost"] == 30000
    assert data["price"] == 95000

    ranking = client.get("/api/pricing/roi-ranking", params={"limit": 1}).json()
    assert [r["id"] for r in ranking] == ["sol"]


def test_inventory_summary(client):
    data = client.get("/api/inventory/summary").json()
    assert data["products"]["total_value"] == 130000
    assert data["products"]["low_stock_count"] == 2
    assert data["assets"]["low_stock_count"] == 1


def test_admin_lists_include_sold_out(client):
    data = client.get("/api/admin/products", params={"sort": "stock_asc"}).json()
    assert [p["id"] for p in data["products"]] == ["out", "sol", "luna"]

    assets = client.get("/api/admin/assets", params={"search": "caja"}).json()
    assert assets["assets"][0]["is_low"] is True


def test_create_product_validation_error(client, ctx):
    response = client.post("/api/products", json={"name": "", "price": 1000})
    assert response.status_code == 422
    body = response.json()
    assert set(body["errors"]) == {"name", "images"}
    assert len(ctx.state.products) == 3


def test_create_product(client, ctx):
    variant = make_variant(stock=2, unit_cost=15000).model_dump(by_alias=True)
    response = client.post(
        "/api/products",
        json={"name": "Aros Estrella", "price": 45000, "images": ["e.jpg"], "variants": [variant]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["stock_total"] == 2
    assert data["unit_cost"] == 15000
    assert ctx.state.products[0].name == "Aros Estrella"


def test_gateway_failure_maps_to_502(client, ctx):
    ctx.gateway.fail_operations.add("update_product")
    response = client.patch("/api/products/luna", json={"price": 1})
    assert response.status_code == 502
    assert ctx.state.find_product("luna").price == 95000


def test_bulk_status_and_delete(client, ctx):
    response = client.post("/api/products/bulk-status", json={"ids": ["luna"], "status": "Por Encargo"})
    assert response.json() == {"updated": 1}
    assert ctx.state.find_product("luna").status == ProductStatus.MADE_TO_ORDER

    response = client.post("/api/products/bulk-delete", json={"ids": ["sol"]})
    assert response.json() == {"deleted": 1}
    assert ctx.state.find_product("sol") is None


def test_duplicate_and_interest(client, ctx):
    data = client.post("/api/products/luna/duplicate").json()
    assert data["name"] == "Anillo Luna (Copia)"

    assert client.post("/api/catalog/sol/interest").json() == {"recorded": True}
    assert ctx.gateway.products["sol"].whatsapp_clicks == 1


def test_asset_endpoints(client, ctx):
    data = client.post("/api/assets", json={"name": "Bolsa tela", "stock": 20}).json()
    assert data["min_stock"] == 5
    assert data["category"] == "Insumos"

    result = client.post("/api/assets/bulk-update", json={"ids": ["caja"], "fields": {"location": "Bodega"}}).json()
    assert result == {"succeeded": ["caja"], "failed": {}}


def test_webhook_publishes_change(client, ctx):
    response = client.post("/api/webhooks/changes", json={"type": "UPDATE", "table": "products"})
    assert response.json() == {"entity": "product", "subscribers": 1}

    assert client.post("/api/webhooks/changes", json={"table": "orders"}).status_code == 400


def test_refresh_endpoint(client):
    assert client.post("/api/refresh/asset").json() == {"entity": "asset", "ok": True}
    assert client.post("/api/refresh/orders").status_code == 404


def test_patch_variants_rewrites_stock_cache(client, ctx):
    variants = [
        make_variant(stock=3, unit_cost=20000).model_dump(by_alias=True),
        make_variant(stock=0, unit_cost=25000).model_dump(by_alias=True),
    ]
    data = client.patch("/api/products/luna", json={"variants": variants}).json()
    assert data["stock"] == 3
    assert data["unit_cost"] == 20000
    assert data["stock_total"] == 3


def test_patch_with_non_numeric_input_is_422(client, ctx):
    response = client.patch("/api/products/luna", json={"price": "abc", "stock": "lots"})
    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"price", "stock"}
    assert "update_product" not in ctx.gateway.calls


def test_import_preview_and_import(client, ctx):
    text = "Anillo Sol, 30000, Anillos, 2\nx, 10"
    preview = client.post("/api/products/import/preview", json={"text": text}).json()
    assert preview["valid"] == 1
    assert preview["total"] == 2
    assert preview["rows"][1]["error"] == "Nombre muy corto"

    data = client.post("/api/products/import", json={"text": text}).json()
    assert [p["name"] for p in data["created"]] == ["Anillo Sol"]
    assert [r["line"] for r in data["skipped"]] == [2]
    assert ctx.state.products[0].name == "Anillo Sol"

    assert client.post("/api/products/import", json={"text": "x, 0"}).status_code == 422
