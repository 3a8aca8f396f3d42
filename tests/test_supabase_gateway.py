import asyncio
import json

import httpx
import pytest

from vitrina.core.exceptions import GatewayError
from vitrina.core.state import AppState
from vitrina.integrations import SupabaseGateway
from vitrina.schemas import Product, ProductStatus
from vitrina.services import NotificationChannel, RefreshCoordinator

REST_URL = "https://demo.supabase.co/rest/v1"

PRODUCT_ROW = {
    "id": "p1",
    "name": "Anillo Luna",
    "price": 25000,
    "images": ["luna.jpg"],
    "status": "Disponible",
    "variants": [{"id": "v1", "name": "Oro", "stock": 2, "unit_cost": 9000, "isPrimary": True}],
    "stock": None,
    "unit_cost": None,
    "whatsapp_clicks": None,
    "created_at": "2024-03-01T10:00:00+00:00",
}


def gateway_with(handler):
    return SupabaseGateway(REST_URL, "anon-key", transport=httpx.MockTransport(handler))


def test_list_products_sends_auth_and_order():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["apikey"] = request.headers["apikey"]
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json=[PRODUCT_ROW])

    products = asyncio.run(gateway_with(handler).list_products())

    assert seen["path"] == "/rest/v1/products"
    assert seen["params"] == {"select": "*", "order": "created_at.desc"}
    assert seen["apikey"] == "anon-key"
    assert seen["auth"] == "Bearer anon-key"
    product = products[0]
    assert product.status == ProductStatus.IN_STOCK
    assert product.whatsapp_clicks == 0
    assert product.primary_variant.id == "v1"


def test_create_product_asks_for_representation():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["prefer"] = request.headers.get("prefer")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json=[PRODUCT_ROW])

    product = asyncio.run(gateway_with(handler).create_product({"name": "Anillo Luna"}))

    assert seen["method"] == "POST"
    assert seen["prefer"] == "return=representation"
    assert seen["body"] == {"name": "Anillo Luna"}
    assert product.id == "p1"


def test_bulk_status_uses_in_filter():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["id"] = request.url.params["id"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    asyncio.run(gateway_with(handler).update_status_bulk(["a", "b"], ProductStatus.SOLD_OUT))

    assert seen == {"method": "PATCH", "id": "in.(a,b)", "body": {"status": "Agotado"}}


def test_empty_bulk_calls_skip_the_network():

    def handler(request: httpx.Request):
        raise AssertionError("no request expected")

    gateway = gateway_with(handler)
    asyncio.run(gateway.delete_products([]))
    asyncio.run(gateway.delete_assets([]))


def test_increment_clicks_calls_rpc():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    asyncio.run(gateway_with(handler).increment_clicks("p1"))

    assert seen["path"] == "/rest/v1/rpc/increment_whatsapp_clicks"
    assert seen["body"] == {"product_id": "p1"}


def test_http_error_status_becomes_gateway_error():

    def handler(request: httpx.Request):
        return httpx.Response(500, json={"message": "boom"})

    with pytest.raises(GatewayError) as exc:
        asyncio.run(gateway_with(handler).list_assets())
    assert exc.value.status_code == 500
    assert exc.value.operation == "list_assets"


def test_transport_failure_becomes_gateway_error():

    def handler(request: httpx.Request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(GatewayError):
        asyncio.run(gateway_with(handler).get_settings())


def test_update_with_no_rows_is_not_found():

    def handler(request: httpx.Request):
        return httpx.Response(200, json=[])

    with pytest.raises(GatewayError) as exc:
        asyncio.run(gateway_with(handler).update_asset("a1", {"stock": 3}))
    assert exc.value.status_code == 404


def test_settings_row_lookup():

    def handler(request: httpx.Request):
        assert request.url.params["id"] == "eq.current"
        return httpx.Response(200, json=[{"id": "current", "brand_name": "Luz"}])

    settings = asyncio.run(gateway_with(handler).get_settings())
    assert settings["brand_name"] == "Luz"


def test_malformed_row_becomes_gateway_error():
    broken = {k: v for k, v in PRODUCT_ROW.items() if k != "name"}

    def handler(request: httpx.Request):
        return httpx.Response(200, json=[PRODUCT_ROW, broken])

    with pytest.raises(GatewayError) as exc:
        asyncio.run(gateway_with(handler).list_products())
    assert exc.value.operation == "list_products"


def test_non_json_body_becomes_gateway_error():

    def handler(request: httpx.Request):
        return httpx.Response(200, content=b"<html>maintenance</html>")

    with pytest.raises(GatewayError):
        asyncio.run(gateway_with(handler).list_assets())


def test_refresh_with_malformed_rows_falls_back_and_reports():
    broken = {k: v for k, v in PRODUCT_ROW.items() if k != "name"}

    def handler(request: httpx.Request):
        return httpx.Response(200, json=[broken])

    state = AppState(products=[Product.model_validate(PRODUCT_ROW)])
    channel = NotificationChannel()
    coordinator = RefreshCoordinator(state, gateway_with(handler), channel)

    assert asyncio.run(coordinator.refresh("product")) is False
    assert state.products == []
    assert [n.message for n in channel.history] == ["Error al cargar los productos"]


def test_create_products_bulk_posts_one_array():
    seen = {}

    def handler(request: httpx.Request):
        seen["body"] = json.loads(request.content)
        seen["prefer"] = request.headers.get("prefer")
        return httpx.Response(201, json=[PRODUCT_ROW, {**PRODUCT_ROW, "id": "p2"}])

    created = asyncio.run(gateway_with(handler).create_products_bulk([{"name": "a"}, {"name": "b"}]))

    assert seen["body"] == [{"name": "a"}, {"name": "b"}]
    assert seen["prefer"] == "return=representation"
    assert [p.id for p in created] == ["p1", "p2"]
