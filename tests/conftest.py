from datetime import datetime, timedelta, timezone
import itertools

import pytest

from vitrina.schemas import InternalAsset, Product, ProductStatus, ProductVariant

_ids = itertools.count(1)
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_product(**fields) -> Product:
    n = next(_ids)
    data = {
        "id": f"p{n}",
        "name": f"Anillo {n}",
        "price": 10000,
        "images": [f"https://img/{n}.jpg"],
        "status": ProductStatus.IN_STOCK,
        "created_at": BASE_TIME + timedelta(days=n),
    }
    data.update(fields)
    return Product(**data)


def make_variant(**fields) -> ProductVariant:
    n = next(_ids)
    data = {"id": f"v{n}", "name": f"Variante {n}"}
    data.update(fields)
    return ProductVariant(**data)


def make_asset(**fields) -> InternalAsset:
    n = next(_ids)
    data = {"id": f"a{n}", "name": f"Insumo {n}", "category": "Insumos", "stock": 10, "min_stock": 5, "unit_cost": 100}
    data.update(fields)
    return InternalAsset(**data)


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def variant_factory():
    return make_variant


@pytest.fixture
def asset_factory():
    return make_asset
