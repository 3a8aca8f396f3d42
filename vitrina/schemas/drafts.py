"""
Form Drafts - explicit per-entity input types with a single validate()
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from vitrina.core.config import settings
from vitrina.core.exceptions import ValidationError
from .asset import InternalAsset
from .product import Product, ProductStatus, ProductVariant


def _clamp(value: Optional[float]) -> int:
    return max(0, int(value or 0))


def _clean_name(name: str) -> str:
    return name.strip()[: settings.NAME_MAX_LENGTH]


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip()[: settings.DESCRIPTION_MAX_LENGTH] or None


def _variant_payload(variant: ProductVariant) -> Dict[str, Any]:
    data = variant.model_dump(by_alias=True, mode="json")
    data["stock"] = _clamp(variant.stock)
    data["unit_cost"] = _clamp(variant.unit_cost)
    if variant.price is not None:
        data["price"] = _clamp(variant.price)
    return data


@dataclass
class ProductDraft:
    """Editable product form state; caches are synced by the stock service on save"""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = None
    images: List[str] = field(default_factory=list)
    status: ProductStatus = ProductStatus.IN_STOCK
    category: Optional[str] = None
    collection: Optional[str] = None
    badge: Optional[str] = None
    variants: List[ProductVariant] = field(default_factory=list)
    stock: Optional[int] = None
    unit_cost: Optional[int] = None
    location: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        return cls(
            name=product.name,
            description=product.description,
            price=product.price,
            images=list(product.images),
            status=product.status,
            category=product.category,
            collection=product.collection,
            badge=product.badge,
            variants=[v.model_copy(deep=True) for v in product.variants],
            stock=product.stock,
            unit_cost=product.unit_cost,
            location=product.location,
        )

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.name or not self.name.strip():
            errors["name"] = "El nombre es obligatorio"
        if self.price is None or self.price < 0:
            errors["price"] = "Se requiere un precio válido"
        if not self.images:
            errors["images"] = "Se requiere al menos una imagen"
        return errors

    def to_payload(self) -> Dict[str, Any]:
        """Sanitized write payload; raises ValidationError"""
        errors = self.validate()
        if errors:
            raise ValidationError(errors)

        return {
            "name": _clean_name(self.name),
            "description": _clean_description(self.description),
            "price": _clamp(self.price),
            "images": list(self.images),
            "status": ProductStatus(self.status).value,
            "category": self.category or None,
            "collection": self.collection or None,
            "badge": self.badge or None,
            "variants": [_variant_payload(v) for v in self.variants],
            "stock": _clamp(self.stock),
            "unit_cost": _clamp(self.unit_cost),
            "location": self.location or None,
        }


def _to_int(value: Any) -> Optional[int]:
    """Whole-number reading of form input; None when it is not a number"""
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


NOT_A_NUMBER = "Debe ser un número"


def sanitize_product_update(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and sanitize a partial product update.
    Only fields present in the input are checked and forwarded.
    """
    errors: Dict[str, str] = {}
    clean: Dict[str, Any] = {}

    if "name" in fields:
        name = fields["name"]
        if not isinstance(name, str) or not name.strip():
            errors["name"] = "El nombre es obligatorio"
        else:
            clean["name"] = _clean_name(name)
    if "description" in fields:
        description = fields["description"]
        if description is not None and not isinstance(description, str):
            errors["description"] = "Descripción inválida"
        else:
            clean["description"] = _clean_description(description)
    if "price" in fields:
        price = _to_int(fields["price"])
        if price is None or price < 0:
            errors["price"] = "Se requiere un precio válido"
        else:
            clean["price"] = price
    if "images" in fields:
        images = fields["images"]
        if not images or not isinstance(images, list) or not all(isinstance(i, str) for i in images):
            errors["images"] = "Se requiere al menos una imagen"
        else:
            clean["images"] = list(images)
    if "status" in fields:
        try:
            clean["status"] = ProductStatus(fields["status"]).value
        except ValueError:
            errors["status"] = "Estado desconocido"
    for key in ("category", "collection", "badge", "location"):
        if key in fields:
            clean[key] = fields[key] or None
    for key in ("stock", "unit_cost"):
        if key in fields:
            if fields[key] is None:
                clean[key] = 0
                continue
            number = _to_int(fields[key])
            if number is None:
                errors[key] = NOT_A_NUMBER
            else:
                clean[key] = max(0, number)
    if "variants" in fields:
        try:
            variants = [
                v if isinstance(v, ProductVariant) else ProductVariant.model_validate(v)
                for v in fields["variants"] or []
            ]
        except (PydanticValidationError, TypeError):
            errors["variants"] = "Variantes inválidas"
        else:
            clean["variants"] = [_variant_payload(v) for v in variants]

    if errors:
        raise ValidationError(errors)
    return clean


# Fields a bulk edit may touch on internal assets
ASSET_BULK_FIELDS = ("category", "location", "min_stock", "unit_cost")


def sanitize_asset_update(fields: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}
    clean: Dict[str, Any] = {}
    for key, value in fields.items():
        if key not in ASSET_BULK_FIELDS:
            errors[key] = "Campo no editable en lote"
        elif key in ("min_stock", "unit_cost"):
            number = 0 if value is None else _to_int(value)
            if number is None:
                errors[key] = NOT_A_NUMBER
            else:
                clean[key] = max(0, number)
        else:
            clean[key] = value
    if errors:
        raise ValidationError(errors)
    return clean


@dataclass
class AssetDraft:
    name: Optional[str] = None
    category: str = "Insumos"
    stock: Optional[int] = 0
    min_stock: Optional[int] = settings.ASSET_MIN_STOCK_DEFAULT
    unit_cost: Optional[int] = 0
    location: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_asset(cls, asset: InternalAsset) -> "AssetDraft":
        return cls(
            name=asset.name,
            category=asset.category,
            stock=asset.stock,
            min_stock=asset.min_stock,
            unit_cost=asset.unit_cost,
            location=asset.location,
            description=asset.description,
            images=list(asset.images),
        )

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.name or not self.name.strip():
            errors["name"] = "El nombre es obligatorio"
        return errors

    def to_payload(self) -> Dict[str, Any]:
        errors = self.validate()
        if errors:
            raise ValidationError(errors)

        return {
            "name": _clean_name(self.name),
            "category": (self.category or "").strip(),
            "stock": _clamp(self.stock),
            "min_stock": _clamp(self.min_stock),
            "unit_cost": _clamp(self.unit_cost),
            "location": self.location or None,
            "description": _clean_description(self.description),
            "images": list(self.images),
        }


# ===================== BULK IMPORT =====================

IMPORT_DEFAULT_CATEGORY = "Anillos"
IMPORT_MIN_NAME_LENGTH = 3


@dataclass
class ImportRow:
    """One `name, price, category, stock` line of a bulk product import"""
    line: int
    name: str
    price: int
    category: str
    stock: int
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def to_payload(self) -> Dict[str, Any]:
        # Imported rows are placeholders: images and variants are added later
        return {
            "name": _clean_name(self.name),
            "description": None,
            "price": _clamp(self.price),
            "images": [],
            "status": ProductStatus.IN_STOCK.value,
            "category": self.category or None,
            "collection": None,
            "badge": None,
            "variants": [],
            "stock": _clamp(self.stock),
        }


def parse_import_lines(text: str) -> List[ImportRow]:
    """Blank lines are skipped; unparsable numbers read as 0"""
    rows = []
    for number, raw in enumerate((text or "").splitlines(), start=1):
        if not raw.strip():
            continue
        parts = [p.strip() for p in raw.split(",")]
        name = parts[0]
        price = _to_int(parts[1]) if len(parts) > 1 else None
        stock = _to_int(parts[3]) if len(parts) > 3 else None
        category = parts[2] if len(parts) > 2 and parts[2] else IMPORT_DEFAULT_CATEGORY

        row = ImportRow(line=number, name=name, price=price or 0, category=category, stock=stock or 0)
        if len(name) < IMPORT_MIN_NAME_LENGTH:
            row.error = "Nombre muy corto"
        elif row.price <= 0:
            row.error = "Precio inválido"
        rows.append(row)
    return rows
