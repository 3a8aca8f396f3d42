"""
Product Schemas
"""
import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ProductStatus(str, enum.Enum):
    """Persisted status labels as stored by the shop"""
    IN_STOCK = "Disponible"
    MADE_TO_ORDER = "Por Encargo"
    SOLD_OUT = "Agotado"


class ProductVariant(BaseModel):
    id: str
    name: str = ""
    price: Optional[int] = None  # overrides product price when present
    stock: int = 0
    unit_cost: int = 0
    images: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    is_primary: bool = Field(False, alias="isPrimary")

    @field_validator("stock", "unit_cost", mode="before")
    @classmethod
    def _none_as_zero(cls, value):
        return 0 if value is None else value

    @field_validator("images", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    class Config:
        populate_by_name = True
        from_attributes = True


class Product(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: int = 0
    images: List[str] = Field(default_factory=list)
    status: ProductStatus = ProductStatus.IN_STOCK
    category: Optional[str] = None
    collection: Optional[str] = None
    badge: Optional[str] = None
    stock: Optional[int] = None
    unit_cost: Optional[int] = None
    variants: List[ProductVariant] = Field(default_factory=list)
    location: Optional[str] = None
    whatsapp_clicks: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("images", "variants", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("whatsapp_clicks", mode="before")
    @classmethod
    def _none_as_zero(cls, value):
        return 0 if value is None else value

    @property
    def cover_image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    @property
    def primary_variant(self) -> Optional[ProductVariant]:
        for variant in self.variants:
            if variant.is_primary:
                return variant
        return None

    class Config:
        populate_by_name = True
        from_attributes = True


class ProductWrite(BaseModel):
    """Full product form as submitted by the back office"""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[int] = None
    images: List[str] = Field(default_factory=list)
    status: ProductStatus = ProductStatus.IN_STOCK
    category: Optional[str] = None
    collection: Optional[str] = None
    badge: Optional[str] = None
    variants: List[ProductVariant] = Field(default_factory=list)
    stock: Optional[int] = None
    unit_cost: Optional[int] = None
    location: Optional[str] = None
