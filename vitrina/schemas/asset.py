"""
Internal Asset Schemas (non-sellable supplies and consumables)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class InternalAsset(BaseModel):
    id: str
    name: str
    category: str = ""
    stock: int = 0
    min_stock: int = 0  # reorder threshold
    unit_cost: int = 0
    location: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("stock", "min_stock", "unit_cost", mode="before")
    @classmethod
    def _none_as_zero(cls, value):
        return 0 if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _none_as_blank(cls, value):
        return "" if value is None else value

    @field_validator("images", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    class Config:
        from_attributes = True


class AssetWrite(BaseModel):
    name: Optional[str] = None
    category: str = "Insumos"
    stock: Optional[int] = 0
    min_stock: Optional[int] = None
    unit_cost: Optional[int] = 0
    location: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
