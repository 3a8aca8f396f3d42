"""
Pricing Schemas - calculator session types (never persisted)
"""
import enum
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field

from vitrina.core.config import settings
from .product import Product


class PricingMode(str, enum.Enum):
    MARKUP = "markup"
    TARGET = "target"


@dataclass
class CostLineItem:
    id: str
    label: str
    value: float = 0


@dataclass(frozen=True)
class PricingResult:
    """
    Derived profitability read-out.
    price is the suggested price in markup mode, the target price in target mode.
    implied_markup is only set in target mode.
    """
    total_cost: float
    price: float
    gross_profit: float
    margin_percent: float
    roi: float
    implied_markup: Optional[float] = None


@dataclass(frozen=True)
class RoiEntry:
    product: Product
    profit: int
    roi: float
    margin: float


class CostItemInput(BaseModel):
    id: str
    label: str = ""
    value: float = 0


class PricingRequest(BaseModel):
    mode: PricingMode = PricingMode.TARGET
    fixed_items: List[CostItemInput] = Field(default_factory=list)
    custom_items: List[CostItemInput] = Field(default_factory=list)
    markup_multiplier: float = settings.DEFAULT_MARKUP
    target_price: Optional[float] = None
