"""
Pricing Service - price / profit / margin / ROI under markup or target mode
"""
from typing import Iterable, List, Optional

from vitrina.core.config import settings
from vitrina.schemas import PricingMode, PricingResult, Product, RoiEntry
from .cost_ledger import CostLedger, clamp_cost
from .notifications import NotificationChannel

MARKUP_PRESETS = (1.5, 2, 2.5, 3, 4, 5)
MARKUP_RANGE = (1.0, 10.0)


def _margin(profit: float, price: float) -> float:
    return profit / price * 100 if price > 0 else 0.0


def _roi(profit: float, cost: float) -> float:
    return profit / cost * 100 if cost > 0 else 0.0


def price_with_markup(total_cost: float, markup_multiplier: float) -> PricingResult:
    if markup_multiplier <= 0:
        raise ValueError("markup_multiplier must be positive")

    suggested_price = round(total_cost * markup_multiplier)
    gross_profit = suggested_price - total_cost
    return PricingResult(
        total_cost=total_cost,
        price=suggested_price,
        gross_profit=gross_profit,
        margin_percent=_margin(gross_profit, suggested_price),
        roi=_roi(gross_profit, total_cost),
    )


def price_at_target(total_cost: float, target_price: Optional[float]) -> PricingResult:
    price = target_price or 0
    gross_profit = price - total_cost
    return PricingResult(
        total_cost=total_cost,
        price=price,
        gross_profit=gross_profit,
        margin_percent=_margin(gross_profit, price),
        roi=_roi(gross_profit, total_cost),
        implied_markup=price / total_cost if total_cost > 0 else 0.0,
    )


def calculate(
    total_cost: float,
    mode: PricingMode,
    markup_multiplier: float = settings.DEFAULT_MARKUP,
    target_price: Optional[float] = None,
) -> PricingResult:
    if PricingMode(mode) == PricingMode.MARKUP:
        return price_with_markup(total_cost, markup_multiplier)
    return price_at_target(total_cost, target_price)


def rank_by_roi(products: Iterable[Product]) -> List[RoiEntry]:
    """Portfolio ranking; products without a positive unit cost are not scored"""
    ranking = []
    for p in products:
        if not p.unit_cost or p.unit_cost <= 0:
            continue
        profit = p.price - p.unit_cost
        ranking.append(RoiEntry(
            product=p,
            profit=profit,
            roi=profit / p.unit_cost * 100,
            margin=_margin(profit, p.price),
        ))
    ranking.sort(key=lambda entry: entry.roi, reverse=True)
    return ranking


def search_products(products: Iterable[Product], term: str, limit: int = 5) -> List[Product]:
    """Quick name lookup feeding the calculator's product picker"""
    term = (term or "").lower()
    if not term:
        return []
    return [p for p in products if term in p.name.lower()][:limit]


class PricingCalculator:
    """
    One calculator session: a cost ledger, the selected mode and its input.
    Nothing here is persisted.
    """

    def __init__(self, notifications: Optional[NotificationChannel] = None):
        self.notifications = notifications
        self.ledger = CostLedger()
        self.mode = PricingMode.TARGET
        self.markup_multiplier = settings.DEFAULT_MARKUP
        self.target_price: Optional[float] = None
        self.selected_product: Optional[Product] = None

    @property
    def result(self) -> PricingResult:
        return calculate(self.ledger.total, self.mode, self.markup_multiplier, self.target_price)

    def use_markup(self, multiplier: Optional[float] = None):
        if multiplier is not None:
            if multiplier <= 0:
                raise ValueError("markup_multiplier must be positive")
            self.markup_multiplier = multiplier
        self.mode = PricingMode.MARKUP

    def use_target(self, target_price: Optional[float] = None):
        if target_price is not None:
            self.target_price = clamp_cost(target_price)
        self.mode = PricingMode.TARGET

    def load_product(self, product: Product):
        """Seed the session from inventory: material = unit cost, target = current price"""
        self.selected_product = product
        self.ledger.load_unit_cost(product.unit_cost)
        self.target_price = product.price
        self.mode = PricingMode.TARGET
        if self.notifications:
            self.notifications.info(f"Datos cargados de: {product.name}")

    def reset(self):
        self.ledger.reset()
        self.markup_multiplier = settings.DEFAULT_MARKUP
        self.target_price = None
        self.selected_product = None
        if self.notifications:
            self.notifications.success("Calculadora reiniciada")
