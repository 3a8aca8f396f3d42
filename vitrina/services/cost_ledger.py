"""
Cost Ledger - normalizes itemized costs into a single total
"""
import uuid
from typing import Iterable, List, Optional

from vitrina.schemas import CostLineItem

FIXED_COST_ITEMS = (
    ("material", "Costo Base (Producción/Compra)"),
    ("gems", "Insumos / Piedras"),
    ("labor", "Mano de Obra"),
    ("packaging", "Empaque y Presentación"),
    ("shipping", "Envío / Logística"),
)

CUSTOM_COST_LABEL = "Costo Adicional"


def clamp_cost(value: Optional[float]) -> float:
    """Negative or missing input is invalid and becomes 0"""
    if value is None or value < 0:
        return 0
    return value


def total_cost(fixed_items: Iterable[CostLineItem], custom_items: Iterable[CostLineItem]) -> float:
    total = 0
    for item in fixed_items:
        total += item.value
    for item in custom_items:
        total += item.value
    return total


class CostLedger:
    """Calculator-session cost lines: a fixed pool plus user-added items"""

    def __init__(self):
        self.fixed_items: List[CostLineItem] = [
            CostLineItem(id=item_id, label=label) for item_id, label in FIXED_COST_ITEMS
        ]
        self.custom_items: List[CostLineItem] = []

    @property
    def total(self) -> float:
        return total_cost(self.fixed_items, self.custom_items)

    def get(self, item_id: str) -> Optional[CostLineItem]:
        for item in self.fixed_items + self.custom_items:
            if item.id == item_id:
                return item
        return None

    def set_value(self, item_id: str, value: Optional[float]) -> CostLineItem:
        item = self.get(item_id)
        if item is None:
            raise KeyError(f"Unknown cost item '{item_id}'")
        item.value = clamp_cost(value)
        return item

    def set_label(self, item_id: str, label: str) -> CostLineItem:
        for item in self.custom_items:
            if item.id == item_id:
                item.label = label
                return item
        raise KeyError(f"Unknown custom cost item '{item_id}'")

    def add_custom(self, label: str = CUSTOM_COST_LABEL, value: float = 0) -> CostLineItem:
        item = CostLineItem(id=f"custom-{uuid.uuid4().hex}", label=label, value=clamp_cost(value))
        self.custom_items.append(item)
        return item

    def remove_custom(self, item_id: str) -> bool:
        before = len(self.custom_items)
        self.custom_items = [item for item in self.custom_items if item.id != item_id]
        return len(self.custom_items) < before

    def load_unit_cost(self, unit_cost: Optional[int]):
        """Seed material from a product's unit cost, zero everything else"""
        for item in self.fixed_items:
            item.value = clamp_cost(unit_cost) if item.id == "material" else 0
        self.custom_items = []

    def reset(self):
        for item in self.fixed_items:
            item.value = 0
        self.custom_items = []
