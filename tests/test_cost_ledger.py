from vitrina.schemas import CostLineItem
from vitrina.services.cost_ledger import CUSTOM_COST_LABEL, CostLedger, clamp_cost, total_cost


def test_total_cost_sums_both_pools():
    fixed = [CostLineItem("material", "m", 40000), CostLineItem("gems", "g", 10000)]
    custom = [CostLineItem("custom-1", "extra", 15000)]
    assert total_cost(fixed, custom) == 65000


def test_clamp_cost():
    assert clamp_cost(-5) == 0
    assert clamp_cost(None) == 0
    assert clamp_cost(12.5) == 12.5


def test_ledger_starts_with_fixed_items_at_zero():
    ledger = CostLedger()
    assert [i.id for i in ledger.fixed_items] == ["material", "gems", "labor", "packaging", "shipping"]
    assert ledger.total == 0


def test_negative_value_is_clamped_at_entry():
    ledger = CostLedger()
    ledger.set_value("material", -300)
    assert ledger.get("material").value == 0
    ledger.set_value("labor", 15000)
    assert ledger.total == 15000


def test_add_and_remove_custom_items():
    ledger = CostLedger()
    first = ledger.add_custom()
    second = ledger.add_custom()
    assert first.id != second.id
    assert first.label == CUSTOM_COST_LABEL
    assert first.value == 0

    ledger.set_value(first.id, 2500)
    ledger.set_label(second.id, "Grabado")
    ledger.set_value(second.id, 1000)
    assert ledger.total == 3500

    assert ledger.remove_custom(first.id) is True
    assert ledger.remove_custom(first.id) is False
    assert ledger.total == 1000


def test_load_unit_cost_seeds_material_only():
    ledger = CostLedger()
    ledger.set_value("gems", 500)
    ledger.add_custom(value=900)
    ledger.load_unit_cost(20000)
    assert ledger.get("material").value == 20000
    assert ledger.get("gems").value == 0
    assert ledger.custom_items == []
    assert ledger.total == 20000


def test_unknown_item_raises_key_error():
    ledger = CostLedger()
    try:
        ledger.set_value("nope", 1)
    except KeyError:
        pass
    else:
        raise AssertionError("expected KeyError")
