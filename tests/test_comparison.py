"""
Tests for merging several product timelines onto one time axis.
"""

from decimal import Decimal

from conftest import make_product, make_record
from inventory_timeline import comparison, engine


def _derived(*products):
    return [engine.derive_product(p) for p in products]


class TestMergeStructured:
    def test_series_keyed_by_id(self, full_product, partial_product):
        points = comparison.merge_structured(
            _derived(full_product, partial_product), ["p-100", "p-75"]
        )
        assert [p.label for p in points] == ["Day 1", "Day 2", "Day 3"]
        assert list(points[0].series) == ["p-100", "p-75"]
        assert points[0].series["p-75"].inventory_level == 55
        assert points[0].series["p-75"].procurement_amount is None

    def test_unknown_ids_are_dropped(self, full_product):
        points = comparison.merge_structured(_derived(full_product), ["p-100", "ghost"])
        assert list(points[0].series) == ["p-100"]

    def test_nothing_selected(self, full_product):
        assert comparison.merge_structured(_derived(full_product), []) == []
        assert comparison.merge(_derived(full_product), ["ghost"]) == []

    def test_truncates_to_shortest_timeline(self, full_product, partial_product):
        long = engine.derive_product(full_product)
        short = engine.derive_product(partial_product, day_sequences=[1, 2])
        points = comparison.merge_structured([long, short], ["p-100", "p-75"])
        assert len(points) == 2


class TestMerge:
    def test_single_selection_bare_keys_with_tooltip(self, full_product):
        rows = comparison.merge(_derived(full_product), ["p-100"])
        first = rows[0]
        assert first["label"] == "Day 1"
        assert first["inventoryLevel"] == 120
        assert first["procurementAmount"] == Decimal("525.0")
        assert first["salesAmount"] == Decimal("450.0")
        assert first["procurementQty"] == 50
        assert first["salesPrice"] == Decimal("15.0")

    def test_two_selections_suffixed_without_tooltip(self, full_product, partial_product):
        rows = comparison.merge(_derived(full_product, partial_product), ["p-100", "p-75"])
        first = rows[0]
        assert first["inventoryLevel_SKU100"] == 120
        assert first["inventoryLevel_SKU75"] == 55
        assert first["salesAmount_SKU75"] == Decimal("360.0")
        # Absent amounts are omitted, not written as None.
        assert "procurementAmount_SKU75" not in first
        for field in comparison.TOOLTIP_FIELDS:
            assert field not in first
        assert "inventoryLevel" not in first

    def test_days_without_records_carry_levels(self, full_product, partial_product):
        rows = comparison.merge(_derived(full_product, partial_product), ["p-75", "p-100"])
        assert [r["inventoryLevel_SKU75"] for r in rows] == [55, 55, 55]
        assert "salesAmount_SKU75" not in rows[2]

    def test_order_follows_product_list(self):
        a = make_product("a", "A", 1, [make_record(1, 1, "1", None, None)])
        b = make_product("b", "B", 2, [])
        rows = comparison.merge(_derived(a, b), ["b", "a"])
        assert list(rows[0]) == ["label", "inventoryLevel_A", "procurementAmount_A", "inventoryLevel_B"]
