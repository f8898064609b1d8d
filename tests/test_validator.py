"""
Tests for the import validator.

A rejected row carries a typed reason; the other rows of the batch are unaffected.
"""

from decimal import Decimal

import pytest

from inventory_timeline import validator
from inventory_timeline.errors import ErrorKind, RowValidationError
from inventory_timeline.schemas import CandidateRow


def _row(code="A1", name="Alpha", opening=10, per_day=None):
    return {
        "productCode": code,
        "productName": name,
        "openingInventory": opening,
        "perDay": per_day or {},
    }


class TestValidateRow:
    def test_accepts_full_row(self, candidate_row):
        row = validator.validate_row(candidate_row, row_index=2)
        assert row.product_code == "SKU100"
        assert row.opening_inventory == 100
        assert [d.day_sequence for d in row.days] == [1, 2, 3]
        assert row.days[0].procurement_amount == Decimal("525")
        assert row.days[0].sales_amount == Decimal("450")
        assert all(d.source_row == 2 for d in row.days)

    def test_accepts_candidate_model(self):
        candidate = CandidateRow(product_code="B2", product_name="Beta", opening_inventory=0)
        row = validator.validate_row(candidate, row_index=5)
        assert row.days == []

    def test_trims_code_and_name(self):
        row = validator.validate_row(_row(code="  A1 ", name=" Alpha  "), row_index=2)
        assert row.product_code == "A1"
        assert row.product_name == "Alpha"

    def test_numeric_code_becomes_text(self):
        row = validator.validate_row(_row(code=1001.0), row_index=2)
        assert row.product_code == "1001"

    def test_absent_quantity_gives_absent_amount(self):
        per_day = {1: {"procurementQty": None, "procurementPrice": 12.0, "salesQty": 20, "salesPrice": 18.0}}
        row = validator.validate_row(_row(opening=75, per_day=per_day), row_index=2)
        day = row.days[0]
        assert day.procurement_amount is None
        assert day.sales_amount == Decimal("360")

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"code": ""}, "productCode"),
            ({"code": None}, "productCode"),
            ({"code": "   "}, "productCode"),
            ({"name": ""}, "productName"),
            ({"opening": None}, "openingInventory"),
        ],
    )
    def test_missing_field(self, overrides, field):
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(**overrides), row_index=3)
        assert exc.value.kind == ErrorKind.MISSING_FIELD
        assert exc.value.field == field
        assert exc.value.row_index == 3

    def test_negative_opening(self):
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(opening=-50), row_index=2)
        assert exc.value.kind == ErrorKind.NEGATIVE_VALUE
        assert exc.value.field == "openingInventory"

    def test_negative_day_value_names_the_field(self):
        per_day = {2: {"salesQty": -1}}
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(per_day=per_day), row_index=2)
        assert exc.value.kind == ErrorKind.NEGATIVE_VALUE
        assert exc.value.field == "perDay.2.salesQty"

    def test_negative_price(self):
        per_day = {1: {"procurementQty": 1, "procurementPrice": -0.5}}
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(per_day=per_day), row_index=2)
        assert exc.value.field == "perDay.1.procurementPrice"

    def test_absent_values_are_not_sign_checked(self):
        per_day = {1: {"procurementQty": None, "salesPrice": None}}
        row = validator.validate_row(_row(per_day=per_day), row_index=2)
        assert row.days[0].procurement_qty is None

    def test_bad_code_characters(self):
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(code="A 1!"), row_index=2)
        assert exc.value.kind == ErrorKind.INVALID_VALUE

    def test_code_too_long(self):
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(code="A" * 51), row_index=2)
        assert exc.value.kind == ErrorKind.INVALID_VALUE

    def test_day_outside_horizon(self):
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(per_day={4: {"salesQty": 1}}), row_index=2)
        assert exc.value.kind == ErrorKind.INVALID_VALUE
        assert exc.value.field == "perDay.4"

    def test_custom_horizon(self):
        row = validator.validate_row(
            _row(per_day={4: {"salesQty": 1}}), row_index=2, day_sequences=(1, 2, 3, 4)
        )
        assert row.days[0].day_sequence == 4

    def test_unparseable_number(self):
        with pytest.raises(RowValidationError) as exc:
            validator.validate_row(_row(opening="lots"), row_index=2)
        assert exc.value.kind == ErrorKind.INVALID_VALUE
        assert exc.value.field == "openingInventory"


class TestValidateBatch:
    def test_one_bad_row_does_not_stop_the_batch(self):
        """Opening -50 and empty code are rejected; the valid rows survive."""
        rows = [_row(code="A1"), _row(code="B2", opening=-50), _row(code=""), _row(code="C3")]
        report = validator.validate_batch(rows)

        assert [r.product_code for r in report.accepted] == ["A1", "C3"]
        reasons = {r.row_index: r.reason for r in report.rejected}
        assert reasons == {3: ErrorKind.NEGATIVE_VALUE, 4: ErrorKind.MISSING_FIELD}
        assert report.summary.total_rows == 4
        assert report.summary.valid_rows == 2
        assert report.summary.invalid_rows == 2

    def test_row_numbers_start_after_header(self):
        report = validator.validate_batch([_row(code="")], first_row_number=10)
        assert report.rejected[0].row_index == 10

    def test_duplicate_codes_keep_first(self):
        rows = [_row(code="A1", name="First"), _row(code="A1", name="Second")]
        report = validator.validate_batch(rows)
        assert len(report.accepted) == 1
        assert report.accepted[0].product_name == "First"
        assert report.rejected[0].reason == ErrorKind.INVALID_VALUE
        assert report.summary.duplicate_codes == ["A1"]

    def test_empty_batch(self):
        report = validator.validate_batch([])
        assert report.summary.total_rows == 0
        assert report.accepted == []

    def test_summary_text(self):
        rows = [_row(code="A1"), _row(code="A1")]
        text = validator.format_validation_summary(validator.validate_batch(rows))
        assert "Valid rows: 1" in text
        assert "Duplicate Product IDs found: A1" in text


class TestDataQuality:
    def _warnings(self, **kwargs):
        row = validator.validate_row(_row(**kwargs), row_index=2)
        return [w.message for w in validator.check_data_quality(row)]

    def test_clean_row_has_no_warnings(self, candidate_row):
        row = validator.validate_row(candidate_row, row_index=2)
        assert validator.check_data_quality(row) == []

    def test_price_without_quantity(self):
        messages = self._warnings(per_day={1: {"salesPrice": 5}})
        assert any("Sales quantity missing for Day 1" in m for m in messages)

    def test_zero_opening_and_no_data(self):
        messages = self._warnings(opening=0)
        assert any("Opening inventory is zero" in m for m in messages)
        assert any("has no procurement or sales data" in m for m in messages)

    def test_short_and_non_ascii_names(self):
        messages = self._warnings(name="Xé")
        assert any("Very short product name" in m for m in messages)
        assert any("special characters" in m for m in messages)

    def test_high_price_and_quantity(self):
        per_day = {1: {"procurementQty": 20000, "procurementPrice": 1500}}
        messages = self._warnings(per_day=per_day)
        assert any("Unusually high procurement price" in m for m in messages)
        assert any("Unusually high procurement quantity" in m for m in messages)
