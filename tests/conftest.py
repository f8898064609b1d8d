"""Shared fixtures: the reference scenarios and small product sets."""

from decimal import Decimal

import pytest

from inventory_timeline import settings
from inventory_timeline.schemas import DailyRecord, StoredProduct


def make_record(day, pq=None, pp=None, sq=None, sp=None, **extra) -> DailyRecord:
    return DailyRecord(
        day_sequence=day,
        procurement_qty=pq,
        procurement_price=None if pp is None else Decimal(str(pp)),
        sales_qty=sq,
        sales_price=None if sp is None else Decimal(str(sp)),
        **extra,
    )


def make_product(product_id, code, opening, records, name=None) -> StoredProduct:
    return StoredProduct(
        id=product_id,
        product_code=code,
        product_name=name or f"Product {code}",
        opening_inventory=opening,
        daily_records=records,
    )


@pytest.fixture
def full_days():
    """Opening 100, every field supplied for all three days."""
    return [
        make_record(1, 50, "10.5", 30, "15.0"),
        make_record(2, 25, "11.0", 40, "15.5"),
        make_record(3, 20, "11.5", 35, "16.0"),
    ]


@pytest.fixture
def full_product(full_days):
    return make_product("p-100", "SKU100", 100, full_days, name="Widget")


@pytest.fixture
def partial_product():
    """Opening 75, procurement quantity absent on day 1, nothing on days 2-3."""
    return make_product("p-75", "SKU75", 75, [make_record(1, None, "12.0", 20, "18.0")])


@pytest.fixture
def candidate_row():
    return {
        "productCode": "SKU100",
        "productName": "Widget",
        "openingInventory": 100,
        "perDay": {
            1: {"procurementQty": 50, "procurementPrice": 10.5, "salesQty": 30, "salesPrice": 15.0},
            2: {"procurementQty": 25, "procurementPrice": 11.0, "salesQty": 40, "salesPrice": 15.5},
            3: {"procurementQty": 20, "procurementPrice": 11.5, "salesQty": 35, "salesPrice": 16.0},
        },
    }


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    """Redirects every file the output layer writes into a temp directory."""
    out = tmp_path / "output"
    monkeypatch.setattr(settings, "OUTPUT_DIR", out)
    monkeypatch.setattr(settings, "INPUT_DIR", tmp_path / "input")
    monkeypatch.setattr(settings, "SAVE_JSON_OUTPUT", True)
    monkeypatch.setattr(settings, "WEBHOOK_URL", None)
    return out
