import math
import pandas as pd

from . import settings
from .schemas import (
    DailyRecord,
    ProductWithTimeline,
    StoredProduct,
    StoredRecordRow,
    TimelineRow,
)

# Day-level fields of a stored record line.
_RECORD_FIELDS = [
    "day_sequence",
    "procurement_qty",
    "procurement_price",
    "procurement_amount",
    "sales_qty",
    "sales_price",
    "sales_amount",
    "inventory_level",
    "source_row",
]

_DAY_ALIASES = {
    "procurement_qty": "procurementQty",
    "procurement_price": "procurementPrice",
    "sales_qty": "salesQty",
    "sales_price": "salesPrice",
}


def _clean_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = df.columns.astype(str).str.replace("\ufeff", "", regex=False).str.strip()
    return df


def _scalar(value):
    """Unwraps numpy scalars and turns NaN into None."""
    if value is None:
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def parse_import_frame(df: pd.DataFrame) -> list[dict]:
    """
    Maps a wide candidate-row table (one row per product, four columns per day)
    to candidate dicts for the validator. Empty cells become absent values;
    a day is included when any of its columns exists in the table.
    """
    df = _clean_columns(df)
    columns = set(df.columns)

    day_columns = {}
    for day in settings.DAY_SEQUENCES:
        mapping = {
            _DAY_ALIASES[field]: template.format(day=day)
            for field, template in settings.DAY_COLUMN_TEMPLATES.items()
        }
        if any(column in columns for column in mapping.values()):
            day_columns[day] = mapping

    candidates = []
    for record in df.to_dict("records"):
        candidates.append(
            {
                "productCode": _scalar(record.get(settings.CODE_COLUMN)),
                "productName": _scalar(record.get(settings.NAME_COLUMN)),
                "openingInventory": _scalar(record.get(settings.OPENING_COLUMN)),
                "perDay": {
                    day: {alias: _scalar(record.get(column)) for alias, column in mapping.items()}
                    for day, mapping in day_columns.items()
                },
            }
        )
    return candidates


def parse_records_frame(df: pd.DataFrame) -> list[StoredProduct]:
    """
    Rebuilds stored products from a long-format record table, keeping the order
    products first appear in. Raises pydantic.ValidationError on a malformed line.
    """
    df = _clean_columns(df)

    products: dict[str, StoredProduct] = {}
    for record in df.to_dict("records"):
        row = StoredRecordRow(**{str(k): _scalar(v) for k, v in record.items()})

        product = products.get(row.id)
        if product is None:
            product = StoredProduct(
                id=row.id,
                product_code=row.product_code,
                product_name=row.product_name,
                opening_inventory=row.opening_inventory,
            )
            products[row.id] = product

        if row.day_sequence is not None:
            product.daily_records.append(
                DailyRecord(**{field: getattr(row, field) for field in _RECORD_FIELDS})
            )

    return list(products.values())


def to_record_rows(products: list[StoredProduct]) -> list[StoredRecordRow]:
    rows = []
    for product in products:
        base = {
            "id": product.id,
            "product_code": product.product_code,
            "product_name": product.product_name,
            "opening_inventory": product.opening_inventory,
        }
        if not product.daily_records:
            rows.append(StoredRecordRow(**base))
            continue
        for record in product.daily_records:
            rows.append(StoredRecordRow(**base, **record.model_dump()))
    return rows


def to_timeline_rows(products: list[ProductWithTimeline]) -> list[TimelineRow]:
    rows = []
    for product in products:
        for point in product.timeline:
            rows.append(
                TimelineRow(
                    id=product.id,
                    product_code=product.product_code,
                    product_name=product.product_name,
                    **point.model_dump(),
                )
            )
    return rows

