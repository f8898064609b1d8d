import logging
from typing import Any, Iterable

from .schemas import ComparisonPoint, ProductWithTimeline, SeriesValues

logger = logging.getLogger(__name__)

# Per-transaction values only shown in a single-product tooltip.
TOOLTIP_FIELDS = ["procurementQty", "procurementPrice", "salesQty", "salesPrice"]


def select_products(
    products: list[ProductWithTimeline], selected_ids: Iterable[str]
) -> list[ProductWithTimeline]:
    """Filters to the selected ids, keeping the order of ``products``."""
    wanted = set(selected_ids)
    return [p for p in products if p.id in wanted]


def merge_structured(
    products: list[ProductWithTimeline], selected_ids: Iterable[str]
) -> list[ComparisonPoint]:
    """
    One point per day on a shared axis, each holding every selected product's
    values keyed by product id. Naming and flattening are left to the caller.
    """
    selected = select_products(products, selected_ids)
    if not selected:
        return []

    length = min(len(p.timeline) for p in selected)
    if any(len(p.timeline) != length for p in selected):
        logger.warning(f"Timelines differ in length; truncating comparison to {length} days")

    # The first selected product's labels are the shared time axis.
    axis = selected[0].timeline[:length]
    merged = []
    for index, anchor in enumerate(axis):
        series = {}
        for product in selected:
            point = product.timeline[index]
            series[product.id] = SeriesValues(
                product_code=product.product_code,
                inventory_level=point.inventory_level,
                procurement_amount=point.procurement_amount,
                sales_amount=point.sales_amount,
                procurement_qty=point.procurement_qty,
                procurement_price=point.procurement_price,
                sales_qty=point.sales_qty,
                sales_price=point.sales_price,
            )
        merged.append(
            ComparisonPoint(label=anchor.label, day_sequence=anchor.day_sequence, series=series)
        )
    return merged


def flatten_for_chart(points: list[ComparisonPoint]) -> list[dict[str, Any]]:
    """
    Flattens structured points into one dict per day for a multi-series chart.

    With one product the keys are bare (``inventoryLevel``) and the tooltip
    fields are included; with several, every numeric key gets a
    ``_{productCode}`` suffix and tooltip fields are left out. Absent amounts
    are omitted rather than written as None.
    """
    rows = []
    for point in points:
        single = len(point.series) == 1
        row: dict[str, Any] = {"label": point.label}

        for values in point.series.values():
            suffix = "" if single else f"_{values.product_code}"
            row[f"inventoryLevel{suffix}"] = values.inventory_level
            if values.procurement_amount is not None:
                row[f"procurementAmount{suffix}"] = values.procurement_amount
            if values.sales_amount is not None:
                row[f"salesAmount{suffix}"] = values.sales_amount

            if single:
                raw = values.model_dump(by_alias=True)
                for field in TOOLTIP_FIELDS:
                    row[field] = raw[field]

        rows.append(row)
    return rows


def merge(
    products: list[ProductWithTimeline], selected_ids: Iterable[str]
) -> list[dict[str, Any]]:
    """Merged chart rows for the selected products; empty when nothing matches."""
    return flatten_for_chart(merge_structured(products, selected_ids))
