"""
Inventory roll-forward and monetary derivation.

Everything here is a pure function of its arguments: stored records are read,
never mutated, and every call on the same input returns an equal result.
Missing or malformed day data degrades to a no-op instead of an exception;
only a broken horizon (a caller contract violation) raises.
"""

import logging
from typing import Iterable, Mapping, Optional

from . import settings
from .arithmetic import add_or_zero, mean_present, multiply, sum_present
from .errors import InternalComputationError, ProductNotFoundError
from .schemas import (
    AuditIssue,
    AuditReport,
    BatchSummary,
    DailyRecord,
    DayPoint,
    DerivedTimeline,
    DetailSummary,
    NormalizedRow,
    ProductDetail,
    ProductWithTimeline,
    StoredProduct,
    Summary,
)

logger = logging.getLogger(__name__)

OPENING_LABEL = "Opening"


def day_label(day: int) -> str:
    return f"Day {day}"


def _horizon(day_sequences: Optional[Iterable[int]]) -> tuple[int, ...]:
    horizon = tuple(settings.DAY_SEQUENCES if day_sequences is None else day_sequences)
    if not horizon:
        raise InternalComputationError("day horizon is empty")
    if any(later <= earlier for earlier, later in zip(horizon, horizon[1:])):
        raise InternalComputationError(
            f"day horizon must be strictly increasing, got {list(horizon)}"
        )
    return horizon


def _index_by_day(
    days: Iterable[DailyRecord] | Mapping[int, DailyRecord], horizon: tuple[int, ...]
) -> dict[int, DailyRecord]:
    if isinstance(days, Mapping):
        days = days.values()

    by_day: dict[int, DailyRecord] = {}
    for record in days:
        if record.day_sequence not in horizon:
            logger.warning(
                f"Ignoring record for day {record.day_sequence}: outside horizon {list(horizon)}"
            )
            continue
        if record.day_sequence in by_day:
            logger.warning(
                f"Duplicate record for day {record.day_sequence}; keeping the last one"
            )
        by_day[record.day_sequence] = record
    return by_day


def summarize(points: list[DayPoint]) -> Summary:
    """Summary statistics computed from an emitted timeline, not from raw input."""
    if not points:
        raise InternalComputationError("cannot summarize an empty timeline")
    return Summary(
        total_procurement_value=sum_present(p.procurement_amount for p in points),
        total_sales_value=sum_present(p.sales_amount for p in points),
        final_inventory=points[-1].inventory_level,
        has_negative_inventory=any(p.inventory_level < 0 for p in points),
    )


def derive(
    opening_inventory: int,
    days: Iterable[DailyRecord] | Mapping[int, DailyRecord],
    day_sequences: Optional[Iterable[int]] = None,
) -> DerivedTimeline:
    """
    Rolls the inventory forward one day at a time and emits exactly one point per
    horizon day, whether or not that day has a record.

    Amounts are recomputed from qty * price so the displayed figure always matches
    the displayed qty and price; any stored amount on the record is ignored.
    """
    horizon = _horizon(day_sequences)
    by_day = _index_by_day(days, horizon)

    running = opening_inventory
    points = []
    for day in horizon:
        record = by_day.get(day)
        if record is None:
            points.append(
                DayPoint(label=day_label(day), day_sequence=day, inventory_level=running)
            )
            continue

        running = add_or_zero(running, record.procurement_qty, record.sales_qty)
        points.append(
            DayPoint(
                label=day_label(day),
                day_sequence=day,
                inventory_level=running,
                procurement_amount=multiply(record.procurement_qty, record.procurement_price),
                sales_amount=multiply(record.sales_qty, record.sales_price),
                procurement_qty=record.procurement_qty,
                procurement_price=record.procurement_price,
                sales_qty=record.sales_qty,
                sales_price=record.sales_price,
            )
        )

    return DerivedTimeline(timeline=points, summary=summarize(points))


def derive_product(
    product: StoredProduct, day_sequences: Optional[Iterable[int]] = None
) -> ProductWithTimeline:
    derived = derive(product.opening_inventory, product.daily_records, day_sequences)
    return ProductWithTimeline(
        id=product.id,
        product_code=product.product_code,
        product_name=product.product_name,
        opening_inventory=product.opening_inventory,
        timeline=derived.timeline,
        summary=derived.summary,
    )


def to_stored_records(
    row: NormalizedRow, day_sequences: Optional[Iterable[int]] = None
) -> list[DailyRecord]:
    """
    Daily records to persist for an accepted row: one per day present in the
    source, with amounts and inventory level filled in by the same roll-forward
    the read path uses.
    """
    derived = derive(row.opening_inventory, row.days, day_sequences)
    points = {p.day_sequence: p for p in derived.timeline}

    stored = []
    for record in sorted(row.days, key=lambda r: r.day_sequence):
        point = points.get(record.day_sequence)
        if point is None:
            continue
        stored.append(
            record.model_copy(
                update={
                    "procurement_amount": point.procurement_amount,
                    "sales_amount": point.sales_amount,
                    "inventory_level": point.inventory_level,
                    "source_row": (
                        row.row_index if record.source_row is None else record.source_row
                    ),
                }
            )
        )
    return stored


def derive_detail(
    product: StoredProduct, day_sequences: Optional[Iterable[int]] = None
) -> ProductDetail:
    """Single-product view: an Opening point before the day points, plus detail stats."""
    horizon = _horizon(day_sequences)
    derived = derive(product.opening_inventory, product.daily_records, horizon)

    opening_point = DayPoint(
        label=OPENING_LABEL, day_sequence=0, inventory_level=product.opening_inventory
    )
    points = [opening_point, *derived.timeline]
    day_points = derived.timeline
    base = derived.summary

    summary = DetailSummary(
        total_procurement_value=base.total_procurement_value,
        total_sales_value=base.total_sales_value,
        final_inventory=base.final_inventory,
        has_negative_inventory=any(p.inventory_level < 0 for p in points),
        opening_inventory=product.opening_inventory,
        total_procurement_qty=sum(p.procurement_qty or 0 for p in day_points),
        total_sales_qty=sum(p.sales_qty or 0 for p in day_points),
        inventory_change=base.final_inventory - product.opening_inventory,
        days_with_data=len(
            {r.day_sequence for r in product.daily_records if r.day_sequence in horizon}
        ),
        average_procurement_price=mean_present(p.procurement_price for p in day_points),
        average_sales_price=mean_present(p.sales_price for p in day_points),
    )

    return ProductDetail(
        id=product.id,
        product_code=product.product_code,
        product_name=product.product_name,
        opening_inventory=product.opening_inventory,
        timeline=points,
        summary=summary,
    )


def audit_stored_records(
    product: StoredProduct, day_sequences: Optional[Iterable[int]] = None
) -> AuditReport:
    """
    Compares the persisted inventory levels and amounts against a live
    recomputation. The recomputation wins; mismatches are reported, not fixed.
    """
    derived = derive(product.opening_inventory, product.daily_records, day_sequences)
    points = {p.day_sequence: p for p in derived.timeline}
    code = product.product_code
    errors: list[AuditIssue] = []
    warnings: list[AuditIssue] = []

    for record in sorted(product.daily_records, key=lambda r: r.day_sequence):
        point = points.get(record.day_sequence)
        if point is None:
            continue
        day = record.day_sequence

        if record.inventory_level is not None and record.inventory_level != point.inventory_level:
            errors.append(
                AuditIssue(
                    product_code=code,
                    day_sequence=day,
                    type="inventory_flow_error",
                    message=(
                        f"Inventory level mismatch on Day {day}. "
                        f"Expected: {point.inventory_level}, Got: {record.inventory_level}"
                    ),
                )
            )
        for side, stored, live in (
            ("Procurement", record.procurement_amount, point.procurement_amount),
            ("Sales", record.sales_amount, point.sales_amount),
        ):
            if stored is not None and stored != live:
                errors.append(
                    AuditIssue(
                        product_code=code,
                        day_sequence=day,
                        type="calculation_error",
                        message=(
                            f"{side} amount calculation mismatch on Day {day}. "
                            f"Expected: {live}, Got: {stored}"
                        ),
                    )
                )

    final_inventory = derived.summary.final_inventory
    if final_inventory < 0:
        warnings.append(
            AuditIssue(
                product_code=code,
                type="negative_inventory",
                message=f"Final inventory is negative ({final_inventory}) - oversold scenario",
            )
        )
    if final_inventory < settings.EXTREME_NEGATIVE_INVENTORY:
        errors.append(
            AuditIssue(
                product_code=code,
                type="extreme_negative_inventory",
                message=(
                    f"Extremely negative inventory ({final_inventory}) - possible data error"
                ),
            )
        )

    return AuditReport(is_valid=not errors, errors=errors, warnings=warnings)


def summarize_batch(products: list[ProductWithTimeline]) -> BatchSummary:
    return BatchSummary(
        product_count=len(products),
        total_opening_inventory=sum(p.opening_inventory for p in products),
        total_final_inventory=sum(p.summary.final_inventory for p in products),
        total_procurement_value=sum_present(p.summary.total_procurement_value for p in products),
        total_sales_value=sum_present(p.summary.total_sales_value for p in products),
        products_with_negative_inventory=[
            p.product_code for p in products if p.summary.final_inventory < 0
        ],
    )


def format_batch_summary(summary: BatchSummary) -> str:
    lines = [
        "Calculation Summary:",
        f"- Products processed: {summary.product_count}",
        f"- Total opening inventory: {summary.total_opening_inventory} units",
        f"- Total final inventory: {summary.total_final_inventory} units",
        f"- Total procurement value: ${summary.total_procurement_value:.2f}",
        f"- Total sales value: ${summary.total_sales_value:.2f}",
    ]
    negative = summary.products_with_negative_inventory
    if negative:
        more = "..." if len(negative) > 5 else ""
        lines.append(f"- Products with negative inventory: {len(negative)}")
        lines.append(f"  {', '.join(negative[:5])}{more}")
    return "\n".join(lines)


def find_product(products: Iterable[StoredProduct], product_id: str) -> StoredProduct:
    for product in products:
        if product.id == product_id:
            return product
    raise ProductNotFoundError(product_id)
