import logging
import re
from typing import Any, Iterable, Optional
from pydantic import ValidationError

from . import settings
from .arithmetic import multiply
from .errors import ErrorKind, RowValidationError
from .schemas import (
    CandidateRow,
    DailyRecord,
    NormalizedRow,
    RowRejection,
    RowWarning,
    ValidationReport,
    ValidationSummary,
)

logger = logging.getLogger(__name__)

_CODE_PATTERN = re.compile(settings.PRODUCT_CODE_PATTERN)

# (field name, wire alias, label used in messages)
_DAY_FIELDS = [
    ("procurement_qty", "procurementQty", "Procurement quantity"),
    ("procurement_price", "procurementPrice", "Procurement price"),
    ("sales_qty", "salesQty", "Sales quantity"),
    ("sales_price", "salesPrice", "Sales price"),
]


def _as_candidate(row: Any, row_index: int) -> CandidateRow:
    if isinstance(row, CandidateRow):
        return row
    try:
        return CandidateRow.model_validate(row)
    except ValidationError as e:
        # Report the first offending field; the row is rejected either way.
        issue = e.errors()[0]
        field = ".".join(str(part) for part in issue["loc"]) or "row"
        raise RowValidationError(
            ErrorKind.INVALID_VALUE,
            field,
            issue["msg"],
            row_index=row_index,
            value=issue.get("input"),
        ) from e


def validate_row(
    row: CandidateRow | dict,
    row_index: int,
    day_sequences: Optional[Iterable[int]] = None,
) -> NormalizedRow:
    """
    Applies the ingestion rules to one candidate row.

    Raises RowValidationError on the first rule the row breaks:
    - MissingField: empty or absent product code, name or opening inventory.
    - InvalidValue: malformed code/name, unparseable numbers, days outside the horizon.
    - NegativeValue: negative opening inventory or any supplied quantity/price.

    Absent quantities and prices are never checked. On success, each supplied
    day carries its derived amounts (qty * price, or None if either is absent).
    """
    horizon = tuple(settings.DAY_SEQUENCES if day_sequences is None else day_sequences)
    candidate = _as_candidate(row, row_index)

    def fail(kind: ErrorKind, field: str, message: str, value=None):
        raise RowValidationError(kind, field, message, row_index=row_index, value=value)

    # --- 1. Presence ---
    if not candidate.product_code:
        fail(ErrorKind.MISSING_FIELD, "productCode", "Product ID cannot be empty")
    if not candidate.product_name:
        fail(ErrorKind.MISSING_FIELD, "productName", "Product Name cannot be empty")
    if candidate.opening_inventory is None:
        fail(ErrorKind.MISSING_FIELD, "openingInventory", "Opening inventory is required")

    # --- 2. Shape ---
    code = candidate.product_code
    if len(code) > settings.PRODUCT_CODE_MAX_LENGTH:
        fail(
            ErrorKind.INVALID_VALUE,
            "productCode",
            f"Product ID too long (max {settings.PRODUCT_CODE_MAX_LENGTH} characters)",
            code,
        )
    if not _CODE_PATTERN.match(code):
        fail(
            ErrorKind.INVALID_VALUE,
            "productCode",
            "Product ID can only contain letters, numbers, hyphens, and underscores",
            code,
        )
    if len(candidate.product_name) > settings.PRODUCT_NAME_MAX_LENGTH:
        fail(
            ErrorKind.INVALID_VALUE,
            "productName",
            f"Product Name too long (max {settings.PRODUCT_NAME_MAX_LENGTH} characters)",
        )
    for day in candidate.per_day:
        if day not in horizon:
            fail(
                ErrorKind.INVALID_VALUE,
                f"perDay.{day}",
                f"Day {day} is outside the {len(horizon)}-day horizon",
                day,
            )

    # --- 3. Signs ---
    if candidate.opening_inventory < 0:
        fail(
            ErrorKind.NEGATIVE_VALUE,
            "openingInventory",
            "Opening inventory cannot be negative",
            candidate.opening_inventory,
        )
    for day in sorted(candidate.per_day):
        block = candidate.per_day[day]
        for name, alias, label in _DAY_FIELDS:
            value = getattr(block, name)
            if value is not None and value < 0:
                fail(
                    ErrorKind.NEGATIVE_VALUE,
                    f"perDay.{day}.{alias}",
                    f"{label} cannot be negative",
                    value,
                )

    # --- 4. Derived amounts ---
    days = []
    for day in sorted(candidate.per_day):
        block = candidate.per_day[day]
        days.append(
            DailyRecord(
                day_sequence=day,
                procurement_qty=block.procurement_qty,
                procurement_price=block.procurement_price,
                procurement_amount=multiply(block.procurement_qty, block.procurement_price),
                sales_qty=block.sales_qty,
                sales_price=block.sales_price,
                sales_amount=multiply(block.sales_qty, block.sales_price),
                source_row=row_index,
            )
        )

    return NormalizedRow(
        row_index=row_index,
        product_code=code,
        product_name=candidate.product_name,
        opening_inventory=candidate.opening_inventory,
        days=days,
    )


def has_no_data(row: NormalizedRow) -> bool:
    return all(
        getattr(record, name) is None
        for record in row.days
        for name, _, _ in _DAY_FIELDS
    )


def check_data_quality(row: NormalizedRow) -> list[RowWarning]:
    """Non-blocking warnings for an accepted row."""
    warnings = []

    def warn(message: str, field: Optional[str] = None):
        warnings.append(
            RowWarning(
                row_index=row.row_index,
                product_code=row.product_code,
                field=field,
                message=message,
            )
        )

    for record in row.days:
        day = record.day_sequence
        for side, qty, price in (
            ("Procurement", record.procurement_qty, record.procurement_price),
            ("Sales", record.sales_qty, record.sales_price),
        ):
            prefix = f"perDay.{day}.{side.lower()}"
            if qty is not None and price is None:
                warn(
                    f"{side} price missing for Day {day} when quantity is provided",
                    f"{prefix}Price",
                )
            if price is not None and qty is None:
                warn(
                    f"{side} quantity missing for Day {day} when price is provided",
                    f"{prefix}Qty",
                )
            if price is not None and price > settings.HIGH_PRICE_WARNING:
                warn(f"Unusually high {side.lower()} price for Day {day}: {price}", f"{prefix}Price")
            if qty is not None and qty > settings.HIGH_QTY_WARNING:
                warn(f"Unusually high {side.lower()} quantity for Day {day}: {qty}", f"{prefix}Qty")

    if len(row.product_name) < settings.SHORT_NAME_WARNING:
        warn(f'Very short product name: "{row.product_name}"', "productName")
    if not row.product_name.isascii():
        warn(
            "Product name contains special characters, ensure encoding is correct: "
            f'"{row.product_name}"',
            "productName",
        )
    if row.opening_inventory == 0:
        warn("Opening inventory is zero - please verify this is correct", "openingInventory")
    if has_no_data(row):
        warn(f"Product {row.product_code} has no procurement or sales data for any day")

    return warnings


def _peek_code(row: Any) -> Optional[str]:
    if isinstance(row, CandidateRow):
        return row.product_code
    if isinstance(row, dict):
        code = row.get("productCode", row.get("product_code"))
        return None if code is None else str(code)
    return None


def validate_batch(
    rows: Iterable[CandidateRow | dict],
    first_row_number: int = settings.FIRST_DATA_ROW,
    day_sequences: Optional[Iterable[int]] = None,
) -> ValidationReport:
    """
    Validates every row independently. A rejected row never stops the batch;
    its reason lands in the report next to the accepted rows.
    """
    if day_sequences is not None:
        day_sequences = tuple(day_sequences)

    accepted: list[NormalizedRow] = []
    rejected: list[RowRejection] = []
    warnings: list[RowWarning] = []
    seen_codes: set[str] = set()
    duplicate_codes: list[str] = []
    empty_data_rows = 0
    total_rows = 0

    for offset, row in enumerate(rows):
        total_rows += 1
        row_index = first_row_number + offset

        try:
            normalized = validate_row(row, row_index, day_sequences)
        except RowValidationError as e:
            logger.warning(f"  > Row {row_index} rejected: {e}")
            rejected.append(
                RowRejection(
                    row_index=row_index,
                    product_code=_peek_code(row),
                    field=e.field,
                    reason=e.kind,
                    message=e.message,
                )
            )
            continue

        code = normalized.product_code
        if code in seen_codes:
            if code not in duplicate_codes:
                duplicate_codes.append(code)
            logger.warning(f"  > Row {row_index} rejected: duplicate product ID {code}")
            rejected.append(
                RowRejection(
                    row_index=row_index,
                    product_code=code,
                    field="productCode",
                    reason=ErrorKind.INVALID_VALUE,
                    message=f"Duplicate Product ID: {code}",
                )
            )
            continue
        seen_codes.add(code)

        if has_no_data(normalized):
            empty_data_rows += 1
        warnings.extend(check_data_quality(normalized))
        accepted.append(normalized)

    summary = ValidationSummary(
        total_rows=total_rows,
        valid_rows=len(accepted),
        invalid_rows=total_rows - len(accepted),
        error_count=len(rejected),
        warning_count=len(warnings),
        duplicate_codes=duplicate_codes,
        empty_data_rows=empty_data_rows,
    )
    return ValidationReport(
        accepted=accepted, rejected=rejected, warnings=warnings, summary=summary
    )


def format_validation_summary(report: ValidationReport) -> str:
    summary = report.summary
    lines = [
        "Validation Summary:",
        f"- Total rows processed: {summary.total_rows}",
        f"- Valid rows: {summary.valid_rows}",
        f"- Invalid rows: {summary.invalid_rows}",
        f"- Errors: {summary.error_count}",
        f"- Warnings: {summary.warning_count}",
    ]
    if summary.duplicate_codes:
        lines.append(f"- Duplicate Product IDs found: {', '.join(summary.duplicate_codes)}")
    if summary.empty_data_rows:
        lines.append(f"- Products with no data for any day: {summary.empty_data_rows}")
    return "\n".join(lines)
