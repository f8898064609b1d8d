import math
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .arithmetic import to_decimal
from .errors import ErrorKind


class CamelModel(BaseModel):
    """
    Base for every data contract in the project.
    Fields are snake_case in Python and camelCase on the wire (aliases).
    """

    # Models can be built from either the Python names or the aliases.
    model_config = ConfigDict(populate_by_name=True)


def _blank_to_none(value):
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


# --- Ingestion ---


class DayInput(CamelModel):
    """One optional day block of a candidate row. Signs are checked by the validator."""

    procurement_qty: Optional[int] = Field(default=None, alias="procurementQty")
    procurement_price: Optional[Decimal] = Field(default=None, alias="procurementPrice")
    sales_qty: Optional[int] = Field(default=None, alias="salesQty")
    sales_price: Optional[Decimal] = Field(default=None, alias="salesPrice")

    @field_validator("procurement_qty", "sales_qty", mode="before")
    @classmethod
    def _clean_qty(cls, value):
        return _blank_to_none(value)

    @field_validator("procurement_price", "sales_price", mode="before")
    @classmethod
    def _clean_price(cls, value):
        value = _blank_to_none(value)
        return to_decimal(value) if isinstance(value, float) else value


class CandidateRow(CamelModel):
    """A product row as handed over by the extraction layer, before any rules run."""

    product_code: Optional[str] = Field(default=None, alias="productCode")
    product_name: Optional[str] = Field(default=None, alias="productName")
    opening_inventory: Optional[int] = Field(default=None, alias="openingInventory")
    per_day: dict[int, DayInput] = Field(default_factory=dict, alias="perDay")

    @field_validator("product_code", "product_name", mode="before")
    @classmethod
    def _text(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        # Spreadsheet codes like 1001 arrive as numbers.
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    @field_validator("opening_inventory", mode="before")
    @classmethod
    def _opening(cls, value):
        return _blank_to_none(value)


class DailyRecord(CamelModel):
    """
    One stored day of one product.
    Amounts and inventory_level are derived; once persisted they are a cache of
    what the engine recomputes on every read.
    """

    day_sequence: int = Field(..., alias="daySequence")
    procurement_qty: Optional[int] = Field(default=None, alias="procurementQty")
    procurement_price: Optional[Decimal] = Field(default=None, alias="procurementPrice")
    procurement_amount: Optional[Decimal] = Field(default=None, alias="procurementAmount")
    sales_qty: Optional[int] = Field(default=None, alias="salesQty")
    sales_price: Optional[Decimal] = Field(default=None, alias="salesPrice")
    sales_amount: Optional[Decimal] = Field(default=None, alias="salesAmount")
    inventory_level: Optional[int] = Field(default=None, alias="inventoryLevel")
    source_row: Optional[int] = Field(default=None, alias="sourceRow")

    @field_validator(
        "procurement_qty",
        "sales_qty",
        "inventory_level",
        "source_row",
        mode="before",
    )
    @classmethod
    def _clean_int(cls, value):
        return _blank_to_none(value)

    @field_validator(
        "procurement_price",
        "procurement_amount",
        "sales_price",
        "sales_amount",
        mode="before",
    )
    @classmethod
    def _clean_decimal(cls, value):
        value = _blank_to_none(value)
        return to_decimal(value) if isinstance(value, float) else value


class NormalizedRow(CamelModel):
    """An accepted candidate row, trimmed and with amounts derived, ready for storage."""

    row_index: int = Field(..., alias="rowIndex")
    product_code: str = Field(..., alias="productCode")
    product_name: str = Field(..., alias="productName")
    opening_inventory: int = Field(..., alias="openingInventory")
    days: list[DailyRecord] = Field(default_factory=list)


class RowRejection(CamelModel):
    row_index: int = Field(..., alias="rowIndex")
    product_code: Optional[str] = Field(default=None, alias="productCode")
    field: str
    reason: ErrorKind
    message: str


class RowWarning(CamelModel):
    row_index: int = Field(..., alias="rowIndex")
    product_code: Optional[str] = Field(default=None, alias="productCode")
    field: Optional[str] = None
    message: str


class ValidationSummary(CamelModel):
    total_rows: int = Field(..., alias="totalRows")
    valid_rows: int = Field(..., alias="validRows")
    invalid_rows: int = Field(..., alias="invalidRows")
    error_count: int = Field(..., alias="errorCount")
    warning_count: int = Field(..., alias="warningCount")
    duplicate_codes: list[str] = Field(default_factory=list, alias="duplicateCodes")
    empty_data_rows: int = Field(default=0, alias="emptyDataRows")


class ValidationReport(CamelModel):
    accepted: list[NormalizedRow] = Field(default_factory=list)
    rejected: list[RowRejection] = Field(default_factory=list)
    warnings: list[RowWarning] = Field(default_factory=list)
    summary: ValidationSummary


# --- Stored products ---


class StoredProduct(CamelModel):
    id: str
    product_code: str = Field(..., alias="productCode")
    product_name: str = Field(..., alias="productName")
    opening_inventory: int = Field(..., alias="openingInventory")
    daily_records: list[DailyRecord] = Field(default_factory=list, alias="dailyRecords")


# --- Derived views ---


class DayPoint(CamelModel):
    label: str
    day_sequence: int = Field(..., alias="daySequence")
    inventory_level: int = Field(..., alias="inventoryLevel")
    procurement_amount: Optional[Decimal] = Field(default=None, alias="procurementAmount")
    sales_amount: Optional[Decimal] = Field(default=None, alias="salesAmount")
    procurement_qty: Optional[int] = Field(default=None, alias="procurementQty")
    procurement_price: Optional[Decimal] = Field(default=None, alias="procurementPrice")
    sales_qty: Optional[int] = Field(default=None, alias="salesQty")
    sales_price: Optional[Decimal] = Field(default=None, alias="salesPrice")


class Summary(CamelModel):
    total_procurement_value: Decimal = Field(..., alias="totalProcurementValue")
    total_sales_value: Decimal = Field(..., alias="totalSalesValue")
    final_inventory: int = Field(..., alias="finalInventory")
    has_negative_inventory: bool = Field(..., alias="hasNegativeInventory")


class DerivedTimeline(CamelModel):
    timeline: list[DayPoint]
    summary: Summary


class ProductWithTimeline(CamelModel):
    id: str
    product_code: str = Field(..., alias="productCode")
    product_name: str = Field(..., alias="productName")
    opening_inventory: int = Field(..., alias="openingInventory")
    timeline: list[DayPoint]
    summary: Summary


class DetailSummary(Summary):
    opening_inventory: int = Field(..., alias="openingInventory")
    total_procurement_qty: int = Field(..., alias="totalProcurementQty")
    total_sales_qty: int = Field(..., alias="totalSalesQty")
    inventory_change: int = Field(..., alias="inventoryChange")
    days_with_data: int = Field(..., alias="daysWithData")
    average_procurement_price: Optional[Decimal] = Field(
        default=None, alias="averageProcurementPrice"
    )
    average_sales_price: Optional[Decimal] = Field(default=None, alias="averageSalesPrice")


class ProductDetail(CamelModel):
    id: str
    product_code: str = Field(..., alias="productCode")
    product_name: str = Field(..., alias="productName")
    opening_inventory: int = Field(..., alias="openingInventory")
    timeline: list[DayPoint]
    summary: DetailSummary


class AuditIssue(CamelModel):
    product_code: str = Field(..., alias="productCode")
    day_sequence: Optional[int] = Field(default=None, alias="daySequence")
    type: Literal[
        "calculation_error",
        "inventory_flow_error",
        "extreme_negative_inventory",
        "negative_inventory",
    ]
    message: str


class AuditReport(CamelModel):
    is_valid: bool = Field(..., alias="isValid")
    errors: list[AuditIssue] = Field(default_factory=list)
    warnings: list[AuditIssue] = Field(default_factory=list)


class BatchSummary(CamelModel):
    product_count: int = Field(..., alias="productCount")
    total_opening_inventory: int = Field(..., alias="totalOpeningInventory")
    total_final_inventory: int = Field(..., alias="totalFinalInventory")
    total_procurement_value: Decimal = Field(..., alias="totalProcurementValue")
    total_sales_value: Decimal = Field(..., alias="totalSalesValue")
    products_with_negative_inventory: list[str] = Field(
        default_factory=list, alias="productsWithNegativeInventory"
    )


# --- Comparison ---


class SeriesValues(CamelModel):
    product_code: str = Field(..., alias="productCode")
    inventory_level: int = Field(..., alias="inventoryLevel")
    procurement_amount: Optional[Decimal] = Field(default=None, alias="procurementAmount")
    sales_amount: Optional[Decimal] = Field(default=None, alias="salesAmount")
    procurement_qty: Optional[int] = Field(default=None, alias="procurementQty")
    procurement_price: Optional[Decimal] = Field(default=None, alias="procurementPrice")
    sales_qty: Optional[int] = Field(default=None, alias="salesQty")
    sales_price: Optional[Decimal] = Field(default=None, alias="salesPrice")


class ComparisonPoint(CamelModel):
    label: str
    day_sequence: int = Field(..., alias="daySequence")
    # Keyed by product id, in selection order.
    series: dict[str, SeriesValues] = Field(default_factory=dict)


# --- Import manifest ---


class ImportManifest(CamelModel):
    batch_id: str = Field(..., alias="batchId")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    total_rows: int = Field(..., alias="totalRows")
    valid_rows: int = Field(..., alias="validRows")
    skipped_rows: int = Field(..., alias="skippedRows")
    products_created: int = Field(..., alias="productsCreated")
    daily_records_created: int = Field(..., alias="dailyRecordsCreated")
    processing_time_ms: int = Field(..., alias="processingTimeMs")
    duplicate_codes: list[str] = Field(default_factory=list, alias="duplicateCodes")
    rejections: list[RowRejection] = Field(default_factory=list)
    warnings: list[RowWarning] = Field(default_factory=list)


# --- Flat rows (one CSV line each) ---


class StoredRecordRow(CamelModel):
    """
    Long-format contract for stored records: one line per product per day.
    A product without any day still gets one line with an empty daySequence.
    """

    id: str
    product_code: str = Field(..., alias="productCode")
    product_name: str = Field(..., alias="productName")
    opening_inventory: int = Field(..., alias="openingInventory")
    day_sequence: Optional[int] = Field(default=None, alias="daySequence")
    procurement_qty: Optional[int] = Field(default=None, alias="procurementQty")
    procurement_price: Optional[Decimal] = Field(default=None, alias="procurementPrice")
    procurement_amount: Optional[Decimal] = Field(default=None, alias="procurementAmount")
    sales_qty: Optional[int] = Field(default=None, alias="salesQty")
    sales_price: Optional[Decimal] = Field(default=None, alias="salesPrice")
    sales_amount: Optional[Decimal] = Field(default=None, alias="salesAmount")
    inventory_level: Optional[int] = Field(default=None, alias="inventoryLevel")
    source_row: Optional[int] = Field(default=None, alias="sourceRow")

    @field_validator("id", "product_code", "product_name", mode="before")
    @classmethod
    def _text(cls, value):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return value if value is None else str(value).strip()

    @field_validator(
        "day_sequence",
        "procurement_qty",
        "sales_qty",
        "inventory_level",
        "source_row",
        mode="before",
    )
    @classmethod
    def _clean_int(cls, value):
        return _blank_to_none(value)

    @field_validator(
        "procurement_price",
        "procurement_amount",
        "sales_price",
        "sales_amount",
        mode="before",
    )
    @classmethod
    def _clean_decimal(cls, value):
        value = _blank_to_none(value)
        return to_decimal(value) if isinstance(value, float) else value


class TimelineRow(CamelModel):
    """One derived day point of one product, flattened for the chart CSV."""

    id: str
    product_code: str = Field(..., alias="productCode")
    product_name: str = Field(..., alias="productName")
    label: str
    day_sequence: int = Field(..., alias="daySequence")
    inventory_level: int = Field(..., alias="inventoryLevel")
    procurement_amount: Optional[Decimal] = Field(default=None, alias="procurementAmount")
    sales_amount: Optional[Decimal] = Field(default=None, alias="salesAmount")
    procurement_qty: Optional[int] = Field(default=None, alias="procurementQty")
    procurement_price: Optional[Decimal] = Field(default=None, alias="procurementPrice")
    sales_qty: Optional[int] = Field(default=None, alias="salesQty")
    sales_price: Optional[Decimal] = Field(default=None, alias="salesPrice")
