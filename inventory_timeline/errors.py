"""
Typed exceptions for the inventory timeline core.

Every exception carries a machine-readable ``code`` class attribute so
callers (and import manifests) can branch on the type instead of parsing
messages.

    InventoryTimelineError
    +-- RowValidationError          (MISSING_FIELD, NEGATIVE_VALUE, INVALID_VALUE)
    +-- ProductNotFoundError        (NOT_FOUND)
    +-- InternalComputationError    (INTERNAL_COMPUTATION)
"""

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    NEGATIVE_VALUE = "NegativeValue"
    INVALID_VALUE = "InvalidValue"
    NOT_FOUND = "NotFound"
    INTERNAL_COMPUTATION = "InternalComputation"


class InventoryTimelineError(Exception):
    """Base exception for all inventory timeline errors."""

    code: str = "INVENTORY_TIMELINE_ERROR"


class RowValidationError(InventoryTimelineError):
    """A candidate row failed an ingestion rule and must not be stored."""

    code: str = "ROW_VALIDATION_ERROR"

    def __init__(
        self,
        kind: ErrorKind,
        field: str,
        message: str,
        row_index: int | None = None,
        value=None,
    ):
        self.kind = kind
        self.field = field
        self.row_index = row_index
        self.value = value
        self.message = message
        location = f"row {row_index}: " if row_index is not None else ""
        super().__init__(f"{location}{kind.value} on '{field}': {message}")


class ProductNotFoundError(InventoryTimelineError):
    code: str = "PRODUCT_NOT_FOUND"
    kind = ErrorKind.NOT_FOUND

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InternalComputationError(InventoryTimelineError):
    """Raised only when a caller breaks the engine's input contract."""

    code: str = "INTERNAL_COMPUTATION"
    kind = ErrorKind.INTERNAL_COMPUTATION

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Internal computation error: {reason}")
