"""
Optional-number arithmetic.

An absent quantity or price means "nothing was reported", which is not the
same as a reported zero. The two combinators below encode the two ways the
core treats absence, and they must not be swapped:

- ``add_or_zero``: absent deltas are no-ops (inventory roll-forward).
- ``propagate_null``: any absent factor makes the result absent (amounts).
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional

ZERO = Decimal("0")


def to_decimal(value) -> Optional[Decimal]:
    """Converts a price-like value to an exact Decimal, keeping None as None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    # Floats go through str() so 10.5 becomes Decimal("10.5"), not its binary expansion.
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def add_or_zero(running: int, inflow: Optional[int], outflow: Optional[int]) -> int:
    return running + (inflow or 0) - (outflow or 0)


def propagate_null(func: Callable, *args):
    """Applies ``func`` only when every argument is present."""
    if any(arg is None for arg in args):
        return None
    return func(*args)


def multiply(qty: Optional[int], price: Optional[Decimal]) -> Optional[Decimal]:
    return propagate_null(lambda q, p: Decimal(q) * to_decimal(p), qty, price)


def sum_present(values: Iterable[Optional[Decimal]]) -> Decimal:
    """Sums the present values; absent ones contribute nothing."""
    return sum((v for v in values if v is not None), ZERO)


def mean_present(values: Iterable[Optional[Decimal]]) -> Optional[Decimal]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present, ZERO) / len(present)
