"""Fixed-point money helpers shared by the balance calculator and the debt simplifier."""
from decimal import Decimal, ROUND_HALF_UP

# Smallest currency unit. Balances and transfers are whole multiples of it.
MINOR_UNIT = Decimal("0.01")

# Anything smaller than this is treated as already settled.
EPSILON = MINOR_UNIT

ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """Convert an int, str or Decimal to a Decimal rounded to the minor unit."""
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        value = str(value)
    return Decimal(value).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    return int(to_money(amount) / MINOR_UNIT)


def from_minor_units(units: int) -> Decimal:
    return (Decimal(units) * MINOR_UNIT).quantize(MINOR_UNIT)


def is_negligible(amount: Decimal) -> bool:
    return abs(amount) < EPSILON
