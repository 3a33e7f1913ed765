# spinwheel/utils/money.py

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP, InvalidOperation

Money = Decimal

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def floor_money(x: Money) -> Money:
    # whole currency units, rounding towards -inf
    return D(x).to_integral_value(rounding=ROUND_FLOOR)

def parse_money(x) -> Money | None:
    """Parse a client-supplied amount; None for anything non-numeric, negative or non-finite."""
    if isinstance(x, bool) or x is None:
        return None
    try:
        value = Decimal(str(x).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value

def as_number(x):
    # JSON-friendly: whole amounts as int, otherwise float
    x = D(x)
    return int(x) if x == x.to_integral_value() else float(x)

# largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")
