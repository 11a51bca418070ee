"""
Currency Utilities

All money is handled as Decimal and rounded HALF_UP to cents, so
3 sessions x €15.50 is exactly €46.50 and never 46.50000000001.

Non-numeric input (NaN, Infinity, None, garbage strings) becomes 0.00;
nothing here raises. Commas are accepted only as thousands separators
("1,250.00"); a decimal comma ("12,50") is not a number here.
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

Money = Union[Decimal, float, int, str, None]

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')
THOUSANDS_PATTERN = re.compile(r'^[+-]?\d{1,3}(,\d{3})+(\.\d*)?$')


def to_decimal(value: Money) -> Decimal:
    """
    Convert a number to a finite Decimal.

    Floats go through their shortest repr ("33.33", not the binary expansion).
    """
    if value is None or isinstance(value, bool):
        return ZERO

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(repr(value))
        else:
            text = str(value).strip()
            if THOUSANDS_PATTERN.match(text):
                text = text.replace(',', '')
            result = Decimal(text)
    except (InvalidOperation, ValueError):
        return ZERO

    if not result.is_finite():
        return ZERO
    return result


def _quantize(value: Decimal) -> Decimal:
    # Very large values need more digits than the default context has
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def round_to_cents(value: Money) -> Decimal:
    """
    Round to 2 decimal places (HALF_UP)

    Examples:
        46.50000000001 -> 46.50
        123.456        -> 123.46
        0.125          -> 0.13
    """
    return _quantize(to_decimal(value))


def multiply_and_round(value: Money, multiplier: int) -> Decimal:
    """Exact price x count, rounded to cents"""
    return _quantize(to_decimal(value) * to_decimal(multiplier))


def add_and_round(value: Money, other: Money) -> Decimal:
    """Exact addition for running totals, rounded to cents"""
    return _quantize(to_decimal(value) + to_decimal(other))


def to_float(value: Money) -> float:
    """Display/serialization boundary only"""
    return float(round_to_cents(value))


def format_currency(value: Money, symbol: str = '€') -> str:
    return f"{symbol}{round_to_cents(value):,.2f}"
