from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from boutique.core.constants import CENT, ZERO


def to_decimal(value, default=ZERO):
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the short repr, so 59.9 stays 59.9 instead of 59.899999...
        value = str(value)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def truncate_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def money_sum(values) -> Decimal:
    return sum(values, ZERO)
