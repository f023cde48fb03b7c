from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from boutique.core.money import to_decimal


class LedgerModel(BaseModel):
    """Base for stored records: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def money_or_zero(value):
    if value is None or value == "":
        return Decimal("0")
    return value


def coerce_money(value):
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return to_decimal(value, default=value)
    return value
