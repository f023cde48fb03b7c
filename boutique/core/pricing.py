from decimal import Decimal
from typing import NamedTuple

from boutique.core.constants import ZERO
from boutique.core.errors import LedgerValidationError
from boutique.core.money import to_decimal


class SalePricing(NamedTuple):
    base_amount: Decimal
    discount: Decimal
    total_amount: Decimal
    card_fee_rate: Decimal
    card_fee_amount: Decimal
    net_amount: Decimal


def price_sale(base_amount, discount=ZERO, card_fee_rate=ZERO) -> SalePricing:
    """Gross price -> discount -> card fee -> net.

    ``discount`` is a currency amount and ``card_fee_rate`` a percentage.
    The total never goes below zero; a fee rate above 100 is accepted and
    yields a negative net amount.
    """
    base = to_decimal(base_amount, default=None)
    discount = to_decimal(discount, default=None)
    rate = to_decimal(card_fee_rate, default=None)
    if base is None or discount is None or rate is None:
        raise LedgerValidationError("Amounts must be numeric.")
    if base < ZERO:
        raise LedgerValidationError("Base amount must be non-negative.")
    if discount < ZERO:
        raise LedgerValidationError("Discount must be non-negative.")
    if rate < ZERO:
        raise LedgerValidationError("Card fee rate must be non-negative.")

    total = max(ZERO, base - discount)
    fee = total * rate / 100
    return SalePricing(
        base_amount=base,
        discount=discount,
        total_amount=total,
        card_fee_rate=rate,
        card_fee_amount=fee,
        net_amount=total - fee,
    )


def sale_profit(net_amount: Decimal, total_cost: Decimal) -> Decimal:
    return net_amount - total_cost


def profit_margin(net_amount: Decimal, total_cost: Decimal) -> Decimal:
    if net_amount <= ZERO:
        return ZERO
    return sale_profit(net_amount, total_cost) / net_amount * 100
