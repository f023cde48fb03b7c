from datetime import date
from decimal import Decimal
from typing import List

from boutique.core.constants import STATUS_PAID, STATUS_PENDING, ZERO
from boutique.core.dates import add_months_clamped
from boutique.core.errors import LedgerValidationError
from boutique.core.money import truncate_cents
from boutique.schemas.sale import Installment


def split_amount(total: Decimal, count: int) -> List[Decimal]:
    """Equal shares truncated to the cent; the last share takes the remainder."""
    if count < 1:
        raise LedgerValidationError("Installment count must be at least 1.")
    share = truncate_cents(total / count)
    shares = [share] * (count - 1)
    shares.append(total - share * (count - 1))
    return shares


def build_cash_schedule(total: Decimal, sale_date: date, allocator) -> List[Installment]:
    return [
        Installment(
            id=allocator.new_id(),
            amount=total,
            paid_amount=total,
            due_date=sale_date,
            status=STATUS_PAID,
        )
    ]


def build_credit_schedule(
    total: Decimal,
    count: int,
    due_day: int,
    sale_date: date,
    allocator,
    max_installments: int = 24,
) -> List[Installment]:
    if count < 1 or count > max_installments:
        raise LedgerValidationError(
            "Installment count must be between 1 and {}.".format(max_installments)
        )
    if due_day < 1 or due_day > 31:
        raise LedgerValidationError("Due day must be between 1 and 31.")

    installments = []
    for index, amount in enumerate(split_amount(total, count), start=1):
        installments.append(
            Installment(
                id=allocator.new_id(),
                amount=amount,
                paid_amount=ZERO,
                due_date=add_months_clamped(sale_date, index, due_day),
                status=STATUS_PENDING,
            )
        )
    return installments


def attach_sale_id(installments: List[Installment], sale_id: str) -> List[Installment]:
    return [item.model_copy(update={"sale_id": sale_id}) for item in installments]
