from typing import TYPE_CHECKING, Iterable

from boutique.core.constants import STATUS_PAID, STATUS_PARTIAL, STATUS_PENDING, ZERO
from boutique.core.errors import LedgerNotFoundError

if TYPE_CHECKING:
    from boutique.schemas.sale import Installment, Sale


def mark_paid(installment: "Installment") -> "Installment":
    return installment.model_copy(
        update={"paid_amount": installment.amount, "status": STATUS_PAID}
    )


def reverse_payment(installment: "Installment") -> "Installment":
    return installment.model_copy(update={"paid_amount": ZERO, "status": STATUS_PENDING})


def derive_sale_status(installments: Iterable["Installment"]) -> str:
    items = list(installments)
    if all(item.status == STATUS_PAID for item in items):
        return STATUS_PAID
    if any(item.status == STATUS_PAID or item.paid_amount > ZERO for item in items):
        return STATUS_PARTIAL
    return STATUS_PENDING


def apply_installment_payment(sale: "Sale", installment_id: str, paid: bool) -> "Sale":
    """Toggle one installment and return the sale with its status recomputed."""
    updated = []
    found = False
    for item in sale.installments:
        if item.id == installment_id:
            found = True
            item = mark_paid(item) if paid else reverse_payment(item)
        updated.append(item)
    if not found:
        raise LedgerNotFoundError(
            "Installment {} not found on sale {}.".format(installment_id, sale.id)
        )
    return sale.model_copy(
        update={"installments": updated, "status": derive_sale_status(updated)}
    )
