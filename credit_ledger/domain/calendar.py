"""Per-installment status view for a contract's payment calendar"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Sequence

from credit_ledger.domain.models import Installment


class InstallmentStatus(str, Enum):
    PAID = "paid"
    PARTIAL = "partial"
    LATE = "late"
    DUE = "due"
    AHEAD = "ahead"


@dataclass(frozen=True)
class PartialInstallment:
    payment_number: int
    outstanding_cents: int


def installment_status(inst: Installment, today: date) -> InstallmentStatus:
    # Prepaid future installments show as ahead even when complete
    if inst.due_date > today and inst.paid_cents > 0:
        return InstallmentStatus.AHEAD
    if inst.is_complete:
        return InstallmentStatus.PAID
    if inst.paid_cents > 0:
        return InstallmentStatus.PARTIAL
    if inst.due_date <= today:
        return InstallmentStatus.LATE
    return InstallmentStatus.DUE


def installment_statuses(installments: Sequence[Installment], today: date) -> List[InstallmentStatus]:
    return [installment_status(inst, today) for inst in installments]


def next_partial_installment(installments: Sequence[Installment]) -> PartialInstallment | None:
    """The installment a collector should finish next, if one is half paid"""
    partial = None
    for inst in installments:
        if not inst.is_complete and inst.paid_cents > 0:
            partial = PartialInstallment(inst.payment_number, inst.outstanding_cents)
    return partial
