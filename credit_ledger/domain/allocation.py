"""Waterfall allocation of collected movements onto installments"""

from dataclasses import replace
from typing import Iterable, List, Sequence

from credit_ledger.domain.models import Installment, Movement


def reset_installments(installments: Iterable[Installment]) -> List[Installment]:
    """Zeroed copies ordered by payment number"""
    return [
        replace(inst, paid_cents=0, is_complete=False, linked_movement_ids=())
        for inst in sorted(installments, key=lambda i: i.payment_number)
    ]


def collected_movements(movements: Iterable[Movement]) -> List[Movement]:
    """Validated incoming movements in ledger order (stable on equal timestamps)"""
    return sorted((m for m in movements if m.is_collected), key=lambda m: m.created_at)


def allocate_movements(installments: Sequence[Installment], movements: Iterable[Movement]) -> List[Installment]:
    """
    Reconcile a contract's full movement history against its installments.

    Each movement fills the earliest unpaid installment first and spills the
    remainder forward. Money beyond the last installment stays unapplied; no
    installment is ever paid above its nominal amount. Inputs are not mutated
    and the result depends only on the inputs.

    Returns:
        New installment list ordered by payment number
    """
    ledger = reset_installments(installments)

    for movement in collected_movements(movements):
        remaining = movement.amount_cents
        if remaining <= 0:
            continue

        for index, inst in enumerate(ledger):
            if inst.paid_cents >= inst.amount_cents:
                continue

            applied = min(remaining, inst.amount_cents - inst.paid_cents)
            paid = inst.paid_cents + applied
            links = inst.linked_movement_ids
            if movement.id not in links:
                links = links + (movement.id,)

            ledger[index] = replace(
                inst,
                paid_cents=paid,
                is_complete=paid >= inst.amount_cents,
                linked_movement_ids=links,
            )

            remaining -= applied
            if remaining <= 0:
                break

    return ledger


def unapplied_cents(installments: Sequence[Installment], movements: Iterable[Movement]) -> int:
    """Collected money that no installment could absorb"""
    collected = sum(m.amount_cents for m in collected_movements(movements) if m.amount_cents > 0)
    return max(collected - sum(inst.paid_cents for inst in installments), 0)
