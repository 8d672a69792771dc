"""Delinquency calculator - derives a contract's collections-risk snapshot"""

from dataclasses import replace
from datetime import date
from typing import Iterable, List, Sequence

from credit_ledger.domain.exceptions import DataIntegrityError
from credit_ledger.domain.models import (
    Color,
    DelinquencySnapshot,
    Icon,
    Installment,
    Movement,
    MovementStatus,
    MovementType,
    NO_PAYMENT_SENTINEL,
)

# More overdue installments than this turn a contract orange
LATE_PAYMENTS_WARNING = 3

# Fields owned by the calculator; lifecycle flags are excluded
DERIVED_FIELDS = (
    "payed_amount_cents",
    "not_validated_amount_cents",
    "pending_amount_cents",
    "payments_late",
    "payments_up_to_date",
    "payments_incomplete",
    "payments_remaining",
    "days_expired",
    "days_ahead",
    "days_pending",
    "today_incomplete",
    "is_outdated",
    "amount_late_or_incomplete_cents",
    "color",
    "icon",
    "last_payment_at",
)


def initial_snapshot(total_amount_cents: int, payments_quantity: int) -> DelinquencySnapshot:
    """Snapshot of a freshly originated contract"""
    return DelinquencySnapshot(
        payed_amount_cents=0,
        not_validated_amount_cents=0,
        pending_amount_cents=total_amount_cents,
        payments_late=0,
        payments_up_to_date=0,
        payments_incomplete=0,
        payments_remaining=payments_quantity,
        days_expired=0,
        days_ahead=0,
        days_pending=0,
        today_incomplete=False,
        is_outdated=False,
        amount_late_or_incomplete_cents=0,
        color=Color.GREEN,
        icon=Icon.CHECK,
        last_payment_at=NO_PAYMENT_SENTINEL,
    )


def pick_color(
    payments_late: int,
    payments_incomplete: int,
    days_pending: int,
    days_expired: int,
    days_ahead: int,
) -> Color:
    """
    Map counters to the dashboard color.

    Later rules win:
    - orange: more than 3 late installments and nothing prepaid
    - red: past the final due date with a balance and nothing prepaid
    - green: any prepaid installment, or nothing late/incomplete/pending/expired
    """
    color = Color.DEFAULT

    if payments_late > LATE_PAYMENTS_WARNING and days_ahead == 0:
        color = Color.ORANGE

    if days_expired > 0 and days_ahead == 0:
        color = Color.RED

    if days_ahead > 0:
        color = Color.GREEN

    if payments_incomplete == 0 and days_pending == 0 and days_expired == 0 and payments_late == 0:
        color = Color.GREEN

    return color


def calculate_snapshot(
    installments: Sequence[Installment],
    movements: Iterable[Movement],
    payment_days: Sequence[date],
    total_amount_cents: int,
    payments_quantity: int,
    today: date,
    previous: DelinquencySnapshot | None = None,
) -> DelinquencySnapshot:
    """
    Classify allocated installments against today and aggregate one snapshot.

    pending_amount ignores unconfirmed deposits: only validated money reduces
    what is owed. days_expired requires an open balance while is_outdated
    does not, so a fully paid contract past its final date reads outdated
    with zero expired days.

    Args:
        installments: Output of the allocator
        movements: Full movement history of the contract
        payment_days: Full schedule; its last date is the final due date
        today: Business date, fixed for the whole pass
        previous: Prior snapshot whose lifecycle flags are carried forward
    """
    if not payment_days:
        raise DataIntegrityError("Contract has no payment days")

    incoming = [m for m in movements if m.type == MovementType.IN]
    payed_amount = sum(m.amount_cents for m in incoming if m.status == MovementStatus.VALIDATED)
    not_validated_amount = sum(m.amount_cents for m in incoming if m.status == MovementStatus.PENDING)
    pending_amount = total_amount_cents - payed_amount

    final_due_date = max(payment_days)
    is_outdated = today > final_due_date

    payments_late = 0
    payments_up_to_date = 0
    payments_incomplete = 0
    days_ahead = 0
    days_pending = 0
    today_incomplete = False
    today_has_payments = False
    amount_late_or_incomplete = 0

    for inst in installments:
        is_today = inst.due_date == today

        if not inst.is_complete and inst.paid_cents > 0:
            payments_incomplete += 1
            if is_today:
                amount_late_or_incomplete += inst.paid_cents
                today_incomplete = True

        if is_today and inst.paid_cents > 0:
            today_has_payments = True

        if inst.paid_cents == 0:
            days_pending += 1
            if inst.due_date <= today:
                payments_late += 1

        if inst.due_date > today and inst.paid_cents > 0:
            days_ahead += 1

        if inst.is_complete:
            payments_up_to_date += 1

    days_expired = (today - final_due_date).days if is_outdated and pending_amount > 0 else 0

    last_movement = max(
        (m for m in incoming if m.status in (MovementStatus.VALIDATED, MovementStatus.PENDING)),
        key=lambda m: m.created_at,
        default=None,
    )

    snapshot = DelinquencySnapshot(
        payed_amount_cents=payed_amount,
        not_validated_amount_cents=not_validated_amount,
        pending_amount_cents=pending_amount,
        payments_late=payments_late,
        payments_up_to_date=payments_up_to_date,
        payments_incomplete=payments_incomplete,
        payments_remaining=payments_quantity - payments_up_to_date,
        days_expired=days_expired,
        days_ahead=days_ahead,
        days_pending=days_pending,
        today_incomplete=today_incomplete,
        is_outdated=is_outdated,
        amount_late_or_incomplete_cents=amount_late_or_incomplete,
        color=pick_color(payments_late, payments_incomplete, days_pending, days_expired, days_ahead),
        icon=Icon.TARGET if today_has_payments else Icon.DEFAULT,
        last_payment_at=last_movement.created_at if last_movement else NO_PAYMENT_SENTINEL,
    )

    if previous is not None:
        snapshot = replace(
            snapshot,
            is_client_updated_for_outdated=previous.is_client_updated_for_outdated,
            is_active=previous.is_active,
        )
    return snapshot


def changed_fields(current: DelinquencySnapshot | None, updated: DelinquencySnapshot) -> List[str]:
    """Names of derived fields that differ between two snapshots"""
    if current is None:
        return list(DERIVED_FIELDS)
    return [name for name in DERIVED_FIELDS if getattr(current, name) != getattr(updated, name)]


def snapshot_changed(current: DelinquencySnapshot | None, updated: DelinquencySnapshot) -> bool:
    return bool(changed_fields(current, updated))
