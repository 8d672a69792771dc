"""Unit tests for delinquency snapshot calculation"""

import pytest
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta
from credit_ledger.domain.models import (
    Color,
    Icon,
    Installment,
    Movement,
    MovementStatus,
    MovementType,
    NO_PAYMENT_SENTINEL,
)
from credit_ledger.domain.allocation import allocate_movements
from credit_ledger.domain.delinquency import (
    calculate_snapshot,
    changed_fields,
    initial_snapshot,
    pick_color,
    snapshot_changed,
)
from credit_ledger.domain.exceptions import DataIntegrityError

TOTAL_CENTS = 13_200
QUANTITY = 20
FIRST_DUE = date(2024, 1, 2)
FINAL_DUE = FIRST_DUE + timedelta(days=QUANTITY - 1)  # 2024-01-21


def schedule() -> list[Installment]:
    return [
        Installment(payment_number=n, due_date=FIRST_DUE + timedelta(days=n - 1), amount_cents=660)
        for n in range(1, QUANTITY + 1)
    ]


def deposit(amount_cents: int, status: MovementStatus = MovementStatus.VALIDATED) -> Movement:
    created_at = datetime(2024, 1, 2, 10, 30)
    return Movement(
        id=uuid.uuid4(),
        amount_cents=amount_cents,
        type=MovementType.IN,
        status=status,
        created_at=created_at,
        movement_date=created_at.date(),
    )


def snapshot_for(movements: list[Movement], today: date, previous=None):
    installments = allocate_movements(schedule(), movements)
    payment_days = [inst.due_date for inst in installments]
    return calculate_snapshot(installments, movements, payment_days, TOTAL_CENTS, QUANTITY, today, previous)


def test_single_installment_paid():
    """Test one exact payment on the first due date"""
    movement = deposit(660)
    snapshot = snapshot_for([movement], FIRST_DUE)

    assert snapshot.payed_amount_cents == 660
    assert snapshot.pending_amount_cents == 12_540
    assert snapshot.payments_up_to_date == 1
    assert snapshot.payments_remaining == 19
    assert snapshot.payments_late == 0
    assert snapshot.days_pending == 19
    assert snapshot.icon == Icon.TARGET
    assert snapshot.last_payment_at == movement.created_at


def test_spill_over_counts_incomplete_and_ahead():
    """Test 20.00 on day one: two complete, third partial and both ahead"""
    snapshot = snapshot_for([deposit(2000)], FIRST_DUE)

    assert snapshot.pending_amount_cents == 11_200
    assert snapshot.payments_up_to_date == 2
    assert snapshot.payments_incomplete == 1
    assert snapshot.days_ahead == 2
    assert snapshot.today_incomplete is False
    assert snapshot.color == Color.GREEN


def test_partial_payment_due_today():
    """Test a half-paid installment due today"""
    snapshot = snapshot_for([deposit(300)], FIRST_DUE)

    assert snapshot.today_incomplete is True
    assert snapshot.payments_incomplete == 1
    assert snapshot.amount_late_or_incomplete_cents == 300
    assert snapshot.payments_late == 0


def test_unpaid_installments_due_today_count_as_late():
    """Test more than three late installments turn the contract orange"""
    snapshot = snapshot_for([], FIRST_DUE + timedelta(days=3))

    assert snapshot.payments_late == 4
    assert snapshot.color == Color.ORANGE
    assert snapshot.icon == Icon.DEFAULT
    assert snapshot.last_payment_at == NO_PAYMENT_SENTINEL


def test_pending_deposits_do_not_reduce_balance():
    """Test unvalidated money is reported but not subtracted"""
    movement = deposit(660, status=MovementStatus.PENDING)
    snapshot = snapshot_for([movement], FIRST_DUE)

    assert snapshot.not_validated_amount_cents == 660
    assert snapshot.payed_amount_cents == 0
    assert snapshot.pending_amount_cents == TOTAL_CENTS
    assert snapshot.last_payment_at == movement.created_at


def test_outdated_with_balance_is_expired_and_red():
    """Test past the final due date with money owed"""
    today = FINAL_DUE + timedelta(days=11)
    snapshot = snapshot_for([deposit(660)], today)

    assert snapshot.is_outdated is True
    assert snapshot.days_expired == 11
    assert snapshot.color == Color.RED


def test_paid_off_contract_past_final_date_reads_outdated_without_expired_days():
    """Test the outdated flag ignores the balance while expired days require one"""
    snapshot = snapshot_for([deposit(TOTAL_CENTS)], FINAL_DUE + timedelta(days=5))

    assert snapshot.pending_amount_cents == 0
    assert snapshot.is_outdated is True
    assert snapshot.days_expired == 0
    assert snapshot.color == Color.GREEN


def test_balance_invariant_holds():
    """Test pending always equals total minus validated money"""
    for amount in (0, 1, 660, 2000, TOTAL_CENTS):
        movements = [deposit(amount)] if amount else []
        snapshot = snapshot_for(movements, FIRST_DUE)
        assert snapshot.pending_amount_cents == TOTAL_CENTS - snapshot.payed_amount_cents


def test_lifecycle_flags_carried_from_previous_snapshot():
    """Test calculator never resets flags owned by lifecycle rules"""
    previous = replace(initial_snapshot(TOTAL_CENTS, QUANTITY), is_client_updated_for_outdated=True, is_active=False)
    snapshot = snapshot_for([], FIRST_DUE, previous)

    assert snapshot.is_client_updated_for_outdated is True
    assert snapshot.is_active is False


def test_empty_schedule_is_integrity_error():
    """Test a contract without payment days cannot be classified"""
    with pytest.raises(DataIntegrityError):
        calculate_snapshot([], [], [], TOTAL_CENTS, QUANTITY, FIRST_DUE)


def test_initial_snapshot():
    """Test a new contract starts green with the whole balance pending"""
    snapshot = initial_snapshot(TOTAL_CENTS, QUANTITY)

    assert snapshot.pending_amount_cents == TOTAL_CENTS
    assert snapshot.payments_remaining == QUANTITY
    assert snapshot.color == Color.GREEN
    assert snapshot.icon == Icon.CHECK
    assert snapshot.last_payment_at == NO_PAYMENT_SENTINEL


def test_pick_color_prepaid_overrides_red():
    """Test any installment paid ahead wins over an expired balance"""
    assert pick_color(payments_late=5, payments_incomplete=1, days_pending=3, days_expired=4, days_ahead=0) == Color.RED
    assert pick_color(payments_late=5, payments_incomplete=1, days_pending=3, days_expired=4, days_ahead=1) == Color.GREEN
    assert pick_color(payments_late=1, payments_incomplete=0, days_pending=5, days_expired=0, days_ahead=0) == Color.DEFAULT


def test_snapshot_changed_ignores_lifecycle_flags():
    """Test change detection only looks at calculator-owned fields"""
    current = initial_snapshot(TOTAL_CENTS, QUANTITY)

    assert snapshot_changed(current, replace(current, is_active=False)) is False
    assert snapshot_changed(None, current) is True
    assert changed_fields(current, replace(current, payments_late=2, color=Color.ORANGE)) == ["payments_late", "color"]
