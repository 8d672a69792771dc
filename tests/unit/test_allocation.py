"""Unit tests for waterfall payment allocation"""

import uuid
from datetime import date, datetime, timedelta
from credit_ledger.domain.models import Installment, Movement, MovementStatus, MovementType
from credit_ledger.domain.allocation import allocate_movements, reset_installments, unapplied_cents


def make_installments(count: int = 20, amount_cents: int = 660) -> list[Installment]:
    first_due = date(2024, 1, 2)
    return [
        Installment(payment_number=n, due_date=first_due + timedelta(days=n - 1), amount_cents=amount_cents)
        for n in range(1, count + 1)
    ]


def make_movement(
    amount_cents: int,
    minute: int = 0,
    type: MovementType = MovementType.IN,
    status: MovementStatus = MovementStatus.VALIDATED,
) -> Movement:
    created_at = datetime(2024, 1, 2, 10, 0) + timedelta(minutes=minute)
    return Movement(
        id=uuid.uuid4(),
        amount_cents=amount_cents,
        type=type,
        status=status,
        created_at=created_at,
        movement_date=created_at.date(),
    )


def test_exact_installment_payment():
    """Test a payment equal to one installment completes exactly that one"""
    movement = make_movement(660)
    result = allocate_movements(make_installments(), [movement])

    assert result[0].paid_cents == 660
    assert result[0].is_complete is True
    assert result[0].linked_movement_ids == (movement.id,)
    assert all(inst.paid_cents == 0 for inst in result[1:])


def test_payment_spills_forward():
    """Test 20.00 covers installments 1 and 2 and leaves 6.80 on the third"""
    movement = make_movement(2000)
    result = allocate_movements(make_installments(), [movement])

    assert [inst.is_complete for inst in result[:3]] == [True, True, False]
    assert result[2].paid_cents == 680
    assert result[3].paid_cents == 0
    assert all(movement.id in inst.linked_movement_ids for inst in result[:3])
    assert sum(inst.paid_cents for inst in result) == 2000


def test_movements_applied_in_creation_order():
    """Test earlier movements fill earlier installments regardless of input order"""
    first = make_movement(400, minute=0)
    second = make_movement(400, minute=5)
    result = allocate_movements(make_installments(), [second, first])

    assert result[0].linked_movement_ids == (first.id, second.id)
    assert result[1].linked_movement_ids == (second.id,)
    assert result[1].paid_cents == 140


def test_only_validated_incoming_money_counts():
    """Test pending deposits and outgoing movements are ignored"""
    movements = [
        make_movement(660, status=MovementStatus.PENDING),
        make_movement(10_000, type=MovementType.OUT),
        make_movement(660, type=MovementType.FINAL),
    ]
    result = allocate_movements(make_installments(), movements)
    assert all(inst.paid_cents == 0 and inst.linked_movement_ids == () for inst in result)


def test_overpayment_stays_unapplied():
    """Test money beyond the schedule never overfills an installment"""
    installments = make_installments(count=3)
    movements = [make_movement(2500)]
    result = allocate_movements(installments, movements)

    assert all(inst.is_complete and inst.paid_cents == 660 for inst in result)
    assert unapplied_cents(result, movements) == 2500 - 3 * 660


def test_allocation_is_idempotent_and_pure():
    """Test re-running over the previous output gives the same ledger"""
    installments = make_installments()
    movements = [make_movement(1000, minute=0), make_movement(555, minute=3)]

    first = allocate_movements(installments, movements)
    second = allocate_movements(first, movements)

    assert first == second
    assert all(inst.paid_cents == 0 for inst in installments)


def test_cancelled_movement_disappears_on_rerun():
    """Test reallocating without a movement drops its money and links"""
    kept = make_movement(660, minute=0)
    cancelled = make_movement(660, minute=1)
    before = allocate_movements(make_installments(), [kept, cancelled])
    after = allocate_movements(before, [kept])

    assert before[1].is_complete is True
    assert after[1].paid_cents == 0
    assert all(cancelled.id not in inst.linked_movement_ids for inst in after)


def test_reset_installments_orders_by_payment_number():
    """Test reset zeroes derived fields and sorts by payment number"""
    paid = Installment(2, date(2024, 1, 3), 660, paid_cents=660, is_complete=True, linked_movement_ids=(uuid.uuid4(),))
    unpaid = Installment(1, date(2024, 1, 2), 660)
    result = reset_installments([paid, unpaid])

    assert [inst.payment_number for inst in result] == [1, 2]
    assert result[1].paid_cents == 0
    assert result[1].is_complete is False
    assert result[1].linked_movement_ids == ()
