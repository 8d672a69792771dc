"""Movement intake, validation and cancellation"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Tuple
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.exceptions import (
    ContractNotFoundError,
    DuplicateMovementError,
    InputValidationError,
    MovementNotFoundError,
    OutsideBusinessHoursError,
    OverpaymentError,
)
from credit_ledger.domain.models import (
    MovementStatus,
    MovementType,
    PaymentType,
    RecalculationTrigger,
)
from credit_ledger.infrastructure.database.models import Movement
from credit_ledger.infrastructure.database.repositories import ContractRepository, MovementRepository
from credit_ledger.infrastructure.observability.metrics import (
    record_business_hours_rejection,
    record_deposit_rejection,
)
from credit_ledger.services.recalculation import RecalculationResult, RecalculationService
from credit_ledger.utils.date_utils import business_now, within_window


def require_business_hours(now: datetime, operation: str) -> None:
    """Raise OutsideBusinessHoursError when now falls outside the configured window"""
    if not within_window(now, settings.journal_start, settings.journal_end):
        record_business_hours_rejection(operation)
        raise OutsideBusinessHoursError(
            f"{operation.capitalize()} is only allowed between {settings.journal_start} and {settings.journal_end}"
        )


class MovementService:
    """Manager for contract movements; every change ends in a recalculation"""

    def __init__(self, db: Session):
        self.db = db
        self.contracts = ContractRepository(db)
        self.movements = MovementRepository(db)
        self.recalculation = RecalculationService(db)

    def register_deposit(
        self,
        contract_id: uuid.UUID,
        amount_cents: int,
        payment_type: "PaymentType | str",
        privileged: bool = False,
        description: str | None = None,
        now: datetime | None = None,
    ) -> Tuple[Movement, RecalculationResult]:
        """
        Record an incoming payment and recalculate its contract.

        Requirements:
        - Inside the business-hours window, when one is configured
        - No deposit of the same day and payment type in the last few minutes
        - Validated plus pending money never exceeds the contract total

        Privileged actors record it validated; everyone else records it pending.
        """
        if amount_cents <= 0:
            raise InputValidationError(f"amount_cents must be positive, got {amount_cents}")
        try:
            payment_type = PaymentType(payment_type)
        except ValueError as e:
            raise InputValidationError(f"Unrecognized payment type: {payment_type!r}") from e

        now = now or business_now()
        require_business_hours(now, "deposit")

        contract = self.contracts.lock_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found")

        last = self.movements.get_last_deposit(contract.id, now.date(), payment_type)
        window = timedelta(minutes=settings.duplicate_movement_window_minutes)
        if last is not None and now - last.created_at < window:
            record_deposit_rejection("duplicate")
            raise DuplicateMovementError(
                f"A {payment_type.value} deposit was already registered at {last.created_at.isoformat()}"
            )

        received = sum(
            m.amount_cents
            for m in contract.movements
            if m.type == MovementType.IN.value
            and m.status in (MovementStatus.VALIDATED.value, MovementStatus.PENDING.value)
        )
        if received + amount_cents > contract.total_amount_cents:
            record_deposit_rejection("overpayment")
            raise OverpaymentError(
                f"Deposit of {amount_cents} exceeds the remaining {contract.total_amount_cents - received} cents"
            )

        movement = self.movements.create_movement(
            contract_id=contract.id,
            amount_cents=amount_cents,
            type=MovementType.IN,
            status=MovementStatus.VALIDATED if privileged else MovementStatus.PENDING,
            now=now,
            payment_type=payment_type,
            description=description,
        )
        result = self.recalculation.recalculate(contract.id, RecalculationTrigger.MOVEMENT_CREATED, now=now)

        logging.info(
            "Deposit registered",
            extra={
                "contract_id": str(contract.id),
                "movement_id": str(movement.id),
                "step": "deposit_registered",
                "amount_cents": amount_cents,
                "payment_type": payment_type.value,
                "validated": privileged,
            },
        )
        return movement, result

    def get(self, movement_id: uuid.UUID) -> Movement:
        movement = self.movements.get_movement(movement_id)
        if movement is None:
            raise MovementNotFoundError(f"Movement {movement_id} not found")
        return movement

    def validate(self, movement_id: uuid.UUID, now: datetime | None = None) -> RecalculationResult:
        """Confirm a pending movement; validating the funding movement activates the contract"""
        now = now or business_now()
        require_business_hours(now, "validation")
        movement = self.get(movement_id)

        movement.status = MovementStatus.VALIDATED.value
        movement.updated_at = now
        self.db.flush()

        logging.info(
            "Movement validated",
            extra={"contract_id": str(movement.contract_id), "movement_id": str(movement.id), "step": "movement_validated"},
        )
        return self.recalculation.recalculate(
            movement.contract_id,
            RecalculationTrigger.MOVEMENT_VALIDATED,
            movement_is_funding=movement.is_funding,
            now=now,
        )

    def cancel(self, movement_id: uuid.UUID, now: datetime | None = None) -> RecalculationResult:
        """Delete a movement with its installment links and recalculate its contract"""
        now = now or business_now()
        require_business_hours(now, "cancellation")
        movement = self.get(movement_id)
        contract_id = movement.contract_id
        is_funding = movement.is_funding

        self.movements.delete_movement(movement)

        logging.info(
            "Movement cancelled",
            extra={"contract_id": str(contract_id), "movement_id": str(movement_id), "step": "movement_cancelled"},
        )
        return self.recalculation.recalculate(
            contract_id,
            RecalculationTrigger.MOVEMENT_CANCELLED,
            movement_is_funding=is_funding,
            now=now,
        )
