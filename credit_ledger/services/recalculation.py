"""Shared recalculation pass: allocation, delinquency snapshot, lifecycle rules"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from credit_ledger.config import settings
from credit_ledger.domain.allocation import allocate_movements
from credit_ledger.domain.delinquency import calculate_snapshot, changed_fields
from credit_ledger.domain.exceptions import (
    ConcurrencyConflictError,
    ContractNotFoundError,
    DataIntegrityError,
)
from credit_ledger.domain.lifecycle import ContractState, apply_lifecycle
from credit_ledger.domain.models import (
    ContractStatus,
    DelinquencySnapshot,
    LifecycleEvent,
    RecalculationTrigger,
)
from credit_ledger.infrastructure.database.models import LoanContract
from credit_ledger.infrastructure.database.repositories import (
    ContractRepository,
    EventRepository,
    payment_days_of,
    to_installment,
    to_movement,
    to_snapshot,
)
from credit_ledger.infrastructure.observability.logging import log_lifecycle_event, log_recalculation
from credit_ledger.infrastructure.observability.metrics import concurrency_conflict_counter, record_recalculation
from credit_ledger.utils.date_utils import business_now


@dataclass(frozen=True)
class RecalculationResult:
    contract_id: uuid.UUID
    status: ContractStatus
    snapshot: DelinquencySnapshot
    changed_installments: int
    changed_fields: List[str] = field(default_factory=list)
    events: List[LifecycleEvent] = field(default_factory=list)

    @property
    def snapshot_changed(self) -> bool:
        return bool(self.changed_fields)


class RecalculationService:
    """Single entry point for bringing a contract's derived state up to date"""

    def __init__(self, db: Session):
        self.db = db
        self.contracts = ContractRepository(db)
        self.events = EventRepository(db)

    def recalculate(
        self,
        contract_id: uuid.UUID,
        trigger: RecalculationTrigger,
        movement_is_funding: bool = False,
        now: datetime | None = None,
    ) -> RecalculationResult:
        """
        Recompute installments, snapshot and lifecycle state of one contract.

        Flow:
        1. Lock the contract row so passes over one contract serialize
        2. Re-run the waterfall over the full movement history
        3. Derive the snapshot against a single business date
        4. Apply lifecycle rules and queue their events
        5. Flush; a stale snapshot version becomes ConcurrencyConflictError

        The caller owns the transaction and must roll back on error.
        """
        start_time = time.time()
        now = now or business_now()

        contract = self.contracts.lock_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found")
        if contract.snapshot is None:
            raise DataIntegrityError(f"Contract {contract_id} has no delinquency snapshot")

        movements = [to_movement(record) for record in contract.movements]
        allocated = allocate_movements([to_installment(record) for record in contract.installments], movements)

        previous = to_snapshot(contract.snapshot)
        snapshot = calculate_snapshot(
            allocated,
            movements,
            payment_days_of(contract),
            contract.total_amount_cents,
            contract.payments_quantity,
            now.date(),
            previous,
        )

        state = ContractState(
            contract_id=contract.id,
            is_active=contract.is_active,
            is_validated=contract.is_validated,
            finished_at=contract.finished_at,
            client_points=contract.client.loyalty_points,
        )
        outcome = apply_lifecycle(
            state,
            snapshot,
            trigger,
            movement_is_funding,
            now,
            penalty_points=settings.loyalty_points_penalty,
        )

        changed_installments = self.contracts.save_installments(contract, allocated, now)
        fields = changed_fields(previous, outcome.snapshot)
        self.contracts.apply_snapshot(contract.snapshot, outcome.snapshot, now)
        self._apply_state(contract, outcome.state, now)
        self.events.enqueue(outcome.events, now)

        try:
            self.db.flush()
        except StaleDataError as e:
            concurrency_conflict_counter.inc()
            raise ConcurrencyConflictError(f"Contract {contract_id} was recalculated concurrently") from e

        duration = time.time() - start_time
        record_recalculation(trigger.value, duration, [event.type.value for event in outcome.events])
        log_recalculation(str(contract_id), trigger.value, changed_installments, fields, outcome.events, duration * 1000)
        for event in outcome.events:
            log_lifecycle_event(event)

        return RecalculationResult(
            contract_id=contract.id,
            status=outcome.state.status,
            snapshot=outcome.snapshot,
            changed_installments=changed_installments,
            changed_fields=fields,
            events=outcome.events,
        )

    def _apply_state(self, contract: LoanContract, state: ContractState, now: datetime) -> None:
        if (contract.is_active, contract.is_validated, contract.finished_at) != (
            state.is_active,
            state.is_validated,
            state.finished_at,
        ):
            contract.is_active = state.is_active
            contract.is_validated = state.is_validated
            contract.finished_at = state.finished_at
            contract.updated_at = now

        if contract.client.loyalty_points != state.client_points:
            contract.client.loyalty_points = state.client_points
