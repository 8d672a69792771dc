"""Lifecycle rules applied after every recalculation"""

import uuid
from dataclasses import dataclass, replace, field
from datetime import datetime
from typing import List

from credit_ledger.domain.models import (
    ContractStatus,
    DelinquencySnapshot,
    LifecycleEvent,
    LifecycleEventType,
    RecalculationTrigger,
)


@dataclass(frozen=True)
class ContractState:
    """Mutable-by-lifecycle part of a contract and its client"""

    contract_id: uuid.UUID
    is_active: bool
    is_validated: bool
    finished_at: datetime | None
    client_points: int

    @property
    def status(self) -> ContractStatus:
        return contract_status(self.is_active, self.is_validated, self.finished_at)


@dataclass(frozen=True)
class LifecycleOutcome:
    state: ContractState
    snapshot: DelinquencySnapshot
    events: List[LifecycleEvent] = field(default_factory=list)


def contract_status(is_active: bool, is_validated: bool, finished_at: datetime | None) -> ContractStatus:
    if finished_at is not None:
        return ContractStatus.CLOSED
    if not is_validated:
        return ContractStatus.PENDING_VALIDATION
    if not is_active:
        return ContractStatus.INACTIVE
    return ContractStatus.ACTIVE


def apply_lifecycle(
    state: ContractState,
    snapshot: DelinquencySnapshot,
    trigger: RecalculationTrigger,
    movement_is_funding: bool,
    now: datetime,
    penalty_points: int = 1,
) -> LifecycleOutcome:
    """
    Apply contract transitions from a freshly computed snapshot.

    Rules, in order:
    1. Funding movement validated: contract becomes active and validated;
       a closed contract only records the validation
    2. Funding movement cancelled: contract reverts to inactive, unvalidated;
       a closed contract only drops the validation
    3. Outdated and client not yet penalized this episode: subtract points
       (floor 0) and flag the snapshot; the flag clears once not outdated
    4. Nothing left to pay: close contract and snapshot, stamp finished_at

    Each event is emitted only when its rule actually changes state.
    """
    events: List[LifecycleEvent] = []
    contract_id = state.contract_id

    closed = state.finished_at is not None

    if movement_is_funding and trigger == RecalculationTrigger.MOVEMENT_VALIDATED:
        if closed:
            state = replace(state, is_validated=True)
        elif not (state.is_active and state.is_validated and snapshot.is_active):
            state = replace(state, is_active=True, is_validated=True)
            snapshot = replace(snapshot, is_active=True)
            events.append(LifecycleEvent(LifecycleEventType.CONTRACT_ACTIVATED, contract_id))

    if movement_is_funding and trigger == RecalculationTrigger.MOVEMENT_CANCELLED:
        if closed:
            state = replace(state, is_validated=False)
        elif state.is_active or state.is_validated or snapshot.is_active:
            state = replace(state, is_active=False, is_validated=False)
            snapshot = replace(snapshot, is_active=False)
            events.append(LifecycleEvent(LifecycleEventType.CONTRACT_DEACTIVATED, contract_id))

    if snapshot.is_outdated and not snapshot.is_client_updated_for_outdated:
        points_before = state.client_points
        points_after = max(points_before - penalty_points, 0)
        state = replace(state, client_points=points_after)
        snapshot = replace(snapshot, is_client_updated_for_outdated=True)
        events.append(
            LifecycleEvent(
                LifecycleEventType.CLIENT_PENALIZED,
                contract_id,
                {"points_before": points_before, "points_after": points_after},
            )
        )
    elif not snapshot.is_outdated and snapshot.is_client_updated_for_outdated:
        snapshot = replace(snapshot, is_client_updated_for_outdated=False)

    if snapshot.pending_amount_cents == 0 and state.finished_at is None:
        state = replace(state, is_active=False, finished_at=now)
        snapshot = replace(snapshot, is_active=False)
        events.append(
            LifecycleEvent(
                LifecycleEventType.CONTRACT_CLOSED,
                contract_id,
                {"finished_at": now.isoformat()},
            )
        )

    return LifecycleOutcome(state=state, snapshot=snapshot, events=events)
