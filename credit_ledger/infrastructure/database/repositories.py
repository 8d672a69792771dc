"""Data access layer for contract ledger entities"""

import uuid
from dataclasses import asdict
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.orm import Session

from credit_ledger.infrastructure.database.models import (
    Client,
    DelinquencySnapshotRecord,
    Holiday,
    Installment as InstallmentRecord,
    LoanContract,
    Movement as MovementRecord,
    OutboundEvent,
)
from credit_ledger.domain import models as domain
from credit_ledger.domain.delinquency import DERIVED_FIELDS


def to_installment(record: InstallmentRecord) -> domain.Installment:
    linked = sorted(record.movements, key=lambda m: (m.created_at, str(m.id)))
    return domain.Installment(
        payment_number=record.payment_number,
        due_date=record.due_date,
        amount_cents=record.amount_cents,
        paid_cents=record.paid_cents,
        is_complete=record.is_complete,
        linked_movement_ids=tuple(m.id for m in linked),
    )


def to_movement(record: MovementRecord) -> domain.Movement:
    return domain.Movement(
        id=record.id,
        amount_cents=record.amount_cents,
        type=domain.MovementType(record.type),
        status=domain.MovementStatus(record.status),
        created_at=record.created_at,
        movement_date=record.movement_date,
        payment_type=domain.PaymentType(record.payment_type) if record.payment_type else None,
        is_funding=record.is_funding,
    )


def to_snapshot(record: DelinquencySnapshotRecord) -> domain.DelinquencySnapshot:
    values = {name: getattr(record, name) for name in DERIVED_FIELDS}
    values["color"] = domain.Color(record.color)
    values["icon"] = domain.Icon(record.icon)
    return domain.DelinquencySnapshot(
        **values,
        is_client_updated_for_outdated=record.is_client_updated_for_outdated,
        is_active=record.is_active,
    )


def payment_days_of(contract: LoanContract) -> List[date]:
    return [date.fromisoformat(day) for day in contract.payment_days]


def weekday_mask_of(contract: LoanContract) -> domain.WeekdayMask:
    return frozenset(domain.Weekday(day) for day in contract.non_working_days)


class ContractRepository:
    """Repository for loan contracts with their installments and snapshot"""

    def __init__(self, db: Session):
        self.db = db

    def create_contract(
        self,
        client_id: uuid.UUID,
        terms: domain.ContractTerms,
        installments: Sequence[domain.Installment],
        snapshot: domain.DelinquencySnapshot,
        is_validated: bool,
        now: datetime,
    ) -> LoanContract:
        """Persist a new contract, its schedule and its initial snapshot"""
        db_contract = LoanContract(
            client_id=client_id,
            start_date=terms.start_date,
            modality=terms.modality.value,
            payments_quantity=terms.payments_quantity,
            payment_amount_cents=terms.payment_amount_cents,
            total_amount_cents=terms.total_amount_cents,
            loan_amount_cents=terms.loan_amount_cents,
            non_working_days=sorted(int(day) for day in terms.non_working_days),
            payment_days=[inst.due_date.isoformat() for inst in installments],
            is_active=True,
            is_validated=is_validated,
            created_at=now,
            updated_at=now,
        )
        self.db.add(db_contract)
        self.db.flush()  # Get ID without committing

        for inst in installments:
            self.db.add(
                InstallmentRecord(
                    contract_id=db_contract.id,
                    payment_number=inst.payment_number,
                    due_date=inst.due_date,
                    amount_cents=inst.amount_cents,
                    paid_cents=0,
                    is_complete=False,
                    updated_at=now,
                )
            )

        db_snapshot = DelinquencySnapshotRecord(contract_id=db_contract.id, recalculated_at=now)
        self.apply_snapshot(db_snapshot, snapshot, now)
        self.db.add(db_snapshot)
        self.db.flush()
        return db_contract

    def get_contract(self, contract_id: uuid.UUID) -> Optional[LoanContract]:
        return self.db.get(LoanContract, contract_id)

    def lock_contract(self, contract_id: uuid.UUID) -> Optional[LoanContract]:
        """Fetch a contract holding a row lock until the transaction ends"""
        contract = self.db.execute(
            select(LoanContract)
            .where(LoanContract.id == contract_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if contract is not None:
            # Reload collections so movements flushed earlier in this session are seen
            self.db.expire(contract, ["installments", "movements"])
        return contract

    def has_active_contract(self, client_id: uuid.UUID) -> bool:
        return (
            self.db.query(LoanContract.id)
            .filter(LoanContract.client_id == client_id, LoanContract.is_active.is_(True))
            .first()
            is not None
        )

    def get_active_contract_ids(self) -> List[uuid.UUID]:
        rows = self.db.query(LoanContract.id).filter(LoanContract.is_active.is_(True)).order_by(LoanContract.created_at)
        return [row.id for row in rows]

    def get_active_snapshots(self) -> List[domain.DelinquencySnapshot]:
        records = (
            self.db.query(DelinquencySnapshotRecord)
            .join(LoanContract, LoanContract.id == DelinquencySnapshotRecord.contract_id)
            .filter(LoanContract.is_active.is_(True))
            .all()
        )
        return [to_snapshot(record) for record in records]

    def get_purgeable_contracts(self, finished_before: datetime) -> List[LoanContract]:
        """Inactive contracts finished before the cutoff, or never finished at all"""
        return (
            self.db.query(LoanContract)
            .filter(LoanContract.is_active.is_(False))
            .filter((LoanContract.finished_at.is_(None)) | (LoanContract.finished_at < finished_before))
            .all()
        )

    def delete_contract(self, contract: LoanContract) -> None:
        # Drop installment links first so the cascade deletes each link once
        for inst in contract.installments:
            inst.movements = []
        self.db.flush()
        self.db.delete(contract)
        self.db.flush()

    def save_installments(
        self,
        contract: LoanContract,
        installments: Sequence[domain.Installment],
        now: datetime,
    ) -> int:
        """Write derived installment fields back; returns how many rows changed"""
        movements_by_id: Dict[uuid.UUID, MovementRecord] = {m.id: m for m in contract.movements}
        records = {record.payment_number: record for record in contract.installments}
        changed = 0

        for inst in installments:
            record = records[inst.payment_number]
            if to_installment(record) == inst:
                continue

            record.paid_cents = inst.paid_cents
            record.is_complete = inst.is_complete
            record.movements = [movements_by_id[movement_id] for movement_id in inst.linked_movement_ids]
            record.updated_at = now
            changed += 1

        return changed

    def apply_snapshot(
        self,
        record: DelinquencySnapshotRecord,
        snapshot: domain.DelinquencySnapshot,
        now: datetime,
    ) -> None:
        values = asdict(snapshot)
        for name in DERIVED_FIELDS:
            setattr(record, name, values[name])
        record.color = snapshot.color.value
        record.icon = snapshot.icon.value
        record.is_client_updated_for_outdated = snapshot.is_client_updated_for_outdated
        record.is_active = snapshot.is_active
        # Always touched so the version check runs on every recalculation
        record.recalculated_at = now


class MovementRepository:
    """Repository for contract movements"""

    def __init__(self, db: Session):
        self.db = db

    def create_movement(
        self,
        contract_id: uuid.UUID,
        amount_cents: int,
        type: domain.MovementType,
        status: domain.MovementStatus,
        now: datetime,
        payment_type: domain.PaymentType | None = None,
        is_funding: bool = False,
        description: str | None = None,
    ) -> MovementRecord:
        db_movement = MovementRecord(
            contract_id=contract_id,
            amount_cents=amount_cents,
            type=type.value,
            status=status.value,
            payment_type=payment_type.value if payment_type else None,
            is_funding=is_funding,
            description=description,
            movement_date=now.date(),
            created_at=now,
            updated_at=now,
        )
        self.db.add(db_movement)
        self.db.flush()
        return db_movement

    def get_movement(self, movement_id: uuid.UUID) -> Optional[MovementRecord]:
        return self.db.get(MovementRecord, movement_id)

    def get_last_deposit(
        self,
        contract_id: uuid.UUID,
        movement_date: date,
        payment_type: domain.PaymentType,
    ) -> Optional[MovementRecord]:
        """Most recent incoming movement of the same day and payment type"""
        return (
            self.db.query(MovementRecord)
            .filter(
                MovementRecord.contract_id == contract_id,
                MovementRecord.type == domain.MovementType.IN.value,
                MovementRecord.movement_date == movement_date,
                MovementRecord.payment_type == payment_type.value,
            )
            .order_by(MovementRecord.created_at.desc())
            .first()
        )

    def delete_movement(self, movement: MovementRecord) -> None:
        movement.installments.clear()
        self.db.flush()
        self.db.delete(movement)
        self.db.flush()


class ClientRepository:
    """Repository for borrowers"""

    def __init__(self, db: Session):
        self.db = db

    def get_client(self, client_id: uuid.UUID) -> Optional[Client]:
        return self.db.get(Client, client_id)


class HolidayRepository:
    """Repository for the holiday calendar"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_dates(self) -> List[date]:
        rows = self.db.query(Holiday.holiday_date).filter(Holiday.is_active.is_(True)).all()
        return [row.holiday_date for row in rows]


class EventRepository:
    """Outbox for lifecycle events"""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(self, events: Sequence[domain.LifecycleEvent], now: datetime) -> List[OutboundEvent]:
        records = [
            OutboundEvent(
                contract_id=event.contract_id,
                event_type=event.type.value,
                payload=dict(event.payload),
                created_at=now,
            )
            for event in events
        ]
        self.db.add_all(records)
        return records

    def get_events(self, contract_id: uuid.UUID) -> List[OutboundEvent]:
        return (
            self.db.query(OutboundEvent)
            .filter(OutboundEvent.contract_id == contract_id)
            .order_by(OutboundEvent.created_at)
            .all()
        )
