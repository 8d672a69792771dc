"""Contract origination, cancellation and maintenance jobs"""

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Dict, Iterable
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.delinquency import initial_snapshot
from credit_ledger.domain.exceptions import (
    ActiveContractExistsError,
    ClientNotFoundError,
    ContractNotFoundError,
    InputValidationError,
)
from credit_ledger.domain.models import (
    ContractTerms,
    Modality,
    MovementStatus,
    MovementType,
    RecalculationTrigger,
)
from credit_ledger.domain.portfolio import PortfolioSummary, summarize
from credit_ledger.domain.schedule import build_installments, normalize_mask, parse_weekdays
from credit_ledger.infrastructure.database.models import LoanContract
from credit_ledger.infrastructure.database.repositories import (
    ClientRepository,
    ContractRepository,
    HolidayRepository,
    MovementRepository,
)
from credit_ledger.infrastructure.observability.metrics import scheduled_failure_counter
from credit_ledger.services.movements import require_business_hours
from credit_ledger.services.recalculation import RecalculationService
from credit_ledger.utils.date_utils import business_now


class ContractService:
    """Manager for loan contracts"""

    def __init__(self, db: Session):
        self.db = db
        self.contracts = ContractRepository(db)
        self.movements = MovementRepository(db)
        self.clients = ClientRepository(db)
        self.holidays = HolidayRepository(db)

    def originate(
        self,
        client_id: uuid.UUID,
        start_date: date,
        modality: "Modality | str",
        payments_quantity: int,
        payment_amount_cents: int,
        total_amount_cents: int,
        loan_amount_cents: int,
        non_working_days: Iterable = (),
        privileged: bool = False,
        now: datetime | None = None,
    ) -> LoanContract:
        """
        Create a contract with its schedule, initial snapshot and funding movement.

        A privileged actor originates it already validated; otherwise the
        contract and its funding movement wait for validation.

        Raises:
            InputValidationError: Non-positive amounts or quantity, unknown modality or weekday
            ClientNotFoundError: Unknown client
            ActiveContractExistsError: Client already holds an active contract
            OutsideBusinessHoursError: Outside the configured business-hours window
        """
        now = now or business_now()
        require_business_hours(now, "origination")
        modality = Modality.parse(modality)
        for name, value in (
            ("payments_quantity", payments_quantity),
            ("payment_amount_cents", payment_amount_cents),
            ("total_amount_cents", total_amount_cents),
            ("loan_amount_cents", loan_amount_cents),
        ):
            if value <= 0:
                raise InputValidationError(f"{name} must be positive, got {value}")

        mask = normalize_mask(modality, parse_weekdays(non_working_days))

        client = self.clients.get_client(client_id)
        if client is None:
            raise ClientNotFoundError(f"Client {client_id} not found")
        if not settings.allow_simultaneous_contracts and self.contracts.has_active_contract(client_id):
            raise ActiveContractExistsError(f"Client {client_id} already has an active contract")

        terms = ContractTerms(
            start_date=start_date,
            modality=modality,
            payments_quantity=payments_quantity,
            payment_amount_cents=payment_amount_cents,
            total_amount_cents=total_amount_cents,
            loan_amount_cents=loan_amount_cents,
            non_working_days=mask,
        )
        installments = build_installments(terms, self.holidays.get_active_dates())

        db_contract = self.contracts.create_contract(
            client_id=client_id,
            terms=terms,
            installments=installments,
            snapshot=initial_snapshot(total_amount_cents, payments_quantity),
            is_validated=privileged,
            now=now,
        )
        self.movements.create_movement(
            contract_id=db_contract.id,
            amount_cents=loan_amount_cents,
            type=MovementType.OUT,
            status=MovementStatus.VALIDATED if privileged else MovementStatus.PENDING,
            now=now,
            is_funding=True,
            description="Loan disbursement",
        )

        logging.info(
            "Contract originated",
            extra={
                "contract_id": str(db_contract.id),
                "client_id": str(client_id),
                "step": "contract_originated",
                "modality": modality.value,
                "payments_quantity": payments_quantity,
                "validated": privileged,
            },
        )
        return db_contract

    def get(self, contract_id: uuid.UUID) -> LoanContract:
        contract = self.contracts.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found")
        return contract

    def cancel(self, contract_id: uuid.UUID) -> None:
        """Delete a contract with its installments, movements and snapshot"""
        contract = self.get(contract_id)
        self.contracts.delete_contract(contract)
        logging.info(
            "Contract cancelled",
            extra={"contract_id": str(contract_id), "step": "contract_cancelled"},
        )

    def summary(self, today: date | None = None) -> PortfolioSummary:
        return summarize(self.contracts.get_active_snapshots(), today or business_now().date())

    def refresh_active(self, now: datetime | None = None) -> Dict[str, int]:
        """
        Nightly pass recalculating every active contract.

        Each contract runs in its own transaction; a failure is logged,
        rolled back and counted, and the batch moves on.
        """
        now = now or business_now()
        results = {"recalculated": 0, "failed": 0}
        recalculation = RecalculationService(self.db)

        for contract_id in self.contracts.get_active_contract_ids():
            try:
                recalculation.recalculate(contract_id, RecalculationTrigger.SCHEDULED, now=now)
                self.db.commit()
                results["recalculated"] += 1
            except Exception as e:
                self.db.rollback()
                scheduled_failure_counter.inc()
                logging.error(
                    f"Scheduled recalculation failed: {e}",
                    extra={"contract_id": str(contract_id), "step": "scheduled_recalculation"},
                )
                results["failed"] += 1

        logging.info("Scheduled recalculation finished", extra={"step": "scheduled_recalculation", **results})
        return results

    def purge_finished(self, now: datetime | None = None) -> int:
        """Delete inactive contracts finished past the retention period, or never finished"""
        now = now or business_now()
        cutoff = now - timedelta(days=settings.finished_contract_retention_days)

        purged = 0
        for contract in self.contracts.get_purgeable_contracts(cutoff):
            self.contracts.delete_contract(contract)
            purged += 1

        logging.info("Finished contracts purged", extra={"step": "purge_finished", "purged": purged})
        return purged
