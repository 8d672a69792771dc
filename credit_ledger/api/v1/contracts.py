"""Contract endpoints - origination, detail, manual recalculation, cancellation"""

import logging
import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from credit_ledger.api.dependencies import get_is_privileged, get_request_id
from credit_ledger.api.errors import raise_http_error
from credit_ledger.api.v1.schemas import (
    ContractCreateRequest,
    ContractResponse,
    InstallmentSchema,
    PartialInstallmentSchema,
    RecalculationResponse,
    SnapshotSchema,
)
from credit_ledger.domain.calendar import installment_status, next_partial_installment
from credit_ledger.domain.exceptions import DomainException
from credit_ledger.domain.lifecycle import contract_status
from credit_ledger.domain.models import DelinquencySnapshot, RecalculationTrigger
from credit_ledger.infrastructure.database.models import LoanContract
from credit_ledger.infrastructure.database.repositories import to_installment, to_snapshot
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.contracts import ContractService
from credit_ledger.services.recalculation import RecalculationResult, RecalculationService
from credit_ledger.utils.date_utils import business_today

router = APIRouter()


def snapshot_schema(snapshot: DelinquencySnapshot) -> SnapshotSchema:
    return SnapshotSchema(
        payed_amount_cents=snapshot.payed_amount_cents,
        not_validated_amount_cents=snapshot.not_validated_amount_cents,
        pending_amount_cents=snapshot.pending_amount_cents,
        payments_late=snapshot.payments_late,
        payments_up_to_date=snapshot.payments_up_to_date,
        payments_incomplete=snapshot.payments_incomplete,
        payments_remaining=snapshot.payments_remaining,
        days_expired=snapshot.days_expired,
        days_ahead=snapshot.days_ahead,
        days_pending=snapshot.days_pending,
        today_incomplete=snapshot.today_incomplete,
        is_outdated=snapshot.is_outdated,
        is_client_updated_for_outdated=snapshot.is_client_updated_for_outdated,
        amount_late_or_incomplete_cents=snapshot.amount_late_or_incomplete_cents,
        color=snapshot.color.value,
        icon=snapshot.icon.value,
        last_payment_at=snapshot.last_payment_at,
        is_active=snapshot.is_active,
    )


def recalculation_response(result: RecalculationResult) -> RecalculationResponse:
    return RecalculationResponse(
        contract_id=str(result.contract_id),
        status=result.status.value,
        changed_installments=result.changed_installments,
        changed_fields=result.changed_fields,
        events=[event.type.value for event in result.events],
        snapshot=snapshot_schema(result.snapshot),
    )


def contract_response(contract: LoanContract, today: date) -> ContractResponse:
    installments = [to_installment(record) for record in contract.installments]
    partial = next_partial_installment(installments)

    return ContractResponse(
        contract_id=str(contract.id),
        client_id=str(contract.client_id),
        status=contract_status(contract.is_active, contract.is_validated, contract.finished_at).value,
        modality=contract.modality,
        start_date=contract.start_date,
        payments_quantity=contract.payments_quantity,
        payment_amount_cents=contract.payment_amount_cents,
        total_amount_cents=contract.total_amount_cents,
        loan_amount_cents=contract.loan_amount_cents,
        non_working_days=contract.non_working_days,
        installments=[
            InstallmentSchema(
                payment_number=inst.payment_number,
                due_date=inst.due_date,
                amount_cents=inst.amount_cents,
                paid_cents=inst.paid_cents,
                is_complete=inst.is_complete,
                status=installment_status(inst, today).value,
                movement_ids=[str(movement_id) for movement_id in inst.linked_movement_ids],
            )
            for inst in installments
        ],
        snapshot=snapshot_schema(to_snapshot(contract.snapshot)),
        next_partial_installment=(
            PartialInstallmentSchema(payment_number=partial.payment_number, outstanding_cents=partial.outstanding_cents)
            if partial
            else None
        ),
        finished_at=contract.finished_at,
        created_at=contract.created_at.isoformat(),
    )


@router.post("/contracts", response_model=ContractResponse, status_code=201)
def create_contract(
    request_body: ContractCreateRequest,
    request: Request,
    privileged: bool = Depends(get_is_privileged),
    db: Session = Depends(get_db),
):
    """
    Originate a contract.

    Flow:
    1. Validate terms and normalize the non-working-day mask
    2. Generate the payment schedule around active holidays
    3. Persist contract, installments, initial snapshot and funding movement
    """
    request_id = get_request_id(request)

    try:
        contract = ContractService(db).originate(
            client_id=request_body.client_id,
            start_date=request_body.start_date,
            modality=request_body.modality,
            payments_quantity=request_body.payments_quantity,
            payment_amount_cents=request_body.payment_amount_cents,
            total_amount_cents=request_body.total_amount_cents,
            loan_amount_cents=request_body.loan_amount_cents,
            non_working_days=request_body.non_working_days,
            privileged=privileged,
        )
        db.commit()
        return contract_response(contract, business_today())

    except DomainException as e:
        db.rollback()
        raise_http_error(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/contracts/{contract_id}", response_model=ContractResponse)
def get_contract(contract_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Contract detail with installment calendar and current snapshot"""
    try:
        contract = ContractService(db).get(contract_id)
    except DomainException as e:
        raise_http_error(e, get_request_id(request))

    return contract_response(contract, business_today())


@router.post("/contracts/{contract_id}/recalculate", response_model=RecalculationResponse)
def recalculate_contract(contract_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Manually re-run allocation, snapshot and lifecycle rules"""
    request_id = get_request_id(request)

    try:
        result = RecalculationService(db).recalculate(contract_id, RecalculationTrigger.MANUAL)
        db.commit()
        return recalculation_response(result)

    except DomainException as e:
        db.rollback()
        raise_http_error(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/contracts/{contract_id}", status_code=204)
def cancel_contract(contract_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Delete a contract with its schedule, movements and snapshot"""
    request_id = get_request_id(request)

    try:
        ContractService(db).cancel(contract_id)
        db.commit()

    except DomainException as e:
        db.rollback()
        raise_http_error(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return Response(status_code=204)
