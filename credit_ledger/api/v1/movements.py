"""Movement endpoints - deposit intake, validation, cancellation"""

import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from credit_ledger.api.dependencies import get_is_privileged, get_request_id
from credit_ledger.api.errors import raise_http_error
from credit_ledger.api.v1.contracts import recalculation_response
from credit_ledger.api.v1.schemas import DepositRequest, DepositResponse, MovementResponse, RecalculationResponse
from credit_ledger.domain.exceptions import DomainException
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.movements import MovementService

router = APIRouter()


@router.post("/contracts/{contract_id}/movements", response_model=DepositResponse, status_code=201)
def register_deposit(
    contract_id: uuid.UUID,
    request_body: DepositRequest,
    request: Request,
    privileged: bool = Depends(get_is_privileged),
    db: Session = Depends(get_db),
):
    """
    Record a deposit against a contract.

    Privileged actors record validated money; others record a pending
    deposit that only counts once validated.
    """
    request_id = get_request_id(request)

    try:
        movement, result = MovementService(db).register_deposit(
            contract_id,
            request_body.amount_cents,
            request_body.payment_type,
            privileged=privileged,
            description=request_body.description,
        )
        db.commit()

        return DepositResponse(
            movement=MovementResponse(
                movement_id=str(movement.id),
                contract_id=str(movement.contract_id),
                amount_cents=movement.amount_cents,
                type=movement.type,
                status=movement.status,
                payment_type=movement.payment_type,
                is_funding=movement.is_funding,
                created_at=movement.created_at.isoformat(),
            ),
            recalculation=recalculation_response(result),
        )

    except DomainException as e:
        db.rollback()
        raise_http_error(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/movements/{movement_id}/validate", response_model=RecalculationResponse)
def validate_movement(movement_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Confirm a pending movement and recalculate its contract"""
    request_id = get_request_id(request)

    try:
        result = MovementService(db).validate(movement_id)
        db.commit()
        return recalculation_response(result)

    except DomainException as e:
        db.rollback()
        raise_http_error(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/movements/{movement_id}", response_model=RecalculationResponse)
def cancel_movement(movement_id: uuid.UUID, request: Request, db: Session = Depends(get_db)):
    """Delete a movement and recalculate its contract"""
    request_id = get_request_id(request)

    try:
        result = MovementService(db).cancel(movement_id)
        db.commit()
        return recalculation_response(result)

    except DomainException as e:
        db.rollback()
        raise_http_error(e, request_id)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
