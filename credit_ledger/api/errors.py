"""Translation of domain exceptions into HTTP errors"""

import logging
from typing import NoReturn
from fastapi import HTTPException

from credit_ledger.domain.exceptions import (
    ActiveContractExistsError,
    ClientNotFoundError,
    ConcurrencyConflictError,
    ContractNotFoundError,
    DataIntegrityError,
    DomainException,
    DuplicateMovementError,
    InputValidationError,
    MovementNotFoundError,
    OutsideBusinessHoursError,
    OverpaymentError,
)

STATUS_CODES = {
    InputValidationError: 422,
    DataIntegrityError: 422,
    ContractNotFoundError: 404,
    MovementNotFoundError: 404,
    ClientNotFoundError: 404,
    ConcurrencyConflictError: 409,
    ActiveContractExistsError: 409,
    OverpaymentError: 409,
    DuplicateMovementError: 409,
    OutsideBusinessHoursError: 409,
}


def status_code_for(error: DomainException) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def raise_http_error(error: DomainException, request_id: str) -> NoReturn:
    """Log a domain failure with the request id and re-raise it as HTTPException"""
    status_code = status_code_for(error)
    if status_code == 500:
        logging.error(f"Unhandled domain error: {error}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error") from error

    logging.warning(f"{type(error).__name__}: {error}", extra={"request_id": request_id})
    raise HTTPException(status_code=status_code, detail=str(error)) from error
