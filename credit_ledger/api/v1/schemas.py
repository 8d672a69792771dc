"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Dict, List, Optional, Union
import uuid


class ContractCreateRequest(BaseModel):
    """Request body for POST /v1/contracts"""

    client_id: uuid.UUID
    start_date: date
    modality: str = Field(..., description="daily | weekly | fortnightly | monthly")
    payments_quantity: int = Field(..., gt=0)
    payment_amount_cents: int = Field(..., gt=0)
    total_amount_cents: int = Field(..., gt=0)
    loan_amount_cents: int = Field(..., gt=0)
    non_working_days: List[Union[int, str]] = Field(
        default_factory=list,
        description="Weekday names, abbreviations or Sunday-first indexes",
    )


class DepositRequest(BaseModel):
    """Request body for POST /v1/contracts/{contract_id}/movements"""

    amount_cents: int = Field(..., gt=0, description="Deposit amount in cents")
    payment_type: str = Field(..., description="cash | bank")
    description: Optional[str] = None


class InstallmentSchema(BaseModel):
    """Single installment with its calendar status"""

    payment_number: int
    due_date: date
    amount_cents: int
    paid_cents: int
    is_complete: bool
    status: str
    movement_ids: List[str]


class PartialInstallmentSchema(BaseModel):
    payment_number: int
    outstanding_cents: int


class SnapshotSchema(BaseModel):
    """Delinquency snapshot of a contract"""

    payed_amount_cents: int
    not_validated_amount_cents: int
    pending_amount_cents: int
    payments_late: int
    payments_up_to_date: int
    payments_incomplete: int
    payments_remaining: int
    days_expired: int
    days_ahead: int
    days_pending: int
    today_incomplete: bool
    is_outdated: bool
    is_client_updated_for_outdated: bool
    amount_late_or_incomplete_cents: int
    color: str
    icon: str
    last_payment_at: datetime
    is_active: bool


class ContractResponse(BaseModel):
    """Response for contract endpoints"""

    contract_id: str
    client_id: str
    status: str
    modality: str
    start_date: date
    payments_quantity: int
    payment_amount_cents: int
    total_amount_cents: int
    loan_amount_cents: int
    non_working_days: List[int]
    installments: List[InstallmentSchema]
    snapshot: SnapshotSchema
    next_partial_installment: Optional[PartialInstallmentSchema] = None
    finished_at: Optional[datetime] = None
    created_at: str


class MovementResponse(BaseModel):
    movement_id: str
    contract_id: str
    amount_cents: int
    type: str
    status: str
    payment_type: Optional[str] = None
    is_funding: bool
    created_at: str


class RecalculationResponse(BaseModel):
    """Outcome of one recalculation pass"""

    contract_id: str
    status: str
    changed_installments: int
    changed_fields: List[str]
    events: List[str]
    snapshot: SnapshotSchema


class DepositResponse(BaseModel):
    """Response for POST /v1/contracts/{contract_id}/movements"""

    movement: MovementResponse
    recalculation: RecalculationResponse


class BucketSchema(BaseModel):
    count: int
    paid_today: int
    percent: float


class PortfolioSummaryResponse(BaseModel):
    """Response for GET /v1/portfolio/summary"""

    total_contracts: int
    total_paid_today: int
    buckets: Dict[str, BucketSchema]
