"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, Tuple
import uuid

from credit_ledger.domain.exceptions import InputValidationError


# Placeholder for contracts that never received a deposit
NO_PAYMENT_SENTINEL = datetime(1900, 1, 1)


class Modality(str, Enum):
    """Repayment cadence"""

    DAILY = "daily"
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: "str | Modality") -> "Modality":
        try:
            return cls(value)
        except ValueError as e:
            raise InputValidationError(f"Unrecognized modality: {value!r}") from e


class Weekday(IntEnum):
    """Day of week, Sunday-first"""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, day: date) -> "Weekday":
        # date.weekday() is Monday-first
        return cls((day.weekday() + 1) % 7)

    @classmethod
    def parse(cls, value: "str | int | Weekday") -> "Weekday":
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as e:
                raise InputValidationError(f"Unrecognized weekday: {value!r}") from e

        name = str(value).strip().lower()
        for weekday in cls:
            if weekday.name.lower() == name or weekday.name.lower()[:3] == name:
                return weekday
        raise InputValidationError(f"Unrecognized weekday: {value!r}")


WeekdayMask = FrozenSet[Weekday]


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    FINAL = "final"


class MovementStatus(str, Enum):
    PENDING = "pending"
    VALIDATED = "validated"


class PaymentType(str, Enum):
    CASH = "cash"
    BANK = "bank"


class Color(str, Enum):
    """Dashboard color hint for a contract"""

    DEFAULT = ""
    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


class Icon(str, Enum):
    """Dashboard icon hint for a contract"""

    DEFAULT = ""
    CHECK = "check"
    TARGET = "target"


class ContractStatus(str, Enum):
    PENDING_VALIDATION = "pending_validation"
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class RecalculationTrigger(str, Enum):
    """What caused a contract to be recalculated"""

    MOVEMENT_CREATED = "movement_created"
    MOVEMENT_VALIDATED = "movement_validated"
    MOVEMENT_CANCELLED = "movement_cancelled"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class LifecycleEventType(str, Enum):
    CONTRACT_CLOSED = "contract_closed"
    CONTRACT_ACTIVATED = "contract_activated"
    CONTRACT_DEACTIVATED = "contract_deactivated"
    CLIENT_PENALIZED = "client_penalized"


@dataclass(frozen=True)
class ContractTerms:
    """Origination parameters of a loan contract"""

    start_date: date
    modality: Modality
    payments_quantity: int
    payment_amount_cents: int
    total_amount_cents: int
    loan_amount_cents: int
    non_working_days: WeekdayMask


@dataclass(frozen=True)
class Installment:
    """Single scheduled due amount; paid_cents onwards is derived by allocation"""

    payment_number: int
    due_date: date
    amount_cents: int
    paid_cents: int = 0
    is_complete: bool = False
    linked_movement_ids: Tuple[uuid.UUID, ...] = ()

    @property
    def outstanding_cents(self) -> int:
        return max(self.amount_cents - self.paid_cents, 0)


@dataclass(frozen=True)
class Movement:
    """Cash transaction recorded against a contract"""

    id: uuid.UUID
    amount_cents: int
    type: MovementType
    status: MovementStatus
    created_at: datetime
    movement_date: date
    payment_type: PaymentType | None = None
    is_funding: bool = False

    @property
    def is_collected(self) -> bool:
        """Validated incoming money, the only kind allocated to installments"""
        return self.type == MovementType.IN and self.status == MovementStatus.VALIDATED


@dataclass(frozen=True)
class DelinquencySnapshot:
    """Denormalized collections-risk state of one contract"""

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
    amount_late_or_incomplete_cents: int
    color: Color
    icon: Icon
    last_payment_at: datetime
    # Lifecycle-owned; carried across recalculations
    is_client_updated_for_outdated: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class LifecycleEvent:
    """State transition produced by a recalculation; delivery belongs to a collaborator"""

    type: LifecycleEventType
    contract_id: uuid.UUID
    payload: Dict[str, Any] = field(default_factory=dict)
