"""Payment schedule generation for installment contracts"""

from datetime import date, timedelta
from typing import Iterable, List

from credit_ledger.domain.exceptions import DataIntegrityError, InputValidationError
from credit_ledger.domain.models import ContractTerms, Installment, Modality, Weekday, WeekdayMask

# A weekly mask marking more weekdays than this is treated as malformed
WEEKLY_MASK_LIMIT = 3


def parse_weekdays(values: Iterable["str | int | Weekday"]) -> WeekdayMask:
    """Parse weekday names, 3-letter abbreviations or Sunday-first indexes into a mask"""
    return frozenset(Weekday.parse(value) for value in values)


def normalize_mask(modality: Modality, mask: WeekdayMask) -> WeekdayMask:
    """
    Repair a malformed weekly mask.

    A weekly contract pays on the weekdays in its mask. When more than three
    weekdays are marked, the mask is replaced by the first weekday
    (Sunday → Saturday) that was not marked. Pending product sign-off before
    changing this.
    """
    if modality != Modality.WEEKLY or len(mask) <= WEEKLY_MASK_LIMIT:
        return mask

    for weekday in Weekday:
        if weekday not in mask:
            return frozenset({weekday})
    return mask


def payable_weekdays(modality: Modality, mask: WeekdayMask) -> WeekdayMask:
    """Weekdays a cadence can fall on: daily skips the mask, the rest use it as-is"""
    if modality == Modality.DAILY:
        return frozenset(weekday for weekday in Weekday if weekday not in mask)
    return frozenset(mask)


def generate_payment_days(
    start_date: date,
    payments_quantity: int,
    modality: "Modality | str",
    non_working_days: WeekdayMask,
    holidays: Iterable[date] = (),
) -> List[date]:
    """
    Walk forward from the start date collecting due dates.

    Requirements:
    - Exactly payments_quantity dates, strictly increasing
    - Never the start date itself, never a holiday
    - Daily: weekday NOT in the mask; other cadences: weekday IN the mask

    Raises:
        InputValidationError: Non-positive quantity or unknown modality
        DataIntegrityError: Mask and holidays leave no payable day
    """
    if payments_quantity <= 0:
        raise InputValidationError(f"payments_quantity must be positive, got {payments_quantity}")
    modality = Modality.parse(modality)

    holiday_set = set(holidays)
    allowed = payable_weekdays(modality, non_working_days)
    if not allowed:
        raise DataIntegrityError(f"No payable weekday for {modality.value} contract with mask {sorted(non_working_days)}")

    # Every week has at least one payable day, and each holiday can cost at most one week
    max_scan_days = (payments_quantity + len(holiday_set) + 1) * 7

    payment_days: List[date] = []
    for offset in range(1, max_scan_days + 1):
        day = start_date + timedelta(days=offset)
        if Weekday.of(day) in allowed and day not in holiday_set:
            payment_days.append(day)
            if len(payment_days) == payments_quantity:
                return payment_days

    raise DataIntegrityError(
        f"Only {len(payment_days)} of {payments_quantity} payment days found within {max_scan_days} days"
    )


def build_installments(terms: ContractTerms, holidays: Iterable[date] = ()) -> List[Installment]:
    """Create the unpaid installment list for a new contract"""
    payment_days = generate_payment_days(
        terms.start_date,
        terms.payments_quantity,
        terms.modality,
        terms.non_working_days,
        holidays,
    )
    return [
        Installment(payment_number=number, due_date=due_date, amount_cents=terms.payment_amount_cents)
        for number, due_date in enumerate(payment_days, start=1)
    ]
