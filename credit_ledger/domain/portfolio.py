"""Portfolio summary - buckets active contracts for the collections dashboard"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Iterable

from credit_ledger.domain.models import DelinquencySnapshot


class Bucket(str, Enum):
    UPDATED = "updated"
    LATE = "late"
    EXPIRED = "expired"


@dataclass(frozen=True)
class BucketTotals:
    count: int
    paid_today: int
    percent: float


@dataclass(frozen=True)
class PortfolioSummary:
    total_contracts: int
    buckets: Dict[Bucket, BucketTotals]

    @property
    def total_paid_today(self) -> int:
        return sum(totals.paid_today for totals in self.buckets.values())


def classify(snapshot: DelinquencySnapshot) -> FrozenSet[Bucket]:
    """
    Assign a snapshot to dashboard buckets (a contract may fall in none).

    - updated: prepaid with a balance, or nothing late/incomplete/expired with a balance
    - late: incomplete today or overdue installments, not expired, nothing prepaid
    - expired: past the final due date with a balance, nothing prepaid
    """
    s = snapshot
    buckets = set()

    if (s.days_ahead > 0 and s.pending_amount_cents > 0) or (
        s.payments_incomplete == 0 and s.payments_late == 0 and s.days_expired == 0 and s.pending_amount_cents > 0
    ):
        buckets.add(Bucket.UPDATED)

    if (s.today_incomplete or s.payments_late > 0) and s.days_expired == 0 and s.days_ahead == 0:
        buckets.add(Bucket.LATE)

    if s.days_expired > 0 and s.days_ahead == 0:
        buckets.add(Bucket.EXPIRED)

    return frozenset(buckets)


def rate(count: int, total: int) -> float:
    """Percentage of total; an empty portfolio reports 0.0"""
    if total == 0:
        return 0.0
    return count / total * 100


def summarize(snapshots: Iterable[DelinquencySnapshot], today: date) -> PortfolioSummary:
    """Count contracts per bucket and how many of them paid today"""
    counts = {bucket: 0 for bucket in Bucket}
    paid_today = {bucket: 0 for bucket in Bucket}
    total = 0

    for snapshot in snapshots:
        total += 1
        paid = snapshot.last_payment_at.date() == today
        for bucket in classify(snapshot):
            counts[bucket] += 1
            if paid:
                paid_today[bucket] += 1

    return PortfolioSummary(
        total_contracts=total,
        buckets={
            bucket: BucketTotals(count=counts[bucket], paid_today=paid_today[bucket], percent=rate(counts[bucket], total))
            for bucket in Bucket
        },
    )
