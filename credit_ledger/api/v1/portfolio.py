"""GET /v1/portfolio/summary - Collections dashboard totals"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from credit_ledger.api.v1.schemas import BucketSchema, PortfolioSummaryResponse
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.contracts import ContractService

router = APIRouter()


@router.get("/portfolio/summary", response_model=PortfolioSummaryResponse)
def get_portfolio_summary(db: Session = Depends(get_db)):
    """
    Bucket active contracts into updated, late and expired.

    Returns:
        Per-bucket counts, how many paid today, and share of the portfolio
    """
    summary = ContractService(db).summary()

    return PortfolioSummaryResponse(
        total_contracts=summary.total_contracts,
        total_paid_today=summary.total_paid_today,
        buckets={
            bucket.value: BucketSchema(count=totals.count, paid_today=totals.paid_today, percent=totals.percent)
            for bucket, totals in summary.buckets.items()
        },
    )
