"""Nightly maintenance jobs: refresh active contracts, purge finished ones"""

import argparse
import logging
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.infrastructure.database.session import SessionLocal
from credit_ledger.infrastructure.observability.logging import setup_logging
from credit_ledger.services.contracts import ContractService


def run_refresh(db: Session) -> int:
    results = ContractService(db).refresh_active()
    return 1 if results["failed"] else 0


def run_purge(db: Session) -> int:
    ContractService(db).purge_finished()
    db.commit()
    return 0


def main(argv: Optional[List[str]] = None, session_factory: Callable[[], Session] = SessionLocal) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Credit ledger maintenance jobs")
    parser.add_argument(
        "job",
        choices=["refresh", "purge"],
        help="refresh: recalculate every active contract; purge: delete finished contracts",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})",
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    logging.info(f"Starting {args.job} job", extra={"step": f"job_{args.job}"})

    db = session_factory()
    try:
        if args.job == "refresh":
            return run_refresh(db)
        return run_purge(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
