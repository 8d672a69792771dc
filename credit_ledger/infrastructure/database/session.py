"""Engine and session factory for the ledger database"""

from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from credit_ledger.config import settings

# Each recalculation holds its contract row lock (SELECT ... FOR UPDATE) until
# the session commits or rolls back; one pooled connection per in-flight request
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_recycle=3600,
)

# Services flush and never commit; the request handler or job owns the transaction
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session; closing it releases any row lock still held"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
