"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from credit_ledger.api.main import create_app
from credit_ledger.infrastructure.database.models import Base, Client, LoanContract
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.contracts import ContractService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday; with Sundays off the 20 daily payments run 2024-01-02 .. 2024-01-24
START_DATE = date(2024, 1, 1)
ORIGINATED_AT = datetime(2024, 1, 1, 9, 0)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Factory for a second, independent session on the test database"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def borrower(db: Session) -> Client:
    """Client with a few loyalty points to lose"""
    borrower = Client(full_name="Maria Souza", loyalty_points=5)
    db.add(borrower)
    db.commit()
    return borrower


@pytest.fixture
def daily_contract(db: Session, borrower: Client) -> LoanContract:
    """
    Validated daily loan: 20 payments of 6.60 totalling 132.00, Sundays off.
    """
    contract = ContractService(db).originate(
        client_id=borrower.id,
        start_date=START_DATE,
        modality="daily",
        payments_quantity=20,
        payment_amount_cents=660,
        total_amount_cents=13_200,
        loan_amount_cents=10_000,
        non_working_days=["sunday"],
        privileged=True,
        now=ORIGINATED_AT,
    )
    db.commit()
    return contract
