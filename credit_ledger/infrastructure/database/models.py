"""SQLAlchemy ORM models for contracts, installments, movements and snapshots"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Table,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# Timestamps are naive wall-clock values in the business timezone

installment_movement = Table(
    "installment_movement",
    Base.metadata,
    Column("installment_id", UUID(as_uuid=True), ForeignKey("installment.id", ondelete="CASCADE"), primary_key=True),
    Column("movement_id", UUID(as_uuid=True), ForeignKey("movement.id", ondelete="CASCADE"), primary_key=True),
)


class Client(Base):
    """Borrower with a loyalty points counter"""

    __tablename__ = "client"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(Text, nullable=False)
    loyalty_points = Column(Integer, nullable=False, default=0)

    contracts = relationship("LoanContract", back_populates="client")


class Holiday(Base):
    """Non-payable calendar date"""

    __tablename__ = "holiday"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    holiday_date = Column(Date, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class LoanContract(Base):
    """One credit extended to a client"""

    __tablename__ = "loan_contract"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("client.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    modality = Column(String(16), nullable=False)
    payments_quantity = Column(Integer, nullable=False)
    payment_amount_cents = Column(BigInteger, nullable=False)
    total_amount_cents = Column(BigInteger, nullable=False)
    loan_amount_cents = Column(BigInteger, nullable=False)
    non_working_days = Column(JSON, nullable=False)  # Sunday-first weekday indexes
    payment_days = Column(JSON, nullable=False)  # ISO dates
    is_active = Column(Boolean, nullable=False, default=True)
    is_validated = Column(Boolean, nullable=False, default=False)
    finished_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    client = relationship("Client", back_populates="contracts")
    installments = relationship(
        "Installment",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="Installment.payment_number",
    )
    movements = relationship(
        "Movement",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="[Movement.created_at, Movement.id]",
    )
    snapshot = relationship(
        "DelinquencySnapshotRecord",
        back_populates="contract",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Installment(Base):
    """Scheduled due amount; paid/complete/links are rewritten by every recalculation"""

    __tablename__ = "installment"
    __table_args__ = (UniqueConstraint("contract_id", "payment_number", name="uq_installment_number"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(UUID(as_uuid=True), ForeignKey("loan_contract.id", ondelete="CASCADE"), nullable=False)
    payment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    paid_cents = Column(BigInteger, nullable=False, default=0)
    is_complete = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, nullable=False)

    contract = relationship("LoanContract", back_populates="installments")
    movements = relationship("Movement", secondary=installment_movement, back_populates="installments")


class Movement(Base):
    """Cash transaction; only status changes after creation"""

    __tablename__ = "movement"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(UUID(as_uuid=True), ForeignKey("loan_contract.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    type = Column(String(8), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    payment_type = Column(String(8), nullable=True)
    is_funding = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    movement_date = Column(Date, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    contract = relationship("LoanContract", back_populates="movements")
    installments = relationship("Installment", secondary=installment_movement, back_populates="movements")


class DelinquencySnapshotRecord(Base):
    """Denormalized delinquency state, optimistic-locked by version"""

    __tablename__ = "delinquency_snapshot"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(
        UUID(as_uuid=True), ForeignKey("loan_contract.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    version = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    payed_amount_cents = Column(BigInteger, nullable=False, default=0)
    not_validated_amount_cents = Column(BigInteger, nullable=False, default=0)
    pending_amount_cents = Column(BigInteger, nullable=False)
    payments_late = Column(Integer, nullable=False, default=0)
    payments_up_to_date = Column(Integer, nullable=False, default=0)
    payments_incomplete = Column(Integer, nullable=False, default=0)
    payments_remaining = Column(Integer, nullable=False)
    days_expired = Column(Integer, nullable=False, default=0)
    days_ahead = Column(Integer, nullable=False, default=0)
    days_pending = Column(Integer, nullable=False, default=0)
    today_incomplete = Column(Boolean, nullable=False, default=False)
    is_outdated = Column(Boolean, nullable=False, default=False)
    is_client_updated_for_outdated = Column(Boolean, nullable=False, default=False)
    amount_late_or_incomplete_cents = Column(BigInteger, nullable=False, default=0)
    color = Column(String(16), nullable=False, default="")
    icon = Column(String(16), nullable=False, default="")
    last_payment_at = Column(DateTime, nullable=False)
    recalculated_at = Column(DateTime, nullable=False)

    contract = relationship("LoanContract", back_populates="snapshot")

    __mapper_args__ = {"version_id_col": version}


class OutboundEvent(Base):
    """Lifecycle event queue; a collaborator delivers and marks them"""

    __tablename__ = "outbound_event"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    event_type = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False)
