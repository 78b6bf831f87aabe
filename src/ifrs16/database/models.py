"""SQLAlchemy models for the ifrs16 database."""

from datetime import datetime, UTC
from decimal import Decimal
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class ExactDecimal(TypeDecorator):
    """Decimal stored as its text form at a fixed scale.

    SQLite has no decimal type and would hand numeric columns to the driver
    as binary floats.
    """

    impl = String
    cache_ok = True

    def __init__(self, scale: int):
        super().__init__(length=40)
        self.scale = scale
        self.quantum = Decimal(1).scaleb(-scale)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value).quantize(self.quantum))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        # Rows written before text storage come back as int or float
        return Decimal(str(value))


# Scale 6 keeps sub-cent precision between chained periods
MONEY = ExactDecimal(6)
RATE = ExactDecimal(8)


class Lease(Base):
    """Lease model."""

    __tablename__ = "leases"

    id = Column(Integer, primary_key=True)
    lease_number = Column(String, unique=True, nullable=False)
    asset_description = Column(String, nullable=False, default="")
    commencement_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    lease_payment = Column(MONEY, nullable=False)
    payment_frequency = Column(Integer, nullable=False)
    discount_rate = Column(RATE, nullable=False)
    initial_rou_asset = Column(MONEY, nullable=False)
    initial_lease_liability = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    erp_asset_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default="draft")
    tenant_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    last_calculation_date = Column(DateTime, nullable=True)

    # Relationships
    calculations = relationship("LeaseCalculation", back_populates="lease", cascade="all, delete-orphan")


class LeaseCalculation(Base):
    """Lease calculation model, one row per lease per period."""

    __tablename__ = "lease_calculations"

    id = Column(Integer, primary_key=True)
    lease_id = Column(Integer, ForeignKey("leases.id"), nullable=False)
    period_date = Column(Date, nullable=False)
    beginning_rou_asset = Column(MONEY, nullable=False)
    beginning_lease_liability = Column(MONEY, nullable=False)
    lease_payment = Column(MONEY, nullable=False)
    interest_expense = Column(MONEY, nullable=False)
    amortization_expense = Column(MONEY, nullable=False)
    ending_rou_asset = Column(MONEY, nullable=False)
    ending_lease_liability = Column(MONEY, nullable=False)
    calculated_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    status = Column(String, nullable=False, default="calculated")
    notes = Column(String, nullable=True)
    posted_to_erp = Column(Boolean, default=False, nullable=False)
    erp_posting_date = Column(DateTime, nullable=True)
    erp_transaction_id = Column(String, nullable=True)
    # Set while a posting batch holds the row, cleared if the ERP does not take it
    posting_batch_reference = Column(String, nullable=True)

    # One calculation per lease period
    __table_args__ = (UniqueConstraint("lease_id", "period_date", name="uq_lease_period"),)

    # Relationships
    lease = relationship("Lease", back_populates="calculations")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
