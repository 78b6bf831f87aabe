"""Shared pytest fixtures for ifrs16 tests."""

import tempfile
import os
from datetime import date, datetime, UTC
from decimal import Decimal
import pytest

from ifrs16.config import AccountingSettings
from ifrs16.database.factories import create_sqlite_database
from ifrs16.domain.entities import (
    ERPAsset,
    ERPPostingResponse,
    Lease,
    LeaseStatus,
    PaymentFrequency,
)
from ifrs16.domain.lease import LeaseService
from ifrs16.domain.period_end import PeriodEndService
from ifrs16.domain.posting import PostingService
from ifrs16.erp.base import ERPGateway

FIXED_NOW = datetime(2024, 2, 1, 9, 30, 0, tzinfo=UTC)


def fixed_clock():
    return FIXED_NOW


class FakeERPGateway(ERPGateway):
    """In-memory ERP gateway that records what it was sent."""

    def __init__(self, response=None, error=None, assets=None, healthy=True):
        self.response = response or ERPPostingResponse(success=True, batch_id="ERP-BATCH-1", message="Posted")
        self.error = error
        self.assets = assets or []
        self.healthy = healthy
        self.requests = []
        self.timeouts = []

    def post_batch(self, request, timeout=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        if self.error is not None:
            raise self.error
        return self.response

    def test_connection(self):
        return self.healthy

    def get_assets(self):
        if self.error is not None:
            raise self.error
        return list(self.assets)

    def get_asset(self, asset_id):
        if self.error is not None:
            raise self.error
        return next((a for a in self.assets if a.asset_id == asset_id), None)


def make_lease(**overrides) -> Lease:
    """Build an unsaved lease entity with round numbers."""
    values = dict(
        id=1,
        lease_number="L-TEST",
        asset_description="Test asset",
        commencement_date=date(2024, 1, 31),
        end_date=date(2025, 1, 31),
        lease_payment=Decimal("1000"),
        payment_frequency=PaymentFrequency.MONTHLY,
        discount_rate=Decimal("0.12"),
        initial_rou_asset=Decimal("12000"),
        initial_lease_liability=Decimal("10000"),
        status=LeaseStatus.ACTIVE,
        created_at=FIXED_NOW,
    )
    values.update(overrides)
    return Lease(**values)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def accounts():
    """Default chart of accounts, independent of the environment."""
    return AccountingSettings(
        rou_asset="1600",
        accumulated_amortization="1650",
        lease_liability="2400",
        interest_expense="7200",
        amortization_expense="6200",
        cash="1000",
    )


@pytest.fixture
def lease_service(temp_db):
    """Create a LeaseService with a temporary database."""
    return LeaseService(temp_db, clock=fixed_clock)


@pytest.fixture
def period_end_service(temp_db):
    """Create a PeriodEndService with a temporary database."""
    return PeriodEndService(temp_db, clock=fixed_clock)


@pytest.fixture
def erp_gateway():
    """Create a fake ERP gateway that accepts every batch."""
    return FakeERPGateway()


@pytest.fixture
def posting_service(temp_db, erp_gateway, accounts):
    """Create a PostingService with a temporary database and fake ERP."""
    return PostingService(temp_db, erp_gateway, accounts=accounts, clock=fixed_clock)


@pytest.fixture
def sample_lease(lease_service):
    """Create an active five-year annual lease."""
    lease_id = lease_service.create_lease(
        lease_number="L-001",
        commencement_date=date(2024, 1, 1),
        end_date=date(2029, 1, 1),
        lease_payment=Decimal("1000"),
        payment_frequency=PaymentFrequency.ANNUALLY,
        discount_rate=Decimal("0.06"),
        asset_description="Office space",
    )
    return lease_service.activate_lease(lease_id)


@pytest.fixture
def monthly_leases(lease_service):
    """Create three active monthly leases covering 2024."""
    leases = []
    for number, payment in (("M-001", "1000"), ("M-002", "2000"), ("M-003", "3000")):
        lease_id = lease_service.create_lease(
            lease_number=number,
            commencement_date=date(2024, 1, 31),
            end_date=date(2025, 1, 31),
            lease_payment=Decimal(payment),
            payment_frequency=PaymentFrequency.MONTHLY,
            discount_rate=Decimal("0.12"),
        )
        leases.append(lease_service.activate_lease(lease_id))
    return leases


@pytest.fixture
def sample_assets():
    """ERP assets returned by the fake gateway."""
    return [
        ERPAsset(asset_id="A-1", asset_number="FA-0001", description="Head office", cost=Decimal("250000")),
        ERPAsset(asset_id="A-2", asset_number="FA-0002", description="Delivery van", cost=Decimal("42000")),
    ]


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
