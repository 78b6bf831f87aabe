"""Tests for LeaseService."""

import pytest
from datetime import date
from decimal import Decimal

from ifrs16.domain.entities import LeaseStatus, PaymentFrequency
from ifrs16.domain.errors import ConflictError, NotFoundError, ValidationError
from conftest import FIXED_NOW

CENT = Decimal("0.01")


def _create(service, lease_number="L-100", **overrides):
    values = dict(
        lease_number=lease_number,
        commencement_date=date(2024, 1, 1),
        end_date=date(2029, 1, 1),
        lease_payment=Decimal("1000"),
        payment_frequency=PaymentFrequency.ANNUALLY,
        discount_rate=Decimal("0.06"),
    )
    values.update(overrides)
    return service.create_lease(**values)


def test_create_lease(lease_service):
    """Test creating a lease prices its initial balances."""
    lease_id = _create(lease_service, asset_description="Warehouse", erp_asset_id="A-9", tenant_id=3)

    lease = lease_service.get_lease(lease_id)
    assert lease is not None
    assert lease.lease_number == "L-100"
    assert lease.asset_description == "Warehouse"
    assert lease.status == LeaseStatus.DRAFT
    assert lease.payment_frequency == PaymentFrequency.ANNUALLY
    assert lease.initial_lease_liability.quantize(CENT) == Decimal("4212.36")
    assert lease.initial_rou_asset == lease.initial_lease_liability
    assert lease.currency == "USD"
    assert lease.erp_asset_id == "A-9"
    assert lease.tenant_id == 3


def test_create_lease_accepts_frequency_months(lease_service):
    """Test that the frequency may be given as its interval in months."""
    lease_id = _create(lease_service, payment_frequency=3)
    assert lease_service.get_lease(lease_id).payment_frequency == PaymentFrequency.QUARTERLY


def test_create_lease_duplicate_number(lease_service):
    """Test that lease numbers are unique."""
    _create(lease_service)
    with pytest.raises(ConflictError, match="already exists"):
        _create(lease_service)


@pytest.mark.parametrize(
    "overrides",
    [
        {"lease_number": "  "},
        {"end_date": date(2023, 1, 1)},
        {"lease_payment": Decimal("0")},
        {"discount_rate": Decimal("-0.05")},
        {"payment_frequency": 5},
    ],
)
def test_create_lease_invalid(lease_service, overrides):
    """Test that malformed terms are rejected before anything is saved."""
    with pytest.raises(ValidationError):
        _create(lease_service, **overrides)
    assert lease_service.list_leases() == []


def test_get_lease_not_found(lease_service):
    """Test getting a missing lease."""
    assert lease_service.get_lease(999) is None
    assert lease_service.get_lease_by_number("nope") is None


def test_list_leases_filters(lease_service):
    """Test listing leases by tenant and status."""
    first = _create(lease_service, "L-1", tenant_id=1)
    _create(lease_service, "L-2", tenant_id=2)
    lease_service.activate_lease(first)

    assert [l.lease_number for l in lease_service.list_leases()] == ["L-1", "L-2"]
    assert [l.lease_number for l in lease_service.list_leases(tenant_id=2)] == ["L-2"]
    assert [l.lease_number for l in lease_service.list_leases(status=LeaseStatus.ACTIVE)] == ["L-1"]


class TestLifecycle:
    """Tests for activating and terminating leases."""

    def test_activate(self, lease_service):
        """Test that a draft lease becomes active."""
        lease_id = _create(lease_service)
        activated = lease_service.activate_lease(lease_id)

        assert activated.status == LeaseStatus.ACTIVE
        assert lease_service.get_lease(lease_id).status == LeaseStatus.ACTIVE

    def test_activate_twice_is_harmless(self, lease_service):
        """Test that activating an active lease changes nothing."""
        lease_id = _create(lease_service)
        lease_service.activate_lease(lease_id)
        assert lease_service.activate_lease(lease_id).status == LeaseStatus.ACTIVE

    def test_terminated_lease_cannot_be_activated(self, lease_service):
        """Test that termination is final."""
        lease_id = _create(lease_service)
        lease_service.terminate_lease(lease_id)

        assert lease_service.get_lease(lease_id).status == LeaseStatus.TERMINATED
        with pytest.raises(ValidationError, match="terminated"):
            lease_service.activate_lease(lease_id)

    def test_missing_lease(self, lease_service):
        """Test lifecycle changes of a lease that doesn't exist."""
        with pytest.raises(NotFoundError):
            lease_service.activate_lease(999)
        with pytest.raises(NotFoundError):
            lease_service.terminate_lease(999)


class TestCalculateLease:
    """Tests for computing and saving full schedules."""

    def test_preview_saves_nothing(self, lease_service):
        """Test that previewing a schedule leaves the store untouched."""
        lease_id = _create(lease_service)
        calcs = lease_service.preview_schedule(lease_id)

        assert len(calcs) == 6
        assert all(c.id is None for c in calcs)
        assert lease_service.list_calculations(lease_id) == []
        assert lease_service.get_lease(lease_id).status == LeaseStatus.DRAFT

    def test_calculate_saves_schedule_and_activates(self, lease_service):
        """Test that calculating a lease saves every period and activates it."""
        lease_id = _create(lease_service)
        saved = lease_service.calculate_lease(lease_id)

        assert len(saved) == 6
        assert all(c.id is not None for c in saved)

        stored = lease_service.list_calculations(lease_id)
        assert [c.id for c in stored] == [c.id for c in saved]
        assert [c.period_date for c in stored] == [date(2024 + k, 1, 1) for k in range(6)]

        lease = lease_service.get_lease(lease_id)
        assert lease.status == LeaseStatus.ACTIVE
        assert lease.last_calculation_date.replace(tzinfo=None) == FIXED_NOW.replace(tzinfo=None)

    def test_calculate_twice_conflicts(self, lease_service):
        """Test that a saved schedule cannot be saved again."""
        lease_id = _create(lease_service)
        lease_service.calculate_lease(lease_id)

        with pytest.raises(ConflictError):
            lease_service.calculate_lease(lease_id)
        assert len(lease_service.list_calculations(lease_id)) == 6

    def test_list_calculations_missing_lease(self, lease_service):
        """Test listing calculations of a lease that doesn't exist."""
        with pytest.raises(NotFoundError):
            lease_service.list_calculations(999)


class TestUpdateLease:
    """Tests for changing the terms of a draft lease."""

    def test_update_reprices(self, lease_service):
        """Test that new terms recompute the initial balances."""
        lease_id = _create(lease_service)

        updated = lease_service.update_lease(
            lease_id, lease_payment=Decimal("2000"), asset_description="Bigger warehouse"
        )

        assert updated.lease_payment == Decimal("2000")
        assert updated.initial_lease_liability.quantize(CENT) == Decimal("8424.73")
        assert updated.initial_rou_asset == updated.initial_lease_liability
        stored = lease_service.get_lease(lease_id)
        assert stored.asset_description == "Bigger warehouse"
        assert stored.initial_lease_liability.quantize(CENT) == Decimal("8424.73")
        assert stored.commencement_date == date(2024, 1, 1)

    def test_update_frequency_and_number(self, lease_service):
        """Test renumbering and switching frequency."""
        lease_id = _create(lease_service)

        updated = lease_service.update_lease(
            lease_id, lease_number="L-200", payment_frequency=PaymentFrequency.MONTHLY, lease_payment=Decimal("100")
        )

        assert lease_service.get_lease_by_number("L-200").id == lease_id
        assert lease_service.get_lease_by_number("L-100") is None
        assert updated.payment_frequency == PaymentFrequency.MONTHLY

    def test_active_lease_terms_are_fixed(self, lease_service):
        """Test that only drafts can change."""
        lease_id = _create(lease_service)
        lease_service.activate_lease(lease_id)

        with pytest.raises(ValidationError, match="can no longer change"):
            lease_service.update_lease(lease_id, lease_payment=Decimal("1"))
        assert lease_service.get_lease(lease_id).lease_payment == Decimal("1000")

    def test_invalid_terms(self, lease_service):
        """Test that updated terms are validated like new ones."""
        lease_id = _create(lease_service)

        with pytest.raises(ValidationError):
            lease_service.update_lease(lease_id, end_date=date(2023, 1, 1))
        with pytest.raises(ValidationError):
            lease_service.update_lease(lease_id, lease_number="  ")

    def test_taken_number(self, lease_service):
        """Test that another lease's number is refused."""
        _create(lease_service, "L-100")
        lease_id = _create(lease_service, "L-101")

        with pytest.raises(ConflictError, match="already exists"):
            lease_service.update_lease(lease_id, lease_number="L-100")

    def test_missing_lease(self, lease_service):
        """Test updating a lease that doesn't exist."""
        with pytest.raises(NotFoundError):
            lease_service.update_lease(999, lease_payment=Decimal("1"))


class TestDeleteLease:
    """Tests for deleting leases."""

    def test_delete(self, lease_service):
        """Test deleting a lease with an unposted schedule."""
        lease_id = _create(lease_service)
        lease_service.calculate_lease(lease_id)

        deleted = lease_service.delete_lease(lease_id)

        assert deleted.lease_number == "L-100"
        assert lease_service.get_lease(lease_id) is None

    def test_posted_lease_is_kept(self, lease_service, temp_db):
        """Test that a lease whose calculations reached the ERP cannot be deleted."""
        lease_id = _create(lease_service)
        first = lease_service.calculate_lease(lease_id)[0]
        temp_db.mark_calculations_posted([first.id], erp_transaction_id="B-1", posted_at=FIXED_NOW)

        with pytest.raises(ConflictError):
            lease_service.delete_lease(lease_id)
        assert lease_service.get_lease(lease_id) is not None

    def test_missing_lease(self, lease_service):
        """Test deleting a lease that doesn't exist."""
        with pytest.raises(NotFoundError):
            lease_service.delete_lease(999)


class TestGetCalculation:
    """Tests for looking up one calculation of a lease."""

    def test_get_calculation(self, lease_service):
        """Test fetching a saved period."""
        lease_id = _create(lease_service)
        saved = lease_service.calculate_lease(lease_id)

        calc = lease_service.get_calculation(lease_id, saved[2].id)
        assert calc.period_date == date(2026, 1, 1)
        assert calc.ending_lease_liability == saved[2].ending_lease_liability.quantize(Decimal("0.000001"))

    def test_calculation_of_another_lease(self, lease_service):
        """Test that a calculation is only found through its own lease."""
        first = _create(lease_service, "L-100")
        second = _create(lease_service, "L-101")
        other = lease_service.calculate_lease(second)[0]

        with pytest.raises(NotFoundError, match=f"Calculation {other.id} not found for lease L-100"):
            lease_service.get_calculation(first, other.id)

    def test_unknown_calculation(self, lease_service):
        """Test an ID that matches nothing."""
        lease_id = _create(lease_service)
        with pytest.raises(NotFoundError):
            lease_service.get_calculation(lease_id, 999)
