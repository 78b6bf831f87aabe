"""Abstract database interface: the lease store and the calculation store."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ifrs16.domain.entities import (
    Lease,
    LeaseCalculation,
    LeaseStatus,
    PaymentFrequency,
)


class Database(ABC):
    """Abstract database interface for ifrs16.

    Implementations translate their own driver errors into
    ``PersistenceError`` and uniqueness violations into ``ConflictError``.
    Tenancy filtering happens here and nowhere else.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Lease operations
    @abstractmethod
    def create_lease(
        self,
        lease_number: str,
        asset_description: str,
        commencement_date: date,
        end_date: date,
        lease_payment: Decimal,
        payment_frequency: PaymentFrequency,
        discount_rate: Decimal,
        initial_rou_asset: Decimal,
        initial_lease_liability: Decimal,
        status: LeaseStatus = LeaseStatus.DRAFT,
        currency: str = "USD",
        erp_asset_id: Optional[str] = None,
        tenant_id: Optional[int] = None,
    ) -> int:
        """Create a lease. Returns lease ID."""
        pass

    @abstractmethod
    def get_lease(self, lease_id: int) -> Optional[Lease]:
        """Get lease by ID."""
        pass

    @abstractmethod
    def get_lease_by_number(self, lease_number: str) -> Optional[Lease]:
        """Get lease by lease number."""
        pass

    @abstractmethod
    def list_leases(
        self, tenant_id: Optional[int] = None, status: Optional[LeaseStatus] = None
    ) -> list[Lease]:
        """List leases, optionally filtered by tenant and status."""
        pass

    @abstractmethod
    def get_active_leases_as_of(self, as_of: date, tenant_id: Optional[int] = None) -> list[Lease]:
        """List active leases whose term covers ``as_of`` (both ends inclusive)."""
        pass

    @abstractmethod
    def update_lease(self, lease: Lease) -> None:
        """Persist the mutable fields of a lease (status, last calculation date, ERP asset)."""
        pass

    @abstractmethod
    def update_lease_terms(self, lease: Lease) -> None:
        """Persist the terms and initial values of a lease.

        Raises:
            NotFoundError: If the lease doesn't exist
            ConflictError: If the new lease number is already taken
        """
        pass

    @abstractmethod
    def delete_lease(self, lease_id: int) -> None:
        """Delete a lease together with its calculations.

        Raises:
            NotFoundError: If the lease doesn't exist
            ConflictError: If any of its calculations has been posted to the ERP
        """
        pass

    # Calculation operations
    @abstractmethod
    def create_calculation(self, calculation: LeaseCalculation) -> int:
        """Create a calculation. Returns calculation ID.

        Raises:
            ConflictError: If the lease already has a calculation for the period
        """
        pass

    @abstractmethod
    def create_calculations(self, calculations: list[LeaseCalculation]) -> list[int]:
        """Create several calculations in one transaction. Returns their IDs in order."""
        pass

    @abstractmethod
    def get_calculation(self, calculation_id: int) -> Optional[LeaseCalculation]:
        """Get calculation by ID."""
        pass

    @abstractmethod
    def calculation_exists(self, lease_id: int, period_date: date) -> bool:
        """Check if the lease already has a calculation for ``period_date``."""
        pass

    @abstractmethod
    def get_latest_calculation_before(self, lease_id: int, before: date) -> Optional[LeaseCalculation]:
        """Most recent calculation for the lease with a period date strictly before ``before``."""
        pass

    @abstractmethod
    def list_calculations_for_lease(self, lease_id: int) -> list[LeaseCalculation]:
        """List calculations for a lease ordered by period date."""
        pass

    @abstractmethod
    def get_calculations_for_period(
        self, period_date: date, tenant_id: Optional[int] = None
    ) -> list[LeaseCalculation]:
        """List calculations for a period date, optionally limited to one tenant's leases."""
        pass

    @abstractmethod
    def claim_for_posting(self, calculation_ids: list[int], batch_reference: str) -> list[int]:
        """Reserve unposted, unclaimed calculations for one posting batch.

        Each row is claimed with a conditional update and the claims are
        committed before returning, so two batches never hold the same row.

        Returns:
            IDs this batch now holds, in the order requested
        """
        pass

    @abstractmethod
    def release_posting_claims(
        self, batch_reference: str, calculation_ids: Optional[list[int]] = None
    ) -> int:
        """Drop a batch's claim on calculations that were not posted.

        Args:
            batch_reference: Batch holding the claims
            calculation_ids: Limit the release to these IDs; all of the batch's
                unposted calculations if None

        Returns:
            Number of calculations released
        """
        pass

    @abstractmethod
    def mark_calculations_posted(
        self,
        calculation_ids: list[int],
        erp_transaction_id: str,
        posted_at: datetime,
        batch_reference: Optional[str] = None,
    ) -> None:
        """Mark calculations as posted to the ERP, all or nothing.

        With ``batch_reference`` only calculations claimed by that batch count.

        Raises:
            ConflictError: If any calculation is missing, already posted or
                held by another batch; nothing is marked in that case
        """
        pass
