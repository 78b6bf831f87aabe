"""Lease domain service."""

import logging
from dataclasses import replace
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Callable, Optional

from ifrs16.database.base import Database
from ifrs16.domain import schedule
from ifrs16.domain.entities import (
    Lease as LeaseEntity,
    LeaseCalculation as LeaseCalculationEntity,
    LeaseStatus,
    PaymentFrequency,
)
from ifrs16.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_lease_number,
    lease_not_found,
)

logger = logging.getLogger(__name__)


class LeaseService:
    """Service for managing leases and their full schedules."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = lambda: datetime.now(UTC)):
        """Initialize lease service.

        Args:
            db: Database instance
            clock: Returns the current time; tests pin it
        """
        self.db = db
        self.clock = clock

    def create_lease(
        self,
        lease_number: str,
        commencement_date: date,
        end_date: date,
        lease_payment: Decimal,
        payment_frequency: PaymentFrequency,
        discount_rate: Decimal,
        asset_description: str = "",
        currency: str = "USD",
        erp_asset_id: Optional[str] = None,
        tenant_id: Optional[int] = None,
    ) -> int:
        """Create a draft lease with its initial ROU asset and liability.

        The initial values are the present value of the payment stream.

        Returns:
            Lease ID

        Raises:
            ValidationError: If the lease terms are malformed
            ConflictError: If the lease number is already taken
        """
        if not lease_number or not lease_number.strip():
            raise ValidationError("Lease number is required")

        schedule.validate_terms(
            commencement_date=commencement_date,
            end_date=end_date,
            lease_payment=lease_payment,
            payment_frequency=payment_frequency,
            discount_rate=discount_rate,
        )
        payment_frequency = PaymentFrequency(payment_frequency)

        if self.db.get_lease_by_number(lease_number) is not None:
            raise ConflictError(duplicate_lease_number(lease_number))

        # Unsaved lease so the calculator can price the terms
        terms = LeaseEntity(
            id=0,
            lease_number=lease_number,
            asset_description=asset_description,
            commencement_date=commencement_date,
            end_date=end_date,
            lease_payment=lease_payment,
            payment_frequency=payment_frequency,
            discount_rate=discount_rate,
            initial_rou_asset=Decimal("0"),
            initial_lease_liability=Decimal("0"),
            status=LeaseStatus.DRAFT,
            created_at=self.clock(),
            currency=currency,
        )
        initial_liability = schedule.compute_initial_liability(terms)
        initial_rou = schedule.compute_initial_rou(terms)

        lease_id = self.db.create_lease(
            lease_number=lease_number,
            asset_description=asset_description,
            commencement_date=commencement_date,
            end_date=end_date,
            lease_payment=lease_payment,
            payment_frequency=payment_frequency,
            discount_rate=discount_rate,
            initial_rou_asset=initial_rou,
            initial_lease_liability=initial_liability,
            status=LeaseStatus.DRAFT,
            currency=currency,
            erp_asset_id=erp_asset_id,
            tenant_id=tenant_id,
        )
        logger.info("Created lease %s with ID %d", lease_number, lease_id)
        return lease_id

    def get_lease(self, lease_id: int) -> Optional[LeaseEntity]:
        """Get lease by ID.

        Args:
            lease_id: Lease ID

        Returns:
            Lease entity or None if not found
        """
        return self.db.get_lease(lease_id)

    def get_lease_by_number(self, lease_number: str) -> Optional[LeaseEntity]:
        """Get lease by lease number."""
        return self.db.get_lease_by_number(lease_number)

    def list_leases(
        self, tenant_id: Optional[int] = None, status: Optional[LeaseStatus] = None
    ) -> list[LeaseEntity]:
        """List leases, optionally for one tenant or status."""
        return self.db.list_leases(tenant_id=tenant_id, status=status)

    def _require_lease(self, lease_id: int) -> LeaseEntity:
        lease = self.db.get_lease(lease_id)
        if lease is None:
            raise NotFoundError(lease_not_found(lease_id))
        return lease

    def update_lease(
        self,
        lease_id: int,
        lease_number: Optional[str] = None,
        asset_description: Optional[str] = None,
        commencement_date: Optional[date] = None,
        end_date: Optional[date] = None,
        lease_payment: Optional[Decimal] = None,
        payment_frequency: Optional[PaymentFrequency] = None,
        discount_rate: Optional[Decimal] = None,
        currency: Optional[str] = None,
        erp_asset_id: Optional[str] = None,
        tenant_id: Optional[int] = None,
    ) -> LeaseEntity:
        """Change the terms of a draft lease and reprice it.

        Only the arguments given change. The initial ROU asset and liability
        are recomputed from the new terms.

        Returns:
            The updated lease

        Raises:
            NotFoundError: If the lease doesn't exist
            ValidationError: If the lease is no longer a draft or the new terms
                are malformed
            ConflictError: If the new lease number is already taken
        """
        lease = self._require_lease(lease_id)
        if lease.status != LeaseStatus.DRAFT:
            raise ValidationError(
                f"Lease {lease.lease_number} is {lease.status.value} and its terms can no longer change"
            )

        changes = {
            "lease_number": lease_number,
            "asset_description": asset_description,
            "commencement_date": commencement_date,
            "end_date": end_date,
            "lease_payment": lease_payment,
            "payment_frequency": payment_frequency,
            "discount_rate": discount_rate,
            "currency": currency,
            "erp_asset_id": erp_asset_id,
            "tenant_id": tenant_id,
        }
        updated = replace(lease, **{name: value for name, value in changes.items() if value is not None})

        if not updated.lease_number.strip():
            raise ValidationError("Lease number is required")
        schedule.validate_terms(
            commencement_date=updated.commencement_date,
            end_date=updated.end_date,
            lease_payment=updated.lease_payment,
            payment_frequency=updated.payment_frequency,
            discount_rate=updated.discount_rate,
        )
        updated = replace(updated, payment_frequency=PaymentFrequency(updated.payment_frequency))

        if updated.lease_number != lease.lease_number:
            if self.db.get_lease_by_number(updated.lease_number) is not None:
                raise ConflictError(duplicate_lease_number(updated.lease_number))

        updated = replace(
            updated,
            initial_lease_liability=schedule.compute_initial_liability(updated),
            initial_rou_asset=schedule.compute_initial_rou(updated),
        )
        self.db.update_lease_terms(updated)
        logger.info("Updated lease %s", updated.lease_number)
        return updated

    def delete_lease(self, lease_id: int) -> LeaseEntity:
        """Delete a lease and its calculations.

        Returns:
            The deleted lease

        Raises:
            NotFoundError: If the lease doesn't exist
            ConflictError: If any of its calculations reached the ERP
        """
        lease = self._require_lease(lease_id)
        self.db.delete_lease(lease_id)
        logger.info("Deleted lease %s", lease.lease_number)
        return lease

    def activate_lease(self, lease_id: int) -> LeaseEntity:
        """Move a draft lease to active so period-end runs pick it up.

        Raises:
            NotFoundError: If the lease doesn't exist
            ValidationError: If the lease is not a draft or its terms are malformed
        """
        lease = self._require_lease(lease_id)
        if lease.status == LeaseStatus.ACTIVE:
            return lease
        if lease.status != LeaseStatus.DRAFT:
            raise ValidationError(
                f"Lease {lease.lease_number} is {lease.status.value} and cannot be activated"
            )
        schedule.validate_lease(lease)

        activated = replace(lease, status=LeaseStatus.ACTIVE)
        self.db.update_lease(activated)
        logger.info("Activated lease %s", lease.lease_number)
        return activated

    def terminate_lease(self, lease_id: int) -> LeaseEntity:
        """Terminate a lease; it drops out of later period-end runs.

        Raises:
            NotFoundError: If the lease doesn't exist
        """
        lease = self._require_lease(lease_id)
        terminated = replace(lease, status=LeaseStatus.TERMINATED)
        self.db.update_lease(terminated)
        logger.info("Terminated lease %s", lease.lease_number)
        return terminated

    def preview_schedule(self, lease_id: int) -> list[LeaseCalculationEntity]:
        """Compute the full schedule for a lease without saving it.

        Raises:
            NotFoundError: If the lease doesn't exist
            ValidationError: If the lease terms are malformed
        """
        lease = self._require_lease(lease_id)
        schedule.validate_lease(lease)
        return schedule.compute_schedule(lease, now=self.clock())

    def calculate_lease(self, lease_id: int) -> list[LeaseCalculationEntity]:
        """Compute and save the full schedule, then mark the lease active.

        The schedule is written in one transaction, so a lease either gets
        every period or none.

        Returns:
            The saved calculations, with IDs

        Raises:
            NotFoundError: If the lease doesn't exist
            ValidationError: If the lease terms are malformed
            ConflictError: If any period of the lease was already calculated
        """
        lease = self._require_lease(lease_id)
        schedule.validate_lease(lease)
        logger.info("Starting calculation for lease %s", lease.lease_number)

        now = self.clock()
        calculations = schedule.compute_schedule(lease, now=now)
        ids = self.db.create_calculations(calculations)
        saved = [replace(calc, id=calc_id) for calc, calc_id in zip(calculations, ids)]

        self.db.update_lease(replace(lease, status=LeaseStatus.ACTIVE, last_calculation_date=now))
        logger.info(
            "Completed calculation for lease %s. Generated %d periods", lease.lease_number, len(saved)
        )
        return saved

    def list_calculations(self, lease_id: int) -> list[LeaseCalculationEntity]:
        """List saved calculations for a lease ordered by period date.

        Raises:
            NotFoundError: If the lease doesn't exist
        """
        self._require_lease(lease_id)
        return self.db.list_calculations_for_lease(lease_id)

    def get_calculation(self, lease_id: int, calculation_id: int) -> LeaseCalculationEntity:
        """Get one saved calculation of a lease.

        Raises:
            NotFoundError: If the lease doesn't exist or the calculation is not one of its own
        """
        lease = self._require_lease(lease_id)
        calculation = self.db.get_calculation(calculation_id)
        if calculation is None or calculation.lease_id != lease_id:
            raise NotFoundError(f"Calculation {calculation_id} not found for lease {lease.lease_number}")
        return calculation
