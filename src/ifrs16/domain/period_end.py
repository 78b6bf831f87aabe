"""Period-end batch runner."""

import logging
from dataclasses import replace
from datetime import date, datetime, UTC
from typing import Callable, Optional

from ifrs16.database.base import Database
from ifrs16.domain import schedule
from ifrs16.domain.entities import Lease, LeaseFailure, PeriodEndResult
from ifrs16.domain.errors import ConflictError, DomainError

logger = logging.getLogger(__name__)

# Outcomes of processing one lease
CALCULATED = "calculated"
SKIPPED = "skipped"


class PeriodEndService:
    """Advance every active lease by one period at a period-end date."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = lambda: datetime.now(UTC)):
        """Initialize period-end service.

        Args:
            db: Database instance
            clock: Returns the current time; tests pin it
        """
        self.db = db
        self.clock = clock

    def run_period_end(self, period_date: date, tenant_id: Optional[int] = None) -> PeriodEndResult:
        """Calculate and save one period for each active lease covering ``period_date``.

        Leases are processed independently: a lease that fails is logged and
        reported in ``failures`` while the rest carry on. A lease that already
        has a calculation for the period is skipped, so re-running a period is
        harmless.

        Args:
            period_date: Period-end date
            tenant_id: Optional tenant whose leases to process; all tenants if None

        Returns:
            PeriodEndResult with counts and per-lease failures

        Raises:
            PersistenceError: If the active leases cannot be read
        """
        logger.info("Starting period-end calculations for %s", period_date.isoformat())

        leases = self.db.get_active_leases_as_of(period_date, tenant_id=tenant_id)
        succeeded = 0
        skipped = 0
        failures: list[LeaseFailure] = []

        for lease in leases:
            try:
                outcome = self._process_lease(lease, period_date)
            except DomainError as e:
                logger.error(
                    "Error calculating period %s for lease %s: %s",
                    period_date.isoformat(),
                    lease.lease_number,
                    e,
                    exc_info=True,
                )
                failures.append(LeaseFailure(lease_id=lease.id, lease_number=lease.lease_number, error=str(e)))
                continue

            if outcome == SKIPPED:
                skipped += 1
            else:
                succeeded += 1

        result = PeriodEndResult(
            period_date=period_date,
            total=len(leases),
            succeeded=succeeded,
            skipped=skipped,
            failures=tuple(failures),
        )
        if result.success:
            logger.info(
                "Completed period-end calculations. Processed %d out of %d leases (%d already calculated)",
                succeeded + skipped,
                len(leases),
                skipped,
            )
        else:
            logger.warning(
                "Period-end calculations for %s completed with errors. Processed %d out of %d leases; failed: %s",
                period_date.isoformat(),
                succeeded + skipped,
                len(leases),
                ", ".join(f.lease_number for f in failures),
            )
        return result

    def _process_lease(self, lease: Lease, period_date: date) -> str:
        """Calculate, save and stamp one lease period."""
        if self.db.calculation_exists(lease.id, period_date):
            logger.info("Lease %s already calculated for %s, skipping", lease.lease_number, period_date.isoformat())
            return SKIPPED

        schedule.validate_lease(lease)

        previous = self.db.get_latest_calculation_before(lease.id, period_date)
        if previous is None:
            beginning_rou = lease.initial_rou_asset
            beginning_liability = lease.initial_lease_liability
        else:
            beginning_rou = previous.ending_rou_asset
            beginning_liability = previous.ending_lease_liability

        now = self.clock()
        calculation = schedule.compute_period(lease, period_date, beginning_rou, beginning_liability, now=now)
        try:
            self.db.create_calculation(calculation)
        except ConflictError:
            # A concurrent run saved this period first
            logger.info("Lease %s was calculated concurrently for %s", lease.lease_number, period_date.isoformat())
            return SKIPPED

        self.db.update_lease(replace(lease, last_calculation_date=now))
        return CALCULATED
