"""Posting of lease calculations to the ERP ledger."""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional, Sequence

from ifrs16.config import AccountingSettings
from ifrs16.database.base import Database
from ifrs16.domain.entities import (
    CalculationStatus,
    CalculationSummary,
    ERPPostingRequest,
    ERPTransaction,
    Lease,
    LeaseCalculation,
    PostingFailure,
    PostingPreview,
    PostingResult,
)
from ifrs16.domain.errors import ConflictError, IntegrationError, PersistenceError, in_flight
from ifrs16.erp.base import ERPGateway

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

INTEREST_EXPENSE_NAME = "Interest Expense - Leases"
LEASE_LIABILITY_NAME = "Lease Liability"
AMORTIZATION_EXPENSE_NAME = "Amortization Expense - Right of Use Assets"
ACCUMULATED_AMORTIZATION_NAME = "Accumulated Amortization - Right of Use Assets"
CASH_NAME = "Cash"


def to_cents(amount: Decimal) -> Decimal:
    """Round a full-precision amount to the ledger's cent precision."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def posting_reference(lease: Lease, calculation: LeaseCalculation) -> str:
    """Reference shared by every leg of one lease period."""
    return f"{lease.lease_number}-{calculation.period_date:%Y-%m}"


def batch_reference(now: datetime) -> str:
    """Reference for one posting batch."""
    return f"IFRS16-{now:%Y%m%d-%H%M%S}"


def _awaiting_posting(calculation: LeaseCalculation) -> bool:
    return (
        not calculation.posted_to_erp
        and calculation.posting_batch_reference is None
        and calculation.status == CalculationStatus.CALCULATED
    )


def summarize(calculations: Sequence[LeaseCalculation]) -> CalculationSummary:
    """Totals over a set of calculations."""
    return CalculationSummary(
        total_calculations=len(calculations),
        unposted_calculations=sum(1 for c in calculations if not c.posted_to_erp),
        total_lease_payments=sum((c.lease_payment for c in calculations), Decimal("0")),
        total_interest_expense=sum((c.interest_expense for c in calculations), Decimal("0")),
        total_amortization_expense=sum((c.amortization_expense for c in calculations), Decimal("0")),
        total_rou_assets=sum((c.ending_rou_asset for c in calculations), Decimal("0")),
        total_lease_liabilities=sum((c.ending_lease_liability for c in calculations), Decimal("0")),
    )


class PostingService:
    """Translate lease calculations into balanced ERP batches and post them."""

    def __init__(
        self,
        db: Database,
        gateway: Optional[ERPGateway],
        accounts: Optional[AccountingSettings] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        """Initialize posting service.

        Args:
            db: Database instance
            gateway: ERP gateway the batches are sent to; None when only previewing
            accounts: Chart-of-accounts mapping; read from the environment if None
            timeout: Default ERP request timeout in seconds; the gateway's own
                default applies if None
            clock: Returns the current time; tests pin it
        """
        self.db = db
        self.gateway = gateway
        self.accounts = accounts if accounts is not None else AccountingSettings()
        self.timeout = timeout
        self.clock = clock

    def _pair(
        self,
        calculation: LeaseCalculation,
        lease: Lease,
        amount: Decimal,
        debit: tuple[str, str, str],
        credit: tuple[str, str, str],
    ) -> list[ERPTransaction]:
        """One balanced debit/credit pair. ``debit``/``credit`` are (code, name, description)."""
        reference = posting_reference(lease, calculation)
        debit_code, debit_name, debit_description = debit
        credit_code, credit_name, credit_description = credit
        return [
            ERPTransaction(
                transaction_date=calculation.period_date,
                account_code=debit_code,
                account_name=debit_name,
                debit_amount=amount,
                credit_amount=Decimal("0"),
                description=debit_description,
                reference=reference,
                currency=lease.currency,
            ),
            ERPTransaction(
                transaction_date=calculation.period_date,
                account_code=credit_code,
                account_name=credit_name,
                debit_amount=Decimal("0"),
                credit_amount=amount,
                description=credit_description,
                reference=reference,
                currency=lease.currency,
            ),
        ]

    def build_transactions(self, calculation: LeaseCalculation, lease: Lease) -> list[ERPTransaction]:
        """Journal legs for one lease period.

        Each positive component (interest, amortization, payment) becomes a
        matched debit/credit pair of the same cent-rounded amount, so the legs
        of a calculation always balance. A component under half a cent still
        gets its pair, at 0.00.
        """
        accounts = self.accounts
        number = lease.lease_number
        transactions: list[ERPTransaction] = []

        if calculation.interest_expense > 0:
            transactions += self._pair(
                calculation,
                lease,
                to_cents(calculation.interest_expense),
                debit=(accounts.interest_expense, INTEREST_EXPENSE_NAME, f"Interest expense for lease {number}"),
                credit=(accounts.lease_liability, LEASE_LIABILITY_NAME, f"Increase in lease liability for {number}"),
            )

        if calculation.amortization_expense > 0:
            transactions += self._pair(
                calculation,
                lease,
                to_cents(calculation.amortization_expense),
                debit=(
                    accounts.amortization_expense,
                    AMORTIZATION_EXPENSE_NAME,
                    f"Amortization expense for lease {number}",
                ),
                credit=(
                    accounts.accumulated_amortization,
                    ACCUMULATED_AMORTIZATION_NAME,
                    f"Accumulated amortization for {number}",
                ),
            )

        if calculation.lease_payment > 0:
            transactions += self._pair(
                calculation,
                lease,
                to_cents(calculation.lease_payment),
                debit=(accounts.lease_liability, LEASE_LIABILITY_NAME, f"Lease payment for {number}"),
                credit=(accounts.cash, CASH_NAME, f"Cash payment for lease {number}"),
            )

        return transactions

    def _with_leases(self, calculations: Sequence[LeaseCalculation]) -> list[tuple[LeaseCalculation, Lease]]:
        """Pair calculations with their leases, dropping any whose lease is gone."""
        leases: dict[int, Optional[Lease]] = {}
        paired = []
        for calculation in calculations:
            if calculation.lease_id not in leases:
                leases[calculation.lease_id] = self.db.get_lease(calculation.lease_id)
            lease = leases[calculation.lease_id]
            if lease is None:
                logger.warning(
                    "Lease %d for calculation %s no longer exists, leaving it out of the batch",
                    calculation.lease_id,
                    calculation.id,
                )
                continue
            paired.append((calculation, lease))
        return paired

    def build_posting_request(
        self, calculations: Sequence[LeaseCalculation], reference: Optional[str] = None
    ) -> ERPPostingRequest:
        """One ERP request covering every calculation given."""
        transactions: list[ERPTransaction] = []
        for calculation, lease in self._with_leases(calculations):
            transactions.extend(self.build_transactions(calculation, lease))

        posting_date = calculations[0].period_date if calculations else self.clock().date()
        return ERPPostingRequest(
            transactions=tuple(transactions),
            batch_reference=reference if reference is not None else batch_reference(self.clock()),
            posting_date=posting_date,
            description=f"IFRS16 Lease Calculations - {len(calculations)} leases",
        )

    def _release(self, reference: str, calculation_ids: list[int]) -> None:
        """Hand claimed calculations back after the ERP did not take the batch."""
        try:
            self.db.release_posting_claims(reference, calculation_ids)
        except PersistenceError as e:
            logger.error(
                "Could not release calculations %s from batch %s, release the batch by hand: %s",
                calculation_ids,
                reference,
                e,
            )

    def post_batch(self, calculation_ids: Sequence[int], timeout: Optional[float] = None) -> PostingResult:
        """Post calculations to the ERP as one batch.

        Missing IDs are skipped, and so are calculations that are already
        posted or held by another batch. The remaining calculations are
        claimed for this batch before the ERP is called, so no calculation
        reaches the ERP twice. Either every claimed calculation is marked
        posted or none is; claims are released when the ERP does not take
        the batch.

        Args:
            calculation_ids: Calculation IDs to post
            timeout: ERP request timeout in seconds, overriding the service default

        Returns:
            PostingResult; ``failure`` tells no-data, integration, persistence
            and conflict failures apart
        """
        logger.info("Posting %d calculations to ERP", len(calculation_ids))
        reference = batch_reference(self.clock())

        try:
            paired = self._with_leases(self._load_postable(calculation_ids))
            candidates = [calculation for calculation, _ in paired]
            claimed = set(self.db.claim_for_posting([c.id for c in candidates], reference)) if candidates else set()
        except PersistenceError as e:
            logger.error("Error loading calculations for posting: %s", e)
            return PostingResult(success=False, message=str(e), failure=PostingFailure.PERSISTENCE)

        held_elsewhere = [c.id for c in candidates if c.id not in claimed]
        if held_elsewhere:
            logger.warning("Calculations %s are held by another posting batch, skipping", held_elsewhere)

        calculations = [c for c in candidates if c.id in claimed]
        if not calculations:
            if held_elsewhere:
                return PostingResult(
                    success=False,
                    message=in_flight(held_elsewhere),
                    failure=PostingFailure.CONFLICT,
                )
            logger.warning("No valid calculations found for posting")
            return PostingResult(
                success=False,
                message="No valid calculations found for posting",
                failure=PostingFailure.NO_DATA,
            )

        ids = [calculation.id for calculation in calculations]
        request = self.build_posting_request(calculations, reference=reference)
        try:
            response = self.gateway.post_batch(request, timeout=timeout if timeout is not None else self.timeout)
        except IntegrationError as e:
            logger.error("Failed to post batch %s to ERP: %s", reference, e)
            self._release(reference, ids)
            return PostingResult(
                success=False,
                message=f"ERP integration failed: {e}",
                failure=PostingFailure.INTEGRATION,
                batch_reference=reference,
            )

        if not response.success:
            detail = "; ".join(response.errors) or response.message or "ERP rejected the batch"
            logger.error("Failed to post calculations to ERP: %s", detail)
            self._release(reference, ids)
            return PostingResult(
                success=False,
                message=f"ERP rejected batch: {detail}",
                failure=PostingFailure.INTEGRATION,
                batch_reference=reference,
            )

        try:
            self.db.mark_calculations_posted(
                ids, erp_transaction_id=response.batch_id, posted_at=self.clock(), batch_reference=reference
            )
        except ConflictError as e:
            logger.error("Batch %s was accepted by the ERP but %s", response.batch_id, e)
            return PostingResult(
                success=False,
                message=str(e),
                failure=PostingFailure.CONFLICT,
                batch_id=response.batch_id,
                batch_reference=reference,
            )
        except PersistenceError as e:
            # Claims stay in place so the batch is not sent again
            logger.error("Batch %s was accepted by the ERP but could not be recorded: %s", response.batch_id, e)
            return PostingResult(
                success=False,
                message=str(e),
                failure=PostingFailure.PERSISTENCE,
                batch_id=response.batch_id,
                batch_reference=reference,
            )

        logger.info("Successfully posted %d calculations to ERP (batch %s)", len(ids), response.batch_id)
        return PostingResult(
            success=True,
            message=f"Posted {len(ids)} calculations to ERP in batch {response.batch_id}",
            batch_id=response.batch_id,
            batch_reference=reference,
            posted_ids=tuple(ids),
            transaction_count=len(request.transactions),
        )

    def release_batch(self, reference: str) -> int:
        """Release every unposted calculation still held by a batch.

        For batches left behind by a poster that stopped before it heard back
        from the ERP; check the ERP first so nothing is posted twice.

        Returns:
            Number of calculations released
        """
        released = self.db.release_posting_claims(reference)
        logger.info("Released %d calculations from batch %s", released, reference)
        return released

    def _load_postable(self, calculation_ids: Sequence[int]) -> list[LeaseCalculation]:
        """Load calculations that exist and are not yet posted, in request order."""
        calculations = []
        seen = set()
        for calculation_id in calculation_ids:
            if calculation_id in seen:
                continue
            seen.add(calculation_id)
            calculation = self.db.get_calculation(calculation_id)
            if calculation is None:
                logger.info("Calculation %d not found, skipping", calculation_id)
                continue
            if calculation.posted_to_erp:
                logger.warning(
                    "Calculation %d already posted in ERP batch %s, skipping",
                    calculation_id,
                    calculation.erp_transaction_id,
                )
                continue
            calculations.append(calculation)
        return calculations

    def _unposted_for_period(self, period_date: date, tenant_id: Optional[int]) -> list[LeaseCalculation]:
        return [
            c
            for c in self.db.get_calculations_for_period(period_date, tenant_id=tenant_id)
            if _awaiting_posting(c)
        ]

    def post_period(
        self, period_date: date, tenant_id: Optional[int] = None, timeout: Optional[float] = None
    ) -> PostingResult:
        """Post every unposted calculation of a period.

        Having nothing to post is a success.
        """
        logger.info("Posting period calculations for %s to ERP", period_date.isoformat())
        try:
            unposted = self._unposted_for_period(period_date, tenant_id)
        except PersistenceError as e:
            logger.error("Error loading calculations for %s: %s", period_date.isoformat(), e)
            return PostingResult(success=False, message=str(e), failure=PostingFailure.PERSISTENCE)

        if not unposted:
            logger.info("No unposted calculations found for period %s", period_date.isoformat())
            return PostingResult(success=True, message=f"Nothing to post for {period_date.isoformat()}")

        return self.post_batch([c.id for c in unposted], timeout=timeout)

    def preview_period(self, period_date: date, tenant_id: Optional[int] = None) -> PostingPreview:
        """Show a period's calculations, their totals and the legs posting would send."""
        calculations = self.db.get_calculations_for_period(period_date, tenant_id=tenant_id)
        unposted = [c for c in calculations if _awaiting_posting(c)]
        proposed: list[ERPTransaction] = []
        for calculation, lease in self._with_leases(unposted):
            proposed.extend(self.build_transactions(calculation, lease))
        return PostingPreview(
            period_date=period_date,
            calculations=tuple(calculations),
            summary=summarize(calculations),
            proposed_transactions=tuple(proposed),
        )
