"""IFRS16 amortization schedule calculator.

Straight-line amortization of the right-of-use (ROU) asset and
effective-interest accretion of the lease liability. Every function here is
pure: no I/O, no clock reads except the ``calculated_at`` stamp, which callers
can pin through ``now``.
"""

from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from ifrs16.domain.entities import (
    CalculationStatus,
    Lease,
    LeaseCalculation,
    PaymentFrequency,
)
from ifrs16.domain.errors import ValidationError

ZERO = Decimal("0")


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, ignoring the day of month."""
    return (end.year - start.year) * 12 + end.month - start.month


def total_periods(lease: Lease) -> int:
    """Number of payment periods in the lease term.

    A trailing partial period is truncated, never rounded up.
    """
    return months_between(lease.commencement_date, lease.end_date) // lease.payment_frequency.interval_months


def periodic_rate(annual_rate: Decimal, frequency: PaymentFrequency) -> Decimal:
    """Discount rate for one payment period."""
    return annual_rate / frequency.periods_per_year


def net_present_value(
    payment: Decimal, periods: int, annual_rate: Decimal, frequency: PaymentFrequency
) -> Decimal:
    """Present value of ``periods`` equal payments made in arrears.

    Summed period by period rather than with the closed-form annuity factor
    so that variable payment streams can slot in later.
    """
    rate = periodic_rate(annual_rate, frequency)
    npv = ZERO
    for period in range(1, periods + 1):
        npv += payment / (1 + rate) ** period
    return npv


def compute_initial_liability(lease: Lease) -> Decimal:
    """Initial lease liability: present value of the remaining payments."""
    return net_present_value(
        lease.lease_payment,
        total_periods(lease),
        lease.discount_rate,
        lease.payment_frequency,
    )


def compute_initial_rou(lease: Lease) -> Decimal:
    """Initial ROU asset.

    Equal to the initial liability: prepaid rent and initial direct costs are
    not modelled.
    """
    return compute_initial_liability(lease)


def compute_period(
    lease: Lease,
    period_date: date,
    beginning_rou: Decimal,
    beginning_liability: Decimal,
    now: Optional[datetime] = None,
) -> LeaseCalculation:
    """Calculate a single lease period from its beginning balances.

    Negative inputs are not rejected; ending balances are clamped at zero.
    """
    interest_expense = beginning_liability * periodic_rate(lease.discount_rate, lease.payment_frequency)
    lease_payment = lease.lease_payment
    amortization_expense = lease.initial_rou_asset / total_periods(lease)

    ending_liability = max(ZERO, beginning_liability + interest_expense - lease_payment)
    ending_rou = max(ZERO, beginning_rou - amortization_expense)

    return LeaseCalculation(
        lease_id=lease.id,
        period_date=period_date,
        beginning_rou_asset=beginning_rou,
        beginning_lease_liability=beginning_liability,
        lease_payment=lease_payment,
        interest_expense=interest_expense,
        amortization_expense=amortization_expense,
        ending_rou_asset=ending_rou,
        ending_lease_liability=ending_liability,
        calculated_at=now or datetime.now(UTC),
        status=CalculationStatus.CALCULATED,
        posted_to_erp=False,
    )


def period_dates(lease: Lease) -> list[date]:
    """Period dates from commencement to end date, both ends inclusive.

    Dates are offset from the commencement date rather than from the previous
    period, so a 31st commencement does not drift to the 28th after February.
    """
    step = lease.payment_frequency.interval_months
    dates = []
    index = 0
    current = lease.commencement_date
    while current <= lease.end_date:
        dates.append(current)
        index += 1
        current = lease.commencement_date + relativedelta(months=step * index)
    return dates


def compute_schedule(lease: Lease, now: Optional[datetime] = None) -> list[LeaseCalculation]:
    """Full amortization schedule for a lease.

    Each period's ending balances become the next period's beginning
    balances, starting from the lease's initial ROU asset and liability. An
    exact term yields ``total_periods(lease) + 1`` entries.
    """
    now = now or datetime.now(UTC)
    beginning_rou = lease.initial_rou_asset
    beginning_liability = lease.initial_lease_liability

    schedule = []
    for period_date in period_dates(lease):
        calculation = compute_period(lease, period_date, beginning_rou, beginning_liability, now=now)
        schedule.append(calculation)
        beginning_rou = calculation.ending_rou_asset
        beginning_liability = calculation.ending_lease_liability
    return schedule


def validate_terms(
    commencement_date: date,
    end_date: date,
    lease_payment: Decimal,
    payment_frequency,
    discount_rate: Decimal,
) -> None:
    """Reject lease terms the calculator cannot work with.

    Raises:
        ValidationError: If the terms are malformed
    """
    if not isinstance(payment_frequency, PaymentFrequency):
        try:
            payment_frequency = PaymentFrequency(payment_frequency)
        except ValueError:
            raise ValidationError(
                f"Payment frequency must be one of 1, 3, 6 or 12 months, got {payment_frequency!r}"
            )
    if end_date < commencement_date:
        raise ValidationError(
            f"End date {end_date.isoformat()} is before commencement date {commencement_date.isoformat()}"
        )
    if lease_payment <= 0:
        raise ValidationError(f"Lease payment must be positive, got {lease_payment}")
    if discount_rate < 0:
        raise ValidationError(f"Discount rate cannot be negative, got {discount_rate}")

    months = months_between(commencement_date, end_date)
    if months // payment_frequency.interval_months == 0:
        raise ValidationError(
            f"Lease term of {months} months is shorter than one "
            f"{payment_frequency.interval_months}-month payment period"
        )


def validate_lease(lease: Lease) -> None:
    """Reject a lease whose terms are malformed.

    Raises:
        ValidationError: If the lease cannot be scheduled
    """
    validate_terms(
        commencement_date=lease.commencement_date,
        end_date=lease.end_date,
        lease_payment=lease.lease_payment,
        payment_frequency=lease.payment_frequency,
        discount_rate=lease.discount_rate,
    )
