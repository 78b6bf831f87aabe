"""Domain model entities for ifrs16.

These are pure data classes representing lease-accounting concepts,
independent of database schema and of the ERP wire format. Money is always
carried as Decimal.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class PaymentFrequency(Enum):
    """Payment interval in months."""

    MONTHLY = 1
    QUARTERLY = 3
    SEMI_ANNUALLY = 6
    ANNUALLY = 12

    @property
    def interval_months(self) -> int:
        return self.value

    @property
    def periods_per_year(self) -> int:
        return 12 // self.value


class LeaseStatus(Enum):
    """Lease lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    TERMINATED = "terminated"
    MODIFIED = "modified"


class CalculationStatus(Enum):
    """Lease calculation status."""

    DRAFT = "draft"
    CALCULATED = "calculated"
    POSTED = "posted"
    FAILED = "failed"


class PostingFailure(Enum):
    """Why a posting call did not post anything."""

    NO_DATA = "no_data"
    INTEGRATION = "integration"
    PERSISTENCE = "persistence"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Lease:
    """Lease domain entity. Terms are immutable once the lease is active."""

    id: int
    lease_number: str
    asset_description: str
    commencement_date: date
    end_date: date
    lease_payment: Decimal
    payment_frequency: PaymentFrequency
    discount_rate: Decimal
    initial_rou_asset: Decimal
    initial_lease_liability: Decimal
    status: LeaseStatus
    created_at: datetime
    currency: str = "USD"
    erp_asset_id: Optional[str] = None
    tenant_id: Optional[int] = None
    last_calculation_date: Optional[datetime] = None


@dataclass(frozen=True)
class LeaseCalculation:
    """One lease period: interest, amortization and balances.

    ``id`` stays None until the calculation has been persisted.
    ``posting_batch_reference`` names the batch holding an unposted
    calculation while it is on its way to the ERP.
    """

    lease_id: int
    period_date: date
    beginning_rou_asset: Decimal
    beginning_lease_liability: Decimal
    lease_payment: Decimal
    interest_expense: Decimal
    amortization_expense: Decimal
    ending_rou_asset: Decimal
    ending_lease_liability: Decimal
    calculated_at: datetime
    status: CalculationStatus = CalculationStatus.CALCULATED
    notes: Optional[str] = None
    posted_to_erp: bool = False
    erp_posting_date: Optional[datetime] = None
    erp_transaction_id: Optional[str] = None
    posting_batch_reference: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class ERPTransaction:
    """One debit or credit leg of a journal entry sent to the ERP."""

    transaction_date: date
    account_code: str
    account_name: str
    debit_amount: Decimal
    credit_amount: Decimal
    description: str
    reference: str
    currency: str = "USD"


@dataclass(frozen=True)
class ERPPostingRequest:
    """A batch of legs submitted to the ERP as one request."""

    transactions: tuple[ERPTransaction, ...]
    batch_reference: str
    posting_date: date
    description: str


@dataclass(frozen=True)
class ERPPostingResponse:
    """ERP answer to a posting request."""

    success: bool
    batch_id: str = ""
    message: str = ""
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ERPAsset:
    """Fixed asset record held by the ERP."""

    asset_id: str
    asset_number: str = ""
    description: str = ""
    asset_class: str = ""
    cost: Decimal = Decimal("0")
    acquisition_date: Optional[date] = None
    location: str = ""
    department: str = ""
    cost_center: str = ""
    status: str = ""


@dataclass(frozen=True)
class LeaseFailure:
    """A lease that could not be processed during a period-end run."""

    lease_id: int
    lease_number: str
    error: str


@dataclass(frozen=True)
class PeriodEndResult:
    """Outcome of a period-end run across all selected leases."""

    period_date: date
    total: int
    succeeded: int
    skipped: int = 0
    failures: tuple[LeaseFailure, ...] = ()

    @property
    def success(self) -> bool:
        return self.succeeded + self.skipped == self.total

    @property
    def message(self) -> str:
        if self.total == 0:
            return f"No active leases for {self.period_date.isoformat()}"
        processed = self.succeeded + self.skipped
        if self.success:
            return (
                f"Period-end calculations completed successfully: "
                f"{processed} of {self.total} leases processed"
            )
        return (
            f"Period-end calculations completed with errors: "
            f"{processed} of {self.total} leases processed"
        )


@dataclass(frozen=True)
class PostingResult:
    """Outcome of posting calculations to the ERP."""

    success: bool
    message: str
    failure: Optional[PostingFailure] = None
    batch_id: Optional[str] = None
    batch_reference: Optional[str] = None
    posted_ids: tuple[int, ...] = ()
    transaction_count: int = 0


@dataclass(frozen=True)
class CalculationSummary:
    """Totals over the calculations of one period."""

    total_calculations: int = 0
    unposted_calculations: int = 0
    total_lease_payments: Decimal = Decimal("0")
    total_interest_expense: Decimal = Decimal("0")
    total_amortization_expense: Decimal = Decimal("0")
    total_rou_assets: Decimal = Decimal("0")
    total_lease_liabilities: Decimal = Decimal("0")


@dataclass(frozen=True)
class PostingPreview:
    """What posting a period would send to the ERP."""

    period_date: date
    calculations: tuple[LeaseCalculation, ...]
    summary: CalculationSummary
    proposed_transactions: tuple[ERPTransaction, ...] = field(default_factory=tuple)
