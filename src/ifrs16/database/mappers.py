"""Mapper functions to convert between domain models and SQLAlchemy models.

Enums are stored as their plain values so the schema does not depend on the
Python enum names.
"""

from ifrs16.domain import entities as domain
from ifrs16.database.models import (
    Lease as ORMLease,
    LeaseCalculation as ORMLeaseCalculation,
)


def lease_to_domain(orm_lease: ORMLease) -> domain.Lease:
    """Convert SQLAlchemy Lease model to domain Lease entity."""
    return domain.Lease(
        id=orm_lease.id,
        lease_number=orm_lease.lease_number,
        asset_description=orm_lease.asset_description,
        commencement_date=orm_lease.commencement_date,
        end_date=orm_lease.end_date,
        lease_payment=orm_lease.lease_payment,
        payment_frequency=domain.PaymentFrequency(orm_lease.payment_frequency),
        discount_rate=orm_lease.discount_rate,
        initial_rou_asset=orm_lease.initial_rou_asset,
        initial_lease_liability=orm_lease.initial_lease_liability,
        status=domain.LeaseStatus(orm_lease.status),
        created_at=orm_lease.created_at,
        currency=orm_lease.currency,
        erp_asset_id=orm_lease.erp_asset_id,
        tenant_id=orm_lease.tenant_id,
        last_calculation_date=orm_lease.last_calculation_date,
    )


def calculation_to_domain(orm_calc: ORMLeaseCalculation) -> domain.LeaseCalculation:
    """Convert SQLAlchemy LeaseCalculation model to domain LeaseCalculation entity."""
    return domain.LeaseCalculation(
        id=orm_calc.id,
        lease_id=orm_calc.lease_id,
        period_date=orm_calc.period_date,
        beginning_rou_asset=orm_calc.beginning_rou_asset,
        beginning_lease_liability=orm_calc.beginning_lease_liability,
        lease_payment=orm_calc.lease_payment,
        interest_expense=orm_calc.interest_expense,
        amortization_expense=orm_calc.amortization_expense,
        ending_rou_asset=orm_calc.ending_rou_asset,
        ending_lease_liability=orm_calc.ending_lease_liability,
        calculated_at=orm_calc.calculated_at,
        status=domain.CalculationStatus(orm_calc.status),
        notes=orm_calc.notes,
        posted_to_erp=orm_calc.posted_to_erp,
        erp_posting_date=orm_calc.erp_posting_date,
        erp_transaction_id=orm_calc.erp_transaction_id,
        posting_batch_reference=orm_calc.posting_batch_reference,
    )


def calculation_to_orm(calculation: domain.LeaseCalculation) -> ORMLeaseCalculation:
    """Build a new SQLAlchemy LeaseCalculation row from a domain entity."""
    return ORMLeaseCalculation(
        lease_id=calculation.lease_id,
        period_date=calculation.period_date,
        beginning_rou_asset=calculation.beginning_rou_asset,
        beginning_lease_liability=calculation.beginning_lease_liability,
        lease_payment=calculation.lease_payment,
        interest_expense=calculation.interest_expense,
        amortization_expense=calculation.amortization_expense,
        ending_rou_asset=calculation.ending_rou_asset,
        ending_lease_liability=calculation.ending_lease_liability,
        calculated_at=calculation.calculated_at,
        status=calculation.status.value,
        notes=calculation.notes,
        posted_to_erp=calculation.posted_to_erp,
        erp_posting_date=calculation.erp_posting_date,
        erp_transaction_id=calculation.erp_transaction_id,
        posting_batch_reference=calculation.posting_batch_reference,
    )
