"""Lease register commands."""

import click
from ifrs16.cli.error_handling import handle_domain_error
from ifrs16.cli.lease_resolution import resolve_lease_or_exit
from ifrs16.domain.entities import LeaseStatus, PaymentFrequency
from ifrs16.domain.errors import DomainError
from ifrs16.domain.lease import LeaseService
from ifrs16.utils.amount_parser import parse_amount, parse_rate
from ifrs16.utils.date_parser import parse_date

FREQUENCIES = {
    "monthly": PaymentFrequency.MONTHLY,
    "quarterly": PaymentFrequency.QUARTERLY,
    "semi-annually": PaymentFrequency.SEMI_ANNUALLY,
    "annually": PaymentFrequency.ANNUALLY,
}


def frequency_label(frequency: PaymentFrequency) -> str:
    """CLI spelling of a payment frequency."""
    return next(label for label, value in FREQUENCIES.items() if value == frequency)


@click.group()
def lease_group():
    """Manage leases."""
    pass


@lease_group.command("create")
@click.argument("lease_number", metavar="LEASE_NUMBER")
@click.option("--commencement", required=True, help="Commencement date (YYYY-MM-DD)")
@click.option("--end", "end_date", required=True, help="End date (YYYY-MM-DD)")
@click.option("--payment", required=True, help="Payment per period (e.g., 1000 or 1,000.00)")
@click.option(
    "--frequency",
    type=click.Choice(list(FREQUENCIES), case_sensitive=False),
    default="monthly",
    show_default=True,
    help="Payment frequency",
)
@click.option("--rate", required=True, help="Annual discount rate (e.g., 6% or 0.06)")
@click.option("--description", default="", help="Description of the leased asset")
@click.option("--currency", default="USD", show_default=True, help="Lease currency")
@click.option("--erp-asset-id", help="Matching fixed asset in the ERP")
@click.option("--tenant", "tenant_id", type=int, help="Tenant ID")
@click.pass_context
def create_lease(
    ctx,
    lease_number: str,
    commencement: str,
    end_date: str,
    payment: str,
    frequency: str,
    rate: str,
    description: str,
    currency: str,
    erp_asset_id: str | None,
    tenant_id: int | None,
):
    """Create a new draft lease.

    The initial lease liability and right-of-use asset are the present value
    of the payments.

    Examples:
        ifrs16 lease create L-001 --commencement 2024-01-01 --end 2028-12-31 --payment 1500 --rate 6%
        ifrs16 lease create L-002 --commencement 2024-01-01 --end 2029-01-01 --payment 12000 \\
            --frequency annually --rate 0.05 --description "Warehouse"
    """
    db = ctx.obj["db"]
    service = LeaseService(db)

    try:
        start = parse_date(commencement)
        end = parse_date(end_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        lease_payment = parse_amount(payment)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        discount_rate = parse_rate(rate)
    except ValueError as e:
        click.echo(f"Error: Invalid rate format: {e}", err=True)
        ctx.exit(1)

    try:
        lease_id = service.create_lease(
            lease_number=lease_number,
            commencement_date=start,
            end_date=end,
            lease_payment=lease_payment,
            payment_frequency=FREQUENCIES[frequency.lower()],
            discount_rate=discount_rate,
            asset_description=description,
            currency=currency,
            erp_asset_id=erp_asset_id,
            tenant_id=tenant_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    lease = service.get_lease(lease_id)
    click.echo(f"Created lease '{lease_number}' (ID: {lease_id})")
    click.echo(f"Initial lease liability: {lease.initial_lease_liability:,.2f} {lease.currency}")
    click.echo(f"Initial right-of-use asset: {lease.initial_rou_asset:,.2f} {lease.currency}")


@lease_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in LeaseStatus], case_sensitive=False),
    help="Only leases with this status",
)
@click.option("--tenant", "tenant_id", type=int, help="Only leases of this tenant")
@click.pass_context
def list_leases(ctx, status: str | None, tenant_id: int | None):
    """List leases."""
    db = ctx.obj["db"]
    service = LeaseService(db)

    leases = service.list_leases(
        tenant_id=tenant_id, status=LeaseStatus(status.lower()) if status else None
    )
    if not leases:
        click.echo("No leases found.")
        return

    click.echo("\nLeases:")
    click.echo("-" * 100)
    for lease in leases:
        click.echo(
            f"ID: {lease.id:3d} | {lease.lease_number:12s} | {lease.status.value:10s} | "
            f"{lease.commencement_date} - {lease.end_date} | "
            f"{lease.lease_payment:>12,.2f} {lease.currency} {frequency_label(lease.payment_frequency)}"
        )


@lease_group.command("show")
@click.argument("lease", metavar="LEASE")
@click.pass_context
def show_lease(ctx, lease: str):
    """Show lease details.

    LEASE can be a lease number or ID.
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)
    lease_obj = service.get_lease(lease_id)

    click.echo(f"\nLease {lease_obj.lease_number} (ID: {lease_obj.id})")
    click.echo("=" * 60)
    if lease_obj.asset_description:
        click.echo(f"  Asset: {lease_obj.asset_description}")
    click.echo(f"  Status: {lease_obj.status.value}")
    click.echo(f"  Term: {lease_obj.commencement_date} to {lease_obj.end_date}")
    click.echo(
        f"  Payment: {lease_obj.lease_payment:,.2f} {lease_obj.currency} "
        f"({frequency_label(lease_obj.payment_frequency)})"
    )
    click.echo(f"  Discount rate: {lease_obj.discount_rate * 100:.4f}%")
    click.echo(f"  Initial lease liability: {lease_obj.initial_lease_liability:,.2f}")
    click.echo(f"  Initial right-of-use asset: {lease_obj.initial_rou_asset:,.2f}")
    if lease_obj.erp_asset_id:
        click.echo(f"  ERP asset: {lease_obj.erp_asset_id}")
    if lease_obj.tenant_id is not None:
        click.echo(f"  Tenant: {lease_obj.tenant_id}")
    if lease_obj.last_calculation_date:
        click.echo(f"  Last calculated: {lease_obj.last_calculation_date:%Y-%m-%d %H:%M:%S}")


@lease_group.command("activate")
@click.argument("lease", metavar="LEASE")
@click.pass_context
def activate_lease(ctx, lease: str):
    """Activate a draft lease so period-end runs include it.

    LEASE can be a lease number or ID.
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)

    try:
        activated = service.activate_lease(lease_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Activated lease '{activated.lease_number}'")


@lease_group.command("terminate")
@click.argument("lease", metavar="LEASE")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def terminate_lease(ctx, lease: str, yes: bool):
    """Terminate a lease.

    LEASE can be a lease number or ID. A terminated lease is left out of
    later period-end runs; its saved calculations are kept.
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)
    lease_obj = service.get_lease(lease_id)

    if not yes and not click.confirm(f"Are you sure you want to terminate lease '{lease_obj.lease_number}'?"):
        click.echo("Termination cancelled.")
        return

    try:
        service.terminate_lease(lease_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Terminated lease '{lease_obj.lease_number}'")


@lease_group.command("update")
@click.argument("lease", metavar="LEASE")
@click.option("--number", "lease_number", help="New lease number")
@click.option("--commencement", help="Commencement date (YYYY-MM-DD)")
@click.option("--end", "end_date", help="End date (YYYY-MM-DD)")
@click.option("--payment", help="Payment per period (e.g., 1000 or 1,000.00)")
@click.option(
    "--frequency",
    type=click.Choice(list(FREQUENCIES), case_sensitive=False),
    help="Payment frequency",
)
@click.option("--rate", help="Annual discount rate (e.g., 6% or 0.06)")
@click.option("--description", help="Description of the leased asset")
@click.option("--currency", help="Lease currency")
@click.option("--erp-asset-id", help="Matching fixed asset in the ERP")
@click.option("--tenant", "tenant_id", type=int, help="Tenant ID")
@click.pass_context
def update_lease(
    ctx,
    lease: str,
    lease_number: str | None,
    commencement: str | None,
    end_date: str | None,
    payment: str | None,
    frequency: str | None,
    rate: str | None,
    description: str | None,
    currency: str | None,
    erp_asset_id: str | None,
    tenant_id: int | None,
):
    """Change the terms of a draft lease.

    LEASE can be a lease number or ID. Only the options given change; the
    initial liability and right-of-use asset are recomputed.

    Examples:
        ifrs16 lease update L-001 --payment 1600
        ifrs16 lease update L-001 --end 2029-12-31 --rate 5.5%
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)

    try:
        start = parse_date(commencement) if commencement else None
        end = parse_date(end_date) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        lease_payment = parse_amount(payment) if payment else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        discount_rate = parse_rate(rate) if rate else None
    except ValueError as e:
        click.echo(f"Error: Invalid rate format: {e}", err=True)
        ctx.exit(1)

    try:
        updated = service.update_lease(
            lease_id,
            lease_number=lease_number,
            asset_description=description,
            commencement_date=start,
            end_date=end,
            lease_payment=lease_payment,
            payment_frequency=FREQUENCIES[frequency.lower()] if frequency else None,
            discount_rate=discount_rate,
            currency=currency,
            erp_asset_id=erp_asset_id,
            tenant_id=tenant_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated lease '{updated.lease_number}'")
    click.echo(f"Initial lease liability: {updated.initial_lease_liability:,.2f} {updated.currency}")
    click.echo(f"Initial right-of-use asset: {updated.initial_rou_asset:,.2f} {updated.currency}")


@lease_group.command("delete")
@click.argument("lease", metavar="LEASE")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_lease(ctx, lease: str, yes: bool):
    """Delete a lease and its saved calculations.

    LEASE can be a lease number or ID. Leases with calculations posted to
    the ERP cannot be deleted; terminate them instead.
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)
    lease_obj = service.get_lease(lease_id)

    if not yes and not click.confirm(f"Are you sure you want to delete lease '{lease_obj.lease_number}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_lease(lease_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted lease '{lease_obj.lease_number}'")


def register_commands(cli):
    """Register lease commands with main CLI."""
    cli.add_command(lease_group, name="lease")
