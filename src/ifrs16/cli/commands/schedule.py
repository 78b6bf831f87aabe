"""Lease schedule commands."""

import click
from ifrs16.cli.error_handling import handle_domain_error
from ifrs16.cli.lease_resolution import resolve_lease_or_exit
from ifrs16.domain.errors import DomainError
from ifrs16.domain.lease import LeaseService


def _display_calculations(calculations, show_posting: bool = False) -> None:
    """Print calculations as a table."""
    header = (
        f"{'Period':10s} | {'Begin liability':>15s} | {'Interest':>12s} | {'Payment':>12s} | "
        f"{'End liability':>15s} | {'Amortization':>12s} | {'End ROU asset':>15s}"
    )
    if show_posting:
        header += " | Posted"
    click.echo(header)
    click.echo("-" * len(header))
    for calc in calculations:
        line = (
            f"{calc.period_date.isoformat():10s} | {calc.beginning_lease_liability:>15,.2f} | "
            f"{calc.interest_expense:>12,.2f} | {calc.lease_payment:>12,.2f} | "
            f"{calc.ending_lease_liability:>15,.2f} | {calc.amortization_expense:>12,.2f} | "
            f"{calc.ending_rou_asset:>15,.2f}"
        )
        if show_posting:
            line += f" | {calc.erp_transaction_id if calc.posted_to_erp else 'no'}"
        click.echo(line)


@click.command("schedule")
@click.argument("lease", metavar="LEASE")
@click.option("--save", is_flag=True, help="Save the schedule and activate the lease")
@click.pass_context
def schedule(ctx, lease: str, save: bool):
    """Show the full liability and ROU asset schedule of a lease.

    LEASE can be a lease number or ID. Without --save nothing is written.

    Examples:
        ifrs16 schedule L-001
        ifrs16 schedule L-001 --save
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)

    try:
        if save:
            calculations = service.calculate_lease(lease_id)
        else:
            calculations = service.preview_schedule(lease_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    _display_calculations(calculations)
    if save:
        click.echo(f"\nSaved {len(calculations)} periods")


@click.command("calculations")
@click.argument("lease", metavar="LEASE")
@click.pass_context
def calculations(ctx, lease: str):
    """Show the saved calculations of a lease.

    LEASE can be a lease number or ID.
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)

    saved = service.list_calculations(lease_id)
    if not saved:
        click.echo("No calculations found.")
        return
    _display_calculations(saved, show_posting=True)


@click.group("calculation")
def calculation_group():
    """Inspect single saved calculations."""
    pass


@calculation_group.command("show")
@click.argument("lease", metavar="LEASE")
@click.argument("calculation_id", metavar="CALCULATION_ID", type=int)
@click.pass_context
def show_calculation(ctx, lease: str, calculation_id: int):
    """Show one saved calculation of a lease.

    LEASE can be a lease number or ID.

    Examples:
        ifrs16 calculation show L-001 42
    """
    db = ctx.obj["db"]
    service = LeaseService(db)
    lease_id = resolve_lease_or_exit(ctx, service, lease)

    try:
        calc = service.get_calculation(lease_id, calculation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCalculation {calc.id} for period {calc.period_date.isoformat()}")
    click.echo("=" * 60)
    click.echo(f"  Status: {calc.status.value}")
    click.echo(f"  Beginning lease liability: {calc.beginning_lease_liability:,.2f}")
    click.echo(f"  Interest expense: {calc.interest_expense:,.2f}")
    click.echo(f"  Lease payment: {calc.lease_payment:,.2f}")
    click.echo(f"  Ending lease liability: {calc.ending_lease_liability:,.2f}")
    click.echo(f"  Beginning right-of-use asset: {calc.beginning_rou_asset:,.2f}")
    click.echo(f"  Amortization expense: {calc.amortization_expense:,.2f}")
    click.echo(f"  Ending right-of-use asset: {calc.ending_rou_asset:,.2f}")
    click.echo(f"  Calculated: {calc.calculated_at:%Y-%m-%d %H:%M:%S}")
    if calc.posted_to_erp:
        click.echo(f"  Posted: {calc.erp_posting_date:%Y-%m-%d %H:%M:%S} in ERP batch {calc.erp_transaction_id}")
    elif calc.posting_batch_reference:
        click.echo(f"  Posting in progress: batch {calc.posting_batch_reference}")
    else:
        click.echo("  Posted: no")
    if calc.notes:
        click.echo(f"  Notes: {calc.notes}")


def register_commands(cli):
    """Register schedule commands with main CLI."""
    cli.add_command(schedule)
    cli.add_command(calculations)
    cli.add_command(calculation_group, name="calculation")
