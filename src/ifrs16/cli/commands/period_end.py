"""Period-end command."""

import click
from ifrs16.cli.error_handling import handle_domain_error
from ifrs16.domain.errors import DomainError
from ifrs16.domain.period_end import PeriodEndService
from ifrs16.utils.date_parser import parse_date


@click.command("period-end")
@click.argument("period_date", metavar="DATE")
@click.option("--tenant", "tenant_id", type=int, help="Only leases of this tenant")
@click.pass_context
def period_end(ctx, period_date: str, tenant_id: int | None):
    """Calculate one period for every active lease.

    DATE is the period-end date (YYYY-MM-DD or e.g. 'end of last month').
    Leases already calculated for the date are skipped, so the command can
    be re-run safely. Exits with status 1 if any lease failed.

    Examples:
        ifrs16 period-end 2024-01-31
        ifrs16 period-end "end of last month" --tenant 2
    """
    db = ctx.obj["db"]
    service = PeriodEndService(db)

    try:
        period = parse_date(period_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        result = service.run_period_end(period, tenant_id=tenant_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(result.message)
    if result.skipped:
        click.echo(f"Already calculated: {result.skipped}")

    if not result.success:
        for failure in result.failures:
            click.echo(f"  {failure.lease_number}: {failure.error}", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register period-end command with main CLI."""
    cli.add_command(period_end)
