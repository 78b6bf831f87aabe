"""ERP posting commands."""

import click
from ifrs16.cli.error_handling import handle_domain_error
from ifrs16.cli.lease_resolution import get_erp_gateway_or_exit
from ifrs16.domain.entities import PostingResult
from ifrs16.domain.errors import DomainError
from ifrs16.domain.posting import PostingService
from ifrs16.utils.date_parser import parse_date


@click.group()
def post_group():
    """Post lease calculations to the ERP."""
    pass


def _parse_period(ctx, period_date: str):
    try:
        return parse_date(period_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def _report(ctx, result: PostingResult) -> None:
    """Print a posting result, exiting with failure if nothing was posted."""
    if not result.success:
        click.echo(f"Error: {result.message}", err=True)
        ctx.exit(1)
    click.echo(result.message)
    if result.transaction_count:
        click.echo(f"Journal lines sent: {result.transaction_count}")


@post_group.command("ids")
@click.argument("calculation_ids", metavar="CALCULATION_ID...", nargs=-1, type=int, required=True)
@click.option("--timeout", type=float, help="ERP request timeout in seconds")
@click.pass_context
def post_ids(ctx, calculation_ids: tuple[int, ...], timeout: float | None):
    """Post specific calculations as one batch.

    Unknown and already posted calculations are skipped.

    Examples:
        ifrs16 post ids 12 13 14
    """
    db = ctx.obj["db"]
    service = PostingService(db, get_erp_gateway_or_exit(ctx))
    _report(ctx, service.post_batch(list(calculation_ids), timeout=timeout))


@post_group.command("period")
@click.argument("period_date", metavar="DATE")
@click.option("--tenant", "tenant_id", type=int, help="Only calculations of this tenant's leases")
@click.option("--timeout", type=float, help="ERP request timeout in seconds")
@click.pass_context
def post_period(ctx, period_date: str, tenant_id: int | None, timeout: float | None):
    """Post every unposted calculation of a period.

    Examples:
        ifrs16 post period 2024-01-31
        ifrs16 post period "end of last month" --timeout 60
    """
    db = ctx.obj["db"]
    period = _parse_period(ctx, period_date)
    service = PostingService(db, get_erp_gateway_or_exit(ctx))
    _report(ctx, service.post_period(period, tenant_id=tenant_id, timeout=timeout))


@post_group.command("preview")
@click.argument("period_date", metavar="DATE")
@click.option("--tenant", "tenant_id", type=int, help="Only calculations of this tenant's leases")
@click.option("--verbose", "-v", is_flag=True, help="Show the journal lines that would be posted")
@click.pass_context
def preview_period(ctx, period_date: str, tenant_id: int | None, verbose: bool):
    """Show what posting a period would send, without posting.

    Examples:
        ifrs16 post preview 2024-01-31 -v
    """
    db = ctx.obj["db"]
    period = _parse_period(ctx, period_date)
    # Previewing never talks to the ERP
    service = PostingService(db, gateway=None)
    try:
        preview = service.preview_period(period, tenant_id=tenant_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    summary = preview.summary
    if summary.total_calculations == 0:
        click.echo(f"No calculations found for {period.isoformat()}.")
        return

    click.echo(f"\nPeriod {period.isoformat()}")
    click.echo("=" * 60)
    click.echo(f"  Calculations: {summary.total_calculations} ({summary.unposted_calculations} unposted)")
    click.echo(f"  Lease payments: {summary.total_lease_payments:,.2f}")
    click.echo(f"  Interest expense: {summary.total_interest_expense:,.2f}")
    click.echo(f"  Amortization expense: {summary.total_amortization_expense:,.2f}")
    click.echo(f"  Right-of-use assets: {summary.total_rou_assets:,.2f}")
    click.echo(f"  Lease liabilities: {summary.total_lease_liabilities:,.2f}")
    click.echo(f"  Journal lines to post: {len(preview.proposed_transactions)}")

    if verbose and preview.proposed_transactions:
        click.echo("")
        for txn in preview.proposed_transactions:
            click.echo(
                f"{txn.reference:16s} | {txn.account_code:6s} | {txn.account_name:48s} | "
                f"Dr {txn.debit_amount:>12,.2f} | Cr {txn.credit_amount:>12,.2f}"
            )


@post_group.command("release")
@click.argument("reference", metavar="BATCH_REFERENCE")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def release_batch(ctx, reference: str, yes: bool):
    """Release calculations held by a batch that never finished.

    Use this only after checking the ERP did not receive the batch;
    released calculations are posted again by the next run.

    Examples:
        ifrs16 post release IFRS16-20240201-093000
    """
    db = ctx.obj["db"]
    service = PostingService(db, gateway=None)

    if not yes and not click.confirm(f"Has batch {reference} been checked as missing from the ERP?"):
        click.echo("Release cancelled.")
        return

    try:
        released = service.release_batch(reference)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Released {released} calculations from batch {reference}")


def register_commands(cli):
    """Register posting commands with main CLI."""
    cli.add_command(post_group, name="post")
