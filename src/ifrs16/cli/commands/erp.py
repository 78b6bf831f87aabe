"""ERP connection commands."""

import click
from ifrs16.cli.error_handling import handle_domain_error
from ifrs16.cli.lease_resolution import get_erp_gateway_or_exit
from ifrs16.domain.errors import IntegrationError


@click.group()
def erp_group():
    """Inspect the ERP connection."""
    pass


@erp_group.command("health")
@click.pass_context
def health(ctx):
    """Check that the ERP answers its health check."""
    gateway = get_erp_gateway_or_exit(ctx)
    if gateway.test_connection():
        click.echo("ERP connection OK")
    else:
        click.echo("Error: ERP is not reachable", err=True)
        ctx.exit(1)


@erp_group.command("assets")
@click.argument("asset_id", required=False)
@click.pass_context
def assets(ctx, asset_id: str | None):
    """List ERP fixed assets, or show one by ASSET_ID."""
    gateway = get_erp_gateway_or_exit(ctx)

    try:
        if asset_id is not None:
            asset = gateway.get_asset(asset_id)
            if asset is None:
                click.echo(f"Error: ERP asset '{asset_id}' not found", err=True)
                ctx.exit(1)
            found = [asset]
        else:
            found = gateway.get_assets()
    except IntegrationError as e:
        handle_domain_error(ctx, e)

    if not found:
        click.echo("No assets found.")
        return

    for asset in found:
        click.echo(
            f"{asset.asset_id:10s} | {asset.asset_number:12s} | {asset.description:30s} | "
            f"{asset.cost:>12,.2f} | {asset.status}"
        )


def register_commands(cli):
    """Register ERP commands with main CLI."""
    cli.add_command(erp_group, name="erp")
