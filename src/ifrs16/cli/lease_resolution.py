"""CLI helpers for lease resolution and the ERP gateway."""

from __future__ import annotations

import click
from ifrs16.domain.errors import ValidationError
from ifrs16.domain.lease import LeaseService
from ifrs16.erp.base import ERPGateway
from ifrs16.erp.factories import create_erp_gateway
from ifrs16.utils.lease_resolver import resolve_lease


def resolve_lease_or_exit(ctx: click.Context, lease_service: LeaseService, lease: str | int) -> int:
    """Resolve lease number or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_lease(lease_service, lease)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def get_erp_gateway_or_exit(ctx: click.Context) -> ERPGateway:
    """ERP gateway from the context, built from settings on first use.

    Tests put a gateway in ``ctx.obj["erp_gateway"]`` up front.
    """
    obj = ctx.find_root().obj
    gateway = obj.get("erp_gateway")
    if gateway is None:
        try:
            gateway = create_erp_gateway()
        except ValidationError as exc:
            click.echo(f"Error: {exc}", err=True)
            ctx.exit(1)
        obj["erp_gateway"] = gateway
    return gateway
