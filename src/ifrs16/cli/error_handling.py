"""CLI error handling helpers."""

import click

from ifrs16.domain.errors import DomainError, IntegrationError


def handle_domain_error(ctx: click.Context, error: DomainError | IntegrationError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
