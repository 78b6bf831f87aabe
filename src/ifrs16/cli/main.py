"""Main CLI entry point."""

import click
from ifrs16.config import configure_logging
from ifrs16.database.factories import create_sqlite_database

# Import and register all commands at module level
from ifrs16.cli.commands import (
    lease,
    schedule,
    period_end,
    post,
    erp,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides IFRS16_DB_PATH environment variable)",
    envvar="IFRS16_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for console output",
    envvar="IFRS16_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """IFRS16 - Lease accounting.

    Keep a register of leases, calculate their right-of-use asset and lease
    liability schedules, run period-end calculations and post the resulting
    journal entries to the ERP ledger.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
lease.register_commands(cli)
schedule.register_commands(cli)
period_end.register_commands(cli)
post.register_commands(cli)
erp.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
