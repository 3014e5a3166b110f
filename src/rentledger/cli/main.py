"""Main CLI entry point."""

import click
from rentledger.database.factories import create_sqlite_database
from rentledger.utils.logging_config import setup_logging

# Import and register all commands at module level
from rentledger.cli.commands import (
    property,
    alias,
    import_cmd,
    distribute,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides RENTLEDGER_DB_PATH environment variable)",
    envvar="RENTLEDGER_DB_PATH",
)
@click.option(
    "--aliases-file",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file of extra property aliases (overrides RENTLEDGER_ALIASES_FILE)",
    envvar="RENTLEDGER_ALIASES_FILE",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, aliases_file: str | None, verbose: bool):
    """Rentledger - Rental property bookkeeping.

    Import Airbnb exports, cleaning statements and historical spreadsheets
    into a per-property ledger. Re-importing a file replaces what that file
    imported before, so nothing is ever counted twice.
    """
    ctx.ensure_object(dict)
    setup_logging(verbose=verbose)
    ctx.obj["aliases_file"] = aliases_file

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
property.register_commands(cli)
alias.register_commands(cli)
import_cmd.register_commands(cli)
distribute.register_commands(cli)
transaction.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
