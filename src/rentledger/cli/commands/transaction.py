"""Ledger transaction commands."""

from decimal import Decimal

import click
from rentledger.cli.date_filters import resolve_cli_date_range
from rentledger.cli.error_handling import handle_domain_error, resolve_property_or_exit
from rentledger.domain.entities import TransactionKind
from rentledger.domain.errors import DomainError
from rentledger.domain.property import PropertyService
from rentledger.domain.transaction import TransactionService
from rentledger.parsing import SOURCE_TAGS
from rentledger.utils.amount_parser import parse_amount
from rentledger.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage ledger transactions."""
    pass


@transaction_group.command("add")
@click.option("--property", "property_ref", required=True, help="Property name, alias or ID")
@click.option(
    "--date",
    required=True,
    help="Transaction date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today', 'yesterday')",
)
@click.option("--amount", required=True, help="Transaction amount (e.g., 1.250,00 or 1250.00)")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in TransactionKind]),
    default=TransactionKind.EXPENSE.value,
    show_default=True,
)
@click.option("--category", required=True, help="Category (e.g., rent, condominium, taxes)")
@click.option("--description", help="Transaction description")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(
    ctx,
    property_ref: str,
    date: str,
    amount: str,
    kind: str,
    category: str,
    description: str | None,
    notes: str | None,
):
    """Add a transaction manually. Imports never replace manual entries.

    Examples:
        rentledger transaction add --property "Sevilha 307" --date 2025-01-10 --amount 850,00 --category condominium
        rentledger transaction add --property Thera --date today --amount 3500 --kind revenue --category rent
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)
    property_service = PropertyService(db, alias_file=ctx.obj.get("aliases_file"))

    property_id = resolve_property_or_exit(ctx, property_service, property_ref)

    try:
        txn_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        amount_decimal = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        transaction_id = transaction_service.create_transaction(
            property_id=property_id,
            date=txn_date,
            amount=amount_decimal,
            kind=TransactionKind(kind),
            category=category,
            description=description,
            notes=notes,
        )
        click.echo(f"Created transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@click.option("--this-month", is_flag=True, help="Filter to the current calendar month")
@click.option("--last-month", is_flag=True, help="Filter to the previous calendar month")
@click.option("--this-year", is_flag=True, help="Filter to the current calendar year")
@click.option("--last-year", is_flag=True, help="Filter to the previous calendar year")
@click.option("--property", "property_ref", help="Property name, alias or ID")
@click.option("--source", "source_tag", type=click.Choice(SOURCE_TAGS + ("manual",)), help="Import source, or 'manual'")
@click.option("--verbose", "-v", is_flag=True, help="Show all columns including notes and source")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    last_year: bool,
    property_ref: str | None,
    source_tag: str | None,
    verbose: bool,
):
    """View ledger transactions with optional filters."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    property_service = PropertyService(db, alias_file=ctx.obj.get("aliases_file"))

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "last-month": last_month,
            "this-year": this_year,
            "last-year": last_year,
        },
    )

    property_id = None
    if property_ref:
        property_id = resolve_property_or_exit(ctx, property_service, property_ref)

    manual_only = source_tag == "manual"
    try:
        transactions = service.list_transactions(
            start_date=start,
            end_date=end,
            property_id=property_id,
            source_tag=None if manual_only else source_tag,
            manual_only=manual_only,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    properties = {prop.id: prop.name for prop in property_service.list_properties()}

    if verbose:
        click.echo(f"\nFound {len(transactions)} transaction(s):")
        click.echo("=" * 100)
        for txn in transactions:
            click.echo(f"\nTransaction ID: {txn.id}")
            click.echo(f"  Date: {txn.date}")
            click.echo(f"  Amount: {txn.amount:,.2f} ({txn.kind.value})")
            click.echo(f"  Property: {properties.get(txn.property_id, 'Unknown')} (ID: {txn.property_id})")
            click.echo(f"  Category: {txn.category}")
            click.echo(f"  Source: {txn.source_tag or 'manual'}")
            if txn.description:
                click.echo(f"  Description: {txn.description}")
            if txn.notes:
                click.echo(f"  Notes: {txn.notes}")
            click.echo(f"  Imported: {txn.imported_at}")
            click.echo("-" * 100)
    else:
        click.echo(f"\nFound {len(transactions)} transaction(s):")
        click.echo("-" * 110)
        click.echo(
            f"{'ID':<6} {'Date':<12} {'Amount':>12} {'Property':<28} {'Category':<14} {'Source':<15} {'Description':<20}"
        )
        click.echo("-" * 110)
        for txn in transactions:
            sign = "-" if txn.kind == TransactionKind.EXPENSE else ""
            amount_str = f"{sign}{txn.amount:,.2f}"
            property_name = properties.get(txn.property_id, "Unknown")[:28]
            click.echo(
                f"{txn.id:<6} {str(txn.date):<12} {amount_str:>12} {property_name:<28} "
                f"{txn.category[:14]:<14} {(txn.source_tag or 'manual'):<15} {(txn.description or '')[:20]:<20}"
            )

    revenue = sum((txn.amount for txn in transactions if txn.kind == TransactionKind.REVENUE), Decimal("0"))
    expenses = sum((txn.amount for txn in transactions if txn.kind == TransactionKind.EXPENSE), Decimal("0"))
    click.echo("-" * 110)
    click.echo(
        f"{'TOTAL':<6} Revenue: {revenue:,.2f} | Expenses: {expenses:,.2f} | "
        f"Net: {revenue - expenses:,.2f} | Count: {len(transactions)}"
    )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
