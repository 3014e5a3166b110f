"""Source file import commands."""

from pathlib import Path

import click
from rentledger.cli.error_handling import handle_domain_error
from rentledger.domain.entities import ImportAnalysis
from rentledger.domain.errors import DomainError, PersistenceError, UnmappedPropertiesError
from rentledger.domain.import_service import ImportService
from rentledger.domain.property import PropertyService
from rentledger.parsing import SOURCE_TAGS

source_option = click.option(
    "--source",
    "source_tag",
    required=True,
    type=click.Choice(SOURCE_TAGS),
    help="Format of the file",
)


def _services(ctx) -> tuple[ImportService, PropertyService]:
    db = ctx.obj["db"]
    property_service = PropertyService(db, alias_file=ctx.obj.get("aliases_file"))
    return ImportService(db, property_service=property_service), property_service


def display_analysis(analysis: ImportAnalysis, property_service: PropertyService) -> None:
    """Print an import analysis for review."""
    properties = {prop.id: prop.name for prop in property_service.list_properties()}

    click.echo(f"\nSource: {analysis.source_tag}")
    if analysis.date_range:
        start, end = analysis.date_range
        click.echo(f"Period: {start.isoformat()} to {end.isoformat()}")
    click.echo(f"Records: {analysis.record_count} ({analysis.matched_count} matched)")
    click.echo(f"Total: {analysis.total_amount:,.2f}")

    if analysis.per_property_totals:
        click.echo("\nPer property:")
        for property_id, total in analysis.per_property_totals.items():
            name = properties.get(property_id, f"#{property_id}")
            click.echo(f"  {name:40s} {total:>12,.2f}")

    if analysis.warnings:
        click.echo(f"\nWarnings ({len(analysis.warnings)}):")
        for warning in analysis.warnings:
            click.echo(f"  {warning}")

    if analysis.unmatched_labels:
        resolver = property_service.build_resolver()
        click.echo(f"\nUnmatched labels ({len(analysis.unmatched_labels)}):")
        for label in sorted(analysis.unmatched_labels):
            suggestions = resolver.suggest(label)
            hint = ""
            if suggestions:
                hint = " (did you mean: " + ", ".join(prop.name for prop in suggestions) + ")"
            click.echo(f"  '{label}'{hint}")

    scope = analysis.scope
    if scope is not None:
        if scope.covers_all_properties:
            which = "all properties"
        else:
            which = f"{len(scope.property_ids)} propert{'ies' if len(scope.property_ids) != 1 else 'y'}"
        click.echo(
            f"\nCommitting replaces existing {scope.source_tag} rows from "
            f"{scope.start_date.isoformat()} to {scope.end_date.isoformat()} for {which}."
        )


@click.group()
def import_group():
    """Import third-party source files."""
    pass


@import_group.command("analyze")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@source_option
@click.pass_context
def analyze_file(ctx, source_file: str, source_tag: str):
    """Show what importing a file would do, without changing the ledger.

    Examples:
        rentledger import analyze earnings_jan.csv --source airbnb_payout
        rentledger import analyze limpeza.txt --source cleaning_ocr
    """
    service, property_service = _services(ctx)
    try:
        analysis = service.analyze(source_tag, Path(source_file).read_bytes())
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    display_analysis(analysis, property_service)


@import_group.command("commit")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@source_option
@click.option("--allow-partial", is_flag=True, help="Import matched rows even if some labels are unmapped")
@click.option("--yes", "-y", is_flag=True, help="Commit without asking for confirmation")
@click.option(
    "--lock-timeout",
    type=float,
    default=30.0,
    show_default=True,
    help="Seconds to wait for a concurrent import of the same period",
)
@click.pass_context
def commit_file(ctx, source_file: str, source_tag: str, allow_partial: bool, yes: bool, lock_timeout: float):
    """Import a file, replacing what earlier imports of the same period wrote.

    The analysis is shown first; nothing is written until it is confirmed.

    Examples:
        rentledger import commit earnings_jan.csv --source airbnb_payout
        rentledger import commit pending.csv --source airbnb_pending --yes
    """
    service, property_service = _services(ctx)
    try:
        session = service.start(source_tag, Path(source_file).read_bytes())
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    display_analysis(session.analysis, property_service)

    if session.analysis.record_count == 0:
        session.cancel()
        click.echo("\nNothing to import.")
        return

    if not yes and not click.confirm("\nCommit this import?", default=False):
        session.cancel()
        click.echo("Import cancelled. The ledger was not changed.")
        return

    try:
        result = session.commit(allow_partial=allow_partial, timeout=lock_timeout)
    except UnmappedPropertiesError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Use 'rentledger alias add LABEL PROPERTY' to map them.", err=True)
        ctx.exit(1)
        return
    except (DomainError, PersistenceError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Replaced: {result.deleted_count} existing rows")
    click.echo(f"  Imported: {result.inserted_count} rows")
    if result.skipped_unmatched:
        click.echo(f"  Skipped: {result.skipped_unmatched} unmatched rows")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_group, name="import")
