"""Batch expense distribution commands."""

import click
from rentledger.cli.error_handling import handle_domain_error, resolve_property_or_exit
from rentledger.domain.distribution import DistributionService
from rentledger.domain.entities import DistributionMode, DistributionPlan, Selection
from rentledger.domain.errors import DomainError, PersistenceError
from rentledger.domain.property import PropertyService
from rentledger.utils.amount_parser import parse_amount
from rentledger.utils.date_parser import parse_date


def parse_line_option(ctx, property_service: PropertyService, value: str) -> Selection:
    """Parse ``PROPERTY``, ``PROPERTY:WEIGHT`` or ``PROPERTY:QTY:UNIT_VALUE``."""
    parts = [part.strip() for part in value.split(":")]
    if len(parts) > 3 or not parts[0]:
        click.echo(f"Error: Invalid line '{value}'. Use PROPERTY, PROPERTY:WEIGHT or PROPERTY:QTY:UNIT_VALUE", err=True)
        ctx.exit(1)
    property_id = resolve_property_or_exit(ctx, property_service, parts[0])
    try:
        if len(parts) == 2:
            return Selection(property_id=property_id, weight=parse_amount(parts[1]))
        if len(parts) == 3:
            return Selection(
                property_id=property_id,
                quantity=parse_amount(parts[1]),
                unit_value=parse_amount(parts[2]),
            )
    except ValueError as e:
        click.echo(f"Error: Invalid line '{value}': {e}", err=True)
        ctx.exit(1)
    return Selection(property_id=property_id)


def display_plan(plan: DistributionPlan, property_service: PropertyService) -> None:
    names = {prop.id: prop.name for prop in property_service.list_properties()}
    click.echo(f"\nDistribution ({plan.mode.value}):")
    click.echo("-" * 70)
    for line in plan.lines:
        name = names.get(line.property_id, f"#{line.property_id}")
        if plan.mode == DistributionMode.WEIGHTED:
            detail = f"{line.quantity} x {line.unit_value:,.2f}"
            click.echo(f"  {name:40s} {detail:>14s} {line.line_amount:>12,.2f}")
        else:
            click.echo(f"  {name:40s} {line.line_amount:>12,.2f}")
    click.echo("-" * 70)
    click.echo(f"  {'Total':40s} {plan.total_amount:>12,.2f}")
    for warning in plan.warnings:
        click.echo(f"Warning: {warning}", err=True)


def _build_plan(ctx, total: str, lines: tuple[str, ...], mode: str, by_revenue: bool, date_text: str | None):
    db = ctx.obj["db"]
    property_service = PropertyService(db, alias_file=ctx.obj.get("aliases_file"))
    service = DistributionService(db)

    try:
        total_amount = parse_amount(total)
    except ValueError as e:
        click.echo(f"Error: Invalid total: {e}", err=True)
        ctx.exit(1)

    if not lines:
        click.echo("Error: At least one --line is required", err=True)
        ctx.exit(1)

    selections = [parse_line_option(ctx, property_service, value) for value in lines]
    try:
        if by_revenue:
            if date_text is None:
                click.echo("Error: --by-revenue needs --date (the payment date)", err=True)
                ctx.exit(1)
            plan = service.plan_by_revenue(
                total_amount, [selection.property_id for selection in selections], parse_date(date_text)
            )
        else:
            plan = service.plan(total_amount, selections, DistributionMode(mode))
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    return service, property_service, plan


mode_option = click.option(
    "--mode",
    type=click.Choice([mode.value for mode in DistributionMode]),
    default=DistributionMode.EQUAL.value,
    show_default=True,
    help="equal split, weighted (quantity x unit value) or proportional (by weight)",
)
by_revenue_option = click.option(
    "--by-revenue",
    is_flag=True,
    help="Split proportionally to each property's revenue in the 30 days before --date",
)


@click.group()
def distribute_group():
    """Split a batch expense across properties."""
    pass


@distribute_group.command("plan")
@click.argument("total")
@click.option("--line", "lines", multiple=True, help="PROPERTY, PROPERTY:WEIGHT or PROPERTY:QTY:UNIT_VALUE")
@mode_option
@by_revenue_option
@click.option("--date", "date_text", help="Payment date (used with --by-revenue)")
@click.pass_context
def plan_distribution(ctx, total: str, lines: tuple[str, ...], mode: str, by_revenue: bool, date_text: str | None):
    """Preview how TOTAL would be split.

    Examples:
        rentledger distribute plan 1000,00 --line "Sevilha 307" --line "Sevilha G07" --line Thera
        rentledger distribute plan 600 --mode weighted --line "Sevilha 307:2:150" --line Thera:1:300
    """
    _, property_service, plan = _build_plan(ctx, total, lines, mode, by_revenue, date_text)
    display_plan(plan, property_service)


@distribute_group.command("commit")
@click.argument("total")
@click.option("--line", "lines", multiple=True, help="PROPERTY, PROPERTY:WEIGHT or PROPERTY:QTY:UNIT_VALUE")
@mode_option
@by_revenue_option
@click.option("--date", "date_text", required=True, help="Payment date")
@click.option("--category", required=True, help="Expense category (e.g. cleaning)")
@click.option("--source-tag", required=True, help="Batch tag; committing the same tag and date again replaces it")
@click.option("--description", help="Description for every line")
@click.option("--accept-mismatch", is_flag=True, help="Commit a weighted plan that doesn't add up to TOTAL")
@click.option("--yes", "-y", is_flag=True, help="Record without asking for confirmation")
@click.option("--lock-timeout", type=float, default=30.0, show_default=True)
@click.pass_context
def commit_distribution(
    ctx,
    total: str,
    lines: tuple[str, ...],
    mode: str,
    by_revenue: bool,
    date_text: str,
    category: str,
    source_tag: str,
    description: str | None,
    accept_mismatch: bool,
    yes: bool,
    lock_timeout: float,
):
    """Record TOTAL as one expense per property.

    Examples:
        rentledger distribute commit 750,00 --line "Sevilha 307" --line Thera \\
            --date 2025-01-31 --category cleaning --source-tag limpeza-2025-01 --yes
    """
    try:
        payment_date = parse_date(date_text)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    service, property_service, plan = _build_plan(ctx, total, lines, mode, by_revenue, date_text)
    display_plan(plan, property_service)

    if not yes and not click.confirm("\nRecord this distribution?", default=False):
        click.echo("Distribution cancelled. The ledger was not changed.")
        return

    try:
        result = service.commit_plan(
            plan,
            payment_date=payment_date,
            category=category.strip().lower(),
            source_tag=source_tag,
            description=description,
            accept_mismatch=accept_mismatch,
            timeout=lock_timeout,
        )
    except (DomainError, PersistenceError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nRecorded {result.inserted_count} expenses (replaced {result.deleted_count}).")


def register_commands(cli):
    """Register distribution commands with main CLI."""
    cli.add_command(distribute_group, name="distribute")
