"""Alias management commands."""

import click
from rentledger.cli.error_handling import handle_domain_error, resolve_property_or_exit
from rentledger.domain.aliases import normalize_label
from rentledger.domain.errors import DomainError
from rentledger.domain.property import PropertyService


@click.group()
def alias_group():
    """Manage the labels that resolve to properties."""
    pass


@alias_group.command("add")
@click.argument("label")
@click.argument("property_ref", metavar="PROPERTY")
@click.pass_context
def add_alias(ctx, label: str, property_ref: str):
    """Make LABEL resolve to PROPERTY (name, alias or ID).

    Examples:
        rentledger alias add "SEVILHA TORRE 6" "Sevilha 307"
        rentledger alias add "Loft no Brooklin" 4
    """
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))
    property_id = resolve_property_or_exit(ctx, service, property_ref)
    try:
        service.add_alias(label, property_id)
        prop = service.get_property(property_id)
        click.echo(f"'{normalize_label(label)}' now resolves to '{prop.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@alias_group.command("remove")
@click.argument("label")
@click.pass_context
def remove_alias(ctx, label: str):
    """Forget a learned alias."""
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))
    try:
        service.remove_alias(label)
        click.echo(f"Removed alias '{normalize_label(label)}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@alias_group.command("list")
@click.pass_context
def list_aliases(ctx):
    """List learned aliases (the built-in table is not shown)."""
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))
    aliases = service.list_aliases()
    if not aliases:
        click.echo("No learned aliases.")
        return

    names = {prop.id: prop.name for prop in service.list_properties()}
    click.echo("\nLearned aliases:")
    click.echo("-" * 70)
    for alias in aliases:
        click.echo(f"{alias.label:35s} -> {names.get(alias.property_id, alias.property_id)}")


@alias_group.command("resolve")
@click.argument("label")
@click.pass_context
def resolve_alias(ctx, label: str):
    """Show which property LABEL resolves to."""
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))
    try:
        resolver = service.build_resolver()
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    property_id = resolver.resolve(label)
    if property_id is None:
        click.echo(f"'{label}' does not resolve to any property.")
        suggestions = resolver.suggest(label)
        if suggestions:
            click.echo("Did you mean: " + ", ".join(prop.name for prop in suggestions))
        ctx.exit(1)
    prop = service.get_property(property_id)
    click.echo(f"'{label}' -> {prop.name} (ID: {prop.id})")


def register_commands(cli):
    """Register alias commands with main CLI."""
    cli.add_command(alias_group, name="alias")
