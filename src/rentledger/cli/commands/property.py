"""Property management commands."""

import click
from rentledger.cli.error_handling import handle_domain_error
from rentledger.domain.errors import DomainError
from rentledger.domain.property import PropertyService


@click.group()
def property_group():
    """Manage properties."""
    pass


@property_group.command("add")
@click.argument("name", metavar="PROPERTY_NAME")
@click.option("--nickname", help="Short name, also accepted when resolving labels")
@click.option("--currency", default="BRL", show_default=True, help="ISO currency code")
@click.pass_context
def add_property(ctx, name: str, nickname: str | None, currency: str):
    """Add a property.

    Examples:
        rentledger property add "Sevilha 307"
        rentledger property add "Sesimbra ap 505- Portugal" --nickname Sesimbra --currency EUR
    """
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))
    try:
        property_id = service.create_property(name, nickname=nickname, currency=currency)
        click.echo(f"Created property '{name.strip()}' (ID: {property_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("list")
@click.pass_context
def list_properties(ctx):
    """List all properties."""
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))

    properties = service.list_properties()
    if not properties:
        click.echo("No properties found.")
        return

    click.echo("\nProperties:")
    click.echo("-" * 70)
    for prop in properties:
        nickname = f" ({prop.nickname})" if prop.nickname else ""
        click.echo(f"ID: {prop.id:3d} | {prop.name}{nickname} | {prop.currency}")


@property_group.command("seed")
@click.pass_context
def seed_properties(ctx):
    """Create the built-in portfolio properties that are missing."""
    service = PropertyService(ctx.obj["db"], alias_file=ctx.obj.get("aliases_file"))
    created = service.seed_default_properties()
    if created:
        click.echo(f"Created {len(created)} propert{'ies' if len(created) != 1 else 'y'}.")
    else:
        click.echo("All built-in properties already exist.")


def register_commands(cli):
    """Register property commands with main CLI."""
    cli.add_command(property_group, name="property")
