"""CLI error handling helpers."""

import click

from rentledger.domain.errors import DomainError, PersistenceError
from rentledger.domain.property import PropertyService


def handle_domain_error(ctx: click.Context, error: DomainError | PersistenceError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_property_or_exit(ctx: click.Context, service: PropertyService, reference: str) -> int:
    """Resolve a property name, alias or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return service.find_property(reference).id
    except DomainError as exc:
        handle_domain_error(ctx, exc)
