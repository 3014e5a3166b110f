"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so schema changes stay out of the
import pipeline.
"""

from decimal import Decimal

from rentledger.domain import entities as domain
from rentledger.database.models import (
    Property as ORMProperty,
    PropertyAlias as ORMPropertyAlias,
    Transaction as ORMTransaction,
)


def property_to_domain(orm_property: ORMProperty) -> domain.Property:
    """Convert SQLAlchemy Property model to domain Property entity."""
    return domain.Property(
        id=orm_property.id,
        name=orm_property.name,
        nickname=orm_property.nickname,
        currency=orm_property.currency,
        created_at=orm_property.created_at,
    )


def alias_to_domain(orm_alias: ORMPropertyAlias) -> domain.PropertyAlias:
    """Convert SQLAlchemy PropertyAlias model to domain PropertyAlias entity."""
    return domain.PropertyAlias(
        id=orm_alias.id,
        label=orm_alias.label,
        property_id=orm_alias.property_id,
        created_at=orm_alias.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.LedgerTransaction:
    """Convert SQLAlchemy Transaction model to domain LedgerTransaction entity."""
    return domain.LedgerTransaction(
        id=orm_transaction.id,
        property_id=orm_transaction.property_id,
        date=orm_transaction.date,
        amount=Decimal(str(orm_transaction.amount)),
        kind=domain.TransactionKind(orm_transaction.kind),
        category=orm_transaction.category,
        source_tag=orm_transaction.source_tag,
        description=orm_transaction.description,
        notes=orm_transaction.notes,
        imported_at=orm_transaction.imported_at,
    )


def normalized_to_orm(record: domain.NormalizedTransaction) -> ORMTransaction:
    """Convert a matched NormalizedTransaction to a new SQLAlchemy Transaction row."""
    return ORMTransaction(
        property_id=record.property_id,
        date=record.date,
        amount=record.amount,
        kind=domain.TransactionKind(record.kind).value,
        category=record.category,
        source_tag=record.source_tag,
        description=record.description,
        notes=record.notes,
    )
