"""Property directory and alias domain service."""

import logging
import os
from pathlib import Path
from typing import Optional

from rentledger.database.base import Database
from rentledger.domain.alias_defaults import CANONICAL_PROPERTIES
from rentledger.domain.aliases import AliasResolver, build_alias_table, normalize_label
from rentledger.domain.entities import Property, PropertyAlias
from rentledger.domain.errors import (
    NotFoundError,
    ValidationError,
    property_name_not_found,
    property_not_found,
)

logger = logging.getLogger(__name__)

ALIASES_FILE_ENV = "RENTLEDGER_ALIASES_FILE"


class PropertyService:
    """Service for managing properties and their aliases."""

    def __init__(self, db: Database, alias_file: Optional[str | Path] = None):
        """Initialize property service.

        Args:
            db: Database instance
            alias_file: Optional JSON alias file merged over the built-in table.
                Defaults to the RENTLEDGER_ALIASES_FILE environment variable.
        """
        self.db = db
        self.alias_file = alias_file if alias_file is not None else os.environ.get(ALIASES_FILE_ENV)

    def create_property(self, name: str, nickname: Optional[str] = None, currency: str = "BRL") -> int:
        """Create a new property.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a property with that name already exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Property name cannot be empty")
        currency = (currency or "BRL").strip().upper()
        if len(currency) != 3:
            raise ValidationError(f"Invalid currency code '{currency}'")
        property_id = self.db.create_property(name, nickname=nickname or None, currency=currency)
        logger.info("Created property %d '%s'", property_id, name)
        return property_id

    def seed_default_properties(self) -> list[int]:
        """Create any of the built-in portfolio properties that don't exist yet."""
        created = []
        for name in CANONICAL_PROPERTIES:
            if self.db.get_property_by_name(name) is None:
                created.append(self.db.create_property(name))
        return created

    def get_property(self, property_id: int) -> Property:
        """Get property by ID.

        Raises:
            NotFoundError: If the property doesn't exist
        """
        prop = self.db.get_property(property_id)
        if prop is None:
            raise NotFoundError(property_not_found(property_id))
        return prop

    def list_properties(self) -> list[Property]:
        return self.db.list_properties()

    def find_property(self, reference: str) -> Property:
        """Find a property by ID, exact name, or any known alias.

        Raises:
            NotFoundError: If nothing matches
        """
        reference = (reference or "").strip()
        if reference.isdigit():
            return self.get_property(int(reference))
        prop = self.db.get_property_by_name(reference)
        if prop is not None:
            return prop
        property_id = self.build_resolver().resolve(reference)
        if property_id is None:
            raise NotFoundError(property_name_not_found(reference))
        return self.get_property(property_id)

    def add_alias(self, label: str, property_id: int) -> int:
        """Teach the resolver that ``label`` means ``property_id``.

        Raises:
            ValidationError: If the label is empty after normalization
            NotFoundError: If the property doesn't exist
        """
        if not normalize_label(label):
            raise ValidationError("Alias label cannot be empty")
        self.get_property(property_id)
        alias_id = self.db.set_alias(label, property_id)
        logger.info("Alias '%s' now resolves to property %d", normalize_label(label), property_id)
        return alias_id

    def remove_alias(self, label: str) -> None:
        """Forget a learned alias.

        Raises:
            NotFoundError: If no learned alias has that label
        """
        if not self.db.delete_alias(label):
            raise NotFoundError(f"Alias '{normalize_label(label)}' not found")

    def list_aliases(self) -> list[PropertyAlias]:
        return self.db.list_aliases()

    def build_resolver(self) -> AliasResolver:
        """Build a resolver from the current directory and alias sources.

        Each call snapshots the table: later alias changes don't affect
        resolvers already handed out.
        """
        properties = self.db.list_properties()
        names = {prop.id: prop.name for prop in properties}
        learned = {
            alias.label: names[alias.property_id]
            for alias in self.db.list_aliases()
            if alias.property_id in names
        }
        table = build_alias_table(learned=learned, alias_file=self.alias_file)
        return AliasResolver(table, properties)
