"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from rentledger.domain.entities import (
    LedgerTransaction,
    NormalizedTransaction,
    Property,
    PropertyAlias,
    ReconciliationScope,
    TransactionKind,
)


class Database(ABC):
    """Abstract database interface for rentledger.

    Serves both as the property directory (properties and learned aliases)
    and as the transaction store the reconciliation committer writes to.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Transactions (unit of work)
    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Run a block atomically: commit on success, roll back on any error.

        Store failures surface as PersistenceError after the rollback.
        """
        pass

    # Property operations
    @abstractmethod
    def create_property(self, name: str, nickname: Optional[str] = None, currency: str = "BRL") -> int:
        """Create a new property. Returns property ID."""
        pass

    @abstractmethod
    def get_property(self, property_id: int) -> Optional[Property]:
        """Get property by ID."""
        pass

    @abstractmethod
    def get_property_by_name(self, name: str) -> Optional[Property]:
        """Get property by exact name."""
        pass

    @abstractmethod
    def list_properties(self) -> list[Property]:
        """List all properties."""
        pass

    # Alias operations
    @abstractmethod
    def set_alias(self, label: str, property_id: int) -> int:
        """Map a normalized label to a property, replacing any previous mapping. Returns alias ID."""
        pass

    @abstractmethod
    def list_aliases(self) -> list[PropertyAlias]:
        """List learned aliases."""
        pass

    @abstractmethod
    def delete_alias(self, label: str) -> bool:
        """Delete a learned alias. Returns whether it existed."""
        pass

    # Ledger operations
    @abstractmethod
    def create_transaction(
        self,
        property_id: int,
        date: date,
        amount: Decimal,
        kind: TransactionKind,
        category: str,
        source_tag: Optional[str] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a single ledger transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        property_id: Optional[int] = None,
        source_tag: Optional[str] = None,
        manual_only: bool = False,
    ) -> list[LedgerTransaction]:
        """List transactions with optional filters."""
        pass

    @abstractmethod
    def delete_where(self, scope: ReconciliationScope) -> int:
        """Delete every transaction inside ``scope``. Returns the number deleted.

        Only valid inside ``transaction()``.
        """
        pass

    @abstractmethod
    def insert_many(self, records: Sequence[NormalizedTransaction]) -> int:
        """Insert matched normalized transactions. Returns the number inserted.

        Only valid inside ``transaction()``.
        """
        pass

    @abstractmethod
    def sum_revenue_by_property(
        self, property_ids: Sequence[int], start_date: date, end_date: date
    ) -> dict[int, Decimal]:
        """Total revenue per property for a date range (inclusive)."""
        pass
