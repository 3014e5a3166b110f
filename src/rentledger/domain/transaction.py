"""Transaction domain service."""

from typing import Optional
from datetime import date
from decimal import Decimal
from rentledger.database.base import Database
from rentledger.domain.entities import CENT, LedgerTransaction, TransactionKind
from rentledger.domain.errors import NotFoundError, ValidationError, property_not_found


class TransactionService:
    """Service for manual ledger entries and ledger queries."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_transaction(
        self,
        property_id: int,
        date: date,
        amount: Decimal,
        kind: TransactionKind,
        category: str,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a manual transaction.

        Manual transactions carry no source tag, so no import ever replaces them.

        Args:
            property_id: Property the entry belongs to
            date: Transaction date
            amount: Positive amount; ``kind`` gives the direction
            kind: Revenue or expense
            category: Category name (e.g. rent, condominium)
            description: Optional description
            notes: Optional notes

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the property doesn't exist
            ValidationError: If the amount isn't positive or the category is empty
        """
        if self.db.get_property(property_id) is None:
            raise NotFoundError(property_not_found(property_id))
        amount = Decimal(amount).quantize(CENT)
        if amount <= 0:
            raise ValidationError("Amount must be positive")
        category = (category or "").strip().lower()
        if not category:
            raise ValidationError("Category cannot be empty")

        return self.db.create_transaction(
            property_id=property_id,
            date=date,
            amount=amount,
            kind=TransactionKind(kind),
            category=category,
            description=description,
            notes=notes,
        )

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        property_id: Optional[int] = None,
        source_tag: Optional[str] = None,
        manual_only: bool = False,
    ) -> list[LedgerTransaction]:
        """List transactions with optional filters.

        Raises:
            ValidationError: If the start date is after the end date
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("Start date must be on or before end date")
        return self.db.list_transactions(
            start_date=start_date,
            end_date=end_date,
            property_id=property_id,
            source_tag=source_tag,
            manual_only=manual_only,
        )
