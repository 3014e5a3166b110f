"""Domain model entities for rentledger.

These are pure data classes representing business concepts, independent of
database schema. The import pipeline only passes these value objects between
its stages; the ledger rows are converted to and from them by the mappers.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Mapping


CENT = Decimal("0.01")


class TransactionKind(str, Enum):
    """Direction of a ledger entry."""

    REVENUE = "revenue"
    EXPENSE = "expense"


class ImportState(str, Enum):
    """Lifecycle of one import: analyzed, then committed or cancelled."""

    ANALYZED = "analyzed"
    COMMITTING = "committing"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class DistributionMode(str, Enum):
    """How a batch amount is split across properties."""

    EQUAL = "equal"
    WEIGHTED = "weighted"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class Property:
    """Rental property domain entity."""

    id: int
    name: str
    nickname: Optional[str]
    currency: str
    created_at: datetime


@dataclass(frozen=True)
class PropertyAlias:
    """Learned alias mapping a normalized label to a property."""

    id: int
    label: str
    property_id: int
    created_at: datetime


@dataclass(frozen=True)
class LedgerTransaction:
    """Persisted ledger row.

    ``source_tag`` is None for manual entries, which no import scope matches.
    """

    id: int
    property_id: Optional[int]
    date: date
    amount: Decimal
    kind: TransactionKind
    category: str
    source_tag: Optional[str]
    description: Optional[str]
    notes: Optional[str]
    imported_at: datetime


@dataclass(frozen=True)
class ParseWarning:
    """Non-fatal problem with a single source row."""

    row: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.message}"


@dataclass(frozen=True)
class RawRecord:
    """One parsed source row before property resolution."""

    date: date
    unit_label: str
    amount: Decimal
    kind: TransactionKind
    source_tag: str
    category: str
    raw_fields: Mapping[str, str] = field(default_factory=dict)
    description: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ParseResult:
    """Records and row-level warnings produced by a source parser."""

    records: tuple[RawRecord, ...]
    warnings: tuple[ParseWarning, ...] = ()
    period: Optional[tuple[date, date]] = None


@dataclass(frozen=True)
class NormalizedTransaction:
    """Transaction ready for the ledger. ``property_id`` is None when unmatched."""

    property_id: Optional[int]
    date: date
    amount: Decimal
    category: str
    kind: TransactionKind
    source_tag: str
    description: Optional[str]
    unit_label: str = ""
    notes: Optional[str] = None

    @property
    def is_matched(self) -> bool:
        return self.property_id is not None


@dataclass(frozen=True)
class ReconciliationScope:
    """Subset of the ledger an import may replace.

    ``property_ids`` of None means every property.
    """

    source_tag: str
    start_date: date
    end_date: date
    property_ids: Optional[frozenset[int]] = None

    @property
    def date_range(self) -> tuple[date, date]:
        return (self.start_date, self.end_date)

    @property
    def covers_all_properties(self) -> bool:
        return self.property_ids is None

    def contains(self, source_tag: Optional[str], txn_date: date, property_id: Optional[int]) -> bool:
        """Whether a ledger row with these attributes falls inside the scope."""
        if source_tag != self.source_tag:
            return False
        if not (self.start_date <= txn_date <= self.end_date):
            return False
        if self.property_ids is None:
            return True
        return property_id in self.property_ids

    def overlaps(self, other: "ReconciliationScope") -> bool:
        """Whether two scopes could touch the same ledger rows."""
        if self.source_tag != other.source_tag:
            return False
        if self.end_date < other.start_date or other.end_date < self.start_date:
            return False
        if self.property_ids is None or other.property_ids is None:
            return True
        return not self.property_ids.isdisjoint(other.property_ids)


@dataclass(frozen=True)
class ImportAnalysis:
    """Read-only dry-run report of an import batch.

    Carries the normalized transactions it was computed from so the commit
    phase never re-derives anything from the source.
    """

    source_tag: str
    date_range: Optional[tuple[date, date]]
    per_property_totals: Mapping[int, Decimal]
    unmatched_labels: frozenset[str]
    record_count: int
    matched_count: int
    total_amount: Decimal
    transactions: tuple[NormalizedTransaction, ...]
    scope: Optional[ReconciliationScope]
    warnings: tuple[ParseWarning, ...] = ()

    @property
    def has_unmatched(self) -> bool:
        return bool(self.unmatched_labels)

    @property
    def unmatched_count(self) -> int:
        return self.record_count - self.matched_count


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a committed import."""

    scope: ReconciliationScope
    deleted_count: int
    inserted_count: int
    skipped_unmatched: int = 0


@dataclass(frozen=True)
class Selection:
    """A property selected for a batch distribution."""

    property_id: int
    quantity: Optional[Decimal] = None
    unit_value: Optional[Decimal] = None
    weight: Optional[Decimal] = None


@dataclass(frozen=True)
class DistributionLine:
    """One property's share of a distributed amount."""

    property_id: int
    quantity: Decimal
    unit_value: Decimal
    line_amount: Decimal


@dataclass(frozen=True)
class DistributionPlan:
    """Split of a batch amount across properties.

    ``total_amount`` always equals the sum of the line amounts.
    ``requested_amount`` is what the caller asked to distribute; the two
    differ only for weighted plans, and then ``warnings`` explains why.
    """

    total_amount: Decimal
    requested_amount: Decimal
    mode: DistributionMode
    lines: tuple[DistributionLine, ...]
    warnings: tuple[str, ...] = ()

    @property
    def discrepancy(self) -> Decimal:
        return self.requested_amount - self.total_amount

    @property
    def is_balanced(self) -> bool:
        return self.discrepancy == 0
