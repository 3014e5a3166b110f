"""Dry-run analysis of an import batch."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Sequence

from rentledger.domain.aliases import AliasResolver, normalize_label
from rentledger.domain.entities import (
    ImportAnalysis,
    NormalizedTransaction,
    ParseWarning,
    RawRecord,
    ReconciliationScope,
)

logger = logging.getLogger(__name__)


def normalize_records(
    records: Iterable[RawRecord], resolver: AliasResolver
) -> tuple[NormalizedTransaction, ...]:
    """Attach property IDs to raw records."""
    return tuple(
        NormalizedTransaction(
            property_id=resolver.resolve(record.unit_label),
            date=record.date,
            amount=record.amount,
            category=record.category,
            kind=record.kind,
            source_tag=record.source_tag,
            description=record.description,
            unit_label=record.unit_label,
            notes=record.notes,
        )
        for record in records
    )


def scope_for(
    transactions: Sequence[NormalizedTransaction],
    source_tag: str,
    replaces_all_properties: bool = False,
) -> ReconciliationScope | None:
    """Compute the ledger scope a batch replaces.

    The date range spans every record, matched or not. The property set is
    the matched properties in the batch, or every property when the source
    replaces all of them. An empty batch has no scope.
    """
    if not transactions:
        return None
    dates = [txn.date for txn in transactions]
    property_ids = None
    if not replaces_all_properties:
        property_ids = frozenset(txn.property_id for txn in transactions if txn.is_matched)
    return ReconciliationScope(
        source_tag=source_tag,
        start_date=min(dates),
        end_date=max(dates),
        property_ids=property_ids,
    )


class ImportAnalyzer:
    """Build ImportAnalysis reports. Pure: no I/O, no shared mutable state."""

    def __init__(self, resolver: AliasResolver):
        self.resolver = resolver

    def analyze(
        self,
        records: Sequence[RawRecord],
        source_tag: str,
        warnings: Sequence[ParseWarning] = (),
        replaces_all_properties: bool = False,
    ) -> ImportAnalysis:
        """Analyze a batch of raw records.

        Args:
            records: Records from a source parser
            source_tag: Tag of the source the records came from
            warnings: Parser warnings to carry through to the report
            replaces_all_properties: Whether the scope covers every property

        Returns:
            ImportAnalysis for the batch. Unmatched labels are reported, not
            enforced; the committer decides whether they block.
        """
        transactions = normalize_records(records, self.resolver)

        per_property: dict[int, Decimal] = defaultdict(Decimal)
        unmatched: set[str] = set()
        total = Decimal("0")
        matched_count = 0
        for txn in transactions:
            total += txn.amount
            if txn.is_matched:
                matched_count += 1
                per_property[txn.property_id] += txn.amount
            elif normalize_label(txn.unit_label):
                unmatched.add(txn.unit_label.strip())

        scope = scope_for(transactions, source_tag, replaces_all_properties)
        analysis = ImportAnalysis(
            source_tag=source_tag,
            date_range=scope.date_range if scope else None,
            per_property_totals=dict(sorted(per_property.items())),
            unmatched_labels=frozenset(unmatched),
            record_count=len(transactions),
            matched_count=matched_count,
            total_amount=total,
            transactions=transactions,
            scope=scope,
            warnings=tuple(warnings),
        )
        logger.info(
            "Analyzed %d %s records: %d matched, %d unmatched labels",
            analysis.record_count,
            source_tag,
            matched_count,
            len(unmatched),
        )
        return analysis
