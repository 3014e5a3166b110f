"""Tests for domain entities."""

import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from rentledger.domain.entities import (
    DistributionLine,
    DistributionMode,
    DistributionPlan,
    ImportAnalysis,
    NormalizedTransaction,
    ParseWarning,
    Property,
    ReconciliationScope,
    TransactionKind,
)


class TestProperty:
    """Tests for Property entity."""

    def test_property_immutability(self):
        """Test that Property entities are immutable."""
        prop = Property(id=1, name="Thera by Yoo", nickname=None, currency="BRL", created_at=datetime.now(UTC))
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            prop.name = "New Name"

    def test_property_equality(self):
        created_at = datetime.now(UTC)
        assert Property(1, "A", None, "BRL", created_at) == Property(1, "A", None, "BRL", created_at)
        assert Property(1, "A", None, "BRL", created_at) != Property(2, "A", None, "BRL", created_at)


class TestReconciliationScope:
    """Tests for scope containment and overlap."""

    def test_contains(self):
        scope = ReconciliationScope("cleaning_ocr", date(2025, 1, 1), date(2025, 1, 31), frozenset({1, 2}))

        assert scope.contains("cleaning_ocr", date(2025, 1, 1), 1)
        assert scope.contains("cleaning_ocr", date(2025, 1, 31), 2)
        assert not scope.contains("cleaning_ocr", date(2025, 2, 1), 1)
        assert not scope.contains("cleaning_ocr", date(2025, 1, 15), 3)
        assert not scope.contains("airbnb_payout", date(2025, 1, 15), 1)
        assert not scope.contains(None, date(2025, 1, 15), 1)

    def test_all_properties(self):
        scope = ReconciliationScope("airbnb_pending", date(2025, 3, 1), date(2025, 3, 31))
        assert scope.covers_all_properties
        assert scope.contains("airbnb_pending", date(2025, 3, 5), 42)
        assert scope.date_range == (date(2025, 3, 1), date(2025, 3, 31))

    @pytest.mark.parametrize(
        "other, overlaps",
        [
            (ReconciliationScope("s", date(2025, 1, 31), date(2025, 2, 5), frozenset({1})), True),
            (ReconciliationScope("s", date(2025, 2, 1), date(2025, 2, 5), frozenset({1})), False),
            (ReconciliationScope("s", date(2025, 1, 1), date(2025, 1, 5), frozenset({3})), False),
            (ReconciliationScope("t", date(2025, 1, 1), date(2025, 1, 5), frozenset({1})), False),
            (ReconciliationScope("s", date(2025, 1, 1), date(2025, 1, 5)), True),
        ],
    )
    def test_overlaps(self, other, overlaps):
        scope = ReconciliationScope("s", date(2025, 1, 1), date(2025, 1, 31), frozenset({1, 2}))
        assert scope.overlaps(other) is overlaps
        assert other.overlaps(scope) is overlaps


class TestNormalizedTransaction:
    def test_is_matched(self):
        kwargs = dict(
            date=date(2025, 1, 1),
            amount=Decimal("1"),
            category="cleaning",
            kind=TransactionKind.EXPENSE,
            source_tag="cleaning_ocr",
            description=None,
        )
        assert NormalizedTransaction(property_id=1, **kwargs).is_matched
        assert not NormalizedTransaction(property_id=None, **kwargs).is_matched


class TestDistributionPlan:
    def test_discrepancy(self):
        line = DistributionLine(1, Decimal("1"), Decimal("90.00"), Decimal("90.00"))
        plan = DistributionPlan(Decimal("90.00"), Decimal("100.00"), DistributionMode.WEIGHTED, (line,))
        assert plan.discrepancy == Decimal("10.00")
        assert not plan.is_balanced


class TestImportAnalysis:
    def test_unmatched_count(self):
        analysis = ImportAnalysis(
            source_tag="cleaning_ocr",
            date_range=None,
            per_property_totals={},
            unmatched_labels=frozenset({"X"}),
            record_count=3,
            matched_count=1,
            total_amount=Decimal("0"),
            transactions=(),
            scope=None,
        )
        assert analysis.unmatched_count == 2
        assert analysis.has_unmatched


def test_parse_warning_str():
    assert str(ParseWarning(4, "Invalid amount")) == "Row 4: Invalid amount"


def test_enums_are_strings():
    assert TransactionKind("revenue") == TransactionKind.REVENUE
    assert DistributionMode.EQUAL == "equal"
