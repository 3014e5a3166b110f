"""Tests for replace-by-scope commits, import sessions and scope locks."""

import threading
import time
import pytest
from datetime import date
from decimal import Decimal

from rentledger.domain.entities import (
    ImportState,
    NormalizedTransaction,
    ReconciliationScope,
    TransactionKind,
)
from rentledger.domain.errors import (
    CommitCancelled,
    ConflictError,
    PersistenceError,
    UnmappedPropertiesError,
    ValidationError,
)
from rentledger.domain.reconciliation import ImportSession, ScopeLockRegistry

SOURCE = "cleaning_ocr"


def txn(property_id, day, amount, label="X", source_tag=SOURCE, month=1):
    return NormalizedTransaction(
        property_id=property_id,
        date=date(2025, month, day),
        amount=Decimal(amount),
        category="cleaning",
        kind=TransactionKind.EXPENSE,
        source_tag=source_tag,
        description=f"Limpeza - {label}",
        unit_label=label,
    )


def scope(*property_ids, start=date(2025, 1, 1), end=date(2025, 1, 31), source_tag=SOURCE):
    return ReconciliationScope(source_tag, start, end, frozenset(property_ids))


def ledger(transaction_service, **filters):
    return sorted(
        (row.property_id, row.date, row.amount, row.source_tag)
        for row in transaction_service.list_transactions(**filters)
    )


def test_commit_inserts_matched_records(committer, transaction_service, properties):
    thera = properties["Thera by Yoo"]
    result = committer.commit([txn(thera, 10, "100.00")], scope(thera))

    assert result.inserted_count == 1
    assert result.deleted_count == 0
    assert ledger(transaction_service) == [(thera, date(2025, 1, 10), Decimal("100.00"), SOURCE)]


def test_commit_is_idempotent(committer, transaction_service, properties):
    """Test that committing the same batch twice leaves the ledger as after one commit."""
    thera, sevilha = properties["Thera by Yoo"], properties["Sevilha 307"]
    batch = [txn(thera, 10, "100.00"), txn(sevilha, 12, "250.00")]

    committer.commit(batch, scope(thera, sevilha))
    after_first = ledger(transaction_service)
    second = committer.commit(batch, scope(thera, sevilha))

    assert ledger(transaction_service) == after_first
    assert second.deleted_count == 2
    assert second.inserted_count == 2


def test_commit_only_replaces_rows_inside_scope(committer, transaction_service, properties):
    """Test that other sources, dates, properties and manual rows survive."""
    thera, sevilha = properties["Thera by Yoo"], properties["Sevilha 307"]
    committer.commit([txn(thera, 10, "100.00")], scope(thera))
    committer.commit([txn(sevilha, 10, "80.00")], scope(sevilha))
    committer.commit(
        [txn(thera, 10, "70.00", month=2)],
        scope(thera, start=date(2025, 2, 1), end=date(2025, 2, 28)),
    )
    committer.commit(
        [txn(thera, 10, "900.00", source_tag="airbnb_payout")],
        scope(thera, source_tag="airbnb_payout"),
    )
    transaction_service.create_transaction(thera, date(2025, 1, 15), Decimal("55.00"), "expense", "cleaning")

    result = committer.commit([txn(thera, 20, "120.00")], scope(thera))

    assert result.deleted_count == 1
    assert ledger(transaction_service) == sorted([
        (thera, date(2025, 1, 10), Decimal("900.00"), "airbnb_payout"),
        (thera, date(2025, 1, 15), Decimal("55.00"), None),
        (thera, date(2025, 1, 20), Decimal("120.00"), SOURCE),
        (thera, date(2025, 2, 10), Decimal("70.00"), SOURCE),
        (sevilha, date(2025, 1, 10), Decimal("80.00"), SOURCE),
    ])


def test_scope_covering_all_properties(committer, transaction_service, properties):
    """Test that a property-less scope replaces the source for every property."""
    thera, sevilha = properties["Thera by Yoo"], properties["Sevilha 307"]
    committer.commit([txn(thera, 10, "1.00"), txn(sevilha, 10, "2.00")], scope(thera, sevilha))

    everything = ReconciliationScope(SOURCE, date(2025, 1, 1), date(2025, 1, 31))
    result = committer.commit([txn(thera, 11, "3.00")], everything)

    assert result.deleted_count == 2
    assert ledger(transaction_service) == [(thera, date(2025, 1, 11), Decimal("3.00"), SOURCE)]


def test_unmatched_labels_block_commit(committer, transaction_service, properties):
    """Test that unmapped labels block a commit and change nothing."""
    thera = properties["Thera by Yoo"]
    batch = [txn(thera, 10, "100.00"), txn(None, 11, "50.00", label="Unknown Villa")]

    with pytest.raises(UnmappedPropertiesError) as excinfo:
        committer.commit(batch, scope(thera))

    assert excinfo.value.labels == ["Unknown Villa"]
    assert "Unknown Villa" in str(excinfo.value)
    assert ledger(transaction_service) == []


def test_partial_commit_skips_unmatched(committer, transaction_service, properties):
    thera = properties["Thera by Yoo"]
    batch = [txn(thera, 10, "100.00"), txn(None, 11, "50.00", label="Unknown Villa")]

    result = committer.commit(batch, scope(thera), allow_partial=True)

    assert result.inserted_count == 1
    assert result.skipped_unmatched == 1
    assert len(ledger(transaction_service)) == 1


def test_empty_batch_is_rejected(committer):
    with pytest.raises(ValidationError, match="empty"):
        committer.commit([], scope(1))


def test_record_outside_scope_is_rejected(committer, transaction_service, properties):
    """Test that a commit never writes rows it wouldn't replace next time."""
    thera, sevilha = properties["Thera by Yoo"], properties["Sevilha 307"]
    with pytest.raises(ValidationError, match="outside"):
        committer.commit([txn(sevilha, 10, "1.00")], scope(thera))
    with pytest.raises(ValidationError):
        committer.commit([txn(thera, 10, "1.00", month=2)], scope(thera))
    assert ledger(transaction_service) == []


def test_failed_insert_rolls_back_delete(committer, temp_db, transaction_service, properties, monkeypatch):
    """Test that the previous import survives a failure during the insert."""
    thera = properties["Thera by Yoo"]
    committer.commit([txn(thera, 10, "100.00")], scope(thera))
    before = ledger(transaction_service)

    def failing_insert(records):
        raise PersistenceError("disk full")

    monkeypatch.setattr(temp_db, "insert_many", failing_insert)
    with pytest.raises(PersistenceError, match="disk full"):
        committer.commit([txn(thera, 12, "300.00")], scope(thera))

    monkeypatch.undo()
    assert ledger(transaction_service) == before


def test_cancelled_commit_changes_nothing(committer, transaction_service, properties):
    thera = properties["Thera by Yoo"]
    committer.commit([txn(thera, 10, "100.00")], scope(thera))
    before = ledger(transaction_service)

    cancel = threading.Event()
    cancel.set()
    with pytest.raises(CommitCancelled):
        committer.commit([txn(thera, 12, "300.00")], scope(thera), cancel_event=cancel)

    assert ledger(transaction_service) == before


def test_cancel_after_delete_rolls_back(committer, temp_db, transaction_service, properties, monkeypatch):
    """Test a cancellation that arrives between the delete and the insert."""
    thera = properties["Thera by Yoo"]
    committer.commit([txn(thera, 10, "100.00")], scope(thera))
    before = ledger(transaction_service)

    cancel = threading.Event()
    original_delete = temp_db.delete_where

    def delete_then_cancel(target):
        deleted = original_delete(target)
        cancel.set()
        return deleted

    monkeypatch.setattr(temp_db, "delete_where", delete_then_cancel)
    with pytest.raises(CommitCancelled, match="after deleting"):
        committer.commit([txn(thera, 12, "300.00")], scope(thera), cancel_event=cancel)

    monkeypatch.undo()
    assert ledger(transaction_service) == before


def test_writes_outside_a_transaction_are_refused(temp_db, properties):
    with pytest.raises(PersistenceError):
        temp_db.delete_where(scope(properties["Thera by Yoo"]))
    with pytest.raises(PersistenceError):
        temp_db.insert_many([txn(properties["Thera by Yoo"], 1, "1.00")])


# Import sessions


class StubCommitter:
    """Records calls instead of touching a database."""

    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    def commit(self, records, scope, **kwargs):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return "result"


class StubAnalysis:
    source_tag = SOURCE
    transactions = ()
    scope = None


def test_session_commit_then_commit_again_conflicts():
    session = ImportSession(StubAnalysis(), StubCommitter())
    assert session.state == ImportState.ANALYZED

    assert session.commit() == "result"
    assert session.state == ImportState.COMMITTED
    assert session.result == "result"

    with pytest.raises(ConflictError, match="committed"):
        session.commit()
    with pytest.raises(ConflictError):
        session.cancel()


def test_session_cancel():
    committer = StubCommitter()
    session = ImportSession(StubAnalysis(), committer)
    session.cancel()

    assert session.state == ImportState.CANCELLED
    with pytest.raises(ConflictError, match="cancelled"):
        session.commit()
    assert committer.calls == 0


def test_session_failed_commit_returns_to_analyzed():
    """Test that a failed commit can be retried or cancelled."""
    committer = StubCommitter(error=UnmappedPropertiesError(["Unknown Villa"]))
    session = ImportSession(StubAnalysis(), committer)

    with pytest.raises(UnmappedPropertiesError):
        session.commit()
    assert session.state == ImportState.ANALYZED

    session.cancel()
    assert session.state == ImportState.CANCELLED


# Scope locks


def test_lock_registry_overlap():
    registry = ScopeLockRegistry()
    with registry.hold(scope(1)):
        assert registry.is_locked(scope(1, 2))
        assert not registry.is_locked(scope(2))
        assert not registry.is_locked(scope(1, source_tag="airbnb_payout"))
        assert not registry.is_locked(scope(1, start=date(2025, 2, 1), end=date(2025, 2, 28)))
    assert not registry.is_locked(scope(1))


def test_lock_registry_all_properties_overlaps_everything():
    registry = ScopeLockRegistry()
    with registry.hold(ReconciliationScope(SOURCE, date(2025, 1, 1), date(2025, 1, 31))):
        assert registry.is_locked(scope(7))


def test_lock_registry_timeout():
    """Test that waiting on an overlapping holder gives up after the timeout."""
    registry = ScopeLockRegistry()
    with registry.hold(scope(1)):
        with pytest.raises(CommitCancelled, match="Timed out"):
            with registry.hold(scope(1), timeout=0.05):
                pass


def test_lock_registry_serializes_overlapping_holders():
    registry = ScopeLockRegistry()
    events = []
    first_holding = threading.Event()

    def first():
        with registry.hold(scope(1)):
            first_holding.set()
            time.sleep(0.1)
            events.append("first done")

    def second():
        first_holding.wait()
        with registry.hold(scope(1), timeout=5):
            events.append("second in")

    threads = [threading.Thread(target=first), threading.Thread(target=second)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert events == ["first done", "second in"]


def test_concurrent_overlapping_commits(temp_db, properties, transaction_service):
    """Test that racing identical commits leave exactly one copy of the batch."""
    from rentledger.domain.reconciliation import ReconciliationCommitter

    committer = ReconciliationCommitter(temp_db, locks=ScopeLockRegistry())
    thera = properties["Thera by Yoo"]
    batch = [txn(thera, 10, "100.00"), txn(thera, 11, "200.00")]
    errors = []

    def run():
        try:
            committer.commit(batch, scope(thera), timeout=10)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=run) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(ledger(transaction_service)) == 2
