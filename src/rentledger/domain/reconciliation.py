"""Replace-by-scope commits of analyzed import batches."""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from rentledger.database.base import Database
from rentledger.domain.aliases import normalize_label
from rentledger.domain.entities import (
    CommitResult,
    ImportAnalysis,
    ImportState,
    NormalizedTransaction,
    ReconciliationScope,
)
from rentledger.domain.errors import (
    CommitCancelled,
    ConflictError,
    UnmappedPropertiesError,
    ValidationError,
    illegal_transition,
)

logger = logging.getLogger(__name__)


class ScopeLockRegistry:
    """In-process mutual exclusion between commits with overlapping scopes.

    Commits whose scopes are disjoint (different source, dates or
    properties) run concurrently.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._active: list[ReconciliationScope] = []

    def is_locked(self, scope: ReconciliationScope) -> bool:
        with self._condition:
            return any(scope.overlaps(active) for active in self._active)

    @contextmanager
    def hold(self, scope: ReconciliationScope, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the lock for ``scope``, waiting for overlapping holders to finish.

        Raises:
            CommitCancelled: If the lock isn't free within ``timeout`` seconds
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            waited = False
            while any(scope.overlaps(active) for active in self._active):
                if not waited:
                    logger.info("Waiting for a concurrent commit overlapping %s", scope)
                    waited = True
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise CommitCancelled(
                        f"Timed out waiting for a concurrent {scope.source_tag} commit "
                        f"covering {scope.start_date} to {scope.end_date}"
                    )
                self._condition.wait(remaining)
            self._active.append(scope)
        try:
            yield
        finally:
            with self._condition:
                self._active.remove(scope)
                self._condition.notify_all()


# Shared by every committer in the process
default_lock_registry = ScopeLockRegistry()


def unmatched_labels_of(records: Sequence[NormalizedTransaction]) -> set[str]:
    """Distinct non-empty labels of records without a property."""
    return {
        record.unit_label.strip()
        for record in records
        if not record.is_matched and normalize_label(record.unit_label)
    }


class ReconciliationCommitter:
    """Delete a scope and insert its replacement rows in one transaction."""

    def __init__(self, db: Database, locks: Optional[ScopeLockRegistry] = None):
        self.db = db
        self.locks = locks or default_lock_registry

    def commit(
        self,
        records: Sequence[NormalizedTransaction],
        scope: ReconciliationScope,
        allow_partial: bool = False,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommitResult:
        """Replace every ledger row in ``scope`` with the matched ``records``.

        Args:
            records: Normalized batch, as produced by the analysis
            scope: Ledger subset the batch replaces
            allow_partial: Insert matched records even if some labels are unmapped
            timeout: Seconds allowed for waiting on the scope lock plus the commit
            cancel_event: Set from another thread to abandon the commit

        Returns:
            CommitResult with deleted and inserted counts

        Raises:
            ValidationError: If the batch is empty or a record falls outside the scope
            UnmappedPropertiesError: If labels are unmapped and partial mode is off
            CommitCancelled: On timeout or cancellation; nothing was changed
            PersistenceError: On store failure; nothing was changed
        """
        records = tuple(records)
        if not records or scope is None:
            raise ValidationError("Nothing to commit: the batch is empty")

        unmatched = unmatched_labels_of(records)
        if unmatched and not allow_partial:
            raise UnmappedPropertiesError(unmatched)

        matched = [record for record in records if record.is_matched]
        for record in matched:
            if not scope.contains(record.source_tag, record.date, record.property_id):
                raise ValidationError(
                    f"Record for property {record.property_id} on {record.date} "
                    f"is outside the commit scope"
                )

        deadline = None if timeout is None else time.monotonic() + timeout

        def checkpoint(step: str) -> None:
            if cancel_event is not None and cancel_event.is_set():
                raise CommitCancelled(f"Commit cancelled {step}")
            if deadline is not None and time.monotonic() > deadline:
                raise CommitCancelled(f"Commit timed out {step}")

        with self.locks.hold(scope, timeout):
            with self.db.transaction():
                checkpoint("before deleting the previous import")
                deleted = self.db.delete_where(scope)
                checkpoint("after deleting the previous import")
                inserted = self.db.insert_many(matched)
                checkpoint("after inserting the new rows")

        skipped = len(records) - len(matched)
        logger.info(
            "Committed %s %s..%s: deleted %d, inserted %d, skipped %d unmatched",
            scope.source_tag,
            scope.start_date,
            scope.end_date,
            deleted,
            inserted,
            skipped,
        )
        return CommitResult(
            scope=scope,
            deleted_count=deleted,
            inserted_count=inserted,
            skipped_unmatched=skipped,
        )


class ImportSession:
    """One import's lifecycle: analyzed, then committed or cancelled.

    The analysis is the only input to the commit; nothing is re-read from
    the source once the caller has seen the report.
    """

    def __init__(self, analysis: ImportAnalysis, committer: ReconciliationCommitter):
        self.analysis = analysis
        self.committer = committer
        self.state = ImportState.ANALYZED
        self.result: Optional[CommitResult] = None
        self._lock = threading.Lock()

    def _transition(self, expected: ImportState, new: ImportState, action: str) -> None:
        with self._lock:
            if self.state != expected:
                raise ConflictError(illegal_transition(self.state.value, action))
            self.state = new

    def commit(
        self,
        allow_partial: bool = False,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommitResult:
        """Commit the analyzed batch.

        On failure the session returns to ANALYZED so the caller can fix the
        cause (e.g. add aliases via a fresh analysis) or cancel.

        Raises:
            ConflictError: If the session was already committed or cancelled
        """
        self._transition(ImportState.ANALYZED, ImportState.COMMITTING, "commit")
        try:
            result = self.committer.commit(
                self.analysis.transactions,
                self.analysis.scope,
                allow_partial=allow_partial,
                timeout=timeout,
                cancel_event=cancel_event,
            )
        except Exception:
            with self._lock:
                self.state = ImportState.ANALYZED
            raise
        with self._lock:
            self.state = ImportState.COMMITTED
            self.result = result
        return result

    def cancel(self) -> None:
        """Discard the analysis without touching the ledger."""
        self._transition(ImportState.ANALYZED, ImportState.CANCELLED, "cancel")
        logger.info("Cancelled %s import", self.analysis.source_tag)
