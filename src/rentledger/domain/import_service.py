"""Analyze-then-commit import entry points."""

import logging
import threading
from typing import Optional

from rentledger.database.base import Database
from rentledger.domain.analyzer import ImportAnalyzer
from rentledger.domain.entities import CommitResult, ImportAnalysis
from rentledger.domain.property import PropertyService
from rentledger.domain.reconciliation import ImportSession, ReconciliationCommitter
from rentledger.parsing import get_parser

logger = logging.getLogger(__name__)


class ImportService:
    """Service for importing third-party source files into the ledger."""

    def __init__(
        self,
        db: Database,
        property_service: Optional[PropertyService] = None,
        committer: Optional[ReconciliationCommitter] = None,
    ):
        """Initialize import service.

        Args:
            db: Database instance
            property_service: Supplies the alias resolver; built from ``db`` if omitted
            committer: Commits analyzed batches; built from ``db`` if omitted
        """
        self.db = db
        self.property_service = property_service or PropertyService(db)
        self.committer = committer or ReconciliationCommitter(db)

    def analyze(self, source_tag: str, raw: bytes) -> ImportAnalysis:
        """Parse and analyze a source file without touching the ledger.

        Raises:
            ValidationError: If no parser handles ``source_tag``
            ParseError: If the file can't be parsed at all
        """
        parser = get_parser(source_tag)
        result = parser.parse(raw, source_tag)
        if result.warnings:
            logger.warning("%d rows skipped or flagged while parsing %s", len(result.warnings), source_tag)
        analyzer = ImportAnalyzer(self.property_service.build_resolver())
        return analyzer.analyze(
            result.records,
            source_tag,
            warnings=result.warnings,
            replaces_all_properties=parser.replaces_all_properties,
        )

    def start(self, source_tag: str, raw: bytes) -> ImportSession:
        """Analyze a source file and return a session awaiting commit or cancel."""
        return ImportSession(self.analyze(source_tag, raw), self.committer)

    def commit(
        self,
        source_tag: str,
        raw: bytes,
        allow_partial: bool = False,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommitResult:
        """Analyze and commit a source file in one call.

        Raises:
            UnmappedPropertiesError: If labels are unmapped and partial mode is off
            PersistenceError: If the store fails; the ledger is unchanged
        """
        session = self.start(source_tag, raw)
        return session.commit(allow_partial=allow_partial, timeout=timeout, cancel_event=cancel_event)
