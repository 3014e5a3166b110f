"""Shared pytest fixtures for rentledger tests."""

import tempfile
import os
from pathlib import Path
import pytest

from rentledger.database.factories import create_sqlite_database
from rentledger.domain.distribution import DistributionService
from rentledger.domain.import_service import ImportService
from rentledger.domain.property import PropertyService
from rentledger.domain.reconciliation import ReconciliationCommitter, ScopeLockRegistry
from rentledger.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def no_alias_file_env(monkeypatch):
    """Keep a developer's RENTLEDGER_ALIASES_FILE out of the tests."""
    monkeypatch.delenv("RENTLEDGER_ALIASES_FILE", raising=False)


@pytest.fixture
def property_service(temp_db):
    """Create a PropertyService with a temporary database."""
    return PropertyService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def lock_registry():
    """A lock registry private to the test."""
    return ScopeLockRegistry()


@pytest.fixture
def committer(temp_db, lock_registry):
    """Create a ReconciliationCommitter with a private lock registry."""
    return ReconciliationCommitter(temp_db, locks=lock_registry)


@pytest.fixture
def import_service(temp_db, property_service, committer):
    """Create an ImportService with a temporary database."""
    return ImportService(temp_db, property_service=property_service, committer=committer)


@pytest.fixture
def distribution_service(temp_db, committer):
    """Create a DistributionService with a temporary database."""
    return DistributionService(temp_db, committer=committer)


@pytest.fixture
def properties(property_service):
    """Seed the built-in portfolio and return {name: id}."""
    property_service.seed_default_properties()
    return {prop.name: prop.id for prop in property_service.list_properties()}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
