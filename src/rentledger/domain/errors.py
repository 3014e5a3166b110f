"""Shared domain error messages and error types."""

from typing import Iterable


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or illegal state transitions."""


class ParseError(DomainError):
    """Source input that a parser cannot recover from (e.g. missing header)."""


class UnmappedPropertiesError(DomainError):
    """Commit blocked because some labels did not resolve to a property."""

    def __init__(self, labels: Iterable[str]):
        self.labels = sorted(set(labels))
        super().__init__(unmapped_labels(self.labels))


class InvalidDistribution(ValidationError):
    """Distribution input that cannot produce a plan."""


class PersistenceError(Exception):
    """Store-level failure during a commit. The transaction was rolled back."""


class CommitCancelled(PersistenceError):
    """Commit aborted by timeout or cancellation. The transaction was rolled back."""


def property_not_found(property_id: int) -> str:
    """Return message for missing property."""
    return f"Property {property_id} not found"


def property_name_not_found(name: str) -> str:
    """Return message for a property name that does not resolve."""
    return f"Property '{name}' not found"


def duplicate_property_name(name: str) -> str:
    """Return message for duplicate property names."""
    return f"Property with name '{name}' already exists"


def unknown_source_tag(source_tag: str, known: Iterable[str]) -> str:
    """Return message for a source tag without a parser."""
    return f"Unknown source '{source_tag}'. Supported sources: {', '.join(sorted(known))}"


def unmapped_labels(labels: list[str]) -> str:
    """Return message listing labels that block a commit."""
    count = len(labels)
    return (
        f"Cannot commit: {count} unmapped label{'s' if count != 1 else ''}: "
        + ", ".join(f"'{label}'" for label in labels)
        + ". Add aliases for them or commit with partial import enabled."
    )


def missing_headers(missing: Iterable[str]) -> str:
    """Return message for a CSV missing required columns."""
    return f"Source file missing required columns: {', '.join(sorted(missing))}"


def illegal_transition(current: str, action: str) -> str:
    """Return message for an import state machine violation."""
    return f"Cannot {action} an import that is {current}"
