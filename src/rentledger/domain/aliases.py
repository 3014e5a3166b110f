"""Property name resolution via a normalized alias table."""

import json
import logging
import unicodedata
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from rentledger.domain.alias_defaults import DEFAULT_ALIASES
from rentledger.domain.entities import Property
from rentledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)


def normalize_label(label: Optional[str]) -> str:
    """Normalize a free-text label for alias lookup.

    Uppercases, strips diacritics (NFD decomposition minus combining marks),
    collapses whitespace runs to one space and trims. Idempotent.
    """
    if not label:
        return ""
    decomposed = unicodedata.normalize("NFD", label.upper())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.split())


class AliasTable:
    """Immutable mapping of normalized labels to canonical property names.

    Updates return a new table with a higher version, so a resolver built
    from one table is never affected by later changes.
    """

    def __init__(self, entries: Mapping[str, str], version: int = 1):
        normalized = {}
        for label, canonical in entries.items():
            key = normalize_label(label)
            if not key:
                raise ValidationError("Alias label cannot be empty")
            normalized[key] = canonical
        self._entries = MappingProxyType(normalized)
        self.version = version

    @classmethod
    def default(cls) -> "AliasTable":
        """Return the built-in alias table."""
        return cls(DEFAULT_ALIASES)

    def lookup(self, label: str) -> Optional[str]:
        """Return the canonical name for a label, or None."""
        return self._entries.get(normalize_label(label))

    def with_aliases(self, entries: Mapping[str, str]) -> "AliasTable":
        """Return a new table with ``entries`` merged over this one."""
        merged = dict(self._entries)
        merged.update(entries)
        return AliasTable(merged, version=self.version + 1)

    def with_alias(self, label: str, canonical: str) -> "AliasTable":
        return self.with_aliases({label: canonical})

    def items(self):
        return self._entries.items()

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and normalize_label(label) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AliasTable(version={self.version}, entries={len(self)})"


def load_alias_file(path: str | Path) -> dict[str, str]:
    """Load a JSON object of ``{"label": "Canonical Name"}`` pairs.

    Raises:
        ValidationError: If the file is not a flat JSON object of strings
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Could not read alias file '{path}': {e}")
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ValidationError(f"Alias file '{path}' must be a JSON object of strings")
    return data


class AliasResolver:
    """Resolve free-text labels to property IDs.

    Lookup order: alias table, then an exact normalized match against the
    canonical property names (and nicknames). Pure; safe to share between
    concurrent analyses.
    """

    def __init__(self, table: AliasTable, properties: Iterable[Property]):
        self.table = table
        self.properties = tuple(properties)
        self._by_name: dict[str, int] = {}
        for prop in self.properties:
            self._by_name.setdefault(normalize_label(prop.name), prop.id)
        for prop in self.properties:
            if prop.nickname:
                self._by_name.setdefault(normalize_label(prop.nickname), prop.id)

    def resolve(self, label: Optional[str]) -> Optional[int]:
        """Return the property ID for a label, or None when unmatched.

        Empty and whitespace-only labels always resolve to None.
        """
        key = normalize_label(label)
        if not key:
            return None

        canonical = self.table.lookup(key)
        if canonical is not None:
            property_id = self._by_name.get(normalize_label(canonical))
            if property_id is None:
                logger.debug(
                    "Alias '%s' points to '%s', which is not in the property directory",
                    key,
                    canonical,
                )
            return property_id

        return self._by_name.get(key)

    def suggest(self, label: str, limit: int = 3) -> list[Property]:
        """Return properties whose normalized name overlaps the label."""
        key = normalize_label(label)
        if not key:
            return []
        suggestions = []
        for prop in self.properties:
            name = normalize_label(prop.name)
            if key in name or name in key:
                suggestions.append(prop)
            if len(suggestions) >= limit:
                break
        return suggestions


def build_alias_table(
    learned: Mapping[str, str] | None = None,
    alias_file: str | Path | None = None,
    base: AliasTable | None = None,
) -> AliasTable:
    """Build the effective alias table: defaults, then file aliases, then learned ones."""
    table = base if base is not None else AliasTable.default()
    if alias_file is not None:
        table = table.with_aliases(load_alias_file(alias_file))
    if learned:
        table = table.with_aliases(learned)
    return table
