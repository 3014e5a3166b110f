"""Base class and shared helpers for source parsers."""

import csv
import io
import logging
from abc import ABC, abstractmethod
from typing import Iterator

from rentledger.domain.entities import ParseResult
from rentledger.domain.errors import ParseError, missing_headers

logger = logging.getLogger(__name__)


class SourceParser(ABC):
    """Turns raw source bytes into RawRecords.

    Row-level problems become ParseWarnings and the row is skipped; only
    input the parser cannot make sense of at all raises ParseError.
    """

    #: Human-readable format name
    name: str = ""

    #: Whether a re-import replaces rows of every property inside the date range,
    #: instead of only the properties present in the batch
    replaces_all_properties: bool = False

    @abstractmethod
    def parse(self, raw: bytes, source_tag: str) -> ParseResult:
        """Parse raw bytes into records tagged with ``source_tag``."""


def decode_text(raw: bytes) -> str:
    """Decode source bytes, dropping a UTF-8 BOM.

    Falls back to cp1252, which is what spreadsheet tools on Brazilian
    Windows installs write when exporting CSV.
    """
    if isinstance(raw, str):
        return raw.lstrip("\ufeff")
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("Input is not UTF-8, decoding as cp1252")
    try:
        return raw.decode("cp1252")
    except UnicodeDecodeError as e:
        raise ParseError(f"Could not decode source file: {e}")


def read_csv(raw: bytes, required: set[str], any_of: set[str] | None = None) -> tuple[list[str], Iterator[tuple[int, dict[str, str]]]]:
    """Read a CSV with a header row.

    Args:
        raw: File contents
        required: Columns that must all be present
        any_of: Columns of which at least one must be present

    Returns:
        Tuple of (headers, iterator of (row_number, row)) where row numbers
        count the header as row 1

    Raises:
        ParseError: If the file is empty or misses required columns
    """
    text = decode_text(raw)
    if not text.strip():
        raise ParseError("Source file is empty")

    sample = text[:2048]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    headers = [h.strip() for h in (reader.fieldnames or []) if h is not None]
    if not headers:
        raise ParseError("Source file has no columns")

    missing = set(required) - set(headers)
    if missing:
        raise ParseError(missing_headers(missing))
    if any_of and not (set(any_of) & set(headers)):
        raise ParseError(missing_headers(any_of))

    def rows() -> Iterator[tuple[int, dict[str, str]]]:
        for row_num, row in enumerate(reader, start=2):
            cleaned = {
                (key or "").strip(): (value or "").strip() if isinstance(value, str) else ""
                for key, value in row.items()
                if key is not None
            }
            if not any(cleaned.values()):
                continue
            yield row_num, cleaned

    return headers, rows()
