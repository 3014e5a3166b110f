"""Cleaning-service statements, as plain text already extracted by OCR.

The statement looks like::

    CONTROLE DE LIMPEZA 01/01/2025 À 31/01/2025
    DATA        UNIDADE         VALOR
    15/01/2025  SEVILHA 307     250,00
    16/01/2025  MAXHAUS 43R     1.250,00
    TOTAL                       1.500,00
"""

import logging
import re
from datetime import date
from typing import Optional

from rentledger.domain.entities import (
    ParseResult,
    ParseWarning,
    RawRecord,
    TransactionKind,
)
from rentledger.domain.errors import ParseError
from rentledger.parsing.base import SourceParser, decode_text
from rentledger.utils.amount_parser import parse_amount
from rentledger.utils.date_parser import parse_slash_date

logger = logging.getLogger(__name__)

CATEGORY = "cleaning"

PERIOD_PATTERN = re.compile(
    r"(\d{2}/\d{2}/\d{4})\s*[ÀàAa]\s*(\d{2}/\d{2}/\d{4})"
)
LINE_PATTERN = re.compile(
    r"^(\d{2}/\d{2}/\d{4})\s+(.+?)\s+(?:R\$\s*)?([\d.,]+)$"
)
# OCR sometimes drops the spaces between columns: 15/01/2025SEVILHA 307250,00
COMPACT_AMOUNT_PATTERN = re.compile(r"(\d{1,3}(?:\.\d{3})*,\d{2})$")
STARTS_WITH_DATE = re.compile(r"^\d{2}/\d{2}/\d{4}")
SKIPPED_LINE = re.compile(r"\b(?:SUB)?TOTAL\b|\bDESCONTO\b")


def _is_column_header(upper_line: str) -> bool:
    return "DATA" in upper_line and "UNIDADE" in upper_line


def split_line(line: str) -> Optional[tuple[str, str, str]]:
    """Split a statement line into (date, unit label, amount) strings.

    Returns None when the line doesn't look like a data line.
    """
    match = LINE_PATTERN.match(line)
    if match:
        return match.group(1), match.group(2).strip(), match.group(3)

    if not STARTS_WITH_DATE.match(line):
        return None
    date_text, remaining = line[:10], line[10:].strip()
    amount_match = COMPACT_AMOUNT_PATTERN.search(remaining)
    if not amount_match:
        return None
    label = remaining[: amount_match.start()].strip()
    if label.upper().endswith("R$"):
        label = label[:-2].strip()
    if not label:
        return None
    return date_text, label, amount_match.group(1)


def find_period(lines: list[str]) -> tuple[int, date, date]:
    """Locate the statement header.

    Returns:
        Tuple of (header line index, period start, period end)

    Raises:
        ParseError: If no line carries a ``start à end`` period
    """
    for index, line in enumerate(lines):
        if STARTS_WITH_DATE.match(line):
            continue
        match = PERIOD_PATTERN.search(line)
        if match:
            try:
                start = parse_slash_date(match.group(1), order="dmy")
                end = parse_slash_date(match.group(2), order="dmy")
            except ValueError as e:
                raise ParseError(f"Invalid statement period on line {index + 1}: {e}")
            if start > end:
                raise ParseError(f"Statement period starts after it ends: {match.group(0)}")
            return index, start, end
    raise ParseError("No statement period header found (expected 'DD/MM/YYYY à DD/MM/YYYY')")


class CleaningTableParser(SourceParser):
    """Cleaning charges, one expense record per line."""

    name = "Cleaning statement (OCR text)"

    def parse(self, raw: bytes, source_tag: str) -> ParseResult:
        lines = [line.strip() for line in decode_text(raw).splitlines()]
        header_index, period_start, period_end = find_period(lines)
        logger.debug("Cleaning statement period %s to %s", period_start, period_end)

        records: list[RawRecord] = []
        warnings: list[ParseWarning] = []

        for index in range(header_index + 1, len(lines)):
            line = lines[index]
            line_num = index + 1
            if not line:
                continue
            upper_line = line.upper()
            if _is_column_header(upper_line) or SKIPPED_LINE.search(upper_line):
                continue

            parts = split_line(line)
            if parts is None:
                if STARTS_WITH_DATE.match(line):
                    warnings.append(ParseWarning(line_num, f"Unrecognized line: {line}"))
                else:
                    logger.debug("Line %d: ignoring '%s'", line_num, line)
                continue

            date_text, label, amount_text = parts
            try:
                txn_date = parse_slash_date(date_text, order="dmy")
                amount = parse_amount(amount_text)
            except ValueError as e:
                warnings.append(ParseWarning(line_num, str(e)))
                continue

            if amount == 0:
                logger.debug("Line %d: skipping zero charge", line_num)
                continue
            if not period_start <= txn_date <= period_end:
                warnings.append(
                    ParseWarning(
                        line_num,
                        f"Date {txn_date.isoformat()} is outside the statement period "
                        f"{period_start.isoformat()} to {period_end.isoformat()}",
                    )
                )

            records.append(
                RawRecord(
                    date=txn_date,
                    unit_label=label,
                    amount=amount,
                    kind=TransactionKind.EXPENSE,
                    source_tag=source_tag,
                    category=CATEGORY,
                    raw_fields={"line": line},
                    description=f"Limpeza - {label}",
                )
            )

        return ParseResult(
            records=tuple(records),
            warnings=tuple(warnings),
            period=(period_start, period_end),
        )
