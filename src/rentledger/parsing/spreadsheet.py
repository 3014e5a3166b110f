"""Historical bookkeeping workbooks (.xlsx).

Two layouts are supported, and a workbook may mix them:

* horizontal: one sheet per property (the sheet title is the unit label),
  one row per month, revenue and expense columns side by side;
* consolidated: one sheet per year, one row per property and transaction
  type, one column per month.
"""

import io
import logging
import re
import zipfile
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from rentledger.domain.aliases import normalize_label
from rentledger.domain.entities import (
    ParseResult,
    ParseWarning,
    RawRecord,
    TransactionKind,
)
from rentledger.domain.errors import ParseError
from rentledger.parsing.base import SourceParser
from rentledger.utils.amount_parser import parse_amount, to_decimal
from rentledger.utils.date_parser import excel_serial_to_date, parse_slash_date

logger = logging.getLogger(__name__)

YEAR_SHEET = re.compile(r"^\d{4}$")

# Horizontal layout: column index (0-based) -> (kind, category, header)
REVENUE_COLUMNS = {
    1: (TransactionKind.REVENUE, "rent", "Aluguel"),
    2: (TransactionKind.REVENUE, "other", "Outras receitas"),
}
EXPENSE_COLUMNS = {
    4: (TransactionKind.EXPENSE, "taxes", "Impostos"),
    5: (TransactionKind.EXPENSE, "management", "Gestão"),
    6: (TransactionKind.EXPENSE, "condominium", "Condomínio"),
    7: (TransactionKind.EXPENSE, "condominium", "Taxa Condominial"),
    8: (TransactionKind.EXPENSE, "utilities", "Luz"),
    9: (TransactionKind.EXPENSE, "utilities", "Gás e Água"),
    10: (TransactionKind.EXPENSE, "management", "Comissões"),
    11: (TransactionKind.EXPENSE, "taxes", "IPTU"),
    12: (TransactionKind.EXPENSE, "financing", "Financiamento"),
    13: (TransactionKind.EXPENSE, "maintenance", "Conserto/Manutenção"),
    14: (TransactionKind.EXPENSE, "utilities", "TV/Internet"),
    15: (TransactionKind.EXPENSE, "cleaning", "Limpeza"),
}
HORIZONTAL_COLUMNS = {**REVENUE_COLUMNS, **EXPENSE_COLUMNS}

# Consolidated layout: first keyword found in the (normalized) type wins
CATEGORY_KEYWORDS = (
    ("ALUGUEL", "rent"),
    ("AIRBNB", "airbnb"),
    ("BOOKING", "booking"),
    ("CONDOMINIO", "condominium"),
    ("IPTU", "taxes"),
    ("ENERGIA", "utilities"),
    ("LUZ", "utilities"),
    ("AGUA", "utilities"),
    ("INTERNET", "utilities"),
    ("GESTAO", "management"),
    ("MANUTENCAO", "maintenance"),
    ("LIMPEZA", "cleaning"),
    ("SEGURO", "insurance"),
)
REVENUE_KEYWORDS = ("RECEITA", "ALUGUEL")
FIRST_MONTH_COLUMN = 2
CONSOLIDATED_DAY = 15


def category_for(type_label: str) -> str:
    """Map a free-text transaction type to a ledger category."""
    key = normalize_label(type_label)
    for keyword, category in CATEGORY_KEYWORDS:
        if keyword in key:
            return category
    return "other"


def kind_for(type_label: str) -> TransactionKind:
    key = normalize_label(type_label)
    if any(keyword in key for keyword in REVENUE_KEYWORDS):
        return TransactionKind.REVENUE
    return TransactionKind.EXPENSE


def cell_date(value: Any) -> Optional[date]:
    """Convert a date cell (date, DD/MM/YYYY text or Excel serial).

    Returns None for blank cells.

    Raises:
        ValueError: If the cell holds something that isn't a date
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return excel_serial_to_date(value)
    if isinstance(value, str):
        return parse_slash_date(value.strip(), order="dmy")
    raise ValueError(f"Invalid date cell: {value!r}")


def cell_amount(value: Any) -> Optional[Decimal]:
    """Convert an amount cell; None for blank cells."""
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip() or value.strip() == "-":
            return None
        return parse_amount(value)
    return to_decimal(value)


def load_workbook(raw: bytes):
    """Open an .xlsx workbook from bytes.

    Raises:
        ParseError: If the bytes are not a readable workbook
    """
    if isinstance(raw, str):
        raise ParseError("Spreadsheet imports need the binary .xlsx file")
    try:
        return openpyxl.load_workbook(io.BytesIO(raw), data_only=True, read_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ParseError(f"Could not open workbook: {e}")


class SpreadsheetParser(SourceParser):
    """Horizontal and consolidated bookkeeping workbooks."""

    name = "Bookkeeping spreadsheet (.xlsx)"

    def parse(self, raw: bytes, source_tag: str) -> ParseResult:
        workbook = load_workbook(raw)
        records: list[RawRecord] = []
        warnings: list[ParseWarning] = []

        try:
            for sheet in workbook.worksheets:
                title = sheet.title.strip()
                rows = list(sheet.iter_rows(values_only=True))
                if YEAR_SHEET.match(title):
                    self._parse_consolidated(int(title), title, rows, source_tag, records, warnings)
                else:
                    self._parse_horizontal(title, rows, source_tag, records, warnings)
        finally:
            workbook.close()

        logger.debug("Read %d records from %d sheets", len(records), len(workbook.sheetnames))
        return ParseResult(records=tuple(records), warnings=tuple(warnings))

    def _parse_horizontal(self, label, rows, source_tag, records, warnings):
        # Row 1 is the header
        for row_num, row in enumerate(rows[1:], start=2):
            if not row or all(v is None or str(v).strip() == "" for v in row):
                continue
            first = row[0]
            if isinstance(first, str) and "TOTAL" in first.upper():
                continue
            try:
                txn_date = cell_date(first)
            except ValueError as e:
                warnings.append(ParseWarning(row_num, f"{label}: {e}"))
                continue
            if txn_date is None:
                continue

            for column, (kind, category, header) in HORIZONTAL_COLUMNS.items():
                if column >= len(row):
                    continue
                try:
                    amount = cell_amount(row[column])
                except ValueError as e:
                    warnings.append(ParseWarning(row_num, f"{label} / {header}: {e}"))
                    continue
                if amount is None or amount == 0:
                    continue
                records.append(
                    RawRecord(
                        date=txn_date,
                        unit_label=label,
                        amount=abs(amount),
                        kind=kind,
                        source_tag=source_tag,
                        category=category,
                        raw_fields={"sheet": label, "row": row_num, "column": header},
                        description=header,
                    )
                )

    def _parse_consolidated(self, year, title, rows, source_tag, records, warnings):
        for row_num, row in enumerate(rows, start=1):
            if not row or len(row) < 2:
                continue
            label = str(row[0]).strip() if row[0] is not None else ""
            type_label = str(row[1]).strip() if row[1] is not None else ""
            if not label and not type_label:
                continue
            if "TOTAL" in label.upper() or "TOTAL" in type_label.upper():
                continue

            values = row[FIRST_MONTH_COLUMN:FIRST_MONTH_COLUMN + 12]
            parsed = []
            bad_cell = False
            for month, value in enumerate(values, start=1):
                try:
                    parsed.append((month, cell_amount(value)))
                except ValueError:
                    bad_cell = True
                    break
            if bad_cell:
                # The header row (Imóvel | Tipo | Jan | Fev ...) lands here too
                if row_num > 1:
                    warnings.append(ParseWarning(row_num, f"{title}: non-numeric month value"))
                continue

            if not label:
                warnings.append(ParseWarning(row_num, f"{title}: missing property label"))
                continue

            kind = kind_for(type_label)
            category = category_for(type_label)
            # Expenses are often written as negatives; the type column gives the kind
            for month, amount in parsed:
                if amount is None or amount == 0:
                    continue
                records.append(
                    RawRecord(
                        date=date(year, month, CONSOLIDATED_DAY),
                        unit_label=label,
                        amount=abs(amount),
                        kind=kind,
                        source_tag=source_tag,
                        category=category,
                        raw_fields={"sheet": title, "row": row_num, "type": type_label},
                        description=type_label or None,
                    )
                )
