"""Airbnb earnings exports (Portuguese column headers, MM/DD/YYYY dates)."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from rentledger.domain.entities import (
    ParseResult,
    ParseWarning,
    RawRecord,
    TransactionKind,
)
from rentledger.parsing.base import SourceParser, read_csv
from rentledger.utils.amount_parser import parse_amount
from rentledger.utils.date_parser import parse_slash_date

logger = logging.getLogger(__name__)

COL_DATE = "Data"
COL_TYPE = "Tipo"
COL_CONFIRMATION = "Código de Confirmação"
COL_CHECK_IN = "Data de início"
COL_CHECK_OUT = "Data de término"
COL_NIGHTS = "Noites"
COL_GUEST = "Hóspede"
COL_LISTING = "Anúncio"
COL_CURRENCY = "Moeda"
COL_AMOUNT = "Valor"
COL_PAID = "Pago"
COL_GROSS = "Ganhos brutos"

TYPE_PAYOUT = "Payout"
TYPE_RESERVATION = "Reserva"
TYPE_ADJUSTMENTS = ("Ajuste", "Ajuste de Resolução")

CATEGORY = "airbnb"

REQUIRED_COLUMNS = {COL_DATE, COL_TYPE, COL_LISTING}
AMOUNT_COLUMNS = {COL_GROSS, COL_AMOUNT}


def _first_amount(row: dict[str, str], *columns: str) -> Optional[Decimal]:
    """Parse the first non-empty amount among ``columns``."""
    for column in columns:
        value = row.get(column, "")
        if value:
            return parse_amount(value)
    return None


def _is_unpaid(row: dict[str, str]) -> bool:
    """Whether the export marks a reservation as not paid out yet."""
    value = row.get(COL_PAID, "")
    if not value:
        return False
    return parse_amount(value) == 0


def _reservation_notes(row: dict[str, str]) -> str:
    parts = []
    if row.get(COL_CONFIRMATION):
        parts.append(f"Código: {row[COL_CONFIRMATION]}")
    if row.get(COL_NIGHTS):
        parts.append(f"{row[COL_NIGHTS]} noites")
    if row.get(COL_CHECK_IN):
        stay = row[COL_CHECK_IN]
        if row.get(COL_CHECK_OUT):
            stay += f" a {row[COL_CHECK_OUT]}"
        parts.append(f"Estadia: {stay}")
    if row.get(COL_GROSS):
        parts.append(f"Ganhos brutos: {row[COL_GROSS]}")
    return " | ".join(parts)


class AirbnbPayoutParser(SourceParser):
    """Historical payouts: paid reservations and adjustments, as revenue.

    ``Payout`` rows are bank-transfer summaries of the reservation lines that
    follow them and are skipped so revenue is not counted twice.
 Reservations whose ``Pago`` column is zero have not been paid out and
    are skipped as well.
    """

    name = "Airbnb payouts"

    def parse(self, raw: bytes, source_tag: str) -> ParseResult:
        _, rows = read_csv(raw, REQUIRED_COLUMNS, AMOUNT_COLUMNS)
        records: list[RawRecord] = []
        warnings: list[ParseWarning] = []

        for row_num, row in rows:
            row_type = row.get(COL_TYPE, "")
            if row_type == TYPE_PAYOUT:
                logger.debug("Row %d: skipping payout summary line", row_num)
                continue
            if row_type != TYPE_RESERVATION and row_type not in TYPE_ADJUSTMENTS:
                warnings.append(ParseWarning(row_num, f"Unknown row type '{row_type}'"))
                continue
            try:
                if row_type == TYPE_RESERVATION and _is_unpaid(row):
                    logger.debug("Row %d: skipping unpaid reservation", row_num)
                    continue
            except ValueError as e:
                warnings.append(ParseWarning(row_num, f"Invalid paid amount: {e}"))
                continue

            try:
                txn_date = parse_slash_date(row.get(COL_DATE, ""), order="mdy")
            except ValueError as e:
                warnings.append(ParseWarning(row_num, str(e)))
                continue

            try:
                if row_type == TYPE_RESERVATION:
                    amount = _first_amount(row, COL_GROSS, COL_AMOUNT)
                else:
                    amount = _first_amount(row, COL_AMOUNT, COL_GROSS)
            except ValueError as e:
                warnings.append(ParseWarning(row_num, str(e)))
                continue

            if amount is None:
                warnings.append(ParseWarning(row_num, "Missing amount"))
                continue
            if amount == 0:
                logger.debug("Row %d: skipping zero-amount %s", row_num, row_type)
                continue

            listing = row.get(COL_LISTING, "")
            if row_type == TYPE_RESERVATION:
                description = f"Airbnb - {row.get(COL_GUEST) or 'Reserva'}"
            else:
                description = f"Ajuste Airbnb - {listing or 'Crédito/Débito'}"

            records.append(
                RawRecord(
                    date=txn_date,
                    unit_label=listing,
                    amount=amount,
                    kind=TransactionKind.REVENUE,
                    source_tag=source_tag,
                    category=CATEGORY,
                    raw_fields=dict(row),
                    description=description,
                    notes=_reservation_notes(row) or None,
                )
            )

        return ParseResult(records=tuple(records), warnings=tuple(warnings))


class AirbnbPendingParser(SourceParser):
    """Future reservations, dated at their expected payment date, for forecasting.

    A pending export replaces the whole forecast for its date range, so
    reservations that disappeared from the export also disappear from the ledger.

    Only reservations checking in after ``today`` are forecast; earlier ones
    are reported as warnings. ``today`` defaults to the current date.
    """

    name = "Airbnb pending reservations"
    replaces_all_properties = True

    def __init__(self, today: Optional[date] = None):
        self.today = today

    def parse(self, raw: bytes, source_tag: str) -> ParseResult:
        _, rows = read_csv(raw, REQUIRED_COLUMNS, AMOUNT_COLUMNS)
        records: list[RawRecord] = []
        warnings: list[ParseWarning] = []
        today = self.today or date.today()

        for row_num, row in rows:
            if row.get(COL_TYPE, "") != TYPE_RESERVATION:
                logger.debug("Row %d: skipping '%s' line", row_num, row.get(COL_TYPE, ""))
                continue

            date_text = row.get(COL_DATE) or row.get(COL_CHECK_IN, "")
            try:
                payment_date = parse_slash_date(date_text, order="mdy")
            except ValueError as e:
                warnings.append(ParseWarning(row_num, str(e)))
                continue

            try:
                check_in = payment_date
                if row.get(COL_CHECK_IN):
                    check_in = parse_slash_date(row[COL_CHECK_IN], order="mdy")
            except ValueError as e:
                warnings.append(ParseWarning(row_num, str(e)))
                continue
            if check_in <= today:
                warnings.append(
                    ParseWarning(row_num, f"Check-in {check_in.isoformat()} is not in the future")
                )
                continue

            try:
                amount = _first_amount(row, COL_GROSS, COL_AMOUNT)
            except ValueError as e:
                warnings.append(ParseWarning(row_num, str(e)))
                continue
            if amount is None:
                warnings.append(ParseWarning(row_num, "Missing amount"))
                continue
            if amount <= 0:
                logger.debug("Row %d: skipping non-positive reservation", row_num)
                continue

            records.append(
                RawRecord(
                    date=payment_date,
                    unit_label=row.get(COL_LISTING, ""),
                    amount=amount,
                    kind=TransactionKind.REVENUE,
                    source_tag=source_tag,
                    category=CATEGORY,
                    raw_fields=dict(row),
                    description=f"Reserva futura - {row.get(COL_GUEST) or 'Hóspede'}",
                    notes=_reservation_notes(row) or None,
                )
            )

        return ParseResult(records=tuple(records), warnings=tuple(warnings))
