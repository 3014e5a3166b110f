"""Source parsers, one per supported import format, keyed by source tag."""

from rentledger.domain.errors import ValidationError, unknown_source_tag
from rentledger.parsing.airbnb import AirbnbPayoutParser, AirbnbPendingParser
from rentledger.parsing.base import SourceParser
from rentledger.parsing.cleaning import CleaningTableParser
from rentledger.parsing.spreadsheet import SpreadsheetParser

AIRBNB_PAYOUT = "airbnb_payout"
AIRBNB_PENDING = "airbnb_pending"
CLEANING_OCR = "cleaning_ocr"
SPREADSHEET = "spreadsheet"

PARSERS: dict[str, SourceParser] = {
    AIRBNB_PAYOUT: AirbnbPayoutParser(),
    AIRBNB_PENDING: AirbnbPendingParser(),
    CLEANING_OCR: CleaningTableParser(),
    SPREADSHEET: SpreadsheetParser(),
}

SOURCE_TAGS = tuple(PARSERS)


def get_parser(source_tag: str) -> SourceParser:
    """Return the parser registered for a source tag.

    Raises:
        ValidationError: If no parser handles the tag
    """
    try:
        return PARSERS[source_tag]
    except KeyError:
        raise ValidationError(unknown_source_tag(source_tag, PARSERS))


__all__ = [
    "AIRBNB_PAYOUT",
    "AIRBNB_PENDING",
    "CLEANING_OCR",
    "SPREADSHEET",
    "PARSERS",
    "SOURCE_TAGS",
    "SourceParser",
    "get_parser",
]
