"""Amount parsing utilities.

Every source parser goes through ``parse_amount`` so the Brazilian
decimal-comma convention is handled in exactly one place.
"""

from decimal import Decimal, InvalidOperation
import re

from rentledger.domain.entities import CENT

# 1.234.567 style grouping without decimals
_DOT_GROUPING = re.compile(r"^\d{1,3}(\.\d{3})+$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal rounded to cents.

    Handles various formats:
    - "1.250,00" (Brazilian: dot thousands, comma decimal)
    - "R$ 53.202,63"
    - "250,5"
    - "-1.250,00"
    - "(10,00)" (negative in parentheses)
    - "1250.00" (dot decimal, when the dot is not a thousands grouping)
    - "1,234.56" (both separators: the last one is the decimal mark)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    original = str(amount_str)
    text = original.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    # Remove currency symbols and all whitespace (OCR often splits digits)
    text = re.sub(r"R\$|[$€£¥]|BRL|EUR", "", text)
    text = re.sub(r"\s+", "", text)

    if text.startswith("-"):
        is_negative = not is_negative
        text = text[1:]
    elif text.startswith("+"):
        text = text[1:]

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        if text.count(",") > 1:
            raise ValueError(f"Could not parse amount '{original}': ambiguous separators")
        text = text.replace(",", ".")
    elif _DOT_GROUPING.match(text):
        text = text.replace(".", "")

    if not re.fullmatch(r"\d+(\.\d+)?", text):
        raise ValueError(f"Could not parse amount '{original}'")

    try:
        amount = Decimal(text).quantize(CENT)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{original}': {e}")
    return -amount if is_negative else amount


def to_decimal(value) -> Decimal:
    """Convert a spreadsheet cell value (int, float, Decimal or text) to cents."""
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    if isinstance(value, Decimal):
        return value.quantize(CENT)
    if isinstance(value, (int, float)):
        return Decimal(str(value)).quantize(CENT)
    return parse_amount(str(value))
