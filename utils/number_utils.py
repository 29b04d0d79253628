"""
Numeric parsing for spreadsheet cells.

Owners paste prices as "$60,000.00", "MXN 1.234,50" or plain numbers;
coordinates and dimensions arrive as text in CSV files and as floats in
Excel files.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

# Currency symbols and codes that may surround a price
_CURRENCY_TOKENS = re.compile(r"(MXN|USD|EUR|GTQ|COP|M\.N\.|\$|€|£)", re.IGNORECASE)
_NUMBER_SHAPE = re.compile(r"^[+-]?(\d+([.,]\d+)*|\d*[.,]\d+)$")
_THOUSANDS_COMMA = re.compile(r"^[+-]?\d{1,3}(,\d{3})+$")
_THOUSANDS_DOT = re.compile(r"^[+-]?\d{1,3}(\.\d{3})+$")


def parse_number(value: Any, thousands: bool = True) -> Optional[Decimal]:
    """
    Parse a numeric-looking cell into a Decimal.

    Strips currency symbols/codes, whitespace and thousands separators.
    When both "," and "." appear, the last one is the decimal separator.
    A single "." followed by three digits is a decimal point, unless a
    currency token is present ("$60.000" is sixty thousand).

    Args:
        value: Cell value
        thousands: False for values that never carry thousands grouping
                   (coordinates); a lone "," is then always a decimal comma

    Examples:
        60000 → Decimal("60000")
        "$60,000.00" → Decimal("60000.00")
        "$60.000" → Decimal("60000")
        "MXN 1.234,50" → Decimal("1234.50")
        "12,5" → Decimal("12.5")
        "-99.133209" → Decimal("-99.133209")
        "19,432" with thousands=False → Decimal("19.432")
        "abc" → None

    Returns:
        Decimal, or None when the value is empty or not numeric
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        if value != value:  # NaN
            return None
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None

    text = str(value)
    has_currency = bool(_CURRENCY_TOKENS.search(text))
    text = _CURRENCY_TOKENS.sub("", text)
    text = re.sub(r"\s+", "", text)
    if not text or not _NUMBER_SHAPE.match(text):
        return None

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        if thousands and _THOUSANDS_COMMA.match(text):
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
    elif thousands and _THOUSANDS_DOT.match(text) and (text.count(".") > 1 or has_currency):
        # "1.234.567" and "$60.000" can only be thousands grouping
        text = text.replace(".", "")

    if text.count(".") > 1:
        return None

    try:
        return Decimal(text)
    except InvalidOperation:
        return None
