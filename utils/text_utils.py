"""
Text utilities for handling Spanish headers and cell values.

Used for header cleaning at parse time and for header/value comparison.
"""

import re
import unicodedata
from typing import Any, Optional

_WHITESPACE_RUN = re.compile(r"\s+")
_HEADER_EXTRA_CHARS = set("-_()/")


def strip_accents(text: str) -> str:
    """
    Remove accent marks from text.

    - "Dirección" → "Direccion"
    - "Ubicación Pública" → "Ubicacion Publica"
    """
    # NFKD separates base chars from accents (and expands compatibility forms)
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def clean_header(header: Any) -> str:
    """
    Clean a header for display and storage.

    Keeps letters, digits, whitespace and -_()/ only, collapses whitespace
    runs and trims:
    - "  Precio   Público ($) " → "Precio Público ()"
    - "Latitud\\n(decimal)" → "Latitud (decimal)"

    Args:
        header: Raw header cell (may be a number or None)

    Returns:
        Cleaned header, possibly empty
    """
    if header is None:
        return ""

    text = str(header)
    text = "".join(
        c for c in text
        if c.isalnum() or c.isspace() or c in _HEADER_EXTRA_CHARS
    )
    return _WHITESPACE_RUN.sub(" ", text).strip()


def normalize_for_matching(header: Any) -> str:
    """
    Normalize a header for comparison only (never shown to users).

    Lowercases, strips diacritics, and drops punctuation and whitespace:
    - "Precio Público" → "preciopublico"
    - "Frame_ID" → "frameid"
    - "LATITUD (decimal)" → "latituddecimal"

    Idempotent: normalize_for_matching(normalize_for_matching(x)) equals
    normalize_for_matching(x).
    """
    if header is None:
        return ""

    text = strip_accents(str(header)).casefold()
    # casefold can emit new combining marks (e.g. "İ"), so decompose again
    text = strip_accents(text)
    return "".join(c for c in text if c.isalnum())


def cell_to_text(value: Any) -> str:
    """
    Render a raw cell as trimmed text.

    Spreadsheet numbers that are whole keep no trailing ".0"
    (1001.0 → "1001"), so numeric identifiers group the same as text ones.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def is_blank(value: Any) -> bool:
    """True if a cell has no meaningful content."""
    return cell_to_text(value) == ""


def clean_text(value: Any, max_length: int = 255) -> Optional[str]:
    """
    Clean free text for storage (preserves accents).

    - Strips whitespace and collapses internal runs
    - Truncates to max length
    - Returns None for empty/whitespace-only values
    """
    text = _WHITESPACE_RUN.sub(" ", cell_to_text(value)).strip()
    if not text:
        return None
    if len(text) > max_length:
        text = text[:max_length]
    return text
