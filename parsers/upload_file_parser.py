"""
Parser for owner billboard uploads (CSV or Excel).

Turns raw file bytes into cleaned headers plus raw rows. Delimited text is
decoded by trying an ordered list of encodings and rejecting any attempt
whose text shows corruption. Rows with more values than the header has
columns are set aside as rejected rows instead of breaking the file.
Spreadsheets are read natively (first sheet, first row as header).
"""

from dataclasses import dataclass, field
from io import BytesIO, StringIO
from typing import Any, Optional
import unicodedata
import structlog

import pandas as pd

from config import settings
from exceptions import FileUnreadableError
from utils.text_utils import clean_header, is_blank

logger = structlog.get_logger(__name__)

NATIVE_ENCODING = "native"

SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
SEPARATORS = [",", ";", "\t"]
OVERFLOW_COLUMN = "__overflow__"

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_ALLOWED_CONTROL_CHARS = {"\t", "\n", "\r"}


# ===================
# DATA CLASSES
# ===================

@dataclass
class RawRow:
    """One uploaded data row: cleaned header -> cell value."""
    row_number: int  # Spreadsheet row (header is row 1)
    values: dict[str, Any] = field(default_factory=dict)

    def get(self, header: Optional[str]) -> Any:
        if not header:
            return None
        return self.values.get(header)


@dataclass
class RejectedRow(RawRow):
    """Delimited row with more values than the header has columns."""
    extra: str = ""  # Values past the last header column, joined by the separator


@dataclass
class ParsedUpload:
    """Result of reading an upload."""
    headers: list[str]
    rows: list[RawRow]
    encoding_used: str
    rejected_rows: list[RejectedRow] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


# ===================
# ENCODING HELPERS
# ===================

def is_corrupted_text(text: str) -> bool:
    """
    True if decoded text shows signs of a wrong encoding.

    A replacement character (U+FFFD) or a control character other than
    tab/CR/LF means the bytes were not written in the tried encoding.
    latin-1 never fails to decode, but turns cp1252 punctuation into C1
    control characters, which this catches.
    """
    for char in text:
        if char == "�":
            return True
        if char not in _ALLOWED_CONTROL_CHARS and unicodedata.category(char) == "Cc":
            return True
    return False


def build_encoding_candidates(
    preferred: Optional[str] = None,
    defaults: Optional[list[str]] = None,
) -> list[str]:
    """
    Ordered encodings to try: user-selected first, then defaults.

    Duplicates are removed preserving order.
    """
    if defaults is None:
        defaults = settings.upload_default_encodings
    candidates = ([preferred] if preferred else []) + list(defaults)
    return list(dict.fromkeys(c.strip().lower() for c in candidates if c and c.strip()))


def decode_text(content: bytes, encoding: str) -> Optional[str]:
    """Strictly decode content; None if it fails or looks corrupted."""
    try:
        text = content.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return None
    if is_corrupted_text(text):
        return None
    return text


def is_spreadsheet(content: bytes, filename: Optional[str] = None) -> bool:
    """Detect Excel uploads by extension or file signature."""
    if filename and filename.lower().endswith(SPREADSHEET_EXTENSIONS):
        return True
    return content.startswith(_ZIP_MAGIC) or content.startswith(_OLE2_MAGIC)


# ===================
# MAIN PARSER
# ===================

def parse_upload_file(
    content: bytes,
    filename: Optional[str] = None,
    preferred_encoding: Optional[str] = None,
    encodings: Optional[list[str]] = None,
) -> ParsedUpload:
    """
    Parse an uploaded billboard file.

    Args:
        content: Raw file bytes
        filename: Original filename (used to detect .xls/.xlsx)
        preferred_encoding: Encoding selected by the user, tried first
        encodings: Default candidates (settings.upload_default_encodings)

    Returns:
        ParsedUpload with cleaned headers, raw rows and the encoding used

    Raises:
        FileUnreadableError: If no candidate encoding or reader succeeds
    """
    logger.info(
        "parsing_upload_file",
        filename=filename,
        size_bytes=len(content),
        preferred_encoding=preferred_encoding,
    )

    if not content or not content.strip():
        raise FileUnreadableError(message="File is empty")

    if is_spreadsheet(content, filename):
        df = _load_spreadsheet(content, filename)
        return _frame_to_upload(df, NATIVE_ENCODING)

    candidates = build_encoding_candidates(preferred_encoding, encodings)
    failures: dict[str, str] = {}

    for encoding in candidates:
        text = decode_text(content, encoding)
        if text is None:
            failures[encoding] = "decode_failed_or_corrupted"
            logger.debug("encoding_rejected", encoding=encoding)
            continue

        try:
            df = _parse_delimited(text)
        except FileUnreadableError:
            raise
        except Exception as e:
            failures[encoding] = f"parse_failed: {e}"
            logger.debug("delimited_parse_failed", encoding=encoding, error=str(e))
            continue

        upload = _frame_to_upload(df, encoding)
        if upload.rejected_rows:
            logger.warning(
                "upload_rows_rejected",
                encoding=encoding,
                rows=[r.row_number for r in upload.rejected_rows],
            )
        logger.info(
            "upload_file_parsed",
            encoding=encoding,
            headers=len(upload.headers),
            rows=upload.row_count,
            rejected=len(upload.rejected_rows),
        )
        return upload

    logger.warning("upload_file_unreadable", attempted=candidates)
    raise FileUnreadableError(
        message="Could not read the file with any of the tried encodings",
        attempted_encodings=candidates,
        details={"failures": failures},
    )


# ===================
# HELPER FUNCTIONS
# ===================

def first_content_line(text: str) -> Optional[str]:
    """First line holding anything besides separators, quotes and spaces."""
    for line in text.splitlines():
        if line.strip("".join(SEPARATORS) + " \"'"):
            return line
    return None


def detect_separator(header_line: str) -> str:
    """Separator occurring most often in the header line; comma on ties or none."""
    best = max(SEPARATORS, key=header_line.count)
    return best if header_line.count(best) else ","


def _parse_delimited(text: str) -> pd.DataFrame:
    """
    Parse delimited text into a header-less frame.

    The separator and column count come from the header line alone, so a
    malformed data row cannot change how the rest of the file is read.
    Values past the last header column land in OVERFLOW_COLUMN, keeping
    every row at its original position.
    """
    header_line = first_content_line(text)
    if header_line is None:
        raise FileUnreadableError(message="File has no header row")

    sep = detect_separator(header_line)
    width = pd.read_csv(
        StringIO(header_line),
        sep=sep,
        header=None,
        dtype=str,
        engine="python",
        index_col=False,
    ).shape[1]

    def keep_overflow(fields: list[str]) -> list[str]:
        extra = [f for f in fields[width:] if f and f.strip()]
        return fields[:width] + [sep.join(extra)]

    df = pd.read_csv(
        StringIO(text),
        sep=sep,
        header=None,
        names=[*range(width), OVERFLOW_COLUMN],
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        engine="python",
        index_col=False,
        on_bad_lines=keep_overflow,
    )
    logger.debug("separator_detected", separator=repr(sep), columns=width)
    return df


def _load_spreadsheet(content: bytes, filename: Optional[str]) -> pd.DataFrame:
    """Read the first sheet of an .xlsx/.xls file without a header."""
    is_xls = content.startswith(_OLE2_MAGIC) or bool(
        filename and filename.lower().endswith(".xls")
    )
    engines = ["xlrd", "openpyxl"] if is_xls else ["openpyxl", "xlrd"]

    last_error: Optional[Exception] = None
    for engine in engines:
        try:
            df = pd.read_excel(
                BytesIO(content),
                sheet_name=0,
                header=None,
                dtype=object,
                engine=engine,
            )
            logger.debug("spreadsheet_loaded", engine=engine, shape=df.shape)
            return df
        except Exception as e:
            last_error = e
            continue

    logger.warning("spreadsheet_unreadable", error=str(last_error))
    raise FileUnreadableError(
        message="Could not read the spreadsheet",
        attempted_encodings=[NATIVE_ENCODING],
        details={"original_error": str(last_error)},
    )


def _frame_to_upload(df: pd.DataFrame, encoding_used: str) -> ParsedUpload:
    """Split a header-less frame into cleaned headers and RawRows."""
    overflow: list[Any] = [None] * len(df)
    if OVERFLOW_COLUMN in df.columns:
        overflow = [None if _is_missing(v) else v for v in df.pop(OVERFLOW_COLUMN)]

    records = [
        [None if _is_missing(v) else v for v in row]
        for row in df.itertuples(index=False, name=None)
    ]

    # Header is the first non-blank row
    header_index = next(
        (i for i, cells in enumerate(records) if not all(is_blank(c) for c in cells)),
        None,
    )
    if header_index is None:
        raise FileUnreadableError(
            message="File has no header row",
            attempted_encodings=[encoding_used],
        )

    headers = _dedupe_headers([clean_header(c) for c in records[header_index]])

    rows: list[RawRow] = []
    rejected: list[RejectedRow] = []
    for index in range(header_index + 1, len(records)):
        cells = records[index]
        extra = overflow[index]
        if all(is_blank(c) for c in cells) and is_blank(extra):
            continue
        values = {
            header: ("" if cell is None else cell)
            for header, cell in zip(headers, cells)
        }
        row_number = index + 1
        if is_blank(extra):
            rows.append(RawRow(row_number=row_number, values=values))
        else:
            rejected.append(RejectedRow(row_number=row_number, values=values, extra=str(extra)))

    return ParsedUpload(
        headers=headers,
        rows=rows,
        encoding_used=encoding_used,
        rejected_rows=rejected,
    )


def _dedupe_headers(headers: list[str]) -> list[str]:
    """Name empty headers and suffix repeated ones: "Foto", "Foto (2)"."""
    result = []
    seen: dict[str, int] = {}
    for position, header in enumerate(headers, start=1):
        name = header or f"Column {position}"
        count = seen.get(name, 0) + 1
        seen[name] = count
        result.append(name if count == 1 else f"{name} ({count})")
    return result


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
