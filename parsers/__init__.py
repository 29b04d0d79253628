"""
Upload file parsers module.
"""

from parsers.upload_file_parser import (
    parse_upload_file,
    is_corrupted_text,
    build_encoding_candidates,
    ParsedUpload,
    RawRow,
    RejectedRow,
    NATIVE_ENCODING,
)

__all__ = [
    "parse_upload_file",
    "is_corrupted_text",
    "build_encoding_candidates",
    "ParsedUpload",
    "RawRow",
    "RejectedRow",
    "NATIVE_ENCODING",
]
