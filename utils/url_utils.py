"""
Photo link normalization.

Owners paste share links from Google Drive or Dropbox; those pages are not
images, so they are rewritten to direct-access URLs.
"""

import re
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse, urlunparse

_DRIVE_FILE_PATH = re.compile(r"/file/d/([A-Za-z0-9_-]+)")
_DRIVE_HOSTS = {"drive.google.com", "docs.google.com"}
_DROPBOX_HOSTS = {"www.dropbox.com", "dropbox.com"}

DRIVE_DIRECT_URL = "https://drive.google.com/uc?export=view&id={file_id}"


def _drive_file_id(parsed) -> Optional[str]:
    match = _DRIVE_FILE_PATH.search(parsed.path)
    if match:
        return match.group(1)
    ids = parse_qs(parsed.query).get("id")
    if ids and ids[0]:
        return ids[0]
    return None


def normalize_photo_url(value: Any) -> Optional[str]:
    """
    Convert a photo link into a URL an <img> tag can load.

    - https://drive.google.com/file/d/ABC/view?usp=sharing
        → https://drive.google.com/uc?export=view&id=ABC
    - https://drive.google.com/open?id=ABC → same direct form
    - https://www.dropbox.com/s/x/foto.jpg?dl=0 → ...?raw=1
    - any other well-formed http(s) URL passes through unchanged
    - anything else → None

    Args:
        value: Raw cell value

    Returns:
        Direct URL, or None when the value is not a usable link
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.netloc or " " in text:
        return None

    host = parsed.netloc.lower()

    if host in _DRIVE_HOSTS:
        file_id = _drive_file_id(parsed)
        if file_id:
            return DRIVE_DIRECT_URL.format(file_id=file_id)
        return text

    if host in _DROPBOX_HOSTS:
        query = {k: v for k, v in parse_qs(parsed.query).items() if k not in ("dl", "raw")}
        parts = [f"{k}={v[0]}" for k, v in query.items()]
        parts.append("raw=1")
        return urlunparse(parsed._replace(query="&".join(parts)))

    return text
