"""Filename derivation and result metadata assembly."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Dict, Optional
from urllib.parse import unquote, urlsplit

from filetype import guess

from .config import FALLBACK_FILENAME
from .models import ResultMetadata, RetrievalOutcome

EXTENDED_FILENAME_PATTERN = re.compile(r"filename\*=UTF-8''([^;]+)", re.I)
SIMPLE_FILENAME_PATTERN = re.compile(r"filename=\"?([^\";]+)\"?", re.I)

PACKAGE_CONTENT_TYPES = {
    ".apk": "application/vnd.android.package-archive",
    ".xapk": "application/xapk-package-archive",
    ".apkm": "application/octet-stream",
    ".apks": "application/octet-stream",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _percent_decode(raw: str) -> str:
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return raw


def filename_from_disposition(disposition: Optional[str]) -> str:
    """Read a filename from a Content-Disposition value, extended form first."""
    if not disposition:
        return ""
    extended = EXTENDED_FILENAME_PATTERN.search(disposition)
    if extended and extended.group(1).strip():
        return _percent_decode(extended.group(1).strip())
    simple = SIMPLE_FILENAME_PATTERN.search(disposition)
    if simple and simple.group(1).strip():
        return simple.group(1).strip()
    return ""


def filename_from_url(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    return path.rsplit("/", 1)[-1]


def derive_filename(
    headers: Dict[str, str],
    url: str,
    suggested: str = "",
    fallback: str = "",
) -> str:
    """Pick the artifact filename by header, suggestion, URL path, then default."""
    filename = (
        filename_from_disposition(headers.get("content-disposition"))
        or suggested
        or fallback
        or filename_from_url(url)
    )
    # Only the final component is kept; dispositions may carry directories.
    filename = PurePosixPath(filename.replace("\\", "/")).name if filename else ""
    return filename or FALLBACK_FILENAME


def infer_content_type(filename: str, data: bytes) -> str:
    """Guess a content type for payloads that arrived without headers."""
    suffix = PurePosixPath(filename).suffix.lower()
    if suffix in PACKAGE_CONTENT_TYPES:
        return PACKAGE_CONTENT_TYPES[suffix]
    kind = guess(data)
    if kind:
        return kind.mime
    return DEFAULT_CONTENT_TYPE


def build_metadata(
    outcome: RetrievalOutcome,
    fallback_filename: str = "",
) -> ResultMetadata:
    """Assemble the terminal metadata record for a successful retrieval."""
    filename = derive_filename(
        outcome.headers,
        outcome.url,
        suggested=outcome.suggested_filename,
        fallback=fallback_filename,
    )
    content_type = outcome.headers.get("content-type", "").lower()
    if not content_type:
        content_type = infer_content_type(filename, outcome.body)
    return ResultMetadata(
        filename=filename,
        direct_url=outcome.url,
        content_type=content_type,
        byte_length=len(outcome.body),
        via=outcome.strategy,
    )
