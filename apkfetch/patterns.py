"""Pattern-based classification of pages, links and payloads.

Everything here is pure: the same input always yields the same result. The
patterns mirror the markup the landing pages serve today and are kept as
module constants so they can be swapped without touching control flow.
"""

from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

CHALLENGE_PATTERNS = (
    re.compile(r"cannot be loaded without javascript and cookies enabled", re.I),
    re.compile(r"enable javascript and cookies to continue", re.I),
    re.compile(r"checking (?:if the site connection is secure|your browser)", re.I),
    re.compile(r"just a moment\.\.\.", re.I),
    re.compile(r"verify you are (?:a )?human", re.I),
)

DIRECT_ENDPOINT_PATTERN = re.compile(
    r"/wp-content/themes/APKMirror/download\.php\?id=", re.I
)
# Used to scan raw HTML bodies, so the match must stop at attribute delimiters.
EMBEDDED_DIRECT_PATTERN = re.compile(
    r"(?:https?://[^\s\"'<>]+)?/wp-content/themes/APKMirror/download\.php\?id=[^\s\"'<>]+",
    re.I,
)
DIRECT_SOURCE_PATTERN = re.compile(
    r"download\.php\?id=|\.(?:apk|xapk|apkm|apks)(?:$|\?)", re.I
)

# Ordered by preference: the per-release download page beats a variant page.
INTERMEDIATE_PATTERNS = (
    re.compile(r"/apk/[^?#\s]+/download/?(?:\?[^#\s]*)?$", re.I),
    re.compile(r"/apk/[^?#\s]+-download/?$", re.I),
)

HTML_SNIFF_BYTES = 2048
HTML_MARKERS = (b"<!doctype html", b"<html", b"<head", b"<body")

TEXTUAL_CONTENT_TYPES = ("text/", "application/xhtml", "application/json")


@dataclass
class Classification:
    """Outcome of classifying one page snapshot."""

    challenge: bool = False
    direct: List[str] = field(default_factory=list)
    intermediate: List[str] = field(default_factory=list)

    @property
    def direct_url(self) -> Optional[str]:
        return self.direct[0] if self.direct else None


def is_challenge_page(text: str) -> bool:
    """Return True when the text carries anti-bot verification phrasing."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in CHALLENGE_PATTERNS)


def find_direct_candidates(urls: Iterable[str]) -> List[str]:
    """Return direct download endpoints in the order they were encountered."""
    return [url for url in urls if DIRECT_ENDPOINT_PATTERN.search(url)]


def find_intermediate_candidates(urls: Sequence[str]) -> List[str]:
    """Return intermediate download pages, best pattern first."""
    found: List[str] = []
    for pattern in INTERMEDIATE_PATTERNS:
        for url in urls:
            if url in found or DIRECT_ENDPOINT_PATTERN.search(url):
                continue
            if pattern.search(url):
                found.append(url)
    return found


def classify(html: str, links: Sequence[str]) -> Classification:
    """Classify page HTML and its collected links."""
    return Classification(
        challenge=is_challenge_page(html),
        direct=find_direct_candidates(links),
        intermediate=find_intermediate_candidates(links),
    )


def is_direct_url(url: str) -> bool:
    """True when a source URL already points at a package rather than a page."""
    return bool(DIRECT_SOURCE_PATTERN.search(url or ""))


def find_embedded_direct_url(html: str) -> Optional[str]:
    """Scan raw HTML for the first direct download endpoint."""
    match = EMBEDDED_DIRECT_PATTERN.search(html or "")
    if not match:
        return None
    return html_lib.unescape(match.group(0))


def looks_like_html(data: bytes) -> bool:
    """Detect an HTML document hiding behind a binary response."""
    head = data[:HTML_SNIFF_BYTES].lower()
    return any(marker in head for marker in HTML_MARKERS)


def is_textual_content_type(content_type: str) -> bool:
    value = (content_type or "").lower().strip()
    return value.startswith(TEXTUAL_CONTENT_TYPES)
