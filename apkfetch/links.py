"""Candidate link extraction from rendered HTML."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

DATA_LINK_ATTRIBUTES = ("data-href", "data-url", "data-link", "data-download-url")
HANDLER_ATTRIBUTES = ("onclick", "onmousedown", "onmouseup", "ontouchstart")
ALLOWED_SCHEMES = {"http", "https"}

NAVIGATION_PATTERN = re.compile(
    r"""(?:(?:window|document|self|top)\.)?location(?:\.href)?\s*=\s*(['"])(?P<url>[^'"]+)\1"""
    r"""|location\.(?:assign|replace)\(\s*(['"])(?P<call>[^'"]+)\3\s*\)"""
    r"""|window\.open\(\s*(['"])(?P<open>[^'"]+)\5""",
)


def _iter_handler_targets(script: str) -> Iterable[str]:
    for match in NAVIGATION_PATTERN.finditer(script):
        target = match.group("url") or match.group("call") or match.group("open")
        if target:
            yield target


def _resolve(base_url: str, raw: str) -> Optional[str]:
    raw = raw.strip()
    if not raw or raw.startswith("#"):
        return None
    try:
        absolute = urljoin(base_url, raw)
        parts = urlsplit(absolute)
    except ValueError:
        return None
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        return None
    return absolute


def collect_links(html: str, base_url: str) -> List[str]:
    """Collect absolute link candidates in document order, without duplicates."""
    soup = BeautifulSoup(html or "", "html.parser")
    base_tag = soup.find("base", href=True)
    if base_tag:
        base_url = _resolve(base_url, base_tag["href"]) or base_url

    links: List[str] = []
    seen = set()

    def _add(raw: str) -> None:
        absolute = _resolve(base_url, raw)
        if absolute and absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    for element in soup.find_all(True):
        if element.name == "a" and element.get("href"):
            _add(element["href"])
        for attribute in DATA_LINK_ATTRIBUTES:
            value = element.get(attribute)
            if value:
                _add(value)
        for attribute in HANDLER_ATTRIBUTES:
            script = element.get(attribute)
            if script:
                for target in _iter_handler_targets(script):
                    _add(target)
    return links


def extract_title(html: str) -> str:
    """Return the document title, or an empty string."""
    soup = BeautifulSoup(html or "", "html.parser")
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    return ""
