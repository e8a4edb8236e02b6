"""Parsing and ranking of the package variants listed by APKCombo."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .config import FALLBACK_FILENAME, VariantWeights
from .errors import NoVariantsFound
from .models import Variant

logger = logging.getLogger("apkfetch")

_XAPK_PATTERN = re.compile(r"\bxapk\b")
_APK_PATTERN = re.compile(r"\bapk\b")


def parse_variants(html: str, base_url: str) -> List[Variant]:
    """Read ``ul.file-list li`` entries into variants, in page order."""
    soup = BeautifulSoup(html or "", "html.parser")
    variants: List[Variant] = []
    for item in soup.select("ul.file-list li"):
        anchor = item.find("a", href=True)
        if not anchor:
            continue
        name_tag = item.select_one(".name")
        filename = name_tag.get_text(strip=True) if name_tag else ""
        variants.append(
            Variant(
                href=urljoin(base_url, anchor["href"]),
                descriptor=item.get_text(" ", strip=True).lower(),
                filename=filename or FALLBACK_FILENAME,
            )
        )
    return variants


def extract_site_error(html: str) -> Optional[str]:
    """Return the text of an APKCombo ``.alert-danger`` box, if any."""
    soup = BeautifulSoup(html or "", "html.parser")
    alert = soup.select_one(".alert-danger")
    if alert:
        text = alert.get_text(" ", strip=True)
        return text or None
    return None


def _has_keyword(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def score_variant(variant: Variant, weights: VariantWeights) -> int:
    text = variant.descriptor.lower()
    score = 0
    if _has_keyword(text, weights.preferred_arch_keywords):
        score += weights.preferred_arch
    elif _has_keyword(text, weights.universal_keywords):
        score += weights.universal
    elif _has_keyword(text, weights.mismatched_arch_keywords):
        score += weights.mismatched_arch

    if _XAPK_PATTERN.search(text):
        score += weights.split_bundle
    elif _APK_PATTERN.search(text):
        score += weights.plain_apk

    if "nodpi" in text:
        score += weights.nodpi
    return score


def rank_variants(variants: Sequence[Variant], weights: VariantWeights) -> List[Variant]:
    """Sort best first; ``sorted`` is stable so equal scores keep page order."""
    return sorted(variants, key=lambda variant: score_variant(variant, weights), reverse=True)


def select_variant(variants: Sequence[Variant], weights: Optional[VariantWeights] = None) -> Variant:
    if not variants:
        raise NoVariantsFound("No download variants found on the landing page")
    weights = weights or VariantWeights()
    ranked = rank_variants(variants, weights)
    best = ranked[0]
    logger.info(
        "Selected variant %s (score %d of %d candidates)",
        best.filename,
        score_variant(best, weights),
        len(ranked),
    )
    return best
