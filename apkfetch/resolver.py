"""High-level orchestration from a landing page to downloaded bytes."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from .browser import BrowserSession, open_session
from .config import APKCOMBO_FILE_LIST_SELECTOR, ResolverConfig
from .errors import SiteError
from .metadata import build_metadata
from .models import Resolution, ResolutionTarget
from .retrieval import RetrievalContext, retrieve
from .variants import extract_site_error, parse_variants, select_variant
from .walker import walk

logger = logging.getLogger("apkfetch")


class LandingSite(Enum):
    APKMIRROR = "apkmirror"
    APKCOMBO = "apkcombo"


def detect_site(target: ResolutionTarget) -> LandingSite:
    """Infer the landing-page family from the target."""
    if not target.start_url:
        return LandingSite.APKCOMBO
    try:
        host = urlsplit(target.start_url).netloc.lower()
    except ValueError:
        host = ""
    if host.endswith("apkcombo.com"):
        return LandingSite.APKCOMBO
    return LandingSite.APKMIRROR


async def resolve_apkmirror(
    session: BrowserSession,
    target: ResolutionTarget,
    config: ResolverConfig,
) -> Resolution:
    """Walk APKMirror pages to the direct endpoint, then retrieve it."""
    found = await walk(session, target.landing_url(), config)
    context = RetrievalContext(direct_url=found.direct_url, referer=found.referer)
    outcome = await retrieve(session, context)
    return Resolution(metadata=build_metadata(outcome), payload=outcome.body)


async def resolve_apkcombo(
    session: BrowserSession,
    target: ResolutionTarget,
    config: ResolverConfig,
) -> Resolution:
    """Load the APKCombo downloader, pick the best variant and retrieve it."""
    await session.navigate(target.landing_url())
    await session.wait_for_selector(APKCOMBO_FILE_LIST_SELECTOR)
    snapshot = await session.snapshot()

    message = extract_site_error(snapshot.html)
    if message:
        raise SiteError(f"APKCombo returned error: {message}")

    variants = parse_variants(snapshot.html, snapshot.url)
    best = select_variant(variants, config.weights)
    context = RetrievalContext(direct_url=best.href, referer=snapshot.url)
    outcome = await retrieve(session, context)
    metadata = build_metadata(outcome, fallback_filename=best.filename)
    return Resolution(metadata=metadata, payload=outcome.body)


async def resolve_with_session(
    session: BrowserSession,
    target: ResolutionTarget,
    config: ResolverConfig,
    site: Optional[LandingSite] = None,
) -> Resolution:
    site = site or detect_site(target)
    logger.info("Resolving %s via %s", target.landing_url(), site.value)
    if site is LandingSite.APKCOMBO:
        return await resolve_apkcombo(session, target, config)
    return await resolve_apkmirror(session, target, config)


async def resolve(
    target: ResolutionTarget,
    config: ResolverConfig,
    site: Optional[LandingSite] = None,
) -> Resolution:
    """Resolve a target inside its own browser session."""
    start = time.perf_counter()
    async with open_session(config) as session:
        resolution = await resolve_with_session(session, target, config, site)
    logger.info(
        "Resolved %s (%d bytes) in %.2fs",
        resolution.metadata.filename,
        resolution.metadata.byte_length,
        time.perf_counter() - start,
    )
    return resolution
