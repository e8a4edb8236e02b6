"""Ordered retrieval strategies for a resolved direct download URL."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin

from .browser import BrowserSession
from .errors import (
    ChallengePageReturned,
    HttpStatusError,
    NavigationTimeout,
    ResolverError,
    UnexpectedContentType,
)
from .models import FetchResponse, RetrievalOutcome
from .patterns import (
    find_embedded_direct_url,
    is_challenge_page,
    is_textual_content_type,
    looks_like_html,
)

logger = logging.getLogger("apkfetch")

BROWSER_DOWNLOAD = "browser-download"
DIRECT_FETCH = "direct-fetch"
REEXTRACTION = "re-extraction"

StrategyResult = Union[RetrievalOutcome, ResolverError, None]
Strategy = Callable[[BrowserSession, "RetrievalContext"], Awaitable[StrategyResult]]


@dataclass
class RetrievalContext:
    """Inputs shared by the strategies of one retrieval run."""

    direct_url: str
    referer: str
    html_body: Optional[str] = None
    html_content_type: str = ""


def _decode(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def _rejected_payload(text: str, content_type: str, url: str) -> ResolverError:
    if is_challenge_page(text):
        return ChallengePageReturned(f"Anti-bot challenge page returned for {url}")
    return UnexpectedContentType(content_type, url)


def _is_binary_response(response: FetchResponse) -> bool:
    return (
        bool(response.body)
        and not is_textual_content_type(response.content_type)
        and not looks_like_html(response.body)
    )


async def browser_download(
    session: BrowserSession, context: RetrievalContext
) -> StrategyResult:
    """Click a synthetic link inside the page and keep the native download."""
    downloaded = await session.click_download(context.direct_url)
    if downloaded is None:
        return NavigationTimeout(f"No download started for {context.direct_url}")
    if not downloaded.body:
        return UnexpectedContentType("empty payload", context.direct_url)
    if looks_like_html(downloaded.body):
        return _rejected_payload(_decode(downloaded.body), "text/html", context.direct_url)
    return RetrievalOutcome(
        status=200,
        headers={},
        body=downloaded.body,
        strategy=BROWSER_DOWNLOAD,
        url=context.direct_url,
        suggested_filename=downloaded.suggested_filename,
    )


async def direct_fetch(
    session: BrowserSession, context: RetrievalContext
) -> StrategyResult:
    """GET the direct URL through the browser context with the page as referer."""
    response = await session.fetch(context.direct_url, referer=context.referer)
    if not 200 <= response.status < 300:
        return HttpStatusError(response.status, context.direct_url)
    if not response.body:
        return UnexpectedContentType("empty payload", context.direct_url)
    if not _is_binary_response(response):
        logger.info(
            "Direct fetch of %s returned %s; trying re-extraction",
            context.direct_url,
            response.content_type or "HTML",
        )
        context.html_body = _decode(response.body)
        context.html_content_type = response.content_type or "text/html"
        return _rejected_payload(
            context.html_body, context.html_content_type, context.direct_url
        )
    return RetrievalOutcome(
        status=response.status,
        headers=response.headers,
        body=response.body,
        strategy=DIRECT_FETCH,
        url=context.direct_url,
    )


async def reextracted_fetch(
    session: BrowserSession, context: RetrievalContext
) -> StrategyResult:
    """Retry against a direct URL embedded in the HTML the direct fetch returned."""
    if context.html_body is None:
        return None
    embedded = find_embedded_direct_url(context.html_body)
    if not embedded:
        return _rejected_payload(
            context.html_body, context.html_content_type, context.direct_url
        )
    fallback_url = urljoin(context.direct_url, embedded)
    logger.info("Re-extracted download URL %s", fallback_url)
    response = await session.fetch(fallback_url, referer=context.direct_url)
    if not 200 <= response.status < 300:
        return HttpStatusError(response.status, fallback_url)
    if not response.body:
        return UnexpectedContentType("empty payload", fallback_url)
    if not _is_binary_response(response):
        return _rejected_payload(_decode(response.body), response.content_type, fallback_url)
    return RetrievalOutcome(
        status=response.status,
        headers=response.headers,
        body=response.body,
        strategy=REEXTRACTION,
        url=fallback_url,
    )


DEFAULT_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    (BROWSER_DOWNLOAD, browser_download),
    (DIRECT_FETCH, direct_fetch),
    (REEXTRACTION, reextracted_fetch),
)


async def retrieve(
    session: BrowserSession,
    context: RetrievalContext,
    strategies: Sequence[Tuple[str, Strategy]] = DEFAULT_STRATEGIES,
) -> RetrievalOutcome:
    """Run strategies left to right and return the first validated payload.

    A strategy yields an outcome, an error describing why it failed, or
    ``None`` when it does not apply. Errors raised by a strategy are treated
    the same as returned ones. Once every strategy has been tried the last
    error is raised.
    """
    errors: List[ResolverError] = []
    for name, strategy in strategies:
        try:
            result = await strategy(session, context)
        except ResolverError as exc:
            result = exc
        if isinstance(result, RetrievalOutcome):
            logger.info(
                "Retrieved %d bytes from %s via %s",
                len(result.body),
                result.url,
                name,
            )
            return result
        if result is not None:
            logger.warning("Strategy %s failed: %s", name, result)
            errors.append(result)
    if errors:
        raise errors[-1]
    raise UnexpectedContentType("", context.direct_url)
