"""Bounded navigation from a landing page to a direct download endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .browser import BrowserSession
from .config import ResolverConfig
from .errors import NavigationTimeout, ResolutionFailed
from .models import WalkerState, WalkPhase
from .patterns import classify, is_direct_url

logger = logging.getLogger("apkfetch")


@dataclass
class WalkResult:
    """Direct URL found by the walk and the page that linked to it."""

    direct_url: str
    referer: str
    state: WalkerState


def _fail(state: WalkerState, reason: str) -> ResolutionFailed:
    state.phase = WalkPhase.FAILED
    return ResolutionFailed(
        reason,
        status=state.last_status,
        title=state.last_title,
        url=state.last_url or state.current_url,
        challenge_seen=state.challenge_seen,
    )


async def walk(
    session: BrowserSession,
    start_url: str,
    config: ResolverConfig,
) -> WalkResult:
    """Drive the session through intermediate pages until a direct URL appears.

    Each iteration loads the current URL once, waits for client-side rendering
    to settle and reclassifies the live page. A challenge page keeps the walk
    alive without reloading so that verification scripts can inject links.
    Raises ``ResolutionFailed`` when nothing more can be discovered or the
    step budget runs out.
    """
    state = WalkerState(current_url=start_url)
    if is_direct_url(start_url):
        logger.info("Source URL is already a direct download: %s", start_url)
        state.resolved_direct_url = start_url
        state.phase = WalkPhase.RESOLVED
        return WalkResult(direct_url=start_url, referer=start_url, state=state)

    while state.step_count < config.max_steps:
        state.step_count += 1
        if state.current_url not in state.visited:
            state.phase = WalkPhase.LOADING
            try:
                state.last_status = await session.navigate(state.current_url)
            except NavigationTimeout as exc:
                logger.warning("%s", exc)
                state.last_status = None
            state.visited.add(state.current_url)
        await session.settle()

        state.phase = WalkPhase.CLASSIFYING
        snapshot = await session.snapshot()
        # Redirect targets count as visited too.
        state.visited.add(snapshot.url)
        state.last_url = snapshot.url
        state.last_title = snapshot.title
        result = classify(snapshot.html, snapshot.links)
        if result.challenge and not state.challenge_seen:
            logger.info("Anti-bot challenge detected on %s", snapshot.url)
        state.challenge_seen = state.challenge_seen or result.challenge
        logger.debug(
            "Step %d at %s: %d direct, %d intermediate, challenge=%s",
            state.step_count,
            snapshot.url,
            len(result.direct),
            len(result.intermediate),
            result.challenge,
        )

        if result.direct_url:
            state.resolved_direct_url = result.direct_url
            state.phase = WalkPhase.RESOLVED
            logger.info("Resolved direct download URL %s", result.direct_url)
            return WalkResult(
                direct_url=result.direct_url,
                referer=snapshot.url,
                state=state,
            )

        next_hop = next(
            (url for url in result.intermediate if url not in state.visited),
            None,
        )
        if next_hop:
            state.phase = WalkPhase.HOPPING
            logger.info("Following intermediate page %s", next_hop)
            state.current_url = next_hop
            continue

        if state.challenge_seen:
            state.phase = WalkPhase.WAITING
            logger.info("Waiting for challenge verification on %s", snapshot.url)
            continue

        raise _fail(state, "Could not find a direct download URL")

    raise _fail(state, f"No direct download URL after {config.max_steps} steps")
