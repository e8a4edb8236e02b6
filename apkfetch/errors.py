"""Exception hierarchy raised while resolving and retrieving packages."""

from __future__ import annotations

from typing import Optional


class ResolverError(Exception):
    """Base class for every failure surfaced to the caller."""


class UsageError(ResolverError):
    """Required inputs were missing; raised before any browser is launched."""


class NavigationTimeout(ResolverError):
    """A page load, selector wait or download wait exceeded its bound."""


class ResolutionFailed(ResolverError):
    """The navigation walk ended without a direct download URL."""

    def __init__(
        self,
        reason: str,
        *,
        status: Optional[int] = None,
        title: str = "",
        url: str = "",
        challenge_seen: bool = False,
    ) -> None:
        self.reason = reason
        self.status = status
        self.title = title
        self.url = url
        self.challenge_seen = challenge_seen
        super().__init__(
            f"{reason} (status={status}, title={title!r}, url={url}, "
            f"challenge_seen={challenge_seen})"
        )


class ChallengePageReturned(ResolverError):
    """A retrieval attempt returned an anti-bot challenge page."""


class UnexpectedContentType(ResolverError):
    """A retrieval attempt returned textual content instead of a package."""

    def __init__(self, content_type: str, url: str = "") -> None:
        self.content_type = content_type
        self.url = url
        super().__init__(f"Unexpected text response type: {content_type or 'unknown'} ({url})")


class NoVariantsFound(ResolverError):
    """The variant list on a landing page was empty or unparsable."""


class HttpStatusError(ResolverError):
    """A retrieval attempt's response status was outside 2xx."""

    def __init__(self, status: int, url: str = "") -> None:
        self.status = status
        self.url = url
        super().__init__(f"Download request failed with HTTP {status} ({url})")


class FetchFailed(ResolverError):
    """The HTTP request itself failed before a response was received."""


class SiteError(ResolverError):
    """The landing page reported an error message instead of content."""
