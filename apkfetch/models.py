"""Data models used throughout the resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .config import APKCOMBO_DOWNLOADER_TEMPLATE
from .errors import UsageError


@dataclass(frozen=True)
class ResolutionTarget:
    """What the caller asked us to resolve."""

    start_url: str = ""
    package: Optional[str] = None
    version: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.start_url and not (self.package and self.version):
            raise UsageError("A source URL or a package and version are required")

    def landing_url(self) -> str:
        """Return the start URL, building the APKCombo one when only a package is known."""
        if self.start_url:
            return self.start_url
        return APKCOMBO_DOWNLOADER_TEMPLATE.format(
            package=self.package, version=self.version
        )


@dataclass
class PageSnapshot:
    """Rendered state of the browser page after one navigation step."""

    url: str
    html: str
    links: List[str] = field(default_factory=list)
    title: str = ""


class WalkPhase(Enum):
    LOADING = "loading"
    CLASSIFYING = "classifying"
    HOPPING = "hopping"
    WAITING = "waiting"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class WalkerState:
    """Mutable state threaded through the navigation loop."""

    current_url: str
    visited: Set[str] = field(default_factory=set)
    resolved_direct_url: Optional[str] = None
    challenge_seen: bool = False
    step_count: int = 0
    last_status: Optional[int] = None
    last_title: str = ""
    last_url: str = ""
    phase: WalkPhase = WalkPhase.LOADING


@dataclass
class Variant:
    """One downloadable packaging option listed on a landing page."""

    href: str
    descriptor: str
    filename: str


@dataclass
class FetchResponse:
    """Plain copy of an HTTP response made through the browser context."""

    url: str
    status: int
    headers: Dict[str, str]
    body: bytes

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").lower()


@dataclass
class DownloadedFile:
    """Payload captured from a native browser download event."""

    body: bytes
    suggested_filename: str = ""


@dataclass
class RetrievalOutcome:
    """Result of the one retrieval strategy that succeeded."""

    status: int
    headers: Dict[str, str]
    body: bytes
    strategy: str
    url: str
    suggested_filename: str = ""


@dataclass(frozen=True)
class ResultMetadata:
    """Terminal description of the retrieved artifact."""

    filename: str
    direct_url: str
    content_type: str
    byte_length: int
    via: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "direct_url": self.direct_url,
            "content_type": self.content_type,
            "bytes": self.byte_length,
            "via": self.via,
        }


@dataclass
class Resolution:
    """Artifact bytes plus the metadata record handed back to the caller."""

    metadata: ResultMetadata
    payload: bytes
