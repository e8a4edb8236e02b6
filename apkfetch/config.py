"""Configuration objects and constants for the resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)
DEFAULT_BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
)
APKCOMBO_DOWNLOADER_TEMPLATE = (
    "https://apkcombo.com/downloader/#package={package}&version={version}"
)
APKCOMBO_FILE_LIST_SELECTOR = "ul.file-list, .alert-danger"
FALLBACK_FILENAME = "download.apk"
MAX_WALK_STEPS = 16


@dataclass
class VariantWeights:
    """Additive scoring weights used to rank APKCombo variants."""

    preferred_arch: int = 100
    universal: int = 50
    mismatched_arch: int = -50
    plain_apk: int = 20
    split_bundle: int = 10
    nodpi: int = 5
    preferred_arch_keywords: Tuple[str, ...] = ("arm64",)
    universal_keywords: Tuple[str, ...] = ("universal", "noarch")
    mismatched_arch_keywords: Tuple[str, ...] = ("x86",)


@dataclass
class ResolverConfig:
    """Top-level settings that control browser navigation and retrieval."""

    browser_executable: Optional[Path] = None
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    locale: str = "en-US"
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    navigation_timeout: float = 120.0
    selector_timeout: float = 30.0
    download_timeout: float = 120.0
    request_timeout: float = 120.0
    settle_delay: float = 3.0
    max_steps: int = MAX_WALK_STEPS
    max_redirects: int = 5
    weights: VariantWeights = field(default_factory=VariantWeights)
