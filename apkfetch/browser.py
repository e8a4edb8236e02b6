"""Browser session capability used by the walker and the retrieval chain."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Protocol

from playwright.async_api import (
    BrowserContext,
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import ResolverConfig
from .errors import FetchFailed, NavigationTimeout
from .links import collect_links, extract_title
from .models import DownloadedFile, FetchResponse, PageSnapshot

logger = logging.getLogger("apkfetch")

CLICK_SCRIPT = """(url) => {
  const a = document.createElement('a');
  a.href = url;
  a.rel = 'noopener';
  document.body.appendChild(a);
  a.click();
  a.remove();
}"""


class BrowserSession(Protocol):
    """Effects the resolver needs from a browser; tests replay canned pages."""

    async def navigate(self, url: str) -> Optional[int]:
        ...

    async def settle(self) -> None:
        ...

    async def snapshot(self) -> PageSnapshot:
        ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        ...

    async def wait_for_selector(self, selector: str) -> None:
        ...

    async def click_download(self, url: str) -> Optional[DownloadedFile]:
        ...

    async def fetch(self, url: str, referer: str) -> FetchResponse:
        ...


class PlaywrightSession:
    """BrowserSession backed by a single Playwright page and its context."""

    def __init__(self, context: BrowserContext, page: Page, config: ResolverConfig) -> None:
        self.context = context
        self.page = page
        self.config = config

    async def navigate(self, url: str) -> Optional[int]:
        logger.info("Loading %s", url)
        try:
            response = await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout * 1000,
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out loading {url}: {exc}") from exc
        return response.status if response else None

    async def settle(self) -> None:
        if self.config.settle_delay:
            await self.page.wait_for_timeout(self.config.settle_delay * 1000)

    async def snapshot(self) -> PageSnapshot:
        html = await self.page.content()
        url = self.page.url
        return PageSnapshot(
            url=url,
            html=html,
            links=collect_links(html, url),
            title=extract_title(html),
        )

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return await self.page.evaluate(expression, arg)

    async def wait_for_selector(self, selector: str) -> None:
        try:
            await self.page.wait_for_selector(
                selector, timeout=self.config.selector_timeout * 1000
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out waiting for {selector}: {exc}") from exc

    async def click_download(self, url: str) -> Optional[DownloadedFile]:
        """Click a synthetic anchor and capture the native download, if one starts."""
        try:
            async with self.page.expect_download(
                timeout=self.config.download_timeout * 1000
            ) as download_info:
                await self.evaluate(CLICK_SCRIPT, url)
            download = await download_info.value
            path = await download.path()
        except PlaywrightTimeoutError:
            logger.warning("No download event for %s", url)
            return None
        except PlaywrightError as exc:
            logger.warning("Browser download of %s failed: %s", url, exc)
            return None
        if not path:
            return None
        return DownloadedFile(
            body=Path(path).read_bytes(),
            suggested_filename=download.suggested_filename or "",
        )

    async def fetch(self, url: str, referer: str) -> FetchResponse:
        logger.info("Fetching %s", url)
        try:
            response = await self.context.request.get(
                url,
                headers={"referer": referer},
                timeout=self.config.request_timeout * 1000,
                max_redirects=self.config.max_redirects,
            )
            body = await response.body()
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out fetching {url}: {exc}") from exc
        except PlaywrightError as exc:
            raise FetchFailed(f"Request to {url} failed: {exc}") from exc
        return FetchResponse(
            url=response.url,
            status=response.status,
            headers={key.lower(): value for key, value in response.headers.items()},
            body=body,
        )


@asynccontextmanager
async def open_session(config: ResolverConfig) -> AsyncIterator[PlaywrightSession]:
    """Launch Chromium and yield a session; the browser is closed on every exit."""
    async with async_playwright() as playwright:
        executable = str(config.browser_executable) if config.browser_executable else None
        browser = await playwright.chromium.launch(
            headless=config.headless,
            executable_path=executable,
            args=list(config.browser_args),
        )
        try:
            context = await browser.new_context(
                user_agent=config.user_agent,
                locale=config.locale,
                accept_downloads=True,
                extra_http_headers={"accept-language": "en-US,en;q=0.9"},
            )
            page = await context.new_page()
            yield PlaywrightSession(context, page, config)
        finally:
            await browser.close()
