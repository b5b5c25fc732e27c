# site_harvest/crawler/browser.py
"""
Headless Chromium renderer built on Playwright.
"""
from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from site_harvest.crawler.renderer import RenderError, RenderResult
from site_harvest.logger import logger

__all__ = ("PlaywrightPage", "PlaywrightRenderer")


class PlaywrightPage:
    """Adapter from a Playwright :class:`Page` to the renderer page protocol."""

    def __init__(self, page: Page) -> None:
        self._page = page

    async def title(self) -> str:
        return await self._page.title()

    async def evaluate_selector(self, selector: str, attribute: str) -> Optional[str]:
        handle = await self._page.query_selector(selector)
        if handle is None:
            return None
        try:
            return await handle.get_attribute(attribute)
        finally:
            await handle.dispose()

    async def full_markup(self) -> str:
        return await self._page.content()

    async def close(self) -> None:
        if not self._page.is_closed():
            await self._page.close()


class PlaywrightRenderer:
    """Opens each URL in a fresh tab of one shared browser context."""

    def __init__(
        self,
        *,
        navigation_timeout: float = 60.0,
        user_agent: Optional[str] = None,
        headless: bool = True,
    ) -> None:
        self.navigation_timeout = navigation_timeout
        self.user_agent = user_agent
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> PlaywrightRenderer:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(user_agent=self.user_agent)
        self._context.set_default_navigation_timeout(self.navigation_timeout * 1000)
        logger.debug("Chromium launched (headless=%s)", self.headless)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._context = self._browser = self._playwright = None

    async def navigate(self, url: str) -> RenderResult:
        if self._context is None:
            raise RuntimeError("Browser not started")
        page = await self._context.new_page()
        handed_over = False
        try:
            response = await page.goto(url, wait_until="load")
            if response is None:
                raise RenderError(url, "no response")
            if response.status >= 400:
                raise RenderError(url, f"HTTP {response.status}")
            headers = await response.all_headers()
            result = RenderResult(
                final_url=page.url, page=PlaywrightPage(page), headers=headers, status=response.status
            )
            handed_over = True
            return result
        except PlaywrightError as exc:
            # Chromium refuses to render downloads ("Download is starting").
            raise RenderError(url, str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__) from exc
        finally:
            # the tab is ours until the caller gets it, cancellation included
            if not handed_over:
                await page.close()
