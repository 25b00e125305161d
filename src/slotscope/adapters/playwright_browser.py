"""Playwright browser adapter.

Implements the core browser ports on top of Playwright's async API. One
Chromium instance is launched per cycle; every task gets its own page.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from playwright.async_api import Browser, Dialog, ElementHandle, Page, Playwright, async_playwright

from slotscope.core.ports import DialogHandler

LOGGER = logging.getLogger(__name__)

DEFAULT_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")
DEFAULT_VIEWPORT = {"width": 1080, "height": 1024}


def _ms(seconds: float) -> float:
    # Playwright timeouts are expressed in milliseconds.
    return seconds * 1000


class PlaywrightDialog:
    def __init__(self, dialog: Dialog) -> None:
        self._dialog = dialog

    @property
    def message(self) -> str:
        return self._dialog.message

    async def dismiss(self) -> None:
        await self._dialog.dismiss()


class PlaywrightElement:
    def __init__(self, handle: ElementHandle) -> None:
        self._handle = handle

    async def text_content(self) -> Optional[str]:
        return await self._handle.text_content()

    async def click(self) -> None:
        await self._handle.click()


class PlaywrightPage:
    """PagePort adapter around a Playwright ``Page``."""

    def __init__(self, page: Page) -> None:
        self._page = page

    async def goto(self, url: str, wait_until: str, timeout: float) -> None:
        await self._page.goto(url, wait_until=wait_until, timeout=_ms(timeout))

    async def reload(self, wait_until: str, timeout: float) -> None:
        await self._page.reload(wait_until=wait_until, timeout=_ms(timeout))

    def current_url(self) -> str:
        return self._page.url

    async def query_selector_all(self, selector: str) -> Sequence[PlaywrightElement]:
        handles = await self._page.query_selector_all(selector)
        return [PlaywrightElement(handle) for handle in handles]

    def on_dialog(self, handler: DialogHandler) -> None:
        async def _forward(dialog: Dialog) -> None:
            await handler(PlaywrightDialog(dialog))

        self._page.on("dialog", _forward)

    async def content(self) -> str:
        return await self._page.content()

    async def close(self) -> None:
        await self._page.close()


class PlaywrightSession:
    """A running Chromium instance shared by the tasks of one cycle."""

    def __init__(self, playwright: Playwright, browser: Browser, viewport: dict) -> None:
        self._playwright = playwright
        self._browser = browser
        self._viewport = viewport

    async def new_page(self) -> PlaywrightPage:
        page = await self._browser.new_page(viewport=self._viewport)
        return PlaywrightPage(page)

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        LOGGER.debug("Browser closed")


class PlaywrightLauncher:
    """BrowserLauncherPort adapter that starts headless Chromium."""

    def __init__(
        self,
        headless: bool = True,
        args: Sequence[str] = DEFAULT_ARGS,
        viewport: Optional[dict] = None,
    ) -> None:
        self._headless = headless
        self._args: List[str] = list(args)
        self._viewport = dict(viewport or DEFAULT_VIEWPORT)

    async def launch(self) -> PlaywrightSession:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=self._headless, args=self._args)
        except Exception:
            await playwright.stop()
            raise
        LOGGER.info("Launched Chromium (headless=%s)", self._headless)
        return PlaywrightSession(playwright, browser, self._viewport)
