"""Browser session management: one Playwright page per page suite."""

import logging
from typing import List, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from dashboard_qa.models.cache import BrowserRequest, ConsoleEntry, LogLevel
from dashboard_qa.utils.errors import ConstructionError

logger = logging.getLogger(__name__)

# Playwright console message types mapped to WebDriver log levels
CONSOLE_LEVELS = {
    "error": LogLevel.SEVERE,
    "assert": LogLevel.SEVERE,
    "warning": LogLevel.WARNING,
    "log": LogLevel.INFO,
    "info": LogLevel.INFO,
    "debug": LogLevel.DEBUG,
    "trace": LogLevel.DEBUG,
}


def console_entry_from_message(message_type: str, text: str, location: Optional[dict] = None) -> ConsoleEntry:
    """Build a console entry in '<source> <line>:<column> <text>' form."""
    location = location or {}
    source = location.get("url") or "console"
    position = f"{location.get('lineNumber', 0)}:{location.get('columnNumber', 0)}"

    return ConsoleEntry(
        level=CONSOLE_LEVELS.get(message_type, LogLevel.INFO),
        message=f"{source} {position} {text}"
    )


class BrowserSession:
    """Owns the browser, its context and page, and what the page observed."""

    def __init__(
        self,
        browser_name: str = "chromium",
        headless: bool = True,
        slow_mo_ms: int = 0,
        viewport_width: int = 1920,
        viewport_height: int = 1080
    ):
        self.browser_name = browser_name
        self.headless = headless
        self.slow_mo_ms = slow_mo_ms
        self.viewport = {"width": viewport_width, "height": viewport_height}

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self._responses: List[BrowserRequest] = []
        self._console: List[ConsoleEntry] = []

    @classmethod
    def from_settings(cls, settings, headless: Optional[bool] = None) -> "BrowserSession":
        return cls(
            browser_name=settings.BROWSER,
            headless=settings.HEADLESS if headless is None else headless,
            slow_mo_ms=settings.SLOW_MO_MS,
            viewport_width=settings.VIEWPORT_WIDTH,
            viewport_height=settings.VIEWPORT_HEIGHT,
        )

    @property
    def page(self) -> Page:
        if self._page is None:
            raise ConstructionError("Browser session has not been started")
        return self._page

    @property
    def started(self) -> bool:
        return self._page is not None

    async def start(self) -> Page:
        """Launch the browser and open the page, recording network and console."""
        if self._page is not None:
            return self._page

        try:
            self._playwright = await async_playwright().start()
            browser_type = getattr(self._playwright, self.browser_name)

            logger.info(f"Launching {self.browser_name} (headless={self.headless})")
            self._browser = await browser_type.launch(
                headless=self.headless,
                slow_mo=self.slow_mo_ms
            )
            self._context = await self._browser.new_context(
                viewport=self.viewport,
                ignore_https_errors=True
            )
            page = await self._context.new_page()
        except Exception as e:
            logger.error(f"Failed to start browser session: {e}")
            await self.close()
            raise ConstructionError(f"Browser session could not be started: {e}") from e

        page.on("response", self._record_response)
        page.on("console", self._record_console)
        page.on("pageerror", self._record_page_error)

        self._page = page
        logger.info("Browser session started")
        return page

    def _record_response(self, response) -> None:
        self._responses.append(BrowserRequest(url=response.url, status=response.status))

    def _record_console(self, message) -> None:
        self._console.append(
            console_entry_from_message(message.type, message.text, message.location)
        )

    def _record_page_error(self, error) -> None:
        self._console.append(ConsoleEntry(level=LogLevel.SEVERE, message=f"pageerror {error}"))

    async def navigate(self, url: str) -> None:
        logger.info(f"Navigating to {url}")
        await self.page.goto(url)

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    @property
    def current_url(self) -> str:
        return self.page.url

    def requests(self, prefix: str = "") -> List[BrowserRequest]:
        """Captured responses whose URL starts with `prefix`."""
        return [request for request in self._responses if request.url.startswith(prefix)]

    def console_entries(self, level: Optional[LogLevel] = None) -> List[ConsoleEntry]:
        """Captured console entries, optionally of one level."""
        if level is None:
            return list(self._console)
        return [entry for entry in self._console if entry.level == level]

    async def close(self) -> None:
        """Close page, context, browser and Playwright."""
        for name, resource in (("page", self._page), ("context", self._context), ("browser", self._browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Failed to close {name}: {e}")

        self._page = None
        self._context = None
        self._browser = None

        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            logger.info("Playwright stopped")
