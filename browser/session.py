"""
Browser Session - one shared headless Chromium for ATS resolution.

The browser is launched lazily on the first acquire() and reused by every
caller until it disconnects or shutdown() is called. Callers open their own
context/tab on top of it, so tabs never see each other's DOM.

Usage:
    async with BrowserSession() as session:
        browser = await session.acquire()
        context = await browser.new_context()
        ...

There is no lock around the launch. Two tasks hitting acquire() on a cold
session may both start a browser; the one that finishes second finds the
cached handle, closes its own browser and returns the cached one. The cost
is a briefly duplicated process, never a wrong result.
"""

import logging
import os
from enum import Enum
from typing import Iterable, List, Optional

from playwright.async_api import async_playwright, Browser, Playwright
from playwright.async_api import Error as PlaywrightError

from .config import BROWSER_ARGS, CHROME_PATHS
from .errors import BrowserUnavailable

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Browser session lifecycle"""
    UNINITIALIZED = "uninitialized"
    LIVE = "live"
    CLOSED = "closed"


class BrowserSession:
    """Owns a single reusable browser process handle."""

    def __init__(
        self,
        chrome_paths: Optional[Iterable[str]] = None,
        headless: bool = True,
        args: Optional[List[str]] = None,
    ):
        self.chrome_paths = list(chrome_paths) if chrome_paths is not None else list(CHROME_PATHS)
        self.headless = headless
        self.args = list(args) if args is not None else list(BROWSER_ARGS)

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._state = SessionState.UNINITIALIZED

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    @property
    def state(self) -> SessionState:
        if self._state == SessionState.LIVE and not self._is_live():
            return SessionState.CLOSED
        return self._state

    def _is_live(self) -> bool:
        return self.browser is not None and self.browser.is_connected()

    def find_executable(self, playwright: Optional[Playwright] = None) -> str:
        """
        Return the first browser executable that exists on disk.

        Configured paths are checked in order, then Playwright's bundled
        Chromium (if a driver is given).
        """
        candidates = list(self.chrome_paths)
        if playwright is not None:
            bundled = playwright.chromium.executable_path
            if bundled:
                candidates.append(bundled)

        for path in candidates:
            if path and os.path.exists(path):
                logger.debug("Browser executable found at %s", path)
                return path

        raise BrowserUnavailable("Chrome not found. Tried paths: " + ", ".join(candidates))

    async def acquire(self) -> Browser:
        """Return the live browser, launching one if needed."""
        if self._is_live():
            return self.browser

        if self.playwright is None:
            playwright = await async_playwright().start()
            if self.playwright is None:
                self.playwright = playwright
            else:
                await playwright.stop()

        executable = self.find_executable(self.playwright)
        logger.info("Launching headless browser: %s", executable)

        browser = await self.playwright.chromium.launch(
            headless=self.headless,
            executable_path=executable,
            args=self.args,
        )

        if self._is_live():
            # Another acquire() won the launch race, keep its browser
            logger.debug("Concurrent launch detected, closing duplicate browser")
            await browser.close()
            return self.browser

        self.browser = browser
        self._state = SessionState.LIVE
        return browser

    async def shutdown(self):
        """Close the cached browser and stop the driver. Safe to call twice."""
        browser, playwright = self.browser, self.playwright
        self.browser = None
        self.playwright = None

        if browser is None and playwright is None:
            return

        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                # Already gone (crashed or disconnected)
                logger.debug("Browser close failed: %s", e)
        if playwright is not None:
            await playwright.stop()

        self._state = SessionState.CLOSED
        logger.info("Browser session closed")

    release = shutdown
