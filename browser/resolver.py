"""
ATS Resolver - follow a job posting to the real application form.

Job boards and aggregators rarely host the application themselves. This
module opens the posting in a headless tab and works out where the actual
ATS form lives:

1. Load the posting (network idle, 30s). A failed load is fatal: None.
2. If the tab already landed on an ATS URL (redirect), return it.
3. Try the probe cascade in order. A probe looks up one selector; a link
   straight to an ATS is returned without clicking, anything else is
   clicked and the tab URL re-checked. First match wins.
4. Nothing matched: return the original URL. That is a valid answer
   ("apply on the posting page"), not an error.

The tab is always closed before returning.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Dict, Iterable, List, Optional

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ats_detector import AtsMatch, ats_link_selectors, detect_ats, is_ats_url
from .config import (
    APPLY_BUTTON_SELECTORS,
    CLICK_NAVIGATION_TIMEOUT_MS,
    NAVIGATION_TIMEOUT_MS,
    RESOLVE_CONCURRENCY,
    USER_AGENT,
)
from .errors import CandidateProbeFailure, NavigationFault
from .session import BrowserSession

logger = logging.getLogger(__name__)

LINK_HREF_SCRIPT = "el => el.tagName === 'A' ? el.href : null"


class ProbeOutcome(Enum):
    MATCHED = "matched"
    NO_MATCH = "no-match"
    PROBE_ERROR = "probe-error"


@dataclass(frozen=True)
class ProbeResult:
    """What one cascade step found."""
    outcome: ProbeOutcome
    selector: str
    url: Optional[str] = None
    error: Optional[CandidateProbeFailure] = None


@dataclass(frozen=True)
class Resolution:
    """Resolved URL plus the live tab, for handing off to a fill pass."""
    url: Optional[str]
    page: Optional[Page] = None
    ats: Optional[AtsMatch] = None

    @property
    def ok(self) -> bool:
        return self.url is not None


def candidate_selectors() -> List[str]:
    """Cascade order: direct ATS links first, generic 'apply' heuristics last."""
    return ats_link_selectors() + list(APPLY_BUTTON_SELECTORS)


async def probe_candidate(page: Page, selector: str, click_timeout_ms: int = CLICK_NAVIGATION_TIMEOUT_MS) -> ProbeResult:
    """Run one cascade step. Never raises for page-level failures."""
    try:
        element = await page.query_selector(selector)
        if element is None:
            return ProbeResult(ProbeOutcome.NO_MATCH, selector)

        href = await element.evaluate(LINK_HREF_SCRIPT)
        if href and is_ats_url(href):
            return ProbeResult(ProbeOutcome.MATCHED, selector, url=href)

        try:
            async with page.expect_navigation(wait_until="networkidle", timeout=click_timeout_ms):
                await element.click(timeout=click_timeout_ms)
        except PlaywrightTimeoutError:
            # Buttons that open modals or new tabs never navigate this one
            logger.debug("No navigation after clicking %s", selector)

        current_url = page.url
        if is_ats_url(current_url):
            return ProbeResult(ProbeOutcome.MATCHED, selector, url=current_url)
        return ProbeResult(ProbeOutcome.NO_MATCH, selector)

    except PlaywrightError as e:
        return ProbeResult(
            ProbeOutcome.PROBE_ERROR,
            selector,
            error=CandidateProbeFailure(selector, str(e)),
        )


async def run_cascade(
    page: Page,
    selectors: Iterable[str],
    click_timeout_ms: int = CLICK_NAVIGATION_TIMEOUT_MS,
) -> Optional[ProbeResult]:
    """Fold probes left to right, stop at the first MATCHED."""
    for selector in selectors:
        result = await probe_candidate(page, selector, click_timeout_ms)
        if result.outcome is ProbeOutcome.MATCHED:
            return result
        if result.outcome is ProbeOutcome.PROBE_ERROR:
            logger.debug("%s", result.error)
    return None


class AtsResolver:
    """Resolves job posting URLs to ATS application URLs on a shared browser."""

    def __init__(
        self,
        session: BrowserSession,
        nav_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        click_timeout_ms: int = CLICK_NAVIGATION_TIMEOUT_MS,
        user_agent: str = USER_AGENT,
        selectors: Optional[List[str]] = None,
    ):
        self.session = session
        self.nav_timeout_ms = nav_timeout_ms
        self.click_timeout_ms = click_timeout_ms
        self.user_agent = user_agent
        self.selectors = list(selectors) if selectors is not None else candidate_selectors()

    async def _open_tab(self) -> Page:
        browser = await self.session.acquire()
        # new_page() gets its own context; closing the page closes it too
        return await browser.new_page(user_agent=self.user_agent)

    async def _close_tab(self, page: Page):
        try:
            await page.close()
        except PlaywrightError as e:
            logger.debug("Tab close failed: %s", e)

    async def _navigate(self, page: Page, url: str):
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.nav_timeout_ms)
        except PlaywrightError as e:
            raise NavigationFault(url, str(e)) from e

    async def _resolve_on(self, page: Page, job_url: str) -> str:
        logger.info("Navigating to %s", job_url)
        await self._navigate(page, job_url)

        current_url = page.url
        if is_ats_url(current_url):
            logger.info("Already on ATS: %s", current_url)
            return current_url

        result = await run_cascade(page, self.selectors, self.click_timeout_ms)
        if result is not None:
            logger.info("Reached ATS via %s: %s", result.selector, result.url)
            return result.url

        logger.info("No ATS found, using original URL %s", job_url)
        return job_url

    async def resolve_application_url(self, job_url: str) -> Optional[str]:
        """
        Final application URL for a job posting.

        Returns the ATS URL, the original URL when no ATS is reachable, or
        None when the browser or the initial navigation failed. Raises
        BrowserUnavailable if no browser can be launched at all.
        """
        try:
            page = await self._open_tab()
        except PlaywrightError as e:
            logger.warning("Could not open tab for %s: %s", job_url, e)
            return None

        try:
            return await self._resolve_on(page, job_url)
        except NavigationFault as e:
            logger.warning("%s", e)
            return None
        finally:
            await self._close_tab(page)

    @asynccontextmanager
    async def application_page(self, job_url: str) -> AsyncIterator[Resolution]:
        """
        Resolve and keep the tab open on the application URL.

            async with resolver.application_page(url) as resolution:
                if resolution.page:
                    selectors = await fill(resolution.page)

        On a fatal fault the Resolution has page=None (and url=None if the
        posting itself never loaded). The tab is closed on exit.
        """
        page = None
        resolution = Resolution(url=None)
        try:
            page = await self._open_tab()
            url = await self._resolve_on(page, job_url)
            resolution = Resolution(url=url, page=page, ats=detect_ats(url))
            if page.url != url:
                # Matched on an href, the tab is still on the posting
                await self._navigate(page, url)
        except (NavigationFault, PlaywrightError) as e:
            logger.warning("Resolution failed for %s: %s", job_url, e)
            resolution = Resolution(url=resolution.url, ats=resolution.ats)

        try:
            yield resolution
        finally:
            if page is not None:
                await self._close_tab(page)

    async def resolve_many(
        self,
        urls: Iterable[str],
        concurrency: int = RESOLVE_CONCURRENCY,
    ) -> Dict[str, Optional[str]]:
        """Resolve several postings concurrently, one tab each."""
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _resolve(url: str):
            async with semaphore:
                return url, await self.resolve_application_url(url)

        results = await asyncio.gather(*(_resolve(u) for u in urls))
        return dict(results)
