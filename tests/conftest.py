"""
Fake Playwright objects for testing without a real browser.

FakePage implements the slice of the Page API the resolver and detector use:
goto, url, query_selector, expect_navigation, evaluate, close.
"""

import sys
import pytest
from contextlib import asynccontextmanager
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser.resolver import AtsResolver


class FakeElement:
    """Element that answers to a set of selectors."""

    def __init__(self, matches, tag="A", href=None, navigates_to=None, click_error=None):
        self.matches = set(matches)
        self.tag = tag
        self.href = href
        self.navigates_to = navigates_to
        self.click_error = click_error
        self.page = None

    async def evaluate(self, script):
        return self.href if self.tag == "A" else None

    async def click(self, timeout=None):
        self.page.click_count += 1
        if self.click_error:
            raise self.click_error
        if self.navigates_to:
            self.page.url = self.navigates_to


class FakePage:
    def __init__(self, elements=None, redirects=None, goto_error=None,
                 descriptors=None, evaluate_error=None, lookup_errors=None):
        self.url = "about:blank"
        self.elements = list(elements or [])
        for el in self.elements:
            el.page = self
        self.redirects = dict(redirects or {})
        self.goto_error = goto_error
        self.descriptors = descriptors or []
        self.evaluate_error = evaluate_error
        self.lookup_errors = dict(lookup_errors or {})

        self.goto_calls = []
        self.queried = []
        self.click_count = 0
        self.closed = False
        self.user_agent = None

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append(url)
        if self.goto_error:
            raise self.goto_error
        self.url = self.redirects.get(url, url)

    async def query_selector(self, selector):
        self.queried.append(selector)
        if selector in self.lookup_errors:
            raise self.lookup_errors[selector]
        for el in self.elements:
            if selector in el.matches:
                return el
        return None

    @asynccontextmanager
    async def expect_navigation(self, wait_until=None, timeout=None):
        before = self.url
        yield
        if self.url == before:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for navigation")

    async def evaluate(self, script):
        if self.evaluate_error:
            raise self.evaluate_error
        return self.descriptors

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, pages, new_page_error=None):
        self.pages = list(pages)
        self.opened = []
        self.new_page_error = new_page_error

    async def new_page(self, user_agent=None):
        if self.new_page_error:
            raise self.new_page_error
        page = self.pages.pop(0)
        page.user_agent = user_agent
        self.opened.append(page)
        return page

    def is_connected(self):
        return True


class FakeSession:
    def __init__(self, browser=None, error=None):
        self.browser = browser
        self.error = error
        self.acquire_count = 0
        self.released = False

    async def acquire(self):
        self.acquire_count += 1
        if self.error:
            raise self.error
        return self.browser

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.released = True


# ============ Fixtures ============

@pytest.fixture
def make_page():
    """Factory for fake pages."""
    return FakePage


@pytest.fixture
def make_element():
    """Factory for fake elements."""
    return FakeElement


@pytest.fixture
def make_resolver():
    """Build an AtsResolver over fake pages (one page per opened tab)."""
    def _make(*pages, session_error=None, new_page_error=None, **kwargs):
        browser = FakeBrowser(pages, new_page_error=new_page_error)
        session = FakeSession(browser, error=session_error)
        return AtsResolver(session, **kwargs)
    return _make


@pytest.fixture
def make_session():
    """Build a FakeSession over fake pages, usable as `async with`."""
    def _make(*pages, error=None):
        return FakeSession(FakeBrowser(pages), error=error)
    return _make
