"""
Tests for AtsResolver.

Runs the resolution cascade against fake pages (see conftest.py), so no
browser is needed. Async calls are driven with asyncio.run().
"""

import sys
import asyncio
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser.errors import BrowserUnavailable, CandidateProbeFailure
from browser.resolver import (
    ProbeOutcome,
    candidate_selectors,
    probe_candidate,
    run_cascade,
)
from browser.config import APPLY_BUTTON_SELECTORS


JOB_URL = "https://cryptojobslist.com/jobs/senior-engineer-acme"


# ============ Cascade Order Tests ============

class TestCandidateSelectors:
    """Tests for the probe cascade order."""

    def test_ats_links_come_first(self):
        """Direct ATS links are the most reliable probes."""
        selectors = candidate_selectors()

        assert selectors[0] == 'a[href*="greenhouse.io"]'
        assert 'a[href*="lever.co"]' in selectors
        assert selectors.index('a[href*="ashbyhq.com"]') < selectors.index('a:has-text("Apply")')

    def test_generic_class_heuristic_is_last(self):
        """The most speculative probe is tried last."""
        selectors = candidate_selectors()

        assert selectors[-1] == '[class*="apply"]'
        assert selectors[-len(APPLY_BUTTON_SELECTORS):] == APPLY_BUTTON_SELECTORS


# ============ Probe Tests ============

class TestProbeCandidate:
    """Tests for a single cascade step."""

    def test_no_element_is_no_match(self, make_page):
        """Should report NO_MATCH when the selector finds nothing."""
        page = make_page()

        result = asyncio.run(probe_candidate(page, ".apply-button"))

        assert result.outcome is ProbeOutcome.NO_MATCH
        assert result.url is None

    def test_ats_href_matches_without_click(self, make_page, make_element):
        """Should match on an ATS href without clicking."""
        link = make_element([".apply-button"], href="https://jobs.lever.co/acme/abc123")
        page = make_page(elements=[link])

        result = asyncio.run(probe_candidate(page, ".apply-button"))

        assert result.outcome is ProbeOutcome.MATCHED
        assert result.url == "https://jobs.lever.co/acme/abc123"
        assert page.click_count == 0

    def test_click_without_navigation_is_no_match(self, make_page, make_element):
        """A button that opens a modal times out waiting for navigation; not an error."""
        button = make_element(['button:has-text("Apply")'], tag="BUTTON")
        page = make_page(elements=[button])
        page.url = JOB_URL

        result = asyncio.run(probe_candidate(page, 'button:has-text("Apply")'))

        assert result.outcome is ProbeOutcome.NO_MATCH
        assert page.click_count == 1

    def test_lookup_error_is_probe_error(self, make_page):
        """Should turn a lookup failure into an error result naming the selector."""
        page = make_page(lookup_errors={".job-apply": PlaywrightError("Execution context was destroyed")})

        result = asyncio.run(probe_candidate(page, ".job-apply"))

        assert result.outcome is ProbeOutcome.PROBE_ERROR
        assert isinstance(result.error, CandidateProbeFailure)
        assert result.error.selector == ".job-apply"

    def test_click_error_is_probe_error(self, make_page, make_element):
        """Should turn a click failure into an error result."""
        button = make_element([".job-apply"], tag="DIV", click_error=PlaywrightError("Element is detached"))
        page = make_page(elements=[button])

        result = asyncio.run(probe_candidate(page, ".job-apply"))

        assert result.outcome is ProbeOutcome.PROBE_ERROR


class TestRunCascade:
    """Tests for folding probes."""

    def test_stops_at_first_match(self, make_page, make_element):
        """Should stop querying after the first match."""
        first = make_element([".a"], href="https://boards.greenhouse.io/acme/jobs/1")
        second = make_element([".b"], href="https://jobs.lever.co/acme/2")
        page = make_page(elements=[first, second])

        result = asyncio.run(run_cascade(page, [".a", ".b"]))

        assert result.url == "https://boards.greenhouse.io/acme/jobs/1"
        assert page.queried == [".a"]

    def test_probe_error_does_not_abort(self, make_page, make_element):
        """Should move on to the next selector after an error."""
        link = make_element([".b"], href="https://jobs.lever.co/acme/2")
        page = make_page(elements=[link], lookup_errors={".a": PlaywrightError("boom")})

        result = asyncio.run(run_cascade(page, [".a", ".b"]))

        assert result.outcome is ProbeOutcome.MATCHED
        assert page.queried == [".a", ".b"]

    def test_exhausted_returns_none(self, make_page):
        """Should return None when no selector matches."""
        page = make_page()

        assert asyncio.run(run_cascade(page, [".a", ".b"])) is None


# ============ Resolver Tests ============

class TestResolveApplicationUrl:
    """End-to-end resolution over fake pages."""

    def test_auto_redirect_to_lever(self, make_page, make_resolver):
        """Posting redirects straight to Lever: no probes, no clicks."""
        page = make_page(redirects={JOB_URL: "https://jobs.lever.co/acme/abc123"})
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url == "https://jobs.lever.co/acme/abc123"
        assert page.click_count == 0
        assert page.queried == []
        assert page.closed is True

    def test_apply_button_href_to_greenhouse(self, make_page, make_element, make_resolver):
        """<a class="apply-button" href="...greenhouse...">Apply</a> is returned without clicking."""
        link = make_element(
            ['a[href*="greenhouse.io"]', 'a:has-text("Apply")', ".apply-button", '[class*="apply"]'],
            href="https://boards.greenhouse.io/acme/jobs/1",
        )
        page = make_page(elements=[link])
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url == "https://boards.greenhouse.io/acme/jobs/1"
        assert page.click_count == 0
        assert page.goto_calls == [JOB_URL]
        assert page.closed is True

    def test_no_candidates_returns_original_url(self, make_page, make_resolver):
        """Should fall back to the posting URL after trying every selector."""
        page = make_page()
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url == JOB_URL
        assert page.queried == resolver.selectors
        assert page.closed is True

    def test_click_reaches_ats(self, make_page, make_element, make_resolver):
        """Should follow a button click that lands on an ATS."""
        button = make_element(
            ['button:has-text("Apply")'],
            tag="BUTTON",
            navigates_to="https://jobs.ashbyhq.com/acme/123",
        )
        page = make_page(elements=[button])
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url == "https://jobs.ashbyhq.com/acme/123"
        assert page.click_count == 1
        assert '[class*="apply"]' not in page.queried
        assert page.closed is True

    def test_click_to_non_ats_page_returns_original_url(self, make_page, make_element, make_resolver):
        """Should return the posting URL, not the page a click landed on, when no ATS is found."""
        button = make_element(
            ['button:has-text("Apply")'],
            tag="BUTTON",
            navigates_to="https://acme.com/careers/engineer",
        )
        page = make_page(elements=[button])
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url == JOB_URL
        assert page.url == "https://acme.com/careers/engineer"
        assert page.click_count == 1
        assert page.queried == resolver.selectors
        assert page.closed is True

    def test_non_navigating_button_then_apply_link(self, make_page, make_element, make_resolver):
        """A modal button is skipped and the next candidate still gets its turn."""
        button = make_element(['button:has-text("Apply")'], tag="BUTTON")
        link = make_element(['a[href*="apply"]'], href="https://careers.acme.com/jobs/1/apply")
        page = make_page(elements=[button, link])
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url == "https://careers.acme.com/jobs/1/apply"
        assert page.click_count == 1

    def test_navigation_fault_returns_none(self, make_page, make_resolver):
        """Should return None when the posting never loads."""
        page = make_page(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
        resolver = make_resolver(page)

        url = asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert url is None
        assert page.closed is True

    def test_tab_open_failure_returns_none(self, make_resolver):
        """Should return None when no tab can be opened."""
        resolver = make_resolver(new_page_error=PlaywrightError("Target closed"))

        assert asyncio.run(resolver.resolve_application_url(JOB_URL)) is None

    def test_browser_unavailable_propagates(self, make_resolver):
        """Should let BrowserUnavailable escape."""
        resolver = make_resolver(session_error=BrowserUnavailable("Chrome not found"))

        with pytest.raises(BrowserUnavailable):
            asyncio.run(resolver.resolve_application_url(JOB_URL))

    def test_sets_user_agent(self, make_page, make_resolver):
        """Should open the tab with the configured user agent."""
        page = make_page()
        resolver = make_resolver(page, user_agent="Mozilla/5.0 Test")

        asyncio.run(resolver.resolve_application_url(JOB_URL))

        assert page.user_agent == "Mozilla/5.0 Test"


class TestApplicationPage:
    """Tests for the live page handoff."""

    def test_navigates_to_matched_href(self, make_page, make_element, make_resolver):
        """Should navigate the tab to a matched href and keep it open inside the block."""
        link = make_element(['a[href*="lever.co"]'], href="https://jobs.lever.co/acme/abc123")
        page = make_page(elements=[link])
        resolver = make_resolver(page)

        async def run():
            async with resolver.application_page(JOB_URL) as resolution:
                assert page.closed is False
                return resolution

        resolution = asyncio.run(run())

        assert resolution.ok
        assert resolution.page is page
        assert resolution.ats.ats == "lever"
        assert page.goto_calls == [JOB_URL, "https://jobs.lever.co/acme/abc123"]
        assert page.closed is True

    def test_redirect_needs_no_second_navigation(self, make_page, make_resolver):
        """Should not navigate again when the posting redirected to the ATS."""
        page = make_page(redirects={JOB_URL: "https://jobs.lever.co/acme/abc123"})
        resolver = make_resolver(page)

        async def run():
            async with resolver.application_page(JOB_URL) as resolution:
                return resolution

        resolution = asyncio.run(run())

        assert resolution.url == "https://jobs.lever.co/acme/abc123"
        assert page.goto_calls == [JOB_URL]

    def test_navigation_fault_yields_no_page(self, make_page, make_resolver):
        """Should yield no page and close the tab when the posting never loads."""
        page = make_page(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        resolver = make_resolver(page)

        async def run():
            async with resolver.application_page(JOB_URL) as resolution:
                return resolution

        resolution = asyncio.run(run())

        assert resolution.ok is False
        assert resolution.page is None
        assert page.closed is True


class TestResolveMany:
    """Tests for concurrent resolution."""

    def test_resolves_each_url_in_own_tab(self, make_page, make_resolver):
        """Should resolve every URL in its own tab and close each one."""
        other = "https://web3.career/job/123"
        first = make_page(redirects={JOB_URL: "https://jobs.lever.co/acme/1"})
        second = make_page(redirects={other: "https://jobs.lever.co/acme/1"})
        resolver = make_resolver(first, second)

        results = asyncio.run(resolver.resolve_many([JOB_URL, other], concurrency=1))

        assert set(results) == {JOB_URL, other}
        assert all(url == "https://jobs.lever.co/acme/1" for url in results.values())
        assert first.closed and second.closed
