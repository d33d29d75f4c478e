"""
Apply Audit - resolve a job posting, run a fill pass, report the fill rate.

Использование:
    python apply_audit.py detect URL [URL ...]    - fingerprint only, no browser
    python apply_audit.py resolve URL [URL ...]   - follow postings to their ATS form
    python apply_audit.py audit URL [URL ...]     - resolve + list fields (no fill pass)
"""
import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from playwright.async_api import Page

from ats_detector import AtsMatch, detect_ats, is_ats_url
from browser import AtsResolver, BrowserSession, BrowserUnavailable
from forms import FormAnalysis, analyze, detect_fields, summarize

logger = logging.getLogger(__name__)

# A fill pass writes into the form and returns the selectors it touched
FillPass = Callable[[Page], Awaitable[Iterable[str]]]


async def no_fill(page: Page) -> list:
    """Baseline fill pass: touches nothing, so only pre-filled fields count."""
    return []


@dataclass
class AuditReport:
    job_url: str
    resolved_url: Optional[str]
    ats: Optional[AtsMatch] = None
    analysis: Optional[FormAnalysis] = None

    @property
    def summary(self) -> str:
        if self.analysis is None:
            return "Resolution failed"
        return summarize(self.analysis)


async def audit_application(resolver: AtsResolver, job_url: str, fill_pass: FillPass = no_fill) -> AuditReport:
    """
    Resolve job_url, hand the live application page to fill_pass, then audit
    which detected fields ended up filled.

    A failed resolution gives a report without analysis. DetectionFault from
    field extraction is propagated.
    """
    async with resolver.application_page(job_url) as resolution:
        if resolution.page is None:
            return AuditReport(job_url=job_url, resolved_url=resolution.url, ats=resolution.ats)

        touched = await fill_pass(resolution.page)
        fields = await detect_fields(resolution.page)
        analysis = analyze(fields, touched or [])
        logger.info("%s: %s", resolution.url, summarize(analysis))

        return AuditReport(
            job_url=job_url,
            resolved_url=resolution.url,
            ats=resolution.ats,
            analysis=analysis,
        )


def _print_detect(urls):
    for url in urls:
        match = detect_ats(url)
        if match:
            board = f" board={match.board_id}" if match.board_id else ""
            print(f"✅ {url}\n   {match.ats}{board}")
        elif is_ats_url(url):
            print(f"✅ {url}\n   application path (unknown ATS)")
        else:
            print(f"❌ {url}\n   not an ATS URL")


def _print_report(report: AuditReport) -> bool:
    print(f"\n{report.job_url}")
    print(f"   Resolved: {report.resolved_url}")
    if report.analysis is None:
        print(f"   ❌ {report.summary}")
        return False
    for f in report.analysis.available_fields:
        req = "*" if f.required else " "
        mark = "✅" if f.filled else "  "
        print(f"   {mark}{req} {(f.label or f.placeholder or '')[:30]:<30} | {f.selector:<30} | {f.type}")
    print(f"   {report.summary}")
    return True


async def _run(args) -> int:
    async with BrowserSession() as session:
        resolver = AtsResolver(session)

        if args.command == "resolve":
            results = await resolver.resolve_many(args.urls)
            for url, resolved in results.items():
                if resolved is None:
                    print(f"❌ {url}\n   navigation failed")
                elif resolved == url:
                    print(f"⚠️ {url}\n   no ATS found, apply on posting page")
                else:
                    print(f"✅ {url}\n   → {resolved}")
            return 0

        # One at a time: each audit holds its tab open through detection
        failed = 0
        for url in args.urls:
            report = await audit_application(resolver, url)
            if not _print_report(report):
                failed += 1
        if len(args.urls) > 1:
            print(f"\nAudited {len(args.urls) - failed}/{len(args.urls)} postings")
        return 1 if failed else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Resolve job postings to ATS forms and audit fill rate")
    parser.add_argument("command", choices=["detect", "resolve", "audit"])
    parser.add_argument("urls", nargs="+")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "detect":
        _print_detect(args.urls)
        return 0

    try:
        return asyncio.run(_run(args))
    except BrowserUnavailable as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
