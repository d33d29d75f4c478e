"""
ATS Detector - recognise application-tracking-system URLs

Использование:
1. is_ats_url(url) - is this URL an ATS application page (known host or apply path)?
2. detect_ats(url) - which ATS and which board, e.g. {"ats": "lever", "board_id": "acme"}
3. ats_link_selectors() - CSS selectors for links pointing at a known ATS host
"""
import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

# Board-level patterns, matched against host + path. First match wins.
ATS_PATTERNS = {
    "greenhouse": [
        r"boards\.greenhouse\.io/([a-zA-Z0-9_-]+)",
        r"job-boards\.greenhouse\.io/([a-zA-Z0-9_-]+)",
        r"greenhouse\.io.*?/([a-zA-Z0-9_-]+)/jobs",
    ],
    "lever": [
        r"jobs\.lever\.co/([a-zA-Z0-9_-]+)",
    ],
    "ashby": [
        r"jobs\.ashbyhq\.com/([a-zA-Z0-9_.-]+)",
    ],
    "smartrecruiters": [
        r"jobs\.smartrecruiters\.com/([a-zA-Z0-9_-]+)",
        r"careers\.smartrecruiters\.com/([a-zA-Z0-9_-]+)",
    ],
    "workday": [
        r"([a-zA-Z0-9_-]+)\.wd\d+\.myworkdayjobs\.com",
    ],
    "workable": [
        r"apply\.workable\.com/([a-zA-Z0-9_-]+)",
        r"([a-zA-Z0-9_-]+)\.workable\.com",
    ],
    "breezy": [
        r"([a-zA-Z0-9_-]+)\.breezy\.hr",
    ],
    "recruitee": [
        r"([a-zA-Z0-9_-]+)\.recruitee\.com",
    ],
    "personio": [
        r"([a-zA-Z0-9_-]+)\.jobs\.personio\.(?:de|com)",
    ],
    "bamboohr": [
        r"([a-zA-Z0-9_-]+)\.bamboohr\.com",
    ],
}

# Hosting domains, for URLs that don't carry a recognisable board
ATS_DOMAINS = {
    "greenhouse": ["greenhouse.io"],
    "lever": ["lever.co"],
    "ashby": ["ashbyhq.com"],
    "smartrecruiters": ["smartrecruiters.com"],
    "workday": ["myworkdayjobs.com"],
    "workable": ["workable.com"],
    "breezy": ["breezy.hr"],
    "recruitee": ["recruitee.com"],
    "personio": ["personio.de", "personio.com"],
    "bamboohr": ["bamboohr.com"],
}

# Path segment that marks an application form on any host
APPLICATION_PATH_RE = re.compile(r"(?:^|/)(?:apply|applications?)(?=$|[/\-_.?])", re.IGNORECASE)

_COMPILED_PATTERNS = {
    ats: [re.compile(p, re.IGNORECASE) for p in patterns]
    for ats, patterns in ATS_PATTERNS.items()
}


@dataclass(frozen=True)
class AtsMatch:
    """A URL recognised as belonging to a known ATS."""
    ats: str
    board_id: str = ""
    board_url: str = ""


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def detect_ats(url: str) -> Optional[AtsMatch]:
    """
    Identify the ATS platform behind a URL.

    Returns AtsMatch(ats="greenhouse", board_id="openai", board_url=...) or None.
    Hosts are matched exactly or as subdomains, never as free text, so a
    job page linking to ?ref=lever.co is not mistaken for Lever.
    """
    if not url:
        return None
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host:
        return None

    for ats, domains in ATS_DOMAINS.items():
        if not any(_host_matches(host, d) for d in domains):
            continue
        target = host + parsed.path
        for pattern in _COMPILED_PATTERNS.get(ats, []):
            match = pattern.search(target)
            if match:
                board_id = match.group(1).lower()
                return AtsMatch(ats=ats, board_id=board_id, board_url=build_board_url(ats, board_id))
        return AtsMatch(ats=ats)

    return None


def is_application_path(url: str) -> bool:
    """True if the URL path (or an apply.* host) marks an application form."""
    parsed = urlparse(url or "")
    if (parsed.hostname or "").lower().startswith("apply."):
        return True
    return bool(APPLICATION_PATH_RE.search(parsed.path or ""))


def is_ats_url(url: str) -> bool:
    """Fingerprint check: known ATS host or an application-form path."""
    return detect_ats(url) is not None or is_application_path(url)


def build_board_url(ats: str, board_id: str) -> str:
    """Builds the public board URL for a detected ATS board"""
    urls = {
        "greenhouse": f"https://boards.greenhouse.io/{board_id}",
        "lever": f"https://jobs.lever.co/{board_id}",
        "ashby": f"https://jobs.ashbyhq.com/{board_id}",
        "smartrecruiters": f"https://jobs.smartrecruiters.com/{board_id}",
        "workday": "",
        "workable": f"https://apply.workable.com/{board_id}",
        "breezy": f"https://{board_id}.breezy.hr",
        "recruitee": f"https://{board_id}.recruitee.com",
        "personio": f"https://{board_id}.jobs.personio.de",
        "bamboohr": f"https://{board_id}.bamboohr.com/careers",
    }
    return urls.get(ats, "")


def ats_link_selectors() -> List[str]:
    """Selectors for links whose href points at a known ATS domain."""
    selectors = []
    for domains in ATS_DOMAINS.values():
        for domain in domains:
            selectors.append(f'a[href*="{domain}"]')
    return selectors
