"""
Browser automation for resolving job postings to ATS application forms.

Usage:
    from browser import BrowserSession, AtsResolver

    async with BrowserSession() as session:
        resolver = AtsResolver(session)
        url = await resolver.resolve_application_url("https://...")
"""

from .errors import (
    AutomationError,
    BrowserUnavailable,
    NavigationFault,
    CandidateProbeFailure,
    DetectionFault,
)
from .session import BrowserSession, SessionState
from .resolver import AtsResolver, Resolution, ProbeOutcome, ProbeResult

__all__ = [
    "AutomationError",
    "BrowserUnavailable",
    "NavigationFault",
    "CandidateProbeFailure",
    "DetectionFault",
    "BrowserSession",
    "SessionState",
    "AtsResolver",
    "Resolution",
    "ProbeOutcome",
    "ProbeResult",
]
