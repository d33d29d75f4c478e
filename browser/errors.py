"""Exceptions raised by the browser automation layer."""


class AutomationError(Exception):
    """Base exception for browser automation."""
    pass


class BrowserUnavailable(AutomationError):
    """No browser executable found at any known path."""
    pass


class NavigationFault(AutomationError):
    """Top-level page load failed or timed out."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}" if reason else f"Navigation to {url} failed")


class CandidateProbeFailure(AutomationError):
    """A single apply-affordance probe failed (lookup, click or post-click wait)."""

    def __init__(self, selector: str, reason: str = ""):
        self.selector = selector
        self.reason = reason
        super().__init__(f"Probe {selector!r} failed: {reason}")


class DetectionFault(AutomationError):
    """Form field extraction failed, e.g. the page was torn down mid-read."""
    pass
