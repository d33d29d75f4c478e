# Browser automation configuration

import os
from pathlib import Path

from dotenv import load_dotenv

# Directories
BROWSER_DIR = Path(__file__).parent
PROJECT_DIR = BROWSER_DIR.parent

env_path = PROJECT_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Timeouts (milliseconds)
NAVIGATION_TIMEOUT_MS = int(os.getenv("ATS_NAV_TIMEOUT_MS", "30000"))
CLICK_NAVIGATION_TIMEOUT_MS = int(os.getenv("ATS_CLICK_TIMEOUT_MS", "10000"))

# Browser settings
USER_AGENT = os.getenv(
    "ATS_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

BROWSER_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-blink-features=AutomationControlled',
]

# Known Chrome/Chromium install locations (first existing path wins).
# Playwright's bundled Chromium is appended at launch time.
CHROME_PATHS = [
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/snap/bin/chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
]
if os.getenv("CHROME_PATH"):
    CHROME_PATHS.insert(0, os.getenv("CHROME_PATH"))

# Apply affordance fallbacks (order matters - try first ones first).
# Links straight to a known ATS domain are tried before these, see resolver.
APPLY_BUTTON_SELECTORS = [
    'a:has-text("Apply")',
    'button:has-text("Apply")',
    'a[href*="apply"]',
    '.apply-button',
    '.job-apply',
    '[class*="apply"]',
]

# How filled selectors are matched against detected fields:
#   bounded   - containment must not start/end inside an identifier (#id != #identifier)
#   substring - plain bidirectional substring test
MATCH_MODES = ("bounded", "substring")


def validate_match_mode(mode: str) -> str:
    if mode not in MATCH_MODES:
        raise ValueError(f"Unknown match mode: {mode!r} (expected one of {MATCH_MODES})")
    return mode


# A bad ATS_MATCH_MODE fails at import, not on the first analyze() call
MATCH_MODE = validate_match_mode(os.getenv("ATS_MATCH_MODE", "bounded"))

# Max tabs resolving at once in resolve_many()
RESOLVE_CONCURRENCY = int(os.getenv("ATS_RESOLVE_CONCURRENCY", "4"))
