"""
Field Auditor - reconcile detected fields with what a fill pass touched.

The fill pass reports the selectors it wrote to. Those selectors are built
independently of the detector's, often at a different granularity
("#email" vs 'form input#email'), so matching is fuzzy:

  bounded (default)
      one selector contains the other, but the match may not start or end
      in the middle of an identifier ("#id" does not match "#identifier");
      or the id/name value a filled selector pins down ('[name="email"]')
      equals the field's id or name.
  substring
      plain bidirectional substring test. Over-counts on short ids.
"""

import re
from dataclasses import replace
from typing import Iterable, List, Optional, Set

from browser import config
from .fields import DetectedField, FormAnalysis

_ID_TOKEN_RE = re.compile(r"#([A-Za-z0-9_-]+)")
_ATTR_TOKEN_RE = re.compile(r"""\[\s*(?:id|name)\s*=\s*["']?([^"'\]]+?)["']?\s*\]""")


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "-_"


def _contains_bounded(haystack: str, needle: str) -> bool:
    start = haystack.find(needle)
    while start != -1:
        end = start + len(needle)
        left_ok = start == 0 or not _is_ident_char(needle[0]) or not _is_ident_char(haystack[start - 1])
        right_ok = end == len(haystack) or not _is_ident_char(needle[-1]) or not _is_ident_char(haystack[end])
        if left_ok and right_ok:
            return True
        start = haystack.find(needle, start + 1)
    return False


def locator_tokens(selector: str) -> Set[str]:
    """id/name values a selector pins down exactly: '#a', '[name="b"]' -> {a, b}"""
    tokens = set(_ID_TOKEN_RE.findall(selector))
    tokens.update(t.strip() for t in _ATTR_TOKEN_RE.findall(selector))
    return tokens


def selector_matches(field_selector: str, filled_selector: str, mode: str = "bounded") -> bool:
    """Containment test in either direction. Empty selectors never match."""
    if not field_selector or not filled_selector:
        return False
    if mode == "substring":
        return field_selector in filled_selector or filled_selector in field_selector
    return (
        _contains_bounded(filled_selector, field_selector)
        or _contains_bounded(field_selector, filled_selector)
    )


def field_was_touched(field: DetectedField, filled_selector: str, mode: str = "bounded") -> bool:
    if selector_matches(field.selector, filled_selector, mode):
        return True
    if mode == "substring":
        return False
    identifiers = {v for v in (field.id, field.name) if v}
    return bool(identifiers & locator_tokens(filled_selector))


def analyze(
    all_fields: Iterable[DetectedField],
    filled_selectors: Iterable[str],
    mode: Optional[str] = None,
) -> FormAnalysis:
    """
    Partition fields into filled/missed.

    A field is filled if it already had a value at detection time or any
    filled selector matches it. Every field lands in exactly one partition;
    available_fields holds the reclassified records in the original order.
    """
    mode = config.validate_match_mode(mode or config.MATCH_MODE)

    selectors = [s for s in filled_selectors if s]

    available: List[DetectedField] = []
    filled: List[DetectedField] = []
    missed: List[DetectedField] = []

    for f in all_fields:
        was_filled = f.filled or any(field_was_touched(f, s, mode) for s in selectors)
        record = replace(f, filled=was_filled)
        available.append(record)
        if was_filled:
            filled.append(record)
        else:
            missed.append(record)

    return FormAnalysis(available_fields=available, filled_fields=filled, missed_fields=missed)


def summarize(analysis: FormAnalysis) -> str:
    """Human-readable fill rate, e.g. 'Filled 3/5 fields (60%)'."""
    return f"Filled {analysis.filled_count}/{analysis.total_fields} fields ({analysis.fill_rate}%)"
