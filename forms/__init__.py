"""
Application form detection and fill-rate auditing.

Usage:
    from forms import detect_fields, analyze, summarize

    fields = await detect_fields(page)
    analysis = analyze(fields, filled_selectors)
    print(summarize(analysis))   # Filled 3/5 fields (60%)
"""

from .fields import DetectedField, FormAnalysis
from .detector import detect_fields, build_fields, find_field_by_label, FieldMatch
from .auditor import analyze, summarize

__all__ = [
    "DetectedField",
    "FormAnalysis",
    "FieldMatch",
    "detect_fields",
    "build_fields",
    "find_field_by_label",
    "analyze",
    "summarize",
]
