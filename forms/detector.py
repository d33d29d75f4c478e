"""
Form Field Detector - enumerate the fillable surface of a page.

Two steps:
1. detect_fields(page) runs one read-only script in the page and gets back
   a plain descriptor per input/textarea/select, in document order.
2. build_fields(descriptors) turns descriptors into DetectedField records.
   It is pure Python, so it can be tested against synthetic descriptors
   without a browser.

Descriptor keys: tag, type (DOM property: "textarea", "select-one", "text" when
unset), type_attr (the literal type attribute, "" when absent), id, name,
placeholder, required, value, for_label (text of label[for=id]),
wrapper_label (text of the enclosing label).
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from playwright.async_api import Error as PlaywrightError

from browser.errors import DetectionFault
from .fields import FIELD_TYPES, DetectedField

logger = logging.getLogger(__name__)

# Controls that carry no applicant data
SKIP_INPUT_TYPES = ("hidden", "submit", "button")

EXTRACT_FIELDS_SCRIPT = """
() => Array.from(document.querySelectorAll('input, textarea, select')).map(el => {
    let forLabel = '';
    if (el.id) {
        const labelEl = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
        if (labelEl) forLabel = (labelEl.textContent || '').trim();
    }
    const wrapper = el.closest('label');
    return {
        tag: el.tagName.toLowerCase(),
        type: el.type || '',
        type_attr: el.getAttribute('type') || '',
        id: el.id || '',
        name: el.getAttribute('name') || '',
        placeholder: el.getAttribute('placeholder') || '',
        required: !!el.required || el.hasAttribute('required'),
        value: el.value || '',
        for_label: forLabel,
        wrapper_label: wrapper ? (wrapper.textContent || '').trim() : '',
    };
})
"""

_CSS_IDENT_RE = re.compile(r"^-?[_a-zA-Z][_a-zA-Z0-9-]*$")

# Label lookup strategies, most reliable first
LABEL_STRATEGIES = (
    ("for-attribute", 1.0),
    ("label-wrapper", 0.95),
    ("placeholder", 0.7),
)


@dataclass(frozen=True)
class FieldMatch:
    """Result of find_field_by_label()."""
    field: DetectedField
    method: str
    confidence: float


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_selector(tag: str, input_type: str = "", element_id: str = "", name: str = "") -> str:
    """
    Canonical locator for a control: id > name > tag+type > tag.

    Ids that aren't plain CSS identifiers (React's ":r3:", Greenhouse's
    "job_application[answers][0]") can't be written as #id, so they fall
    back to an attribute selector on id.
    """
    if element_id:
        if _CSS_IDENT_RE.match(element_id):
            return f"#{element_id}"
        return f'[id="{_quote(element_id)}"]'
    if name:
        return f'[name="{_quote(name)}"]'
    if input_type:
        return f'{tag}[type="{input_type}"]'
    return tag


def _field_type(tag: str, input_type: str) -> str:
    if tag in ("textarea", "select"):
        return tag
    kind = (input_type or "text").lower()
    return kind if kind in FIELD_TYPES else "other"


def build_field(desc: Dict[str, Any]) -> Optional[DetectedField]:
    """One descriptor -> DetectedField, or None for non-data controls."""
    tag = (desc.get("tag") or "input").lower()
    input_type = (desc.get("type") or "").lower()
    # Selectors match attributes, so only an explicit type attribute goes into one
    type_attr = desc.get("type_attr") or ""
    if input_type in SKIP_INPUT_TYPES:
        return None

    element_id = desc.get("id") or ""
    name = desc.get("name") or ""
    value = desc.get("value") or ""

    label, label_source = None, None
    for_label = (desc.get("for_label") or "").strip()
    wrapper_label = (desc.get("wrapper_label") or "").strip()
    if for_label:
        label, label_source = for_label, "for-attribute"
    elif wrapper_label:
        label, label_source = wrapper_label, "label-wrapper"

    return DetectedField(
        selector=build_selector(tag, type_attr, element_id, name),
        type=_field_type(tag, input_type),
        name=name or None,
        id=element_id or None,
        placeholder=desc.get("placeholder") or None,
        label=label,
        label_source=label_source,
        required=bool(desc.get("required")),
        value=value or None,
        filled=bool(value),
    )


def build_fields(descriptors: Iterable[Dict[str, Any]]) -> List[DetectedField]:
    """Descriptors in document order -> fillable fields in document order."""
    fields = []
    for desc in descriptors:
        detected = build_field(desc)
        if detected is not None:
            fields.append(detected)
    return fields


async def detect_fields(page) -> List[DetectedField]:
    """
    Enumerate every fillable field on a loaded page.

    Read-only: nothing on the page is touched. Raises DetectionFault if the
    extraction itself fails, since an empty list would read as "no fields".
    """
    try:
        descriptors = await page.evaluate(EXTRACT_FIELDS_SCRIPT)
    except PlaywrightError as e:
        raise DetectionFault(f"Field extraction failed on {page.url}: {e}") from e

    fields = build_fields(descriptors or [])
    logger.info("Detected %d fields on %s", len(fields), page.url)
    return fields


def find_field_by_label(
    fields: Iterable[DetectedField],
    label_text: str,
    field_type: Optional[str] = None,
) -> Optional[FieldMatch]:
    """
    Find a field by its visible label, like a human would.

    Useful on forms with generated ids (Ashby etc). Strategies are tried in
    LABEL_STRATEGIES order across all fields before falling to the next one.
    """
    needle = (label_text or "").lower().strip()
    if not needle:
        return None

    candidates = [f for f in fields if field_type is None or f.type == field_type]
    for method, confidence in LABEL_STRATEGIES:
        for f in candidates:
            if method == "placeholder":
                text = f.placeholder
            else:
                text = f.label if f.label_source == method else None
            if text and needle in text.lower():
                return FieldMatch(field=f, method=method, confidence=confidence)
    return None
