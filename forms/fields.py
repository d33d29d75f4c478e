"""
Form data model: detected fields and fill-rate analysis.

Records are immutable. The auditor reclassifies a field by making a copy
with dataclasses.replace(), never by mutating the detected one.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

FIELD_TYPES = ("text", "email", "tel", "file", "textarea", "select")


@dataclass(frozen=True)
class DetectedField:
    """One fillable control on a page."""

    selector: str
    type: str = "text"          # text, email, tel, file, textarea, select, other
    name: Optional[str] = None
    id: Optional[str] = None
    placeholder: Optional[str] = None
    label: Optional[str] = None
    label_source: Optional[str] = None   # for-attribute, label-wrapper
    required: bool = False
    value: Optional[str] = None
    filled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FormAnalysis:
    """Filled/missed partition of one detection pass."""

    available_fields: List[DetectedField] = field(default_factory=list)
    filled_fields: List[DetectedField] = field(default_factory=list)
    missed_fields: List[DetectedField] = field(default_factory=list)

    @property
    def total_fields(self) -> int:
        return len(self.available_fields)

    @property
    def filled_count(self) -> int:
        return len(self.filled_fields)

    @property
    def missed_count(self) -> int:
        return len(self.missed_fields)

    @property
    def fill_rate(self) -> int:
        """Filled percentage, rounded half up. 0 for an empty form."""
        if self.total_fields == 0:
            return 0
        return int(100 * self.filled_count / self.total_fields + 0.5)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available_fields": [f.to_dict() for f in self.available_fields],
            "filled_fields": [f.to_dict() for f in self.filled_fields],
            "missed_fields": [f.to_dict() for f in self.missed_fields],
            "total_fields": self.total_fields,
            "filled_count": self.filled_count,
            "missed_count": self.missed_count,
            "fill_rate": self.fill_rate,
        }
