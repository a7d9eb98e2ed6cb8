"""
Annotation Summary Extraction

Pulls dimensions and text notes out of a photo's annotations with stable
callout ids (A, B, ... Z, AA, AB, ...) for reports and exports.
"""
from dataclasses import dataclass, field
import re
from typing import Any, Dict, List, Mapping, Optional

from .models import AnnotationSet

CALLOUT_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MAX_SUMMARY_LENGTH = 200
MAX_NOTE_LENGTH = 50

_NON_NUMERIC = re.compile(r"[^\d.\-]")
_LEADING_NUMBER = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)")


@dataclass
class ExtractedDimension:
    callout_id: str
    value: str
    numeric_value: Optional[float]
    unit: str
    comment: str


@dataclass
class ExtractedNote:
    callout_id: str
    text: str


@dataclass
class ExtractedAnnotations:
    """Callout listing and counts for one photo"""
    dimensions: List[ExtractedDimension] = field(default_factory=list)
    notes: List[ExtractedNote] = field(default_factory=list)
    dimensions_summary: str = ""
    notes_summary: str = ""
    tool_counts: Dict[str, int] = field(default_factory=lambda: {
        "rectangles": 0, "arrows": 0, "lines": 0, "texts": 0, "dimensions": 0,
    })

    @property
    def dimension_count(self) -> int:
        return len(self.dimensions)

    @property
    def note_count(self) -> int:
        return len(self.notes)


def callout_id(index: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA', 701 -> 'ZZ', 702 -> 'AAA'"""
    letters = ""
    while index >= 0:
        letters = CALLOUT_LETTERS[index % 26] + letters
        index = index // 26 - 1
    return letters


def parse_numeric_value(value: str) -> Optional[float]:
    """
    Parse the number in a typed measurement

    Everything except digits, '.' and '-' is discarded first, so
    "12.5 ft" gives 12.5 and "N/A" gives None.
    """
    if not value or not isinstance(value, str):
        return None
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", value))
    return float(match.group(0)) if match else None


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


def _items(data: Any, name: str) -> List[Any]:
    if isinstance(data, Mapping):
        items = data.get(name)
        return list(items) if isinstance(items, list) else []
    return list(getattr(data, name))


def _field(item: Any, key: str, attr: Optional[str] = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, attr or key, None)


def extract_annotation_summary(data: Any) -> ExtractedAnnotations:
    """
    Build the callout summary for a photo's annotations

    Args:
        data: StoredAnnotations, DisplayAnnotations or a raw payload mapping

    Returns:
        ExtractedAnnotations (empty for anything else)
    """
    result = ExtractedAnnotations()
    if not isinstance(data, (Mapping, AnnotationSet)):
        return result

    result.tool_counts = {
        "rectangles": len(_items(data, "rects")),
        "arrows": len(_items(data, "arrows")),
        "lines": len(_items(data, "lines")),
        "texts": len(_items(data, "texts")),
        "dimensions": len(_items(data, "dimensions")),
    }

    dimensions = sorted(_items(data, "dimensions"), key=lambda d: _field(d, "id") or "")
    for i, dim in enumerate(dimensions):
        value = _field(dim, "value") or ""
        result.dimensions.append(ExtractedDimension(
            callout_id=callout_id(i),
            value=value,
            numeric_value=parse_numeric_value(value),
            unit=_field(dim, "unit") or "",
            comment=_field(dim, "comment") or "",
        ))

    notes = sorted(_items(data, "texts"), key=lambda t: _field(t, "id") or "")
    for i, note in enumerate(notes):
        result.notes.append(ExtractedNote(callout_id=callout_id(i), text=_field(note, "text") or ""))

    if result.dimensions:
        parts = []
        for dim in result.dimensions:
            value = f"{dim.value}{' ' + dim.unit if dim.unit else ''}" if dim.value else "N/A"
            parts.append(f"{dim.callout_id}: {value}")
        result.dimensions_summary = _truncate("; ".join(parts), MAX_SUMMARY_LENGTH)

    if result.notes:
        parts = [
            f"Note {i + 1}: {_truncate(note.text, MAX_NOTE_LENGTH)}"
            for i, note in enumerate(result.notes)
        ]
        result.notes_summary = _truncate("; ".join(parts), MAX_SUMMARY_LENGTH)

    return result
