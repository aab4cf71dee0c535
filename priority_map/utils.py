import json
import logging
from typing import Any, List

from .core import PriorityMap

log = logging.getLogger("priority_map")


def parse_priorities(text: str) -> List[int]:
    """Parse "3,1, 2" into [3, 1, 2]. Empty text gives an empty list."""
    if not text or not text.strip(): return []
    return [int(part) for part in text.split(',')]


def parse_element(text: str, as_json: bool = False) -> Any:
    if not as_json:
        return text
    return json.loads(text)


def descending(a: int, b: int) -> int:
    """Comparator that puts larger priorities first, making the smallest one highest."""
    return (a < b) - (a > b)


def format_map(pmap: PriorityMap, limit: int = 10) -> str:
    """Render one line per bucket in iteration order, highest last.

    Buckets longer than `limit` are cut and suffixed with the number of
    hidden elements. A non-positive limit shows everything.
    """
    lines = []
    for priority, size in pmap.priority_counts().items():
        shown = pmap.elements_at(priority)
        if 0 < limit < size:
            shown = shown[:limit]
        text = ", ".join(json.dumps(e) for e in shown)
        if len(shown) < size:
            text += f", ... (+{size - len(shown)})"
        lines.append(f"{priority:>6}: [{text}]")
    if not lines:
        return "(empty)"
    return "\n".join(lines)
