"""
stagefuzz.formats — Convert fixtures to and from plain data.

Supported conversions:
    • Collection ↔ Python objects (lists / dicts / ints / bools)
    • Collection ↔ JSON strings

Shape:
    [
        {"id": 3, "updated": false, "elements": [[0, false], [4, true]]},
        ...
    ]

A failing randomized cycle can be dumped with to_json and replayed later
with from_json.
"""

import json
from typing import Any

from .models import Collection, Element, Section


# ═══════════════════════════════════════════════════════════════════
#  PYTHON OBJECTS ↔ COLLECTIONS
# ═══════════════════════════════════════════════════════════════════

def to_python(collection: Collection) -> list[dict[str, Any]]:
    """Plain-data form of a Collection."""
    return [
        {
            "id": section.model.id,
            "updated": section.model.is_updated,
            "elements": [[e.id, e.is_updated] for e in section.elements],
        }
        for section in collection.sections
    ]


def from_python(obj: list) -> Collection:
    """
    Inverse of to_python:
        from_python(to_python(c)) == c

    The "updated" keys and element flags are optional and default to
    False, so hand-written fixtures can be terse:
        [{"id": 1, "elements": [0, 1, 2]}]
    """
    if not isinstance(obj, list):
        raise TypeError(f"Expected a list of sections, got {type(obj).__name__}")
    return Collection(tuple(_section(item) for item in obj))


def _section(obj: dict) -> Section:
    model = Element(int(obj["id"]), bool(obj.get("updated", False)))
    return Section(model, tuple(_element(e) for e in obj.get("elements", ())))


def _element(obj: Any) -> Element:
    if isinstance(obj, bool):
        raise TypeError("Element must be an id or an [id, updated] pair, got a bool")
    if isinstance(obj, int):
        return Element(obj)
    if isinstance(obj, (list, tuple)) and len(obj) == 2:
        return Element(int(obj[0]), bool(obj[1]))
    raise TypeError(f"Element must be an id or an [id, updated] pair, got {obj!r}")


# ═══════════════════════════════════════════════════════════════════
#  JSON STRINGS ↔ COLLECTIONS
# ═══════════════════════════════════════════════════════════════════

def from_json(text: str) -> Collection:
    """Parse a JSON fixture."""
    return from_python(json.loads(text))


def to_json(collection: Collection, **kwargs) -> str:
    """Serialize a Collection to a JSON fixture."""
    return json.dumps(to_python(collection), **kwargs)
