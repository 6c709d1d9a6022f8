"""
stagefuzz.changeset — Staged diffing engine
===========================================

Given a source and a target Collection, produce an EDIT SCRIPT: an ordered
list of Stages.  Each Stage is a batch that is safe to apply to a live,
positionally addressed list (no position in a batch is invalidated by
another operation in the same batch), and applying every Stage in order
turns a view of the source into a view of the target.


§1  MATCHING
────────────

    section identity   = section id
    element identity   = (section identity, element id)

Elements are only matched inside a matched section.  An element whose
section is deleted goes away with the section; an element of an inserted
section arrives with it.

Identity decides insert/delete/move.  Content (the flag) decides update.


§2  STAGES
──────────

Up to six stages, in this order; empty ones are dropped:

    1. ELEMENT_DELETE            paths = source positions
    2. SECTION_DELETE            paths = source positions
    3. SECTION_INSERT + MOVE     insert path = target position,
                                 move path = pre-stage position,
                                 move to   = target position
    4. SECTION_UPDATE            target positions
    5. ELEMENT_INSERT + MOVE     (section, item); section = target position,
                                 move path item = pre-stage position
    6. ELEMENT_UPDATE            target positions

Batch semantics inside one stage:

    • deletes and move sources address PRE-stage positions
    • inserts and move destinations address POST-stage positions
    • updates address the position at which they are applied

Moves are minimal: every matched item NOT on a longest increasing
subsequence of its old positions (taken in target order) is moved; the
rest keep their relative order and fill the remaining slots by
themselves.

Each Stage also carries `data`: the collection a view must show once the
stage is applied.  The last stage's data is the target.
"""

from bisect import bisect_left
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from .models import Collection, Section, ensure_unique


# ═══════════════════════════════════════════════════════════════════
#  EDIT SCRIPT TYPES
# ═══════════════════════════════════════════════════════════════════

class EditOp(Enum):
    """Kinds of positional operations."""
    SECTION_DELETE = auto()
    SECTION_INSERT = auto()
    SECTION_MOVE = auto()
    SECTION_UPDATE = auto()
    ELEMENT_DELETE = auto()
    ELEMENT_INSERT = auto()
    ELEMENT_MOVE = auto()
    ELEMENT_UPDATE = auto()

    @property
    def is_section(self) -> bool:
        return self.name.startswith("SECTION_")


@dataclass(frozen=True)
class EditEntry:
    """
    A single positional operation.

    path is (section,) for section ops and (section, item) for element ops.
    `to` is only set for moves.
    """
    op: EditOp
    path: tuple[int, ...]
    to: Optional[tuple[int, ...]] = None

    def __repr__(self) -> str:
        path_str = "/".join(str(p) for p in self.path)
        if self.to is not None:
            return f"{self.op.name} {path_str} → {'/'.join(str(p) for p in self.to)}"
        return f"{self.op.name} at {path_str}"


@dataclass(frozen=True)
class Stage:
    """One batch of the edit script plus the collection it leads to."""
    entries: tuple[EditEntry, ...]
    data: Collection

    def of(self, *ops: EditOp) -> list[EditEntry]:
        return [e for e in self.entries if e.op in ops]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[EditEntry]:
        return iter(self.entries)

    def __repr__(self) -> str:
        kinds: dict[str, int] = {}
        for entry in self.entries:
            kinds[entry.op.name] = kinds.get(entry.op.name, 0) + 1
        body = ", ".join(f"{k}={v}" for k, v in kinds.items())
        return f"Stage({body})"


# ═══════════════════════════════════════════════════════════════════
#  DIFF
# ═══════════════════════════════════════════════════════════════════

def diff(source: Collection, target: Collection) -> list[Stage]:
    """
    Compute the staged edit script from `source` to `target`.

    Raises DuplicateIdentifierError if either side breaks the identifier
    invariants; that is a contract error.
    Identical inputs give an empty script.
    """
    ensure_unique(source, "source")
    ensure_unique(target, "target")

    target_index = {s.model.id: j for j, s in enumerate(target.sections)}
    stages: list[Stage] = []

    # 1. Element deletes inside sections that survive.
    entries: list[EditEntry] = []
    trimmed: list[Section] = []
    for i, section in enumerate(source.sections):
        j = target_index.get(section.model.id)
        if j is None:
            trimmed.append(section)
            continue
        wanted = set(target.sections[j].element_ids())
        kept = []
        for k, element in enumerate(section.elements):
            if element.id in wanted:
                kept.append(element)
            else:
                entries.append(EditEntry(EditOp.ELEMENT_DELETE, (i, k)))
        trimmed.append(section.with_elements(kept))
    _emit(stages, entries, trimmed)

    # 2. Section deletes.
    entries = [
        EditEntry(EditOp.SECTION_DELETE, (i,))
        for i, section in enumerate(source.sections)
        if section.model.id not in target_index
    ]
    survivors = [s for s in trimmed if s.model.id in target_index]
    _emit(stages, entries, survivors)

    # 3. Section inserts and moves.
    old_position = {s.model.id: p for p, s in enumerate(survivors)}
    stable = _longest_increasing(
        [old_position[s.model.id] for s in target.sections if s.model.id in old_position]
    )
    entries = []
    placed: list[Section] = []
    for j, section in enumerate(target.sections):
        p = old_position.get(section.model.id)
        if p is None:
            entries.append(EditEntry(EditOp.SECTION_INSERT, (j,)))
            placed.append(section)
        else:
            if p not in stable:
                entries.append(EditEntry(EditOp.SECTION_MOVE, (p,), to=(j,)))
            placed.append(survivors[p])
    _emit(stages, entries, placed)

    # 4. Section header updates.
    entries = []
    headed: list[Section] = []
    for j, (section, wanted) in enumerate(zip(placed, target.sections)):
        if not section.is_content_equal(wanted):
            entries.append(EditEntry(EditOp.SECTION_UPDATE, (j,)))
        headed.append(section.with_model(wanted.model))
    _emit(stages, entries, headed)

    # 5. Element inserts and moves inside surviving sections.
    entries = []
    arranged: list[Section] = []
    for j, (section, wanted) in enumerate(zip(headed, target.sections)):
        if section.model.id not in old_position:
            arranged.append(section)
            continue
        old = section.elements
        old_item = {e.id: q for q, e in enumerate(old)}
        stable = _longest_increasing(
            [old_item[e.id] for e in wanted.elements if e.id in old_item]
        )
        elements = []
        for k, element in enumerate(wanted.elements):
            q = old_item.get(element.id)
            if q is None:
                entries.append(EditEntry(EditOp.ELEMENT_INSERT, (j, k)))
                elements.append(element)
            else:
                if q not in stable:
                    entries.append(EditEntry(EditOp.ELEMENT_MOVE, (j, q), to=(j, k)))
                elements.append(old[q])
        arranged.append(section.with_elements(elements))
    _emit(stages, entries, arranged)

    # 6. Element content updates.
    entries = [
        EditEntry(EditOp.ELEMENT_UPDATE, (j, k))
        for j, (section, wanted) in enumerate(zip(arranged, target.sections))
        for k, (old, new) in enumerate(zip(section.elements, wanted.elements))
        if not old.is_content_equal(new)
    ]
    _emit(stages, entries, target.sections)

    return stages


def _emit(stages: list[Stage], entries: list[EditEntry], sections) -> None:
    if entries:
        stages.append(Stage(tuple(entries), Collection(tuple(sections))))


def _longest_increasing(values: list[int]) -> set[int]:
    """
    Values on one longest strictly increasing subsequence.

    Patience sorting with back-pointers, O(n log n).
    """
    tails: list[int] = []        # index into values of the best tail per length
    tail_values: list[int] = []
    parents = [-1] * len(values)

    for idx, value in enumerate(values):
        k = bisect_left(tail_values, value)
        if k > 0:
            parents[idx] = tails[k - 1]
        if k == len(tails):
            tails.append(idx)
            tail_values.append(value)
        else:
            tails[k] = idx
            tail_values[k] = value

    result: set[int] = set()
    idx = tails[-1] if tails else -1
    while idx != -1:
        result.add(values[idx])
        idx = parents[idx]
    return result
