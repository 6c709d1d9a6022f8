"""
stagefuzz.planner — Randomized mutation planner
===============================================

Derives a target Collection from a source Collection by running
randomized edit passes at two levels.  The source is never touched; the
target is built by copy-then-edit on plain lists and frozen at the end.

PASS ORDER (section level)
──────────────────────────

    1. delete   count ∈ [0, n/4)           positions: shrinking bound
    2. update   count ∈ [0, remaining/4)   toggle header flag
    3. move     count ∈ [0, remaining/4)   swap pairs
    4. insert   count ∈ [floor, n/4)       positions: growing bound

    floor = deleted count while n is below the baseline section count,
    so a collection that lost sections regrows toward its baseline.

    Inserted sections get ids max(source ids) + 1 + j and a fresh,
    shuffled run of elements.

PASS ORDER (element level)
──────────────────────────

Every section that survives step 1 gets its own delete / update / move /
insert pass.  Sections inserted in step 4 arrive fully formed and are
not mutated.  Element passes only touch their own section, so they
commute with section update/move/insert; they run right after the
section deletes, while positions still match the post-delete order the
plan is keyed by.

Inserted element ids are max(pre-mutation ids) + 1 + j, past every id
the section held, so they cannot collide with a survivor.

Sampling and execution are split:

    draw(source)        → MutationPlan     (all the randomness)
    apply(source, plan) → Collection       (deterministic)

so a test can hand-build a MutationPlan and force exact edits.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import PlannerConfig
from .errors import PlanError
from .models import Collection, Element, Section, ensure_unique
from .sampling import (
    growing_positions, random_count, sample_positions,
    shrinking_positions, swap_pairs,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PLAN TYPES
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EditPass:
    """
    Positions for one level of one pass, in consumption order.

    deletes are against the shrinking list, updates and moves against the
    post-delete list, inserts against the growing list.
    """
    deletes: tuple[int, ...] = ()
    updates: tuple[int, ...] = ()
    moves: tuple[tuple[int, int], ...] = ()
    inserts: tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.deletes or self.updates or self.moves or self.inserts)

    def counts(self) -> tuple[int, int, int, int]:
        return len(self.deletes), len(self.updates), len(self.moves), len(self.inserts)


@dataclass(frozen=True)
class MutationPlan:
    """
    Everything needed to turn one source into one target.

    Attributes:
        sections:     section-level pass
        elements:     one element pass per section surviving the section
                      deletes, in post-delete order (missing tail = no edits)
        new_sections: the sections to insert, one per sections.inserts entry
    """
    sections: EditPass = field(default_factory=EditPass)
    elements: tuple[EditPass, ...] = ()
    new_sections: tuple[Section, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.sections.is_empty and all(p.is_empty for p in self.elements)


# ═══════════════════════════════════════════════════════════════════
#  PLANNER
# ═══════════════════════════════════════════════════════════════════

class MutationPlanner:
    """Draws and applies MutationPlans using one injected random.Random."""

    def __init__(self, config: Optional[PlannerConfig] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or PlannerConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)

    def plan(self, source: Collection) -> Collection:
        """
        Derive a randomized target from `source`.

        An empty source yields a fresh baseline instead.
        """
        if not source.sections:
            target = self.baseline()
            logger.debug(
                f"Empty source; generated baseline of {len(target)} sections, "
                f"{target.element_count()} elements"
            )
            return target
        return self.apply(source, self.draw(source))

    def baseline(self) -> Collection:
        """default_section_count sections with shuffled distinct ids."""
        ids = list(range(self.config.default_section_count))
        self.rng.shuffle(ids)
        return Collection(tuple(self._random_section(section_id) for section_id in ids))

    def draw(self, source: Collection) -> MutationPlan:
        """Sample every count and position for one planning cycle."""
        section_pass = self._draw_pass(
            len(source.sections), regrow_toward=self.config.default_section_count
        )

        survivors = list(source.sections)
        for index in section_pass.deletes:
            del survivors[index]

        element_passes = tuple(self._draw_pass(len(s.elements)) for s in survivors)

        first_id = _next_id(source.section_ids())
        new_sections = tuple(
            self._random_section(first_id + j) for j in range(len(section_pass.inserts))
        )

        logger.debug(
            f"Drew section pass d/u/m/i={section_pass.counts()} over "
            f"{len(source.sections)} sections, {len(element_passes)} element passes"
        )
        return MutationPlan(section_pass, element_passes, new_sections)

    def apply(self, source: Collection, plan: MutationPlan) -> Collection:
        """
        Execute `plan` against a copy of `source`.

        Raises PlanError for any position invalid at the moment it is used,
        and DuplicateIdentifierError if the result breaks the invariants.
        """
        if len(plan.new_sections) != len(plan.sections.inserts):
            raise PlanError(
                "section insert", len(plan.new_sections), len(plan.sections.inserts),
                detail="new sections do not match insert positions",
            )

        sections = list(source.sections)
        _delete(sections, plan.sections.deletes, "section delete")

        if len(plan.elements) > len(sections):
            raise PlanError(
                "element pass", len(plan.elements) - 1, len(sections),
                detail="has no surviving section",
            )
        for index, edit in enumerate(plan.elements):
            if not edit.is_empty:
                sections[index] = _mutate_elements(sections[index], edit)

        _edit(
            sections, plan.sections,
            toggle=lambda s: s.with_model(s.model.toggled()),
            make=lambda j: plan.new_sections[j],
            kind="section",
        )

        target = Collection(tuple(sections))
        ensure_unique(target, "target")
        return target

    def _draw_pass(self, size: int, regrow_toward: Optional[int] = None) -> EditPass:
        rng = self.rng
        divisor = self.config.mutation_divisor

        delete_count = random_count(rng, size // divisor)
        remaining = size - delete_count
        update_count = random_count(rng, remaining // divisor)
        move_count = random_count(rng, remaining // divisor)
        floor = delete_count if regrow_toward is not None and regrow_toward > size else 0
        insert_count = random_count(rng, size // divisor, floor=floor)

        return EditPass(
            deletes=tuple(shrinking_positions(rng, size, delete_count)),
            updates=tuple(sample_positions(rng, remaining, update_count)),
            moves=tuple(swap_pairs(rng, remaining, move_count)),
            inserts=tuple(growing_positions(rng, remaining, insert_count)),
        )

    def _random_section(self, section_id: int) -> Section:
        count = random_count(self.rng, self.config.default_element_count)
        ids = list(range(count))
        self.rng.shuffle(ids)
        return Section(Element(section_id), tuple(Element(i) for i in ids))


def plan(source: Collection, rng: Optional[random.Random] = None,
         config: Optional[PlannerConfig] = None) -> Collection:
    """One-shot plan(source) with a throwaway MutationPlanner."""
    return MutationPlanner(config, rng).plan(source)


# ═══════════════════════════════════════════════════════════════════
#  PASS EXECUTION
# ═══════════════════════════════════════════════════════════════════

def _next_id(ids: list[int]) -> int:
    return max(ids) + 1 if ids else 0


def _require(position: int, size: int, kind: str) -> None:
    # Negative positions would silently wrap on a Python list.
    if not 0 <= position < size:
        raise PlanError(kind, position, size)


def _delete(items: list, positions: tuple[int, ...], kind: str) -> None:
    for position in positions:
        _require(position, len(items), kind)
        del items[position]


def _edit(items: list, edit: EditPass, toggle: Callable, make: Callable[[int], object],
          kind: str) -> None:
    """Update, move and insert steps of a pass (deletes already applied)."""
    for position in edit.updates:
        _require(position, len(items), f"{kind} update")
        items[position] = toggle(items[position])

    for a, b in edit.moves:
        _require(a, len(items), f"{kind} move")
        _require(b, len(items), f"{kind} move")
        items[a], items[b] = items[b], items[a]

    for j, position in enumerate(edit.inserts):
        # Appending at len(items) is a valid insertion point.
        _require(position, len(items) + 1, f"{kind} insert")
        items.insert(position, make(j))


def _mutate_elements(section: Section, edit: EditPass) -> Section:
    first_id = _next_id(section.element_ids())
    items = list(section.elements)
    _delete(items, edit.deletes, "element delete")
    _edit(
        items, edit,
        toggle=Element.toggled,
        make=lambda j: Element(first_id + j),
        kind="element",
    )
    return section.with_elements(items)
