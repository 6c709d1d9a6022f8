"""
stagefuzz.view — In-memory positional views
===========================================

A view holds mutable rows (one header plus a list of elements per
section) and applies Stages purely by position, the way a list widget
applies a batch update.  Content for inserts and updates is read from
`stage.data`, the way such a widget asks its data source for a cell.

After every stage the view compares itself with `stage.data`.  Any
divergence, or a path that does not exist, raises StageMismatchError.

ORDER OF APPLICATION INSIDE ONE STAGE
─────────────────────────────────────

    1. section deletes + move sources     (pre-stage positions, descending)
    2. section inserts + move targets     (post-stage positions, ascending)
    3. same two steps for elements, per section
    4. updates

Element paths address a section by its position after step 2.

    ListView      — applies and acknowledges synchronously
    DeferredView  — queues stages; each advance() applies one, like an
                    animated transition finishing on a later turn

A stage that fails is reported through the `on_failed` callback given to
reload() before the error is re-raised, so the sender can abandon the
script even when the failure surfaces later, inside advance().
"""

import logging
from collections import defaultdict, deque
from typing import Callable, Optional

from .changeset import EditOp, Stage
from .errors import StageMismatchError
from .models import Collection, Element, Section

logger = logging.getLogger(__name__)


class ListView:
    """Synchronous positional view."""

    def __init__(self, initial: Optional[Collection] = None):
        self._headers: list[Element] = []
        self._rows: list[list[Element]] = []
        self.stages_applied = 0
        if initial is not None:
            self.load(initial)

    def load(self, collection: Collection) -> None:
        """Replace everything without animation (a full reload)."""
        self._headers = [s.model for s in collection.sections]
        self._rows = [list(s.elements) for s in collection.sections]

    def snapshot(self) -> Collection:
        return Collection(tuple(
            Section(header, tuple(row)) for header, row in zip(self._headers, self._rows)
        ))

    def reload(self, stage: Stage, on_applied: Callable[[], None],
               on_failed: Optional[Callable[[BaseException], None]] = None) -> None:
        """Apply `stage` and acknowledge it, or report the failure and re-raise."""
        _apply_reporting(self, stage, on_failed)
        on_applied()

    def apply(self, stage: Stage) -> None:
        data = stage.data

        # Sections.
        removed = self._remove(
            self._headers, self._rows,
            deletes=[e.path[0] for e in stage.of(EditOp.SECTION_DELETE)],
            moves={e.path[0]: e.to[0] for e in stage.of(EditOp.SECTION_MOVE)},
            kind="section",
        )
        placements = list(removed)
        for entry in stage.of(EditOp.SECTION_INSERT):
            j = entry.path[0]
            fresh = _lookup(data.sections, j, "inserted section")
            placements.append((j, (fresh.model, list(fresh.elements))))
        for to, (header, row) in sorted(placements, key=lambda p: p[0]):
            _require(to, len(self._headers) + 1, "section insert")
            self._headers.insert(to, header)
            self._rows.insert(to, row)

        # Elements, grouped per section.
        element_ops: dict[int, dict[str, list]] = defaultdict(
            lambda: {"deletes": [], "moves": {}, "inserts": []}
        )
        for entry in stage.of(EditOp.ELEMENT_DELETE):
            element_ops[entry.path[0]]["deletes"].append(entry.path[1])
        for entry in stage.of(EditOp.ELEMENT_MOVE):
            if entry.to[0] != entry.path[0]:
                raise StageMismatchError(f"Cross-section move not supported: {entry!r}")
            element_ops[entry.path[0]]["moves"][entry.path[1]] = entry.to[1]
        for entry in stage.of(EditOp.ELEMENT_INSERT):
            element_ops[entry.path[0]]["inserts"].append(entry.path[1])

        for j, ops in sorted(element_ops.items()):
            _require(j, len(self._rows), "element section")
            row = self._rows[j]
            removed = self._remove(row, None, ops["deletes"], ops["moves"], kind="element")
            placements = list(removed)
            wanted = _lookup(data.sections, j, "section").elements
            for k in ops["inserts"]:
                placements.append((k, _lookup(wanted, k, "inserted element")))
            for to, element in sorted(placements, key=lambda p: p[0]):
                _require(to, len(row) + 1, "element insert")
                row.insert(to, element)

        # Updates.
        for entry in stage.of(EditOp.SECTION_UPDATE):
            j = entry.path[0]
            _require(j, len(self._headers), "section update")
            self._headers[j] = _lookup(data.sections, j, "updated section").model
        for entry in stage.of(EditOp.ELEMENT_UPDATE):
            j, k = entry.path
            _require(j, len(self._rows), "element update section")
            _require(k, len(self._rows[j]), "element update")
            self._rows[j][k] = _lookup(_lookup(data.sections, j, "section").elements, k,
                                       "updated element")

        self.stages_applied += 1
        shown = self.snapshot()
        if shown != data:
            raise StageMismatchError(
                f"View diverged after {stage!r}: showing {shown!r}, expected {data!r}"
            )
        logger.debug(f"Applied {stage!r}; view now {shown!r}")

    @staticmethod
    def _remove(items: list, twin: Optional[list], deletes: list[int], moves: dict[int, int],
                kind: str) -> list[tuple[int, object]]:
        """
        Remove deleted and moved-out positions, highest first.

        Returns (destination, item) for every moved item.  `twin` is a
        parallel list removed in lockstep (section rows beside headers).
        """
        doomed = set(deletes)
        if len(doomed) != len(deletes) or doomed.intersection(moves):
            raise StageMismatchError(f"{kind} position removed twice in one stage")
        carried = []
        for position in sorted(doomed.union(moves), reverse=True):
            _require(position, len(items), f"{kind} delete/move")
            item = items.pop(position)
            if twin is not None:
                item = (item, twin.pop(position))
            if position in moves:
                carried.append((moves[position], item))
        return carried


class DeferredView(ListView):
    """
    A view that acknowledges on a later turn.

    reload() only queues; advance() applies the oldest queued stage and
    fires its acknowledgement.
    """

    def __init__(self, initial: Optional[Collection] = None):
        self._queue: deque[tuple[Stage, Callable[[], None], Optional[Callable]]] = deque()
        super().__init__(initial)

    def load(self, collection: Collection) -> None:
        """Full reload; anything still queued is stale and dropped."""
        super().load(collection)
        self._queue.clear()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def reload(self, stage: Stage, on_applied: Callable[[], None],
               on_failed: Optional[Callable[[BaseException], None]] = None) -> None:
        self._queue.append((stage, on_applied, on_failed))

    def advance(self) -> bool:
        """Apply one queued stage.  Returns False when nothing was queued."""
        if not self._queue:
            return False
        stage, on_applied, on_failed = self._queue.popleft()
        _apply_reporting(self, stage, on_failed)
        on_applied()
        return True

    def drain(self) -> int:
        """Advance until idle; returns how many stages were applied."""
        count = 0
        while self.advance():
            count += 1
        return count


def _apply_reporting(view: ListView, stage: Stage,
                     on_failed: Optional[Callable[[BaseException], None]]) -> None:
    try:
        view.apply(stage)
    except Exception as exc:
        if on_failed is not None:
            on_failed(exc)
        raise


def _require(position: int, size: int, what: str) -> None:
    if not 0 <= position < size:
        raise StageMismatchError(f"{what} position {position} out of range for size {size}")


def _lookup(items, position: int, what: str):
    _require(position, len(items), what)
    return items[position]
