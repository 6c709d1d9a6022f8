"""
stagefuzz.pipeline — Commit pipeline.

Hands (source, target) to a differ, feeds the resulting stages to a view
strictly one at a time, and reports the target as committed only after
the view has acknowledged the last stage.

A stage's positions are only valid once every earlier stage has landed,
so stage k+1 is never handed out before stage k is acknowledged.

If the view fails a stage, the script is abandoned: the view is reloaded
with the source (the state the caller still holds) and the error goes on
to whoever drove the view.  The caller can then start a fresh cycle.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .changeset import Stage, diff
from .errors import RefreshInProgressError, StageOrderError
from .models import Collection

logger = logging.getLogger(__name__)

Differ = Callable[[Collection, Collection], list[Stage]]


class View(Protocol):
    def reload(self, stage: Stage, on_applied: Callable[[], None],
               on_failed: Optional[Callable[[BaseException], None]] = None) -> None: ...

    def load(self, collection: Collection) -> None: ...


@dataclass
class _Script:
    stages: list[Stage]
    source: Collection
    target: Collection
    on_complete: Callable[[Collection], None]
    on_abandoned: Optional[Callable[[], None]] = None
    position: int = 0


class CommitPipeline:
    """Applies one edit script at a time to a view."""

    def __init__(self, view: View, differ: Differ = diff):
        self.view = view
        self.differ = differ
        self._script: Optional[_Script] = None

    @property
    def in_flight(self) -> bool:
        return self._script is not None

    def commit(self, source: Collection, target: Collection,
               on_complete: Callable[[Collection], None],
               on_abandoned: Optional[Callable[[], None]] = None) -> None:
        """
        Diff and start applying.

        Contract errors from the differ propagate before anything reaches
        the view.  `on_complete(target)` fires after the final
        acknowledgement, or immediately when the script is empty.
        `on_abandoned()` fires if the script is given up instead.
        """
        if self._script is not None:
            raise RefreshInProgressError()

        stages = list(self.differ(source, target))
        logger.info(
            f"Committing {len(stages)} stages "
            f"({len(source)} → {len(target)} sections)"
        )
        if not stages:
            on_complete(target)
            return

        script = self._script = _Script(stages, source, target, on_complete, on_abandoned)
        try:
            self._deliver(script)
        except Exception:
            # A view that raised without reporting through on_failed.
            if self._script is script:
                self._abandon(script)
            raise

    def abort(self) -> bool:
        """
        Give up the outstanding script and reload the view with its source.

        Returns False when nothing was in flight.
        """
        script = self._script
        if script is None:
            return False
        self._abandon(script)
        return True

    def _deliver(self, script: _Script) -> None:
        index = script.position
        stage = script.stages[index]
        logger.debug(f"Delivering stage {index + 1}/{len(script.stages)}: {stage!r}")
        self.view.reload(
            stage,
            lambda: self._acknowledge(script, index),
            lambda exc: self._fail(script, index, exc),
        )

    def _acknowledge(self, script: _Script, index: int) -> None:
        if script is not self._script or index != script.position:
            raise StageOrderError(
                f"Unexpected acknowledgement for stage {index + 1}"
            )
        script.position += 1
        if script.position < len(script.stages):
            self._deliver(script)
            return

        self._script = None
        logger.debug(f"All {len(script.stages)} stages acknowledged")
        script.on_complete(script.target)

    def _fail(self, script: _Script, index: int, exc: BaseException) -> None:
        if script is not self._script or index != script.position:
            return
        logger.warning(f"Stage {index + 1}/{len(script.stages)} failed: {exc}")
        self._abandon(script)

    def _abandon(self, script: _Script) -> None:
        self._script = None
        self.view.load(script.source)
        logger.warning(
            f"Abandoned script after {script.position}/{len(script.stages)} stages; "
            f"view reloaded with source"
        )
        if script.on_abandoned is not None:
            script.on_abandoned()
