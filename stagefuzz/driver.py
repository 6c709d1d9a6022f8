"""
stagefuzz.driver — Owner of the authoritative Collection.

refresh() plans a target from the current state and commits it.  The
state pointer only moves when the commit completes; until then any new
refresh() is rejected.  A cycle whose script is abandoned leaves the state
where it was, so the next refresh() starts over from it.
"""

import logging
from typing import Optional

from .changeset import diff
from .config import PlannerConfig
from .errors import RefreshInProgressError
from .models import Collection
from .pipeline import CommitPipeline, Differ, View
from .planner import MutationPlanner

logger = logging.getLogger(__name__)


class Driver:
    """
    Holds the single authoritative state between refresh cycles.

    Attributes:
        planner:  derives each cycle's target
        pipeline: applies the edit script to the view
        cycles:   number of completed refresh cycles
    """

    def __init__(self, view: View, planner: Optional[MutationPlanner] = None,
                 differ: Differ = diff, config: Optional[PlannerConfig] = None,
                 initial: Optional[Collection] = None):
        if planner is not None and config is not None:
            raise ValueError("pass either a planner or a config, not both")
        self.planner = planner or MutationPlanner(config)
        self.pipeline = CommitPipeline(view, differ)
        self._state = initial if initial is not None else Collection()
        self._pending: Optional[Collection] = None
        self.cycles = 0

    @property
    def state(self) -> Collection:
        return self._state

    @property
    def pending(self) -> Optional[Collection]:
        """The planned target while a commit is outstanding."""
        return self._pending

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def refresh(self) -> None:
        if self.busy:
            logger.warning("refresh() rejected: previous commit still in flight")
            raise RefreshInProgressError()

        source = self._state
        target = self.planner.plan(source)
        self._pending = target
        try:
            self.pipeline.commit(source, target, self._complete, self._abandoned)
        except Exception:
            self._pending = None
            raise

    def abort(self) -> bool:
        """Abandon the cycle in flight, if any.  The state is left unchanged."""
        return self.pipeline.abort()

    def _complete(self, target: Collection) -> None:
        self._state = target
        self._pending = None
        self.cycles += 1
        logger.info(
            f"Cycle {self.cycles} committed: {len(target)} sections, "
            f"{target.element_count()} elements"
        )

    def _abandoned(self) -> None:
        self._pending = None
        logger.warning(f"Cycle abandoned; state stays at cycle {self.cycles}")
