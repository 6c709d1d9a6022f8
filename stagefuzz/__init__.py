"""
stagefuzz
=========

Randomized fixtures for staged collection diffing.

    planner = MutationPlanner(PlannerConfig(seed=7))
    source  = planner.plan(Collection())        # fresh baseline
    target  = planner.plan(source)              # randomized edits
    stages  = diff(source, target)              # staged edit script

    view = ListView(source)
    for stage in stages:
        view.apply(stage)
    assert view.snapshot() == target

A source/target pair exercises section- and element-level deletes,
updates, moves and inserts at once, while always keeping identifiers
unique and every generated index in range.  Driver wraps the whole
cycle behind a single refresh() call.
"""

from stagefuzz.models import Element, Section, Collection, ensure_unique
from stagefuzz.config import PlannerConfig
from stagefuzz.planner import EditPass, MutationPlan, MutationPlanner, plan
from stagefuzz.changeset import EditOp, EditEntry, Stage, diff
from stagefuzz.view import ListView, DeferredView
from stagefuzz.pipeline import CommitPipeline
from stagefuzz.driver import Driver
from stagefuzz.formats import from_python, to_python, from_json, to_json
from stagefuzz.errors import (
    StagefuzzError, ContractError, DuplicateIdentifierError, SamplingError,
    PlanError, StageMismatchError, StageOrderError, RefreshInProgressError,
)

__version__ = "0.1.0"
__all__ = [
    "Element", "Section", "Collection", "ensure_unique",
    "PlannerConfig",
    "EditPass", "MutationPlan", "MutationPlanner", "plan",
    "EditOp", "EditEntry", "Stage", "diff",
    "ListView", "DeferredView",
    "CommitPipeline", "Driver",
    "from_python", "to_python", "from_json", "to_json",
    "StagefuzzError", "ContractError", "DuplicateIdentifierError", "SamplingError",
    "PlanError", "StageMismatchError", "StageOrderError", "RefreshInProgressError",
]
