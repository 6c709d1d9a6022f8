"""
stagefuzz.errors — Exception hierarchy.

All errors inherit from StagefuzzError for easy catching.
Contract violations (bad input to the diffing engine) are kept apart from
harness failures (a view that diverged, an out-of-order acknowledgement).
"""

from typing import Optional


class StagefuzzError(Exception):
    """Base exception for all stagefuzz failures."""
    pass


class ContractError(StagefuzzError):
    """Input violates the diffing engine's preconditions."""
    pass


class DuplicateIdentifierError(ContractError):
    """Raised when an identifier repeats at the section or element level."""

    def __init__(self, level: str, identifier: int, section: Optional[int] = None,
                 label: str = "collection"):
        self.level = level
        self.identifier = identifier
        self.section = section
        self.label = label
        where = f"section {section}" if section is not None else label
        super().__init__(
            f"Duplicate {level} identifier {identifier} in {where}"
        )


class SamplingError(StagefuzzError):
    """Raised when a position draw is requested with impossible bounds."""

    def __init__(self, size: int, count: int, reason: str):
        self.size = size
        self.count = count
        super().__init__(f"Cannot draw {count} positions from size {size}: {reason}")


class PlanError(StagefuzzError):
    """Raised when a forced mutation plan references an invalid position."""

    def __init__(self, kind: str, position: int, size: int, detail: str = "out of range"):
        self.kind = kind
        self.position = position
        self.size = size
        super().__init__(f"{kind} position {position} {detail} for size {size}")


class StageMismatchError(StagefuzzError):
    """Raised when a view cannot apply a stage or ends up off the stage data."""
    pass


class StageOrderError(StagefuzzError):
    """Raised when a stage is acknowledged twice or after the script finished."""
    pass


class RefreshInProgressError(StagefuzzError):
    """Raised when a refresh or commit starts while another is outstanding."""

    def __init__(self):
        super().__init__(
            "A commit is still being applied; wait for it to finish before refreshing."
        )
