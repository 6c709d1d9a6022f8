"""
stagefuzz.config — Planner settings.

Key Classes:
    - PlannerConfig: baseline sizes, mutation-rate divisor, and seed
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PlannerConfig:
    """
    Configuration for the mutation planner.

    Attributes:
        default_section_count: Sections in a freshly generated baseline, and
            the size the section insert floor tries to regrow toward (default 20)
        default_element_count: Exclusive upper bound on elements per generated
            section (default 20)
        mutation_divisor: Each pass edits fewer than size / divisor items
            (default 4)
        seed: Seed for the planner's own random.Random when none is injected
    """
    default_section_count: int = 20
    default_element_count: int = 20
    mutation_divisor: int = 4
    seed: Optional[int] = None

    def __post_init__(self):
        if self.default_section_count < 0 or self.default_element_count < 0:
            raise ValueError("baseline counts must be non-negative")
        if self.mutation_divisor < 1:
            raise ValueError("mutation_divisor must be at least 1")
