"""
stagefuzz.sampling — Position draws that are valid when consumed
================================================================

The planner edits Python lists in place, one operation at a time.  A
position drawn for operation j must be valid against the list as it
stands after operations 0..j-1, not against the original list.

    DELETE    n, n-1, n-2, ...      draw i_j from [0, n - j)
    INSERT    m, m+1, m+2, ...      draw i_j from [0, m + j)
    UPDATE    fixed size            draw i_j from [0, n)   (with replacement)
    MOVE      fixed size            draw a pair from [0, n) (with replacement)

Drawing against the shrinking/growing bound avoids any post-hoc index
shift correction.  The price: the set of deleted items is NOT a uniform
random subset.  For fixture generation that's fine; for statistical
sampling use random.sample instead.

Every random range here branches explicitly on emptiness.  An empty range
means "zero operations", never a ValueError out of randrange.
"""

import random

from .errors import SamplingError


def random_count(rng: random.Random, upper: int, floor: int = 0) -> int:
    """
    A count in [floor, upper).

    Empty range (upper <= floor) → floor.  With the default floor of 0
    that reads "perform zero operations of this kind".
    """
    if upper <= floor:
        return max(floor, 0)
    return rng.randrange(floor, upper)


def _check(size: int, count: int) -> None:
    if size < 0 or count < 0:
        raise SamplingError(size, count, "negative bound")


def shrinking_positions(rng: random.Random, size: int, count: int) -> list[int]:
    """Positions for `count` sequential deletions from a list of `size`."""
    _check(size, count)
    if count > size:
        raise SamplingError(size, count, "cannot delete more items than exist")
    return [rng.randrange(size - j) for j in range(count)]


def growing_positions(rng: random.Random, size: int, count: int) -> list[int]:
    """
    Positions for `count` sequential insertions into a list of `size`.

    Bound for draw j is [0, size + j).  Into an empty list the only valid
    position is 0, so no draw is made.
    """
    _check(size, count)
    positions = []
    for j in range(count):
        bound = size + j
        positions.append(rng.randrange(bound) if bound > 0 else 0)
    return positions


def sample_positions(rng: random.Random, size: int, count: int) -> list[int]:
    """`count` positions from [0, size), with replacement."""
    _check(size, count)
    if size == 0:
        if count:
            raise SamplingError(size, count, "no positions to draw from")
        return []
    return [rng.randrange(size) for _ in range(count)]


def swap_pairs(rng: random.Random, size: int, count: int) -> list[tuple[int, int]]:
    """
    `count` (a, b) pairs for in-place swaps.

    a == b is a legal no-op swap.
    """
    _check(size, count)
    if size == 0:
        if count:
            raise SamplingError(size, count, "no positions to draw from")
        return []
    return [(rng.randrange(size), rng.randrange(size)) for _ in range(count)]
