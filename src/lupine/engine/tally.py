"""Vote tallying."""

from collections import Counter
from typing import Iterable, Optional


def count_votes(targets: Iterable[Optional[int]]) -> Counter:
    """Count non-pass votes per target."""
    return Counter(t for t in targets if t is not None)


def majority_threshold(population: int) -> int:
    """Smallest vote count that is a strict majority of `population`."""
    return population // 2 + 1


def majority_target(targets: Iterable[Optional[int]], population: int) -> Optional[int]:
    """Return the target holding a strict majority (> population // 2), if any.

    A strict majority is unique, so ties never produce a target.
    """
    counts = count_votes(targets)
    if not counts:
        return None
    target, votes = counts.most_common(1)[0]
    if votes >= majority_threshold(population):
        return target
    return None
