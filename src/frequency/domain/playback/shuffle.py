"""
Shuffle queue generation.

A shuffle queue is a random permutation of a playlist's track ids, produced
with the Fisher-Yates algorithm. The random source is injectable so tests can
pin the permutation.
"""

import random
from typing import Iterable, Optional, Protocol


class RandomSource(Protocol):
    """Anything with random.Random's randint()."""

    def randint(self, a: int, b: int) -> int: ...


def generate_shuffle_queue(
    track_ids: Iterable[str], rng: Optional[RandomSource] = None
) -> tuple[str, ...]:
    """
    Return a random permutation of track_ids.

    For i from len-1 down to 1, draw j uniformly in [0, i] and swap i and j.

    Args:
        track_ids: Track ids in playlist order (not modified)
        rng: Random source; defaults to the module-level non-seeded generator

    Returns:
        Tuple holding every id exactly as often as the input does
    """
    source = rng if rng is not None else random
    queue = list(track_ids)
    for i in range(len(queue) - 1, 0, -1):
        j = source.randint(0, i)
        queue[i], queue[j] = queue[j], queue[i]
    return tuple(queue)
