"""
Randomized inter-trial delays.
"""

from typing import Optional

import numpy as np

from ..core.logger import get_logger

logger = get_logger(__name__)

DELAY_STREAM = 0
PARTICIPANT_STREAM = 1


def seed_stream(seed: Optional[int], stream: int) -> Optional[np.random.SeedSequence]:
    """
    Derive an independent seed for one consumer of a run seed.

    The delay generator and the simulated participant share one --seed;
    each gets its own spawned child sequence so their draws do not
    mirror each other. Returns None when seed is None.
    """
    if seed is None:
        return None
    return np.random.SeedSequence(seed).spawn(PARTICIPANT_STREAM + 1)[stream]


class DelayGenerator:
    """
    Draws independent, uniformly distributed wait durations.

    Each call to next() is independent of earlier draws. Passing a seed
    makes the delay sequence of a run reproducible.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        self.seed = seed
        self._rng = rng if rng is not None else np.random.default_rng(seed_stream(seed, DELAY_STREAM))

    def next(self, min_delay: float, max_delay: float) -> float:
        """
        Draw a delay in seconds from [min_delay, max_delay).

        The caller guarantees 0 < min_delay < max_delay.
        """
        while True:
            delay = float(self._rng.uniform(min_delay, max_delay))
            # uniform() can round up to the upper bound; keep the interval half-open
            if min_delay <= delay < max_delay:
                logger.debug(f"Drew delay {delay:.6f}s from [{min_delay}, {max_delay})")
                return delay
