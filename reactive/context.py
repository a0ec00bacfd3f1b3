"""
Functions every expression can call unless the host overrides them.
"""

import random
import time


def default_context(rng: random.Random) -> dict:
    """Build the default function table around a per-manager RNG."""

    def get_random_int(low, high):
        """Random integer in [low, high], both ends included."""
        return rng.randint(int(low), int(high))

    def now():
        """Current time in epoch milliseconds."""
        return int(time.time() * 1000)

    return {
        "getRandomInt": get_random_int,
        "now": now,
    }


def make_rng(seed=None) -> random.Random:
    """A dedicated RNG; seeded runs repeat the same sequence."""
    return random.Random(seed)
