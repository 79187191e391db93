"""
Process-wide source for the control/candidate execution order.
"""

import os
import random
import threading
from typing import Optional


class OrderRandomizer:
    """
    Thread-safe coin flip deciding which side of an experiment runs first.

    Seeded once at construction and never reseeded. The lock keeps
    concurrent callers on different threads from sharing a generator state
    mid-update.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = int.from_bytes(os.urandom(8), "big")
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def control_first(self) -> bool:
        """Return True when the control should run before the candidate."""
        with self._lock:
            return self._random.getrandbits(1) == 0


_default_randomizer = OrderRandomizer()


def default_randomizer() -> OrderRandomizer:
    """Return the randomizer shared by every experiment in this process."""
    return _default_randomizer
