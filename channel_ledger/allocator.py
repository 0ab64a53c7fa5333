"""
allocator.py - Monotonic id allocation

Channel and trade ids come from two independent counters persisted in the
store. Each call to next() reads the counter, adds one, writes it back and
returns the new value as a single indivisible step.
"""

from __future__ import annotations
import threading

from .core import COUNTERS
from .store import KeyValueStore, COUNTER_TABLE


class IdAllocator:
    """
    Issues strictly increasing, gap-free ids per counter.

    The first id of every counter is 1. Counters are never decremented or
    reset; a failed operation simply never calls next().
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._lock = threading.Lock()

    @staticmethod
    def _check_counter(counter: str) -> None:
        if counter not in COUNTERS:
            raise ValueError(f"Unknown counter: {counter}")

    def peek(self, counter: str) -> int:
        """Return the last id issued by a counter (0 if none yet)."""
        self._check_counter(counter)
        return self._store.get(COUNTER_TABLE, counter) or 0

    def next(self, counter: str) -> int:
        """Allocate and return the next id of a counter."""
        self._check_counter(counter)
        with self._lock:
            new_id = (self._store.get(COUNTER_TABLE, counter) or 0) + 1
            self._store.put(COUNTER_TABLE, counter, new_id)
        return new_id
