"""
store.py - Keyed storage behind the ledger components

The ledger persists four independent keyed tables and two counters. Components
talk to storage only through the KeyValueStore protocol, so any backend that
offers get/put/items per table can hold the state. InMemoryStore is the
default backend.

Reads return None for absent keys; each component decides what absence means.
"""

from __future__ import annotations
from typing import Any, Dict, Hashable, Iterator, Optional, Protocol, Tuple, runtime_checkable

from .core import COUNTERS


# Table names
CHANNELS = "channels"
PARTICIPANTS = "participants"
WHITELISTS = "whitelists"
TRADES = "trades"
COUNTER_TABLE = "counters"

TABLES = (CHANNELS, PARTICIPANTS, WHITELISTS, TRADES, COUNTER_TABLE)


@runtime_checkable
class KeyValueStore(Protocol):
    """Abstract keyed storage: one map per table name."""

    def get(self, table: str, key: Hashable) -> Optional[Any]:
        """Return the stored value, or None if the key is absent."""
        ...

    def put(self, table: str, key: Hashable, value: Any) -> None:
        """Insert or overwrite a value."""
        ...

    def items(self, table: str) -> Iterator[Tuple[Hashable, Any]]:
        """Iterate over (key, value) pairs of a table."""
        ...


class InMemoryStore:
    """
    Dict-backed KeyValueStore.

    Counters are created at 0. Values written are expected to be immutable
    records (frozen dataclasses or ints), so reads hand out the stored object.

    Thread Safety:
        Not thread-safe on its own. ChannelLedger serializes all access.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[Hashable, Any]] = {table: {} for table in TABLES}
        for counter in COUNTERS:
            self._tables[COUNTER_TABLE][counter] = 0

    def _table(self, table: str) -> Dict[Hashable, Any]:
        try:
            return self._tables[table]
        except KeyError:
            raise KeyError(f"Unknown table: {table}") from None

    def get(self, table: str, key: Hashable) -> Optional[Any]:
        return self._table(table).get(key)

    def put(self, table: str, key: Hashable, value: Any) -> None:
        self._table(table)[key] = value

    def items(self, table: str) -> Iterator[Tuple[Hashable, Any]]:
        # Iterate over a copy so callers may write while iterating
        return iter(list(self._table(table).items()))

    def snapshot(self) -> InMemoryStore:
        """
        Create an independent copy of this store.

        Records are immutable, so copying the table dicts is enough for the
        clone and the original to evolve separately.
        """
        cloned = InMemoryStore.__new__(InMemoryStore)
        cloned._tables = {name: dict(rows) for name, rows in self._tables.items()}
        return cloned
