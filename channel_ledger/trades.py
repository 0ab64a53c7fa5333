"""
trades.py - Append-only trade ledger

Every executed trade is written once under a fresh trade id and never
modified. Validation is the caller's job (see engine.py).
"""

from __future__ import annotations
from typing import List, Optional

from .core import Identity, Trade, TRADE_COUNTER
from .allocator import IdAllocator
from .store import KeyValueStore, TRADES


class TradeLedger:
    """Immutable audit trail of trades."""

    def __init__(self, store: KeyValueStore, allocator: IdAllocator):
        self._store = store
        self._allocator = allocator

    def append(
        self,
        channel_id: int,
        sender: Identity,
        recipient: Identity,
        amount: int,
        trade_details: Optional[str],
        now: int,
    ) -> int:
        """Record a trade at block height now and return its trade_id."""
        trade_id = self._allocator.next(TRADE_COUNTER)
        self._store.put(TRADES, trade_id, Trade(
            trade_id=trade_id,
            channel_id=channel_id,
            sender=sender,
            recipient=recipient,
            amount=amount,
            timestamp=now,
            trade_details=trade_details,
        ))
        return trade_id

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        return self._store.get(TRADES, trade_id)

    def list_trades(self, channel_id: Optional[int] = None) -> List[Trade]:
        """Trades in id order, optionally restricted to one channel."""
        trades = [trade for _, trade in sorted(self._store.items(TRADES), key=lambda kv: kv[0])]
        if channel_id is None:
            return trades
        return [trade for trade in trades if trade.channel_id == channel_id]

    def count(self) -> int:
        return self._allocator.peek(TRADE_COUNTER)
