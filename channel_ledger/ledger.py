"""
ledger.py - Stateful Channel Ledger

ChannelLedger is the boundary surface of the system. It wires the store, the
id allocator, the channel registry, participant membership, the trade ledger
and the execution engine together, and it is the only place where calls are
serialized.

Key responsibilities:
    - Implements the LedgerView protocol for read-only access by pure functions
    - Runs every state-changing call under one lock (single writer)
    - Tracks the block height supplied by the transaction envelope
    - Prints an audit line for every applied or rejected call when verbose
    - Provides test-mode hooks to seed balances and deactivate channels
"""

from __future__ import annotations
import copy
import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .core import (
    Channel, Identity, Participant, Positions, Result, Trade,
    TestModeRequired,
    CHANNEL_COUNTER,
    require_uint,
)
from .allocator import IdAllocator
from .engine import TradeExecutionEngine
from .membership import ParticipantMembership
from .registry import ChannelRegistry
from .store import InMemoryStore, KeyValueStore
from .trades import TradeLedger


class ChannelLedger:
    """
    Channel-scoped token ledger with serialized execution and audit output.

    Implements the LedgerView protocol, so the ledger can be passed to pure
    validation functions such as engine.validate_trade().

    Design Principles:
        - All-or-nothing: every call either applies fully or returns an
          ErrorCode with no observable effect.
        - Explicit identity: the caller is always an argument, never ambient.

    Thread Safety:
        Thread-safe. Each state-changing call and each multi-record query
        holds a single re-entrant lock for its whole duration.

    Example:
        ledger = ChannelLedger("main")
        channel_id = ledger.create_channel(
            "desk", "OTC desk", 100, 10_000, False, caller="alice"
        ).unwrap()
        ledger.add_participant(channel_id, "alice", caller="alice")
        ledger.add_participant(channel_id, "bob", caller="alice")
        result = ledger.execute_trade(channel_id, "alice", "bob", 50, caller="alice")
    """

    def __init__(
        self,
        name: str,
        initial_height: int = 0,
        verbose: bool = True,
        test_mode: bool = False,
        require_sender_is_caller: bool = False,
        store: Optional[KeyValueStore] = None,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_height: Starting block height (default: 0)
            verbose: Print an audit line per call (default: True)
            test_mode: Enable set_balance() and set_channel_active() hooks (default: False)
            require_sender_is_caller: Reject trades whose caller is not the sender
                with NOT_AUTHORIZED (default: False, any caller may name any sender)
            store: Storage backend (default: a fresh InMemoryStore)
        """
        self.name = name
        self.verbose = verbose
        self._test_mode = test_mode
        self._block_height: int = require_uint(initial_height, "initial_height")
        self._lock = threading.RLock()
        self._wire(store if store is not None else InMemoryStore(), require_sender_is_caller)

    def _wire(self, store: KeyValueStore, require_sender_is_caller: bool) -> None:
        self.store = store
        self.allocator = IdAllocator(store)
        self.registry = ChannelRegistry(store, self.allocator)
        self.membership = ParticipantMembership(store, self.registry)
        self.trades = TradeLedger(store, self.allocator)
        self.engine = TradeExecutionEngine(
            self.registry, self.membership, self.trades,
            require_sender_is_caller=require_sender_is_caller,
        )

    @property
    def require_sender_is_caller(self) -> bool:
        return self.engine.require_sender_is_caller

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def block_height(self) -> int:
        """Current block height of the ledger."""
        return self._block_height

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        """Channel record, or None if it was never created."""
        return self.registry.get_channel(channel_id)

    def is_active(self, channel_id: int) -> bool:
        """False for both missing and inactive channels."""
        return self.registry.is_active(channel_id)

    def get_balance(self, channel_id: int, participant: Identity) -> int:
        """Balance of participant in channel (0 if not a participant)."""
        return self.membership.get_balance(channel_id, participant)

    def is_valid_participant(self, channel_id: int, participant: Identity) -> bool:
        """Approval flag of participant in channel (False if not a participant)."""
        return self.membership.is_valid_participant(channel_id, participant)

    # ========================================================================
    # BOUNDARY SURFACE (read-only)
    # ========================================================================

    def get_channel_details(self, channel_id: int) -> Optional[Channel]:
        return self.get_channel(channel_id)

    def get_channel_balance(self, channel_id: int, participant: Identity) -> int:
        return self.get_balance(channel_id, participant)

    def get_trade_details(self, trade_id: int) -> Optional[Trade]:
        return self.trades.get_trade(trade_id)

    def get_participant(self, channel_id: int, participant: Identity) -> Optional[Participant]:
        return self.membership.get_participant(channel_id, participant)

    def get_whitelist(self, channel_id: int) -> Tuple[Identity, ...]:
        return self.membership.get_whitelist(channel_id)

    def list_channels(self) -> List[Channel]:
        with self._lock:
            return self.registry.list_channels()

    def list_participants(self, channel_id: int) -> Positions:
        """Identity -> balance for every participant of a channel."""
        with self._lock:
            return self.membership.list_participants(channel_id)

    def list_trades(self, channel_id: Optional[int] = None) -> List[Trade]:
        """Trades in id order, optionally restricted to one channel."""
        with self._lock:
            return self.trades.list_trades(channel_id)

    def total_balance(self, channel_id: int) -> int:
        """Sum of all participant balances in a channel."""
        with self._lock:
            return sum(self.membership.list_participants(channel_id).values())

    def verify_conservation(self, expected: Optional[Dict[int, int]] = None) -> Dict[str, Any]:
        """
        Check per-channel totals against expected values.

        Trades redistribute but never create balance, so once seeding is done
        the total of every channel stays constant.

        Args:
            expected: Optional dict mapping channel_id to expected total.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every expected total matches
            - 'totals': Dict[int, int] - Current total per channel
            - 'discrepancies': List[Dict] - channel_id, expected, actual, difference

        Example:
            before = ledger.verify_conservation()['totals']
            ledger.execute_trade(1, "x", "y", 10, caller="x")
            assert ledger.verify_conservation(before)['valid']
        """
        with self._lock:
            totals = {
                channel.channel_id: sum(self.membership.list_participants(channel.channel_id).values())
                for channel in self.registry.list_channels()
            }
        discrepancies = []
        for channel_id, expected_total in (expected or {}).items():
            actual = totals.get(channel_id, 0)
            if actual != expected_total:
                discrepancies.append({
                    'channel_id': channel_id,
                    'expected': expected_total,
                    'actual': actual,
                    'difference': actual - expected_total,
                })
        return {
            'valid': len(discrepancies) == 0,
            'totals': totals,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # BLOCK HEIGHT
    # ========================================================================

    def advance_block(self, height: Optional[int] = None) -> int:
        """
        Move the block height forward.

        Args:
            height: New height; defaults to the current height + 1.

        Returns:
            The new block height.

        Raises:
            ValueError: If height is below the current height.
        """
        with self._lock:
            if height is None:
                height = self._block_height + 1
            require_uint(height, "height")
            if height < self._block_height:
                raise ValueError(
                    f"Cannot move block height backwards: {height} < {self._block_height}"
                )
            self._block_height = height
            return height

    # ========================================================================
    # STATE-CHANGING CALLS
    # ========================================================================

    def create_channel(
        self,
        name: str,
        description: str,
        min_deposit: int,
        max_channel_balance: int,
        is_private: bool,
        *,
        caller: Identity,
    ) -> Result[int]:
        """
        Create a channel owned by caller.

        Returns:
            Result with the channel_id, or INVALID_PARAMETERS when
            min_deposit is 0 or max_channel_balance <= min_deposit.
        """
        with self._lock:
            result = self.registry.create_channel(
                name, description, min_deposit, max_channel_balance, is_private, caller
            )
            self._log("create-channel", result, f"{name!r} by {caller}")
            return result

    def add_participant(
        self,
        channel_id: int,
        participant: Identity,
        *,
        caller: Identity,
    ) -> Result[None]:
        """
        Admit participant to a channel with a zero balance.

        Re-admitting an existing participant resets their balance to 0.

        Returns:
            Result(None), or CHANNEL_NOT_FOUND / CHANNEL_CLOSED / NOT_AUTHORIZED.
        """
        with self._lock:
            result = self.membership.add_participant(
                channel_id, participant, caller, self._block_height
            )
            self._log("add-participant", result, f"{participant} → channel {channel_id} by {caller}")
            return result

    def execute_trade(
        self,
        channel_id: int,
        sender: Identity,
        recipient: Identity,
        amount: int,
        trade_details: Optional[str] = None,
        *,
        caller: Identity,
    ) -> Result[int]:
        """
        Move amount from sender to recipient inside a channel.

        Returns:
            Result with the trade_id, or the first failing ErrorCode
            (CHANNEL_NOT_FOUND, CHANNEL_CLOSED, NOT_AUTHORIZED,
            INVALID_TRADE_AMOUNT, INSUFFICIENT_BALANCE).
        """
        with self._lock:
            result = self.engine.execute_trade(
                channel_id, sender, recipient, amount, trade_details,
                caller, self._block_height,
            )
            if result.ok and self.verbose:
                self._print_trade_result(self.trades.get_trade(result.value), f"APPLIED by {caller}", "✓")
            else:
                self._log(
                    "execute-trade", result,
                    f"{amount} {sender} → {recipient} in channel {channel_id} by {caller}",
                )
            return result

    def set_whitelist(
        self,
        channel_id: int,
        identities: Iterable[Identity],
        *,
        caller: Identity,
    ) -> Result[None]:
        """Store a channel whitelist (creator only). Admission does not read it."""
        with self._lock:
            result = self.membership.set_whitelist(channel_id, identities, caller)
            self._log("set-whitelist", result, f"channel {channel_id} by {caller}")
            return result

    # ========================================================================
    # TEST HOOKS
    # ========================================================================

    def _require_test_mode(self, hook: str) -> None:
        if not self._test_mode:
            raise TestModeRequired(
                f"{hook}() is disabled in production mode. "
                "Balances only change through execute_trade(). "
                "Set test_mode=True when creating ChannelLedger for testing."
            )

    def set_balance(self, channel_id: int, participant: Identity, amount: int) -> None:
        """
        Seed a participant's balance directly.

        WARNING: This bypasses trade execution and is only available in test mode.

        Raises:
            TestModeRequired: If called when test_mode is False
            RecordNotFound: If participant was never admitted to the channel
        """
        self._require_test_mode("set_balance")
        with self._lock:
            self.membership.set_balance(channel_id, participant, amount)

    def set_channel_active(self, channel_id: int, active: bool) -> None:
        """
        Flip a channel's active flag directly (test mode only).

        Raises:
            TestModeRequired: If called when test_mode is False
            RecordNotFound: If the channel does not exist
        """
        self._require_test_mode("set_channel_active")
        with self._lock:
            self.registry.set_active(channel_id, active)

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def _log(self, operation: str, result: Result, detail: str) -> None:
        if not self.verbose:
            return
        if result.ok:
            suffix = f" = {result.value}" if result.value is not None else ""
            print(f"✓ {operation}{suffix}: {detail} @ {self._block_height}")
        else:
            print(f"✗ REJECTED {operation}: {result.error.name} ({detail}) @ {self._block_height}")

    def _print_trade_result(self, trade: Trade, result: str, icon: str) -> None:
        """
        Print a trade box with a result row in place of its closing line.

        Args:
            trade: Trade to display
            result: Result string (e.g., "APPLIED by alice")
            icon: Icon to display with result (e.g., "✓")
        """
        lines = repr(trade).split('\n')
        w = len(lines[0]) - 2
        bar = "─" * w
        text = f" {icon} {result}"
        if len(text) > w:
            text = text[:w-3] + "..."
        lines[-1] = f"├{bar}┤"
        lines.append(f"│{text.ljust(w)}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    def clone(self) -> ChannelLedger:
        """
        Create an independent copy of this ledger.

        Cloned state includes channels, participants, whitelists, trades,
        counters, block height and configuration. Changes to either ledger
        never reach the other.
        """
        with self._lock:
            if isinstance(self.store, InMemoryStore):
                store = self.store.snapshot()
            else:
                store = copy.deepcopy(self.store)
            cloned = ChannelLedger.__new__(ChannelLedger)
            cloned.name = self.name
            cloned.verbose = self.verbose
            cloned._test_mode = self._test_mode
            cloned._block_height = self._block_height
            cloned._lock = threading.RLock()
            cloned._wire(store, self.require_sender_is_caller)
            return cloned

    def __repr__(self) -> str:
        return (
            f"ChannelLedger({self.name!r}, height={self._block_height}, "
            f"channels={self.allocator.peek(CHANNEL_COUNTER)}, trades={self.trades.count()})"
        )
