"""
channel_ledger - Channel-Scoped Token Ledger

Named channels, participant admission (public or creator-gated private
channels), per-channel balances and atomic peer-to-peer trades.

Usage:
    from channel_ledger import ChannelLedger, ErrorCode

    ledger = ChannelLedger("main", test_mode=True)
    channel_id = ledger.create_channel(
        "desk", "OTC desk", 100, 10_000, False, caller="alice"
    ).unwrap()
    ledger.add_participant(channel_id, "x", caller="alice")
    ledger.add_participant(channel_id, "y", caller="alice")
    ledger.set_balance(channel_id, "x", 500)

    result = ledger.execute_trade(channel_id, "x", "y", 200, caller="x")
    assert result.ok and ledger.get_channel_balance(channel_id, "y") == 200

    result = ledger.execute_trade(channel_id, "x", "y", 1000, caller="x")
    assert result.error == ErrorCode.INSUFFICIENT_BALANCE
"""

# Core types
from .core import (
    LedgerView,
    Channel,
    Participant,
    WhitelistEntry,
    Trade,
    Result,
    ErrorCode,
    REACHABLE_ERRORS,
    DECLARED_ONLY_ERRORS,
    LedgerError,
    CallFailed,
    RecordNotFound,
    TestModeRequired,
    ArithmeticOverflow,
    Identity,
    Positions,
    CHANNEL_COUNTER,
    TRADE_COUNTER,
    MAX_NAME_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_TRADE_DETAILS_LENGTH,
    MAX_WHITELIST_SIZE,
    UINT_MAX,
)

# Storage
from .store import KeyValueStore, InMemoryStore

# Components
from .allocator import IdAllocator
from .registry import ChannelRegistry, validate_channel_params
from .membership import ParticipantMembership, check_admission
from .trades import TradeLedger
from .engine import TradeExecutionEngine, ComponentView, validate_trade

# Ledger
from .ledger import ChannelLedger

__all__ = [
    # Core
    'LedgerView', 'Channel', 'Participant', 'WhitelistEntry', 'Trade',
    'Result', 'ErrorCode', 'REACHABLE_ERRORS', 'DECLARED_ONLY_ERRORS',
    'LedgerError', 'CallFailed', 'RecordNotFound', 'TestModeRequired', 'ArithmeticOverflow',
    'Identity', 'Positions',
    'CHANNEL_COUNTER', 'TRADE_COUNTER',
    'MAX_NAME_LENGTH', 'MAX_DESCRIPTION_LENGTH', 'MAX_TRADE_DETAILS_LENGTH',
    'MAX_WHITELIST_SIZE', 'UINT_MAX',
    # Storage
    'KeyValueStore', 'InMemoryStore',
    # Components
    'IdAllocator',
    'ChannelRegistry', 'validate_channel_params',
    'ParticipantMembership', 'check_admission',
    'TradeLedger',
    'TradeExecutionEngine', 'ComponentView', 'validate_trade',
    # Ledger
    'ChannelLedger',
]

__version__ = '1.0.0'
