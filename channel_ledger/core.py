"""
Core types and pure functions for the channel ledger.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access
2. Immutable records: Channel, Participant, Trade, WhitelistEntry
3. Error taxonomy: ErrorCode and the Result returned by every state-changing call
4. Exceptions: LedgerError and misuse-specific error types
5. Envelope checks: uint, identity and bounded-text validation

Nothing in this module mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any, Dict, FrozenSet, Generic, Optional, Protocol, Tuple, TypeVar,
    runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Bounded text limits (code points).
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_TRADE_DETAILS_LENGTH = 200

# Maximum number of identities held by a channel whitelist.
MAX_WHITELIST_SIZE = 100

# Ledger units are unsigned 128-bit integers.
UINT_MAX = 2 ** 128 - 1

# Independent id counters.
CHANNEL_COUNTER = "channel_counter"
TRADE_COUNTER = "trade_counter"
COUNTERS = (CHANNEL_COUNTER, TRADE_COUNTER)


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Identity of an account (caller, creator, sender, recipient).
Identity = str

# Mapping from participant identity to balance inside one channel.
Positions = Dict[Identity, int]

# Composite key of a participant record.
ParticipantKey = Tuple[int, Identity]


# ============================================================================
# ERROR TAXONOMY
# ============================================================================

class ErrorCode(Enum):
    """
    Typed failure of a ledger call.

    Errors are returned inside a Result, never raised. A call that returns
    an ErrorCode has left no observable trace in the ledger.
    """
    NOT_AUTHORIZED = 100
    CHANNEL_NOT_FOUND = 101
    PARTICIPANT_ALREADY_EXISTS = 102
    PARTICIPANT_NOT_FOUND = 103
    CHANNEL_FULL = 104
    INSUFFICIENT_BALANCE = 105
    TRADE_NOT_ALLOWED = 106
    INVALID_TRADE_AMOUNT = 107
    CHANNEL_CLOSED = 108
    INVALID_PARAMETERS = 109
    NOT_CHANNEL_CREATOR = 110
    CHANNEL_ALREADY_EXISTS = 111


# Error kinds some operation can actually produce.
REACHABLE_ERRORS: FrozenSet[ErrorCode] = frozenset({
    ErrorCode.NOT_AUTHORIZED,
    ErrorCode.CHANNEL_NOT_FOUND,
    ErrorCode.INSUFFICIENT_BALANCE,
    ErrorCode.INVALID_TRADE_AMOUNT,
    ErrorCode.CHANNEL_CLOSED,
    ErrorCode.INVALID_PARAMETERS,
})

# Declared for compatibility; no operation returns these.
DECLARED_ONLY_ERRORS: FrozenSet[ErrorCode] = frozenset(ErrorCode) - REACHABLE_ERRORS


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for ledger misuse outside the typed error taxonomy."""
    pass


class CallFailed(LedgerError):
    """Raised by Result.unwrap() when the call returned an ErrorCode."""

    def __init__(self, code: ErrorCode):
        super().__init__(f"call failed: {code.name} (u{code.value})")
        self.code = code


class RecordNotFound(LedgerError):
    """Raised when a storage-level write targets a record that does not exist."""
    pass


class TestModeRequired(LedgerError):
    """Raised when a test hook is used on a ledger not created with test_mode=True."""
    __test__ = False


class ArithmeticOverflow(LedgerError):
    """Raised when a balance update would leave the uint range."""
    pass


# ============================================================================
# RESULT
# ============================================================================

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """
    Outcome of a state-changing call: either a value or an ErrorCode.

    Example:
        result = ledger.create_channel("desk", "", 100, 10_000, False, caller="alice")
        if result.ok:
            channel_id = result.value
        else:
            print(result.error.name)
    """
    value: Optional[T] = None
    error: Optional[ErrorCode] = None

    @staticmethod
    def success(value: Optional[T] = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def failure(error: ErrorCode) -> Result[T]:
        return Result(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        """Return the value, or raise CallFailed carrying the error code."""
        if self.error is not None:
            raise CallFailed(self.error)
        return self.value

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Err({self.error.name})"
        return f"Ok({self.value!r})"


# ============================================================================
# ENVELOPE CHECKS
# ============================================================================
#
# These mirror the type constraints of the transaction envelope (uint,
# bounded utf-8 text, principal). Violations never reach business logic:
# they raise ValueError before any state is read or written.

def require_uint(value: Any, field_name: str) -> int:
    """Validate that value is an unsigned 128-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{field_name} must be non-negative, got {value}")
    if value > UINT_MAX:
        raise ValueError(f"{field_name} exceeds uint range")
    return value


def require_identity(value: Any, field_name: str) -> Identity:
    """Validate that value is a non-empty identity string."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value


def require_text(value: Any, field_name: str, max_length: int) -> str:
    """Validate bounded text (length counted in code points)."""
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a str, got {type(value).__name__}")
    if len(value) > max_length:
        raise ValueError(f"{field_name} exceeds {max_length} characters ({len(value)})")
    return value


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Channel:
    """
    A named trading channel.

    Attributes:
        channel_id: Allocator-issued identifier (immutable).
        name: Display name (at most 100 characters). Not unique.
        description: Free text (at most 500 characters).
        creator: Identity that created the channel (immutable).
        min_deposit: Configured lower limit, strictly positive.
        max_channel_balance: Configured upper limit, above min_deposit.
            Only checked against min_deposit at creation.
        is_private: When True, only the creator may admit participants.
        active: Channels start active; inactive channels reject admission and trades.
    """
    channel_id: int
    name: str
    description: str
    creator: Identity
    min_deposit: int
    max_channel_balance: int
    is_private: bool
    active: bool = True

    def __post_init__(self):
        require_text(self.name, "name", MAX_NAME_LENGTH)
        require_text(self.description, "description", MAX_DESCRIPTION_LENGTH)
        require_identity(self.creator, "creator")


@dataclass(frozen=True, slots=True)
class Participant:
    """
    Admission state and balance of one identity inside one channel.

    Attributes:
        channel_id: Channel the record belongs to.
        identity: Participant identity.
        joined_at: Block height at (the latest) admission.
        balance: Ledger units held in this channel.
        is_approved: Approval flag; admission always sets it.
    """
    channel_id: int
    identity: Identity
    joined_at: int
    balance: int = 0
    is_approved: bool = True

    @property
    def key(self) -> ParticipantKey:
        return (self.channel_id, self.identity)


@dataclass(frozen=True, slots=True)
class WhitelistEntry:
    """Identities listed for a channel. Stored only; admission never reads it."""
    channel_id: int
    identities: Tuple[Identity, ...] = ()

    def __post_init__(self):
        if len(self.identities) > MAX_WHITELIST_SIZE:
            raise ValueError(
                f"whitelist holds at most {MAX_WHITELIST_SIZE} identities, got {len(self.identities)}"
            )
        for identity in self.identities:
            require_identity(identity, "whitelist identity")


@dataclass(frozen=True, slots=True)
class Trade:
    """
    An executed transfer of balance between two participants - represents FACT.

    Attributes:
        trade_id: Allocator-issued identifier.
        channel_id: Channel the trade happened in.
        sender: Identity debited.
        recipient: Identity credited.
        amount: Units moved (strictly positive).
        timestamp: Block height at execution.
        trade_details: Optional free text (at most 200 characters).
    """
    trade_id: int
    channel_id: int
    sender: Identity
    recipient: Identity
    amount: int
    timestamp: int
    trade_details: Optional[str] = None

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError("Trade amount must be positive")
        if self.trade_details is not None:
            require_text(self.trade_details, "trade_details", MAX_TRADE_DETAILS_LENGTH)

    def __repr__(self) -> str:
        w = 72
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            f"┌{bar}┐",
            f"│{pad(' Trade #' + str(self.trade_id))}│",
            f"├{bar}┤",
            f"│{pad('   channel   : ' + str(self.channel_id))}│",
            f"│{pad('   height    : ' + str(self.timestamp))}│",
            f"│{pad('   move      : ' + f'{self.amount} {self.sender} → {self.recipient}')}│",
        ]
        if self.trade_details:
            lines.append(f"│{pad('   details   : ' + self.trade_details)}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Validation functions accept a LedgerView to declare their read-only
    intent. ChannelLedger implements this protocol; tests use FakeView.
    Each read states its own default-on-absent policy.
    """

    @property
    def block_height(self) -> int:
        """Return the current block height supplied by the envelope."""
        ...

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        """Return the channel, or None if it was never created."""
        ...

    def is_active(self, channel_id: int) -> bool:
        """Return False for both missing and inactive channels."""
        ...

    def get_balance(self, channel_id: int, participant: Identity) -> int:
        """Return the participant's balance, or 0 when no record exists."""
        ...

    def is_valid_participant(self, channel_id: int, participant: Identity) -> bool:
        """Return the approval flag, or False when no record exists."""
        ...
