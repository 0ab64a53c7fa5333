"""
engine.py - Trade execution

Moves balance between two approved participants of one channel. Execution is
all-or-nothing: every check runs against the current state before the first
write, so a rejected trade leaves balances, counters and the trade log
untouched.

Validation order (first failure wins):
    1. channel exists                 -> CHANNEL_NOT_FOUND
    2. channel active                 -> CHANNEL_CLOSED
    3. sender approved participant    -> NOT_AUTHORIZED
    4. recipient approved participant -> NOT_AUTHORIZED
    5. amount > 0                     -> INVALID_TRADE_AMOUNT
    6. amount <= sender balance       -> INSUFFICIENT_BALANCE

The caller identity is not compared to the sender unless the engine is built
with require_sender_is_caller=True; by default any caller may move balance
out of any approved sender by naming it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .core import (
    ArithmeticOverflow, Channel, ErrorCode, Identity, LedgerView, Result,
    MAX_TRADE_DETAILS_LENGTH, UINT_MAX,
    require_identity, require_text, require_uint,
)
from .membership import ParticipantMembership
from .registry import ChannelRegistry
from .trades import TradeLedger


def validate_trade(
    view: LedgerView,
    channel_id: int,
    sender: Identity,
    recipient: Identity,
    amount: int,
    caller: Identity,
    require_sender_is_caller: bool = False,
) -> Optional[ErrorCode]:
    """
    Run the trade validation sequence against a read-only view.

    Returns:
        None if the trade may execute, otherwise the first failing ErrorCode.
    """
    if view.get_channel(channel_id) is None:
        return ErrorCode.CHANNEL_NOT_FOUND
    if not view.is_active(channel_id):
        return ErrorCode.CHANNEL_CLOSED
    if not view.is_valid_participant(channel_id, sender):
        return ErrorCode.NOT_AUTHORIZED
    if not view.is_valid_participant(channel_id, recipient):
        return ErrorCode.NOT_AUTHORIZED
    if require_sender_is_caller and caller != sender:
        return ErrorCode.NOT_AUTHORIZED
    if amount <= 0:
        return ErrorCode.INVALID_TRADE_AMOUNT
    if amount > view.get_balance(channel_id, sender):
        return ErrorCode.INSUFFICIENT_BALANCE
    return None


@dataclass(frozen=True)
class ComponentView:
    """LedgerView assembled from the registry and membership components."""
    registry: ChannelRegistry
    membership: ParticipantMembership
    block_height: int = 0

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        return self.registry.get_channel(channel_id)

    def is_active(self, channel_id: int) -> bool:
        return self.registry.is_active(channel_id)

    def get_balance(self, channel_id: int, participant: Identity) -> int:
        return self.membership.get_balance(channel_id, participant)

    def is_valid_participant(self, channel_id: int, participant: Identity) -> bool:
        return self.membership.is_valid_participant(channel_id, participant)


class TradeExecutionEngine:
    """
    Orchestrates validation, the debit/credit pair and the trade record.

    Thread Safety:
        Not thread-safe on its own. ChannelLedger runs every call under its lock.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        membership: ParticipantMembership,
        trades: TradeLedger,
        require_sender_is_caller: bool = False,
    ):
        self.registry = registry
        self.membership = membership
        self.trades = trades
        self.require_sender_is_caller = require_sender_is_caller

    def execute_trade(
        self,
        channel_id: int,
        sender: Identity,
        recipient: Identity,
        amount: int,
        trade_details: Optional[str],
        caller: Identity,
        now: int,
    ) -> Result[int]:
        """
        Transfer amount from sender to recipient inside channel_id.

        Returns:
            Result with the new trade_id, or the first failing ErrorCode.

        Raises:
            ValueError: If an argument violates its envelope type.
            ArithmeticOverflow: If crediting the recipient would leave the uint range.
                Raised before any write.
        """
        require_identity(sender, "sender")
        require_identity(recipient, "recipient")
        require_identity(caller, "caller")
        require_uint(amount, "amount")
        if trade_details is not None:
            require_text(trade_details, "trade_details", MAX_TRADE_DETAILS_LENGTH)

        view = ComponentView(self.registry, self.membership, now)
        error = validate_trade(
            view, channel_id, sender, recipient, amount, caller,
            require_sender_is_caller=self.require_sender_is_caller,
        )
        if error is not None:
            return Result.failure(error)

        # Compute both new balances before writing either one. For a
        # self-trade the credit applies on top of the debit.
        sender_after = self.membership.get_balance(channel_id, sender) - amount
        if recipient == sender:
            recipient_after = sender_after + amount
        else:
            recipient_after = self.membership.get_balance(channel_id, recipient) + amount
        if recipient_after > UINT_MAX:
            raise ArithmeticOverflow(
                f"crediting {amount} to {recipient} in channel {channel_id} overflows"
            )

        self.membership.set_balance(channel_id, sender, sender_after)
        self.membership.set_balance(channel_id, recipient, recipient_after)
        return Result.success(
            self.trades.append(channel_id, sender, recipient, amount, trade_details, now)
        )
