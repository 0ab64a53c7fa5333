"""
membership.py - Participant admission and balances

Owns the participants table (keyed by (channel_id, identity)) and the
whitelist table. Admission rules:
    - the channel must exist and be active
    - private channels admit only on the creator's call
    - public channels admit anyone, on anyone's call

Admission always writes a fresh record, so re-admitting a participant resets
their balance to zero.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from .core import (
    Channel, ErrorCode, Identity, Participant, Positions, Result,
    RecordNotFound, WhitelistEntry,
    require_identity, require_uint,
)
from .registry import ChannelRegistry
from .store import KeyValueStore, PARTICIPANTS, WHITELISTS


def check_admission(channel: Optional[Channel], caller: Identity) -> Optional[ErrorCode]:
    """
    Decide whether caller may admit participants to channel.

    Returns:
        None if admission is allowed, otherwise CHANNEL_NOT_FOUND,
        CHANNEL_CLOSED or NOT_AUTHORIZED (checked in that order).
    """
    if channel is None:
        return ErrorCode.CHANNEL_NOT_FOUND
    if not channel.active:
        return ErrorCode.CHANNEL_CLOSED
    if channel.is_private and caller != channel.creator:
        return ErrorCode.NOT_AUTHORIZED
    return None


class ParticipantMembership:
    """Participant records and per-channel whitelists."""

    def __init__(self, store: KeyValueStore, registry: ChannelRegistry):
        self._store = store
        self._registry = registry

    def add_participant(
        self,
        channel_id: int,
        participant: Identity,
        caller: Identity,
        now: int,
    ) -> Result[None]:
        """
        Admit participant to a channel at block height now.

        An existing record is overwritten: balance goes back to 0 and
        joined_at moves to now.
        """
        require_identity(participant, "participant")
        require_identity(caller, "caller")

        error = check_admission(self._registry.get_channel(channel_id), caller)
        if error is not None:
            return Result.failure(error)

        self._store.put(
            PARTICIPANTS,
            (channel_id, participant),
            Participant(
                channel_id=channel_id,
                identity=participant,
                joined_at=now,
                balance=0,
                is_approved=True,
            ),
        )
        return Result.success(None)

    def get_participant(self, channel_id: int, participant: Identity) -> Optional[Participant]:
        return self._store.get(PARTICIPANTS, (channel_id, participant))

    def get_balance(self, channel_id: int, participant: Identity) -> int:
        """Balance of participant in channel; 0 when no record exists."""
        record = self.get_participant(channel_id, participant)
        return record.balance if record is not None else 0

    def is_valid_participant(self, channel_id: int, participant: Identity) -> bool:
        """Approval flag of participant in channel; False when no record exists."""
        record = self.get_participant(channel_id, participant)
        return record is not None and record.is_approved

    def set_balance(self, channel_id: int, participant: Identity, balance: int) -> Participant:
        """
        Overwrite the balance of an existing participant record.

        Raises:
            RecordNotFound: If the participant was never admitted to the channel.
        """
        require_uint(balance, "balance")
        record = self.get_participant(channel_id, participant)
        if record is None:
            raise RecordNotFound(f"{participant} is not a participant of channel {channel_id}")
        updated = replace(record, balance=balance)
        self._store.put(PARTICIPANTS, (channel_id, participant), updated)
        return updated

    def list_participants(self, channel_id: int) -> Positions:
        """Map of identity -> balance for every record of a channel."""
        return {
            identity: record.balance
            for (cid, identity), record in sorted(self._store.items(PARTICIPANTS), key=lambda kv: kv[0])
            if cid == channel_id
        }

    # ========================================================================
    # WHITELIST
    # ========================================================================

    def set_whitelist(
        self,
        channel_id: int,
        identities: Iterable[Identity],
        caller: Identity,
    ) -> Result[None]:
        """
        Store the whitelist of a channel (creator only).

        The whitelist is held as data; add_participant does not consult it.

        Raises:
            ValueError: If more than MAX_WHITELIST_SIZE identities are given.
        """
        require_identity(caller, "caller")
        entry = WhitelistEntry(channel_id=channel_id, identities=tuple(identities))
        channel = self._registry.get_channel(channel_id)
        if channel is None:
            return Result.failure(ErrorCode.CHANNEL_NOT_FOUND)
        if caller != channel.creator:
            return Result.failure(ErrorCode.NOT_AUTHORIZED)
        self._store.put(WHITELISTS, channel_id, entry)
        return Result.success(None)

    def get_whitelist(self, channel_id: int) -> Tuple[Identity, ...]:
        """Whitelisted identities of a channel; empty when none were stored."""
        entry = self._store.get(WHITELISTS, channel_id)
        return entry.identities if entry is not None else ()
