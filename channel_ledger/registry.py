"""
registry.py - Channel records and lifecycle

Owns the channels table: validated creation, lookup, and the active flag.
Channel identity is the numeric id alone; names may repeat.
"""

from __future__ import annotations
from dataclasses import replace
from typing import List, Optional

from .core import (
    Channel, ErrorCode, Identity, Result, RecordNotFound,
    CHANNEL_COUNTER, MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH,
    require_identity, require_text, require_uint,
)
from .allocator import IdAllocator
from .store import KeyValueStore, CHANNELS


def validate_channel_params(min_deposit: int, max_channel_balance: int) -> Optional[ErrorCode]:
    """
    Check the configured limits of a new channel.

    Returns:
        None if valid, ErrorCode.INVALID_PARAMETERS otherwise.
        min_deposit must be positive and max_channel_balance strictly above it.
    """
    if min_deposit <= 0:
        return ErrorCode.INVALID_PARAMETERS
    if max_channel_balance <= min_deposit:
        return ErrorCode.INVALID_PARAMETERS
    return None


class ChannelRegistry:
    """Channel table plus the channel id counter."""

    def __init__(self, store: KeyValueStore, allocator: IdAllocator):
        self._store = store
        self._allocator = allocator

    def create_channel(
        self,
        name: str,
        description: str,
        min_deposit: int,
        max_channel_balance: int,
        is_private: bool,
        creator: Identity,
    ) -> Result[int]:
        """
        Create a channel owned by creator.

        The id is allocated only after validation passes, so a rejected call
        does not consume one.

        Returns:
            Result with the new channel_id, or INVALID_PARAMETERS.

        Raises:
            ValueError: If an argument violates its envelope type (text bound, uint, identity).
        """
        require_text(name, "name", MAX_NAME_LENGTH)
        require_text(description, "description", MAX_DESCRIPTION_LENGTH)
        require_uint(min_deposit, "min_deposit")
        require_uint(max_channel_balance, "max_channel_balance")
        require_identity(creator, "creator")

        error = validate_channel_params(min_deposit, max_channel_balance)
        if error is not None:
            return Result.failure(error)

        channel_id = self._allocator.next(CHANNEL_COUNTER)
        self._store.put(CHANNELS, channel_id, Channel(
            channel_id=channel_id,
            name=name,
            description=description,
            creator=creator,
            min_deposit=min_deposit,
            max_channel_balance=max_channel_balance,
            is_private=bool(is_private),
            active=True,
        ))
        return Result.success(channel_id)

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        """Return the channel, or None if it does not exist."""
        return self._store.get(CHANNELS, channel_id)

    def is_active(self, channel_id: int) -> bool:
        """False when the channel is missing or inactive; callers cannot tell which."""
        channel = self.get_channel(channel_id)
        return channel is not None and channel.active

    def set_active(self, channel_id: int, active: bool) -> Channel:
        """
        Overwrite the active flag of an existing channel.

        Raises:
            RecordNotFound: If the channel does not exist.
        """
        channel = self.get_channel(channel_id)
        if channel is None:
            raise RecordNotFound(f"Channel {channel_id} not found")
        updated = replace(channel, active=bool(active))
        self._store.put(CHANNELS, channel_id, updated)
        return updated

    def list_channels(self) -> List[Channel]:
        """All channels in id order."""
        return [channel for _, channel in sorted(self._store.items(CHANNELS), key=lambda kv: kv[0])]
