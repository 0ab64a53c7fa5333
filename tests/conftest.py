"""
conftest.py - Shared pytest fixtures for channel ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Empty ledgers (test mode, quiet)
- Public and private channels
- A trading-ready ledger with two funded participants
"""

import pytest

from tests.fake_view import make_ledger


CREATOR = "creator"


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Fresh ledger with no channels."""
    return make_ledger()


@pytest.fixture
def public_channel(ledger):
    """Id of a public channel created by CREATOR."""
    return ledger.create_channel(
        "public", "open to everyone", 100, 10_000, False, caller=CREATOR
    ).unwrap()


@pytest.fixture
def private_channel(ledger):
    """Id of a private channel created by CREATOR."""
    return ledger.create_channel(
        "private", "creator admits", 100, 10_000, True, caller=CREATOR
    ).unwrap()


# =============================================================================
# TRADING FIXTURES
# =============================================================================

@pytest.fixture
def trading_ledger():
    """
    Ledger with public channel 1, participants x and y, x seeded with 500.
    """
    ledger = make_ledger()
    channel_id = ledger.create_channel(
        "desk", "trading desk", 100, 10_000, False, caller=CREATOR
    ).unwrap()
    ledger.add_participant(channel_id, "x", caller=CREATOR)
    ledger.add_participant(channel_id, "y", caller=CREATOR)
    ledger.set_balance(channel_id, "x", 500)
    return ledger
