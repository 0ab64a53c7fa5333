"""
test_trades.py - Unit tests for trades.py

Tests:
- append: ids, stored record contents
- get_trade / list_trades / count
"""

import pytest

from channel_ledger import TradeLedger, IdAllocator, InMemoryStore


@pytest.fixture
def trade_ledger():
    store = InMemoryStore()
    return TradeLedger(store, IdAllocator(store))


class TestAppend:
    """Tests for appending trade records."""

    def test_first_trade_id_is_one(self, trade_ledger):
        assert trade_ledger.append(1, "x", "y", 10, None, now=4) == 1

    def test_record_contents(self, trade_ledger):
        trade_id = trade_ledger.append(3, "x", "y", 10, "lunch", now=4)
        trade = trade_ledger.get_trade(trade_id)
        assert trade.trade_id == trade_id
        assert trade.channel_id == 3
        assert trade.sender == "x"
        assert trade.recipient == "y"
        assert trade.amount == 10
        assert trade.timestamp == 4
        assert trade.trade_details == "lunch"

    def test_ids_shared_across_channels(self, trade_ledger):
        assert trade_ledger.append(1, "x", "y", 1, None, now=0) == 1
        assert trade_ledger.append(2, "x", "y", 1, None, now=0) == 2


class TestQueries:
    """Tests for trade lookups."""

    def test_missing_trade(self, trade_ledger):
        assert trade_ledger.get_trade(1) is None

    def test_list_and_filter(self, trade_ledger):
        trade_ledger.append(1, "x", "y", 1, None, now=0)
        trade_ledger.append(2, "x", "y", 2, None, now=0)
        trade_ledger.append(1, "y", "x", 3, None, now=1)
        assert [t.trade_id for t in trade_ledger.list_trades()] == [1, 2, 3]
        assert [t.amount for t in trade_ledger.list_trades(channel_id=1)] == [1, 3]
        assert trade_ledger.list_trades(channel_id=9) == []

    def test_count(self, trade_ledger):
        assert trade_ledger.count() == 0
        trade_ledger.append(1, "x", "y", 1, None, now=0)
        assert trade_ledger.count() == 1
