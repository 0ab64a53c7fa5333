"""
test_channel_scenarios.py - End-to-end channel scenario tests

Tests complete channel workflows:
- Create, admit, seed and trade
- Private channel gating by the creator
- Re-admission resetting a balance
- Closing a channel mid-life
- Sender/caller hardening
- Whitelist storage alongside admission
"""

import runpy
from pathlib import Path

import pytest

from channel_ledger import ChannelLedger, ErrorCode
from tests.fake_view import make_ledger


class TestBasicTradingScenario:
    """Create a channel, admit two participants and trade."""

    def test_full_scenario(self):
        ledger = make_ledger()

        channel_id = ledger.create_channel(
            "desk", "OTC desk", 100, 10_000, False, caller="alice"
        ).unwrap()
        assert channel_id == 1

        assert ledger.add_participant(channel_id, "x", caller="alice").ok
        assert ledger.add_participant(channel_id, "y", caller="alice").ok
        ledger.set_balance(channel_id, "x", 500)

        ledger.advance_block(10)
        result = ledger.execute_trade(channel_id, "x", "y", 200, "first", caller="x")
        assert result.value == 1
        assert ledger.get_channel_balance(channel_id, "x") == 300
        assert ledger.get_channel_balance(channel_id, "y") == 200

        trade = ledger.get_trade_details(1)
        assert (trade.channel_id, trade.sender, trade.recipient) == (channel_id, "x", "y")
        assert trade.amount == 200
        assert trade.timestamp == 10

        result = ledger.execute_trade(channel_id, "x", "y", 1000, caller="x")
        assert result.error == ErrorCode.INSUFFICIENT_BALANCE
        assert ledger.get_channel_balance(channel_id, "x") == 300
        assert len(ledger.list_trades()) == 1

    def test_back_and_forth(self, trading_ledger):
        for _ in range(5):
            assert trading_ledger.execute_trade(1, "x", "y", 100, caller="x").ok
        assert trading_ledger.execute_trade(1, "x", "y", 1, caller="x").error == ErrorCode.INSUFFICIENT_BALANCE
        assert trading_ledger.execute_trade(1, "y", "x", 250, caller="y").ok
        assert trading_ledger.list_participants(1) == {"x": 250, "y": 250}
        assert [t.trade_id for t in trading_ledger.list_trades(1)] == [1, 2, 3, 4, 5, 6]


class TestPrivateChannelScenario:
    """Only the creator admits participants to a private channel."""

    def test_creator_gates_admission(self, ledger, private_channel):
        assert ledger.add_participant(private_channel, "bob", caller="bob").error == ErrorCode.NOT_AUTHORIZED
        assert ledger.add_participant(private_channel, "bob", caller="creator").ok
        # Admitted members cannot admit others
        assert ledger.add_participant(private_channel, "carol", caller="bob").error == ErrorCode.NOT_AUTHORIZED
        assert ledger.list_participants(private_channel) == {"bob": 0}

    def test_creator_need_not_be_member(self, ledger, private_channel):
        ledger.add_participant(private_channel, "bob", caller="creator")
        ledger.add_participant(private_channel, "carol", caller="creator")
        assert not ledger.is_valid_participant(private_channel, "creator")
        ledger.set_balance(private_channel, "bob", 40)
        assert ledger.execute_trade(private_channel, "bob", "carol", 40, caller="bob").ok

    def test_whitelist_is_informational(self, ledger, private_channel):
        assert ledger.set_whitelist(private_channel, ["bob"], caller="creator").ok
        assert ledger.get_whitelist(private_channel) == ("bob",)
        assert ledger.add_participant(private_channel, "bob", caller="bob").error == ErrorCode.NOT_AUTHORIZED


class TestReadmissionScenario:
    """Re-adding a participant overwrites the record."""

    def test_readmission_burns_balance(self, trading_ledger):
        trading_ledger.advance_block(4)
        assert trading_ledger.add_participant(1, "x", caller="anyone").ok
        record = trading_ledger.get_participant(1, "x")
        assert record.balance == 0
        assert record.joined_at == 4
        assert trading_ledger.total_balance(1) == 0
        assert trading_ledger.execute_trade(1, "x", "y", 1, caller="x").error == ErrorCode.INSUFFICIENT_BALANCE


class TestClosedChannelScenario:
    """A deactivated channel rejects trades and admissions but keeps its data."""

    def test_close_and_reopen(self, trading_ledger):
        trading_ledger.execute_trade(1, "x", "y", 100, caller="x")
        trading_ledger.set_channel_active(1, False)

        assert trading_ledger.execute_trade(1, "x", "y", 1, caller="x").error == ErrorCode.CHANNEL_CLOSED
        assert trading_ledger.add_participant(1, "z", caller="creator").error == ErrorCode.CHANNEL_CLOSED
        assert trading_ledger.list_participants(1) == {"x": 400, "y": 100}
        assert trading_ledger.get_channel_details(1).active is False

        trading_ledger.set_channel_active(1, True)
        assert trading_ledger.execute_trade(1, "x", "y", 1, caller="x").ok


class TestSenderCallerHardening:
    """By default any caller may spend an approved sender's balance."""

    def _ledger(self, **kwargs):
        ledger = make_ledger(**kwargs)
        ledger.create_channel("desk", "", 100, 10_000, False, caller="owner")
        ledger.add_participant(1, "x", caller="owner")
        ledger.add_participant(1, "y", caller="owner")
        ledger.set_balance(1, "x", 500)
        return ledger

    def test_default_allows_third_party(self):
        ledger = self._ledger()
        assert ledger.execute_trade(1, "x", "y", 500, caller="mallory").ok
        assert ledger.get_channel_balance(1, "y") == 500

    def test_hardened_rejects_third_party(self):
        ledger = self._ledger(require_sender_is_caller=True)
        assert ledger.execute_trade(1, "x", "y", 500, caller="mallory").error == ErrorCode.NOT_AUTHORIZED
        assert ledger.get_channel_balance(1, "x") == 500
        assert ledger.execute_trade(1, "x", "y", 500, caller="x").ok

    @pytest.mark.parametrize("hardened", [False, True])
    def test_validation_order_unchanged(self, hardened):
        ledger = self._ledger(require_sender_is_caller=hardened)
        # Membership is checked before the caller
        result = ledger.execute_trade(1, "x", "ghost", 10, caller="mallory")
        assert result.error == ErrorCode.NOT_AUTHORIZED
        assert ledger.execute_trade(1, "x", "y", 0, caller="x").error == ErrorCode.INVALID_TRADE_AMOUNT


class TestProductionMode:
    """Without test mode, balances only move through trades."""

    def test_fresh_channel_has_no_balance_to_trade(self):
        ledger = ChannelLedger("prod", verbose=False)
        ledger.create_channel("desk", "", 100, 10_000, False, caller="owner")
        ledger.add_participant(1, "x", caller="owner")
        ledger.add_participant(1, "y", caller="owner")
        assert ledger.execute_trade(1, "x", "y", 1, caller="x").error == ErrorCode.INSUFFICIENT_BALANCE
        assert ledger.verify_conservation({1: 0})['valid']


class TestExampleScript:
    """The shipped example runs to completion."""

    def test_channel_example(self, capsys):
        script = Path(__file__).resolve().parents[2] / "examples" / "channel_example.py"
        runpy.run_path(str(script), run_name="__main__")
        out = capsys.readouterr().out
        assert "REJECTED execute-trade: INSUFFICIENT_BALANCE" in out
        assert "Conservation holds: True" in out
