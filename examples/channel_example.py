"""
Example: A trading desk channel from creation to close.

Walks through channel creation, public and private admission, seeding,
trades, a rejected trade, and deactivating the channel. Every call prints
its audit line because the ledger is verbose.
"""

from channel_ledger import ChannelLedger, ErrorCode


def main():
    print("=" * 80)
    print("CHANNEL LEDGER - Trading Desk Example")
    print("=" * 80)
    print()

    # test_mode enables seeding balances with set_balance()
    ledger = ChannelLedger("demo", verbose=True, test_mode=True)

    print("Example 1: Public Channel")
    print("-" * 80)
    print("alice opens a public desk; anyone may add participants.")
    print()

    desk = ledger.create_channel(
        "desk", "OTC desk", 100, 10_000, False, caller="alice"
    ).unwrap()
    ledger.add_participant(desk, "x", caller="alice")
    ledger.add_participant(desk, "y", caller="x")
    ledger.set_balance(desk, "x", 500)
    print()

    print("Example 2: Trades")
    print("-" * 80)
    ledger.advance_block()
    ledger.execute_trade(desk, "x", "y", 200, "first fill", caller="x")
    result = ledger.execute_trade(desk, "x", "y", 1000, caller="x")
    assert result.error == ErrorCode.INSUFFICIENT_BALANCE
    print()
    for name, balance in ledger.list_participants(desk).items():
        print(f"  {name}: {balance}")
    print()
    for trade in ledger.list_trades(desk):
        print(trade)
    print()

    print("Example 3: Private Channel")
    print("-" * 80)
    print("Only bob, the creator, can admit participants to his club.")
    print()

    club = ledger.create_channel(
        "club", "members only", 50, 5_000, True, caller="bob"
    ).unwrap()
    ledger.add_participant(club, "carol", caller="carol")
    ledger.add_participant(club, "carol", caller="bob")
    print()

    print("Example 4: Closing")
    print("-" * 80)
    ledger.set_channel_active(desk, False)
    ledger.execute_trade(desk, "y", "x", 10, caller="y")
    print()

    report = ledger.verify_conservation({desk: 500})
    print(f"Conservation holds: {report['valid']}  totals={report['totals']}")
    print(repr(ledger))


if __name__ == "__main__":
    main()
