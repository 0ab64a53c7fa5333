"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the channel ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Trades redistribute balance within a channel, never create it
2. atomicity.py - Rejected calls leave no observable trace
3. id_allocation.py - Ids start at 1, never repeat, and survive concurrency
4. error_reachability.py - Which error codes calls can actually return
5. determinism.py - Identical call sequences produce identical state

These tests use hypothesis for property-based testing.
"""
