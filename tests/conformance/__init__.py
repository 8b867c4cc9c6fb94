"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the debt ledger and settlement engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Balances of every currency always sum to zero
2. determinism.py - Identical inputs produce identical balances and payments
3. settlement_properties.py - Settlement clears everything, within its bounds

These tests use hypothesis for property-based testing.
"""
