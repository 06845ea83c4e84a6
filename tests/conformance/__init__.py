"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the transaction ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_amount_codec.py - Exact amounts and the lossless text codec
2. test_ledger_invariants.py - Balance conservation, lock monotonicity,
   dispute exclusivity, held funds matching open disputes

These tests use hypothesis for property-based testing.
"""
