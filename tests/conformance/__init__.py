"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. pool_invariants.py - Reserve totals, solvency, per-position collateralization
2. atomicity.py - Rejected operations change nothing
3. conservation.py - Value moves between wallets, never created or destroyed
4. determinism.py - Identical operation sequences reach identical state
5. temporal.py - Interest accrues linearly and never decreases
6. vault_shares.py - Share conversion round trips and share value

These tests use hypothesis for property-based testing.
"""
