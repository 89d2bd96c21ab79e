"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the dual-ledger simulator.

The tests are organized by invariant:
1. test_non_negative.py - No balance in either ledger ever goes below zero
2. test_conservation.py - Backed transfers conserve both ledgers; native
   transfers leave core untouched
3. test_mode_lock.py - The mode is frozen after the first balance movement
4. test_atomicity.py - Rejected operations change nothing
5. test_reset.py - Reset restores the seeded state and is idempotent

These tests use hypothesis for property-based testing.
"""
