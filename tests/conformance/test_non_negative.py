"""
Non-Negative Balance Conformance Tests

INVARIANT: for every reachable state, every balance in core and token is >= 0.
"""

from hypothesis import given, settings, note
from hypothesis import strategies as st
from decimal import Decimal

from dualledger import DualLedger, SimulationConfig

from tests.helpers import assert_non_negative
from .strategies import operations


class TestNonNegativeProperties:

    @given(st.lists(operations, max_size=40))
    @settings(max_examples=200)
    def test_arbitrary_sequences_stay_non_negative(self, ops):
        """
        PROPERTY: no sequence of operations, valid or not, in either mode,
        drives a balance below zero.
        """
        sim = DualLedger(verbose=False)
        for op in ops:
            outcome = sim.apply(op)
            note(f"{op!r}: {outcome.error}")
            assert_non_negative(outcome.snapshot)

    @given(
        st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2),
        st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2),
        st.lists(operations, max_size=40),
    )
    @settings(max_examples=100)
    def test_small_seeds_stay_non_negative(self, core_seed, token_seed, ops):
        """
        PROPERTY: holds for any seeding, including ledgers that start empty.
        """
        sim = DualLedger(
            SimulationConfig(initial_core=core_seed, initial_token=token_seed),
            verbose=False,
        )
        for op in ops:
            assert_non_negative(sim.apply(op).snapshot)
