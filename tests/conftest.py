"""
conftest.py - Shared pytest fixtures for dual-ledger tests

Provides seeded simulators used across unit, conformance and functional
tests: backed, native, and backed with an empty token ledger.
"""

import pytest
from decimal import Decimal

from dualledger import DualLedger, SimulationConfig, OperatingMode


@pytest.fixture
def sim():
    """Backed simulator, both ledgers seeded at 1000 per account."""
    return DualLedger(verbose=False)


@pytest.fixture
def native_sim():
    """Native simulator (unlocked mode switch applied), seeded at 1000."""
    s = DualLedger(verbose=False)
    assert s.set_mode(OperatingMode.NATIVE).ok
    return s


@pytest.fixture
def unfunded_sim():
    """Backed simulator with core at 1000 and an empty token ledger."""
    return DualLedger(SimulationConfig(initial_token=Decimal("0")), verbose=False)
