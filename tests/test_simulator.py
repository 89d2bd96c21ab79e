"""
test_simulator.py - Unit tests for simulator.py

Tests:
- Simulator creation and configuration
- Read-only access (snapshot, get_balance, total, divergence)
- apply() dispatch and rejection reporting
- Operation log and sequence numbering
- Verbose output
- clone()
"""

import copy
import pytest
from decimal import Decimal

from dualledger import (
    DualLedger, SimulationConfig, OperatingMode, LedgerName, OperationKind, ErrorKind,
    Transfer, Fund, Reset, UnknownAccount, InsufficientBalance,
)

from tests.helpers import balances


class TestSimulatorCreation:
    """Tests for DualLedger initialization."""

    def test_defaults(self):
        sim = DualLedger(verbose=False)
        assert sim.core == balances(1000, 1000)
        assert sim.token == balances(1000, 1000)
        assert sim.mode is OperatingMode.BACKED
        assert sim.locked is False
        assert sim.operation_log == []
        assert sim.list_accounts() == ("A", "B")

    def test_custom_config(self):
        config = SimulationConfig(
            accounts=("X", "Y", "Z"),
            initial_core=Decimal("50"),
            initial_token=Decimal("0"),
        )
        sim = DualLedger(config, verbose=False)
        assert sim.core == {"X": Decimal("50"), "Y": Decimal("50"), "Z": Decimal("50")}
        assert sim.token == {"X": Decimal("0"), "Y": Decimal("0"), "Z": Decimal("0")}

    def test_verbose_default_true(self):
        assert DualLedger().verbose is True


class TestReadAccess:

    def test_snapshot_is_a_copy(self, sim):
        snap = sim.snapshot()
        sim.transfer("A", "B", "100")
        assert snap.core == balances(1000, 1000)
        assert snap.locked is False

    def test_get_balance(self, sim):
        sim.fund("A", "100")
        assert sim.get_balance(LedgerName.CORE, "A") == Decimal("900")
        assert sim.get_balance(LedgerName.TOKEN, "A") == Decimal("1100")

    def test_get_balance_unknown_account_raises(self, sim):
        with pytest.raises(UnknownAccount):
            sim.get_balance(LedgerName.CORE, "Q")

    def test_total(self, sim):
        sim.deposit("A", "10")
        assert sim.total(LedgerName.CORE) == Decimal("2010")
        assert sim.total(LedgerName.TOKEN) == Decimal("2010")

    def test_divergence_zero_in_lockstep(self, sim):
        sim.transfer("A", "B", "300")
        assert sim.divergence() == balances(0, 0)

    def test_divergence_after_native_transfer(self, native_sim):
        native_sim.transfer("A", "B", "300")
        assert native_sim.divergence() == balances(-300, 300)


class TestApply:

    def test_unsupported_operation_raises_type_error(self, sim):
        with pytest.raises(TypeError, match="Unsupported operation"):
            sim.apply(("transfer", "A", "B", 10))

    def test_rejection_returns_unchanged_snapshot(self, sim):
        before = sim.snapshot()
        outcome = sim.apply(Transfer("A", "B", "5000"))
        assert not outcome.ok
        assert outcome.error is ErrorKind.INSUFFICIENT_BALANCE
        assert outcome.record is None
        assert outcome.snapshot == before
        assert sim.operation_log == []

    def test_rejection_unwrap_raises_typed_exception(self, sim):
        outcome = sim.apply(Transfer("A", "B", "5000"))
        with pytest.raises(InsufficientBalance):
            outcome.unwrap()

    def test_success_unwrap_returns_snapshot(self, sim):
        snap = sim.apply(Fund("A", "1")).unwrap()
        assert snap == sim.snapshot()

    def test_state_usable_after_rejection(self, sim):
        sim.transfer("A", "A", "1")
        assert sim.transfer("A", "B", "1").ok


class TestOperationLog:

    def test_sequence_numbers_are_monotonic(self, sim):
        sim.set_mode(OperatingMode.BACKED)
        sim.transfer("A", "B", "1")
        sim.transfer("A", "B", "-1")          # rejected, not logged
        sim.fund("B", "1")
        assert [r.sequence_number for r in sim.operation_log] == [0, 1, 2]
        assert [r.kind for r in sim.operation_log] == [
            OperationKind.SET_MODE, OperationKind.TRANSFER, OperationKind.FUND,
        ]

    def test_reset_clears_log_and_restarts_numbering(self, sim):
        sim.transfer("A", "B", "1")
        outcome = sim.reset()
        assert outcome.record.kind is OperationKind.RESET
        assert sim.operation_log == []
        assert sim.transfer("A", "B", "1").record.sequence_number == 0

    def test_records_are_immutable(self, sim):
        record = sim.transfer("A", "B", "1").record
        with pytest.raises(AttributeError):
            record.amount = Decimal("2")


class TestVerboseOutput:

    def test_applied_operation_prints_record(self, capsys):
        sim = DualLedger(verbose=True)
        sim.transfer("A", "B", "100")
        out = capsys.readouterr().out
        assert "Operation #0: transfer" in out

    def test_rejection_prints_reason(self, capsys):
        sim = DualLedger(verbose=True)
        sim.transfer("A", "A", "100")
        out = capsys.readouterr().out
        assert "✗ REJECTED transfer" in out

    def test_reset_prints_notice(self, capsys):
        sim = DualLedger(verbose=True)
        sim.reset()
        out = capsys.readouterr().out
        assert "Simulation has been reset. Mode is now unlocked." in out
        assert "Operation #" not in out

    def test_quiet_when_not_verbose(self, sim, capsys):
        sim.transfer("A", "B", "100")
        sim.transfer("A", "A", "100")
        assert capsys.readouterr().out == ""


class TestClone:

    def test_clone_is_independent(self, sim):
        sim.transfer("A", "B", "100")
        cloned = sim.clone()
        cloned.transfer("B", "A", "500")
        assert sim.core == balances(900, 1100)
        assert cloned.core == balances(1400, 600)
        assert len(sim.operation_log) == 1
        assert len(cloned.operation_log) == 2

    def test_clone_preserves_mode_and_lock(self, native_sim):
        native_sim.transfer("A", "B", "1")
        cloned = native_sim.clone()
        assert cloned.mode is OperatingMode.NATIVE
        assert cloned.locked is True
        assert cloned.snapshot() == native_sim.snapshot()

    def test_deepcopy_uses_clone(self, sim):
        cloned = copy.deepcopy(sim)
        cloned.reset()
        cloned.deposit("A", "1")
        assert sim.core == balances(1000, 1000)

    def test_reset_on_clone_does_not_touch_original(self, sim):
        sim.transfer("A", "B", "1")
        cloned = sim.clone()
        cloned.apply(Reset())
        assert sim.locked
        assert not cloned.locked

    def test_repr(self, sim):
        assert repr(sim) == "DualLedger(mode=backed, unlocked, ops=0)"
