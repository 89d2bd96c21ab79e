#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Backed vs Native Tokens

A step-by-step walk through the dual-ledger simulator. Each step builds on
the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-2:  Backed model   - Mirrored transfers, the mode lock
  3-4:  Native model   - Funding on-chain, core drifting away from token
  5-6:  Value in/out   - Deposits, redemptions, rejected operations
  7:    Reset          - Starting over

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from decimal import Decimal
import sys

from dualledger import (
    DualLedger, SimulationConfig, OperatingMode, LedgerName,
    Transfer, Fund, Deposit, Redeem, SetMode,
    describe, format_snapshot, render_log,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    initial_balance: Decimal = Decimal("1000")
    transfer_amount: Decimal = Decimal("100")
    fund_amount: Decimal = Decimal("300")
    deposit_amount: Decimal = Decimal("250")


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_balances(sim: DualLedger):
    """Print both ledgers side by side with two decimals."""
    formatted = format_snapshot(sim.snapshot())
    print(f"  {'account':<10}{'core':>14}{'token':>14}")
    for account in sim.list_accounts():
        print(f"  {account:<10}{formatted['core'][account]:>14}{formatted['token'][account]:>14}")
    print(f"  mode={sim.mode.value}  locked={sim.locked}")


def show_outcome(outcome):
    if outcome.ok:
        print(f"  ✓ {describe(outcome.record)}")
    else:
        print(f"  ✗ {outcome.error.value}: {outcome.message}")


# ============================================================================
# BACKED MODEL
# ============================================================================

def step_01_backed_transfer() -> DualLedger:
    step_header(1, "A Backed Transfer",
        "See that a token transfer is mirrored one-for-one in the core ledger.")

    sim = DualLedger(
        SimulationConfig(
            initial_core=CONFIG.initial_balance,
            initial_token=CONFIG.initial_balance,
        ),
        verbose=False,
    )
    section_header("Initial State")
    show_balances(sim)

    print(f"\n>>> sim.apply(Transfer('A', 'B', {CONFIG.transfer_amount}))")
    show_outcome(sim.apply(Transfer("A", "B", CONFIG.transfer_amount)))
    show_balances(sim)

    section_header("Key Insight")
    print("""
    Tokens were burned at A and minted at B, and the core ledger moved by
    exactly the same amount. The two ledgers never disagree.
    """)
    return sim


def step_02_mode_lock(sim: DualLedger) -> DualLedger:
    step_header(2, "The Mode Lock",
        "Understand why the mode cannot change once value has moved.")

    print(">>> sim.apply(SetMode(OperatingMode.NATIVE))")
    show_outcome(sim.apply(SetMode(OperatingMode.NATIVE)))
    show_balances(sim)
    return sim


# ============================================================================
# NATIVE MODEL
# ============================================================================

def step_03_native_funding() -> DualLedger:
    step_header(3, "Funding a Native Token",
        "Move value from the core ledger onto the token ledger.")

    sim = DualLedger(SimulationConfig(initial_token=Decimal("0")), verbose=False)
    show_outcome(sim.apply(SetMode(OperatingMode.NATIVE)))
    print(f"\n>>> sim.apply(Fund('A', {CONFIG.fund_amount}))")
    show_outcome(sim.apply(Fund("A", CONFIG.fund_amount)))
    show_balances(sim)
    return sim


def step_04_native_transfer(sim: DualLedger) -> DualLedger:
    step_header(4, "A Native Transfer",
        "See the core ledger stay put while tokens move.")

    print(f">>> sim.apply(Transfer('A', 'B', {CONFIG.fund_amount}))")
    show_outcome(sim.apply(Transfer("A", "B", CONFIG.fund_amount)))
    show_balances(sim)

    section_header("Divergence (token - core)")
    for account, gap in sim.divergence().items():
        print(f"  {account}: {gap:+.2f}")
    return sim


# ============================================================================
# VALUE IN AND OUT
# ============================================================================

def step_05_deposit_and_redeem(sim: DualLedger) -> DualLedger:
    step_header(5, "Deposits and Redemptions",
        "Inject value into the system and take it back out.")

    show_outcome(sim.apply(Deposit("B", CONFIG.deposit_amount)))
    show_outcome(sim.apply(Redeem("B", CONFIG.deposit_amount)))
    show_balances(sim)
    print(f"\n  token total: {sim.total(LedgerName.TOKEN):.2f}")
    print(f"  core total:  {sim.total(LedgerName.CORE):.2f}")
    return sim


def step_06_rejections(sim: DualLedger) -> DualLedger:
    step_header(6, "Rejected Operations",
        "Every rejection is reported and leaves the state untouched.")

    for op in [
        Transfer("A", "A", "50"),
        Transfer("A", "B", "-10"),
        Transfer("A", "B", "NaN"),
        Transfer("A", "B", "1000000"),
    ]:
        print(f">>> sim.apply({op!r})")
        show_outcome(sim.apply(op))
    show_balances(sim)
    return sim


def step_07_reset(sim: DualLedger) -> DualLedger:
    step_header(7, "Reset",
        "Return to the seeded balances with the mode unlocked.")

    section_header("Operation Log")
    for line in render_log(sim.operation_log):
        print(f"  {line}")

    show_outcome(sim.reset())
    show_balances(sim)
    return sim


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       DUAL LEDGER - BACKED VS NATIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    sim = step_01_backed_transfer()
    wait_for_enter()
    step_02_mode_lock(sim)
    wait_for_enter()

    sim = step_03_native_funding()
    wait_for_enter()
    sim = step_04_native_transfer(sim)
    wait_for_enter()
    sim = step_05_deposit_and_redeem(sim)
    wait_for_enter()
    sim = step_06_rejections(sim)
    wait_for_enter()
    step_07_reset(sim)

    print("""
    SUMMARY

      BACKED: token and core move together; totals per ledger are conserved
      NATIVE: token is authoritative; core only moves on Fund and Defund
      The mode is chosen once and locked by the first balance movement
    """)


if __name__ == "__main__":
    main()
