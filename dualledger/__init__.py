"""
dualledger - Backed vs Native Dual-Ledger Simulator

Models value that exists in an off-chain core ledger and an on-chain token
ledger at the same time, under two operating modes:

    BACKED: every token movement is mirrored in the core ledger.
    NATIVE: the token ledger is authoritative; core is left alone.

Usage:
    from dualledger import DualLedger, Transfer, SetMode, OperatingMode

    sim = DualLedger(verbose=False)
    outcome = sim.apply(Transfer("A", "B", "100"))
    outcome.snapshot.core     # {'A': Decimal('900.00'), 'B': Decimal('1100.00')}

    # The mode is locked after the first balance movement
    sim.apply(SetMode(OperatingMode.NATIVE)).error   # ErrorKind.MODE_LOCKED
"""

# Core types
from .core import (
    OperatingMode,
    LedgerName,
    OperationKind,
    ErrorKind,
    SetMode,
    Transfer,
    Fund,
    Defund,
    Deposit,
    Redeem,
    Reset,
    Operation,
    Posting,
    OperationRecord,
    StateSnapshot,
    Outcome,
    SimulationConfig,
    SimulationError,
    InvalidAmount,
    SameAccount,
    InsufficientBalance,
    ModeLocked,
    CoreUnderflow,
    UnknownAccount,
    InvalidMode,
    parse_amount,
    round_amount,
    DEFAULT_ACCOUNTS,
    DEFAULT_INITIAL_BALANCE,
    AMOUNT_DECIMAL_PLACES,
)

# State machine
from .simulator import DualLedger

# Rendering
from .events import (
    describe,
    render_log,
    format_amount,
    format_snapshot,
)

__all__ = [
    # Core
    'OperatingMode', 'LedgerName', 'OperationKind', 'ErrorKind',
    'SetMode', 'Transfer', 'Fund', 'Defund', 'Deposit', 'Redeem', 'Reset', 'Operation',
    'Posting', 'OperationRecord', 'StateSnapshot', 'Outcome', 'SimulationConfig',
    'SimulationError', 'InvalidAmount', 'SameAccount', 'InsufficientBalance',
    'ModeLocked', 'CoreUnderflow', 'UnknownAccount', 'InvalidMode',
    'parse_amount', 'round_amount',
    'DEFAULT_ACCOUNTS', 'DEFAULT_INITIAL_BALANCE', 'AMOUNT_DECIMAL_PLACES',
    # State machine
    'DualLedger',
    # Rendering
    'describe', 'render_log', 'format_amount', 'format_snapshot',
]

__version__ = '1.0.0'
