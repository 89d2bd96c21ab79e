"""
Core types and pure functions for the dual-ledger simulator.

This module provides the foundational data structures for the simulator:
1. Enums: OperatingMode, LedgerName, OperationKind, ErrorKind
2. Exceptions: SimulationError and one subclass per ErrorKind
3. Immutable data structures: operations, Posting, OperationRecord,
   StateSnapshot, Outcome, SimulationConfig
4. Pure helpers: amount parsing and rounding

Nothing in this module mutates simulator state. The DualLedger class in
simulator.py is the only owner of mutable balances.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, getcontext
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Balances are Decimal so that 0.1 + 0.2 behaves the way a bookkeeper expects.
# The global context is configured once at import time.
#
_SIM_DECIMAL_CONTEXT = getcontext()
_SIM_DECIMAL_CONTEXT.prec = 50
_SIM_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

DEFAULT_ACCOUNTS: Tuple[str, ...] = ("A", "B")
DEFAULT_INITIAL_BALANCE = Decimal("1000")

# Amounts and balances are kept at cent precision.
AMOUNT_DECIMAL_PLACES = 2

ZERO = Decimal("0")


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from account identifier to balance within one ledger.
Balances = Dict[str, Decimal]

# Raw amount as supplied by a caller, before validation.
RawAmount = Union[Decimal, int, float, str]


# ============================================================================
# ENUMS
# ============================================================================

class OperatingMode(Enum):
    """
    How the token ledger relates to the core ledger.

    BACKED: every token movement is mirrored by an equal core movement.
    NATIVE: the token ledger is authoritative; core is not kept in sync.
    """
    BACKED = "backed"
    NATIVE = "native"


class LedgerName(Enum):
    """The two parallel ledgers held by the simulator."""
    CORE = "core"      # off-chain record
    TOKEN = "token"    # on-chain representation


class OperationKind(Enum):
    SET_MODE = "set_mode"
    TRANSFER = "transfer"
    FUND = "fund"
    DEFUND = "defund"
    DEPOSIT = "deposit"
    REDEEM = "redeem"
    RESET = "reset"


class ErrorKind(Enum):
    """
    Classification of a rejected operation.

    Every rejection leaves the simulator exactly as it was before the call.
    """
    INVALID_AMOUNT = "invalid_amount"
    SAME_ACCOUNT = "same_account"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    MODE_LOCKED = "mode_locked"
    CORE_UNDERFLOW = "core_underflow"
    UNKNOWN_ACCOUNT = "unknown_account"
    INVALID_MODE = "invalid_mode"


# Operations that move balances and therefore engage the mode lock.
MUTATING_KINDS = frozenset({
    OperationKind.TRANSFER,
    OperationKind.FUND,
    OperationKind.DEFUND,
    OperationKind.DEPOSIT,
    OperationKind.REDEEM,
})


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SimulationError(Exception):
    """Base exception for all rejected simulator operations."""
    kind: ErrorKind = None


class InvalidAmount(SimulationError):
    """Raised when an amount is not a positive finite number."""
    kind = ErrorKind.INVALID_AMOUNT


class SameAccount(SimulationError):
    """Raised when a transfer names the same account as source and destination."""
    kind = ErrorKind.SAME_ACCOUNT


class InsufficientBalance(SimulationError):
    """Raised when a debit exceeds the balance of the ledger that gates it."""
    kind = ErrorKind.INSUFFICIENT_BALANCE


class ModeLocked(SimulationError):
    """Raised when the mode is changed after the first balance movement."""
    kind = ErrorKind.MODE_LOCKED


class CoreUnderflow(SimulationError):
    """Raised when a backed redemption would drive the core ledger negative."""
    kind = ErrorKind.CORE_UNDERFLOW


class UnknownAccount(SimulationError):
    """Raised when an operation names an account outside the configured set."""
    kind = ErrorKind.UNKNOWN_ACCOUNT


class InvalidMode(SimulationError):
    """Raised when SetMode is given something that is not an OperatingMode."""
    kind = ErrorKind.INVALID_MODE


# ============================================================================
# AMOUNT HELPERS
# ============================================================================

def round_amount(value: Decimal, decimal_places: Optional[int] = AMOUNT_DECIMAL_PLACES) -> Decimal:
    """
    Round a value to the given precision using banker's rounding.

    Returns the value unchanged if decimal_places is None.
    """
    if decimal_places is None:
        return value
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=ROUND_HALF_EVEN)


def parse_amount(raw: Any, decimal_places: Optional[int] = AMOUNT_DECIMAL_PLACES) -> Decimal:
    """
    Convert a caller-supplied amount into a positive, rounded Decimal.

    Floats are converted through str() so that 0.1 stays 0.1.

    Raises:
        InvalidAmount: If the value is not numeric, not finite, or not
                       positive after rounding.
    """
    # bool is an int subclass; True is not an amount
    if isinstance(raw, bool) or raw is None:
        raise InvalidAmount(f"Amount must be a number, got {raw!r}")
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        try:
            value = Decimal(raw.strip())
        except InvalidOperation:
            raise InvalidAmount(f"Amount must be a number, got {raw!r}") from None
    else:
        raise InvalidAmount(f"Amount must be a number, got {type(raw).__name__}")

    if value.is_nan() or value.is_infinite():
        raise InvalidAmount(f"Amount must be finite, got {value}")
    try:
        rounded = round_amount(value, decimal_places)
    except InvalidOperation:
        # quantize fails once the result needs more digits than the context holds
        raise InvalidAmount(f"Amount is too large, got {value}") from None
    if rounded <= ZERO:
        raise InvalidAmount(f"Amount must be positive, got {value}")
    return rounded


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """
    Seeding and precision for a simulation session.

    Attributes:
        accounts: Fixed set of account identifiers (branches).
        initial_core: Starting core balance for every account.
        initial_token: Starting token balance for every account.
        decimal_places: Precision for amounts (None = no rounding).
    """
    accounts: Tuple[str, ...] = DEFAULT_ACCOUNTS
    initial_core: Decimal = DEFAULT_INITIAL_BALANCE
    initial_token: Decimal = DEFAULT_INITIAL_BALANCE
    decimal_places: Optional[int] = AMOUNT_DECIMAL_PLACES

    def __post_init__(self):
        accounts = tuple(self.accounts)
        object.__setattr__(self, 'accounts', accounts)
        if not accounts:
            raise ValueError("At least one account is required")
        if any(not a or not str(a).strip() for a in accounts):
            raise ValueError("Account identifiers cannot be empty")
        if len(set(accounts)) != len(accounts):
            raise ValueError(f"Duplicate account identifiers: {accounts}")
        for name in ('initial_core', 'initial_token'):
            value = getattr(self, name)
            if isinstance(value, bool):
                raise ValueError(f"{name} must be numeric, got {value!r}")
            if not isinstance(value, Decimal):
                value = Decimal(str(value))
                object.__setattr__(self, name, value)
            if value.is_nan() or value.is_infinite():
                raise ValueError(f"{name} must be finite, got {value}")
            if value < ZERO:
                raise ValueError(f"{name} cannot be negative, got {value}")
        if self.decimal_places is not None and self.decimal_places < 0:
            raise ValueError(f"decimal_places cannot be negative, got {self.decimal_places}")

    def seed(self, ledger: LedgerName) -> Balances:
        """Return a fresh balance map for the given ledger."""
        initial = self.initial_core if ledger is LedgerName.CORE else self.initial_token
        return {account: initial for account in self.accounts}


# ============================================================================
# OPERATIONS
# ============================================================================
#
# Operations carry raw caller input. Validation happens in DualLedger.apply()
# so that a bad amount becomes a rejected Outcome rather than a constructor
# error.

@dataclass(frozen=True, slots=True)
class SetMode:
    mode: Union[OperatingMode, str]
    kind = OperationKind.SET_MODE


@dataclass(frozen=True, slots=True)
class Transfer:
    """Move tokens from one account to another."""
    source: str
    destination: str
    amount: RawAmount
    kind = OperationKind.TRANSFER


@dataclass(frozen=True, slots=True)
class Fund:
    """Bring core value on-chain for one branch."""
    branch: str
    amount: RawAmount
    kind = OperationKind.FUND


@dataclass(frozen=True, slots=True)
class Defund:
    """Take token value back off-chain for one branch."""
    branch: str
    amount: RawAmount
    kind = OperationKind.DEFUND


@dataclass(frozen=True, slots=True)
class Deposit:
    """Inject new value (an external cash deposit) for one branch."""
    branch: str
    amount: RawAmount
    kind = OperationKind.DEPOSIT


@dataclass(frozen=True, slots=True)
class Redeem:
    """Withdraw value from the system for one branch."""
    branch: str
    amount: RawAmount
    kind = OperationKind.REDEEM


@dataclass(frozen=True, slots=True)
class Reset:
    kind = OperationKind.RESET


Operation = Union[SetMode, Transfer, Fund, Defund, Deposit, Redeem, Reset]


# ============================================================================
# POSTINGS AND RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Posting:
    """
    A single signed balance change on one ledger for one account.

    An operation is planned as a tuple of postings which are validated as a
    whole before any of them is applied.
    """
    ledger: LedgerName
    account: str
    delta: Decimal

    def __post_init__(self):
        if not isinstance(self.delta, Decimal):
            raise ValueError(f"Posting delta must be Decimal, got {type(self.delta)}")
        if self.delta.is_nan() or self.delta.is_infinite():
            raise ValueError(f"Posting delta must be finite, got {self.delta}")

    def __repr__(self) -> str:
        sign = "+" if self.delta >= 0 else ""
        return f"Posting({self.ledger.value}[{self.account}] {sign}{self.delta})"


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """
    Immutable log entry for a successfully applied operation.

    Records exist for observability only; the simulator never reads them back.

    Attributes:
        sequence_number: Monotonic position within the current session epoch
        kind: Which operation was applied
        mode: Operating mode after the operation
        accounts: Accounts involved (source first for transfers)
        amount: Validated amount, or None for SetMode/Reset
        postings: Balance changes that were applied
        engaged_lock: True if this operation locked the mode
    """
    sequence_number: int
    kind: OperationKind
    mode: OperatingMode
    accounts: Tuple[str, ...] = ()
    amount: Optional[Decimal] = None
    postings: Tuple[Posting, ...] = ()
    engaged_lock: bool = False

    def __repr__(self) -> str:
        w = 72
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Operation #' + str(self.sequence_number) + ': ' + self.kind.value)}│",
            f"├{bar}┤",
            f"│{pad('   mode     : ' + self.mode.value)}│",
            f"│{pad('   accounts : ' + (', '.join(self.accounts) or '-'))}│",
            f"│{pad('   amount   : ' + (str(self.amount) if self.amount is not None else '-'))}│",
        ]
        if self.engaged_lock:
            lines.append(f"│{pad('   mode locked by this operation')}│")
        if self.postings:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Postings (' + str(len(self.postings)) + '):')}│")
            for i, p in enumerate(self.postings):
                lines.append(f"│{pad(f'   [{i}] {p.ledger.value}[{p.account}] {p.delta:+}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    """
    Immutable copy of the simulator state returned to callers.

    core and token are read-only views over private copies, so neither the
    simulator nor the caller can change a snapshot after it is taken.

    The caller holds no other copy of truth; it renders the last snapshot.
    """
    core: Mapping[str, Decimal]
    token: Mapping[str, Decimal]
    mode: OperatingMode
    locked: bool

    def __post_init__(self):
        object.__setattr__(self, 'core', MappingProxyType(dict(self.core)))
        object.__setattr__(self, 'token', MappingProxyType(dict(self.token)))

    def __hash__(self) -> int:
        return hash((
            frozenset(self.core.items()),
            frozenset(self.token.items()),
            self.mode,
            self.locked,
        ))

    def ledger(self, name: LedgerName) -> Dict[str, Decimal]:
        return dict(self.core if name is LedgerName.CORE else self.token)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'core': dict(self.core),
            'token': dict(self.token),
            'mode': self.mode.value,
            'locked': self.locked,
        }


@dataclass(frozen=True, slots=True)
class Outcome:
    """
    Result of DualLedger.apply().

    snapshot is always the state after the call; on rejection it equals the
    state before the call. record is set on success, error and message on
    rejection.
    """
    snapshot: StateSnapshot
    record: Optional[OperationRecord] = None
    error: Optional[ErrorKind] = None
    message: str = ""
    exception: Optional[SimulationError] = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> StateSnapshot:
        """Return the snapshot, or raise the SimulationError that rejected the call."""
        if self.exception is not None:
            raise self.exception
        return self.snapshot
