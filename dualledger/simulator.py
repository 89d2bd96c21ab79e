"""
simulator.py - Dual-Ledger State Machine

The DualLedger class owns the core (off-chain) and token (on-chain) ledgers,
the operating mode and the mode lock. It is the only module that mutates
simulator state.

Key responsibilities:
    - Validates every operation before touching any balance
    - Applies operations atomically (all postings or none)
    - Locks the operating mode after the first balance movement
    - Records every applied operation in the operation log
"""

from __future__ import annotations
from decimal import Decimal, Inexact, localcontext
from typing import Dict, List, Optional, Tuple

from .core import (
    # Types
    OperatingMode, LedgerName, OperationKind,
    SetMode, Transfer, Fund, Defund, Deposit, Redeem, Reset, Operation,
    Posting, OperationRecord, StateSnapshot, Outcome, SimulationConfig,
    Balances, RawAmount,
    # Constants
    MUTATING_KINDS, ZERO,
    # Exceptions
    SimulationError, InsufficientBalance, SameAccount, ModeLocked,
    CoreUnderflow, UnknownAccount, InvalidMode, InvalidAmount,
    # Helpers
    parse_amount,
)
from .events import describe


class DualLedger:
    """
    Two parallel ledgers over a fixed account set, kept in lockstep or allowed
    to diverge depending on a locked operating mode.

    Design Principles:
        - Always validates: an operation is planned as postings, the postings
          are checked against the non-negative balance invariant, and only
          then applied. A rejected operation changes nothing.
        - Always logs: every applied operation is appended to operation_log.

    Mode-switch policy:
        Switching to NATIVE never copies core balances into the token ledger.
        Token balances only change through Transfer, Fund, Defund, Deposit
        and Redeem.

    Thread Safety:
        Not thread-safe. Each session should own its own DualLedger.

    Example:
        sim = DualLedger(verbose=False)
        outcome = sim.apply(Transfer("A", "B", "100"))
        assert outcome.ok
        assert outcome.snapshot.core == {"A": Decimal("900"), "B": Decimal("1100")}
    """

    def __init__(self, config: Optional[SimulationConfig] = None, verbose: bool = True):
        """
        Create a simulator seeded from config.

        Args:
            config: Accounts, seed balances and precision (default: A/B at 1000)
            verbose: Print applied operations and rejections (default: True)
        """
        self.config = config or SimulationConfig()
        self.verbose = verbose
        self.core: Balances = {}
        self.token: Balances = {}
        self.mode: OperatingMode = OperatingMode.BACKED
        self.locked: bool = False
        self.operation_log: List[OperationRecord] = []
        self._next_sequence: int = 0
        self._reinitialize()

    def _reinitialize(self) -> None:
        self.core = self.config.seed(LedgerName.CORE)
        self.token = self.config.seed(LedgerName.TOKEN)
        self.mode = OperatingMode.BACKED
        self.locked = False
        self.operation_log = []
        self._next_sequence = 0

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    def snapshot(self) -> StateSnapshot:
        """Return an immutable copy of the current state."""
        return StateSnapshot(
            core=dict(self.core),
            token=dict(self.token),
            mode=self.mode,
            locked=self.locked,
        )

    def list_accounts(self) -> Tuple[str, ...]:
        return self.config.accounts

    def get_balance(self, ledger: LedgerName, account: str) -> Decimal:
        """
        Get the balance of an account in one ledger.

        Raises:
            UnknownAccount: If the account is not configured
        """
        self._require_account(account)
        return self._balances(ledger)[account]

    def total(self, ledger: LedgerName) -> Decimal:
        """Sum of all balances in one ledger, accumulated in account order."""
        balances = self._balances(ledger)
        return sum((balances[a] for a in self.config.accounts), ZERO)

    def divergence(self) -> Dict[str, Decimal]:
        """
        Token minus core balance per account.

        All zeros while the two ledgers are in lockstep.
        """
        return {a: self.token[a] - self.core[a] for a in self.config.accounts}

    def _balances(self, ledger: LedgerName) -> Balances:
        return self.core if ledger is LedgerName.CORE else self.token

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def apply(self, operation: Operation) -> Outcome:
        """
        Validate and apply a single operation.

        Args:
            operation: One of SetMode, Transfer, Fund, Defund, Deposit,
                       Redeem or Reset

        Returns:
            Outcome with the new snapshot and an OperationRecord on success,
            or the unchanged snapshot and an ErrorKind on rejection.

        Raises:
            TypeError: If operation is not a supported operation type
        """
        handler = self._HANDLERS.get(type(operation))
        if handler is None:
            raise TypeError(f"Unsupported operation: {operation!r}")

        try:
            record = handler(self, operation)
        except SimulationError as e:
            if self.verbose:
                print(f"✗ REJECTED {operation.kind.value}: {e}")
            return Outcome(
                snapshot=self.snapshot(),
                error=e.kind,
                message=str(e),
                exception=e,
            )

        if self.verbose:
            if record.kind is OperationKind.RESET:
                print(f"↺ {describe(record)}")
            else:
                print(repr(record))
        return Outcome(snapshot=self.snapshot(), record=record)

    def set_mode(self, mode) -> Outcome:
        return self.apply(SetMode(mode))

    def transfer(self, source: str, destination: str, amount: RawAmount) -> Outcome:
        return self.apply(Transfer(source, destination, amount))

    def fund(self, branch: str, amount: RawAmount) -> Outcome:
        return self.apply(Fund(branch, amount))

    def defund(self, branch: str, amount: RawAmount) -> Outcome:
        return self.apply(Defund(branch, amount))

    def deposit(self, branch: str, amount: RawAmount) -> Outcome:
        return self.apply(Deposit(branch, amount))

    def redeem(self, branch: str, amount: RawAmount) -> Outcome:
        return self.apply(Redeem(branch, amount))

    def reset(self) -> Outcome:
        return self.apply(Reset())

    # ========================================================================
    # HANDLERS
    # ========================================================================
    #
    # Each handler either raises SimulationError before mutating anything, or
    # returns the record of what it applied.

    def _set_mode(self, op: SetMode) -> OperationRecord:
        if self.locked:
            raise ModeLocked(
                f"Mode is locked at {self.mode.value}; reset to change the mode"
            )
        try:
            new_mode = op.mode if isinstance(op.mode, OperatingMode) else OperatingMode(op.mode)
        except ValueError:
            raise InvalidMode(f"Unknown operating mode {op.mode!r}") from None
        self.mode = new_mode
        return self._log(OperationKind.SET_MODE)

    def _transfer(self, op: Transfer) -> OperationRecord:
        self._require_account(op.source)
        self._require_account(op.destination)
        amount = self._amount(op.amount)
        if op.source == op.destination:
            raise SameAccount(f"Source and destination must differ, got {op.source}")

        if self.token[op.source] < amount:
            raise InsufficientBalance(
                f"Insufficient token balance in {op.source}: "
                f"{self.token[op.source]} < {amount}"
            )
        postings = [
            Posting(LedgerName.TOKEN, op.source, -amount),       # burn
            Posting(LedgerName.TOKEN, op.destination, amount),   # mint
        ]
        if self.mode is OperatingMode.BACKED:
            if self.core[op.source] < amount:
                raise InsufficientBalance(
                    f"Insufficient core balance in {op.source}: "
                    f"{self.core[op.source]} < {amount}"
                )
            postings += [
                Posting(LedgerName.CORE, op.source, -amount),
                Posting(LedgerName.CORE, op.destination, amount),
            ]
        return self._commit(
            OperationKind.TRANSFER, (op.source, op.destination), amount, postings
        )

    def _fund(self, op: Fund) -> OperationRecord:
        self._require_account(op.branch)
        amount = self._amount(op.amount)
        if self.core[op.branch] < amount:
            raise InsufficientBalance(
                f"Insufficient core balance in {op.branch}: "
                f"{self.core[op.branch]} < {amount}"
            )
        postings = [
            Posting(LedgerName.CORE, op.branch, -amount),
            Posting(LedgerName.TOKEN, op.branch, amount),
        ]
        return self._commit(OperationKind.FUND, (op.branch,), amount, postings)

    def _defund(self, op: Defund) -> OperationRecord:
        self._require_account(op.branch)
        amount = self._amount(op.amount)
        if self.token[op.branch] < amount:
            raise InsufficientBalance(
                f"Insufficient token balance in {op.branch}: "
                f"{self.token[op.branch]} < {amount}"
            )
        postings = [
            Posting(LedgerName.TOKEN, op.branch, -amount),
            Posting(LedgerName.CORE, op.branch, amount),
        ]
        return self._commit(OperationKind.DEFUND, (op.branch,), amount, postings)

    def _deposit(self, op: Deposit) -> OperationRecord:
        self._require_account(op.branch)
        amount = self._amount(op.amount)
        postings = [Posting(LedgerName.TOKEN, op.branch, amount)]
        if self.mode is OperatingMode.BACKED:
            postings.append(Posting(LedgerName.CORE, op.branch, amount))
        return self._commit(OperationKind.DEPOSIT, (op.branch,), amount, postings)

    def _redeem(self, op: Redeem) -> OperationRecord:
        self._require_account(op.branch)
        amount = self._amount(op.amount)
        if self.token[op.branch] < amount:
            raise InsufficientBalance(
                f"Insufficient token balance in {op.branch}: "
                f"{self.token[op.branch]} < {amount}"
            )
        postings = [Posting(LedgerName.TOKEN, op.branch, -amount)]
        if self.mode is OperatingMode.BACKED:
            if self.core[op.branch] < amount:
                raise CoreUnderflow(
                    f"Redeeming {amount} from {op.branch} would drive core "
                    f"negative ({self.core[op.branch]} available)"
                )
            postings.append(Posting(LedgerName.CORE, op.branch, -amount))
        return self._commit(OperationKind.REDEEM, (op.branch,), amount, postings)

    def _reset(self, op: Reset) -> OperationRecord:
        self._reinitialize()
        # Reset clears the log, so its record is returned but not kept.
        return OperationRecord(
            sequence_number=0,
            kind=OperationKind.RESET,
            mode=self.mode,
        )

    _HANDLERS = {
        SetMode: _set_mode,
        Transfer: _transfer,
        Fund: _fund,
        Defund: _defund,
        Deposit: _deposit,
        Redeem: _redeem,
        Reset: _reset,
    }

    # ========================================================================
    # VALIDATION AND COMMIT
    # ========================================================================

    def _require_account(self, account: str) -> None:
        if account not in self.config.accounts:
            raise UnknownAccount(
                f"Account {account!r} is not one of {list(self.config.accounts)}"
            )

    def _amount(self, raw: RawAmount) -> Decimal:
        return parse_amount(raw, self.config.decimal_places)

    def _validate_postings(
        self, postings: List[Posting]
    ) -> Dict[Tuple[LedgerName, str], Decimal]:
        """
        Compute the balances that applying all postings would produce.

        Nets postings per (ledger, account), then checks every resulting
        balance is non-negative. The arithmetic traps Inexact: a sum that
        does not fit the decimal context is rejected, never rounded.

        Returns:
            Proposed balance per (ledger, account) touched by the postings

        Raises:
            InvalidAmount: If a resulting balance exceeds the context precision
            InsufficientBalance: If a resulting balance would be negative
        """
        proposed: Dict[Tuple[LedgerName, str], Decimal] = {}
        with localcontext() as ctx:
            ctx.traps[Inexact] = True
            try:
                for p in postings:
                    key = (p.ledger, p.account)
                    current = proposed.get(key, self._balances(p.ledger)[p.account])
                    proposed[key] = current + p.delta
            except Inexact:
                raise InvalidAmount(
                    f"{p.ledger.value}[{p.account}] would exceed "
                    f"{ctx.prec} significant digits"
                ) from None
        for (ledger, account), balance in proposed.items():
            if balance < ZERO:
                raise InsufficientBalance(
                    f"{ledger.value}[{account}]: {balance} < 0"
                )
        return proposed

    def _apply_postings(self, proposed: Dict[Tuple[LedgerName, str], Decimal]) -> None:
        for (ledger, account), balance in proposed.items():
            self._balances(ledger)[account] = balance

    def _commit(
        self,
        kind: OperationKind,
        accounts: Tuple[str, ...],
        amount: Decimal,
        postings: List[Posting],
    ) -> OperationRecord:
        self._apply_postings(self._validate_postings(postings))
        engaged = False
        if kind in MUTATING_KINDS and not self.locked:
            self.locked = True
            engaged = True
        return self._log(kind, accounts, amount, tuple(postings), engaged)

    def _log(
        self,
        kind: OperationKind,
        accounts: Tuple[str, ...] = (),
        amount: Optional[Decimal] = None,
        postings: Tuple[Posting, ...] = (),
        engaged_lock: bool = False,
    ) -> OperationRecord:
        record = OperationRecord(
            sequence_number=self._next_sequence,
            kind=kind,
            mode=self.mode,
            accounts=accounts,
            amount=amount,
            postings=postings,
            engaged_lock=engaged_lock,
        )
        self._next_sequence += 1
        self.operation_log.append(record)
        return record

    # ========================================================================
    # COPYING
    # ========================================================================

    def clone(self) -> DualLedger:
        """
        Create an independent copy of this simulator.

        Balances, mode, lock and operation log are copied; changes to the
        clone never affect the original.

        Returns:
            A new DualLedger instance with identical state
        """
        cloned = DualLedger.__new__(DualLedger)
        cloned.config = self.config
        cloned.verbose = self.verbose
        cloned.core = dict(self.core)
        cloned.token = dict(self.token)
        cloned.mode = self.mode
        cloned.locked = self.locked
        cloned.operation_log = list(self.operation_log)
        cloned._next_sequence = self._next_sequence
        return cloned

    def __deepcopy__(self, memo) -> DualLedger:
        return self.clone()

    def __repr__(self) -> str:
        state = "locked" if self.locked else "unlocked"
        return f"DualLedger(mode={self.mode.value}, {state}, ops={len(self.operation_log)})"
