"""
events.py - Human-readable rendering of simulator records and snapshots

Pure functions only. The simulator uses describe() for its verbose Reset
notice; everything else exists for callers that want log lines or two-decimal
balance tables.
"""

from decimal import Decimal
from typing import Dict, Iterable, List

from .core import (
    OperatingMode, OperationKind, OperationRecord, StateSnapshot,
    AMOUNT_DECIMAL_PLACES, round_amount,
)


def format_amount(value: Decimal) -> str:
    """Format a Decimal with two decimal places, e.g. Decimal("900") -> "900.00"."""
    return f"{round_amount(value, AMOUNT_DECIMAL_PLACES):.2f}"


def format_snapshot(snapshot: StateSnapshot) -> Dict[str, Dict[str, str]]:
    """
    Format every balance in a snapshot for display.

    Returns:
        {'core': {'A': '900.00', ...}, 'token': {...}}
    """
    return {
        'core': {a: format_amount(v) for a, v in snapshot.core.items()},
        'token': {a: format_amount(v) for a, v in snapshot.token.items()},
    }


def _tag(mode: OperatingMode) -> str:
    return f"[{mode.value.capitalize()}]"


def describe(record: OperationRecord) -> str:
    """
    Render one operation record as a single log line.

    Example:
        [Backed] Transfer $100.00 from A to B. Burn & mint on-chain, and update core.
    """
    kind = record.kind
    tag = _tag(record.mode)

    if kind is OperationKind.RESET:
        return "Simulation has been reset. Mode is now unlocked."
    if kind is OperationKind.SET_MODE:
        return f"Mode changed to: {record.mode.value}"

    amount = f"${format_amount(record.amount)}"
    backed = record.mode is OperatingMode.BACKED

    if kind is OperationKind.TRANSFER:
        source, destination = record.accounts
        if backed:
            line = (f"{tag} Transfer {amount} from {source} to {destination}. "
                    "Burn & mint on-chain, and update core.")
        else:
            line = (f"{tag} Transfer {amount} from {source} to {destination}. "
                    "Off-chain ledger is not affected.")
    else:
        branch = record.accounts[0]
        if kind is OperationKind.FUND:
            line = f"{tag} Fund {amount} at {branch}: core -> token."
        elif kind is OperationKind.DEFUND:
            line = f"{tag} Defund {amount} at {branch}: token -> core."
        elif kind is OperationKind.DEPOSIT:
            where = "core and token" if backed else "token only"
            line = f"{tag} Deposit {amount} at {branch}: credited {where}."
        else:
            where = "token burned and core debited" if backed else "token burned, core untouched"
            line = f"{tag} Redeem {amount} at {branch}: {where}."

    if record.engaged_lock:
        line += " Mode locked."
    return line


def render_log(records: Iterable[OperationRecord]) -> List[str]:
    """Render a sequence of records as numbered log lines."""
    return [f"{r.sequence_number:>3}  {describe(r)}" for r in records]
