"""
helpers.py - Shared assertions and shorthands for dual-ledger tests
"""

from decimal import Decimal
from typing import Dict

from dualledger import StateSnapshot


def assert_non_negative(snapshot: StateSnapshot) -> None:
    """Every balance in both ledgers must be >= 0."""
    for name, balances in (("core", snapshot.core), ("token", snapshot.token)):
        for account, balance in balances.items():
            assert balance >= Decimal("0"), f"{name}[{account}] went negative: {balance}"


def balances(a, b) -> Dict[str, Decimal]:
    """Shorthand for a two-account balance map."""
    return {"A": Decimal(str(a)), "B": Decimal(str(b))}
