"""
Account Model

The single row type of the ledger. Balances are integers in the smallest
currency unit.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

# Largest value an SQLite INTEGER column can hold
MAX_BALANCE = 2 ** 63 - 1


@dataclass
class Account:
    """A ledger account row"""
    id: int
    account_number: str
    balance: int
    pin: str

    def __post_init__(self):
        if self.id < 1:
            raise ValueError("Account id must be positive")
        if not 0 <= self.balance <= MAX_BALANCE:
            raise ValueError(f"Account balance out of range: {self.balance}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Create instance from a stored row"""
        return cls(
            id=int(data['id']),
            account_number=str(data['account_number']),
            balance=int(data['balance']),
            pin=str(data['pin'])
        )

    def __repr__(self) -> str:
        # Keep the PIN out of logs and tracebacks
        return (
            f"Account(id={self.id}, account_number={self.account_number!r}, "
            f"balance={self.balance})"
        )
