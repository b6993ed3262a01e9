"""
Ledger Error Types

Every failure the engine reports is raised as one of these exceptions. The
account state is left exactly as it was whenever one is raised.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger errors"""

    def __init__(self, message: str, account_number: Optional[str] = None):
        super().__init__(message)
        self.account_number = account_number


class AccountNotFoundError(LedgerError):
    """No live account has the given account number"""

    def __init__(self, account_number: str):
        super().__init__(f"Account {account_number} not found", account_number)


class UnauthorizedError(LedgerError):
    """The supplied PIN does not match the account's PIN"""

    def __init__(self, account_number: str):
        super().__init__(f"Wrong pin for account {account_number}", account_number)


class InsufficientFundsError(LedgerError):
    """The operation would drive the balance below zero"""

    def __init__(self, account_number: str, balance: int, requested: int):
        super().__init__(
            f"Insufficient funds in account {account_number}: "
            f"balance {balance}, requested {requested}",
            account_number
        )
        self.balance = balance
        self.requested = requested


class InvalidOperationError(LedgerError):
    """The operation is not allowed, e.g. a transfer to the same account"""


class InvalidAmountError(LedgerError):
    """The amount is not a non-negative integer within range"""

    def __init__(self, amount: object, reason: str = "must be a non-negative integer"):
        super().__init__(f"Invalid amount {amount!r}: {reason}")
        self.amount = amount
        self.reason = reason


class DuplicateKeyError(LedgerError):
    """
    An account number or id is already present in the store.

    Only reaches callers of the engine when account number generation keeps
    colliding, which points at a misconfigured account number length.
    """
