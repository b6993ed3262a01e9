"""
Ledger Engine Module

Creates accounts and applies PIN-authorized balance mutations. Every
mutation validates its preconditions and writes inside a single
``store.atomic()`` block, so a failure leaves the stored accounts exactly
as they were.
"""

from typing import Optional, Tuple, Union

from .account_numbers import AccountNumberGenerator, DEFAULT_PIN_LENGTH
from .errors import (
    AccountNotFoundError, DuplicateKeyError, InsufficientFundsError,
    InvalidAmountError, InvalidOperationError, UnauthorizedError
)
from .logging_config import get_logger, log_action
from .models import Account, MAX_BALANCE
from .storage import AccountStore

DEFAULT_MAX_GENERATION_ATTEMPTS = 1000

Amount = Union[int, str]

logger = get_logger("personal_ledger.ledger")


def parse_amount(amount: Amount) -> int:
    """
    Parse a caller-supplied amount into a non-negative integer.

    Accepts ints and strings of decimal digits (surrounding whitespace is
    ignored). Signs, decimals, underscores and bools are rejected.
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(amount)
    if isinstance(amount, int):
        value = amount
    elif isinstance(amount, str):
        text = amount.strip()
        if not text or not text.isascii() or not text.isdigit():
            raise InvalidAmountError(amount)
        value = int(text)
    else:
        raise InvalidAmountError(amount)

    if value < 0:
        raise InvalidAmountError(amount)
    if value > MAX_BALANCE:
        raise InvalidAmountError(amount, f"must not exceed {MAX_BALANCE}")
    return value


class LedgerEngine:
    """
    Account creation and authenticated balance operations over an AccountStore
    """

    def __init__(
        self,
        store: AccountStore,
        generator: Optional[AccountNumberGenerator] = None,
        max_generation_attempts: int = DEFAULT_MAX_GENERATION_ATTEMPTS,
        pin_length: int = DEFAULT_PIN_LENGTH
    ):
        if max_generation_attempts < 1:
            raise ValueError("max_generation_attempts must be positive")
        self.store = store
        self.generator = generator or AccountNumberGenerator()
        self.max_generation_attempts = max_generation_attempts
        self.pin_length = pin_length

    def _authorize(self, account: Account, pin: str) -> None:
        if account.pin != pin:
            log_action(logger, "warning", "Rejected operation with wrong pin",
                       action="authorize", resource=account.account_number)
            raise UnauthorizedError(account.account_number)

    def _fetch(self, account_number: str, action: str) -> Account:
        try:
            return self.store.fetch_by_number(account_number)
        except AccountNotFoundError:
            log_action(logger, "warning", "Rejected operation on unknown account",
                       action=action, resource=account_number)
            raise

    def _parse(self, amount: Amount, action: str, account_number: str) -> int:
        try:
            return parse_amount(amount)
        except InvalidAmountError as e:
            log_action(logger, "warning", "Rejected invalid amount", action=action,
                       resource=account_number, extra={"amount": repr(amount), "reason": e.reason})
            raise

    def create_account(self) -> Account:
        """
        Create an account with a fresh unique number, zero balance and random PIN.

        The returned account carries the plaintext PIN; this is the only time
        it is handed back to the caller.

        Raises:
            DuplicateKeyError: if no unique number was found within
                ``max_generation_attempts`` candidates
        """
        with self.store.atomic():
            for attempt in range(1, self.max_generation_attempts + 1):
                account_number = self.generator.generate()
                if self.store.exists(account_number):
                    logger.debug("Account number collision on attempt %d", attempt)
                    continue

                account = Account(
                    id=self.store.next_id(),
                    account_number=account_number,
                    balance=0,
                    pin=self.generator.generate_pin(self.pin_length)
                )
                try:
                    self.store.insert(account)
                except DuplicateKeyError:
                    # Another writer took this number or id first
                    logger.debug("Insert conflict on attempt %d", attempt)
                    continue

                log_action(logger, "info", "Created account", action="create_account",
                           resource=account.account_number, extra={"id": account.id})
                return account

        log_action(logger, "error", "Account number generation exhausted",
                   action="create_account",
                   extra={"attempts": self.max_generation_attempts,
                          "length": self.generator.length})
        raise DuplicateKeyError(
            f"No unique account number after {self.max_generation_attempts} attempts; "
            f"check the configured account number length ({self.generator.length})"
        )

    def deposit(self, account_number: str, amount: Amount, pin: str) -> int:
        """Add ``amount`` to the account and return the new balance"""
        with self.store.atomic(account_number):
            account = self._fetch(account_number, "deposit")
            self._authorize(account, pin)
            value = self._parse(amount, "deposit", account_number)

            new_balance = account.balance + value
            if new_balance > MAX_BALANCE:
                log_action(logger, "warning", "Deposit would exceed maximum balance", action="deposit",
                           resource=account_number, extra={"amount": value, "balance": account.balance})
                raise InvalidAmountError(amount, "balance would exceed the storable maximum")
            self.store.update_balance(account_number, new_balance)

        log_action(logger, "info", "Deposit applied", action="deposit",
                   resource=account_number, extra={"amount": value, "balance": new_balance})
        return new_balance

    def withdraw(self, account_number: str, amount: Amount, pin: str) -> int:
        """Take ``amount`` from the account and return the new balance"""
        with self.store.atomic(account_number):
            account = self._fetch(account_number, "withdraw")
            self._authorize(account, pin)
            value = self._parse(amount, "withdraw", account_number)

            if value > account.balance:
                log_action(logger, "warning", "Withdrawal exceeds balance", action="withdraw",
                           resource=account_number, extra={"amount": value, "balance": account.balance})
                raise InsufficientFundsError(account_number, account.balance, value)

            new_balance = account.balance - value
            self.store.update_balance(account_number, new_balance)

        log_action(logger, "info", "Withdrawal applied", action="withdraw",
                   resource=account_number, extra={"amount": value, "balance": new_balance})
        return new_balance

    def transfer(self, origin: str, target: str, amount: Amount, pin: str) -> Tuple[Account, Account]:
        """
        Move ``amount`` from ``origin`` to ``target``.

        Only the origin's PIN is checked. Both balance updates commit together
        or not at all.

        Returns:
            The refreshed (origin, target) accounts
        """
        if origin == target:
            log_action(logger, "warning", "Rejected transfer to the same account",
                       action="transfer", resource=origin)
            raise InvalidOperationError(f"Cannot transfer from account {origin} to itself", origin)

        with self.store.atomic(origin, target):
            origin_account = self._fetch(origin, "transfer")
            target_account = self._fetch(target, "transfer")
            self._authorize(origin_account, pin)
            value = self._parse(amount, "transfer", origin)

            if value > origin_account.balance:
                log_action(logger, "warning", "Transfer exceeds balance", action="transfer",
                           resource=origin, extra={"target": target, "amount": value,
                                                   "balance": origin_account.balance})
                raise InsufficientFundsError(origin, origin_account.balance, value)
            if target_account.balance + value > MAX_BALANCE:
                log_action(logger, "warning", "Transfer would exceed target maximum balance",
                           action="transfer", resource=origin,
                           extra={"target": target, "amount": value, "balance": target_account.balance})
                raise InvalidAmountError(amount, "target balance would exceed the storable maximum")

            self.store.update_balance(origin, origin_account.balance - value)
            self.store.update_balance(target, target_account.balance + value)

            origin_account = self.store.fetch_by_number(origin)
            target_account = self.store.fetch_by_number(target)

        log_action(logger, "info", "Transfer applied", action="transfer", resource=origin,
                   extra={"target": target, "amount": value})
        return origin_account, target_account

    def delete_account(self, account_number: str, pin: str) -> None:
        """
        Permanently remove an account.

        Accounts with a nonzero balance can be deleted; the balance is
        discarded with the row.
        """
        with self.store.atomic(account_number):
            account = self._fetch(account_number, "delete_account")
            self._authorize(account, pin)
            self.store.delete(account_number)

        log_action(logger, "info", "Deleted account", action="delete_account",
                   resource=account_number, extra={"discarded_balance": account.balance})

    def balance_of(self, account_number: str) -> int:
        """Current balance of an account. Needs no PIN."""
        return self._fetch(account_number, "balance_of").balance
