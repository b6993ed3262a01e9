"""
Storage Backend Module

Provides the abstract account store interface and implementations for
in-memory (testing) and SQLite (persistence) backends. All lookups are exact
matches on the account number, passed to the backend as a bound parameter.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from pathlib import Path
from contextlib import contextmanager
import sqlite3
import threading

from .errors import AccountNotFoundError, DuplicateKeyError
from .models import Account, MAX_BALANCE


class AccountStore(ABC):
    """Abstract interface for account storage backends"""

    @abstractmethod
    def exists(self, account_number: str) -> bool:
        """Check if an account with this number exists"""
        pass

    @abstractmethod
    def insert(self, account: Account) -> None:
        """Insert a new account, raising DuplicateKeyError on a taken number or id"""
        pass

    @abstractmethod
    def fetch_by_number(self, account_number: str) -> Account:
        """Load an account, raising AccountNotFoundError if absent"""
        pass

    @abstractmethod
    def update_balance(self, account_number: str, new_balance: int) -> None:
        """Overwrite an account's balance"""
        pass

    @abstractmethod
    def delete(self, account_number: str) -> None:
        """Permanently remove an account"""
        pass

    @abstractmethod
    def next_id(self) -> int:
        """Return the id the next created account should get"""
        pass

    @abstractmethod
    def load_all(self) -> List[Account]:
        """Load all accounts ordered by id"""
        pass

    @abstractmethod
    def count(self) -> int:
        """Count live accounts"""
        pass

    @abstractmethod
    def begin_transaction(self, account_numbers: Iterable[str] = ()) -> None:
        """Start a (possibly nested) transaction protecting the given accounts"""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit the innermost transaction"""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Roll back the innermost transaction"""
        pass

    def close(self) -> None:
        """Close storage connection"""
        pass

    @contextmanager
    def atomic(self, *account_numbers: str):
        """
        Context manager for all-or-nothing groups of writes.

        The named accounts are protected against concurrent writers until the
        block exits. They are always acquired in sorted order, so two blocks
        naming the same pair of accounts cannot deadlock.
        """
        self.begin_transaction(sorted(set(account_numbers)))
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    @staticmethod
    def _check_balance(new_balance: int) -> None:
        if isinstance(new_balance, bool) or not isinstance(new_balance, int):
            raise TypeError(f"Balance must be an integer, got {type(new_balance).__name__}")
        if not 0 <= new_balance <= MAX_BALANCE:
            raise ValueError(f"Balance out of range: {new_balance}")


class InMemoryAccountStore(AccountStore):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._ids: Dict[int, str] = {}
        self._high_water = 0
        self._lock = threading.RLock()
        # Undo journal and the journal mark of each open (nested) transaction
        self._journal: List[Tuple[str, Optional[Dict[str, Any]]]] = []
        self._marks: List[int] = []

    # Transactions

    def begin_transaction(self, account_numbers: Iterable[str] = ()) -> None:
        """
        Start a transaction.

        Like SQLite's database write lock, the store lock is held until the
        matching commit or rollback. It covers every account named, and
        readers in other threads never see uncommitted rows.
        """
        self._lock.acquire()
        self._marks.append(len(self._journal))

    def commit(self) -> None:
        try:
            self._marks.pop()
            if not self._marks:
                self._journal.clear()
        finally:
            self._lock.release()

    def rollback(self) -> None:
        try:
            mark = self._marks.pop()
            while len(self._journal) > mark:
                account_number, previous = self._journal.pop()
                self._restore(account_number, previous)
        finally:
            self._lock.release()

    def _restore(self, account_number: str, previous: Optional[Dict[str, Any]]) -> None:
        current = self._rows.pop(account_number, None)
        if current is not None:
            self._ids.pop(current['id'], None)
        if previous is not None:
            self._rows[account_number] = previous
            self._ids[previous['id']] = account_number

    def _record(self, account_number: str) -> None:
        """Remember a row's current state if inside a transaction"""
        if self._marks:
            previous = self._rows.get(account_number)
            self._journal.append((account_number, dict(previous) if previous is not None else None))

    # Row operations

    def exists(self, account_number: str) -> bool:
        with self._lock:
            return account_number in self._rows

    def insert(self, account: Account) -> None:
        with self._lock:
            if account.account_number in self._rows:
                raise DuplicateKeyError(
                    f"Account number {account.account_number} already exists",
                    account.account_number
                )
            if account.id in self._ids:
                raise DuplicateKeyError(f"Account id {account.id} already exists")
            self._record(account.account_number)
            self._rows[account.account_number] = account.to_dict()
            self._ids[account.id] = account.account_number
            self._high_water = max(self._high_water, account.id)

    def fetch_by_number(self, account_number: str) -> Account:
        with self._lock:
            row = self._rows.get(account_number)
            if row is None:
                raise AccountNotFoundError(account_number)
            return Account.from_dict(row)

    def update_balance(self, account_number: str, new_balance: int) -> None:
        self._check_balance(new_balance)
        with self._lock:
            if account_number not in self._rows:
                raise AccountNotFoundError(account_number)
            self._record(account_number)
            self._rows[account_number] = dict(self._rows[account_number], balance=new_balance)

    def delete(self, account_number: str) -> None:
        with self._lock:
            if account_number not in self._rows:
                raise AccountNotFoundError(account_number)
            self._record(account_number)
            row = self._rows.pop(account_number)
            del self._ids[row['id']]

    def next_id(self) -> int:
        with self._lock:
            return max(max(self._ids, default=0), self._high_water) + 1

    def load_all(self) -> List[Account]:
        with self._lock:
            rows = sorted(self._rows.values(), key=lambda row: row['id'])
            return [Account.from_dict(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            return len(self._rows)


class SQLiteAccountStore(AccountStore):
    """SQLite storage implementation for persistence"""

    TABLE = "account"

    def __init__(self, db_path: Union[str, Path] = ":memory:", timeout: float = 30.0):
        self.db_path = str(db_path)
        # Autocommit mode; transactions are opened explicitly in begin_transaction
        self._connection = sqlite3.connect(
            self.db_path, check_same_thread=False, isolation_level=None, timeout=timeout
        )
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0

        with self._lock:
            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
            self._ensure_table()

    def _ensure_table(self) -> None:
        """Ensure the account table exists"""
        self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.TABLE} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                account_number TEXT NOT NULL UNIQUE,
                pin TEXT NOT NULL DEFAULT '000000',
                balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0)
            )
        """)

    def begin_transaction(self, account_numbers: Iterable[str] = ()) -> None:
        """
        Start a transaction.

        SQLite locks the whole database for writing, which covers every
        account named. The connection lock is held until the matching
        commit or rollback, so other threads sharing this store wait.
        """
        self._lock.acquire()
        try:
            if self._depth == 0:
                self._connection.execute("BEGIN IMMEDIATE")
            else:
                self._connection.execute(f"SAVEPOINT sp_{self._depth}")
        except BaseException:
            self._lock.release()
            raise
        self._depth += 1

    def commit(self) -> None:
        try:
            self._depth -= 1
            if self._depth == 0:
                try:
                    self._connection.execute("COMMIT")
                except sqlite3.Error:
                    self._connection.execute("ROLLBACK")
                    raise
            else:
                self._connection.execute(f"RELEASE SAVEPOINT sp_{self._depth}")
        finally:
            self._lock.release()

    def rollback(self) -> None:
        try:
            self._depth -= 1
            if self._depth == 0:
                self._connection.execute("ROLLBACK")
            else:
                self._connection.execute(f"ROLLBACK TO SAVEPOINT sp_{self._depth}")
                self._connection.execute(f"RELEASE SAVEPOINT sp_{self._depth}")
        finally:
            self._lock.release()

    def exists(self, account_number: str) -> bool:
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT 1 FROM {self.TABLE} WHERE account_number = ? LIMIT 1",
                (account_number,)
            )
            return cursor.fetchone() is not None

    def insert(self, account: Account) -> None:
        with self._lock:
            try:
                self._connection.execute(
                    f"INSERT INTO {self.TABLE} (id, account_number, pin, balance) VALUES (?, ?, ?, ?)",
                    (account.id, account.account_number, account.pin, account.balance)
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateKeyError(
                    f"Account {account.account_number} (id {account.id}) conflicts with an existing row: {e}",
                    account.account_number
                ) from e

    def fetch_by_number(self, account_number: str) -> Account:
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT id, account_number, balance, pin FROM {self.TABLE} WHERE account_number = ?",
                (account_number,)
            )
            row = cursor.fetchone()
            if row is None:
                raise AccountNotFoundError(account_number)
            return Account.from_dict(dict(row))

    def update_balance(self, account_number: str, new_balance: int) -> None:
        self._check_balance(new_balance)
        with self._lock:
            cursor = self._connection.execute(
                f"UPDATE {self.TABLE} SET balance = ? WHERE account_number = ?",
                (new_balance, account_number)
            )
            if cursor.rowcount == 0:
                raise AccountNotFoundError(account_number)

    def delete(self, account_number: str) -> None:
        with self._lock:
            cursor = self._connection.execute(
                f"DELETE FROM {self.TABLE} WHERE account_number = ?",
                (account_number,)
            )
            if cursor.rowcount == 0:
                raise AccountNotFoundError(account_number)

    def next_id(self) -> int:
        """Highest live or previously issued id, plus one"""
        with self._lock:
            cursor = self._connection.execute(f"""
                SELECT MAX(
                    COALESCE((SELECT MAX(id) FROM {self.TABLE}), 0),
                    COALESCE((SELECT seq FROM sqlite_sequence WHERE name = ?), 0)
                ) + 1 AS next_id
            """, (self.TABLE,))
            return int(cursor.fetchone()['next_id'])

    def load_all(self) -> List[Account]:
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT id, account_number, balance, pin FROM {self.TABLE} ORDER BY id"
            )
            return [Account.from_dict(dict(row)) for row in cursor.fetchall()]

    def count(self) -> int:
        with self._lock:
            cursor = self._connection.execute(f"SELECT COUNT(*) AS count FROM {self.TABLE}")
            return cursor.fetchone()['count']

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_store(backend: str = "sqlite", database_path: Union[str, Path] = "bank.s3db") -> AccountStore:
    """Build the configured storage backend"""
    if backend == "memory":
        return InMemoryAccountStore()
    if backend == "sqlite":
        return SQLiteAccountStore(database_path)
    raise ValueError(f"Unknown storage backend: {backend}")
