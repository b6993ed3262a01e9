"""Pytest configuration and fixtures."""

import logging
import random

import pytest

from personal_ledger.account_numbers import AccountNumberGenerator
from personal_ledger.ledger import LedgerEngine
from personal_ledger.storage import InMemoryAccountStore, SQLiteAccountStore


class ScriptedGenerator(AccountNumberGenerator):
    """Generator that hands out a fixed list of account numbers, repeating the last"""

    def __init__(self, numbers, rng=None):
        super().__init__(length=len(numbers[0]), rng=rng or random.Random(0))
        self.numbers = list(numbers)
        self.calls = 0

    def generate(self) -> str:
        self.calls += 1
        if len(self.numbers) > 1:
            return self.numbers.pop(0)
        return self.numbers[0]


@pytest.fixture(autouse=True)
def reset_ledger_logging():
    """Drop handlers installed by setup_logging so later tests start clean"""
    yield
    logger = logging.getLogger("personal_ledger")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def rng() -> random.Random:
    """Seeded randomness source for reproducible account numbers."""
    return random.Random(42)


@pytest.fixture
def memory_store():
    store = InMemoryAccountStore()
    yield store
    store.close()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteAccountStore(tmp_path / "ledger.s3db")
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store-level test runs against both backends."""
    if request.param == "memory":
        backend = InMemoryAccountStore()
    else:
        backend = SQLiteAccountStore(tmp_path / "ledger.s3db")
    yield backend
    backend.close()


@pytest.fixture
def engine(store, rng) -> LedgerEngine:
    return LedgerEngine(store, AccountNumberGenerator(rng=rng))
