"""
Personal Ledger

A small ledger engine: checksum-valid account numbers, PIN-authorized
deposits, withdrawals and transfers over integer balances, backed by a
SQLite (or in-memory) row store.
"""

__version__ = "1.0.0"
