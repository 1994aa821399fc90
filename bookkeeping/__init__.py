"""
bookkeeping - Double-Entry Book

An in-memory double-entry ledger: accounts and units referenced by opaque
handles, ordered transactions of moves, and point-in-time balance queries.

Usage:
    from bookkeeping import Book, Sum

    book = Book("household", verbose=False)
    income = book.insert_account("income")
    bank = book.insert_account("bank")
    usd = book.insert_unit("USD")

    book.insert_transaction(0, "salary")
    book.insert_move(0, 0, income, bank, Sum.of(usd, 2000), "march")

    book.account_balance_at_transaction(bank, 0).unit_amount(usd)    # 2000
    book.account_balance_at_transaction(income, 0).unit_amount(usd)  # -2000
"""

# Core types
from .core import (
    AccountKey,
    UnitKey,
    Sum,
    FrozenSum,
    Balance,
    Account,
    Unit,
    Move,
    Transaction,
    LedgerError,
    OutOfRange,
    UnknownHandle,
    AccountNotRegistered,
    UnitNotRegistered,
    PrecisionLoss,
    SUPPORTED_AMOUNT_TYPES,
)

# Book
from .book import Book

__all__ = [
    # Core types
    'AccountKey', 'UnitKey', 'Sum', 'FrozenSum', 'Balance',
    'Account', 'Unit', 'Move', 'Transaction',
    'SUPPORTED_AMOUNT_TYPES',
    # Exceptions
    'LedgerError', 'OutOfRange', 'UnknownHandle',
    'AccountNotRegistered', 'UnitNotRegistered', 'PrecisionLoss',
    # Book
    'Book',
]

__version__ = '0.1.0'
