"""
book.py - Stateful Double-Entry Book

The Book class owns every account, unit and transaction of a ledger. It is
the only module that mutates state, so every change is validated here
before it is applied.

Key responsibilities:
    - Mints opaque handles for accounts and units (never reused)
    - Stores transactions and their moves in contiguous, index-addressed order
    - Splices insertions in atomically (all checks run before any mutation)
    - Answers point-in-time balance queries by re-scanning history
"""

from __future__ import annotations
from decimal import Decimal
from itertools import count
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, Type
from dataclasses import replace

from .core import (
    # Types
    Account, AccountKey, Balance, Move, Sum, Transaction, Unit, UnitKey,
    A, B, M, T, U,
    # Exceptions
    LedgerError, OutOfRange, AccountNotRegistered, UnitNotRegistered,
    # Helper functions
    check_amount_types, _is_index,
)


# Process-wide source of Book identifiers, so handles never cross Books.
_BOOK_IDS = count()


class Book(Generic[B, A, U, T, M]):
    """
    Double-entry book of accounts, units and ordered transactions.

    Every move has a debit and a credit leg, so for each unit the balances
    of all accounts sum to zero at every transaction index. This holds by
    construction and is never checked on insertion; verify_double_entry()
    reports on it.

    Indices are positional. Inserting a transaction or move shifts the ones
    after it by one, so any index obtained earlier must be re-resolved by
    the caller after an insertion.

    Thread Safety:
        Not thread-safe. Guard a shared Book with an external lock.

    Example:
        book = Book("household", verbose=False)
        income = book.insert_account("income")
        bank = book.insert_account("bank")
        usd = book.insert_unit("USD")

        book.insert_transaction(0, "salary")
        book.insert_move(0, 0, income, bank, Sum.of(usd, 2000), "march")
        book.account_balance_at_transaction(bank, 0)  # Balance({usd: 2000})
    """

    def __init__(
        self,
        metadata: B = None,
        *,
        name: str = "book",
        amount_type: Type = int,
        balance_type: Type = int,
        verbose: bool = True,
    ):
        """
        Create an empty book.

        Args:
            metadata: Book-level metadata, stored verbatim
            name: Identifier used in verbose output
            amount_type: Numeric type of Sum amounts (int or Decimal)
            balance_type: Numeric type of Balance amounts; must hold every
                amount_type value exactly
            verbose: Print a line for every registration, insertion and
                rejected call (default: True)

        Raises:
            TypeError: If the numeric configuration is unsupported
        """
        check_amount_types(amount_type, balance_type)
        self.name = name
        self.amount_type = amount_type
        self.balance_type = balance_type
        self.verbose = verbose
        self._metadata = metadata
        self._id = next(_BOOK_IDS)
        self._accounts: Dict[AccountKey, Account[A]] = {}
        self._units: Dict[UnitKey, Unit[U]] = {}
        self._transactions: List[Transaction[T, M]] = []

    def __repr__(self) -> str:
        return (
            f"Book({self.name!r}, {len(self._accounts)} accounts, "
            f"{len(self._units)} units, {len(self._transactions)} transactions)"
        )

    # ========================================================================
    # BOOK METADATA
    # ========================================================================

    @property
    def metadata(self) -> B:
        return self._metadata

    def set_book_metadata(self, metadata: B) -> None:
        self._metadata = metadata

    # ========================================================================
    # ACCOUNTS AND UNITS
    # ========================================================================

    def insert_account(self, metadata: A) -> AccountKey:
        """
        Store a new account and return its handle.

        Always succeeds; every call mints a fresh handle.
        """
        key = AccountKey(self._id, len(self._accounts))
        self._accounts[key] = Account(metadata)
        self._log(f"📝 Registered account {key!r} ({metadata!r})")
        return key

    def insert_unit(self, metadata: U) -> UnitKey:
        """
        Store a new unit and return its handle.

        Always succeeds; every call mints a fresh handle.
        """
        key = UnitKey(self._id, len(self._units))
        self._units[key] = Unit(metadata)
        self._log(f"📝 Registered unit {key!r} ({metadata!r})")
        return key

    def get_account(self, key: AccountKey) -> Account[A]:
        """
        Look up an account by handle.

        Raises:
            AccountNotRegistered: If key was not minted by this book
        """
        self._check_account(key)
        return self._accounts[key]

    def get_unit(self, key: UnitKey) -> Unit[U]:
        """
        Look up a unit by handle.

        Raises:
            UnitNotRegistered: If key was not minted by this book
        """
        self._check_unit(key)
        return self._units[key]

    def accounts(self) -> Iterator[Tuple[AccountKey, Account[A]]]:
        """Yield (handle, account) pairs for every stored account."""
        return iter(list(self._accounts.items()))

    def units(self) -> Iterator[Tuple[UnitKey, Unit[U]]]:
        """Yield (handle, unit) pairs for every stored unit."""
        return iter(list(self._units.items()))

    def set_account_metadata(self, key: AccountKey, metadata: A) -> None:
        """Replace an account's metadata. Raises AccountNotRegistered for unknown keys."""
        self._check_account(key)
        self._accounts[key] = replace(self._accounts[key], metadata=metadata)

    def set_unit_metadata(self, key: UnitKey, metadata: U) -> None:
        """Replace a unit's metadata. Raises UnitNotRegistered for unknown keys."""
        self._check_unit(key)
        self._units[key] = replace(self._units[key], metadata=metadata)

    # ========================================================================
    # TRANSACTIONS AND MOVES
    # ========================================================================

    @property
    def transaction_count(self) -> int:
        return len(self._transactions)

    def transactions(self) -> Iterator[Tuple[int, Transaction[T, M]]]:
        """Yield (index, transaction) pairs in ascending index order."""
        return enumerate(list(self._transactions))

    def get_transaction(self, index: int) -> Transaction[T, M]:
        """
        Return the transaction at index.

        Raises:
            OutOfRange: If index is not in 0..transaction_count-1
        """
        self._check_existing_index(index, len(self._transactions), "Transaction")
        return self._transactions[index]

    def get_move(self, transaction_index: int, move_index: int) -> Move[M]:
        """
        Return a move by its transaction and move indices.

        Raises:
            OutOfRange: If either index does not address an existing entry
        """
        return self.get_transaction(transaction_index).get_move(move_index)

    def insert_transaction(self, index: int, metadata: T) -> None:
        """
        Splice a new empty transaction in at index.

        Transactions previously at index or later move up by one. Valid
        indices are 0..transaction_count inclusive; transaction_count appends.

        Args:
            index: Insertion position
            metadata: Transaction metadata, stored verbatim

        Raises:
            OutOfRange: If index is outside 0..transaction_count
        """
        self._check_insertion_index(index, len(self._transactions), "Transaction")
        self._transactions.insert(index, Transaction(metadata))
        self._log(f"✓ Inserted transaction at {index} ({metadata!r})")

    def insert_move(
        self,
        transaction_index: int,
        move_index: int,
        debit_account: AccountKey,
        credit_account: AccountKey,
        sum_: Sum,
        metadata: M,
    ) -> None:
        """
        Splice a new move into a transaction.

        Validation runs in this order, and nothing is changed unless all of
        it passes:
        1. transaction_index addresses an existing transaction
        2. debit_account and credit_account belong to this book
        3. every unit in sum_ belongs to this book and every amount fits
           the book's amount_type
        4. move_index is within 0..move_count of that transaction

        Moves previously at move_index or later move up by one.

        Raises:
            OutOfRange: If either index is out of range
            AccountNotRegistered: If either account is unknown
            UnitNotRegistered: If a unit in sum_ is unknown
            TypeError: If sum_ is not a Sum or holds amounts of the wrong type
        """
        self._check_existing_index(transaction_index, len(self._transactions), "Transaction")
        self._check_account(debit_account)
        self._check_account(credit_account)
        self._check_sum(sum_)
        transaction = self._transactions[transaction_index]
        self._check_insertion_index(move_index, transaction.move_count, "Move")

        move = Move(debit_account, credit_account, sum_, metadata)
        self._transactions[transaction_index] = transaction._with_move(move_index, move)
        self._log(f"✓ Inserted {move!r} at {transaction_index}.{move_index}")

    def set_transaction_metadata(self, index: int, metadata: T) -> None:
        """Replace a transaction's metadata. Raises OutOfRange for bad indices."""
        transaction = self.get_transaction(index)
        self._transactions[index] = replace(transaction, metadata=metadata)

    def set_move_metadata(self, transaction_index: int, move_index: int, metadata: M) -> None:
        """Replace a move's metadata. Raises OutOfRange for bad indices."""
        transaction = self.get_transaction(transaction_index)
        move = transaction.get_move(move_index)
        self._transactions[transaction_index] = transaction._with_replaced_move(
            move_index, replace(move, metadata=metadata)
        )

    # ========================================================================
    # BALANCE QUERIES
    # ========================================================================

    def account_balance_at_transaction(self, account: AccountKey, transaction_index: int) -> Balance:
        """
        Compute an account's balance after the transaction at transaction_index.

        Walks transactions 0..transaction_index inclusive, in order. For each
        move, the debit leg subtracts the move's sum and the credit leg adds
        it. A self-move applies both legs and so nets to zero.

        There is no caching: every call re-scans history.

        Args:
            account: Account handle
            transaction_index: Last transaction to include (0..transaction_count-1)

        Returns:
            A new Balance in the book's balance_type

        Raises:
            AccountNotRegistered: If account is unknown
            OutOfRange: If transaction_index does not address a transaction
            PrecisionLoss: If an amount cannot be accumulated exactly
        """
        self._check_account(account)
        self._check_existing_index(transaction_index, len(self._transactions), "Transaction")
        balance = Balance(self.balance_type)
        for transaction in self._transactions[:transaction_index + 1]:
            self._fold_transaction(balance, transaction, account)
        return balance

    def running_balance(self, account: AccountKey) -> List[Tuple[int, Balance]]:
        """
        Return the account's balance after each transaction, in index order.

        Entry i equals account_balance_at_transaction(account, i).

        Raises:
            AccountNotRegistered: If account is unknown
        """
        self._check_account(account)
        balance = Balance(self.balance_type)
        result = []
        for index, transaction in enumerate(self._transactions):
            self._fold_transaction(balance, transaction, account)
            result.append((index, balance.copy()))
        return result

    def verify_double_entry(self, transaction_index: Optional[int] = None) -> Dict[str, Any]:
        """
        Verify that every unit nets to zero across all accounts.

        Every move credits exactly what it debits, so the total over all
        account balances must be zero for every unit at every index.

        Args:
            transaction_index: Point to check (default: the last transaction)

        Returns:
            Dict with keys:
            - 'valid': bool - True if every unit totals zero
            - 'totals': Dict[UnitKey, amount] - Summed balance per unit
            - 'discrepancies': List[Dict] - One {'unit', 'total'} entry per
              unit whose total is not zero

        Raises:
            OutOfRange: If transaction_index does not address a transaction
        """
        totals: Dict[UnitKey, Any] = {}
        if transaction_index is None:
            transaction_index = len(self._transactions) - 1
            if transaction_index < 0:
                return {'valid': True, 'totals': totals, 'discrepancies': []}
        self._check_existing_index(transaction_index, len(self._transactions), "Transaction")

        for key in sorted(self._accounts):
            balance = self.account_balance_at_transaction(key, transaction_index)
            for unit, amount in balance.amounts():
                totals[unit] = totals.get(unit, self.balance_type(0)) + amount

        discrepancies = [
            {'unit': unit, 'total': total}
            for unit, total in totals.items()
            if total != 0
        ]
        return {
            'valid': len(discrepancies) == 0,
            'totals': totals,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    @staticmethod
    def _fold_transaction(balance: Balance, transaction: Transaction, account: AccountKey) -> None:
        for _, move in transaction.moves():
            if not move.touches(account):
                continue
            if move.debit_account == account:
                balance.subtract_sum(move.sum)
            if move.credit_account == account:
                balance.add_sum(move.sum)

    def _reject(self, error: LedgerError) -> LedgerError:
        self._log(f"✗ REJECTED: {error}")
        return error

    def _check_account(self, key: AccountKey) -> None:
        if not isinstance(key, AccountKey) or key not in self._accounts:
            raise self._reject(AccountNotRegistered(f"Account {key!r} not registered in book {self.name}"))

    def _check_unit(self, key: UnitKey) -> None:
        if not isinstance(key, UnitKey) or key not in self._units:
            raise self._reject(UnitNotRegistered(f"Unit {key!r} not registered in book {self.name}"))

    def _check_sum(self, sum_: Sum) -> None:
        if not isinstance(sum_, Sum):
            raise TypeError(f"Move sum must be Sum, got {type(sum_).__name__}")
        for unit, amount in sum_.amounts():
            self._check_unit(unit)
            if self.amount_type is int and isinstance(amount, Decimal):
                raise TypeError(f"Book {self.name} takes int amounts, got Decimal {amount} for {unit!r}")

    def _check_insertion_index(self, index: int, length: int, kind: str) -> None:
        if not _is_index(index) or not 0 <= index <= length:
            raise self._reject(OutOfRange(f"{kind} insertion index {index} out of range 0..{length}"))

    def _check_existing_index(self, index: int, length: int, kind: str) -> None:
        if not _is_index(index) or not 0 <= index < length:
            raise self._reject(OutOfRange(f"{kind} index {index} out of range 0..{length - 1}"))

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[{self.name}] {message}")
