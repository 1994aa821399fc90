"""
Core types for the bookkeeping system.

This module provides the foundational data structures of a book:
1. Exceptions: LedgerError and the out-of-range / unknown-handle errors
2. Handles: AccountKey and UnitKey, opaque identifiers minted by a Book
3. Amount maps: Sum (moved value) and Balance (aggregated position)
4. Immutable records: Account, Unit, Move, Transaction

Nothing in this module holds Book state. The Book class in book.py is the
only place where entities are stored and mutated.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Context, Decimal, Inexact, ROUND_HALF_EVEN, localcontext
from typing import (
    Dict, Generic, Iterator, Optional, Tuple, Type, TypeVar, Union,
)


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Balances must be exact. Decimal accumulation runs in this context rather
# than the global one, with Inexact trapped: a sum that would need rounding
# raises instead of silently losing digits.
#
# Context parameters:
#   - prec=50: Precision sufficient for financial calculations
#   - rounding=ROUND_HALF_EVEN: Banker's rounding (never applied, Inexact traps first)
#
_BOOK_DECIMAL_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN, traps=[Inexact])


# ============================================================================
# CONSTANTS
# ============================================================================

# Numeric types a Book accepts for Sum and Balance amounts.
# Floats are deliberately absent: addition over them is not associative.
SUPPORTED_AMOUNT_TYPES = (int, Decimal)

# Balance types each Sum amount type can be widened into without loss.
_WIDENINGS = {
    int: (int, Decimal),
    Decimal: (Decimal,),
}


# ============================================================================
# TYPE ALIASES
# ============================================================================

Amount = Union[int, Decimal]

# Metadata type variables. The core never inspects metadata.
B = TypeVar("B")
A = TypeVar("A")
U = TypeVar("U")
T = TypeVar("T")
M = TypeVar("M")


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all bookkeeping errors."""
    pass


class OutOfRange(LedgerError, IndexError):
    """Raised when a transaction or move index falls outside the contiguous range."""
    pass


class UnknownHandle(LedgerError, KeyError):
    """Raised when a handle does not belong to the Book it is used with."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class AccountNotRegistered(UnknownHandle):
    """Raised when an account handle is not registered with the Book."""
    pass


class UnitNotRegistered(UnknownHandle):
    """Raised when a unit handle is not registered with the Book."""
    pass


class PrecisionLoss(LedgerError):
    """Raised when an amount cannot be represented exactly in the balance type."""
    pass


# ============================================================================
# HANDLES
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class AccountKey:
    """
    Opaque handle to an Account stored in a Book.

    Attributes:
        book_id: Identifier of the Book that minted this handle.
        slot: Position in that Book's account table (never reused).
    """
    book_id: int
    slot: int

    def __repr__(self) -> str:
        return f"AccountKey({self.book_id}:{self.slot})"


@dataclass(frozen=True, slots=True, order=True)
class UnitKey:
    """
    Opaque handle to a Unit stored in a Book.

    Attributes:
        book_id: Identifier of the Book that minted this handle.
        slot: Position in that Book's unit table (never reused).
    """
    book_id: int
    slot: int

    def __repr__(self) -> str:
        return f"UnitKey({self.book_id}:{self.slot})"


# ============================================================================
# AMOUNT HELPERS
# ============================================================================

def validate_amount(amount: Amount) -> Amount:
    """
    Check that an amount is an exact signed number.

    Args:
        amount: Candidate amount

    Returns:
        The amount unchanged

    Raises:
        TypeError: If amount is not an int or Decimal (bool and float included)
        ValueError: If amount is a NaN or infinite Decimal
    """
    if isinstance(amount, bool) or not isinstance(amount, SUPPORTED_AMOUNT_TYPES):
        raise TypeError(f"Amount must be int or Decimal, got {type(amount).__name__}")
    if isinstance(amount, Decimal) and not amount.is_finite():
        raise ValueError(f"Amount must be finite, got {amount}")
    return amount


def check_amount_types(amount_type: Type, balance_type: Type) -> None:
    """
    Validate a Book's numeric configuration.

    Raises:
        TypeError: If either type is unsupported, or balance_type cannot
                   hold every amount_type value exactly
    """
    for label, kind in (("amount_type", amount_type), ("balance_type", balance_type)):
        if kind not in SUPPORTED_AMOUNT_TYPES:
            raise TypeError(
                f"{label} must be one of int, Decimal; got {getattr(kind, '__name__', kind)}"
            )
    if balance_type not in _WIDENINGS[amount_type]:
        raise TypeError(
            f"balance_type {balance_type.__name__} cannot widen amount_type {amount_type.__name__}"
        )


def convert_amount(amount: Amount, balance_type: Type) -> Amount:
    """
    Convert a Sum amount to the balance amount type without truncation.

    Args:
        amount: Sum amount (int or Decimal)
        balance_type: Target type (int or Decimal)

    Returns:
        The same value as an instance of balance_type

    Raises:
        PrecisionLoss: If the value has no exact representation in balance_type
    """
    if balance_type is Decimal:
        return Decimal(amount)
    if isinstance(amount, Decimal):
        if amount != amount.to_integral_value():
            raise PrecisionLoss(f"{amount} has a fractional part and cannot become an int balance")
        return int(amount)
    return int(amount)


# ============================================================================
# SUM AND BALANCE
# ============================================================================

class _AmountMap:
    """Shared accessors for unit -> amount mappings."""

    __slots__ = ("_amounts",)

    def __init__(self) -> None:
        self._amounts: Dict[UnitKey, Amount] = {}

    def unit_amount(self, unit: UnitKey) -> Optional[Amount]:
        """Return the stored amount for unit, or None when absent (treat as zero)."""
        return self._amounts.get(unit)

    def amounts(self) -> Iterator[Tuple[UnitKey, Amount]]:
        """Yield (unit, amount) pairs in insertion order."""
        return iter(list(self._amounts.items()))

    def _nonzero(self) -> Dict[UnitKey, Amount]:
        return {unit: amount for unit, amount in self._amounts.items() if amount != 0}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _AmountMap) or isinstance(other, Sum) != isinstance(self, Sum):
            return NotImplemented
        return self._nonzero() == other._nonzero()

    __hash__ = None  # mutable

    def __len__(self) -> int:
        return len(self._amounts)

    def __repr__(self) -> str:
        entries = ", ".join(f"{unit!r}: {amount}" for unit, amount in self._amounts.items())
        return f"{type(self).__name__}({{{entries}}})"


class Sum(_AmountMap):
    """
    Per-unit signed amounts moved by a single Move.

    Absent units count as zero. Zero entries are kept, but two Sums that
    differ only by zero entries compare equal.

    Example:
        usd, eur = book.insert_unit("USD"), book.insert_unit("EUR")
        sum_ = Sum.of(usd, 2000).unit(eur, 15)
    """

    __slots__ = ()

    @classmethod
    def of(cls, unit: UnitKey, amount: Amount) -> Sum:
        """Create a Sum holding a single unit."""
        return cls().unit(unit, amount)

    def unit(self, unit: UnitKey, amount: Amount) -> Sum:
        """Set the amount for unit and return self, for chaining."""
        self.set_amount_for_unit(amount, unit)
        return self

    def set_amount_for_unit(self, amount: Amount, unit: UnitKey) -> None:
        """
        Insert or overwrite the amount for a unit.

        Raises:
            TypeError: If unit is not a UnitKey or amount is not int/Decimal
            ValueError: If amount is a non-finite Decimal
        """
        if not isinstance(unit, UnitKey):
            raise TypeError(f"Sum units must be UnitKey handles, got {type(unit).__name__}")
        self._amounts[unit] = validate_amount(amount)

    def copy(self) -> Sum:
        clone = Sum()
        clone._amounts = dict(self._amounts)
        return clone

    def frozen(self) -> FrozenSum:
        """Return a read-only snapshot of this Sum."""
        snapshot = FrozenSum()
        snapshot._amounts = dict(self._amounts)
        return snapshot


class FrozenSum(Sum):
    """
    Read-only Sum held by a Move once it is built.

    Compares equal to a Sum with the same non-zero amounts and is hashable.
    copy() returns an ordinary mutable Sum.
    """

    __slots__ = ()

    def set_amount_for_unit(self, amount: Amount, unit: UnitKey) -> None:
        raise TypeError("Sum stored in a Move is read-only; copy() it to build a new Sum")

    def frozen(self) -> FrozenSum:
        return self

    def __hash__(self) -> int:
        return hash(frozenset(self._nonzero().items()))


class Balance(_AmountMap):
    """
    Aggregated per-unit position of an account at a point in the book.

    A Balance is derived by folding Sums into it and is never stored by the
    Book. Each Sum amount is converted to the balance amount type before it
    is added, and that conversion never truncates.

    Attributes:
        amount_type: Numeric type of the accumulated amounts (int or Decimal).
    """

    __slots__ = ("amount_type",)

    def __init__(self, amount_type: Type = int) -> None:
        super().__init__()
        if amount_type not in SUPPORTED_AMOUNT_TYPES:
            raise TypeError(f"Balance amount_type must be int or Decimal, got {amount_type!r}")
        self.amount_type = amount_type

    def _apply(self, sum_: Sum, sign: int) -> None:
        # Convert everything first so a PrecisionLoss leaves the balance untouched.
        deltas = [(unit, convert_amount(amount, self.amount_type)) for unit, amount in sum_.amounts()]
        updated = dict(self._amounts)
        with localcontext(_BOOK_DECIMAL_CONTEXT):
            for unit, delta in deltas:
                try:
                    updated[unit] = updated.get(unit, self.amount_type(0)) + sign * delta
                except Inexact as e:
                    raise PrecisionLoss(f"Balance for {unit!r} exceeds exact decimal precision") from e
        self._amounts = updated

    def add_sum(self, sum_: Sum) -> None:
        """Credit every unit of sum_ to this balance."""
        self._apply(sum_, 1)

    def subtract_sum(self, sum_: Sum) -> None:
        """Debit every unit of sum_ from this balance."""
        self._apply(sum_, -1)

    def copy(self) -> Balance:
        clone = Balance(self.amount_type)
        clone._amounts = dict(self._amounts)
        return clone

    def __iadd__(self, sum_: Sum) -> Balance:
        if not isinstance(sum_, Sum):
            return NotImplemented
        self.add_sum(sum_)
        return self

    def __isub__(self, sum_: Sum) -> Balance:
        if not isinstance(sum_, Sum):
            return NotImplemented
        self.subtract_sum(sum_)
        return self

    def __add__(self, sum_: Sum) -> Balance:
        if not isinstance(sum_, Sum):
            return NotImplemented
        result = self.copy()
        result.add_sum(sum_)
        return result

    def __sub__(self, sum_: Sum) -> Balance:
        if not isinstance(sum_, Sum):
            return NotImplemented
        result = self.copy()
        result.subtract_sum(sum_)
        return result


# ============================================================================
# ENTITY RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Account(Generic[A]):
    """A ledger party with a balance. Only its metadata is user-visible."""
    metadata: A


@dataclass(frozen=True, slots=True)
class Unit(Generic[U]):
    """A denomination of value, most commonly the minor unit of a currency."""
    metadata: U


@dataclass(frozen=True, slots=True)
class Move(Generic[M]):
    """
    A directed transfer of a Sum from a debit account to a credit account.

    Attributes:
        debit_account: Account whose balance decreases by sum.
        credit_account: Account whose balance increases by sum.
        sum: Per-unit amounts moved.
        metadata: Opaque caller data.

    Debit and credit may name the same account. Such a self-move nets to
    zero but both legs are still recorded and applied.
    """
    debit_account: AccountKey
    credit_account: AccountKey
    sum: Sum
    metadata: M = None

    def __post_init__(self):
        if not isinstance(self.debit_account, AccountKey):
            raise TypeError(f"Move debit_account must be AccountKey, got {type(self.debit_account).__name__}")
        if not isinstance(self.credit_account, AccountKey):
            raise TypeError(f"Move credit_account must be AccountKey, got {type(self.credit_account).__name__}")
        if not isinstance(self.sum, Sum):
            raise TypeError(f"Move sum must be Sum, got {type(self.sum).__name__}")
        # Stored read-only, so neither the caller's Sum nor move.sum can change it.
        object.__setattr__(self, 'sum', self.sum.frozen())

    def touches(self, account: AccountKey) -> bool:
        """Return True if either leg of this move names account."""
        return account == self.debit_account or account == self.credit_account

    def __repr__(self) -> str:
        return f"Move({self.sum!r}: {self.debit_account!r}→{self.credit_account!r})"


@dataclass(frozen=True, slots=True)
class Transaction(Generic[T, M]):
    """
    An ordered group of moves.

    Attributes:
        metadata: Opaque caller data.
        _moves: Moves in position order. Positions are contiguous from 0.

    This class is immutable. The Book replaces a transaction with an
    updated copy when a move is inserted into it.
    """
    metadata: T = None
    _moves: Tuple[Move[M], ...] = field(default_factory=tuple)

    def moves(self) -> Iterator[Tuple[int, Move[M]]]:
        """Yield (index, move) pairs in ascending index order."""
        return enumerate(self._moves)

    @property
    def move_count(self) -> int:
        return len(self._moves)

    def get_move(self, index: int) -> Move[M]:
        """
        Return the move at index.

        Raises:
            OutOfRange: If index is not in 0..move_count-1
        """
        if not _is_index(index) or not 0 <= index < len(self._moves):
            raise OutOfRange(f"Move index {index} out of range 0..{len(self._moves) - 1}")
        return self._moves[index]

    def _with_move(self, index: int, move: Move[M]) -> Transaction[T, M]:
        return Transaction(self.metadata, self._moves[:index] + (move,) + self._moves[index:])

    def _with_replaced_move(self, index: int, move: Move[M]) -> Transaction[T, M]:
        return Transaction(self.metadata, self._moves[:index] + (move,) + self._moves[index + 1:])

    def __len__(self) -> int:
        return len(self._moves)

    def __repr__(self) -> str:
        return f"Transaction({len(self._moves)} moves, metadata={self.metadata!r})"


def _is_index(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
