"""
helpers.py - Balance helpers shared by the bookkeeping tests
"""

from typing import Dict

from bookkeeping import Book, Sum, Balance, UnitKey


def balance_of(amounts: Dict[UnitKey, int], amount_type=int) -> Balance:
    """Build an expected Balance from a unit -> amount dict."""
    balance = Balance(amount_type)
    for unit, amount in amounts.items():
        balance += Sum.of(unit, amount)
    return balance


def usd_amount(book: Book, account, index: int, usd: UnitKey):
    """Balance of one account in one unit, with absent treated as zero."""
    amount = book.account_balance_at_transaction(account, index).unit_amount(usd)
    return amount if amount is not None else 0
