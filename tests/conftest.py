"""
conftest.py - Shared pytest fixtures for bookkeeping tests

Provides common fixtures used across unit, conformance and scenario tests:
- Empty books (int and Decimal configurations)
- A household book with income and bank accounts, a USD unit and one salary move
"""

import pytest
from decimal import Decimal

from bookkeeping import Book, Sum


# =============================================================================
# BOOK FIXTURES
# =============================================================================

@pytest.fixture
def book():
    """Empty book with int amounts and balances."""
    return Book("test", name="test", verbose=False)


@pytest.fixture
def decimal_book():
    """Empty book with Decimal amounts and balances."""
    return Book("test", name="decimal", amount_type=Decimal, balance_type=Decimal, verbose=False)


@pytest.fixture
def household():
    """
    Book with income and bank accounts, a USD unit and one salary transaction.

    State:
        [0] income -> bank 2000 USD
    """
    book = Book("household", name="household", verbose=False)
    income = book.insert_account("income")
    bank = book.insert_account("bank")
    usd = book.insert_unit("USD")
    book.insert_transaction(0, "salary")
    book.insert_move(0, 0, income, bank, Sum.of(usd, 2000), "march salary")
    return book, income, bank, usd
