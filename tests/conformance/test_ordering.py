"""
Ordering Conformance Tests

INVARIANT: Transactions and moves are contiguous, index-addressed sequences.

    insert(i, x) on a sequence of length n:
        0 <= i <= n ⟹ x lands at i, entries at i.. shift to i+1..
        otherwise   ⟹ OutOfRange, sequence unchanged

The book must behave exactly like list.insert restricted to valid indices.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bookkeeping import Book, OutOfRange, Sum

from .strategies import book_plan, build_book


class TestOrderingProperties:
    """Property-based splice-and-shift tests."""

    @given(st.lists(st.integers(min_value=0, max_value=1000), max_size=30))
    @settings(max_examples=100)
    def test_transactions_follow_list_insert(self, positions):
        """
        PROPERTY: Transaction order matches a list model under the same inserts.
        """
        book = Book(verbose=False)
        model = []
        for name, position in enumerate(positions):
            position = position % (len(model) + 1)
            model.insert(position, name)
            book.insert_transaction(position, name)
        assert [tx.metadata for _, tx in book.transactions()] == model
        assert [index for index, _ in book.transactions()] == list(range(len(model)))

    @given(book_plan())
    @settings(max_examples=50)
    def test_moves_follow_list_insert(self, plan):
        """
        PROPERTY: Each transaction's move order matches a list model of the plan.
        """
        num_accounts, num_units, ops = plan
        book, accounts, units = build_book(plan)

        model = []
        for op_number, op in enumerate(ops):
            if op[0] == "transaction":
                model.insert(op[1], (op_number, []))
            else:
                model[op[1]][1].insert(op[2], op_number)

        assert [(tx.metadata, [m.metadata for _, m in tx.moves()]) for _, tx in book.transactions()] == model

    @given(book_plan(), st.integers(min_value=1, max_value=100))
    @settings(max_examples=50)
    def test_negative_indices_rejected(self, plan, depth):
        """
        PROPERTY: Negative indices are never treated as from-the-end positions.
        """
        book, accounts, units = build_book(plan)
        with pytest.raises(OutOfRange):
            book.insert_transaction(-depth, "negative")
        if book.transaction_count:
            with pytest.raises(OutOfRange):
                book.account_balance_at_transaction(accounts[0], -depth)
            with pytest.raises(OutOfRange):
                book.insert_move(0, -depth, accounts[0], accounts[0], Sum(), "negative")
