"""
Hypothesis strategies shared by the conformance tests.

A plan is a random but always-valid sequence of insertions: transactions
spliced in at any position 0..count, and moves spliced into any existing
transaction at any position 0..move_count, between any two accounts
(self-moves included) with signed multi-unit sums.
"""

from hypothesis import strategies as st

from bookkeeping import Book, Sum


@st.composite
def book_plan(draw, max_accounts=5, max_units=3, max_ops=25):
    """
    Generate an insertion plan.

    Returns: (num_accounts, num_units, ops) where each op is either
        ("transaction", position) or
        ("move", transaction_index, move_index, debit, credit, {unit: amount})
    """
    num_accounts = draw(st.integers(min_value=1, max_value=max_accounts))
    num_units = draw(st.integers(min_value=1, max_value=max_units))
    num_ops = draw(st.integers(min_value=0, max_value=max_ops))

    ops = []
    move_counts = []
    for _ in range(num_ops):
        if not move_counts or draw(st.booleans()):
            position = draw(st.integers(min_value=0, max_value=len(move_counts)))
            move_counts.insert(position, 0)
            ops.append(("transaction", position))
        else:
            tx_index = draw(st.integers(min_value=0, max_value=len(move_counts) - 1))
            move_index = draw(st.integers(min_value=0, max_value=move_counts[tx_index]))
            debit = draw(st.integers(min_value=0, max_value=num_accounts - 1))
            credit = draw(st.integers(min_value=0, max_value=num_accounts - 1))
            amounts = draw(st.dictionaries(
                st.integers(min_value=0, max_value=num_units - 1),
                st.integers(min_value=-10 ** 12, max_value=10 ** 12),
                max_size=num_units,
            ))
            move_counts[tx_index] += 1
            ops.append(("move", tx_index, move_index, debit, credit, amounts))
    return num_accounts, num_units, ops


def build_book(plan, **book_options):
    """
    Execute a plan against a fresh quiet Book.

    Transaction and move metadata is the op's position in the plan, so
    entries can be identified after later insertions shift them.

    Returns: (book, account_keys, unit_keys)
    """
    num_accounts, num_units, ops = plan
    book = Book(verbose=False, **book_options)
    accounts = [book.insert_account(f"account_{i}") for i in range(num_accounts)]
    units = [book.insert_unit(f"unit_{i}") for i in range(num_units)]

    for op_number, op in enumerate(ops):
        if op[0] == "transaction":
            book.insert_transaction(op[1], op_number)
        else:
            _, tx_index, move_index, debit, credit, amounts = op
            sum_ = Sum()
            for unit, amount in amounts.items():
                sum_.set_amount_for_unit(amount, units[unit])
            book.insert_move(tx_index, move_index, accounts[debit], accounts[credit], sum_, op_number)
    return book, accounts, units


def snapshot(book):
    """Capture the full observable state of a book."""
    return (
        book.metadata,
        list(book.accounts()),
        list(book.units()),
        [tx for _, tx in book.transactions()],
    )
