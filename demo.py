#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Book Step by Step

A pedagogical walk through the household book. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Foundation - Accounts, units, the first salary move
  4-5: Ordering   - Inserting history in the middle, index shifts
  6-7: Guarantees - Rejections, self-moves, conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from bookkeeping import Book, Sum, OutOfRange, AccountNotRegistered


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    salary: int = 2000
    withdrawal: int = 100
    bonus: int = 1000
    self_move: int = 50


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def show_balances(book: Book, accounts: dict, usd) -> None:
    """Print every account's USD balance after every transaction."""
    for name, key in accounts.items():
        running = [balance.unit_amount(usd) or 0 for _, balance in book.running_balance(key)]
        print(f"  {name:<8} {running}")


# ============================================================================
# STEPS
# ============================================================================

def step_01_empty_book():
    step_header(1, "The Empty Book",
        "A book starts with no accounts, no units and no transactions.")
    print(">>> book = Book('household', name='household')")
    book = Book("household", name="household")
    print(f"  {book!r}")
    return book


def step_02_accounts_and_units(book: Book):
    step_header(2, "Accounts and Units",
        "Inserting an entity returns an opaque handle. Handles are all you keep.")
    accounts = {
        "income": book.insert_account("income"),
        "bank": book.insert_account("bank"),
    }
    usd = book.insert_unit("USD")
    print(f"\n  income handle: {accounts['income']!r}")
    print(f"  USD handle:    {usd!r}")
    return accounts, usd


def step_03_first_salary(book: Book, accounts: dict, usd):
    step_header(3, "The First Salary",
        "A move debits one account and credits another by the same Sum.")
    book.insert_transaction(0, "salary")
    book.insert_move(0, 0, accounts["income"], accounts["bank"], Sum.of(usd, CONFIG.salary), "march")
    print()
    show_balances(book, accounts, usd)


def step_04_withdrawal(book: Book, accounts: dict, usd):
    step_header(4, "A Withdrawal",
        "Appending at index transaction_count extends the history.")
    accounts["wallet"] = book.insert_account("wallet")
    book.insert_transaction(book.transaction_count, "withdrawal")
    book.insert_move(1, 0, accounts["bank"], accounts["wallet"], Sum.of(usd, CONFIG.withdrawal), "atm")
    print()
    show_balances(book, accounts, usd)


def step_05_backdated_bonus(book: Book, accounts: dict, usd):
    step_header(5, "A Back-dated Bonus",
        "Inserting at index 1 shifts the withdrawal to index 2. Old indices go stale.")
    book.insert_transaction(1, "bonus")
    book.insert_move(1, 0, accounts["income"], accounts["bank"], Sum.of(usd, CONFIG.bonus), "bonus")
    print()
    print(f"  order: {[tx.metadata for _, tx in book.transactions()]}")
    show_balances(book, accounts, usd)


def step_06_rejections_and_self_moves(book: Book, accounts: dict, usd):
    step_header(6, "Rejections and Self-moves",
        "Bad indices and foreign handles raise; nothing changes. Self-moves net to zero.")
    try:
        book.insert_transaction(book.transaction_count + 1, "too far")
    except OutOfRange as e:
        print(f"  OutOfRange: {e}")
    try:
        book.get_account(Book(verbose=False).insert_account("stranger"))
    except AccountNotRegistered as e:
        print(f"  AccountNotRegistered: {e}")

    book.insert_transaction(book.transaction_count, "shuffle")
    last = book.transaction_count - 1
    book.insert_move(last, 0, accounts["bank"], accounts["bank"], Sum.of(usd, CONFIG.self_move), "self")
    print()
    show_balances(book, accounts, usd)


def step_07_conservation(book: Book):
    step_header(7, "Conservation Proof",
        "At every index, all account balances sum to zero for every unit.")
    for index in range(book.transaction_count):
        result = book.verify_double_entry(index)
        print(f"  [{index}] valid={result['valid']} totals={result['totals']}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       BOOKKEEPING - INTERACTIVE TUTORIAL")
    print("=" * 70)
    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    wait_for_enter()

    book = step_01_empty_book()
    wait_for_enter()
    accounts, usd = step_02_accounts_and_units(book)
    wait_for_enter()
    step_03_first_salary(book, accounts, usd)
    wait_for_enter()
    step_04_withdrawal(book, accounts, usd)
    wait_for_enter()
    step_05_backdated_bonus(book, accounts, usd)
    wait_for_enter()
    step_06_rejections_and_self_moves(book, accounts, usd)
    wait_for_enter()
    step_07_conservation(book)


if __name__ == "__main__":
    main()
