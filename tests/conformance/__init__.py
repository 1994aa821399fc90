"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the Book.

The tests are organized by invariant:
1. conservation.py - Double-entry closure across all accounts
2. atomicity.py - Rejected insertions leave the book unchanged
3. determinism.py - Identical inputs give identical balances
4. ordering.py - Splice-and-shift index semantics

These tests use hypothesis for property-based testing.
"""
