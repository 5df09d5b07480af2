"""
Pocket Ledger - Source Package

The local ledger and identity store behind a personal finance tracker.
Screens, navigation and charts live in the presentation layer; this
package owns everything that has invariants:

1. Durable key-value persistence of users, the session and transactions
2. Validation and uniqueness rules over that data
3. Deterministic aggregates (balance, income/expense, 7-day trend)

DESIGN PRINCIPLES:
1. Every mutation is a single-writer read-modify-write
2. Fail early, report every bad field at once
3. Scope every ledger operation to its owner
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pocket Ledger Team"
