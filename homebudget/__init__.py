"""
Home Budget - Source Package

A personal household-budgeting ledger: accounts, transactions, category
budgets, income goals, investment platforms and achievements, all kept in
one JSON document per user.

DESIGN PRINCIPLES:
1. Balances are always explained by transaction history
2. Never silently destroy transaction history (detach, don't delete)
3. Every snapshot is immutable; mutations produce a new one
4. Aggregates are recomputed, never stored
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Home Budget Team"
