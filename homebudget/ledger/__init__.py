"""
Ledger Package

The in-memory budget engine: balance reconciliation, the store and its
reducers, derived aggregates, achievements, and document hydration.
"""

from homebudget.ledger.store import LedgerStore
from homebudget.ledger.hydration import (
    export_document,
    export_json,
    hydrate_document,
    strip_absent,
)
from homebudget.ledger.starter import starter_document

__all__ = [
    "LedgerStore",
    "export_document",
    "export_json",
    "hydrate_document",
    "starter_document",
    "strip_absent",
]
