"""
Storage Services Package

Provides the abstract document storage interface and its backends:
local JSON files, Google Sheets, and in-memory for tests.
"""

from homebudget.services.storage.interface import (
    ConnectionError,
    DocumentStorageInterface,
    NotFoundError,
    StorageError,
)
from homebudget.services.storage.local_file import LocalJSONStorage
from homebudget.services.storage.memory import InMemoryDocumentStorage
from homebudget.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStorage,
)

__all__ = [
    # Interface
    "DocumentStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStorage",
    "InMemoryDocumentStorage",
    "LocalJSONStorage",
]
