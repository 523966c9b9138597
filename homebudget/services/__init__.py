"""Services package."""

from homebudget.services.rates import (
    ExchangeRateError,
    ExchangeRateService,
)
from homebudget.services.storage import (
    ConnectionError,
    DocumentStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStorage,
    InMemoryDocumentStorage,
    LocalJSONStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Exchange rates
    "ExchangeRateError",
    "ExchangeRateService",
    # Storage services
    "ConnectionError",
    "DocumentStorageInterface",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStorage",
    "InMemoryDocumentStorage",
    "LocalJSONStorage",
    "NotFoundError",
    "StorageError",
]
