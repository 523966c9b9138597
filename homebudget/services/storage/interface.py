"""
Abstract Storage Interface

DESIGN DECISION: The budget is persisted as one whole JSON document per
user, so the interface only needs two operations. This allows us to:
1. Keep a local JSON file for single-user installs
2. Use Google Sheets when the budget should live in the cloud
3. Use in-memory storage for testing and guest sessions
4. Keep the ledger decoupled from how persistence works

There are no partial writes, no merging and no conflict resolution. The
last save wins.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class DocumentStorageInterface(ABC):
    """
    Abstract interface for budget document storage.

    Any storage implementation must implement these methods. Documents
    are plain JSON-compatible dicts in the camelCase export shape.
    """

    @abstractmethod
    async def load(self, user_id: str) -> Optional[dict[str, Any]]:
        """
        Load a user's budget document.

        Args:
            user_id: Opaque identifier the document is keyed by

        Returns:
            The raw document, or None if the user has none yet

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save(self, user_id: str, document: dict[str, Any]) -> bool:
        """
        Replace a user's budget document.

        Implementations strip None-valued fields (see strip_absent)
        before writing.

        Args:
            user_id: Opaque identifier the document is keyed by
            document: The full document to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Document or storage location not found."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
