"""In-memory document storage for tests and guest sessions."""

import copy
from typing import Any, Optional

from homebudget.ledger.hydration import strip_absent
from homebudget.services.storage.interface import DocumentStorageInterface


class InMemoryDocumentStorage(DocumentStorageInterface):
    """Keeps documents in a dict. Nothing survives the process."""

    def __init__(self, documents: Optional[dict[str, dict]] = None):
        self._documents: dict[str, dict] = copy.deepcopy(documents or {})
        self.save_count = 0

    async def load(self, user_id: str) -> Optional[dict[str, Any]]:
        document = self._documents.get(user_id)
        return copy.deepcopy(document) if document is not None else None

    async def save(self, user_id: str, document: dict[str, Any]) -> bool:
        self._documents[user_id] = strip_absent(copy.deepcopy(document))
        self.save_count += 1
        return True
