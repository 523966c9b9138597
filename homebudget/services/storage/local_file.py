"""
Local JSON File Storage

One `<user_id>.json` file per user under the data directory. Writes go
to a temporary file in the same directory which then replaces the
target, so a crash mid-write leaves the previous document intact.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from homebudget.ledger.hydration import strip_absent
from homebudget.services.storage.interface import (
    DocumentStorageInterface,
    StorageError,
)


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalJSONStorage(DocumentStorageInterface):
    """Stores each user's document as a JSON file on disk."""

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    def path_for(self, user_id: str) -> Path:
        """File holding a user's document. The id is made filename-safe."""
        safe = _UNSAFE_CHARS.sub("_", user_id).lstrip(".") or "_"
        return self._data_dir / f"{safe}.json"

    async def load(self, user_id: str) -> Optional[dict[str, Any]]:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored document is corrupt ({path}): {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

        if not isinstance(document, dict):
            raise StorageError(f"Stored document is not a JSON object: {path}")
        return document

    async def save(self, user_id: str, document: dict[str, Any]) -> bool:
        path = self.path_for(user_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(strip_absent(document), f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save document to {path}: {e}")
        return True
