"""
Tests for document storage backends

No real Google API calls: the Sheets client is a mock.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from homebudget.services.storage import (
    GoogleSheetsDocumentStorage,
    InMemoryDocumentStorage,
    LocalJSONStorage,
    StorageError,
)
from homebudget.services.storage.google_sheets import (
    CHUNK_SIZE,
    DOCUMENT_COLUMNS,
    column_letter,
    split_chunks,
)


DOCUMENT = {
    "appName": "Budget",
    "transactions": [{"id": "t1", "categoryId": None, "platformId": None, "amount": 5}],
    "accounts": [],
}

STRIPPED = {
    "appName": "Budget",
    "transactions": [{"id": "t1", "categoryId": None, "amount": 5}],
    "accounts": [],
}


class TestLocalJSONStorage:

    def test_missing_document_is_none(self, tmp_path):
        storage = LocalJSONStorage(tmp_path)
        assert asyncio.run(storage.load("nobody")) is None

    def test_save_then_load(self, tmp_path):
        storage = LocalJSONStorage(tmp_path / "data")
        assert asyncio.run(storage.save("u1", DOCUMENT)) is True
        assert asyncio.run(storage.load("u1")) == STRIPPED
        assert not list((tmp_path / "data").glob("*.tmp"))

    def test_user_id_is_made_filename_safe(self, tmp_path):
        storage = LocalJSONStorage(tmp_path)
        path = storage.path_for("../etc/passwd")
        assert path.parent == tmp_path
        assert path.name == "_etc_passwd.json"

    def test_corrupt_file_raises(self, tmp_path):
        storage = LocalJSONStorage(tmp_path)
        storage.path_for("u1").write_text("{broken", encoding="utf-8")
        with pytest.raises(StorageError):
            asyncio.run(storage.load("u1"))

    def test_non_object_raises(self, tmp_path):
        storage = LocalJSONStorage(tmp_path)
        storage.path_for("u1").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageError):
            asyncio.run(storage.load("u1"))


class TestInMemoryDocumentStorage:

    def test_save_then_load(self):
        storage = InMemoryDocumentStorage()
        asyncio.run(storage.save("u1", DOCUMENT))
        assert asyncio.run(storage.load("u1")) == STRIPPED
        assert storage.save_count == 1

    def test_loaded_documents_are_copies(self):
        storage = InMemoryDocumentStorage({"u1": {"appName": "A"}})
        loaded = asyncio.run(storage.load("u1"))
        loaded["appName"] = "B"
        assert asyncio.run(storage.load("u1")) == {"appName": "A"}


class TestSheetHelpers:

    def test_split_chunks(self):
        text = "x" * (CHUNK_SIZE + 10)
        chunks = split_chunks(text)
        assert [len(c) for c in chunks] == [CHUNK_SIZE, 10]
        assert "".join(chunks) == text
        assert split_chunks("") == [""]

    def test_column_letter(self):
        assert column_letter(1) == "A"
        assert column_letter(26) == "Z"
        assert column_letter(27) == "AA"
        assert column_letter(53) == "BA"


def sheet_storage(rows, col_count=3):
    sheet = MagicMock()
    sheet.get_all_values.return_value = rows
    sheet.col_count = col_count
    client = MagicMock()
    client.get_documents_sheet.return_value = sheet
    return GoogleSheetsDocumentStorage(client), sheet


class TestGoogleSheetsDocumentStorage:

    def test_load_joins_chunks(self):
        text = json.dumps({"appName": "Budget", "accounts": []})
        rows = [DOCUMENT_COLUMNS, ["u2", "ts", "{}"], ["u1", "ts", text[:10], text[10:]]]
        storage, _ = sheet_storage(rows)
        assert asyncio.run(storage.load("u1")) == {"appName": "Budget", "accounts": []}

    def test_load_unknown_user_is_none(self):
        storage, _ = sheet_storage([DOCUMENT_COLUMNS])
        assert asyncio.run(storage.load("u1")) is None

    def test_load_read_failure_raises_storage_error(self):
        storage, sheet = sheet_storage([])
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError):
            asyncio.run(storage.load("u1"))

    def test_save_new_user_appends_row(self):
        storage, sheet = sheet_storage([DOCUMENT_COLUMNS])
        assert asyncio.run(storage.save("u1", DOCUMENT)) is True

        row = sheet.append_row.call_args.args[0]
        assert row[0] == "u1"
        assert json.loads("".join(row[2:])) == STRIPPED
        sheet.update.assert_not_called()

    def test_save_existing_user_overwrites_and_blanks_old_chunks(self):
        rows = [DOCUMENT_COLUMNS, ["u1", "ts", "a", "b", "c"]]
        storage, sheet = sheet_storage(rows, col_count=5)
        asyncio.run(storage.save("u1", DOCUMENT))

        kwargs = sheet.update.call_args.kwargs
        assert kwargs["range_name"] == "A2:E2"
        row = kwargs["values"][0]
        assert row[3:] == ["", ""]
        sheet.append_row.assert_not_called()
