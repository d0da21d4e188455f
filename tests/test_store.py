"""Tests for the component store and its validation rules."""

from __future__ import annotations

import json
import uuid

import pytest

from jsxlive.errors import InvalidComponentCode, InvalidRecordId, RecordNotFound
from jsxlive.store import FileStore, MemoryStore, validate_code, validate_id

CODE = "export default function App() { return <p>saved</p>; }"


class TestValidation:
    def test_valid_code(self) -> None:
        assert validate_code(CODE) == CODE

    @pytest.mark.parametrize(
        ("code", "message"),
        [
            ("", "Code is required"),
            ("   ", "Code is required"),
            (None, "Code is required"),
            ("<p>hello</p>", "Code must be a valid React component"),
            ("const x = 1;", "Code must have a return statement or render method"),
        ],
    )
    def test_invalid_code(self, code, message) -> None:
        with pytest.raises(InvalidComponentCode) as info:
            validate_code(code)
        assert info.value.message == message

    def test_class_with_render_method(self) -> None:
        code = "class A extends React.Component { render() { return null; } }"
        assert validate_code(code) == code

    def test_valid_id(self) -> None:
        record_id = str(uuid.uuid4())
        assert validate_id(record_id) == record_id

    @pytest.mark.parametrize("record_id", ["", "abc", None, 42])
    def test_invalid_id(self, record_id) -> None:
        with pytest.raises(InvalidRecordId):
            validate_id(record_id)


class TestMemoryStore:
    def test_create_and_get(self) -> None:
        store = MemoryStore()
        record = store.create(CODE)
        assert uuid.UUID(record.id)
        assert record.created_at == record.updated_at
        assert record.created_at.endswith("Z")
        assert store.get(record.id) == record

    def test_update(self) -> None:
        store = MemoryStore()
        record = store.create(CODE)
        updated = store.update(record.id, CODE.replace("saved", "edited"))
        assert "edited" in updated.code
        assert updated.created_at == record.created_at
        assert updated.updated_at >= record.updated_at

    def test_update_validates_code(self) -> None:
        store = MemoryStore()
        record = store.create(CODE)
        with pytest.raises(InvalidComponentCode):
            store.update(record.id, "")
        assert store.get(record.id).code == CODE

    def test_delete(self) -> None:
        store = MemoryStore()
        record = store.create(CODE)
        store.delete(record.id)
        with pytest.raises(RecordNotFound):
            store.get(record.id)

    def test_missing_record(self) -> None:
        with pytest.raises(RecordNotFound):
            MemoryStore().get(str(uuid.uuid4()))

    def test_list_most_recent_first(self) -> None:
        store = MemoryStore()
        for _ in range(3):
            store.create(CODE)
        stamps = [r.updated_at for r in store.list()]
        assert stamps == sorted(stamps, reverse=True)
        assert len(stamps) == 3


class TestFileStore:
    def test_persists_across_instances(self, tmp_path) -> None:
        path = tmp_path / "store.json"
        record = FileStore(path).create(CODE)
        assert FileStore(path).get(record.id) == record

    def test_file_format(self, tmp_path) -> None:
        path = tmp_path / "nested" / "store.json"
        record = FileStore(path).create(CODE)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {
            "components": [
                {
                    "id": record.id,
                    "code": CODE,
                    "created_at": record.created_at,
                    "updated_at": record.updated_at,
                }
            ]
        }
        assert not (tmp_path / "nested" / "store.json.tmp").exists()

    def test_delete_persisted(self, tmp_path) -> None:
        path = tmp_path / "store.json"
        store = FileStore(path)
        record = store.create(CODE)
        store.delete(record.id)
        with pytest.raises(RecordNotFound):
            FileStore(path).get(record.id)

    def test_missing_file_is_empty(self, tmp_path) -> None:
        assert FileStore(tmp_path / "absent.json").list() == []
