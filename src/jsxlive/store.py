"""Component store — saved component sources keyed by UUID."""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from pathlib import Path

from jsxlive.errors import InvalidComponentCode, InvalidRecordId, RecordNotFound

logger = logging.getLogger(__name__)

_DECLARATION_RE = re.compile(r"\b(function|const|class)\b")
_RETURN_RE = re.compile(r"\b(return|render)\b")


@dataclass(frozen=True, slots=True)
class ComponentRecord:
    id: str
    code: str
    created_at: str
    updated_at: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_code(code: object) -> str:
    """Cheap shape check applied before a component is saved."""
    if not isinstance(code, str) or not code.strip():
        raise InvalidComponentCode("Code is required")
    if _DECLARATION_RE.search(code) is None:
        raise InvalidComponentCode("Code must be a valid React component")
    if _RETURN_RE.search(code) is None:
        raise InvalidComponentCode("Code must have a return statement or render method")
    return code


def validate_id(record_id: object) -> str:
    if not isinstance(record_id, str) or not record_id:
        raise InvalidRecordId()
    try:
        uuid.UUID(record_id)
    except ValueError:
        raise InvalidRecordId() from None
    return record_id


class MemoryStore:
    """In-process store; records are lost with the process."""

    def __init__(self) -> None:
        self._records: dict[str, ComponentRecord] = {}

    def create(self, code: str) -> ComponentRecord:
        validate_code(code)
        stamp = _now()
        record = ComponentRecord(str(uuid.uuid4()), code, stamp, stamp)
        self._records[record.id] = record
        self._saved()
        logger.info("saved component %s", record.id)
        return record

    def get(self, record_id: str) -> ComponentRecord:
        validate_id(record_id)
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound()
        return record

    def update(self, record_id: str, code: str) -> ComponentRecord:
        record = self.get(record_id)
        validate_code(code)
        record = replace(record, code=code, updated_at=_now())
        self._records[record_id] = record
        self._saved()
        logger.info("updated component %s", record_id)
        return record

    def delete(self, record_id: str) -> None:
        self.get(record_id)
        del self._records[record_id]
        self._saved()
        logger.info("deleted component %s", record_id)

    def list(self) -> list[ComponentRecord]:
        """Records, most recently updated first."""
        return sorted(self._records.values(), key=lambda r: r.updated_at, reverse=True)

    def _saved(self) -> None:
        pass


class FileStore(MemoryStore):
    """Store persisted to a single JSON file, rewritten atomically on change."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        if path.is_file():
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            for item in data.get("components", []):
                record = ComponentRecord(**item)
                self._records[record.id] = record
            logger.debug("loaded %d components from %s", len(self._records), path)

    def _saved(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        payload = {"components": [asdict(r) for r in self._records.values()]}
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
        os.replace(tmp, self.path)
