"""JSON file storage for transcripts and score results.

Each record is stored as its own JSON file under the project's storage
directory. Writes are atomic (write to .tmp, then rename) so a crash
never leaves a partial record behind.

File layout:
    .evalbench/
        transcripts/
            {conv-id}.json
        results/
            {res-id}.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from evalbench.models.config import DEFAULT_STORAGE_DIR
from evalbench.models.result import ScoreResult, TranscriptRecord

M = TypeVar("M", bound=BaseModel)


class JsonCollection(Generic[M]):
    """A typed collection of pydantic records, one JSON file per record.

    Records must have an ``id`` field. ``to_array`` returns records
    ordered by sort_field when given, else by ID.
    """

    def __init__(self, directory: Path, model: type[M], sort_field: str | None = None) -> None:
        self.directory = directory
        self.model = model
        self.sort_field = sort_field

    def _path(self, record_id: str) -> Path:
        if not record_id or "/" in record_id or "\\" in record_id or record_id.startswith("."):
            raise ValueError(f"Invalid record id: {record_id!r}")
        return self.directory / f"{record_id}.json"

    def _write(self, record: M) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(record.id)
        content = json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False)
        tmp_file = path.with_suffix(".json.tmp")
        tmp_file.write_text(content, encoding="utf-8")
        tmp_file.replace(path)

    def add(self, record: M) -> str:
        """Persist a new record and return its ID.

        Raises:
            ValueError: If a record with the same ID already exists.
        """
        if self._path(record.id).exists():
            raise ValueError(f"Record {record.id} already exists")
        self._write(record)
        return record.id

    def get(self, record_id: str) -> M | None:
        path = self._path(record_id)
        if not path.exists():
            return None
        return self.model.model_validate_json(path.read_text(encoding="utf-8"))

    def update(self, record_id: str, changes: dict[str, Any]) -> M:
        """Apply changes to a stored record and persist the new version.

        Raises:
            KeyError: If no record with that ID exists.
        """
        current = self.get(record_id)
        if current is None:
            raise KeyError(record_id)
        data = current.model_dump()
        data.update(changes)
        data["id"] = record_id
        updated = self.model.model_validate(data)
        self._write(updated)
        return updated

    def delete(self, record_id: str) -> bool:
        """Delete a record. Returns True if it existed."""
        path = self._path(record_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def to_array(self) -> list[M]:
        if not self.directory.exists():
            return []
        records = [
            self.model.model_validate_json(path.read_text(encoding="utf-8"))
            for path in sorted(self.directory.glob("*.json"))
        ]
        if self.sort_field is not None:
            records.sort(key=lambda record: getattr(record, self.sort_field))
        return records

    def where(self, field: str, value: Any) -> list[M]:
        """Return records whose field equals value."""
        return [record for record in self.to_array() if getattr(record, field, None) == value]

    def __len__(self) -> int:
        if not self.directory.exists():
            return 0
        return sum(1 for _ in self.directory.glob("*.json"))


class RecordStore:
    """Persistence for evalbench records under the project storage directory."""

    def __init__(self, project_root: Path, storage_dir: str | None = None) -> None:
        self.root = project_root / (storage_dir or DEFAULT_STORAGE_DIR)
        self.transcripts: JsonCollection[TranscriptRecord] = JsonCollection(
            self.root / "transcripts", TranscriptRecord, sort_field="created_at"
        )
        self.results: JsonCollection[ScoreResult] = JsonCollection(
            self.root / "results", ScoreResult, sort_field="timestamp"
        )
