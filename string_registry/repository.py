"""Content-addressed storage for analyzed strings.

A repository maps a record id (the SHA-256 of its value) to a
``StoredRecord``. Every backend keeps insertion order and never overwrites
an existing id; callers flush after each mutation so durable storage always
reflects the full in-memory collection.
"""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from string_registry.errors import AlreadyExists
from string_registry.schemas import StoredRecord

logger = logging.getLogger("string_registry.store")


class StringRepository(ABC):
    @abstractmethod
    def get(self, record_id: str) -> Optional[StoredRecord]:
        ...

    def has(self, record_id: str) -> bool:
        return self.get(record_id) is not None

    @abstractmethod
    def put(self, record: StoredRecord) -> None:
        """Insert a new record. Raises ``AlreadyExists`` on an id collision."""

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Remove a record, returning whether it existed."""

    @abstractmethod
    def all(self) -> List[StoredRecord]:
        """Snapshot of every record in insertion order."""

    def load(self) -> "StringRepository":
        return self

    def flush(self) -> None:
        pass

    def clear(self) -> None:
        for record in self.all():
            self.delete(record.id)
        self.flush()

    def __len__(self) -> int:
        return len(self.all())


class InMemoryRepository(StringRepository):
    def __init__(self) -> None:
        self._records: Dict[str, StoredRecord] = {}

    def get(self, record_id: str) -> Optional[StoredRecord]:
        return self._records.get(record_id)

    def has(self, record_id: str) -> bool:
        return record_id in self._records

    def put(self, record: StoredRecord) -> None:
        if record.id in self._records:
            raise AlreadyExists("String already exists in the system")
        self._records[record.id] = record

    def delete(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    def all(self) -> List[StoredRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()
        self.flush()

    def __len__(self) -> int:
        return len(self._records)


class JsonFileRepository(InMemoryRepository):
    """In-memory collection mirrored to a JSON list on disk.

    ``flush`` rewrites the whole file. ``load`` treats a missing, unreadable
    or malformed file as an empty store.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)

    def load(self) -> "JsonFileRepository":
        self._records = {}
        if not self.path.exists():
            logger.info("No data file at %s; starting with an empty store", self.path)
            return self
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError("expected a JSON list of records")
            records = [StoredRecord.model_validate(item) for item in raw]
            loaded = _index_records(records)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Could not read data file %s (%s); starting with an empty store", self.path, exc)
            return self

        self._records = loaded
        logger.info("Loaded %d strings from %s", len(self._records), self.path)
        return self

    def flush(self) -> None:
        payload = [record.model_dump(mode="json") for record in self._records.values()]
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        logger.debug("Flushed %d strings to %s", len(payload), self.path)


def _index_records(records: List[StoredRecord]) -> Dict[str, StoredRecord]:
    """Key records by id, rejecting duplicates and ids that are not the value's hash."""
    from string_registry.services import compute_hash

    indexed: Dict[str, StoredRecord] = {}
    for record in records:
        if not (record.id == record.properties.sha256_hash == compute_hash(record.value)):
            raise ValueError(f"record {record.id!r} does not match the hash of its value")
        if record.id in indexed:
            raise ValueError(f"duplicate record id {record.id!r}")
        indexed[record.id] = record
    return indexed
