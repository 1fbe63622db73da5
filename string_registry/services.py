import logging
import re
import threading
from collections import Counter
from hashlib import sha256
from typing import Any, Dict, Optional

from string_registry.config import Settings
from string_registry.errors import AlreadyExists, InvalidInput, NotFound
from string_registry.filters import filter_records
from string_registry.NLP import interpret_nl_query
from string_registry.repository import InMemoryRepository, JsonFileRepository, StringRepository
from string_registry.schemas import FilterSet, StoredRecord, StringProperties, utc_now

logger = logging.getLogger("string_registry.services")

_HEX_ID = re.compile(r"[0-9a-f]{64}")


def compute_hash(value: str) -> str:
    """SHA-256 of the exact UTF-8 bytes of ``value`` as lowercase hex."""
    return sha256(value.encode("utf-8")).hexdigest()


def analyze_string(value: str) -> StringProperties:
    if not isinstance(value, str):
        raise InvalidInput("Value must be a string")

    lower = value.lower()
    return StringProperties(
        length=len(value),
        is_palindrome=lower == lower[::-1],
        unique_characters=len(set(lower)),
        word_count=len(value.split()),
        sha256_hash=compute_hash(value),
        character_frequency_map=dict(Counter(lower)),
    )


class StringRegistry:
    """Owns the store and runs every registry operation against it.

    Mutations are serialized and flushed before they return.
    """

    def __init__(self, repository: StringRepository) -> None:
        self.repository = repository
        self._lock = threading.Lock()

    def create(self, value: Any) -> StoredRecord:
        props = analyze_string(value)
        record = StoredRecord(
            id=props.sha256_hash,
            value=value,
            properties=props,
            created_at=utc_now(),
        )
        with self._lock:
            if self.repository.has(record.id):
                raise AlreadyExists("String already exists in the system")
            self.repository.put(record)
            self.repository.flush()
        logger.info("Stored string %s (length=%d)", record.id, props.length)
        return record

    def get(self, record_id: str) -> StoredRecord:
        record = self.repository.get(record_id)
        if record is None:
            raise NotFound("String does not exist in the system")
        return record

    def resolve(self, string_value: str) -> Optional[StoredRecord]:
        """Find a record by raw value, falling back to treating it as an id."""
        record = self.repository.get(compute_hash(string_value))
        if record is None and _HEX_ID.fullmatch(string_value):
            record = self.repository.get(string_value)
        return record

    def get_by_value(self, string_value: str) -> StoredRecord:
        record = self.resolve(string_value)
        if record is None:
            raise NotFound("String does not exist in the system")
        return record

    def delete(self, string_value: str) -> None:
        with self._lock:
            record = self.resolve(string_value)
            if record is None or not self.repository.delete(record.id):
                raise NotFound("String does not exist in the system")
            self.repository.flush()
        logger.info("Deleted string %s", record.id)

    def list_with_filters(self, filters: FilterSet) -> Dict[str, Any]:
        records = filter_records(self.repository.all(), filters)
        return {
            "data": records,
            "count": len(records),
            "filters_applied": filters.as_dict(),
        }

    def filter_by_natural_language(self, query: str) -> Dict[str, Any]:
        interpreted = interpret_nl_query(query)
        filters = FilterSet(**interpreted["parsed_filters"])
        records = filter_records(self.repository.all(), filters)
        return {
            "data": records,
            "count": len(records),
            "interpreted_query": interpreted,
        }

    def __len__(self) -> int:
        return len(self.repository)


def build_repository(settings: Settings) -> StringRepository:
    backend = settings.storage_backend.strip().lower()
    if backend == "file":
        return JsonFileRepository(settings.data_file).load()
    if backend == "memory":
        return InMemoryRepository()
    if backend == "sqlite":
        from string_registry.crud import SqlStringRepository
        from string_registry.database import create_session_factory

        _, session_factory = create_session_factory(settings.database_url)
        return SqlStringRepository(session_factory)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend!r}")


def create_registry(settings: Settings) -> StringRegistry:
    repository = build_repository(settings)
    logger.info("Using %s storage with %d strings", settings.storage_backend, len(repository))
    return StringRegistry(repository)
