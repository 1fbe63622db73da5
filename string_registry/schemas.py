from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StringRequest(BaseModel):
    """Request schema for creating/analyzing a string."""
    value: str = Field(..., description="String to analyze and store")


class StringProperties(BaseModel):
    """Computed properties of an analyzed string."""
    length: int
    is_palindrome: bool
    unique_characters: int
    word_count: int
    sha256_hash: str
    character_frequency_map: Dict[str, int]

    model_config = {"frozen": True}


class StoredRecord(BaseModel):
    """A stored string, keyed by the SHA-256 of its value."""
    id: str = Field(..., description="SHA-256 hex digest of the value")
    value: str
    properties: StringProperties
    created_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True, "from_attributes": True}

    @field_serializer("created_at")
    def _serialize_created_at(self, dt: datetime) -> str:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class FilterSet(BaseModel):
    """Sparse set of predicates; a missing field means no constraint."""
    is_palindrome: Optional[bool] = None
    min_length: Optional[int] = Field(None, ge=0)
    max_length: Optional[int] = Field(None, ge=0)
    word_count: Optional[int] = Field(None, gt=0)
    contains_character: Optional[str] = Field(None, min_length=1, max_length=1)

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.as_dict()


class FilterResponse(BaseModel):
    """Response schema for structured filter results."""
    data: List[StoredRecord]
    count: int
    filters_applied: Dict[str, Any] = Field(default_factory=dict)


class InterpretedQuery(BaseModel):
    original: str
    parsed_filters: Dict[str, Any]


class NaturalLanguageFilterResponse(BaseModel):
    """Response schema for natural-language filter results."""
    data: List[StoredRecord]
    count: int
    interpreted_query: InterpretedQuery


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
