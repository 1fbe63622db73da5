from typing import Any, Dict, Iterable, List, Optional, Union

from string_registry.errors import FilterValidationError
from string_registry.schemas import FilterSet, StoredRecord

RawParam = Optional[Union[str, int, bool]]


def matches(record: StoredRecord, filters: FilterSet) -> bool:
    """Return True when the record satisfies every predicate present in ``filters``."""
    props = record.properties

    if filters.is_palindrome is not None and props.is_palindrome != filters.is_palindrome:
        return False

    if filters.min_length is not None and props.length < filters.min_length:
        return False

    if filters.max_length is not None and props.length > filters.max_length:
        return False

    if filters.word_count is not None and props.word_count != filters.word_count:
        return False

    if filters.contains_character is not None:
        # Presence test on the raw value, case-insensitive
        if filters.contains_character.lower() not in record.value.lower():
            return False

    return True


def filter_records(records: Iterable[StoredRecord], filters: FilterSet) -> List[StoredRecord]:
    if filters.is_empty():
        return list(records)
    return [r for r in records if matches(r, filters)]


def _parse_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError("must be 'true' or 'false'")


def _parse_int(value: Union[str, int], minimum: int, label: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"must be a {label}")
    if isinstance(value, int):
        n = value
    else:
        text = str(value).strip()
        try:
            n = int(text)
        except ValueError:
            raise ValueError(f"must be a {label}") from None
    if n < minimum:
        raise ValueError(f"must be a {label}")
    return n


def validate_query_filters(
    is_palindrome: RawParam = None,
    min_length: RawParam = None,
    max_length: RawParam = None,
    word_count: RawParam = None,
    contains_character: Optional[str] = None,
) -> FilterSet:
    """Validate raw query parameters into a ``FilterSet``.

    Each parameter is checked on its own; every failure is collected and
    reported together in ``FilterValidationError.details`` keyed by parameter
    name, before any record is scanned.
    """
    errors: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    if is_palindrome is not None:
        try:
            values["is_palindrome"] = _parse_bool(is_palindrome)
        except ValueError as e:
            errors["is_palindrome"] = str(e)

    for name, raw in (("min_length", min_length), ("max_length", max_length)):
        if raw is None:
            continue
        try:
            values[name] = _parse_int(raw, 0, "non-negative integer")
        except ValueError as e:
            errors[name] = str(e)

    if word_count is not None:
        try:
            values["word_count"] = _parse_int(word_count, 1, "positive integer")
        except ValueError as e:
            errors["word_count"] = str(e)

    if contains_character is not None:
        # Some characters lowercase to more than one code point
        lowered = contains_character.lower() if isinstance(contains_character, str) else None
        if lowered is None or len(contains_character) != 1 or len(lowered) != 1:
            errors["contains_character"] = "must be exactly one character"
        else:
            values["contains_character"] = lowered

    if "min_length" in values and "max_length" in values:
        if values["min_length"] > values["max_length"]:
            errors["min_length"] = "cannot be greater than max_length"

    if errors:
        summary = "; ".join(f"{k} {v}" for k, v in errors.items())
        raise FilterValidationError(f"Invalid query parameter values: {summary}", details=errors)

    return FilterSet(**values)
