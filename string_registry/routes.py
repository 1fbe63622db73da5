import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from string_registry.filters import validate_query_filters
from string_registry.schemas import (
    ErrorResponse,
    FilterResponse,
    NaturalLanguageFilterResponse,
    StoredRecord,
    StringRequest,
)
from string_registry.services import StringRegistry

router = APIRouter()
logger = logging.getLogger("string_registry.routes")


def _error_responses(*codes: int) -> dict:
    return {code: {"model": ErrorResponse} for code in codes}


def get_registry(request: Request) -> StringRegistry:
    return request.app.state.registry


@router.get("/health", tags=["Health"])
def health(registry: StringRegistry = Depends(get_registry)) -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "count": len(registry)}


@router.post(
    "/strings",
    response_model=StoredRecord,
    status_code=201,
    responses=_error_responses(400, 409, 422),
    tags=["Strings"],
)
def create_string_endpoint(
    payload: StringRequest,
    registry: StringRegistry = Depends(get_registry),
) -> StoredRecord:
    """Analyze and store a string. Returns 409 if it already exists."""
    return registry.create(payload.value)


@router.get(
    "/strings/filter-by-natural-language",
    response_model=NaturalLanguageFilterResponse,
    responses=_error_responses(400, 422),
    tags=["Strings"],
)
def filter_by_natural_language(
    query: Optional[str] = Query(None, description="e.g. 'all single word palindromic strings'"),
    registry: StringRegistry = Depends(get_registry),
) -> dict:
    """Filter strings using one of the supported natural language phrases."""
    if query is None or not query.strip():
        raise HTTPException(status_code=400, detail="Missing 'query' parameter")
    result = registry.filter_by_natural_language(query)
    logger.info("NL query %r -> %d matches", query, result["count"])
    return result


@router.get("/strings", response_model=FilterResponse, responses=_error_responses(400), tags=["Strings"])
def get_all_strings(
    is_palindrome: Optional[str] = Query(None, description="true or false"),
    min_length: Optional[str] = Query(None, description="Minimum length (non-negative integer)"),
    max_length: Optional[str] = Query(None, description="Maximum length (non-negative integer)"),
    word_count: Optional[str] = Query(None, description="Exact word count (positive integer)"),
    contains_character: Optional[str] = Query(None, description="A single character"),
    registry: StringRegistry = Depends(get_registry),
) -> dict:
    """Get all strings with optional filtering."""
    filters = validate_query_filters(is_palindrome, min_length, max_length, word_count, contains_character)
    return registry.list_with_filters(filters)


@router.get(
    "/strings/{string_value:path}",
    response_model=StoredRecord,
    responses=_error_responses(404),
    tags=["Strings"],
)
def get_string_endpoint(
    string_value: str,
    registry: StringRegistry = Depends(get_registry),
) -> StoredRecord:
    """Get a specific string by its raw value."""
    return registry.get_by_value(string_value)


@router.delete(
    "/strings/{string_value:path}",
    status_code=204,
    responses=_error_responses(404),
    tags=["Strings"],
)
def delete_string_endpoint(
    string_value: str,
    registry: StringRegistry = Depends(get_registry),
) -> Response:
    """Delete a string by its raw value."""
    registry.delete(string_value)
    return Response(status_code=204)
