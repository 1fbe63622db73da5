"""Tests for all API endpoints."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from string_registry import NLP
from string_registry.main import create_app
from string_registry.repository import JsonFileRepository
from string_registry.services import StringRegistry


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "count": 0}


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "POST /strings" in response.json()["endpoints"]


class TestCreateStringEndpoint:
    """Tests for POST /strings endpoint."""

    def test_create_string_success(self, client):
        """Test successful string creation."""
        response = client.post("/strings", json={"value": "Hello World"})
        assert response.status_code == 201
        data = response.json()
        assert data["value"] == "Hello World"
        assert data["id"] == data["properties"]["sha256_hash"]
        assert data["properties"] == {
            "length": 11,
            "is_palindrome": False,
            "unique_characters": 8,
            "word_count": 2,
            "sha256_hash": data["id"],
            "character_frequency_map": {"h": 1, "e": 1, "l": 3, "o": 2, " ": 1, "w": 1, "r": 1, "d": 1},
        }

    def test_created_at_is_utc_iso(self, client):
        data = client.post("/strings", json={"value": "timestamped"}).json()
        assert data["created_at"].endswith("Z")
        parsed = datetime.fromisoformat(data["created_at"].replace("Z", "+00:00"))
        assert parsed.tzinfo is not None

    def test_create_exact_duplicate_conflict(self, client):
        """Exact duplicate returns 409; a case variant is a different string."""
        client.post("/strings", json={"value": "Test String"})
        response_dup = client.post("/strings", json={"value": "Test String"})
        assert response_dup.status_code == 409
        assert "already exists" in response_dup.json()["error"]
        response_case = client.post("/strings", json={"value": "test string"})
        assert response_case.status_code == 201

    def test_create_empty_string(self, client):
        response = client.post("/strings", json={"value": ""})
        assert response.status_code == 201
        props = response.json()["properties"]
        assert props["length"] == 0
        assert props["is_palindrome"] is True

    def test_duplicate_error_body(self, client):
        """Error responses carry only the documented ErrorResponse fields."""
        client.post("/strings", json={"value": "dup"})
        body = client.post("/strings", json={"value": "dup"}).json()
        assert body == {"error": "String already exists in the system"}

    def test_error_responses_documented(self, client):
        """OpenAPI advertises the ErrorResponse schema for create errors."""
        responses = client.get("/openapi.json").json()["paths"]["/strings"]["post"]["responses"]
        for code in ("400", "409", "422"):
            schema = responses[code]["content"]["application/json"]["schema"]
            assert schema["$ref"].endswith("/ErrorResponse")

    def test_create_missing_value(self, client):
        """Test missing value field returns 400."""
        response = client.post("/strings", json={})
        assert response.status_code == 400

    def test_create_wrong_type(self, client):
        """Test non-string value returns 422."""
        response = client.post("/strings", json={"value": 123})
        assert response.status_code == 422

    def test_create_invalid_json_body(self, client):
        response = client.post(
            "/strings",
            content=b'{"value": "oops"',  # truncated JSON
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400


class TestGetStringEndpoint:
    """Tests for GET /strings/{string_value} endpoint."""

    def test_get_string_success(self, client):
        """Test retrieving an existing string."""
        created = client.post("/strings", json={"value": "test string"}).json()
        response = client.get("/strings/test string")
        assert response.status_code == 200
        assert response.json() == created

    def test_get_string_is_case_sensitive(self, client):
        client.post("/strings", json={"value": "CaseSensitive"})
        assert client.get("/strings/casesensitive").status_code == 404

    def test_get_string_by_id(self, client):
        created = client.post("/strings", json={"value": "by id"}).json()
        response = client.get(f"/strings/{created['id']}")
        assert response.status_code == 200
        assert response.json()["value"] == "by id"

    def test_get_string_with_slash(self, client):
        """Test values containing a slash can be retrieved."""
        client.post("/strings", json={"value": "a/b"})
        response = client.get("/strings/a/b")
        assert response.status_code == 200
        assert response.json()["value"] == "a/b"

    def test_get_string_not_found(self, client):
        """Test retrieving an unknown string returns 404."""
        response = client.get("/strings/nonexistent_value")
        assert response.status_code == 404
        assert "does not exist" in response.json()["error"]


class TestGetAllStringsEndpoint:
    """Tests for GET /strings endpoint with filtering."""

    @pytest.fixture(autouse=True)
    def seed(self, client):
        for value in ("hello", "racecar", "hello world", "A"):
            client.post("/strings", json={"value": value})

    def test_get_all_strings(self, client):
        data = client.get("/strings").json()
        assert data["count"] == 4
        assert [d["value"] for d in data["data"]] == ["hello", "racecar", "hello world", "A"]
        assert data["filters_applied"] == {}

    def test_filter_by_palindrome(self, client):
        """Test filtering by is_palindrome."""
        data = client.get("/strings?is_palindrome=true").json()
        assert data["count"] == 2  # "racecar" and "A"
        assert data["filters_applied"] == {"is_palindrome": True}

    def test_filter_by_min_length(self, client):
        assert client.get("/strings?min_length=5").json()["count"] == 3

    def test_filter_by_max_length(self, client):
        assert client.get("/strings?max_length=5").json()["count"] == 2

    def test_filter_by_word_count(self, client):
        assert client.get("/strings?word_count=1").json()["count"] == 3

    def test_filter_by_contains_character(self, client):
        data = client.get("/strings?contains_character=a").json()
        assert sorted(d["value"] for d in data["data"]) == ["A", "racecar"]

    def test_contains_character_normalized(self, client):
        data = client.get("/strings?contains_character=H").json()
        assert data["count"] == 2
        assert data["filters_applied"] == {"contains_character": "h"}

    def test_filter_combined(self, client):
        """Test combining several filters."""
        response = client.get("/strings?is_palindrome=true&min_length=1&max_length=10")
        assert response.status_code == 200
        assert response.json()["count"] == 2

    @pytest.mark.parametrize(
        "query, bad_param",
        [
            ("min_length=-1", "min_length"),
            ("max_length=abc", "max_length"),
            ("word_count=0", "word_count"),
            ("is_palindrome=maybe", "is_palindrome"),
            ("contains_character=abc", "contains_character"),
            ("min_length=5&max_length=3", "min_length"),
        ],
    )
    def test_invalid_params(self, client, query, bad_param):
        """Test malformed query parameters return 400."""
        response = client.get(f"/strings?{query}")
        assert response.status_code == 400
        body = response.json()
        assert bad_param in body["details"]
        assert bad_param in body["error"]

    def test_contains_character_with_two_code_point_lowercase(self, client):
        """A letter that lowercases to two code points is a 400, not a server error."""
        response = client.get("/strings", params={"contains_character": "İ"})
        assert response.status_code == 400
        assert "contains_character" in response.json()["details"]


class TestFilterByNaturalLanguageEndpoint:
    """Tests for GET /strings/filter-by-natural-language endpoint."""

    URL = "/strings/filter-by-natural-language"

    @pytest.fixture(autouse=True)
    def seed(self, client):
        for value in ("a", "racecar", "hello world", "level", "Quiet queen"):
            client.post("/strings", json={"value": value})

    def test_single_word_palindromes(self, client):
        response = client.get(self.URL, params={"query": "all single word palindromic strings"})
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert data["interpreted_query"] == {
            "original": "all single word palindromic strings",
            "parsed_filters": {"word_count": 1, "is_palindrome": True},
        }

    def test_strings_longer_than(self, client):
        """Test 'strings longer than' query."""
        data = client.get(self.URL, params={"query": "strings longer than 10 characters"}).json()
        assert sorted(d["value"] for d in data["data"]) == ["Quiet queen", "hello world"]
        assert data["interpreted_query"]["parsed_filters"] == {"min_length": 11}

    def test_strings_containing_letter(self, client):
        data = client.get(self.URL, params={"query": "strings containing the letter q"}).json()
        assert [d["value"] for d in data["data"]] == ["Quiet queen"]

    def test_strings_containing_short_form(self, client):
        data = client.get(self.URL, params={"query": "strings containing a"}).json()
        assert data["count"] == 2

    def test_palindromes_with_first_vowel(self, client):
        """Test the first vowel is read as 'a'."""
        data = client.get(self.URL, params={"query": "palindromic strings that contain the first vowel"}).json()
        assert sorted(d["value"] for d in data["data"]) == ["a", "racecar"]

    def test_missing_query_param_results_in_400(self, client):
        """Test missing query parameter returns 400."""
        response = client.get(self.URL)
        assert response.status_code == 400
        assert "query" in response.json()["error"].lower()

    def test_blank_query_results_in_400(self, client):
        assert client.get(self.URL, params={"query": "   "}).status_code == 400

    def test_trailing_garbage_is_unparsable(self, client):
        response = client.get(self.URL, params={"query": "strings containing q today"})
        assert response.status_code == 400
        assert "parse" in response.json()["error"].lower()

    def test_oversized_number_is_unparsable(self, client):
        """A number too long to convert is reported as unparsable."""
        query = "strings longer than " + "9" * 5000 + " characters"
        response = client.get(self.URL, params={"query": query})
        assert response.status_code == 400

    def test_unknown_phrase_is_unparsable(self, client):
        response = client.get(self.URL, params={"query": "non palindromic strings"})
        assert response.status_code == 400

    def test_conflicting_query_returns_422(self, client, monkeypatch):
        """Test conflicting filters return 422."""
        def action(tokens, rec):
            rec.set("word_count", 1)
            rec.set("min_length", 4)

        extra = NLP.Template("long_single_words", NLP.phrase("long single words"), action)
        monkeypatch.setattr(NLP, "TEMPLATES", NLP.TEMPLATES + (extra,))
        response = client.get(self.URL, params={"query": "long single words"})
        assert response.status_code == 422
        assert response.json()["details"] == {"word_count": 1, "min_length": 4}


class TestDeleteStringEndpoint:
    """Tests for DELETE /strings/{string_value} endpoint."""

    def test_delete_string_success(self, client):
        """Test deleting an existing string returns 204."""
        client.post("/strings", json={"value": "to delete"})
        assert client.get("/strings/to delete").status_code == 200
        delete_response = client.delete("/strings/to delete")
        assert delete_response.status_code == 204
        assert delete_response.text == ""
        assert client.get("/strings/to delete").status_code == 404

    def test_delete_nonexistent_string(self, client):
        """Test deleting an unknown string returns 404."""
        response = client.delete("/strings/nonexistent_value")
        assert response.status_code == 404

    def test_delete_string_not_in_get_all(self, client):
        client.post("/strings", json={"value": "string1"})
        client.post("/strings", json={"value": "string2"})
        assert client.get("/strings").json()["count"] == 2
        client.delete("/strings/string2")
        data = client.get("/strings").json()
        assert [d["value"] for d in data["data"]] == ["string1"]

    def test_delete_then_recreate(self, client):
        client.post("/strings", json={"value": "again"})
        client.delete("/strings/again")
        assert client.post("/strings", json={"value": "again"}).status_code == 201


def test_file_backed_app_survives_restart(data_file):
    """Records written through the API are reloaded by a fresh app."""
    first = create_app(registry=StringRegistry(JsonFileRepository(data_file).load()))
    with TestClient(first) as c:
        created = c.post("/strings", json={"value": "durable"}).json()

    second = create_app(registry=StringRegistry(JsonFileRepository(data_file).load()))
    with TestClient(second) as c:
        response = c.get("/strings/durable")
        assert response.status_code == 200
        assert response.json() == created
