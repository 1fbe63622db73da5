"""Natural language filter queries.

Only a closed set of phrase templates is understood. Each template is a
sequence of token tests plus an action that assigns filter values, and the
templates are tried in priority order against the whole query.
"""
import logging
import re
from typing import Any, Callable, Dict, List, NamedTuple, Sequence, Tuple

from string_registry.errors import ConflictingQuery, InvalidInput, UnparsableQuery
from string_registry.schemas import FilterSet

logger = logging.getLogger("string_registry.nlp")

TokenTest = Callable[[str], bool]

_INTEGER = re.compile(r"[0-9]+")
_LETTER = re.compile(r"[a-z]")


def word(*choices: str) -> TokenTest:
    allowed = frozenset(choices)
    return lambda token: token in allowed


def integer(token: str) -> bool:
    if _INTEGER.fullmatch(token) is None:
        return False
    try:
        int(token)
    except ValueError:
        # Beyond the interpreter's integer string conversion limit
        return False
    return True


def letter(token: str) -> bool:
    return _LETTER.fullmatch(token) is not None


def phrase(text: str) -> Tuple[TokenTest, ...]:
    return tuple(word(w) for w in text.split())


class FilterRecorder:
    """Collects filter assignments and notices when a key is reassigned."""

    def __init__(self) -> None:
        self.values: Dict[str, Any] = {}
        self.conflicts = False

    def set(self, key: str, value: Any) -> None:
        if key in self.values and self.values[key] != value:
            self.conflicts = True
        self.values[key] = value


class Template(NamedTuple):
    name: str
    pattern: Tuple[TokenTest, ...]
    action: Callable[[Sequence[str], FilterRecorder], None]

    def match(self, tokens: Sequence[str]) -> int:
        """Number of tokens consumed from the start of ``tokens``, or 0."""
        if len(tokens) < len(self.pattern):
            return 0
        for test, token in zip(self.pattern, tokens):
            if not test(token):
                return 0
        return len(self.pattern)


def _single_word_palindromes(tokens: Sequence[str], rec: FilterRecorder) -> None:
    rec.set("word_count", 1)
    rec.set("is_palindrome", True)


def _longer_than(tokens: Sequence[str], rec: FilterRecorder) -> None:
    rec.set("min_length", int(tokens[3]) + 1)


def _palindromes_with_first_vowel(tokens: Sequence[str], rec: FilterRecorder) -> None:
    rec.set("is_palindrome", True)
    rec.set("contains_character", "a")


def _containing_letter(tokens: Sequence[str], rec: FilterRecorder) -> None:
    rec.set("contains_character", tokens[-1].lower())


TEMPLATES: Tuple[Template, ...] = (
    Template(
        "single_word_palindromes",
        phrase("all single word") + (word("palindromic", "palindrome"), word("strings")),
        _single_word_palindromes,
    ),
    Template(
        "longer_than",
        phrase("strings longer than") + (integer, word("characters")),
        _longer_than,
    ),
    Template(
        "palindromes_with_first_vowel",
        phrase("palindromic strings that contain the first vowel"),
        _palindromes_with_first_vowel,
    ),
    Template(
        "containing_the_letter",
        phrase("strings containing the letter") + (letter,),
        _containing_letter,
    ),
    Template(
        "containing",
        phrase("strings containing") + (letter,),
        _containing_letter,
    ),
)


class ParseResult(NamedTuple):
    filters: FilterSet
    conflicts: bool


def tokenize(raw: str) -> List[str]:
    return raw.strip().lower().split()


def parse_nl_query(raw: str) -> ParseResult:
    """Translate a query into filters using the first template that matches.

    The match must start at the first token and consume every token; any
    other query yields an empty ``FilterSet`` with ``conflicts`` False.
    """
    if not isinstance(raw, str):
        raise InvalidInput("query must be a string")

    tokens = tokenize(raw)
    recorder = FilterRecorder()

    for template in TEMPLATES:
        consumed = template.match(tokens)
        if not consumed:
            continue
        if consumed != len(tokens):
            logger.debug("Template %s matched with %d trailing tokens", template.name, len(tokens) - consumed)
            return ParseResult(FilterSet(), False)
        template.action(tokens, recorder)
        break
    else:
        return ParseResult(FilterSet(), False)

    values = recorder.values
    if values.get("word_count") == 1 and values.get("min_length") is not None and values["min_length"] > 1:
        recorder.conflicts = True

    return ParseResult(FilterSet(**values), recorder.conflicts)


def interpret_nl_query(query: str) -> Dict[str, Any]:
    """Interpret natural language filter queries into structured filters."""
    result = parse_nl_query(query)
    if result.filters.is_empty():
        raise UnparsableQuery("Unable to parse natural language query")
    if result.conflicts:
        raise ConflictingQuery(
            "Query parsed but resulted in conflicting filters",
            details=result.filters.as_dict(),
        )
    return {"original": query, "parsed_filters": result.filters.as_dict()}
