"""Relevance-ranked search over in-memory book lists."""

import re
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from paginas_amarelas.services.text import (
    contains_substring,
    normalize,
    starts_with_text,
    tokenize,
)

T = TypeVar("T")

MIN_QUERY_LENGTH = 3

# Rank values, lower is better
WORD_PREFIX = 0
TEXT_PREFIX = 1
SUBSTRING = 2

_DIGITS = re.compile(r"(\d+)")


def _field(candidate: Any, name: str) -> str:
    if isinstance(candidate, Mapping):
        value = candidate.get(name)
    else:
        value = getattr(candidate, name, None)
    return value or ""


def relevance_rank(title: str, author: str, query: str) -> int | None:
    """
    Compute how strongly ``query`` matches a title/author pair.

    Returns:
        0 when a word of the title or author starts with the query,
        1 when the whole title or author starts with it,
        2 when either contains it anywhere, None when nothing matches.
    """
    normalized_query = normalize(query)

    words = tokenize(title) + tokenize(author)
    if any(word.startswith(normalized_query) for word in words):
        return WORD_PREFIX

    if starts_with_text(title, query) or starts_with_text(author, query):
        return TEXT_PREFIX

    if contains_substring(title, query) or contains_substring(author, query):
        return SUBSTRING

    return None


def _numeric_key(digits: str) -> tuple[int, str]:
    # Compare by magnitude without int(), which rejects very long digit runs
    significant = digits.lstrip("0")
    return len(significant), significant


def natural_sort_key(text: str) -> tuple:
    """Sort key comparing digit runs numerically, so "Book 2" < "Book 10"."""
    parts = _DIGITS.split(normalize(text))
    # re.split with a capture group puts the digit runs at odd indexes
    return tuple(_numeric_key(part) if index % 2 else part for index, part in enumerate(parts))


def search_books(books: Sequence[T], query: str) -> list[T]:
    """
    Filter and order books by relevance to a query.

    Queries shorter than three characters (after trimming) leave the list
    untouched. Otherwise non-matching books are dropped and the rest are
    ordered by rank, then by title.

    Args:
        books: Objects or mappings exposing ``title`` and ``author``
        query: Raw search text

    Returns:
        A new list with the matching books in relevance order
    """
    if len(query.strip()) < MIN_QUERY_LENGTH:
        return list(books)

    ranked: list[tuple[int, tuple, T]] = []
    for book in books:
        title = _field(book, "title")
        rank = relevance_rank(title, _field(book, "author"), query)
        if rank is not None:
            ranked.append((rank, natural_sort_key(title), book))

    ranked.sort(key=lambda item: (item[0], item[1]))
    return [book for _, _, book in ranked]
