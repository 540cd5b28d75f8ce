"""Book lookup service backed by external catalogues (Google Books, Open Library)."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import httpx
from opentelemetry import trace

from paginas_amarelas.core.config import get_settings
from paginas_amarelas.services.text import normalize

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class LookupMode(str, Enum):
    """What the query string describes."""

    TITLE = "title"
    AUTHOR = "author"


@dataclass
class BookInfo:
    """Catalogue entry normalized across providers."""

    title: str
    author: str
    isbn: str | None = None
    cover_url: str | None = None
    description: str | None = None
    pages: int | None = None
    external_id: str | None = None
    source: str | None = None


class BookLookupError(Exception):
    """Raised when every catalogue provider failed."""


class BookSearchProvider(Protocol):
    """A catalogue that can be searched for books."""

    name: str

    async def search(self, query: str, mode: LookupMode, max_results: int) -> list[BookInfo]: ...

    async def close(self) -> None: ...


class _HTTPProvider:
    """Shared lazy httpx client handling."""

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _https(url: str | None) -> str | None:
    if url and url.startswith("http://"):
        return url.replace("http://", "https://", 1)
    return url


class GoogleBooksProvider(_HTTPProvider):
    """Search provider for the Google Books volumes API."""

    name = "google_books"
    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    @staticmethod
    def _parse_volume(item: dict) -> BookInfo:
        volume_info = item.get("volumeInfo", {})

        isbn = None
        for identifier in volume_info.get("industryIdentifiers", []):
            if identifier.get("type") in ("ISBN_13", "ISBN_10"):
                isbn = identifier.get("identifier")
                break

        # Prefer the larger thumbnail
        image_links = volume_info.get("imageLinks", {})
        cover_url = _https(image_links.get("thumbnail") or image_links.get("smallThumbnail"))

        authors = volume_info.get("authors", ["Unknown Author"])

        return BookInfo(
            title=volume_info.get("title", "Unknown Title"),
            author=", ".join(authors),
            isbn=isbn,
            cover_url=cover_url,
            description=volume_info.get("description"),
            pages=volume_info.get("pageCount"),
            external_id=item.get("id"),
            source="google_books",
        )

    async def search(
        self, query: str, mode: LookupMode = LookupMode.TITLE, max_results: int = 10
    ) -> list[BookInfo]:
        """
        Search Google Books.

        Args:
            query: Title/free text, or an author name in author mode
            mode: Lookup mode
            max_results: Maximum number of results (Google caps this at 40)

        Returns:
            List of BookInfo objects
        """
        client = await self._get_client()

        q = f"inauthor:{query}" if mode == LookupMode.AUTHOR else query
        params = {
            "q": q,
            "maxResults": min(max_results, 40),
            "printType": "books",
        }

        response = await client.get(self.BASE_URL, params=params)
        response.raise_for_status()

        data = response.json()
        return [self._parse_volume(item) for item in data.get("items", [])]

    async def search_by_isbn(self, isbn: str) -> BookInfo | None:
        """
        Search for a book by ISBN.

        Args:
            isbn: ISBN-10 or ISBN-13

        Returns:
            BookInfo if found, None otherwise
        """
        client = await self._get_client()

        response = await client.get(self.BASE_URL, params={"q": f"isbn:{isbn}", "maxResults": 1})
        response.raise_for_status()

        data = response.json()
        items = data.get("items", [])
        if data.get("totalItems", 0) == 0 or not items:
            return None

        book = self._parse_volume(items[0])
        book.isbn = isbn
        return book


class OpenLibraryProvider(_HTTPProvider):
    """Search provider for the Open Library search API."""

    name = "open_library"
    BASE_URL = "https://openlibrary.org/search.json"
    COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"

    def _parse_doc(self, doc: dict) -> BookInfo:
        cover_id = doc.get("cover_i")
        isbns = doc.get("isbn") or []
        authors = doc.get("author_name") or ["Unknown Author"]
        first_sentence = doc.get("first_sentence") or [None]
        description = first_sentence[0] if isinstance(first_sentence, list) else None

        return BookInfo(
            title=doc.get("title", "Unknown Title"),
            author=", ".join(authors),
            isbn=isbns[0] if isbns else None,
            cover_url=self.COVER_URL.format(cover_id=cover_id) if cover_id else None,
            description=description,
            pages=doc.get("number_of_pages_median"),
            external_id=doc.get("key"),
            source="open_library",
        )

    async def search(
        self, query: str, mode: LookupMode = LookupMode.TITLE, max_results: int = 10
    ) -> list[BookInfo]:
        """Search Open Library by free text or by author."""
        client = await self._get_client()

        params: dict = {"limit": max_results}
        if mode == LookupMode.AUTHOR:
            params["author"] = query
        else:
            params["q"] = query

        response = await client.get(self.BASE_URL, params=params)
        response.raise_for_status()

        data = response.json()
        return [self._parse_doc(doc) for doc in data.get("docs", [])]


CacheKey = tuple[str, str, int]


class TTLCache:
    """Small time-based cache for lookup results."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, list[BookInfo]]] = {}

    @staticmethod
    def make_key(query: str, mode: LookupMode, max_results: int) -> CacheKey:
        """Build the cache key for a lookup."""
        return (normalize(query.strip()), mode.value, max_results)

    def get(self, key: CacheKey) -> list[BookInfo] | None:
        """Return the cached value, dropping it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: CacheKey, value: list[BookInfo]) -> None:
        """Store a value."""
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class BookLookupService:
    """Searches external catalogues, trying providers in priority order."""

    def __init__(
        self,
        providers: list[BookSearchProvider] | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        settings = get_settings()
        if providers is None:
            timeout = settings.lookup_timeout_seconds
            providers = [GoogleBooksProvider(timeout), OpenLibraryProvider(timeout)]
        if cache is None:
            cache = TTLCache(settings.lookup_cache_ttl_seconds)
        self.providers = providers
        self.cache = cache

    async def close(self) -> None:
        """Close every provider's HTTP client."""
        for provider in self.providers:
            await provider.close()

    async def search_books(
        self,
        query: str,
        mode: LookupMode = LookupMode.TITLE,
        max_results: int = 10,
    ) -> list[BookInfo]:
        """
        Search for books by title, author, or ISBN.

        The first provider returning a non-empty result wins. A provider that
        fails is skipped.

        Args:
            query: Search query
            mode: Lookup mode
            max_results: Maximum number of results to return

        Returns:
            List of BookInfo objects, empty if no provider found anything

        Raises:
            BookLookupError: If every provider failed
        """
        key = self.cache.make_key(query, mode, max_results)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Lookup cache hit for {key}")
            return cached

        with tracer.start_as_current_span("book_lookup.search_books") as span:
            span.set_attribute("lookup.mode", mode.value)
            span.set_attribute("lookup.max_results", max_results)

            errors: list[str] = []
            for provider in self.providers:
                try:
                    results = await provider.search(query, mode, max_results)
                except httpx.HTTPError as e:
                    logger.warning(f"Book provider '{provider.name}' failed: {e!r}")
                    errors.append(provider.name)
                    continue

                if results:
                    span.set_attribute("lookup.provider", provider.name)
                    span.set_attribute("lookup.result_count", len(results))
                    results = results[:max_results]
                    self.cache.set(key, results)
                    return results

                logger.info(f"Book provider '{provider.name}' returned no results")

            if errors and len(errors) == len(self.providers):
                logger.error(f"All book providers failed for query '{query}'")
                raise BookLookupError("All book providers failed")

            return []

    async def search_by_isbn(self, isbn: str) -> BookInfo | None:
        """Look a book up by ISBN using the first provider that supports it."""
        for provider in self.providers:
            search_by_isbn = getattr(provider, "search_by_isbn", None)
            if search_by_isbn is None:
                continue
            try:
                return await search_by_isbn(isbn)
            except httpx.HTTPError as e:
                logger.warning(f"ISBN lookup via '{provider.name}' failed: {e!r}")
                raise BookLookupError(f"ISBN lookup failed for {isbn}") from e
        return None


# Global instance for dependency injection
book_lookup_service = BookLookupService()


async def get_book_lookup_service() -> BookLookupService:
    """Dependency that provides the book lookup service."""
    return book_lookup_service
