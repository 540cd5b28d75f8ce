"""Unit tests for the external book lookup service."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from paginas_amarelas.services.book_lookup import (
    BookInfo,
    BookLookupError,
    BookLookupService,
    GoogleBooksProvider,
    LookupMode,
    OpenLibraryProvider,
    TTLCache,
)


def mock_response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


def fake_provider(name: str, results=None, error: Exception | None = None) -> MagicMock:
    provider = MagicMock()
    provider.name = name
    provider.search = AsyncMock(return_value=results or [], side_effect=error)
    provider.close = AsyncMock()
    return provider


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestGoogleBooksProvider:
    """Tests for GoogleBooksProvider."""

    async def test_search_success(self):
        """Test successful book search."""
        provider = GoogleBooksProvider()
        payload = {
            "totalItems": 1,
            "items": [
                {
                    "id": "abc123",
                    "volumeInfo": {
                        "title": "Dom Casmurro",
                        "authors": ["Machado de Assis"],
                        "industryIdentifiers": [{"type": "ISBN_13", "identifier": "9788535910681"}],
                        "imageLinks": {"thumbnail": "http://example.com/cover.jpg"},
                        "description": "Um romance.",
                        "pageCount": 256,
                    },
                }
            ],
        }

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response(payload))
            mock_get_client.return_value = mock_client

            results = await provider.search("dom casmurro")

        assert len(results) == 1
        assert results[0].title == "Dom Casmurro"
        assert results[0].author == "Machado de Assis"
        assert results[0].isbn == "9788535910681"
        assert results[0].cover_url == "https://example.com/cover.jpg"
        assert results[0].pages == 256
        assert results[0].external_id == "abc123"
        assert results[0].source == "google_books"

    async def test_author_mode_uses_inauthor(self):
        """Test author lookups are scoped with inauthor:."""
        provider = GoogleBooksProvider()

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response({"items": []}))
            mock_get_client.return_value = mock_client

            await provider.search("Machado de Assis", LookupMode.AUTHOR, 60)

        params = mock_client.get.call_args.kwargs["params"]
        assert params["q"] == "inauthor:Machado de Assis"
        assert params["maxResults"] == 40

    async def test_multiple_authors(self):
        """Test multiple authors are joined."""
        provider = GoogleBooksProvider()
        payload = {"items": [{"volumeInfo": {"title": "Coletânea", "authors": ["A", "B", "C"]}}]}

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response(payload))
            mock_get_client.return_value = mock_client

            results = await provider.search("coletanea")

        assert results[0].author == "A, B, C"

    async def test_search_by_isbn_not_found(self):
        """Test ISBN search when book is not found."""
        provider = GoogleBooksProvider()

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response({"totalItems": 0}))
            mock_get_client.return_value = mock_client

            result = await provider.search_by_isbn("0000000000")

        assert result is None

    async def test_search_by_isbn_found(self):
        """Test ISBN search keeps the requested ISBN."""
        provider = GoogleBooksProvider()
        payload = {"totalItems": 1, "items": [{"volumeInfo": {"title": "X", "authors": ["Y"]}}]}

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response(payload))
            mock_get_client.return_value = mock_client

            result = await provider.search_by_isbn("9781234567890")

        assert result is not None
        assert result.isbn == "9781234567890"


class TestOpenLibraryProvider:
    """Tests for OpenLibraryProvider."""

    async def test_search_success(self):
        """Test Open Library documents are normalized."""
        provider = OpenLibraryProvider()
        payload = {
            "numFound": 1,
            "docs": [
                {
                    "key": "/works/OL123W",
                    "title": "O Cortiço",
                    "author_name": ["Aluísio Azevedo"],
                    "cover_i": 42,
                    "isbn": ["8508040202"],
                    "number_of_pages_median": 203,
                    "first_sentence": ["Primeira frase."],
                }
            ],
        }

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response(payload))
            mock_get_client.return_value = mock_client

            results = await provider.search("cortico", LookupMode.TITLE, 5)

        book = results[0]
        assert book.title == "O Cortiço"
        assert book.author == "Aluísio Azevedo"
        assert book.cover_url == "https://covers.openlibrary.org/b/id/42-M.jpg"
        assert book.isbn == "8508040202"
        assert book.pages == 203
        assert book.description == "Primeira frase."
        assert book.external_id == "/works/OL123W"
        assert mock_client.get.call_args.kwargs["params"] == {"limit": 5, "q": "cortico"}

    async def test_author_mode(self):
        """Test author lookups use the author parameter."""
        provider = OpenLibraryProvider()

        with patch.object(provider, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(return_value=mock_response({"docs": [{"title": "T"}]}))
            mock_get_client.return_value = mock_client

            results = await provider.search("Tolkien", LookupMode.AUTHOR, 10)

        assert mock_client.get.call_args.kwargs["params"] == {"limit": 10, "author": "Tolkien"}
        assert results[0].author == "Unknown Author"
        assert results[0].cover_url is None


class TestTTLCache:
    """Tests for TTLCache."""

    def test_expires_after_ttl(self):
        """Test entries disappear once the TTL elapses."""
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        key = cache.make_key("Dom", LookupMode.TITLE, 5)
        cache.set(key, [BookInfo(title="Dom", author="A")])

        clock.now = 59
        assert cache.get(key) is not None
        clock.now = 60
        assert cache.get(key) is None
        assert len(cache) == 0

    def test_key_includes_mode_and_limit(self):
        """Test the key scheme separates modes and result limits."""
        assert TTLCache.make_key("Dom", LookupMode.TITLE, 5) != TTLCache.make_key(
            "Dom", LookupMode.AUTHOR, 5
        )
        assert TTLCache.make_key("Dom", LookupMode.TITLE, 5) != TTLCache.make_key(
            "Dom", LookupMode.TITLE, 10
        )
        assert TTLCache.make_key(" Ficção ", LookupMode.TITLE, 5) == TTLCache.make_key(
            "FICCAO", LookupMode.TITLE, 5
        )


class TestBookLookupService:
    """Tests for BookLookupService."""

    async def test_first_provider_wins(self):
        """Test providers after a non-empty result are not called."""
        google = fake_provider("google_books", [BookInfo(title="A", author="B")])
        open_library = fake_provider("open_library", [BookInfo(title="C", author="D")])
        service = BookLookupService([google, open_library], TTLCache(60))

        results = await service.search_books("query")

        assert [book.title for book in results] == ["A"]
        open_library.search.assert_not_called()

    async def test_falls_back_on_empty(self):
        """Test the next provider is tried when one returns nothing."""
        google = fake_provider("google_books", [])
        open_library = fake_provider("open_library", [BookInfo(title="C", author="D")])
        service = BookLookupService([google, open_library], TTLCache(60))

        results = await service.search_books("query", LookupMode.AUTHOR, 3)

        assert [book.title for book in results] == ["C"]
        open_library.search.assert_awaited_once_with("query", LookupMode.AUTHOR, 3)

    async def test_falls_back_on_error(self):
        """Test a failing provider is skipped."""
        google = fake_provider("google_books", error=httpx.ConnectTimeout("timeout"))
        open_library = fake_provider("open_library", [BookInfo(title="C", author="D")])
        service = BookLookupService([google, open_library], TTLCache(60))

        results = await service.search_books("query")

        assert [book.title for book in results] == ["C"]

    async def test_all_providers_fail(self):
        """Test an error is raised when nobody answered."""
        google = fake_provider("google_books", error=httpx.ConnectTimeout("timeout"))
        open_library = fake_provider("open_library", error=httpx.ReadTimeout("timeout"))
        service = BookLookupService([google, open_library], TTLCache(60))

        with pytest.raises(BookLookupError):
            await service.search_books("query")

    async def test_empty_everywhere(self):
        """Test no results is not an error."""
        service = BookLookupService([fake_provider("a"), fake_provider("b")], TTLCache(60))
        assert await service.search_books("query") == []

    async def test_results_are_cached(self):
        """Test a repeated lookup is served from the cache."""
        google = fake_provider("google_books", [BookInfo(title="A", author="B")])
        service = BookLookupService([google], TTLCache(60))

        await service.search_books("Query", max_results=5)
        results = await service.search_books("query ", max_results=5)

        assert [book.title for book in results] == ["A"]
        assert google.search.await_count == 1

    async def test_empty_results_are_not_cached(self):
        """Test empty answers are retried next time."""
        google = fake_provider("google_books", [])
        service = BookLookupService([google], TTLCache(60))

        await service.search_books("query")
        await service.search_books("query")

        assert google.search.await_count == 2

    async def test_close_closes_providers(self):
        """Test close is forwarded to every provider."""
        providers = [fake_provider("a"), fake_provider("b")]
        service = BookLookupService(providers, TTLCache(60))

        await service.close()

        for provider in providers:
            provider.close.assert_awaited_once()

    async def test_search_by_isbn_skips_providers_without_support(self):
        """Test ISBN lookup uses the first provider that supports it."""
        no_isbn = MagicMock(spec=["name", "search", "close"])
        no_isbn.name = "no_isbn"
        google = fake_provider("google_books")
        google.search_by_isbn = AsyncMock(return_value=BookInfo(title="X", author="Y"))
        service = BookLookupService([no_isbn, google], TTLCache(60))

        result = await service.search_by_isbn("123")

        assert result.title == "X"
        google.search_by_isbn.assert_awaited_once_with("123")
