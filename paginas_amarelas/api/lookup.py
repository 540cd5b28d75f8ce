"""External catalogue lookup routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from paginas_amarelas.api.schemas import BookSearchResponse, BookSearchResult
from paginas_amarelas.services.book_lookup import (
    BookInfo,
    BookLookupError,
    BookLookupService,
    LookupMode,
    get_book_lookup_service,
)

router = APIRouter(prefix="/api/lookup", tags=["lookup"])


def _to_result(book: BookInfo) -> BookSearchResult:
    return BookSearchResult(
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        cover_url=book.cover_url,
        description=book.description,
        pages=book.pages,
        external_id=book.external_id,
        source=book.source,
    )


def _upstream_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Book catalogue is unavailable",
    )


@router.get("", response_model=BookSearchResponse)
async def search_catalogue(
    q: str,
    mode: LookupMode = LookupMode.TITLE,
    max_results: int = Query(5, ge=1, le=40),
    book_lookup: BookLookupService = Depends(get_book_lookup_service),
) -> BookSearchResponse:
    """Search external catalogues by title or author."""
    if len(q.strip()) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query must be at least 2 characters",
        )

    try:
        results = await book_lookup.search_books(q, mode=mode, max_results=max_results)
    except BookLookupError:
        raise _upstream_unavailable() from None

    return BookSearchResponse(results=[_to_result(book) for book in results])


@router.get("/isbn/{isbn}", response_model=BookSearchResult)
async def lookup_isbn(
    isbn: str,
    book_lookup: BookLookupService = Depends(get_book_lookup_service),
) -> BookSearchResult:
    """Look a book up by ISBN."""
    try:
        book = await book_lookup.search_by_isbn(isbn)
    except BookLookupError:
        raise _upstream_unavailable() from None

    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )

    return _to_result(book)
