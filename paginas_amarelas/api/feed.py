"""Feed API routes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from paginas_amarelas.api.schemas import BookOwner, FeedItem, FeedResponse, PublicBook
from paginas_amarelas.models.book import Book, ReadingStatus
from paginas_amarelas.services.feed import FeedPaginator, InvalidCursorError, get_feed_paginator
from paginas_amarelas.services.search import search_books
from paginas_amarelas.services.text import format_time_ago

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feed", tags=["feed"])


def _to_feed_item(book: Book, now: datetime) -> FeedItem:
    return FeedItem(
        **PublicBook.model_validate(book).model_dump(),
        updated_ago=format_time_ago(book.updated_at, now),
        user=BookOwner.model_validate(book.user),
    )


@router.get("", response_model=FeedResponse)
async def get_feed(
    cursor: int | None = None,
    status_filter: ReadingStatus | None = Query(None, alias="status"),
    q: str = "",
    paginator: FeedPaginator = Depends(get_feed_paginator),
) -> FeedResponse:
    """
    Get a page of recently added or updated books across all users.

    ``status`` and ``q`` filter the fetched page only; ``has_more`` and
    ``next_cursor`` always describe the unfiltered page.
    """
    try:
        page = await paginator.fetch_page(cursor)
    except InvalidCursorError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid cursor",
        ) from None
    except SQLAlchemyError:
        logger.exception("Failed to load feed page")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load feed",
        ) from None

    books = page.items
    if status_filter is not None:
        books = [book for book in books if book.status == status_filter]
    books = search_books(books, q)

    now = datetime.now(tz=timezone.utc)
    return FeedResponse(
        items=[_to_feed_item(book, now) for book in books],
        has_more=page.has_more,
        next_cursor=page.next_cursor,
    )
