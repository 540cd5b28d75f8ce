"""Keyset pagination of the global feed."""

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends
from opentelemetry import trace
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from paginas_amarelas.core.config import get_settings
from paginas_amarelas.core.database import get_db
from paginas_amarelas.models.book import Book, FeedTombstone

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class InvalidCursorError(Exception):
    """Raised when a cursor does not reference any known feed position."""

    def __init__(self, cursor: int) -> None:
        super().__init__(f"Unknown feed cursor: {cursor}")
        self.cursor = cursor


@dataclass
class FeedPage:
    """One page of feed entries."""

    items: list[Book]
    has_more: bool
    next_cursor: int | None = None


class FeedPaginator:
    """Fetches feed pages ordered by (updated_at desc, id desc)."""

    def __init__(self, db: AsyncSession, page_size: int = 10) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.db = db
        self.page_size = page_size

    async def _resolve_cursor(self, cursor: int) -> tuple[datetime, int]:
        """Return the (updated_at, id) sort key a cursor points at."""
        result = await self.db.execute(select(Book.updated_at).where(Book.id == cursor))
        updated_at = result.scalar_one_or_none()
        if updated_at is not None:
            return updated_at, cursor

        # The book may have been deleted since the page was served
        result = await self.db.execute(
            select(FeedTombstone.updated_at).where(FeedTombstone.book_id == cursor)
        )
        updated_at = result.scalar_one_or_none()
        if updated_at is not None:
            logger.debug(f"Resolved feed cursor {cursor} from tombstone")
            return updated_at, cursor

        raise InvalidCursorError(cursor)

    async def fetch_page(self, cursor: int | None = None) -> FeedPage:
        """
        Fetch the page that follows ``cursor``.

        Args:
            cursor: Id of the last item of the previous page, None for the first page

        Returns:
            FeedPage with at most ``page_size`` items

        Raises:
            InvalidCursorError: If the cursor was never issued
        """
        with tracer.start_as_current_span("feed.fetch_page") as span:
            span.set_attribute("feed.page_size", self.page_size)
            span.set_attribute("feed.has_cursor", cursor is not None)

            query = (
                select(Book)
                .order_by(Book.updated_at.desc(), Book.id.desc())
                .limit(self.page_size + 1)
            )

            if cursor is not None:
                updated_at, anchor_id = await self._resolve_cursor(cursor)
                query = query.where(
                    or_(
                        Book.updated_at < updated_at,
                        and_(Book.updated_at == updated_at, Book.id < anchor_id),
                    )
                )

            result = await self.db.execute(query)
            rows = list(result.scalars().all())

            has_more = len(rows) > self.page_size
            items = rows[: self.page_size]
            next_cursor = items[-1].id if has_more else None

            span.set_attribute("feed.item_count", len(items))
            span.set_attribute("feed.has_more", has_more)

            return FeedPage(items=items, has_more=has_more, next_cursor=next_cursor)


async def record_tombstone(db: AsyncSession, book: Book) -> None:
    """Keep the sort key of a book that is about to be deleted."""
    await db.merge(FeedTombstone(book_id=book.id, updated_at=book.updated_at))


async def get_feed_paginator(db: AsyncSession = Depends(get_db)) -> FeedPaginator:
    """Dependency that provides a feed paginator bound to the request session."""
    return FeedPaginator(db, page_size=get_settings().feed_page_size)
