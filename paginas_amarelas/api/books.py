"""Book API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paginas_amarelas.api.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
)
from paginas_amarelas.core.database import get_db
from paginas_amarelas.models.book import Book, ReadingStatus
from paginas_amarelas.models.user import User
from paginas_amarelas.services.auth import get_current_user
from paginas_amarelas.services.feed import record_tombstone
from paginas_amarelas.services.search import search_books

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["books"])


async def _get_owned_book(db: AsyncSession, book_id: int, user: User, action: str) -> Book:
    """Load a book and check the user owns it."""
    book = await db.get(Book, book_id)

    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )

    if book.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You are not allowed to {action} this book",
        )

    return book


async def _ensure_external_id_free(
    db: AsyncSession, user: User, external_id: str | None, book_id: int | None = None
) -> None:
    """Reject a catalogue id already used by another book in the user's library."""
    if not external_id:
        return

    query = select(Book.id).where(
        Book.user_id == user.id,
        Book.external_id == external_id,
    )
    if book_id is not None:
        query = query.where(Book.id != book_id)

    result = await db.execute(query)
    if result.scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This book is already in your library",
        )


@router.get("", response_model=BookListResponse)
async def list_books(
    status_filter: ReadingStatus | None = Query(None, alias="status"),
    q: str = "",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BookListResponse:
    """List the current user's books, newest first, optionally ranked by a search query."""
    query = select(Book).where(Book.user_id == user.id)
    if status_filter is not None:
        query = query.where(Book.status == status_filter)
    query = query.order_by(Book.created_at.desc(), Book.id.desc())

    result = await db.execute(query)
    books = search_books(list(result.scalars().all()), q)

    return BookListResponse(
        books=[BookResponse.model_validate(book) for book in books],
        total=len(books),
    )


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    book_data: BookCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BookResponse:
    """Add a book to the current user's library."""
    await _ensure_external_id_free(db, user, book_data.external_id)

    book = Book(user_id=user.id, **book_data.model_dump())
    db.add(book)
    await db.flush()
    await db.refresh(book)

    logger.info(f"User {user.id} added book {book.id}")
    return BookResponse.model_validate(book)


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BookResponse:
    """Get one of the current user's books."""
    query = select(Book).where(Book.id == book_id, Book.user_id == user.id)
    result = await db.execute(query)
    book = result.scalar_one_or_none()

    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )

    return BookResponse.model_validate(book)


@router.put("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: int,
    book_data: BookUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BookResponse:
    """Replace a book's fields."""
    book = await _get_owned_book(db, book_id, user, "edit")
    await _ensure_external_id_free(db, user, book_data.external_id, book_id)

    for field, value in book_data.model_dump().items():
        setattr(book, field, value)

    await db.flush()
    await db.refresh(book)

    return BookResponse.model_validate(book)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a book from the current user's library."""
    book = await _get_owned_book(db, book_id, user, "delete")

    await record_tombstone(db, book)
    await db.delete(book)
    logger.info(f"User {user.id} deleted book {book_id}")
