"""Profile API routes, private and public."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paginas_amarelas.api.schemas import (
    ProfileResponse,
    ProfileUpdate,
    PublicBook,
    PublicProfileResponse,
    ReadingStats,
    UserResponse,
)
from paginas_amarelas.core.database import get_db
from paginas_amarelas.models.book import Book, ReadingStatus
from paginas_amarelas.models.user import User
from paginas_amarelas.services.auth import get_current_user
from paginas_amarelas.services.search import search_books

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


async def reading_stats(db: AsyncSession, user_id: int) -> ReadingStats:
    """Count a user's books per reading status."""
    query = (
        select(Book.status, func.count(Book.id))
        .where(Book.user_id == user_id)
        .group_by(Book.status)
    )
    result = await db.execute(query)
    counts = {book_status: count for book_status, count in result.all()}

    to_read = counts.get(ReadingStatus.TO_READ, 0)
    reading = counts.get(ReadingStatus.READING, 0)
    read = counts.get(ReadingStatus.READ, 0)
    return ReadingStats(
        to_read=to_read,
        reading=reading,
        read=read,
        total=to_read + reading + read,
    )


async def _profile_response(db: AsyncSession, user: User) -> ProfileResponse:
    return ProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        stats=await reading_stats(db, user.id),
    )


@router.get("/api/profile", response_model=ProfileResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Get the current user's profile and reading stats."""
    return await _profile_response(db, user)


@router.patch("/api/profile", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Update the current user's name or avatar."""
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(user, field, value)

    await db.flush()
    await db.refresh(user)

    logger.info(f"Updated profile of user {user.id}: {sorted(update_data)}")
    return await _profile_response(db, user)


@router.get("/api/users/{username}", response_model=PublicProfileResponse)
async def get_public_profile(
    username: str,
    status_filter: ReadingStatus | None = Query(None, alias="status"),
    q: str = "",
    db: AsyncSession = Depends(get_db),
) -> PublicProfileResponse:
    """Get a user's public profile and library."""
    result = await db.execute(select(User).where(func.lower(User.username) == username.lower()))
    user = result.scalars().first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    query = select(Book).where(Book.user_id == user.id)
    if status_filter is not None:
        query = query.where(Book.status == status_filter)
    query = query.order_by(Book.updated_at.desc(), Book.id.desc())

    books_result = await db.execute(query)
    books = search_books(list(books_result.scalars().all()), q)

    return PublicProfileResponse(
        username=user.username,
        name=user.name,
        image=user.image,
        stats=await reading_stats(db, user.id),
        books=[PublicBook.model_validate(book) for book in books],
    )
