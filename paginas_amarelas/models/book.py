"""Book model."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paginas_amarelas.core.database import Base

if TYPE_CHECKING:
    from paginas_amarelas.models.user import User


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _same_as_created_at(context) -> datetime:
    return context.get_current_parameters()["created_at"]


class ReadingStatus(str, Enum):
    """Reading status of a book in a library."""

    TO_READ = "to-read"
    READING = "reading"
    READ = "read"


class CoverSource(str, Enum):
    """Where a book cover came from."""

    API = "api"  # External catalogue
    UPLOAD = "upload"  # Uploaded by the user
    MANUAL = "manual"  # URL typed in by the user


class Book(Base):
    """Model representing a book in a user's library."""

    __tablename__ = "books"
    # Ids are never reused, so a feed cursor for a deleted book cannot alias a new one
    __table_args__ = (
        UniqueConstraint("user_id", "external_id", name="uq_books_user_external"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(500), nullable=False)
    genre: Mapped[str | None] = mapped_column(String(200), nullable=True)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[ReadingStatus] = mapped_column(
        SQLEnum(ReadingStatus),
        default=ReadingStatus.TO_READ,
        nullable=False,
    )
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    cover_source: Mapped[CoverSource | None] = mapped_column(SQLEnum(CoverSource), nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Timestamps are set client-side so keyset comparisons see one stored format
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_same_as_created_at,
        onupdate=_utcnow,
        nullable=False,
        index=True,
    )

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="books", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', author='{self.author}')>"


class FeedTombstone(Base):
    """Sort key of a deleted book, kept so feed cursors pointing at it still resolve."""

    __tablename__ = "feed_tombstones"

    book_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<FeedTombstone(book_id={self.book_id}, updated_at={self.updated_at})>"
