"""Database models."""

from paginas_amarelas.models.book import Book, CoverSource, FeedTombstone, ReadingStatus
from paginas_amarelas.models.user import User

__all__ = ["Book", "CoverSource", "FeedTombstone", "ReadingStatus", "User"]
