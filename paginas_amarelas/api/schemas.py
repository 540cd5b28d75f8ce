"""Pydantic schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from paginas_amarelas.models.book import CoverSource, ReadingStatus


# Auth schemas
class RegisterRequest(BaseModel):
    """Schema for registering a new user."""

    name: str = Field(..., min_length=1, max_length=200)
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=200)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    """Schema for logging in."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Schema for the authenticated user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    email: str | None = None
    image: str | None = None
    created_at: datetime


class RegisterResponse(BaseModel):
    """Schema for registration response."""

    message: str
    user: UserResponse


class TokenResponse(BaseModel):
    """Schema for login response."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    """Schema for a plain message response."""

    message: str


# Book schemas
class BookCreate(BaseModel):
    """Schema for creating a new book."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    genre: str | None = Field(None, max_length=200)
    pages: int | None = Field(None, ge=0)
    current_page: int | None = Field(None, ge=0)
    status: ReadingStatus = ReadingStatus.TO_READ
    summary: str | None = None
    cover_url: str | None = Field(None, max_length=1000)
    cover_source: CoverSource | None = None
    external_id: str | None = Field(None, max_length=200)


class BookUpdate(BookCreate):
    """Schema for replacing a book's fields."""


class BookResponse(BaseModel):
    """Schema for book response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    author: str
    genre: str | None
    pages: int | None
    current_page: int | None
    status: ReadingStatus
    summary: str | None
    cover_url: str | None
    cover_source: CoverSource | None
    external_id: str | None
    created_at: datetime
    updated_at: datetime


class BookListResponse(BaseModel):
    """Schema for list of books response."""

    books: list[BookResponse]
    total: int


# Feed schemas
class BookOwner(BaseModel):
    """Public view of a book's owner."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    name: str
    image: str | None


class PublicBook(BaseModel):
    """Public view of a book."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    genre: str | None
    pages: int | None
    current_page: int | None
    status: ReadingStatus
    summary: str | None
    cover_url: str | None
    created_at: datetime
    updated_at: datetime


class FeedItem(PublicBook):
    """Schema for a feed entry."""

    updated_ago: str
    user: BookOwner


class FeedResponse(BaseModel):
    """Schema for a feed page."""

    items: list[FeedItem]
    has_more: bool
    next_cursor: int | None = None


# Profile schemas
class ReadingStats(BaseModel):
    """Book counts per reading status."""

    to_read: int = 0
    reading: int = 0
    read: int = 0
    total: int = 0


class ProfileResponse(UserResponse):
    """Schema for the current user's profile."""

    stats: ReadingStats


class ProfileUpdate(BaseModel):
    """Schema for updating the current user's profile."""

    name: str | None = Field(None, min_length=1, max_length=200)
    image: str | None = Field(None, min_length=1, max_length=1000)


class PublicProfileResponse(BaseModel):
    """Schema for a public profile page."""

    username: str
    name: str
    image: str | None
    stats: ReadingStats
    books: list[PublicBook]


# Book lookup schemas
class BookSearchResult(BaseModel):
    """Schema for a catalogue search result."""

    title: str
    author: str
    isbn: str | None
    cover_url: str | None
    description: str | None
    pages: int | None = None
    external_id: str | None = None
    source: str | None = None


class BookSearchResponse(BaseModel):
    """Schema for catalogue search response."""

    results: list[BookSearchResult]


# Upload schemas
class UploadResponse(BaseModel):
    """Schema for upload response."""

    url: str
    filename: str
