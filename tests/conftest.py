"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from paginas_amarelas.core.database import Base, get_db
from paginas_amarelas.main import app
from paginas_amarelas.models.book import Book, ReadingStatus
from paginas_amarelas.models.user import User
from paginas_amarelas.services.auth import create_access_token, hash_password
from paginas_amarelas.services.book_lookup import BookLookupService, get_book_lookup_service
from paginas_amarelas.services.uploads import UploadService, get_upload_service

# Use an in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def override_get_db(test_session: AsyncSession):
    """Override the get_db dependency for testing."""

    async def _override_get_db():
        yield test_session

    return _override_get_db


@pytest.fixture
def mock_book_lookup_service():
    """Create a mock book lookup service."""
    service = MagicMock(spec=BookLookupService)
    service.search_books = AsyncMock(return_value=[])
    service.search_by_isbn = AsyncMock(return_value=None)
    return service


@pytest.fixture
def upload_service(tmp_path):
    """Upload service writing to a temporary directory."""
    return UploadService(upload_dir=tmp_path / "uploads", max_bytes=1024)


@pytest.fixture
async def client(
    override_get_db,
    mock_book_lookup_service,
    upload_service,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an unauthenticated async test client."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_book_lookup_service] = lambda: mock_book_lookup_service
    app.dependency_overrides[get_upload_service] = lambda: upload_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def sample_user(test_session: AsyncSession) -> User:
    """Create a sample user for testing."""
    user = User(
        name="Ana Leitora",
        username="ana",
        email="ana@example.com",
        password_hash=hash_password("segredo123"),
    )
    test_session.add(user)
    await test_session.flush()
    await test_session.refresh(user)
    return user


@pytest.fixture
async def other_user(test_session: AsyncSession) -> User:
    """Create a second user for ownership tests."""
    user = User(
        name="Bruno",
        username="bruno",
        password_hash=hash_password("outrasenha"),
    )
    test_session.add(user)
    await test_session.flush()
    await test_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    """Bearer headers for the sample user."""
    token = create_access_token(sample_user.id, sample_user.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_client(client: AsyncClient, auth_headers) -> AsyncClient:
    """Client authenticated as the sample user."""
    client.headers.update(auth_headers)
    return client


@pytest.fixture
async def sample_book(test_session: AsyncSession, sample_user: User) -> Book:
    """Create a sample book for testing."""
    book = Book(
        user=sample_user,
        title="Dom Casmurro",
        author="Machado de Assis",
        genre="Romance Clássico",
        pages=256,
        status=ReadingStatus.READ,
        cover_url="https://example.com/cover.jpg",
    )
    test_session.add(book)
    await test_session.flush()
    await test_session.refresh(book)
    return book


@pytest.fixture
def make_books(test_session: AsyncSession):
    """Factory creating books with controlled update times.

    Each entry of ``offsets`` is a number of minutes after BASE_TIME used as
    both created_at and updated_at.
    """

    async def _make_books(user: User, offsets: list[int], prefix: str = "Book") -> list[Book]:
        books = []
        for index, offset in enumerate(offsets):
            moment = BASE_TIME + timedelta(minutes=offset)
            book = Book(
                user=user,
                title=f"{prefix} {index}",
                author="Autor",
                created_at=moment,
                updated_at=moment,
            )
            test_session.add(book)
            books.append(book)
        await test_session.flush()
        return books

    return _make_books
