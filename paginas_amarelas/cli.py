#!/usr/bin/env python3
"""Maintenance commands: seed sample data and clean the database."""

import argparse
import asyncio
import random
import sys
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paginas_amarelas.core.database import get_async_session, init_db
from paginas_amarelas.models.book import Book, FeedTombstone, ReadingStatus
from paginas_amarelas.models.user import User
from paginas_amarelas.services.auth import hash_password

SAMPLE_USERNAME = "leitor"
SAMPLE_PASSWORD = "senha123"

# Skip seeding books once a library has this many
SEED_THRESHOLD = 15

SAMPLE_BOOKS: dict[ReadingStatus, list[dict]] = {
    ReadingStatus.TO_READ: [
        {"title": "O Código Da Vinci", "author": "Dan Brown", "genre": "Mistério", "pages": 489},
        {"title": "Orgulho e Preconceito", "author": "Jane Austen", "genre": "Romance", "pages": 279},
        {
            "title": "O Senhor dos Anéis: A Sociedade do Anel",
            "author": "J.R.R. Tolkien",
            "genre": "Fantasia",
            "pages": 423,
        },
    ],
    ReadingStatus.READING: [
        {"title": "1984", "author": "George Orwell", "genre": "Distopia", "pages": 328},
        {"title": "O Alquimista", "author": "Paulo Coelho", "genre": "Ficção", "pages": 224},
        {
            "title": "Memórias Póstumas de Brás Cubas",
            "author": "Machado de Assis",
            "genre": "Romance Clássico",
            "pages": 368,
        },
    ],
    ReadingStatus.READ: [
        {
            "title": "Dom Casmurro",
            "author": "Machado de Assis",
            "genre": "Romance Clássico",
            "pages": 256,
        },
        {
            "title": "Grande Sertão: Veredas",
            "author": "Guimarães Rosa",
            "genre": "Romance Clássico",
            "pages": 494,
        },
        {"title": "O Cortiço", "author": "Aluísio Azevedo", "genre": "Romance", "pages": 203},
    ],
}


@dataclass
class SeedResult:
    """Outcome of a seed run."""

    username: str
    user_created: bool
    books_created: int
    total_books: int


async def seed_library(db: AsyncSession, rng: random.Random | None = None) -> SeedResult:
    """
    Create a sample user (unless one exists) and fill their library.

    The most recently created user is reused when present. Books already in
    the library (same title and author) are not duplicated.

    Args:
        db: Database session
        rng: Random source for the current page of books being read

    Returns:
        SeedResult describing what was created
    """
    rng = rng or random.Random()

    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    user = result.scalars().first()
    user_created = False

    if user is None:
        user = User(
            name="Leitor de Exemplo",
            username=SAMPLE_USERNAME,
            email="leitor@example.com",
            password_hash=hash_password(SAMPLE_PASSWORD),
        )
        db.add(user)
        await db.flush()
        user_created = True

    count_query = select(func.count(Book.id)).where(Book.user_id == user.id)
    existing_count = (await db.execute(count_query)).scalar() or 0

    created = 0
    if existing_count < SEED_THRESHOLD:
        for status, books in SAMPLE_BOOKS.items():
            for data in books:
                query = select(Book.id).where(
                    Book.user_id == user.id,
                    Book.title == data["title"],
                    Book.author == data["author"],
                )
                if (await db.execute(query)).scalar_one_or_none() is not None:
                    continue

                current_page = None
                if status == ReadingStatus.READING:
                    current_page = rng.randint(1, int(data["pages"] * 0.8))

                db.add(Book(user_id=user.id, status=status, current_page=current_page, **data))
                created += 1

        await db.flush()

    total = (await db.execute(count_query)).scalar() or 0
    return SeedResult(
        username=user.username,
        user_created=user_created,
        books_created=created,
        total_books=total,
    )


async def clean_database(db: AsyncSession) -> tuple[int, int]:
    """Delete every book and user. Returns (books_deleted, users_deleted)."""
    books = await db.execute(delete(Book))
    await db.execute(delete(FeedTombstone))
    users = await db.execute(delete(User))
    return books.rowcount or 0, users.rowcount or 0


async def _run_seed() -> int:
    await init_db()
    async with get_async_session() as db:
        result = await seed_library(db)

    if result.user_created:
        print(f"Created user: {result.username} (password: {SAMPLE_PASSWORD})")
    else:
        print(f"Using user: {result.username}")
    print(f"Created {result.books_created} sample books")
    print(f"Total books for '{result.username}': {result.total_books}")
    return 0


async def _run_clean() -> int:
    await init_db()
    async with get_async_session() as db:
        books, users = await clean_database(db)

    print(f"Deleted {books} books")
    print(f"Deleted {users} users")
    return 0


def main() -> int:
    """Run the maintenance CLI."""
    parser = argparse.ArgumentParser(
        description="Páginas Amarelas maintenance commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a sample reader with a few books
  python -m paginas_amarelas.cli seed

  # Remove every user and book
  python -m paginas_amarelas.cli clean --yes
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("seed", help="Create a sample user and library")
    clean_parser = subparsers.add_parser("clean", help="Delete all users and books")
    clean_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deleting all data",
    )

    args = parser.parse_args()

    if args.command == "seed":
        return asyncio.run(_run_seed())

    if not args.yes:
        print("Refusing to delete all data without --yes", file=sys.stderr)
        return 1
    return asyncio.run(_run_clean())


if __name__ == "__main__":
    sys.exit(main())
