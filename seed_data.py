"""
Seed the library catalog with sample authors and books.
Authors that already exist are left alone, so the script can be re-run.
"""

import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import List
from uuid import UUID

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from library.database import MongoDBManager
from library.exceptions import PersistenceError
from library.models import Author, Book
from library.repository import LibraryRepository, MongoLibraryRepository
from utilities.config import config
from utilities.logger import setup_logging, get_logger

SAMPLE_CATALOG = [
    (
        Author(id=UUID("25320c5e-f58a-4b1f-b63a-8ee07a840bdf"), first_name="Stephen", last_name="King",
               date_of_birth=date(1947, 9, 21), genre="Horror"),
        [
            Book(id=UUID("c7ba6add-09c4-45f8-8dd0-eaca221e5d93"), title="The Shining",
                 description="The Shining is a horror novel by American author Stephen King."),
            Book(id=UUID("a3749477-f823-4124-aa4a-fc9ad5e79cd6"), title="Misery",
                 description="Misery is a thriller novel by American writer Stephen King."),
            Book(id=UUID("70a1f9b9-0a37-4c1a-99b1-c7709fc64167"), title="It",
                 description="It is a horror novel by American author Stephen King."),
        ],
    ),
    (
        Author(id=UUID("76053df4-6687-4353-8937-b45556748abe"), first_name="George", last_name="RR Martin",
               date_of_birth=date(1948, 9, 20), genre="Fantasy"),
        [
            Book(id=UUID("447eb762-95e9-4c31-95e1-b20053fbe215"), title="A Game of Thrones",
                 description="A Game of Thrones is the first novel in A Song of Ice and Fire."),
            Book(id=UUID("bc4c35c3-3857-4250-9449-155fcf5109ec"), title="The Winds of Winter",
                 description="Forthcoming 6th novel in A Song of Ice and Fire."),
        ],
    ),
    (
        Author(id=UUID("412c3012-d891-4f5e-9613-ff7aa63e6bb3"), first_name="Neil", last_name="Gaiman",
               date_of_birth=date(1960, 11, 10), genre="Fantasy"),
        [
            Book(id=UUID("9edf91ee-ab77-4521-a402-5f188bc0c577"), title="American Gods",
                 description="American Gods is a Hugo and Nebula Award-winning novel by English author Neil Gaiman."),
        ],
    ),
]


async def missing_authors(repository: LibraryRepository) -> List[Author]:
    """Sample authors not yet in the catalog."""
    existing = {author.id for author in await repository.get_authors()}
    return [author for author, _ in SAMPLE_CATALOG if author.id not in existing]


async def seed(repository: LibraryRepository) -> int:
    """
    Stage every sample author missing from the catalog, with its books, and save.

    Returns:
        Number of authors added
    """
    missing = {author.id for author in await missing_authors(repository)}
    added = 0
    for author, books in SAMPLE_CATALOG:
        if author.id not in missing:
            continue
        repository.add_author(author)
        for book in books:
            repository.add_book_for_author(author.id, book.model_copy())
        added += 1

    result = await repository.save()
    if not result.success:
        raise PersistenceError("seed the catalog", result.reason)
    return added


async def main(dry_run: bool = False):
    """Seed the configured database."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info("Seeding library catalog", database=config.mongodb_database, dry_run=dry_run)

    db_manager = MongoDBManager(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        authors_collection=config.authors_collection,
        books_collection=config.books_collection,
        server_selection_timeout_ms=config.server_selection_timeout_ms
    )

    try:
        await db_manager.connect()
        repository = MongoLibraryRepository(db_manager.authors, db_manager.books)

        if dry_run:
            missing = await missing_authors(repository)
            logger.info("Dry run complete", authors_to_add=len(missing))
            return

        added = await seed(repository)
        logger.info("Seeding complete", authors_added=added)

    except Exception as e:
        logger.error("Fatal error occurred", error=str(e))
        sys.exit(1)

    finally:
        await db_manager.disconnect()


if __name__ == "__main__":
    dry_run = False
    if len(sys.argv) > 1:
        if sys.argv[1] == "--dry-run":
            dry_run = True
        else:
            print(f"Unknown argument: {sys.argv[1]}")
            print("Usage: python seed_data.py [--dry-run]")
            sys.exit(1)

    asyncio.run(main(dry_run=dry_run))
