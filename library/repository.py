"""
Repository layer for authors and books.

Mutations are staged in memory and only written when ``save`` is called,
so a request either commits all of its changes or reports why it could not.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DeleteOne, InsertOne, ReplaceOne
from pymongo.errors import PyMongoError

from .models import Author, Book, SaveResult

logger = structlog.get_logger(__name__)


class LibraryRepository(ABC):
    """Persistence contract consumed by the books resource."""

    @abstractmethod
    async def author_exists(self, author_id: UUID) -> bool:
        ...

    @abstractmethod
    async def get_authors(self) -> List[Author]:
        ...

    @abstractmethod
    def add_author(self, author: Author) -> None:
        ...

    @abstractmethod
    async def get_books_for_author(self, author_id: UUID) -> List[Book]:
        ...

    @abstractmethod
    async def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[Book]:
        ...

    @abstractmethod
    def add_book_for_author(self, author_id: UUID, book: Book) -> None:
        ...

    @abstractmethod
    def update_book_for_author(self, book: Book) -> None:
        ...

    @abstractmethod
    def delete_book(self, book: Book) -> None:
        ...

    @abstractmethod
    async def save(self) -> SaveResult:
        ...


def book_to_document(book: Book) -> Dict[str, Any]:
    """Convert a book entity to its MongoDB document."""
    return {
        "_id": str(book.id),
        "title": book.title,
        "description": book.description,
        "author_id": str(book.author_id),
    }


def document_to_book(document: Dict[str, Any]) -> Book:
    """Convert a MongoDB document back to a book entity."""
    return Book(
        id=UUID(document["_id"]),
        title=document["title"],
        description=document.get("description"),
        author_id=UUID(document["author_id"]),
    )


def author_to_document(author: Author) -> Dict[str, Any]:
    """Convert an author entity to its MongoDB document."""
    # BSON has no date type, store ISO strings
    return {
        "_id": str(author.id),
        "first_name": author.first_name,
        "last_name": author.last_name,
        "date_of_birth": author.date_of_birth.isoformat(),
        "genre": author.genre,
    }


def document_to_author(document: Dict[str, Any]) -> Author:
    """Convert a MongoDB document back to an author entity."""
    return Author(
        id=UUID(document["_id"]),
        first_name=document["first_name"],
        last_name=document["last_name"],
        date_of_birth=date.fromisoformat(document["date_of_birth"]),
        genre=document["genre"],
    )


class MongoLibraryRepository(LibraryRepository):
    """
    MongoDB implementation of the library repository.

    One instance is meant to live for a single request: it holds the write
    operations staged since the last ``save``.
    """

    def __init__(self, authors: AsyncIOMotorCollection, books: AsyncIOMotorCollection):
        """
        Initialize the repository.

        Args:
            authors: Collection holding author documents
            books: Collection holding book documents
        """
        self.authors = authors
        self.books = books
        self._pending_authors: List[Any] = []
        self._pending_books: List[Any] = []

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending_authors or self._pending_books)

    async def author_exists(self, author_id: UUID) -> bool:
        try:
            count = await self.authors.count_documents({"_id": str(author_id)}, limit=1)
            return count > 0
        except PyMongoError as e:
            logger.error("Failed to check author existence", author_id=str(author_id), error=str(e))
            raise

    async def get_authors(self) -> List[Author]:
        try:
            cursor = self.authors.find({}).sort([("first_name", 1), ("last_name", 1)])
            authors = []
            async for document in cursor:
                authors.append(document_to_author(document))
            return authors
        except PyMongoError as e:
            logger.error("Failed to get authors", error=str(e))
            raise

    def add_author(self, author: Author) -> None:
        self._pending_authors.append(InsertOne(author_to_document(author)))
        logger.debug("Staged author insert", author_id=str(author.id))

    async def get_books_for_author(self, author_id: UUID) -> List[Book]:
        """
        Get the books of an author ordered by title.

        Args:
            author_id: Owning author

        Returns:
            List of Book entities
        """
        try:
            cursor = self.books.find({"author_id": str(author_id)}).sort("title", 1)
            books = []
            async for document in cursor:
                books.append(document_to_book(document))

            logger.debug("Retrieved books for author", author_id=str(author_id), count=len(books))
            return books

        except PyMongoError as e:
            logger.error("Failed to get books for author", author_id=str(author_id), error=str(e))
            raise

    async def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[Book]:
        """
        Get a single book, only when it belongs to the given author.

        Args:
            author_id: Owning author
            book_id: Book identifier

        Returns:
            Book if found, None otherwise
        """
        try:
            document = await self.books.find_one({"_id": str(book_id), "author_id": str(author_id)})
            if document:
                return document_to_book(document)
            return None

        except PyMongoError as e:
            logger.error("Failed to get book for author",
                         author_id=str(author_id), book_id=str(book_id), error=str(e))
            raise

    def add_book_for_author(self, author_id: UUID, book: Book) -> None:
        # Keep an id supplied by the caller, that is how upserts land on a fixed id
        if book.id is None:
            book.id = uuid.uuid4()
        book.author_id = author_id
        self._pending_books.append(InsertOne(book_to_document(book)))
        logger.debug("Staged book insert", author_id=str(author_id), book_id=str(book.id))

    def update_book_for_author(self, book: Book) -> None:
        self._pending_books.append(
            ReplaceOne({"_id": str(book.id)}, book_to_document(book))
        )
        logger.debug("Staged book update", book_id=str(book.id))

    def delete_book(self, book: Book) -> None:
        self._pending_books.append(DeleteOne({"_id": str(book.id)}))
        logger.debug("Staged book delete", book_id=str(book.id))

    async def save(self) -> SaveResult:
        """
        Commit every staged change.

        Authors are written before books. The staging buffers are cleared
        whatever the outcome.

        Returns:
            SaveResult describing the commit
        """
        pending_authors, self._pending_authors = self._pending_authors, []
        pending_books, self._pending_books = self._pending_books, []

        written = 0
        try:
            if pending_authors:
                await self.authors.bulk_write(pending_authors, ordered=True)
                written += len(pending_authors)
            if pending_books:
                await self.books.bulk_write(pending_books, ordered=True)
                written += len(pending_books)
        except PyMongoError as e:
            logger.error("Failed to save staged changes", written=written, error=str(e))
            return SaveResult(success=False, reason=str(e), written=written)

        if written:
            logger.debug("Saved staged changes", written=written)
        return SaveResult(success=True, written=written)
