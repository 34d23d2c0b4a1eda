"""
Pytest configuration and shared fixtures.
"""

import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from api.database import get_repository
from api.main import app
from library.models import Author, Book, SaveResult
from library.repository import LibraryRepository


class InMemoryLibraryRepository(LibraryRepository):
    """
    Repository test double keeping authors and books in dictionaries.
    Writes are staged like the MongoDB repository and applied on save.
    """

    def __init__(self):
        self.authors: Dict[UUID, Author] = {}
        self.books: Dict[UUID, Book] = {}
        self.pending: List[Tuple[str, Any]] = []
        self.fail_saves = False
        self.save_calls = 0

    async def author_exists(self, author_id: UUID) -> bool:
        return author_id in self.authors

    async def get_authors(self) -> List[Author]:
        return sorted(self.authors.values(), key=lambda a: (a.first_name, a.last_name))

    def add_author(self, author: Author) -> None:
        self.pending.append(("author", author.model_copy()))

    async def get_books_for_author(self, author_id: UUID) -> List[Book]:
        books = [book for book in self.books.values() if book.author_id == author_id]
        return [book.model_copy() for book in sorted(books, key=lambda b: b.title)]

    async def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[Book]:
        book = self.books.get(book_id)
        if book is None or book.author_id != author_id:
            return None
        return book.model_copy()

    def add_book_for_author(self, author_id: UUID, book: Book) -> None:
        if book.id is None:
            book.id = uuid.uuid4()
        book.author_id = author_id
        self.pending.append(("insert", book.model_copy()))

    def update_book_for_author(self, book: Book) -> None:
        self.pending.append(("update", book.model_copy()))

    def delete_book(self, book: Book) -> None:
        self.pending.append(("delete", book.model_copy()))

    async def save(self) -> SaveResult:
        self.save_calls += 1
        pending, self.pending = self.pending, []
        if self.fail_saves:
            return SaveResult(success=False, reason="simulated write failure")

        for action, entity in pending:
            if action == "author":
                self.authors[entity.id] = entity
            elif action in ("insert", "update"):
                self.books[entity.id] = entity
            elif action == "delete":
                self.books.pop(entity.id, None)
        return SaveResult(success=True, written=len(pending))


@pytest.fixture
def repository():
    """Create an empty in-memory repository."""
    return InMemoryLibraryRepository()


@pytest.fixture
def author(repository):
    """Store an author in the repository."""
    author = Author(
        id=UUID("25320c5e-f58a-4b1f-b63a-8ee07a840bdf"),
        first_name="Stephen",
        last_name="King",
        date_of_birth=date(1947, 9, 21),
        genre="Horror"
    )
    repository.authors[author.id] = author
    return author


@pytest.fixture
def other_author(repository):
    """Store a second author in the repository."""
    author = Author(
        id=UUID("76053df4-6687-4353-8937-b45556748abe"),
        first_name="George",
        last_name="RR Martin",
        date_of_birth=date(1948, 9, 20),
        genre="Fantasy"
    )
    repository.authors[author.id] = author
    return author


@pytest.fixture
def book(repository, author):
    """Store a book of ``author`` in the repository."""
    book = Book(
        id=UUID("c7ba6add-09c4-45f8-8dd0-eaca221e5d93"),
        title="The Shining",
        description="The Shining is a horror novel by American author Stephen King.",
        author_id=author.id
    )
    repository.books[book.id] = book
    return book


@pytest.fixture
def client(repository):
    """Create test client backed by the in-memory repository."""
    app.dependency_overrides[get_repository] = lambda: repository
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def books_url(author):
    """Collection URL of the books of ``author``."""
    return f"/api/authors/{author.id}/books"
