"""
Unit tests for the MongoDB repository.
Motor collections are replaced by mocks.
"""

import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import DeleteOne, InsertOne, ReplaceOne
from pymongo.errors import PyMongoError

from library.models import Author, Book
from library.repository import (
    MongoLibraryRepository, author_to_document, book_to_document,
    document_to_author, document_to_book
)


class FakeCursor:
    """Async cursor over a fixed list of documents."""

    def __init__(self, documents):
        self.documents = documents
        self.sort_args = None

    def sort(self, *args):
        self.sort_args = args
        return self

    def __aiter__(self):
        self._iter = iter(self.documents)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


@pytest.fixture
def authors_collection():
    collection = MagicMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.find_one = AsyncMock(return_value=None)
    collection.bulk_write = AsyncMock()
    return collection


@pytest.fixture
def books_collection():
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.bulk_write = AsyncMock()
    return collection


@pytest.fixture
def repo(authors_collection, books_collection):
    return MongoLibraryRepository(authors_collection, books_collection)


@pytest.fixture
def author_id():
    return uuid.UUID("25320c5e-f58a-4b1f-b63a-8ee07a840bdf")


@pytest.fixture
def book_document(author_id):
    return {
        "_id": "c7ba6add-09c4-45f8-8dd0-eaca221e5d93",
        "title": "The Shining",
        "description": "A haunted hotel.",
        "author_id": str(author_id),
    }


class TestReads:
    """Test cases for repository queries."""

    @pytest.mark.asyncio
    async def test_author_exists(self, repo, authors_collection, author_id):
        authors_collection.count_documents.return_value = 1
        assert await repo.author_exists(author_id) is True
        authors_collection.count_documents.assert_awaited_once_with({"_id": str(author_id)}, limit=1)

    @pytest.mark.asyncio
    async def test_author_missing(self, repo, author_id):
        assert await repo.author_exists(author_id) is False

    @pytest.mark.asyncio
    async def test_read_error_propagates(self, repo, authors_collection, author_id):
        authors_collection.count_documents.side_effect = PyMongoError("connection lost")
        with pytest.raises(PyMongoError):
            await repo.author_exists(author_id)

    @pytest.mark.asyncio
    async def test_get_book_for_author(self, repo, books_collection, author_id, book_document):
        books_collection.find_one.return_value = book_document
        book_id = uuid.UUID(book_document["_id"])

        book = await repo.get_book_for_author(author_id, book_id)

        assert book.id == book_id
        assert book.author_id == author_id
        assert book.title == "The Shining"
        books_collection.find_one.assert_awaited_once_with({"_id": str(book_id), "author_id": str(author_id)})

    @pytest.mark.asyncio
    async def test_get_book_for_author_missing(self, repo, author_id):
        assert await repo.get_book_for_author(author_id, uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_books_for_author(self, repo, books_collection, author_id, book_document):
        cursor = FakeCursor([book_document])
        books_collection.find.return_value = cursor

        books = await repo.get_books_for_author(author_id)

        assert [book.title for book in books] == ["The Shining"]
        books_collection.find.assert_called_once_with({"author_id": str(author_id)})
        assert cursor.sort_args == ("title", 1)

    @pytest.mark.asyncio
    async def test_get_authors_sorted_by_name(self, repo, authors_collection, author_id):
        cursor = FakeCursor([{
            "_id": str(author_id),
            "first_name": "Stephen",
            "last_name": "King",
            "date_of_birth": "1947-09-21",
            "genre": "Horror",
        }])
        authors_collection.find.return_value = cursor

        authors = await repo.get_authors()

        assert [author.last_name for author in authors] == ["King"]
        assert authors[0].date_of_birth == date(1947, 9, 21)
        assert cursor.sort_args == ([("first_name", 1), ("last_name", 1)],)


class TestStagedWrites:
    """Test cases for staging and saving changes."""

    @pytest.mark.asyncio
    async def test_nothing_written_before_save(self, repo, books_collection, author_id):
        repo.add_book_for_author(author_id, Book(title="Carrie"))
        books_collection.bulk_write.assert_not_awaited()
        assert repo.has_pending_changes

    def test_add_assigns_id_and_author(self, repo, author_id):
        book = Book(title="Carrie")
        repo.add_book_for_author(author_id, book)
        assert book.id is not None
        assert book.author_id == author_id

    def test_add_keeps_given_id(self, repo, author_id):
        book_id = uuid.uuid4()
        book = Book(id=book_id, title="Carrie")
        repo.add_book_for_author(author_id, book)
        assert book.id == book_id

    @pytest.mark.asyncio
    async def test_save_writes_staged_operations_in_order(self, repo, books_collection, author_id):
        added = Book(title="Carrie")
        repo.add_book_for_author(author_id, added)
        updated = Book(id=uuid.uuid4(), title="It", description="A clown.", author_id=author_id)
        repo.update_book_for_author(updated)
        repo.delete_book(updated)

        result = await repo.save()

        assert result.success is True
        assert result.written == 3
        operations = books_collection.bulk_write.call_args.args[0]
        assert operations == [
            InsertOne(book_to_document(added)),
            ReplaceOne({"_id": str(updated.id)}, book_to_document(updated)),
            DeleteOne({"_id": str(updated.id)}),
        ]
        assert books_collection.bulk_write.call_args.kwargs == {"ordered": True}
        assert not repo.has_pending_changes

    @pytest.mark.asyncio
    async def test_authors_saved_before_books(self, repo, authors_collection, books_collection, author_id):
        calls = []
        authors_collection.bulk_write.side_effect = lambda ops, ordered: calls.append("authors")
        books_collection.bulk_write.side_effect = lambda ops, ordered: calls.append("books")

        repo.add_author(Author(id=author_id, first_name="Stephen", last_name="King",
                               date_of_birth=date(1947, 9, 21), genre="Horror"))
        repo.add_book_for_author(author_id, Book(title="Carrie"))
        await repo.save()

        assert calls == ["authors", "books"]

    @pytest.mark.asyncio
    async def test_save_without_changes(self, repo, books_collection):
        result = await repo.save()
        assert result.success is True
        assert result.written == 0
        books_collection.bulk_write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_failure_returns_reason(self, repo, books_collection, author_id):
        books_collection.bulk_write.side_effect = PyMongoError("write concern error")
        repo.add_book_for_author(author_id, Book(title="Carrie"))

        result = await repo.save()

        assert result.success is False
        assert result.reason == "write concern error"
        assert not repo.has_pending_changes


class TestDocuments:
    """Test cases for document conversion."""

    def test_book_document_uses_string_ids(self, book_document):
        book = document_to_book(book_document)
        assert book_to_document(book) == book_document

    def test_author_date_stored_as_iso_string(self, author_id):
        author = Author(id=author_id, first_name="Stephen", last_name="King",
                        date_of_birth=date(1947, 9, 21), genre="Horror")
        document = author_to_document(author)
        assert document["date_of_birth"] == "1947-09-21"
        assert document_to_author(document) == author
