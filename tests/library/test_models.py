"""
Unit tests for the catalog entity models.
"""

import uuid
from datetime import date

import pytest
from pydantic import ValidationError

from library.exceptions import PersistenceError
from library.models import Author, Book, SaveResult


class TestAuthor:
    """Test cases for Author model."""

    def test_valid_author(self):
        author = Author(
            id=uuid.uuid4(),
            first_name="Neil",
            last_name="Gaiman",
            date_of_birth="1960-11-10",
            genre="Fantasy"
        )
        assert author.date_of_birth == date(1960, 11, 10)

    def test_name_too_long(self):
        with pytest.raises(ValidationError):
            Author(
                id=uuid.uuid4(),
                first_name="N" * 51,
                last_name="Gaiman",
                date_of_birth=date(1960, 11, 10),
                genre="Fantasy"
            )


class TestBook:
    """Test cases for Book model."""

    def test_id_unset_by_default(self):
        book = Book(title="Coraline")
        assert book.id is None
        assert book.description is None
        assert book.author_id is None

    def test_assignment_is_validated(self):
        book = Book(title="Coraline")
        book.id = "9edf91ee-ab77-4521-a402-5f188bc0c577"
        assert book.id == uuid.UUID("9edf91ee-ab77-4521-a402-5f188bc0c577")
        with pytest.raises(ValidationError):
            book.title = None


class TestSaveResult:
    """Test cases for SaveResult and PersistenceError."""

    def test_failed_result(self):
        result = SaveResult(success=False, reason="timeout")
        assert result.written == 0

    def test_persistence_error_message(self):
        error = PersistenceError("delete book 1", "timeout")
        assert str(error) == "Failed to save changes while trying to delete book 1: timeout"
        assert error.reason == "timeout"

    def test_persistence_error_without_reason(self):
        assert str(PersistenceError("create a book")) == "Failed to save changes while trying to create a book"
