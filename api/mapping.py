"""
Conversions between wire DTOs and catalog entities.
"""

from typing import Iterable, List
from uuid import UUID

from api.models import BookDto, BookForCreationDto, BookForUpdateDto
from library.models import Book


def book_to_dto(book: Book) -> BookDto:
    return BookDto(
        id=book.id,
        author_id=book.author_id,
        title=book.title,
        description=book.description,
    )


def books_to_dtos(books: Iterable[Book]) -> List[BookDto]:
    return [book_to_dto(book) for book in books]


def creation_dto_to_book(dto: BookForCreationDto, author_id: UUID) -> Book:
    """New entity from a validated creation payload; the repository assigns the id."""
    return Book(title=dto.title, description=dto.description, author_id=author_id)


def update_dto_to_book(dto: BookForUpdateDto, author_id: UUID, book_id: UUID) -> Book:
    """New entity with a client supplied id, used when PUT or PATCH creates the book."""
    return Book(id=book_id, title=dto.title, description=dto.description, author_id=author_id)


def book_to_update_dto(book: Book) -> BookForUpdateDto:
    return BookForUpdateDto(title=book.title, description=book.description)


def apply_update_dto(dto: BookForUpdateDto, book: Book) -> Book:
    """
    Copy every updatable field of ``dto`` onto ``book``.

    The payload wins for each field; the id and owner are never touched.
    """
    book.title = dto.title
    book.description = dto.description
    return book
