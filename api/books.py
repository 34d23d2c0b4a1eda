"""
Books resource, nested under authors.

Every write validates its payload before touching the repository, and a
commit that fails is raised as ``PersistenceError`` so the application
turns it into a server error.
"""

from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.database import get_repository
from api.mapping import (
    apply_update_dto, book_to_dto, book_to_update_dto, books_to_dtos,
    creation_dto_to_book, update_dto_to_book
)
from api.models import (
    BookDto, BookForCreationDto, BookForUpdateDto, ErrorResponse,
    FieldError, PatchOperation, ValidationErrorResponse
)
from api.patch import apply_patch
from api.validation import validate_book
from library.exceptions import PersistenceError
from library.models import Book
from library.repository import LibraryRepository

logger = structlog.get_logger(__name__)

BOOK_DELETED_EVENT = 100

router = APIRouter(prefix="/authors/{author_id}/books", tags=["Books"])

ERROR_RESPONSES = {
    status.HTTP_404_NOT_FOUND: {"description": "Author or book not found"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Changes could not be saved"},
}
WRITE_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"description": "Missing request body"},
    status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ValidationErrorResponse, "description": "Invalid payload"},
    **ERROR_RESPONSES,
}


def _bad_request() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is required")


def _author_not_found(author_id: UUID) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Author '{author_id}' not found")


def _book_not_found(author_id: UUID, book_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Book '{book_id}' not found for author '{author_id}'"
    )


def _unprocessable(errors: List[FieldError]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ValidationErrorResponse(errors=errors).model_dump()
    )


async def _save(repository: LibraryRepository, operation: str) -> None:
    result = await repository.save()
    if not result.success:
        raise PersistenceError(operation, result.reason)


def _created(request: Request, book: Book) -> JSONResponse:
    dto = book_to_dto(book)
    location = request.url_for("get_book_for_author", author_id=str(dto.author_id), book_id=str(dto.id))
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=jsonable_encoder(dto),
        headers={"Location": str(location)}
    )


async def _create_with_id(
    request: Request,
    repository: LibraryRepository,
    author_id: UUID,
    book_id: UUID,
    dto: BookForUpdateDto
) -> JSONResponse:
    book = update_dto_to_book(dto, author_id, book_id)
    repository.add_book_for_author(author_id, book)
    await _save(repository, f"upsert book {book_id} for author {author_id}")
    logger.info("Book created by upsert", author_id=str(author_id), book_id=str(book_id))
    return _created(request, book)


@router.get("", response_model=List[BookDto], responses=ERROR_RESPONSES)
async def get_books_for_author(
    author_id: UUID,
    repository: LibraryRepository = Depends(get_repository)
):
    """Get the books of an author, ordered by title."""
    if not await repository.author_exists(author_id):
        raise _author_not_found(author_id)

    books = await repository.get_books_for_author(author_id)
    return books_to_dtos(books)


@router.get("/{book_id}", name="get_book_for_author", response_model=BookDto, responses=ERROR_RESPONSES)
async def get_book_for_author(
    author_id: UUID,
    book_id: UUID,
    repository: LibraryRepository = Depends(get_repository)
):
    """Get a single book of an author."""
    if not await repository.author_exists(author_id):
        raise _author_not_found(author_id)

    book = await repository.get_book_for_author(author_id, book_id)
    if book is None:
        raise _book_not_found(author_id, book_id)

    return book_to_dto(book)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BookDto, responses=WRITE_RESPONSES)
async def create_book_for_author(
    request: Request,
    author_id: UUID,
    book: Optional[BookForCreationDto] = Body(None),
    repository: LibraryRepository = Depends(get_repository)
):
    """
    Create a book for an author.

    The Location header of the response points at the new book.
    """
    if book is None:
        raise _bad_request()

    errors = validate_book(book)
    if errors:
        return _unprocessable(errors)

    if not await repository.author_exists(author_id):
        raise _author_not_found(author_id)

    book_entity = creation_dto_to_book(book, author_id)
    repository.add_book_for_author(author_id, book_entity)
    await _save(repository, f"create a book for author {author_id}")

    logger.info("Book created", author_id=str(author_id), book_id=str(book_entity.id))
    return _created(request, book_entity)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT, responses=ERROR_RESPONSES)
async def delete_book_for_author(
    author_id: UUID,
    book_id: UUID,
    repository: LibraryRepository = Depends(get_repository)
):
    """Delete a book of an author."""
    if not await repository.author_exists(author_id):
        raise _author_not_found(author_id)

    book = await repository.get_book_for_author(author_id, book_id)
    if book is None:
        raise _book_not_found(author_id, book_id)

    repository.delete_book(book)
    await _save(repository, f"delete book {book_id} for author {author_id}")

    logger.info("Book was deleted", event_id=BOOK_DELETED_EVENT, author_id=str(author_id), book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={status.HTTP_201_CREATED: {"model": BookDto, "description": "Book created"}, **WRITE_RESPONSES}
)
async def update_book_for_author(
    request: Request,
    author_id: UUID,
    book_id: UUID,
    book: Optional[BookForUpdateDto] = Body(None),
    repository: LibraryRepository = Depends(get_repository)
):
    """
    Replace a book of an author.

    A book that does not exist yet is created with the given id.
    """
    if book is None:
        raise _bad_request()

    errors = validate_book(book)
    if errors:
        return _unprocessable(errors)

    if not await repository.author_exists(author_id):
        raise _author_not_found(author_id)

    book_entity = await repository.get_book_for_author(author_id, book_id)
    if book_entity is None:
        return await _create_with_id(request, repository, author_id, book_id, book)

    apply_update_dto(book, book_entity)
    repository.update_book_for_author(book_entity)
    await _save(repository, f"update book {book_id} for author {author_id}")

    logger.info("Book updated", author_id=str(author_id), book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={status.HTTP_201_CREATED: {"model": BookDto, "description": "Book created"}, **WRITE_RESPONSES}
)
async def partially_update_book_for_author(
    request: Request,
    author_id: UUID,
    book_id: UUID,
    patch_document: Optional[List[PatchOperation]] = Body(None),
    repository: LibraryRepository = Depends(get_repository)
):
    """
    Apply a JSON Patch document to a book of an author.

    The document targets the update payload of the book. When the book does
    not exist yet, it is applied to an empty payload and the result is
    created with the given id.
    """
    if patch_document is None:
        raise _bad_request()

    if not await repository.author_exists(author_id):
        raise _author_not_found(author_id)

    book_entity = await repository.get_book_for_author(author_id, book_id)
    if book_entity is None:
        book_to_patch = BookForUpdateDto()
    else:
        book_to_patch = book_to_update_dto(book_entity)

    patched, errors = apply_patch(patch_document, book_to_patch)
    errors += validate_book(patched)
    if errors:
        return _unprocessable(errors)

    if book_entity is None:
        return await _create_with_id(request, repository, author_id, book_id, patched)

    apply_update_dto(patched, book_entity)
    repository.update_book_for_author(book_entity)
    await _save(repository, f"patch book {book_id} for author {author_id}")

    logger.info("Book patched", author_id=str(author_id), book_id=str(book_id), operations=len(patch_document))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
