"""
Pydantic models for the library catalog entities.
Authors own books by reference; books carry the id of their author.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Author(BaseModel):
    """
    Author entity as stored in the catalog.
    """
    id: UUID = Field(..., description="Unique author identifier")
    first_name: str = Field(..., max_length=50, description="First name of the author")
    last_name: str = Field(..., max_length=50, description="Last name of the author")
    date_of_birth: date = Field(..., description="Date of birth")
    genre: str = Field(..., max_length=50, description="Main genre the author writes in")

    class Config:
        """Pydantic configuration."""
        json_schema_extra = {
            "example": {
                "id": "25320c5e-f58a-4b1f-b63a-8ee07a840bdf",
                "first_name": "Stephen",
                "last_name": "King",
                "date_of_birth": "1947-09-21",
                "genre": "Horror"
            }
        }


class Book(BaseModel):
    """
    Book entity. The id stays unset until the repository stages the book.
    """
    id: Optional[UUID] = Field(None, description="Unique book identifier")
    title: str = Field(..., description="Title of the book")
    description: Optional[str] = Field(None, description="Description of the book")
    author_id: Optional[UUID] = Field(None, description="Identifier of the owning author")

    class Config:
        """Pydantic configuration."""
        validate_assignment = True
        json_schema_extra = {
            "example": {
                "id": "c7ba6add-09c4-45f8-8dd0-eaca221e5d93",
                "title": "The Shining",
                "description": "The Shining is a horror novel by American author Stephen King.",
                "author_id": "25320c5e-f58a-4b1f-b63a-8ee07a840bdf"
            }
        }


class SaveResult(BaseModel):
    """
    Outcome of committing the staged changes of a repository.
    """
    success: bool = Field(..., description="Whether every staged change was written")
    reason: Optional[str] = Field(None, description="Why the commit failed")
    written: int = Field(0, description="Number of staged operations written")
