"""
API models and schemas for the books resource.

Input DTOs accept any title/description at the type level; the rules
(required fields, lengths, title differs from description) are applied by
``api.validation`` so that every write path checks them in the same order.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BookDto(BaseModel):
    """Book response model for API."""
    id: UUID = Field(..., description="Unique book identifier")
    author_id: UUID = Field(..., description="Identifier of the owning author")
    title: str = Field(..., description="Book title")
    description: Optional[str] = Field(None, description="Book description")


class BookForCreationDto(BaseModel):
    """Payload for creating a book; the server assigns the id."""
    title: Optional[str] = Field(None, description="Book title (required, max 100 characters)")
    description: Optional[str] = Field(None, description="Book description (max 500 characters)")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "It",
                "description": "A horror novel about a shape-shifting clown."
            }
        }


class BookForUpdateDto(BaseModel):
    """Payload for replacing a book, and the shape a patch document targets."""
    title: Optional[str] = Field(None, description="Book title (required, max 100 characters)")
    description: Optional[str] = Field(None, description="Book description (required, max 500 characters)")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "It",
                "description": "A horror novel about a shape-shifting clown."
            }
        }


class PatchOperation(BaseModel):
    """A single JSON Patch operation."""
    op: str = Field(..., description="add, remove, replace, move, copy or test")
    path: str = Field(..., description="JSON Pointer to the target property")
    value: Any = Field(None, description="Value for add, replace and test")
    from_: Optional[str] = Field(None, alias="from", description="Source pointer for move and copy")

    model_config = {
        "populate_by_name": True
    }


class FieldError(BaseModel):
    """A validation error attached to a field or to the whole payload."""
    field: str = Field(..., description="Field or payload name the error belongs to")
    message: str = Field(..., description="Error message")


class ValidationErrorResponse(BaseModel):
    """Body of 422 responses."""
    errors: List[FieldError] = Field(..., description="Every validation error found")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
