"""
Validation pipeline for book payloads.

Every function here is pure: it takes a DTO and returns the list of field
errors it found, an empty list meaning the payload is valid.
"""

from typing import Dict, List, NamedTuple, Type, Union

from pydantic import BaseModel

from api.models import BookForCreationDto, BookForUpdateDto, FieldError

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

DESCRIPTION_EQUALS_TITLE = "The description should be different from the title."

BookPayload = Union[BookForCreationDto, BookForUpdateDto]


class FieldRule(NamedTuple):
    name: str
    required: bool
    max_length: int


SCHEMA_RULES: Dict[Type[BaseModel], List[FieldRule]] = {
    BookForCreationDto: [
        FieldRule("title", required=True, max_length=TITLE_MAX_LENGTH),
        FieldRule("description", required=False, max_length=DESCRIPTION_MAX_LENGTH),
    ],
    BookForUpdateDto: [
        FieldRule("title", required=True, max_length=TITLE_MAX_LENGTH),
        FieldRule("description", required=True, max_length=DESCRIPTION_MAX_LENGTH),
    ],
}


def check_description_differs(dto: BookPayload) -> List[FieldError]:
    """
    Cross-field rule: a book's description must not repeat its title.

    Plain equality is used, so a payload missing both values fails too.
    """
    if dto.description == dto.title:
        return [FieldError(field=type(dto).__name__, message=DESCRIPTION_EQUALS_TITLE)]
    return []


def validate_schema(dto: BookPayload) -> List[FieldError]:
    """Check required fields and maximum lengths, in field declaration order."""
    errors = []
    for rule in SCHEMA_RULES[type(dto)]:
        value = getattr(dto, rule.name)
        if value is None or not value.strip():
            if rule.required:
                errors.append(FieldError(field=rule.name, message=f"The {rule.name} field is required."))
            continue
        if len(value) > rule.max_length:
            errors.append(FieldError(
                field=rule.name,
                message=f"The {rule.name} field must be at most {rule.max_length} characters long."
            ))
    return errors


def validate_book(dto: BookPayload) -> List[FieldError]:
    """
    Run the whole pipeline for a book payload.

    Args:
        dto: Creation or update payload

    Returns:
        Cross-field errors first, then schema errors
    """
    return check_description_differs(dto) + validate_schema(dto)
