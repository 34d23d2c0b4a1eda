"""
JSON Patch (RFC 6902) interpreter for flat DTOs.

A patch document is applied operation by operation to the fields of a
pydantic model. Targets are single-segment JSON Pointers naming a field of
the model, matched case-insensitively. Because the target is a typed object
rather than free-form JSON, ``add`` behaves like ``replace`` and ``remove``
resets the field to its default.

An operation that cannot be applied is recorded as an error and leaves the
model untouched; later operations still run.
"""

from typing import Any, Dict, List, Optional, Tuple, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from api.models import FieldError, PatchOperation

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SUPPORTED_OPERATIONS = ("add", "remove", "replace", "move", "copy", "test")


class PatchError(Exception):
    """Raised when a single patch operation cannot be applied."""

    def __init__(self, operation: PatchOperation, message: str):
        self.operation = operation
        self.message = message
        super().__init__(message)


def parse_pointer(pointer: Optional[str]) -> List[str]:
    """
    Split a JSON Pointer into unescaped reference tokens.

    Args:
        pointer: Pointer such as ``/title``

    Returns:
        List of tokens, empty for the whole-document pointer
    """
    if pointer is None:
        raise ValueError("pointer is missing")
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"'{pointer}' is not a valid JSON Pointer")
    return [token.replace("~1", "/").replace("~0", "~") for token in pointer[1:].split("/")]


class PatchTarget:
    """Mutable view over the fields of a model while a document is applied."""

    def __init__(self, model: BaseModel):
        self.model_class = type(model)
        self.values: Dict[str, Any] = model.model_dump()
        self.defaults: Dict[str, Any] = {
            name: field.get_default(call_default_factory=True)
            for name, field in self.model_class.model_fields.items()
        }

    def resolve(self, pointer: Optional[str], operation: PatchOperation) -> str:
        try:
            tokens = parse_pointer(pointer)
        except ValueError as e:
            raise PatchError(operation, str(e))

        if len(tokens) != 1:
            raise PatchError(
                operation,
                f"The target location specified by path '{pointer}' was not found."
            )

        segment = tokens[0]
        for name in self.values:
            if name.lower() == segment.lower():
                return name
        raise PatchError(
            operation,
            f"The target location specified by path segment '{segment}' was not found."
        )

    def commit(self, candidate: Dict[str, Any], operation: PatchOperation) -> None:
        # Re-validate so a value of the wrong type is rejected by this operation only
        try:
            self.model_class(**candidate)
        except ValidationError as e:
            problems = "; ".join(error["msg"] for error in e.errors())
            raise PatchError(operation, f"The value could not be applied to path '{operation.path}': {problems}")
        self.values = candidate

    def build(self) -> BaseModel:
        return self.model_class(**self.values)


def apply_operation(target: PatchTarget, operation: PatchOperation) -> None:
    """
    Apply one operation to the target.

    Raises:
        PatchError: If the operation is unknown or cannot be applied
    """
    op = (operation.op or "").lower()
    if op not in SUPPORTED_OPERATIONS:
        raise PatchError(operation, f"Invalid JsonPatch operation '{operation.op}'.")

    name = target.resolve(operation.path, operation)
    candidate = dict(target.values)

    if op in ("add", "replace"):
        candidate[name] = operation.value

    elif op == "remove":
        candidate[name] = target.defaults[name]

    elif op in ("move", "copy"):
        if operation.from_ is None:
            raise PatchError(operation, f"The '{op}' operation requires a 'from' location.")
        source = target.resolve(operation.from_, operation)
        value = target.values[source]
        if op == "move" and source != name:
            candidate[source] = target.defaults[source]
        candidate[name] = value

    elif op == "test":
        current = target.values[name]
        if current != operation.value:
            raise PatchError(
                operation,
                f"The current value '{current}' at path '{operation.path}' "
                f"is not equal to the test value '{operation.value}'."
            )
        return

    target.commit(candidate, operation)


def apply_patch(document: List[PatchOperation], model: ModelT) -> Tuple[ModelT, List[FieldError]]:
    """
    Apply a patch document to a copy of ``model``.

    Args:
        document: Operations, applied in order
        model: Model to patch; it is not modified

    Returns:
        The patched model and the errors of the operations that failed,
        keyed by the model's class name
    """
    target = PatchTarget(model)
    errors: List[FieldError] = []

    for operation in document:
        try:
            apply_operation(target, operation)
        except PatchError as e:
            logger.debug("Patch operation rejected", op=operation.op, path=operation.path, error=e.message)
            errors.append(FieldError(field=target.model_class.__name__, message=e.message))

    return target.build(), errors
