"""
schemas/validation.py — Schema validator for inbound and outbound payloads

Validates arbitrary JSON-shaped payloads against pydantic models (or any type
a TypeAdapter accepts, e.g. list[Category]) and reports one readable string
per violated constraint.

Business Rules:
- Deterministic and side-effect-free: the payload is never mutated
- `context` (endpoint, method) is only used for the warning log
- On success `data` is the coerced value with defaults applied
- Missing required fields each produce their own error line

Called by: api/client.py, errors.py, forms.py
Depends on: pydantic, storefront.errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from storefront.errors import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    is_valid: bool
    data: T | None = None
    errors: list[str] = field(default_factory=list)


@lru_cache(maxsize=256)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def _issue_message(err: dict) -> str:
    # Custom validators raise ValueError("..."); pydantic prefixes those with
    # "Value error, " which is noise for end users.
    if err.get("type") == "value_error" and err.get("ctx", {}).get("error") is not None:
        return str(err["ctx"]["error"])
    return err["msg"]


def describe_errors(exc: PydanticValidationError) -> tuple[list[str], dict[str, str]]:
    """Flatten a pydantic error into ("path: message" lines, {path: first message})."""
    lines: list[str] = []
    fields: dict[str, str] = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ()))
        message = _issue_message(err)
        lines.append(f"{path}: {message}" if path else message)
        if path:
            fields.setdefault(path, message)
    return lines, fields


def _parse(schema: Any, payload: Any) -> Any:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_validate(payload)
    return _adapter(schema).validate_python(payload)


def validate(schema: Any, payload: Any, context: dict | None = None) -> ValidationResult:
    """Validate `payload` against `schema` and return a ValidationResult."""
    try:
        data = _parse(schema, payload)
    except PydanticValidationError as exc:
        errors, _ = describe_errors(exc)
        logger.warning("Payload validation failed", context=context or {}, errors=errors)
        return ValidationResult(is_valid=False, data=None, errors=errors)
    return ValidationResult(is_valid=True, data=data, errors=[])


def validate_or_raise(
    schema: Any,
    payload: Any,
    context: dict | None = None,
    message: str = "Validation failed",
    *,
    request_id: str | None = None,
) -> Any:
    """Validate and return the coerced data, or raise storefront ValidationError."""
    try:
        return _parse(schema, payload)
    except PydanticValidationError as exc:
        errors, fields = describe_errors(exc)
        logger.warning(message, context=context or {}, errors=errors)
        raise ValidationError(
            message, errors, field_errors=fields, context=context, request_id=request_id
        ) from exc


def dump(value: Any) -> Any:
    """JSON-ready form of a validated value (models become dicts, by alias).

    Unset optional fields (None) are left out so partial updates stay partial.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [dump(v) for v in value]
    return value
