"""
forms.py — Routing normalized errors into form fields

Form consumers show field_errors next to the matching inputs and
server_error in a single banner. These helpers do the routing so form code
only supplies setter callbacks.

Called by: services/auth_service.py, services/catalog_service.py, host UI
Depends on: storefront.errors, storefront.orchestrator
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from storefront.errors import AppError, normalize_error, organize_form_errors
from storefront.orchestrator import Mutation, Orchestrator, maybe_await

FieldSetter = Callable[[str, str], Any]
ServerSetter = Callable[[str], Any]


def handle_error(error: Any, fallback_message: str = "Bir hata oluştu") -> str:
    """Normalize any error and return a message fit for a toast."""
    normalized = normalize_error(error)
    logger.debug("Handled error: {}", normalized.to_dict())
    return normalized.message or fallback_message


def dispatch_form_errors(
    error: AppError,
    set_field_error: FieldSetter | None = None,
    set_server_error: ServerSetter | None = None,
) -> None:
    split = organize_form_errors(error)
    if set_field_error is not None:
        for field, message in split.field_errors.items():
            set_field_error(field, message)
    if split.server_error and set_server_error is not None:
        set_server_error(split.server_error)


def handle_form_error(
    error: Any,
    set_field_error: FieldSetter | None = None,
    set_server_error: ServerSetter | None = None,
) -> AppError:
    """Normalize `error`, push its parts to the setters and return it."""
    normalized = normalize_error(error)
    dispatch_form_errors(normalized, set_field_error, set_server_error)
    return normalized


def form_mutation(
    orchestrator: Orchestrator,
    fn: Callable[..., Awaitable[Any]],
    *,
    set_field_error: FieldSetter | None = None,
    set_server_error: ServerSetter | None = None,
    clear_errors: Callable[[], Any] | None = None,
    on_success: Callable[..., Any] | None = None,
    on_error: Callable[..., Any] | None = None,
    **options: Any,
) -> Mutation:
    """A mutation whose failures land on form fields.

    Previous errors are cleared before new ones are set, and on success.
    """

    async def _success(data: Any, variables: Any) -> None:
        if clear_errors is not None:
            await maybe_await(clear_errors())
        if on_success is not None:
            await maybe_await(on_success(data, variables))

    async def _error(error: AppError, variables: Any) -> None:
        if clear_errors is not None:
            await maybe_await(clear_errors())
        dispatch_form_errors(error, set_field_error, set_server_error)
        if on_error is not None:
            await maybe_await(on_error(error, variables))

    return orchestrator.run_mutation(fn, on_success=_success, on_error=_error, **options)


class FormErrors:
    """Simple collector usable as the setter pair for a form."""

    def __init__(self) -> None:
        self.fields: dict[str, str] = {}
        self.server: str | None = None

    def set_field_error(self, field: str, message: str) -> None:
        self.fields[field] = message

    def set_server_error(self, message: str) -> None:
        self.server = message

    def clear(self) -> None:
        self.fields = {}
        self.server = None

    @property
    def has_errors(self) -> bool:
        return bool(self.fields) or self.server is not None
