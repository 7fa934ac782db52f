"""
errors.py — AppError taxonomy and the error normalizer

Every failure that leaves the API client or the orchestrator is an AppError.
`kind` tags which branch of the taxonomy it belongs to, so callers switch on
an explicit value instead of probing attributes.

Business Rules:
- normalize_error() never raises and always returns an AppError with a
  non-empty message
- AppError is immutable once constructed
- Messages come from the localized ERROR_MESSAGES catalogue when the code is
  known, otherwise from the server, otherwise the generic fallback
- organize_form_errors() is a pure function of the AppError

Called by: api/client.py, orchestrator.py, forms.py, services/*
Depends on: httpx (transport exception types), loguru
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple

import httpx
from loguru import logger

NETWORK_ERROR = "NETWORK_ERROR"
VALIDATION_ERROR = "VALIDATION_ERROR"

ERROR_MESSAGES: dict[str, str] = {
    "invalid_credentials": "E-posta veya şifre hatalı",
    "user_already_registered": "Bu e-posta adresi zaten kayıtlı",
    "email_not_confirmed": "E-posta adresinizi doğrulamanız gerekiyor",
    "too_many_requests": "Çok fazla deneme yaptınız. Lütfen daha sonra tekrar deneyin",
    "weak_password": "Şifre yeterince güçlü değil",
    "invalid_email": "Geçersiz e-posta adresi",
    "user_not_found": "Kullanıcı bulunamadı",
    "signup_disabled": "Kayıt işlemi şu anda kapalı",
    "token_expired": "Oturum süresi dolmuş. Lütfen tekrar giriş yapın",
    "validation_failed": "Girilen bilgileri kontrol edin",
    "network_error": "İnternet bağlantısını kontrol edin",
    "server_error": "Sunucu hatası. Lütfen daha sonra tekrar deneyin",
    "timeout": "İşlem zaman aşımına uğradı",
    "unknown_error": "Beklenmeyen bir hata oluştu",
    "unauthorized": "Bu işlem için yetkiniz yok",
    "forbidden": "Bu işleme erişim izniniz yok",
    "not_found": "Aradığınız kaynak bulunamadı",
    "conflict": "Bu bilgiler zaten kullanımda",
    "duplicate_key": "Bu bilgi zaten mevcut",
    "foreign_key_violation": "İlişkili veri hatası",
    "not_null_violation": "Zorunlu alan eksik",
}

GENERIC_MESSAGE = ERROR_MESSAGES["unknown_error"]

# (substring in a lower-cased server message, catalogue code)
_MESSAGE_PATTERNS: tuple[tuple[str, str], ...] = (
    ("user already registered", "user_already_registered"),
    ("already exists", "user_already_registered"),
    ("invalid login credentials", "invalid_credentials"),
    ("invalid credentials", "invalid_credentials"),
    ("email not confirmed", "email_not_confirmed"),
    ("too many requests", "too_many_requests"),
    ("weak password", "weak_password"),
    ("password should be", "weak_password"),
    ("invalid email", "invalid_email"),
    ("user not found", "user_not_found"),
    ("signup is disabled", "signup_disabled"),
)

_STATUS_CODES = {
    400: "validation_failed",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_failed",
    429: "too_many_requests",
    500: "server_error",
    502: "server_error",
    503: "server_error",
    504: "timeout",
}


class ErrorKind(str, Enum):
    """Discriminator of the AppError union."""

    VALIDATION = "validation"
    CLIENT = "client"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


def classify_status(status: int | None) -> ErrorKind:
    if status is None:
        return ErrorKind.UNKNOWN
    if 400 <= status < 500:
        return ErrorKind.CLIENT
    if status >= 500:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


class AppError(Exception):
    """The single normalized error shape used across the client."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
        request_id: str | None = None,
        kind: ErrorKind | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        super().__init__(message)
        fields = {
            "message": message or GENERIC_MESSAGE,
            "status": status,
            "code": code,
            "details": details,
            "request_id": request_id,
            "kind": kind or classify_status(status),
            "timestamp": timestamp or datetime.now(timezone.utc),
        }
        for name, value in fields.items():
            object.__setattr__(self, name, value)
        object.__setattr__(self, "_frozen", True)

    def __setattr__(self, name: str, value: Any) -> None:
        # Dunders stay writable: the interpreter sets __traceback__, __notes__ etc.
        if getattr(self, "_frozen", False) and not name.startswith("__"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, name, value)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, status={self.status!r}, "
            f"code={self.code!r}, kind={self.kind.value!r})"
        )

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    def with_request_id(self, request_id: str) -> AppError:
        """Copy of this error tagged with a request id."""
        if self.request_id == request_id:
            return self
        return AppError(
            self.message,
            status=self.status,
            code=self.code,
            details=self.details,
            request_id=request_id,
            kind=self.kind,
            timestamp=self.timestamp,
        )

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "kind": self.kind.value,
            "details": self.details,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
        }


class ValidationError(AppError):
    """Outbound or inbound payload failed schema validation. Never retried."""

    def __init__(
        self,
        message: str,
        errors: list[str],
        *,
        field_errors: dict[str, str] | None = None,
        context: dict | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code=VALIDATION_ERROR,
            details={
                "errors": list(errors),
                "fieldErrors": dict(field_errors or {}),
                "context": context or {},
            },
            request_id=request_id,
            kind=ErrorKind.VALIDATION,
        )

    @property
    def errors(self) -> list[str]:
        return self.details["errors"]

    def with_request_id(self, request_id: str) -> ValidationError:
        if self.request_id == request_id:
            return self
        return ValidationError(
            self.message,
            self.details["errors"],
            field_errors=self.details["fieldErrors"],
            context=self.details["context"],
            request_id=request_id,
        )


class FormErrorSplit(NamedTuple):
    server_error: str | None
    field_errors: dict[str, str]


# ── Code helpers ────────────────────────────────────────────────────────


def code_from_message(message: str | None) -> str | None:
    """Map a known server/identity-provider message to a catalogue code."""
    if not message:
        return None
    lowered = message.lower()
    for needle, code in _MESSAGE_PATTERNS:
        if needle in lowered:
            return code
    return None


def error_code_by_status(status: int | None) -> str:
    return _STATUS_CODES.get(status, "unknown_error")


def catalog_message(code: str | None) -> str | None:
    if not code:
        return None
    return ERROR_MESSAGES.get(code.lower())


# ── Constructors ────────────────────────────────────────────────────────


def error_from_response(
    status: int | None,
    data: Any,
    *,
    request_id: str | None = None,
) -> AppError:
    """Build an AppError from an HTTP error response (status + decoded body)."""
    body = data if isinstance(data, Mapping) else {}
    server_message = body.get("error") or body.get("message") or body.get("error_description")
    if not server_message and isinstance(data, str):
        server_message = data.strip() or None
    if server_message is not None and not isinstance(server_message, str):
        server_message = str(server_message)

    server_code = body.get("code")
    pattern_code = code_from_message(server_message)
    code = server_code or pattern_code or error_code_by_status(status)

    message = (
        (catalog_message(pattern_code) if pattern_code else None)
        or server_message
        or catalog_message(code)
        or GENERIC_MESSAGE
    )
    return AppError(message, status=status, code=code, details=data, request_id=request_id)


def network_error(
    exc: BaseException | None = None,
    *,
    request_id: str | None = None,
) -> AppError:
    """No response was received at all (timeout, DNS, connection refused)."""
    if isinstance(exc, httpx.TimeoutException):
        message = ERROR_MESSAGES["timeout"]
    else:
        message = ERROR_MESSAGES["network_error"]
    return AppError(
        message,
        code=NETWORK_ERROR,
        details={"reason": str(exc)} if exc is not None else None,
        request_id=request_id,
        kind=ErrorKind.NETWORK,
    )


def decode_body(response: httpx.Response) -> Any:
    """JSON body if it parses, else the raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _from_message(message: str | None, details: Any = None) -> AppError:
    code = code_from_message(message)
    text = catalog_message(code) or message or GENERIC_MESSAGE
    return AppError(text, code=code or "unknown_error", details=details, kind=ErrorKind.UNKNOWN)


def _normalize(raw: Any) -> AppError:
    if isinstance(raw, AppError):
        return raw

    if isinstance(raw, httpx.HTTPStatusError):
        return error_from_response(raw.response.status_code, decode_body(raw.response))
    if isinstance(raw, httpx.RequestError):
        return network_error(raw)

    from pydantic import ValidationError as PydanticValidationError

    if isinstance(raw, PydanticValidationError):
        from storefront.schemas.validation import describe_errors

        errors, field_errors = describe_errors(raw)
        return ValidationError(
            ERROR_MESSAGES["validation_failed"], errors, field_errors=field_errors
        )

    if raw is None:
        return AppError(GENERIC_MESSAGE, code="unknown_error", kind=ErrorKind.UNKNOWN)

    if isinstance(raw, str):
        return _from_message(raw.strip() or None)

    if isinstance(raw, Mapping):
        response = raw.get("response")
        if isinstance(response, Mapping):
            return error_from_response(response.get("status"), response.get("data"))
        if raw.get("request") is not None:
            return network_error()
        if isinstance(raw.get("status"), int):
            return error_from_response(raw["status"], raw.get("data", raw))
        message = raw.get("message") or raw.get("error")
        return _from_message(str(message) if message else None, details=dict(raw))

    if isinstance(raw, BaseException):
        return _from_message(str(raw) or None, details={"type": type(raw).__name__})

    return _from_message(None, details={"value": repr(raw)})


def normalize_error(raw: Any) -> AppError:
    """Collapse any thrown value into an AppError. Never raises."""
    try:
        return _normalize(raw)
    except Exception as exc:
        logger.opt(exception=exc).error("Error normalization failed for {!r}", type(raw))
        return AppError(GENERIC_MESSAGE, code="unknown_error", kind=ErrorKind.UNKNOWN)


def organize_form_errors(error: AppError) -> FormErrorSplit:
    """Split an AppError into field-keyed messages plus one server message."""
    details = error.details if isinstance(error.details, Mapping) else {}

    raw_fields = details.get("fieldErrors") or details.get("field_errors")
    if isinstance(raw_fields, Mapping) and raw_fields:
        field_errors = {str(k): str(v) for k, v in raw_fields.items()}
        return FormErrorSplit(server_error=error.message or None, field_errors=field_errors)

    field = details.get("field")
    if isinstance(field, str) and field:
        return FormErrorSplit(server_error=None, field_errors={field: error.message})

    return FormErrorSplit(server_error=error.message, field_errors={})
