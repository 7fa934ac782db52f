"""Retry/backoff policy for queries and mutations.

Decides, from the normalized AppError and the number of attempts already
made, whether the orchestrator should call again. The API client never
retries on its own, so one client call is always one network call.

Rules:
  - 4xx: never retried (bad request, unauthorized, not found, conflict)
  - 401: stop at once and tell the caller to drop the session
  - 5xx or no status (network failure): retried up to max_attempts
  - ValidationError: never retried
  - Backoff is linear: delay_seconds * attempt (1s, 2s, ...)
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.config import Settings, get_settings
from storefront.errors import AppError, ErrorKind


def is_unauthorized(error: AppError) -> bool:
    return error.status == 401


@dataclass(frozen=True)
class RetryPolicy:
    """max_attempts counts the first call: 3 means 1 call + 2 retries."""

    max_attempts: int = 3
    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")

    @classmethod
    def from_retries(cls, retries: int, delay_seconds: float = 1.0) -> RetryPolicy:
        return cls(max_attempts=retries + 1, delay_seconds=delay_seconds)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RetryPolicy:
        settings = settings or get_settings()
        if not settings.enable_retry:
            return cls(max_attempts=1, delay_seconds=settings.retry_delay_seconds)
        return cls.from_retries(settings.max_retries, settings.retry_delay_seconds)

    @property
    def retries(self) -> int:
        return self.max_attempts - 1

    def should_retry(self, attempt: int, error: AppError) -> bool:
        """`attempt` is how many calls have already failed (1 after the first)."""
        if attempt >= self.max_attempts:
            return False
        if error.kind is ErrorKind.VALIDATION:
            return False
        if is_unauthorized(error):
            return False
        if error.status is not None and 400 <= error.status < 500:
            return False
        return error.status is None or error.status >= 500

    def delay(self, attempt: int) -> float:
        return self.delay_seconds * attempt


NO_RETRY = RetryPolicy(max_attempts=1, delay_seconds=0)
