"""Session store — the signed-in user and bearer token.

Lifecycle:
  - populated on login/signup success
  - cleared on logout (success or failure) and on any 401

The store is injected into the API client (to send the token) and the
orchestrator (to drop it on 401). MemorySessionStore is the default and
what tests use; a host app can implement SessionStore over its own storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from storefront.schemas.auth import AuthUser


@dataclass(frozen=True)
class Session:
    user: AuthUser
    token: str


class SessionStore(Protocol):
    def get(self) -> Session | None: ...

    def set(self, session: Session) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    """Process-local session store."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def get(self) -> Session | None:
        return self._session

    def set(self, session: Session) -> None:
        self._session = session
        logger.debug("Session stored for user {}", session.user.id)

    def clear(self) -> None:
        if self._session is not None:
            logger.debug("Session cleared for user {}", self._session.user.id)
        self._session = None

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None
