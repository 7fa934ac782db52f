"""Auth service — login, signup, logout and the current user.

The identity provider is opaque: this module only talks to the storefront's
/auth routes and keeps the session store in step with them.

Session lifecycle:
  - login/signup success → session stored, ["auth", "me"] seeded
  - login/signup failure → session cleared, ["auth", "me"] dropped
  - logout (success or failure) → session and the whole query cache cleared
  - 401 on any call → handled by the orchestrator (same as logout)

Usage:
    from storefront.services.auth_service import AuthService
    auth = AuthService(orchestrator)
    await auth.login.mutate_async({"email": "a@b.co", "password": "secret1"})
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from storefront.api.client import ApiClient
from storefront.errors import AppError
from storefront.forms import FormErrors, form_mutation
from storefront.orchestrator import Mutation, Orchestrator, QueryResult
from storefront.retry import RetryPolicy
from storefront.schemas.auth import (
    AuthResponse,
    AuthUser,
    CurrentUserResponse,
    LoginRequest,
    SignupRequest,
)
from storefront.session import Session

CURRENT_USER_QUERY_KEY = ("auth", "me")


class AuthAPI:
    def __init__(self, client: ApiClient):
        self.client = client

    async def login(self, data: dict) -> AuthResponse:
        return await self.client.post(
            "/auth/login", data, request_schema=LoginRequest, response_schema=AuthResponse
        )

    async def signup(self, data: dict) -> AuthResponse:
        return await self.client.post(
            "/auth/signup", data, request_schema=SignupRequest, response_schema=AuthResponse
        )

    async def logout(self) -> None:
        await self.client.post("/auth/logout")

    async def get_current_user(self) -> AuthUser | None:
        response = await self.client.get("/auth/me", response_schema=CurrentUserResponse)
        return response.user


class AuthService:
    def __init__(self, orchestrator: Orchestrator, api: AuthAPI | None = None):
        self.orchestrator = orchestrator
        self.api = api or AuthAPI(orchestrator.client)

        self.login: Mutation = orchestrator.run_mutation(
            self.api.login,
            on_success=self._store_session,
            on_error=self._drop_session,
            name="login",
        )
        self.signup: Mutation = orchestrator.run_mutation(
            self.api.signup,
            on_success=self._store_session,
            on_error=self._drop_session,
            name="signup",
        )
        self.logout: Mutation = orchestrator.run_mutation(
            self.api.logout,
            on_settled=self._end_session,
            name="logout",
        )

    def login_form(self, errors: FormErrors) -> Mutation:
        """Login mutation that reports failures on `errors` instead of a toast."""
        return self._form(self.api.login, errors, "login_form")

    def signup_form(self, errors: FormErrors) -> Mutation:
        return self._form(self.api.signup, errors, "signup_form")

    def _form(self, fn: Any, errors: FormErrors, name: str) -> Mutation:
        return form_mutation(
            self.orchestrator,
            fn,
            set_field_error=errors.set_field_error,
            set_server_error=errors.set_server_error,
            clear_errors=errors.clear,
            on_success=self._store_session,
            on_error=self._drop_session,
            name=name,
        )

    # ── Session bookkeeping ─────────────────────────────────────────────

    def _store_session(self, response: AuthResponse, variables: Any) -> None:
        if self.orchestrator.session is not None:
            self.orchestrator.session.set(Session(user=response.user, token=response.token))
        self.orchestrator.set_query_data(CURRENT_USER_QUERY_KEY, response.user)
        logger.info("Signed in as user {}", response.user.id)

    def _drop_session(self, error: AppError, variables: Any) -> None:
        if self.orchestrator.session is not None:
            self.orchestrator.session.clear()
        self.orchestrator.invalidate(CURRENT_USER_QUERY_KEY)

    def _end_session(self, data: Any, error: AppError | None, variables: Any) -> None:
        if error is not None:
            logger.warning("Logout call failed, clearing local session anyway: {}", error.message)
        if self.orchestrator.session is not None:
            self.orchestrator.session.clear()
        self.orchestrator.clear()

    # ── Queries ─────────────────────────────────────────────────────────

    async def current_user(self) -> QueryResult:
        return await self.orchestrator.run_query(
            CURRENT_USER_QUERY_KEY,
            self.api.get_current_user,
            retry=RetryPolicy.from_retries(1, self.orchestrator.retry.delay_seconds),
        )

    @property
    def user(self) -> AuthUser | None:
        session = self.orchestrator.session.get() if self.orchestrator.session else None
        return session.user if session else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
