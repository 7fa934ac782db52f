"""Typed request executor — one validated HTTP call per invocation.

Every call:
  1. copies the descriptor with a fresh request id + start time
  2. validates the outbound payload (fails fast, no network I/O)
  3. issues exactly one request through the shared httpx client
  4. validates the inbound body against the response schema
  5. turns any failure into an AppError tagged with the request id

Retries are the orchestrator's job, never this module's.

Usage:
    from storefront.api import ApiClient
    client = ApiClient()
    cart = await client.get("/carts", response_schema=CartResponse)
    await client.put("/cart-items/7", {"quantity": 2}, request_schema=UpdateCartItemRequest)
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

import httpx
from loguru import logger

from storefront.config import Settings, get_settings
from storefront.errors import AppError, ErrorKind, decode_body, error_from_response, network_error
from storefront.http_client import get_client
from storefront.schemas.validation import dump, validate_or_raise
from storefront.session import SessionStore

METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one request. Built fresh by each caller."""

    url: str
    method: str = "GET"
    payload: Any = None
    params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None
    request_schema: Any = None
    response_schema: Any = None
    skip_validation: bool = False
    max_retries: int | None = None
    request_id: str | None = None
    started_at: float | None = None

    def __post_init__(self) -> None:
        method = self.method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        object.__setattr__(self, "method", method)

    def with_metadata(self) -> RequestDescriptor:
        """Copy carrying a new request id and start time for log correlation."""
        return replace(self, request_id=uuid.uuid4().hex, started_at=time.monotonic())

    @property
    def context(self) -> dict:
        return {"endpoint": self.url, "method": self.method, "request_id": self.request_id}


class ApiClient:
    """Validating wrapper around the shared httpx.AsyncClient."""

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
        session: SessionStore | None = None,
    ):
        self.settings = settings or get_settings()
        self._http = http
        self.session = session

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http or get_client()

    def _headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        headers = {"X-Request-ID": descriptor.request_id}
        current = self.session.get() if self.session else None
        if current is not None:
            headers["Authorization"] = f"Bearer {current.token}"
        if descriptor.headers:
            headers.update(descriptor.headers)
        return headers

    async def request(self, descriptor: RequestDescriptor) -> Any:
        d = descriptor.with_metadata()
        log = logger.bind(request_id=d.request_id)
        validating = self.settings.enable_validation and not d.skip_validation

        payload = d.payload
        if validating and d.request_schema is not None and payload is not None:
            payload = validate_or_raise(
                d.request_schema, payload, d.context,
                "Request validation failed", request_id=d.request_id,
            )
        payload = dump(payload)

        if self.settings.enable_logging:
            log.debug("API request {} {}", d.method, d.url, params=dict(d.params or {}))

        try:
            response = await self.http.request(
                d.method,
                d.url,
                json=payload,
                params=dict(d.params) if d.params else None,
                headers=self._headers(d),
            )
        except httpx.RequestError as exc:
            log.error(
                "API network error {} {}: {}", d.method, d.url, exc,
                duration_ms=self._elapsed_ms(d),
            )
            raise network_error(exc, request_id=d.request_id) from exc

        duration_ms = self._elapsed_ms(d)
        if response.is_error:
            error = error_from_response(
                response.status_code, decode_body(response), request_id=d.request_id
            )
            log.error(
                "API error response {} {} → {}", d.method, d.url, response.status_code,
                duration_ms=duration_ms, code=error.code,
            )
            raise error

        if self.settings.enable_logging:
            log.debug(
                "API response {} {} → {}", d.method, d.url, response.status_code,
                duration_ms=duration_ms,
            )

        data = self._read_json(response, d)
        if validating and d.response_schema is not None:
            return validate_or_raise(
                d.response_schema, data, d.context,
                "Response validation failed", request_id=d.request_id,
            )
        return data

    @staticmethod
    def _elapsed_ms(d: RequestDescriptor) -> int:
        return int((time.monotonic() - d.started_at) * 1000) if d.started_at else 0

    @staticmethod
    def _read_json(response: httpx.Response, d: RequestDescriptor) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise AppError(
                "Invalid JSON in API response",
                status=response.status_code,
                code="INVALID_RESPONSE",
                details={"body": response.text[:300]},
                request_id=d.request_id,
                kind=ErrorKind.UNKNOWN,
            ) from exc

    # ── Convenience methods ────────────────────────────────────────────

    async def get(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        response_schema: Any = None,
        **options: Any,
    ) -> Any:
        return await self.request(
            RequestDescriptor(
                url=url, method="GET", params=params,
                response_schema=response_schema, **options,
            )
        )

    async def post(
        self,
        url: str,
        data: Any = None,
        *,
        request_schema: Any = None,
        response_schema: Any = None,
        **options: Any,
    ) -> Any:
        return await self.request(
            RequestDescriptor(
                url=url, method="POST", payload=data,
                request_schema=request_schema, response_schema=response_schema, **options,
            )
        )

    async def put(
        self,
        url: str,
        data: Any = None,
        *,
        request_schema: Any = None,
        response_schema: Any = None,
        **options: Any,
    ) -> Any:
        return await self.request(
            RequestDescriptor(
                url=url, method="PUT", payload=data,
                request_schema=request_schema, response_schema=response_schema, **options,
            )
        )

    async def patch(
        self,
        url: str,
        data: Any = None,
        *,
        request_schema: Any = None,
        response_schema: Any = None,
        **options: Any,
    ) -> Any:
        return await self.request(
            RequestDescriptor(
                url=url, method="PATCH", payload=data,
                request_schema=request_schema, response_schema=response_schema, **options,
            )
        )

    async def delete(
        self,
        url: str,
        response_schema: Any = None,
        **options: Any,
    ) -> Any:
        return await self.request(
            RequestDescriptor(
                url=url, method="DELETE",
                response_schema=response_schema, **options,
            )
        )
