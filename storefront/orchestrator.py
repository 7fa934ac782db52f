"""
orchestrator.py — Query/mutation orchestration over the API client

Wraps query and mutation functions with caching, request de-duplication,
the retry policy and lifecycle states (idle → pending → success | error).

Business Rules:
- Two concurrent run_query() calls with the same key share one in-flight
  task; the function runs once and both callers get the same result
- Retries happen between attempts and are invisible to the caller, who
  only sees the terminal state
- Every error is passed through normalize_error() before it is exposed
- A 401 anywhere clears the session store and the whole query cache
- A query still in flight when its key is cleared or invalidated returns
  its result to the waiting callers but never writes it to the cache
- Mutations invalidate the query keys they declare, only on success
- A success callback that raises fails the mutation; callbacks that raise
  on the error path are logged and the original error stands
- Queries retry per the default policy (2 retries); mutations don't retry
  unless asked to

Called by: services/*, forms.py
Depends on: storefront.api.client, storefront.cache, storefront.retry,
            storefront.errors, storefront.session
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from loguru import logger

from storefront.api.client import ApiClient, RequestDescriptor
from storefront.cache.query_cache import QueryCache, make_key
from storefront.config import Settings, get_settings
from storefront.errors import AppError, normalize_error
from storefront.retry import NO_RETRY, RetryPolicy, is_unauthorized
from storefront.session import SessionStore

T = TypeVar("T")

QueryKey = Sequence[Any]
QueryFn = Callable[[], Awaitable[Any]] | RequestDescriptor


class QueryStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Lifecycle snapshot handed to consumers."""

    key: tuple
    status: QueryStatus
    data: T | None = None
    error: AppError | None = None
    attempts: int = 0

    @property
    def is_idle(self) -> bool:
        return self.status is QueryStatus.IDLE

    @property
    def is_loading(self) -> bool:
        return self.status is QueryStatus.PENDING

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Orchestrator:
    """Runs queries and mutations with one shared cache, session and policy."""

    def __init__(
        self,
        client: ApiClient | None = None,
        *,
        cache: QueryCache | None = None,
        session: SessionStore | None = None,
        retry: RetryPolicy | None = None,
        settings: Settings | None = None,
        on_unauthorized: Callable[[AppError], Any] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.session = session if session is not None else (client.session if client else None)
        self.client = client or ApiClient(settings=self.settings, session=self.session)
        self.cache = cache if cache is not None else QueryCache(self.settings.query_cache_size)
        self.retry = retry or RetryPolicy.from_settings(self.settings)
        self.on_unauthorized = on_unauthorized
        self._sleep = sleep
        self._inflight: dict[str, tuple[tuple, asyncio.Task]] = {}

    # ── Shared attempt loop ─────────────────────────────────────────────

    def _policy_for(self, fn: QueryFn, retry: RetryPolicy | None, default: RetryPolicy) -> RetryPolicy:
        if retry is not None:
            return retry
        if isinstance(fn, RequestDescriptor) and fn.max_retries is not None:
            return RetryPolicy.from_retries(fn.max_retries, default.delay_seconds)
        return default

    async def _invoke(self, fn: Callable[..., Awaitable[Any]] | RequestDescriptor, *args: Any) -> Any:
        if isinstance(fn, RequestDescriptor):
            return await self.client.request(fn)
        return await fn(*args)

    async def _run_with_retry(
        self,
        label: str,
        fn: Callable[..., Awaitable[Any]] | RequestDescriptor,
        policy: RetryPolicy,
        *args: Any,
    ) -> tuple[Any, AppError | None, int]:
        """Call `fn` until it succeeds or the policy gives up.

        Returns (data, error, attempts); exactly one of data/error is meaningful.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._invoke(fn, *args), None, attempt
            except Exception as exc:
                error = normalize_error(exc)
                if is_unauthorized(error):
                    await self._handle_unauthorized(error)
                if not policy.should_retry(attempt, error):
                    return None, error, attempt
                delay = policy.delay(attempt)
                logger.info(
                    "Retrying {} (attempt {} of {}) in {}s: {}",
                    label, attempt + 1, policy.max_attempts, delay, error.message,
                )
                await self._sleep(delay)

    async def _handle_unauthorized(self, error: AppError) -> None:
        logger.warning("401 received — clearing session and query cache")
        if self.session is not None:
            self.session.clear()
        self.clear()
        if self.on_unauthorized is not None:
            await maybe_await(self.on_unauthorized(error))

    # ── Queries ─────────────────────────────────────────────────────────

    async def run_query(
        self,
        key: QueryKey,
        fn: QueryFn,
        *,
        retry: RetryPolicy | None = None,
        stale_time: float | None = None,
        enabled: bool = True,
    ) -> QueryResult:
        """Fetch `key` with `fn` (an async callable or a RequestDescriptor)."""
        key_tuple = tuple(key)
        if not enabled:
            return QueryResult(key=key_tuple, status=QueryStatus.IDLE)

        stale_time = self.settings.query_stale_seconds if stale_time is None else stale_time
        if stale_time > 0:
            entry = self.cache.get(key_tuple, max_age=stale_time)
            if entry is not None:
                return QueryResult(key=key_tuple, status=QueryStatus.SUCCESS, data=entry.value)

        cache_key = make_key(key_tuple)
        inflight = self._inflight.get(cache_key)
        if inflight is None:
            policy = self._policy_for(fn, retry, self.retry)
            task = asyncio.create_task(self._fetch(key_tuple, fn, policy))
            self._inflight[cache_key] = (key_tuple, task)
            task.add_done_callback(lambda t, k=cache_key: self._forget(k, t))
        else:
            task = inflight[1]
            logger.debug("Joining in-flight query {}", cache_key)
        return await asyncio.shield(task)

    def _forget(self, cache_key: str, task: asyncio.Task) -> None:
        inflight = self._inflight.get(cache_key)
        if inflight is not None and inflight[1] is task:
            del self._inflight[cache_key]

    def _detach(self, prefix: tuple | None = None) -> None:
        """Stop in-flight queries under `prefix` (all when None) from writing the cache.

        The tasks keep running for the callers already awaiting them; later
        callers start a fresh fetch.
        """
        n = 0 if prefix is None else len(prefix)
        for cache_key, (key, _) in list(self._inflight.items()):
            if key[:n] == (prefix or ()):
                del self._inflight[cache_key]
                logger.debug("Detached in-flight query {}", cache_key)

    async def _fetch(self, key: tuple, fn: QueryFn, policy: RetryPolicy) -> QueryResult:
        label = f"query {make_key(key)}"
        data, error, attempts = await self._run_with_retry(label, fn, policy)
        if error is not None:
            logger.warning("Query {} failed after {} attempt(s): {}", make_key(key), attempts, error.message)
            return QueryResult(key=key, status=QueryStatus.ERROR, error=error, attempts=attempts)
        inflight = self._inflight.get(make_key(key))
        if inflight is not None and inflight[1] is asyncio.current_task():
            self.cache.set(key, data)
        else:
            logger.debug("Query {} was invalidated while in flight; result not cached", make_key(key))
        return QueryResult(key=key, status=QueryStatus.SUCCESS, data=data, attempts=attempts)

    def query_state(self, key: QueryKey) -> QueryResult:
        """Current lifecycle state of `key` without triggering a fetch."""
        key_tuple = tuple(key)
        if make_key(key_tuple) in self._inflight:
            return QueryResult(key=key_tuple, status=QueryStatus.PENDING)
        entry = self.cache.get(key_tuple)
        if entry is not None:
            return QueryResult(key=key_tuple, status=QueryStatus.SUCCESS, data=entry.value)
        return QueryResult(key=key_tuple, status=QueryStatus.IDLE)

    def get_query_data(self, key: QueryKey) -> Any:
        entry = self.cache.get(key)
        return entry.value if entry is not None else None

    def set_query_data(self, key: QueryKey, value: Any) -> None:
        self.cache.set(key, value)

    def invalidate(self, prefix: QueryKey) -> int:
        prefix_tuple = (prefix,) if isinstance(prefix, str) else tuple(prefix)
        self._detach(prefix_tuple)
        return self.cache.invalidate(prefix_tuple)

    def clear(self) -> None:
        self._detach()
        self.cache.clear()

    # ── Mutations ───────────────────────────────────────────────────────

    def run_mutation(
        self,
        fn: Callable[..., Awaitable[T]],
        *,
        retry: RetryPolicy | None = None,
        invalidates: Sequence[QueryKey] = (),
        on_success: Callable[..., Any] | None = None,
        on_error: Callable[..., Any] | None = None,
        on_settled: Callable[..., Any] | None = None,
        name: str | None = None,
    ) -> Mutation[T]:
        return Mutation(
            self,
            fn,
            retry=retry or NO_RETRY,
            invalidates=invalidates,
            on_success=on_success,
            on_error=on_error,
            on_settled=on_settled,
            name=name or getattr(fn, "__name__", "mutation"),
        )


class Mutation(Generic[T]):
    """A reusable mutation handle. Each mutate() starts a fresh pending cycle.

    Callbacks may be sync or async:
        on_success(data, variables)
        on_error(error, variables)
        on_settled(data, error, variables)
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        fn: Callable[..., Awaitable[T]],
        *,
        retry: RetryPolicy,
        invalidates: Sequence[QueryKey],
        on_success: Callable[..., Any] | None,
        on_error: Callable[..., Any] | None,
        on_settled: Callable[..., Any] | None,
        name: str,
    ):
        self._orchestrator = orchestrator
        self._fn = fn
        self.retry = retry
        self.invalidates = tuple(tuple(k) for k in invalidates)
        self._on_success = on_success
        self._on_error = on_error
        self._on_settled = on_settled
        self.name = name
        self.reset()

    def reset(self) -> None:
        self.status = QueryStatus.IDLE
        self.data: T | None = None
        self.error: AppError | None = None
        self.variables: Any = None

    @property
    def is_idle(self) -> bool:
        return self.status is QueryStatus.IDLE

    @property
    def is_pending(self) -> bool:
        return self.status is QueryStatus.PENDING

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR

    async def mutate_async(
        self,
        variables: Any = None,
        *,
        on_success: Callable[..., Any] | None = None,
        on_error: Callable[..., Any] | None = None,
        on_settled: Callable[..., Any] | None = None,
    ) -> T:
        """Run the mutation; raises the normalized AppError on failure."""
        self.status = QueryStatus.PENDING
        self.data = None
        self.error = None
        self.variables = variables

        args = () if variables is None else (variables,)
        data, error, _ = await self._orchestrator._run_with_retry(
            f"mutation {self.name}", self._fn, self.retry, *args
        )
        if error is None:
            self.status = QueryStatus.SUCCESS
            self.data = data
            for key in self.invalidates:
                self._orchestrator.invalidate(key)
            error = await self._call_hooks((self._on_success, on_success), data, variables)
            if error is None:
                error = await self._call_hooks((self._on_settled, on_settled), data, None, variables)
                if error is None:
                    return data
                self._fail(error)
                raise error

        self._fail(error)
        await self._call_hooks((self._on_error, on_error), error, variables)
        await self._call_hooks((self._on_settled, on_settled), None, error, variables)
        raise error

    def _fail(self, error: AppError) -> None:
        self.status = QueryStatus.ERROR
        self.data = None
        self.error = error
        logger.error("Mutation {} failed: {}", self.name, error.message)

    async def _call_hooks(self, hooks: tuple, *args: Any) -> AppError | None:
        """Run every hook; the first one that raises is returned normalized."""
        failure = None
        for hook in hooks:
            if hook is None:
                continue
            try:
                await maybe_await(hook(*args))
            except Exception as exc:
                logger.opt(exception=exc).error(
                    "Mutation {} callback {} raised", self.name, getattr(hook, "__name__", repr(hook))
                )
                if failure is None:
                    failure = normalize_error(exc)
        return failure

    async def mutate(self, variables: Any = None, **callbacks: Any) -> T | None:
        """Like mutate_async, but a failure is reported through state and callbacks."""
        try:
            return await self.mutate_async(variables, **callbacks)
        except AppError:
            return None
