"""
conftest.py — Shared Test Fixtures for the storefront client

Provides settings with retry delays disabled, a scripted httpx
MockTransport router, an ApiClient/Orchestrator pair wired to it, and a
FastAPI stub storefront served through httpx.ASGITransport for end-to-end
cart and auth flows.

Business Rules:
- No test touches the network; every request is answered in-process
- Retry sleeps are recorded, never awaited, so retry tests run instantly
- Each test gets a fresh session store, cache and router

Called by: all test files via pytest autodiscovery
Depends on: storefront.api, storefront.orchestrator, fastapi (stub app)
"""

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.client import ApiClient
from storefront.config import Settings
from storefront.http_client import build_client
from storefront.orchestrator import Orchestrator
from storefront.schemas.auth import AuthUser
from storefront.session import MemorySessionStore, Session

BASE_URL = "http://storefront.test/api"
API_PREFIX = "/api"

TEST_USER = {"id": "u-1", "email": "ada@example.com", "name": "Ada"}
TEST_PASSWORD = "Secret1"
TEST_TOKEN = "tok-123"


# ── Payload factories ────────────────────────────────────────────────


def make_cart_item(item_id: int = 1, quantity: int = 1, unit_price: float = 100.0, images=None) -> dict:
    """Server-shaped cart line."""
    return {
        "id": item_id,
        "quantity": quantity,
        "unit_price": unit_price,
        "variants": {
            "id": item_id * 10,
            "sku": f"SKU-{item_id}",
            "price": unit_price,
            "product": {
                "id": item_id * 100,
                "title": f"Product {item_id}",
                "slug": f"product-{item_id}",
                "product_images": images if images is not None else [],
            },
            "variant_options": [],
        },
    }


def make_cart(*items: dict, cart_id: int = 1) -> dict:
    return {"id": cart_id, "items": list(items)}


# ── Scripted MockTransport ───────────────────────────────────────────


class Router:
    """Answers requests from per-route queues and records every call.

    Each queued item is an httpx.Response, an exception to raise, or a
    callable(request) -> Response. The last item of a queue repeats.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses) -> "Router":
        self.routes[(method.upper(), API_PREFIX + path)] = list(responses)
        return self

    def count(self, method: str, path: str) -> int:
        full = API_PREFIX + path
        return sum(1 for r in self.calls if r.method == method.upper() and r.url.path == full)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "not found"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(request)
        return item


@pytest.fixture
def settings():
    return Settings(_env_file=None, api_base_url=BASE_URL, retry_delay_seconds=0)


@pytest.fixture
def router():
    return Router()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def signed_in(session_store):
    """Session store pre-populated with TEST_USER."""
    session_store.set(Session(user=AuthUser(**TEST_USER), token=TEST_TOKEN))
    return session_store


@pytest.fixture
def api_client(settings, router, session_store):
    http = build_client(settings, transport=httpx.MockTransport(router))
    return ApiClient(http=http, settings=settings, session=session_store)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def orchestrator(api_client, settings, session_store, sleeps):
    async def _sleep(delay):
        sleeps.append(delay)

    return Orchestrator(api_client, session=session_store, settings=settings, sleep=_sleep)


# ── FastAPI stub storefront ──────────────────────────────────────────


def build_stub_storefront() -> FastAPI:
    """Tiny in-memory storefront backend speaking the real routes."""
    app = FastAPI()
    app.state.cart = make_cart(make_cart_item(1, 2, 100.0), make_cart_item(2, 1, 50.0))
    app.state.next_item_id = 3

    def _authorized(request: Request) -> bool:
        return request.headers.get("authorization") == f"Bearer {TEST_TOKEN}"

    def _unauthorized() -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    @app.post(API_PREFIX + "/auth/login")
    async def login(body: dict):
        if body.get("email") != TEST_USER["email"] or body.get("password") != TEST_PASSWORD:
            return JSONResponse(status_code=401, content={"error": "Invalid login credentials"})
        return {"user": TEST_USER, "token": TEST_TOKEN}

    @app.post(API_PREFIX + "/auth/signup")
    async def signup(body: dict):
        if body.get("email") == TEST_USER["email"]:
            return JSONResponse(status_code=409, content={"error": "User already registered"})
        return {"user": {"id": "u-2", "email": body["email"], "name": body["name"]}, "token": TEST_TOKEN}

    @app.post(API_PREFIX + "/auth/logout")
    async def logout():
        return {"ok": True}

    @app.get(API_PREFIX + "/auth/me")
    async def me(request: Request):
        if not _authorized(request):
            return _unauthorized()
        return {"user": TEST_USER}

    @app.get(API_PREFIX + "/carts")
    async def get_cart(request: Request):
        if not _authorized(request):
            return _unauthorized()
        return app.state.cart

    @app.post(API_PREFIX + "/carts")
    async def add_to_cart(request: Request, body: dict):
        if not _authorized(request):
            return _unauthorized()
        item = make_cart_item(app.state.next_item_id, body["quantity"], 75.0)
        app.state.next_item_id += 1
        app.state.cart["items"].append(item)
        return item

    @app.put(API_PREFIX + "/cart-items/{item_id}")
    async def update_item(item_id: int, request: Request, body: dict):
        if not _authorized(request):
            return _unauthorized()
        for item in app.state.cart["items"]:
            if item["id"] == item_id:
                item["quantity"] = body["quantity"]
                return item
        return JSONResponse(status_code=404, content={"error": "Cart item not found"})

    @app.delete(API_PREFIX + "/cart-items/{item_id}")
    async def delete_item(item_id: int, request: Request):
        if not _authorized(request):
            return _unauthorized()
        app.state.cart["items"] = [i for i in app.state.cart["items"] if i["id"] != item_id]
        return {"ok": True}

    return app


@pytest.fixture
def stub_app():
    return build_stub_storefront()


@pytest.fixture
def stub_orchestrator(stub_app, settings, session_store, sleeps):
    """Orchestrator whose client talks to the stub storefront over ASGI."""
    http = build_client(settings, transport=httpx.ASGITransport(app=stub_app))
    client = ApiClient(http=http, settings=settings, session=session_store)

    async def _sleep(delay):
        sleeps.append(delay)

    return Orchestrator(client, session=session_store, settings=settings, sleep=_sleep)


@pytest.fixture
def cart_item():
    """Factory for server-shaped cart lines: cart_item(id, quantity, unit_price)."""
    return make_cart_item


@pytest.fixture
def cart_payload():
    """Factory for a cart body: cart_payload(item, item, ...)."""
    return make_cart
