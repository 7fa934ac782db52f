"""Shared HTTP client — connection pooling for all backend requests.

One lazily built httpx.AsyncClient bound to the configured API base URL.
The timeout ceiling comes from settings (10s by default); exceeding it
surfaces as an httpx.TimeoutException, which the API client turns into a
network-class AppError.

Usage:
    from storefront.http_client import get_client
    resp = await get_client().get("/carts")
"""

import httpx

from storefront.config import Settings, get_settings

_LIMITS = httpx.Limits(
    max_connections=50,
    max_keepalive_connections=20,
    keepalive_expiry=30,
)

_client: httpx.AsyncClient | None = None


def build_client(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient with the storefront defaults.

    `transport` lets tests plug in httpx.MockTransport or an ASGI app.
    """
    settings = settings or get_settings()
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
        limits=_LIMITS,
        follow_redirects=False,
        headers={"Content-Type": "application/json"},
        transport=transport,
    )


def get_client() -> httpx.AsyncClient:
    """Return the process-wide client, building it on first use."""
    global _client
    if _client is None or _client.is_closed:
        _client = build_client()
    return _client


async def close_client():
    """Shut down the shared client. Call from the host's shutdown hook."""
    global _client
    if _client is None:
        return
    try:
        await _client.aclose()
    except RuntimeError:
        pass
    _client = None
