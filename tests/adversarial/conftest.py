"""
Shared fixtures for adversarial tests.

Provides a full application wired onto fake upstreams for brute force
and concurrency tests. No database or network is required.
"""

from collections.abc import Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from claimgate.adapters.ratelimit.memory import InMemoryRateLimitStore
from claimgate.adapters.session.memory import InMemorySessionStore
from claimgate.api.main import app
from claimgate.config.settings import get_settings

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial

SHOP = "claimgate-adversarial.myshopify.com"


def upstream(request: httpx.Request) -> httpx.Response:
    """One claimable order (#1234 for a@b.com) and one user (builder_bob)."""
    host = request.url.host
    if host == SHOP:
        orders = []
        if request.url.params["name"] == "#1234":
            orders = [{"financial_status": "paid", "fulfillment_status": None, "email": "a@b.com"}]
        return httpx.Response(200, json={"orders": orders})
    if host == "users.roblox.com":
        if b"builder_bob" in request.content:
            return httpx.Response(200, json={"data": [{"id": 42, "name": "builder_bob", "displayName": "Bob"}]})
        return httpx.Response(200, json={"data": []})
    if host == "thumbnails.roblox.com":
        return httpx.Response(200, json={"data": [{"targetId": 42, "imageUrl": "https://cdn/avatar.png"}]})
    return httpx.Response(404)


@pytest.fixture
def app_client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Application client with five attempts per session and per client window."""
    monkeypatch.setenv("SHOPIFY_STORE_DOMAIN", SHOP)
    monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "shpat_test")
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "")
    monkeypatch.setenv("RATE_LIMIT_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("SESSION_MAX_ATTEMPTS", "5")
    get_settings.cache_clear()

    http_client = httpx.Client(transport=httpx.MockTransport(upstream))
    app.state.http_client = http_client
    app.state.pool = None
    app.state.rate_limit_store = InMemoryRateLimitStore()
    app.state.session_store = InMemorySessionStore()

    yield TestClient(app)

    http_client.close()
    get_settings.cache_clear()
