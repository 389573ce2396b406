"""Tests for HTTP middleware: security headers, request IDs, server time.

Learn: Rate limiting is skipped in tests (Redis is never initialized),
so we only test it with a fake Redis client.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from chatserver import cache


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "no-referrer"
    assert r.headers["Cache-Control"] == "no-store"
    assert r.headers["Pragma"] == "no-cache"


@pytest.mark.asyncio
async def test_index_is_not_marked_no_store(client):
    r = await client.get("/")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert "Pragma" not in r.headers


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    r = await client.get("/api/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_hsts_on_https(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        r = await ac.get("/api/health")
    assert r.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/health", headers={"X-Request-ID": "test-trace-12345"})
    assert r.headers["X-Request-ID"] == "test-trace-12345"


@pytest.mark.asyncio
async def test_server_time_header(client):
    r = await client.get("/")
    value = r.headers["X-Server-Time"]
    assert value.endswith("us")
    assert int(value[:-2]) >= 0


@pytest.mark.asyncio
async def test_request_id_on_auth_failure(client):
    """Short-circuited 401s still carry the tracing headers."""
    r = await client.get("/api/me")
    assert r.status_code == 401
    assert "X-Request-ID" in r.headers
    assert "X-Server-Time" in r.headers


# ═══════════════════════════════════════════════════════════
# Rate limiting
# ═══════════════════════════════════════════════════════════


class FakeRedis:
    def __init__(self):
        self.counts = {}

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, ttl):
        return True

    async def ping(self):
        return True


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "_redis", fake)
    return fake


@pytest.mark.asyncio
async def test_signin_rate_limited(client, fake_redis):
    body = {"email": "nobody@acme.org", "password": "x"}
    statuses = [(await client.post("/api/signin", json=body)).status_code for _ in range(11)]
    assert statuses[:10] == [403] * 10
    assert statuses[10] == 429


@pytest.mark.asyncio
async def test_rate_limit_headers(client, fake_redis):
    r = await client.get("/api/health")
    assert r.headers["X-RateLimit-Limit"] == "100"
    assert r.headers["X-RateLimit-Remaining"] == "99"
