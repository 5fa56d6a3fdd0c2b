"""
LoveAlbum Backend — Middleware Tests
=====================================

What we test:
    ✅ Rate limiting rejects with 429 + Retry-After and skips probes
    ✅ Request IDs are capped in length
    ✅ Admin paths get no-store headers, public paths do not
    ✅ The access log records one line per request
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.middleware.no_cache import NoCacheMiddleware, is_admin_path
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import MAX_CLIENT_ID_LENGTH, RequestIDMiddleware


def make_app(*middleware) -> FastAPI:
    app = FastAPI()
    for cls in middleware:
        app.add_middleware(cls)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/api/admin/ping")
    async def admin_ping():
        return {"ok": True}

    return app


def client_for(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_rejects_after_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 2)
        async with client_for(make_app(RateLimitMiddleware)) as client:
            assert (await client.get("/ping")).status_code == 200
            assert (await client.get("/ping")).status_code == 200
            response = await client.get("/ping")

        assert response.status_code == 429
        assert int(response.headers["retry-after"]) > 0
        assert response.json()["error"] == "rate_limit_exceeded"

    @pytest.mark.asyncio
    async def test_health_is_never_limited(self, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 1)
        async with client_for(make_app(RateLimitMiddleware)) as client:
            for _ in range(5):
                assert (await client.get("/health")).status_code == 200


class TestRequestID:

    @pytest.mark.asyncio
    async def test_long_client_id_truncated(self):
        async with client_for(make_app(RequestIDMiddleware)) as client:
            response = await client.get("/ping", headers={"X-Request-ID": "x" * 200})
        assert response.headers["x-request-id"] == "x" * MAX_CLIENT_ID_LENGTH


class TestNoCache:

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/admin", True),
            ("/admin/addAlbum", True),
            ("/api/admin/albums", True),
            ("/administrator", False),
            ("/api/albums", False),
        ],
    )
    def test_is_admin_path(self, path, expected):
        assert is_admin_path(path) is expected

    @pytest.mark.asyncio
    async def test_headers_only_on_admin_paths(self):
        async with client_for(make_app(NoCacheMiddleware)) as client:
            admin = await client.get("/api/admin/ping")
            public = await client.get("/ping")

        assert admin.headers["cache-control"].startswith("no-store")
        assert admin.headers["pragma"] == "no-cache"
        assert admin.headers["expires"] == "0"
        assert "cache-control" not in public.headers


class TestAccessLog:

    @pytest.mark.asyncio
    async def test_logs_requests_but_not_probes(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger="lovealbum.access")

        await test_client.get("/api/categories")
        await test_client.get("/health")

        lines = [r.getMessage() for r in caplog.records if r.name == "lovealbum.access"]
        assert len(lines) == 1
        assert lines[0].startswith("GET /api/categories 200")
