"""Tests for MetrikaMiddleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from yametrika.client import AsyncMetrikaClient
from yametrika.middleware import MetrikaMiddleware


@pytest.fixture
def mock_transport():
    transport = MagicMock()
    transport.send = AsyncMock(return_value=True)
    return transport


@pytest.fixture
def metrika(mock_transport):
    return AsyncMetrikaClient(123456, transport=mock_transport)


@pytest.fixture
def app(metrika):
    async def context_view(request: Request):
        ctx = request.state.metrika.context
        return JSONResponse(
            {
                "secure": ctx.secure,
                "host": ctx.host,
                "request_uri": ctx.request_uri,
                "referer": ctx.referer,
                "user_ip": ctx.user_ip,
                "user_agent": ctx.user_agent,
            }
        )

    async def download(request: Request):
        ok = await request.state.metrika.file("/files/report.pdf")
        return JSONResponse({"ok": ok})

    return Starlette(
        routes=[
            Route("/context", context_view),
            Route("/download", download),
        ],
        middleware=[Middleware(MetrikaMiddleware, client=metrika)],
    )


class TestMetrikaMiddleware:
    def test_binds_request_context(self, app):
        with TestClient(app) as http:
            resp = http.get(
                "/context?a=1",
                headers={"referer": "https://ya.ru/", "user-agent": "agent/1.0"},
            )

        data = resp.json()
        assert data["secure"] is False
        assert data["host"] == "testserver"
        assert data["request_uri"] == "/context?a=1"
        assert data["referer"] == "https://ya.ru/"
        assert data["user_ip"] == "testclient"
        assert data["user_agent"] == "agent/1.0"

    def test_real_ip_header_preferred(self, app):
        with TestClient(app) as http:
            resp = http.get("/context", headers={"x-real-ip": "203.0.113.9"})

        assert resp.json()["user_ip"] == "203.0.113.9"

    def test_handler_sends_hit(self, app, mock_transport):
        with TestClient(app) as http:
            resp = http.get("/download")

        assert resp.json() == {"ok": True}
        args, kwargs = mock_transport.send.call_args
        assert "page-url=http%3A%2F%2Ftestserver%2Ffiles%2Freport.pdf" in args[2]
        assert "page-ref=http%3A%2F%2Ftestserver%2Fdownload" in args[2]
        assert kwargs["user_ip"] == "testclient"

    def test_shared_client_untouched(self, app, metrika):
        with TestClient(app) as http:
            http.get("/context")

        assert metrika.context.host == ""
