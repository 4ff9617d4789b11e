"""FastAPI / Starlette middleware that binds a Metrika client per request.

The middleware does not record anything on its own; it captures the
request context and exposes a bound client to handlers.

Usage::

    from fastapi import FastAPI, Request
    from yametrika import AsyncMetrikaClient
    from yametrika.middleware import MetrikaMiddleware

    app = FastAPI()
    app.add_middleware(MetrikaMiddleware, client=AsyncMetrikaClient(123456))

    @app.get("/download/{name}")
    async def download(name: str, request: Request):
        await request.state.metrika.file(f"/files/{name}")
        ...
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from yametrika.context import RequestContext

logger = logging.getLogger(__name__)


def context_from_request(request: Request) -> RequestContext:
    """Snapshot a Starlette request into a :class:`RequestContext`."""
    headers = request.headers
    request_uri = request.url.path
    if request.url.query:
        request_uri = f"{request_uri}?{request.url.query}"

    user_ip = headers.get("x-real-ip", "")
    if not user_ip and request.client:
        user_ip = request.client.host

    return RequestContext(
        secure=request.url.scheme == "https",
        host=headers.get("host", "") or (request.url.netloc or ""),
        request_uri=request_uri,
        referer=headers.get("referer", ""),
        user_ip=user_ip or "",
        user_agent=headers.get("user-agent", ""),
    )


class MetrikaMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.metrika``, a client bound to the request."""

    def __init__(self, app: Any, client: Any, state_key: str = "metrika") -> None:
        super().__init__(app)
        self.client = client
        self.state_key = state_key

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            bound = self.client.with_context(context_from_request(request))
            setattr(request.state, self.state_key, bound)
        except Exception:
            logger.exception("Failed to bind Metrika client to request")
        return await call_next(request)
