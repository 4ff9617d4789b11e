"""yametrika — server-side hits for Yandex.Metrika.

Reports page views, goals, outbound links, file downloads, visit
parameters and non-bounce markers straight from the server, without the
browser tag.

Integration points (pick any or combine):
    1. Direct API          — MetrikaClient / AsyncMetrikaClient
    2. WSGI environ        — RequestContext.from_environ()
    3. Starlette middleware — binds a client to every request
"""

from yametrika.client import AsyncMetrikaClient, MetrikaClient
from yametrika.context import RequestContext
from yametrika.encoder import HitEncoder, WireFields
from yametrika.hits import CounterIdentity, HitModes, HitPayload, Mode, ModeKind, ModeName
from yametrika.transport import AsyncTransport, DeliveryStatus, Transport
from yametrika.urls import absolute_url, current_url


def __getattr__(name: str):
    if name == "MetrikaMiddleware":
        from yametrika.middleware import MetrikaMiddleware

        return MetrikaMiddleware
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "MetrikaClient",
    "AsyncMetrikaClient",
    "RequestContext",
    "HitEncoder",
    "WireFields",
    "CounterIdentity",
    "HitModes",
    "HitPayload",
    "Mode",
    "ModeKind",
    "ModeName",
    "Transport",
    "AsyncTransport",
    "DeliveryStatus",
    "absolute_url",
    "current_url",
    "MetrikaMiddleware",
]

__version__ = "0.1.0"
