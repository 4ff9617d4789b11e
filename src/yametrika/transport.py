"""HTTPS delivery of encoded hits to the collector.

Fire-and-forget: a hit counts as sent once the request has been written.
The response is drained in small chunks and otherwise ignored.  Status
codes are never checked and a failure while reading the response does not
turn a written hit into a failed one.

Every call opens its own connection and closes it before returning.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HOST = "mc.yandex.ru"
CONNECT_TIMEOUT = 3.0
DEFAULT_TIMEOUT = 10.0
CHUNK_SIZE = 1024

# Request could not reach the collector at all
_CONNECT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.PoolTimeout,
    httpx.ProxyError,
    httpx.UnsupportedProtocol,
)

# Connection opened, request not fully written
_WRITE_ERRORS = (
    httpx.WriteError,
    httpx.WriteTimeout,
    httpx.LocalProtocolError,
)

# Request written, response unreadable
_DRAIN_ERRORS = (
    httpx.ReadError,
    httpx.ReadTimeout,
    httpx.RemoteProtocolError,
    httpx.CloseError,
    httpx.DecodingError,
    httpx.StreamError,
)


class DeliveryStatus(str, Enum):
    """Outcome of a single delivery attempt."""

    SENT = "sent"
    UNDRAINED = "undrained"  # written, response read failed
    CONNECT_FAILED = "connect_failed"
    WRITE_FAILED = "write_failed"

    @property
    def ok(self) -> bool:
        return self in (DeliveryStatus.SENT, DeliveryStatus.UNDRAINED)


def header_bytes(value: Optional[str]) -> bytes:
    """Encode a caller-supplied header value; unmappable characters become ``?``."""
    return (value or "").encode("latin-1", "replace")


def build_headers(
    body: bytes, host: str, user_ip: str, user_agent: str
) -> Dict[str, Union[str, bytes]]:
    return {
        "Host": host,
        "X-Real-IP": header_bytes(user_ip),
        "User-Agent": header_bytes(user_agent),
        "Content-Type": "application/x-www-form-urlencoded",
        "Content-Length": str(len(body)),
        "Connection": "close",
    }


def _classify(exc: Union[httpx.HTTPError, httpx.StreamError], url: str) -> DeliveryStatus:
    if isinstance(exc, _CONNECT_ERRORS):
        logger.warning("Metrika connect to %s failed: %s", url, exc)
        return DeliveryStatus.CONNECT_FAILED
    if isinstance(exc, _WRITE_ERRORS):
        logger.warning("Metrika hit write to %s failed: %s", url, exc)
        return DeliveryStatus.WRITE_FAILED
    if isinstance(exc, _DRAIN_ERRORS):
        logger.debug("Metrika response from %s not drained: %s", url, exc)
        return DeliveryStatus.UNDRAINED
    logger.exception("Unexpected error sending Metrika hit to %s", url)
    return DeliveryStatus.WRITE_FAILED


class _BaseTransport:
    def __init__(
        self,
        *,
        connect_timeout: float = CONNECT_TIMEOUT,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self.chunk_size = chunk_size

    @staticmethod
    def _url(host: str, path: str) -> str:
        return f"https://{host}{path}"

    @staticmethod
    def _encode(body: str) -> bytes:
        return body.encode("utf-8")


class Transport(_BaseTransport):
    """Blocking transport backed by :class:`httpx.Client`.

    *transport* is handed to every per-hit client; tests pass an
    :class:`httpx.MockTransport` here.
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None, **kwargs):
        super().__init__(**kwargs)
        self._transport = transport

    def deliver(
        self, host: str, path: str, body: str, *, user_ip: str = "", user_agent: str = ""
    ) -> DeliveryStatus:
        url = self._url(host, path)
        content = self._encode(body)
        headers = build_headers(content, host, user_ip, user_agent)
        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                with client.stream("POST", url, content=content, headers=headers) as response:
                    for _ in response.iter_bytes(self.chunk_size):
                        pass
        except (httpx.HTTPError, httpx.StreamError) as exc:
            return _classify(exc, url)
        logger.debug("Metrika hit sent to %s (%d bytes)", url, len(content))
        return DeliveryStatus.SENT

    def send(
        self, host: str, path: str, body: str, *, user_ip: str = "", user_agent: str = ""
    ) -> bool:
        return self.deliver(host, path, body, user_ip=user_ip, user_agent=user_agent).ok


class AsyncTransport(_BaseTransport):
    """Coroutine transport backed by :class:`httpx.AsyncClient`."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, **kwargs):
        super().__init__(**kwargs)
        self._transport = transport

    async def deliver(
        self, host: str, path: str, body: str, *, user_ip: str = "", user_agent: str = ""
    ) -> DeliveryStatus:
        url = self._url(host, path)
        content = self._encode(body)
        headers = build_headers(content, host, user_ip, user_agent)
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout
            ) as client:
                async with client.stream(
                    "POST", url, content=content, headers=headers
                ) as response:
                    async for _ in response.aiter_bytes(self.chunk_size):
                        pass
        except (httpx.HTTPError, httpx.StreamError) as exc:
            return _classify(exc, url)
        logger.debug("Metrika hit sent to %s (%d bytes)", url, len(content))
        return DeliveryStatus.SENT

    async def send(
        self, host: str, path: str, body: str, *, user_ip: str = "", user_agent: str = ""
    ) -> bool:
        status = await self.deliver(
            host, path, body, user_ip=user_ip, user_agent=user_agent
        )
        return status.ok
