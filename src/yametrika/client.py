"""MetrikaClient — the main entry point for reporting hits.

Each operation resolves URLs against the bound :class:`RequestContext`,
encodes the hit and hands it to the transport.  Operations return ``True``
when the hit was written to the collector and ``False`` otherwise; missing
required input short-circuits to ``False`` without touching the network.
"""

from __future__ import annotations

import abc
import copy
import logging
import os
import random
from typing import Any, Dict, Optional, Union

from yametrika.context import RequestContext
from yametrika.encoder import HitEncoder
from yametrika.hits import CounterIdentity, HitModes, HitPayload, ModeName
from yametrika.transport import DEFAULT_HOST, AsyncTransport, Transport
from yametrika.urls import absolute_url, current_url

logger = logging.getLogger(__name__)

WATCH_PATH = "/watch/"
RANDOM_MAX = 100_000


class _BaseMetrikaClient(abc.ABC):
    """Payload construction shared by the blocking and async clients."""

    def __init__(
        self,
        counter_id: Union[int, str],
        counter_class: int = 0,
        encoding: str = "utf-8",
        *,
        context: Optional[RequestContext] = None,
        transport: Any = None,
        host: str = DEFAULT_HOST,
    ):
        self.identity = CounterIdentity(counter_id, counter_class, encoding)
        self.context = context or RequestContext()
        self.host = host
        self.encoder = HitEncoder(self.identity)
        self._transport = transport or self._default_transport()

    @classmethod
    def from_env(cls, **kwargs):
        """Create a client from ``YAMETRIKA_*`` environment variables."""
        return cls(
            os.environ["YAMETRIKA_COUNTER_ID"],
            int(os.environ.get("YAMETRIKA_COUNTER_CLASS", "0") or 0),
            os.environ.get("YAMETRIKA_ENCODING", "utf-8"),
            **kwargs,
        )

    @abc.abstractmethod
    def _default_transport(self):
        """Transport used when the caller does not supply one."""

    def with_context(self, context: RequestContext):
        """Return a client bound to *context*, sharing identity and transport."""
        clone = copy.copy(self)
        clone.context = context
        return clone

    @property
    def counter_id(self) -> Union[int, str]:
        return self.identity.counter_id

    def build_path(self) -> str:
        rn = random.randint(0, RANDOM_MAX)
        return f"{WATCH_PATH}{self.identity.counter_id}/1?rn={rn}&wmode=2"

    # ------------------------------------------------------------------ #
    # Payload builders (None means "skip, nothing to send")
    # ------------------------------------------------------------------ #

    def _hit_payload(
        self,
        page_url: Optional[str],
        title: Optional[str],
        referer: Optional[str],
        user_params: Optional[Any],
        ut: Optional[str],
    ) -> HitPayload:
        current = current_url(self.context)
        if page_url is None:
            page_url = current
        if referer is None:
            referer = self.context.referer
        return HitPayload(
            page_url=absolute_url(page_url, current),
            referer=absolute_url(referer, current),
            title=title or "",
            user_params=user_params,
            modes=HitModes({ModeName.INDEX_DIRECTIVE: ut}),
        )

    def _goal_payload(self, target: str, user_params: Optional[Any]) -> HitPayload:
        if target:
            page_url = f"goal://{self.context.host}/{target}"
            referer = current_url(self.context)
        else:
            page_url = current_url(self.context)
            referer = self.context.referer
        return HitPayload(page_url=page_url, referer=referer, user_params=user_params)

    def _ext_link_payload(self, url: str, title: Optional[str]) -> Optional[HitPayload]:
        if not url:
            logger.debug("External link hit skipped: empty url")
            return None
        return HitPayload(
            page_url=url,
            referer=current_url(self.context),
            title=title or "",
            modes=HitModes({ModeName.LINK: True, ModeName.INDEX_DIRECTIVE: "noindex"}),
        )

    def _file_payload(self, file_url: str, title: Optional[str]) -> Optional[HitPayload]:
        if not file_url:
            logger.debug("File download hit skipped: empty url")
            return None
        current = current_url(self.context)
        return HitPayload(
            page_url=absolute_url(file_url, current),
            referer=current,
            title=title or "",
            modes=HitModes({ModeName.DOWNLOAD: True, ModeName.LINK: True}),
        )

    def _params_payload(self, data: Optional[Dict[str, Any]]) -> Optional[HitPayload]:
        if not data:
            logger.debug("Visit params hit skipped: no data")
            return None
        return HitPayload(user_params=data, modes=HitModes({ModeName.PARAMS: True}))

    def _not_bounce_payload(self) -> HitPayload:
        return HitPayload(modes=HitModes({ModeName.NOT_BOUNCE: True}))

    def _request_args(self, payload: HitPayload):
        body = self.encoder.encode_payload(payload).to_body()
        return (self.host, self.build_path(), body), {
            "user_ip": self.context.user_ip,
            "user_agent": self.context.user_agent,
        }


class MetrikaClient(_BaseMetrikaClient):
    """Sends hits for one counter over a blocking transport.

    Usage::

        counter = MetrikaClient(123456, context=RequestContext.from_environ(environ))
        counter.hit()  # current URL and referer
        counter.hit("/index.html", "Main page", "/back.html")
        counter.reach_goal("back")
        counter.ext_link("http://yandex.ru")
        counter.file("/file.zip")
        counter.params({"level1": {"level2": 1}})
        counter.not_bounce()
    """

    def _default_transport(self) -> Transport:
        return Transport()

    @property
    def transport(self) -> Transport:
        return self._transport

    def hit(
        self,
        page_url: Optional[str] = None,
        title: Optional[str] = None,
        referer: Optional[str] = None,
        user_params: Optional[Any] = None,
        ut: Optional[str] = "",
    ) -> bool:
        """Page view.  ``None`` url/referer default to the current request."""
        return self._send(self._hit_payload(page_url, title, referer, user_params, ut))

    def reach_goal(self, target: str = "", user_params: Optional[Any] = None) -> bool:
        return self._send(self._goal_payload(target, user_params))

    def ext_link(self, url: str = "", title: Optional[str] = "") -> bool:
        """Outbound link, reported without indexing."""
        return self._send(self._ext_link_payload(url, title))

    def file(self, file_url: str = "", title: Optional[str] = "") -> bool:
        return self._send(self._file_payload(file_url, title))

    def params(self, data: Optional[Dict[str, Any]]) -> bool:
        """Visit parameters only; no page is recorded."""
        return self._send(self._params_payload(data))

    def not_bounce(self) -> bool:
        return self._send(self._not_bounce_payload())

    page_hit = hit
    external_link = ext_link
    file_download = file
    report_params = params

    def _send(self, payload: Optional[HitPayload]) -> bool:
        if payload is None:
            return False
        args, kwargs = self._request_args(payload)
        return self._transport.send(*args, **kwargs)


class AsyncMetrikaClient(_BaseMetrikaClient):
    """Coroutine flavour of :class:`MetrikaClient` for asyncio servers."""

    def _default_transport(self) -> AsyncTransport:
        return AsyncTransport()

    @property
    def transport(self) -> AsyncTransport:
        return self._transport

    async def hit(
        self,
        page_url: Optional[str] = None,
        title: Optional[str] = None,
        referer: Optional[str] = None,
        user_params: Optional[Any] = None,
        ut: Optional[str] = "",
    ) -> bool:
        return await self._send(
            self._hit_payload(page_url, title, referer, user_params, ut)
        )

    async def reach_goal(self, target: str = "", user_params: Optional[Any] = None) -> bool:
        return await self._send(self._goal_payload(target, user_params))

    async def ext_link(self, url: str = "", title: Optional[str] = "") -> bool:
        return await self._send(self._ext_link_payload(url, title))

    async def file(self, file_url: str = "", title: Optional[str] = "") -> bool:
        return await self._send(self._file_payload(file_url, title))

    async def params(self, data: Optional[Dict[str, Any]]) -> bool:
        return await self._send(self._params_payload(data))

    async def not_bounce(self) -> bool:
        return await self._send(self._not_bounce_payload())

    page_hit = hit
    external_link = ext_link
    file_download = file
    report_params = params

    async def _send(self, payload: Optional[HitPayload]) -> bool:
        if payload is None:
            return False
        args, kwargs = self._request_args(payload)
        return await self._transport.send(*args, **kwargs)
