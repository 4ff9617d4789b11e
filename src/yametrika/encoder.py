"""Encode a hit into the collector's form fields.

Field order and presence rules::

    cnt-class     counter class, when non-zero
    page-url      page URL, when non-empty
    page-ref      referrer, when non-empty
    browser-info  always; ``ar`` flag, other modes, ``en`` and ``t`` tokens
    site-info     JSON of the user parameters, when non-empty
    ut            raw index directive, when truthy

Every value except ``browser-info`` and ``ut`` is form-encoded; inside
``browser-info`` only the title is encoded.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional, Tuple, Union
from urllib.parse import quote_plus

from yametrika.hits import CounterIdentity, HitModes, HitPayload, ModeValue


def urlencode_value(value: Any, encoding: str = "utf-8") -> str:
    # characters the counter encoding lacks become &#NNNN; like a browser form
    return quote_plus(
        str(value), safe="", encoding=encoding, errors="xmlcharrefreplace"
    )


class WireFields:
    """Ordered form fields of one hit."""

    def __init__(self) -> None:
        self._fields: Dict[str, str] = {}

    def add(self, name: str, value: str) -> None:
        if value:
            self._fields[name] = value

    def __getitem__(self, name: str) -> str:
        return self._fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._fields.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._fields)

    def to_body(self) -> str:
        """Join as ``key=value&key=value``; values are already encoded."""
        return "&".join(f"{name}={value}" for name, value in self._fields.items())


class HitEncoder:
    """Turn a :class:`HitPayload` into :class:`WireFields`."""

    def __init__(self, identity: CounterIdentity) -> None:
        self.identity = identity

    def encode(
        self,
        page_url: str = "",
        title: Optional[str] = "",
        referer: str = "",
        user_params: Optional[Any] = None,
        modes: Optional[Union[HitModes, Dict[str, ModeValue]]] = None,
    ) -> WireFields:
        if not isinstance(modes, HitModes):
            modes = HitModes(modes)

        fields = WireFields()

        if self.identity.counter_class:
            fields.add("cnt-class", urlencode_value(self.identity.counter_class))

        if page_url:
            fields.add("page-url", self._quote(page_url))

        if referer:
            fields.add("page-ref", self._quote(referer))

        fields.add("browser-info", self.browser_info(modes, title))

        if user_params:
            fields.add("site-info", self._quote(self.dump_params(user_params)))

        ut = modes.index_directive
        if ut:
            fields.add("ut", str(ut))

        return fields

    def encode_payload(self, payload: HitPayload) -> WireFields:
        return self.encode(
            page_url=payload.page_url,
            title=payload.title,
            referer=payload.referer,
            user_params=payload.user_params,
            modes=payload.modes,
        )

    def browser_info(self, modes: HitModes, title: Optional[str] = "") -> str:
        tokens = modes.with_arrived().tokens()
        tokens.append(f"en:{self.identity.encoding}")
        if title:
            tokens.append(f"t:{self._quote(title)}")
        return ":".join(tokens)

    @staticmethod
    def dump_params(user_params: Any) -> str:
        return json.dumps(user_params, separators=(",", ":"))

    def _quote(self, value: Any) -> str:
        return urlencode_value(value, self.identity.encoding)
