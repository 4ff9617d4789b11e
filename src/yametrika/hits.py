"""Hit data model: counter identity, mode flags and the per-call payload.

Mode flags end up in the colon-delimited ``browser-info`` token string
(``ar:1:ln:1:en:utf-8``).  Every hit carries the ``ar`` flag; ``ut`` is the
one mode that travels as its own form field instead of a token.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

ModeValue = Union[bool, int, str, None]

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ModeName(str, Enum):
    """Mode flags understood by the collector."""

    ARRIVED = "ar"
    LINK = "ln"
    DOWNLOAD = "dl"
    NOT_BOUNCE = "nb"
    PARAMS = "pa"
    INDEX_DIRECTIVE = "ut"  # sent as the ``ut`` field, never as a token


class ModeKind(str, Enum):
    FLAG = "flag"  # bare presence, rendered as ``name:1``
    VALUE = "value"  # rendered as ``name:value``
    ABSENT = "absent"  # dropped from the token list


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Mode:
    """A single mode entry tagged with its :class:`ModeKind`."""

    name: str
    value: ModeValue = True

    @property
    def kind(self) -> ModeKind:
        if self.value is True:
            return ModeKind.FLAG
        # "0" counts as empty for the collector, like 0 and ""
        if self.value is None or self.value is False or self.value in (0, "", "0"):
            return ModeKind.ABSENT
        return ModeKind.VALUE

    def token(self) -> Optional[str]:
        """Return ``name:value`` or None when the mode is absent."""
        kind = self.kind
        if kind is ModeKind.ABSENT:
            return None
        if kind is ModeKind.FLAG:
            return f"{self.name}:1"
        return f"{self.name}:{self.value}"


def _name(key: Union[str, ModeName]) -> str:
    return key.value if isinstance(key, ModeName) else str(key)


class HitModes:
    """Ordered collection of :class:`Mode` entries, keyed by name.

    Setting an existing name replaces its value in place, so insertion
    order is the order names were first seen.
    """

    def __init__(
        self, modes: Optional[Union[Mapping[Any, ModeValue], Iterable[Mode]]] = None
    ):
        self._modes: Dict[str, Mode] = {}
        if modes is None:
            return
        if isinstance(modes, Mapping):
            for key, value in modes.items():
                self.set(key, value)
        else:
            for mode in modes:
                self._modes[mode.name] = mode

    def set(self, name: Union[str, ModeName], value: ModeValue = True) -> None:
        key = _name(name)
        self._modes[key] = Mode(key, value)

    def get(self, name: Union[str, ModeName]) -> ModeValue:
        mode = self._modes.get(_name(name))
        return mode.value if mode else None

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, (str, ModeName)):
            return False
        return _name(name) in self._modes

    def __iter__(self) -> Iterator[Mode]:
        return iter(list(self._modes.values()))

    def __len__(self) -> int:
        return len(self._modes)

    def __bool__(self) -> bool:
        return bool(self._modes)

    def __repr__(self) -> str:
        inner = ", ".join(f"{m.name}={m.value!r}" for m in self)
        return f"HitModes({inner})"

    def with_arrived(self) -> "HitModes":
        """Return a copy with ``ar`` forced on.

        An empty collection becomes ``{ar: True}``.  A non-empty one keeps
        an existing ``ar`` entry in place (overwriting its value) or gets
        ``ar`` as its leading entry.
        """
        arrived = Mode(ModeName.ARRIVED.value, True)
        if not self:
            return HitModes([arrived])
        if ModeName.ARRIVED in self:
            modes = HitModes(list(self))
            modes.set(ModeName.ARRIVED, True)
            return modes
        return HitModes([arrived, *self])

    def tokens(self) -> List[str]:
        """Browser-info tokens for every present mode except ``ut``."""
        tokens = []
        for mode in self:
            if mode.name == ModeName.INDEX_DIRECTIVE.value:
                continue
            token = mode.token()
            if token is not None:
                tokens.append(token)
        return tokens

    @property
    def index_directive(self) -> ModeValue:
        """Raw ``ut`` value; read regardless of the token filtering."""
        return self.get(ModeName.INDEX_DIRECTIVE)


# ---------------------------------------------------------------------------
# Identity and payload
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CounterIdentity:
    """Collector-side counter a client reports to."""

    counter_id: Union[int, str]
    counter_class: int = 0
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Unknown counter encoding: {self.encoding!r}") from None


@dataclass
class HitPayload:
    """One hit, with URLs already resolved to absolute form."""

    page_url: str = ""
    referer: str = ""
    title: str = ""
    user_params: Optional[Any] = None
    modes: HitModes = field(default_factory=HitModes)
