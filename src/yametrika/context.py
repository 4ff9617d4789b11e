"""Snapshot of the inbound request a hit is reported for."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class RequestContext:
    """Ambient request values a hit needs.

    Built once per inbound request by the hosting application (or by
    :class:`yametrika.middleware.MetrikaMiddleware`) and never mutated.
    """

    secure: bool = False
    host: str = ""
    request_uri: str = ""  # path + query string
    referer: str = ""
    user_ip: str = ""
    user_agent: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any]) -> "RequestContext":
        """Build a context from a WSGI / CGI environ mapping."""
        https = str(environ.get("HTTPS", "") or "")
        secure = https.lower() not in ("", "off") or (
            environ.get("wsgi.url_scheme") == "https"
        )

        request_uri = environ.get("REQUEST_URI") or ""
        if not request_uri:
            request_uri = environ.get("PATH_INFO", "") or ""
            query = environ.get("QUERY_STRING", "")
            if query:
                request_uri = f"{request_uri}?{query}"

        return cls(
            secure=secure,
            host=environ.get("HTTP_HOST", "") or environ.get("SERVER_NAME", ""),
            request_uri=request_uri,
            referer=environ.get("HTTP_REFERER", ""),
            user_ip=environ.get("REMOTE_ADDR", ""),
            user_agent=environ.get("HTTP_USER_AGENT", ""),
        )
