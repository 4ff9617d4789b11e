"""Resolve hit URLs against the request being served.

Both helpers are pure: they never raise and never touch the network.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from yametrika.context import RequestContext

# ``name:`` followed by anything but a port number
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:(?!\d)")

# example.com, www.example.co.uk:8080
_DOMAIN_RE = re.compile(r"^[A-Za-z0-9\-]+(\.[A-Za-z0-9\-]+)+(:\d+)?$")


def current_url(context: RequestContext) -> str:
    """Return the absolute URL of the request described by *context*."""
    scheme = "https" if context.secure else "http"
    return f"{scheme}://{context.host}{context.request_uri}"


def has_scheme(url: str) -> bool:
    return bool(_SCHEME_RE.match(url))


def has_host(url: str) -> bool:
    """True for protocol-relative URLs and bare ``domain.tld/path`` forms."""
    if url.startswith("//"):
        return True
    first = re.split(r"[/?#]", url, maxsplit=1)[0]
    return bool(_DOMAIN_RE.match(first))


def absolute_url(url: str, base_url: str) -> str:
    """Convert a possibly relative *url* to an absolute one.

    *base_url* must itself be absolute (normally the output of
    :func:`current_url`).  An empty *url* yields ``""``.
    """
    if not url:
        return ""

    if has_scheme(url):
        return url

    if url.startswith("//"):
        return "http:" + url

    if has_host(url):
        return "http://" + url

    base = urlsplit(base_url)
    return f"{base.scheme}://{base.netloc}{url}"
