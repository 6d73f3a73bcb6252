# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import httpx
import typing

from urllib.parse import urlparse

from ._version import __version__

HeaderTypes = typing.Union[
    httpx.Headers,
    typing.Mapping[str, str],
    typing.Sequence[typing.Tuple[str, str]],
]

DEFAULT_USER_AGENT = "soaphttp/%s" % __version__
ACCEPT = "text/html,application/xhtml+xml,application/xml,text/xml;q=0.9,*/*;q=0.8"


def host_header(
    url: str,
) -> str:
    """Value for the Host header of the URL.

    The port is appended whenever the URL spells one out, even the default
    port of the scheme (`http://host:80/` gives `host:80`).
    """
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if ":" in host:
        # IPv6 literals need their brackets back.
        host = "[%s]" % host

    if parsed.port is not None:
        host = "%s:%d" % (host, parsed.port)

    return host


def merge_headers(
    headers: httpx.Headers,
    extra: typing.Optional[HeaderTypes],
) -> httpx.Headers:
    """Set each extra header on `headers`, replacing same named headers regardless of case."""
    if extra:
        items = extra.items() if hasattr(extra, "items") else extra
        for name, value in items:
            headers[name] = value

    return headers


def compose_headers(
    url: str,
    extra_headers: typing.Optional[HeaderTypes] = None,
    persistent_connection: bool = False,
    user_agent: typing.Optional[str] = None,
) -> httpx.Headers:
    """Build the base header set for a SOAP request.

    Args:
        url: The target URL, used for the Host header.
        extra_headers: Headers applied over the base set.
        persistent_connection: Ask for a keep-alive connection instead of close.
        user_agent: Override the client identity string.

    Returns:
        httpx.Headers: A fresh, case-insensitive header collection.
    """
    headers = httpx.Headers(
        {
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
            "Accept": ACCEPT,
            "Accept-Encoding": "none",
            "Accept-Charset": "utf-8",
            "Connection": "keep-alive" if persistent_connection else "close",
            "Host": host_header(url),
        }
    )

    return merge_headers(headers, extra_headers)
