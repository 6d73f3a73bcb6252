# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

"""
HTTP transport for SOAP clients.

Turns a "send this envelope to this endpoint" call into an HTTP exchange:
plain or MTOM (multipart/related with XOP) request bodies, an optional NTLM
handshake ahead of the real request and cleanup of the SOAP envelope in the
response. Responses can also be relayed as a byte stream.

The HTTP library used by the default executor is `httpx`_, NTLM messages are
produced by `pyspnego`_.

.. _httpx:
    https://github.com/encode/httpx

.. _pyspnego:
    https://github.com/jborean93/pyspnego
"""

from ._client import (
    HttpClient,
)

from ._completion import (
    Completion,
)

from ._encoding import (
    Attachment,
    MultipartBody,
    Part,
)

from ._executor import (
    CallableExecutor,
    Executor,
    HTTPXExecutor,
    HTTPXResponseStream,
    ResponseDescriptor,
)

from ._headers import (
    compose_headers,
)

from ._normalize import (
    normalize_envelope,
)

from ._ntlm import (
    NTLMHandshake,
)

from ._request import (
    NTLMOptions,
    RequestDescriptor,
    RequestOptions,
    build_request,
)

from ._stream import (
    ResponseStream,
)

from ._version import (
    __version__,
)

__all__ = [
    "Attachment",
    "CallableExecutor",
    "Completion",
    "Executor",
    "HTTPXExecutor",
    "HTTPXResponseStream",
    "HttpClient",
    "MultipartBody",
    "NTLMHandshake",
    "NTLMOptions",
    "Part",
    "RequestDescriptor",
    "RequestOptions",
    "ResponseDescriptor",
    "ResponseStream",
    "build_request",
    "compose_headers",
    "normalize_envelope",
    "__version__",
]
