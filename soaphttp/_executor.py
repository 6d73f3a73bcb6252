# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import abc
import httpx
import inspect
import logging
import typing

from ._request import (
    RequestDescriptor,
)

from ._utils import (
    loop_time,
    map_exceptions,
)

from .exceptions import (
    TransportError,
)

log = logging.getLogger(__name__)

EXCEPTION_MAP = {httpx.TransportError: TransportError}


class ResponseDescriptor(typing.NamedTuple):
    """The outcome of one HTTP exchange.

    `body` is the raw body as produced by the executor: a `str`, `bytes` or
    an async byte stream that hasn't been read yet.
    """

    status_code: int
    status_message: str
    elapsed_time_ms: float
    request_headers: httpx.Headers
    response_headers: httpx.Headers
    body: typing.Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Executor(metaclass=abc.ABCMeta):
    """Performs a single HTTP exchange for a built request.

    Implementations return a ResponseDescriptor for any HTTP response,
    including non 2xx ones, and raise TransportError when no response could
    be obtained.
    """

    @abc.abstractmethod
    async def execute(
        self,
        request: RequestDescriptor,
    ) -> ResponseDescriptor:
        pass

    async def aclose(self) -> None:
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


class CallableExecutor(Executor):
    """Adapts a plain coroutine function `func(request) -> ResponseDescriptor` to an Executor."""

    def __init__(
        self,
        func: typing.Callable[[RequestDescriptor], typing.Awaitable[ResponseDescriptor]],
    ):
        if not inspect.iscoroutinefunction(func) and not inspect.iscoroutinefunction(
            getattr(func, "__call__", None)
        ):
            raise TypeError("executor function must be a coroutine function")

        self._func = func

    async def execute(
        self,
        request: RequestDescriptor,
    ) -> ResponseDescriptor:
        return await self._func(request)


class HTTPXResponseStream:
    """Async byte stream over an httpx response that hasn't been read yet.

    The underlying response is closed once the stream is exhausted or
    `aclose()` is called.
    """

    def __init__(
        self,
        response: httpx.Response,
    ):
        self._response = response

    @property
    def encoding(self) -> typing.Optional[str]:
        return self._response.charset_encoding

    async def __aiter__(self) -> typing.AsyncIterator[bytes]:
        try:
            with map_exceptions(EXCEPTION_MAP):
                async for chunk in self._response.aiter_bytes():
                    yield chunk
        finally:
            await self._response.aclose()

    async def aread(self) -> bytes:
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        await self._response.aclose()


def _request_content(
    body: typing.Any,
) -> typing.Any:
    if isinstance(body, str):
        return body.encode("utf-8")

    # MultipartBody and other async iterables are streamed by httpx as is.
    return body


class HTTPXExecutor(Executor):
    """The default executor, backed by an `httpx.AsyncClient`.

    Args:
        client: The client to send requests with, one is created (and owned)
            when not set.
        timeout: The default timeout when the request doesn't specify one.
        verify: TLS verification setting for an owned client.
    """

    def __init__(
        self,
        client: typing.Optional[httpx.AsyncClient] = None,
        timeout: typing.Union[float, httpx.Timeout, None] = 30.0,
        verify: typing.Union[str, bool] = True,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=verify)

    async def execute(
        self,
        request: RequestDescriptor,
    ) -> ResponseDescriptor:
        extensions = dict(request.extensions)
        kwargs = {}
        if "timeout" in extensions:
            kwargs["timeout"] = extensions.pop("timeout")

        start = loop_time()
        with map_exceptions(EXCEPTION_MAP):
            http_request = self._client.build_request(
                request.method,
                request.uri,
                headers=request.headers,
                content=_request_content(request.body),
                extensions=extensions,
                **kwargs,
            )
            response = await self._client.send(
                http_request,
                stream=True,
                follow_redirects=request.follow_redirects,
            )
        elapsed = (loop_time() - start) * 1000

        log.debug(
            "HTTP response %s %s status=%d elapsed=%.1fms", request.method, request.uri, response.status_code, elapsed
        )
        return ResponseDescriptor(
            status_code=response.status_code,
            status_message=response.reason_phrase,
            elapsed_time_ms=elapsed,
            request_headers=httpx.Headers(http_request.headers),
            response_headers=httpx.Headers(response.headers),
            body=HTTPXResponseStream(response),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
