# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import asyncio
import httpx
import logging
import typing

from ._completion import (
    Callback,
    Completion,
)

from ._executor import (
    CallableExecutor,
    Executor,
    HTTPXExecutor,
    ResponseDescriptor,
)

from ._headers import (
    HeaderTypes,
)

from ._normalize import (
    normalize_envelope,
)

from ._ntlm import (
    WWW_AUTHZ,
    NTLMHandshake,
)

from ._request import (
    RequestDescriptor,
    RequestOptions,
    build_request,
)

from ._stream import (
    ResponseStream,
)

from .exceptions import (
    BodyReadError,
)

log = logging.getLogger(__name__)


class HttpClient:
    """HTTP transport for a SOAP client.

    Builds the HTTP request for a SOAP payload, runs the optional NTLM
    handshake, executes the exchange and hands the (normalized) response
    back to a completion callback.

    Args:
        executor: The transport strategy that performs the HTTP exchanges.
            Either an Executor or a coroutine function taking a
            RequestDescriptor and returning a ResponseDescriptor. Defaults to
            an httpx based executor.
        user_agent: Override the default User-Agent.
    """

    def __init__(
        self,
        executor: typing.Union[Executor, typing.Callable, None] = None,
        user_agent: typing.Optional[str] = None,
    ):
        if executor is None:
            executor = HTTPXExecutor()

        elif not isinstance(executor, Executor):
            executor = CallableExecutor(executor)

        self.executor = executor
        self.user_agent = user_agent

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self.executor.aclose()

    def build_request(
        self,
        url: str,
        data: typing.Any,
        headers: typing.Optional[HeaderTypes] = None,
        options: typing.Optional[RequestOptions] = None,
    ) -> RequestDescriptor:
        """Build the HTTP request (method, uri, headers, body) for a payload."""
        return build_request(url, data, headers, options, user_agent=self.user_agent)

    def handle_response(
        self,
        response: typing.Optional[ResponseDescriptor],
        body: typing.Any,
    ) -> typing.Any:
        """Clean up a response body, only textual bodies are changed."""
        log.debug("HTTP response body: %r", body)
        return normalize_envelope(body)

    async def request(
        self,
        url: str,
        data: typing.Any,
        callback: Callback,
        headers: typing.Optional[HeaderTypes] = None,
        options: typing.Optional[RequestOptions] = None,
    ) -> httpx.Headers:
        """Send a SOAP payload and report the outcome to `callback`.

        `callback(error, response, body)` is called exactly once. On success
        `error` is None, `response` is the ResponseDescriptor and `body` the
        normalized response text. A non 2xx status is not an error. On
        failure `error` is a TransportError, HandshakeError or BodyReadError
        (`response` is set for the latter).

        Invalid arguments raise straight away and the callback is not called.

        Args:
            url: The endpoint URL.
            data: The payload to send.
            callback: The completion callback.
            headers: Extra HTTP headers.
            options: Extra request options.

        Returns:
            httpx.Headers: A copy of the headers of the request that was sent.
        """
        completion = Completion(callback)
        options = options or RequestOptions()
        request = self.build_request(url, data, headers, options)

        try:
            if options.ntlm is not None:
                authorization = await NTLMHandshake(url, options.ntlm).perform(self.executor, request)
                request = request.with_headers({WWW_AUTHZ: authorization})

            response = await self.executor.execute(request)
        except Exception as exc:
            log.debug("HTTP request to %s failed: %r", url, exc)
            completion(exc)
            return request.headers.copy()

        try:
            body = await self._read_body(response)
        except BodyReadError as exc:
            completion(exc, response)
            return request.headers.copy()

        body = self.handle_response(response, body)
        completion(None, response._replace(body=body), body)

        return request.headers.copy()

    def request_stream(
        self,
        url: str,
        data: typing.Any,
        headers: typing.Optional[HeaderTypes] = None,
        options: typing.Optional[RequestOptions] = None,
    ) -> ResponseStream:
        """Send a SOAP payload and relay the response body as a stream.

        Must be called from a running event loop. The stream is returned
        before the exchange has started, errors are raised while iterating
        it. The NTLM handshake is not performed on this path.

        A response body that can't be streamed (None or an object that is
        neither bytes, str nor an async byte iterable) is reported as a
        BodyReadError on the stream instead of ending it without data. A
        str or bytes body is relayed as a single chunk.
        """
        request = self.build_request(url, data, headers, options)

        stream = ResponseStream()
        stream.task = asyncio.get_running_loop().create_task(self._relay(request, stream))

        return stream

    async def _relay(
        self,
        request: RequestDescriptor,
        stream: ResponseStream,
    ):
        try:
            response = await self.executor.execute(request)
        except Exception as exc:
            log.debug("HTTP stream request to %s failed: %r", request.uri, exc)
            await stream.set_error(exc)
            return

        stream.set_response(response)
        body = response.body
        stream.source = body

        try:
            if isinstance(body, str):
                await stream.write(body.encode("utf-8"))
                await stream.close()

            elif isinstance(body, bytes):
                await stream.write(body)
                await stream.close()

            elif hasattr(body, "__aiter__"):
                await stream.pipe_from(body)

            else:
                await stream.set_error(
                    BodyReadError("Response body of type %s cannot be streamed" % type(body).__name__, response)
                )

        except Exception as exc:
            error = BodyReadError(str(exc) or type(exc).__name__, response)
            error.__cause__ = exc
            await stream.set_error(error)

    async def _read_body(
        self,
        response: ResponseDescriptor,
    ) -> typing.Any:
        body = response.body
        if body is None:
            return ""

        if isinstance(body, str):
            return body

        encoding = getattr(body, "encoding", None) or _charset(response.response_headers) or "utf-8"
        try:
            if hasattr(body, "aread"):
                body = await body.aread()

            elif hasattr(body, "__aiter__"):
                body = b"".join([chunk async for chunk in body])

            elif not isinstance(body, (bytes, bytearray)) and hasattr(body, "__iter__"):
                body = b"".join(body)

        except Exception as exc:
            raise BodyReadError(str(exc) or type(exc).__name__, response) from exc

        if isinstance(body, (bytes, bytearray)):
            try:
                return bytes(body).decode(encoding, errors="replace")
            except LookupError as exc:
                raise BodyReadError("Unknown response charset '%s'" % encoding, response) from exc

        return body


def _charset(
    headers: typing.Optional[httpx.Headers],
) -> typing.Optional[str]:
    if not headers:
        return None

    content_type = headers.get("Content-Type", "")
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip('"') or None
