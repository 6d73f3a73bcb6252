# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import asyncio
import logging
import typing

log = logging.getLogger(__name__)

_EOF = object()


class ResponseStream:
    """Pass-through byte stream handed out before the exchange completes.

    Chunks are produced by a relay task and consumed with `async for`. The
    queue between them is bounded so a slow reader holds back the relay
    rather than the whole body piling up in memory. An error delivered by the
    relay is raised from the iteration once the chunks queued before it have
    been read.

    Stop reading early with `aclose()` (or `async with`), it stops the relay
    and closes the response body so the connection is released.

    Args:
        max_chunks: How many chunks can be buffered before the relay waits.
    """

    def __init__(
        self,
        max_chunks: int = 16,
    ):
        self._queue = asyncio.Queue(maxsize=max_chunks)
        self._closed = False
        self._finished = False
        self._error = None
        self._response_ready = asyncio.Event()
        self.response = None
        self.task: typing.Optional[asyncio.Task] = None
        self.source = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self._finished:
            return self._end()

        item = await self._queue.get()
        if item is _EOF:
            self._finished = True
            return self._end()

        return item

    def _end(self):
        if self._error is not None:
            raise self._error

        raise StopAsyncIteration

    async def read(self) -> bytes:
        """Read the remainder of the stream."""
        return b"".join([chunk async for chunk in self])

    async def wait_response(self):
        """Wait until the response head is known, returns None when the exchange failed."""
        await self._response_ready.wait()
        return self.response

    @property
    def closed(self) -> bool:
        return self._closed

    def exception(self) -> typing.Optional[BaseException]:
        return self._error

    def set_response(
        self,
        response,
    ):
        self.response = response
        self._response_ready.set()

    async def write(
        self,
        chunk: bytes,
    ):
        if self._closed:
            raise RuntimeError("Cannot write to a closed ResponseStream")

        if chunk:
            await self._queue.put(chunk)

    async def close(self):
        if not self._closed:
            self._closed = True
            self._response_ready.set()
            await self._queue.put(_EOF)

    async def set_error(
        self,
        error: BaseException,
    ):
        if self._closed:
            log.debug("Error after the stream was closed: %r", error)
            return

        self._error = error
        await self.close()

    async def pipe_from(
        self,
        source: typing.AsyncIterable[bytes],
    ):
        """Relay every chunk of `source` then close the stream."""
        async for chunk in source:
            await self.write(chunk)

        await self.close()

    async def aclose(self):
        """Stop the relay and close the source body, unread chunks are dropped."""
        if self.task is not None and not self.task.done():
            self.task.cancel()
            # Collects the CancelledError of the relay task, not of the caller.
            await asyncio.gather(self.task, return_exceptions=True)

        source, self.source = self.source, None
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()

        self._closed = True
        self._finished = True
        self._response_ready.set()
