# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import base64
import httpx
import struct
import typing

import pytest

from soaphttp import (
    Executor,
    ResponseDescriptor,
)

NTLM_FLAGS = 0x00000001 | 0x00000200 | 0x00080000  # unicode | ntlm | extended_session_security


def ntlm_challenge(server_challenge: bytes = b"\x01\x02\x03\x04\x05\x06\x07\x08") -> str:
    """A minimal NTLM CHALLENGE_MESSAGE as sent in WWW-Authenticate."""
    data = b"NTLMSSP\x00" + struct.pack("<I", 2)
    data += struct.pack("<HHI", 0, 0, 48)  # TargetNameFields
    data += struct.pack("<I", NTLM_FLAGS)
    data += server_challenge
    data += b"\x00" * 8  # Reserved
    data += struct.pack("<HHI", 0, 0, 48)  # TargetInfoFields
    return "NTLM %s" % base64.b64encode(data).decode()


def make_response(
    status_code: int = 200,
    body: typing.Any = "",
    headers: typing.Optional[typing.Dict[str, str]] = None,
) -> ResponseDescriptor:
    return ResponseDescriptor(
        status_code=status_code,
        status_message="OK" if status_code == 200 else "Error",
        elapsed_time_ms=1.0,
        request_headers=httpx.Headers(),
        response_headers=httpx.Headers(headers or {}),
        body=body,
    )


class ChunkedBody:
    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.encoding = None

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

        if self.error:
            raise self.error

    async def aread(self):
        return b"".join([chunk async for chunk in self])


class FakeExecutor(Executor):
    """Returns queued responses (or raises queued exceptions) and records every request."""

    def __init__(self, *results):
        self.results = list(results)
        self.requests = []

    async def execute(self, request):
        self.requests.append(request)
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result

        return result


class CallbackRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, error, response, body):
        self.calls.append((error, response, body))

    @property
    def error(self):
        return self.calls[0][0]

    @property
    def response(self):
        return self.calls[0][1]

    @property
    def body(self):
        return self.calls[0][2]


@pytest.fixture
def callback():
    return CallbackRecorder()
