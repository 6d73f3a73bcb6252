# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import typing


class SoapHTTPError(Exception):
    """Base class for all errors raised by the SOAP HTTP transport."""

    MESSAGE = "Unknown SOAP HTTP transport error."

    def __init__(
        self,
        message: typing.Optional[str] = None,
    ):
        self.message = message or self.MESSAGE
        super().__init__(self.message)

    def __str__(self):
        return self.message


class TransportError(SoapHTTPError):
    """The HTTP exchange itself failed (DNS, connect, read, timeout).

    The original exception from the HTTP engine is available on `__cause__`.
    """

    MESSAGE = "The HTTP exchange failed."


class HandshakeError(SoapHTTPError):
    """The NTLM handshake could not be completed, the real request was not sent."""

    MESSAGE = "NTLM handshake failed."


class BodyReadError(SoapHTTPError):
    """The response body could not be materialized after a successful exchange.

    Args:
        message: The error message.
        response: The response the body belonged to, if known.
    """

    MESSAGE = "Failed to read the response body."

    def __init__(
        self,
        message: typing.Optional[str] = None,
        response: typing.Any = None,
    ):
        super().__init__(message)
        self.response = response


class CompletionError(RuntimeError):
    """A completion token was used after it had already been consumed."""
