# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import base64
import binascii
import httpx
import logging
import re
import spnego
import spnego.exceptions
import struct
import typing

from urllib.parse import urlparse

from ._executor import (
    Executor,
)

from ._request import (
    NTLMOptions,
    RequestDescriptor,
)

from .exceptions import (
    HandshakeError,
    TransportError,
)

log = logging.getLogger(__name__)

WWW_AUTH_PATTERN = re.compile(r"NTLM\s+([^,\s]+)", re.I)
WWW_AUTHS = "WWW-Authenticate"
WWW_AUTHZ = "Authorization"
NTLM_SIGNATURE = b"NTLMSSP\x00"
CHALLENGE_MIN_LENGTH = 48


def _is_challenge_message(
    data: bytes,
) -> bool:
    """Whether `data` looks like an NTLM Type 2 message (signature, type and fixed header)."""
    if len(data) < CHALLENGE_MIN_LENGTH or not data.startswith(NTLM_SIGNATURE):
        return False

    return struct.unpack("<I", data[8:12])[0] == 2


class NTLMHandshake:
    """Two round trip NTLM handshake run before the real request.

    The negotiate (Type 1) message is sent on an empty GET to the target,
    the server's challenge (Type 2) comes back in WWW-Authenticate and the
    authenticate (Type 3) message derived from it is the Authorization value
    for the real request. An instance covers a single handshake.

    Args:
        url: The endpoint to authenticate against.
        options: The NTLM credentials.
        service: The SPN service name.
    """

    def __init__(
        self,
        url: str,
        options: NTLMOptions,
        service: str = "HTTP",
    ):
        self.url = url
        self.options = options
        self.type1_message: typing.Optional[bytes] = None
        self.server_challenge: typing.Optional[bytes] = None
        self.type3_message: typing.Optional[bytes] = None

        self._context = self._build_context(urlparse(url).hostname or "unspecified", service)

    def _build_context(
        self,
        hostname: str,
        service: str,
    ):
        options = self.options
        if options.nt_hash is not None:
            credential = spnego.NTLMHash(
                username=options.principal,
                lm_hash=options.lm_hash,
                nt_hash=options.nt_hash,
            )
            username, password = credential, None
        else:
            username, password = options.principal, options.password

        try:
            return spnego.client(
                username,
                password,
                hostname=hostname,
                service=service,
                protocol="ntlm",
                options=spnego.NegotiateOptions.use_ntlm,
            )
        except (spnego.exceptions.SpnegoError, ValueError) as exc:
            raise HandshakeError("Failed to set up the NTLM context: %s" % exc) from exc

    @property
    def complete(self) -> bool:
        return self.type3_message is not None

    def negotiate(self) -> str:
        """Authorization header value carrying the Type 1 message."""
        try:
            self.type1_message = self._context.step()
        except spnego.exceptions.SpnegoError as exc:
            raise HandshakeError("Failed to create the NTLM negotiate message: %s" % exc) from exc

        return "NTLM %s" % base64.b64encode(self.type1_message).decode()

    def authenticate(
        self,
        www_authenticate: typing.Optional[str],
    ) -> str:
        """Authorization header value carrying the Type 3 message for the challenge header."""
        if not www_authenticate:
            raise HandshakeError("Stage 1 NTLM handshake failed.")

        match = WWW_AUTH_PATTERN.search(www_authenticate)
        if not match:
            raise HandshakeError("The server did not respond with an NTLM challenge - actual: '%s'" % www_authenticate)

        try:
            self.server_challenge = base64.b64decode(match.group(1), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HandshakeError("The NTLM challenge is not valid base64: %s" % exc) from exc

        if not _is_challenge_message(self.server_challenge):
            raise HandshakeError("Invalid NTLM challenge message: not an NTLM CHALLENGE_MESSAGE")

        try:
            self.type3_message = self._context.step(self.server_challenge)
        except (spnego.exceptions.SpnegoError, ValueError, KeyError, IndexError, struct.error) as exc:
            raise HandshakeError("Invalid NTLM challenge message: %s" % exc) from exc

        if not self.type3_message:
            raise HandshakeError("The NTLM context did not produce an authenticate message")

        return "NTLM %s" % base64.b64encode(self.type3_message).decode()

    def negotiate_request(
        self,
        follow_redirects: bool = True,
        extensions: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ) -> RequestDescriptor:
        headers = httpx.Headers(
            {
                "Connection": "keep-alive",
                WWW_AUTHZ: self.negotiate(),
            }
        )
        return RequestDescriptor(
            uri=self.url,
            method="GET",
            headers=headers,
            body=None,
            follow_redirects=follow_redirects,
            extensions=dict(extensions or {}),
        )

    async def perform(
        self,
        executor: Executor,
        request: RequestDescriptor,
    ) -> str:
        """Run the negotiate exchange and return the Authorization value for `request`.

        Raises:
            HandshakeError: The challenge was missing or malformed.
            TransportError: The negotiate exchange itself failed.
        """
        negotiate = self.negotiate_request(request.follow_redirects, request.extensions)
        log.debug("NTLM negotiate %s", self.url)
        response = await executor.execute(negotiate)

        # The negotiate response body has to be drained so the connection can be reused for the authenticated request.
        body = response.body
        if hasattr(body, "aread"):
            try:
                await body.aread()
            except TransportError as exc:
                raise HandshakeError("Failed to read the NTLM challenge response: %s" % exc) from exc

        log.debug("NTLM challenge status=%d", response.status_code)
        return self.authenticate(response.response_headers.get(WWW_AUTHS))
