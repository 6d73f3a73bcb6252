# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import httpx
import logging
import types
import typing

from ._encoding import (
    Attachment,
    encode_body,
    is_plain,
    set_plain_headers,
)

from ._headers import (
    HeaderTypes,
    compose_headers,
    merge_headers,
)

log = logging.getLogger(__name__)


class NTLMOptions:
    """Credentials for the NTLM handshake.

    Args:
        username: The account name, may be in the `DOMAIN\\user` or UPN form.
        password: The account password.
        domain: The NetBIOS domain, prefixed to the username when set.
        nt_hash: Hex encoded NT hash used instead of the password.
        lm_hash: Hex encoded LM hash, only used together with `nt_hash`.
    """

    def __init__(
        self,
        username: str,
        password: typing.Optional[str] = None,
        domain: typing.Optional[str] = None,
        nt_hash: typing.Optional[str] = None,
        lm_hash: typing.Optional[str] = None,
    ):
        if not username:
            raise ValueError("NTLM authentication requires a username")

        if password is None and nt_hash is None:
            raise ValueError("NTLM authentication requires either a password or an nt_hash")

        self.username = username
        self.password = password
        self.domain = domain
        self.nt_hash = nt_hash
        self.lm_hash = lm_hash

    @property
    def principal(self) -> str:
        if self.domain and "\\" not in self.username and "@" not in self.username:
            return "%s\\%s" % (self.domain, self.username)

        return self.username

    def __repr__(self):
        return "<%s principal=%r>" % (type(self).__name__, self.principal)


class RequestOptions:
    """Options that shape a single SOAP HTTP request.

    Args:
        attachments: Binary attachments, sending any switches to MTOM.
        force_mtom: Send an MTOM multipart body even without attachments.
        persistent_connection: Ask the server to keep the connection alive.
        ntlm: Perform an NTLM handshake with these credentials first.
        headers: Headers merged key by key over the built header set.
        follow_redirects: Whether the HTTP engine follows redirects.
        transport: Extra settings passed to the executor untouched, e.g.
            `{"timeout": 30}` for the default executor.
    """

    def __init__(
        self,
        attachments: typing.Iterable[Attachment] = (),
        force_mtom: bool = False,
        persistent_connection: bool = False,
        ntlm: typing.Optional[NTLMOptions] = None,
        headers: typing.Optional[HeaderTypes] = None,
        follow_redirects: bool = True,
        transport: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ):
        attachments = list(attachments or [])
        seen = set()
        for attachment in attachments:
            if not isinstance(attachment, Attachment):
                raise TypeError("attachments must be Attachment instances, got %s" % type(attachment).__name__)

            if attachment.content_id in seen:
                raise ValueError("Duplicate attachment content_id '%s'" % attachment.content_id)
            seen.add(attachment.content_id)

        if ntlm is not None and not isinstance(ntlm, NTLMOptions):
            raise TypeError("ntlm must be NTLMOptions, got %s" % type(ntlm).__name__)

        if transport is not None and not isinstance(transport, typing.Mapping):
            raise TypeError("transport must be a mapping, got %s" % type(transport).__name__)

        self.attachments = attachments
        self.force_mtom = bool(force_mtom)
        self.persistent_connection = bool(persistent_connection)
        self.ntlm = ntlm
        self.headers = headers
        self.follow_redirects = bool(follow_redirects)
        self.transport = dict(transport or {})


class RequestDescriptor(typing.NamedTuple):
    """A built request, ready to be handed to an executor."""

    uri: str
    method: str
    headers: httpx.Headers
    body: typing.Any = None
    follow_redirects: bool = True
    extensions: typing.Mapping[str, typing.Any] = types.MappingProxyType({})

    def with_headers(
        self,
        headers: HeaderTypes,
    ) -> "RequestDescriptor":
        """Copy of the descriptor with `headers` merged over the existing ones."""
        return self._replace(headers=merge_headers(self.headers.copy(), headers))


def build_request(
    url: str,
    data: typing.Any,
    extra_headers: typing.Optional[HeaderTypes] = None,
    options: typing.Optional[RequestOptions] = None,
    user_agent: typing.Optional[str] = None,
) -> RequestDescriptor:
    """Build the HTTP request for a SOAP payload.

    Args:
        url: The endpoint URL.
        data: The payload, a string envelope or an already encoded body.
        extra_headers: Headers that override the defaults.
        options: The request options.
        user_agent: Override the default client identity.

    Returns:
        RequestDescriptor: The request to execute.
    """
    options = options or RequestOptions()
    method = "POST" if data else "GET"

    headers = compose_headers(url, persistent_connection=options.persistent_connection, user_agent=user_agent)
    if is_plain(data, options.attachments, options.force_mtom):
        set_plain_headers(headers, data)

    merge_headers(headers, extra_headers)
    body = encode_body(data, headers, options.attachments, options.force_mtom)
    merge_headers(headers, options.headers)

    request = RequestDescriptor(
        uri=url,
        method=method,
        headers=headers,
        body=body,
        follow_redirects=options.follow_redirects,
        extensions=dict(options.transport),
    )
    log.debug("HTTP request %s %s headers=%s body=%r", method, url, dict(headers), body)

    return request
