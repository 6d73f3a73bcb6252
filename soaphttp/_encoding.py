# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

"""Request body encodings.

A SOAP payload goes out in one of three shapes:

* plain: the envelope string as is, with a UTF-8 Content-Length.
* MTOM: a multipart/related body (RFC 2387) whose first part is the XOP
  wrapped envelope and the remaining parts are binary attachments.
* passthrough: anything that isn't a string is handed to the HTTP engine
  untouched.
"""

import httpx
import inspect
import re
import typing
import uuid

CRLF = b"\r\n"
CHUNK_SIZE = 65536

PLAIN_CONTENT_TYPE = "application/x-www-form-urlencoded"
XOP_CONTENT_TYPE = 'application/xop+xml; charset=UTF-8; type="text/xml"'

ACTION_PATTERN = re.compile(r"^\s*action\s*=", re.I)

BodyStream = typing.Union[
    bytes,
    str,
    typing.IO,
    typing.Iterable[bytes],
    typing.AsyncIterable[bytes],
]


def _new_id() -> str:
    return str(uuid.uuid4())


class Attachment:
    """A binary attachment sent alongside the envelope in an MTOM request.

    Args:
        name: The filename advertised in Content-Disposition.
        content_id: Identifier referenced by the envelope, unique per request.
        mime_type: The Content-Type of the attachment part.
        body: The attachment data, bytes or any byte stream.
    """

    def __init__(
        self,
        name: str,
        content_id: str,
        mime_type: str,
        body: BodyStream,
    ):
        if not content_id:
            raise ValueError("Attachment %r requires a content_id" % name)

        self.name = name
        self.content_id = content_id
        self.mime_type = mime_type
        self.body = body

    def __repr__(self):
        return "<%s name=%r content_id=%r mime_type=%r>" % (
            type(self).__name__,
            self.name,
            self.content_id,
            self.mime_type,
        )


class Part:
    """A single part of a multipart body."""

    def __init__(
        self,
        headers: typing.Mapping[str, str],
        body: BodyStream,
    ):
        self.headers = dict(headers)
        self.body = body

    @property
    def content_id(self) -> typing.Optional[str]:
        value = httpx.Headers(self.headers).get("Content-ID")
        if value:
            return value.strip("<>")

    def header_bytes(self) -> bytes:
        lines = ["%s: %s" % (name, value) for name, value in self.headers.items()]
        return "\r\n".join(lines).encode("utf-8")

    async def aiter_body(self) -> typing.AsyncIterator[bytes]:
        body = self.body
        if body is None:
            return

        if isinstance(body, str):
            yield body.encode("utf-8")

        elif isinstance(body, (bytes, bytearray, memoryview)):
            yield bytes(body)

        elif hasattr(body, "read"):
            while True:
                chunk = body.read(CHUNK_SIZE)
                if inspect.isawaitable(chunk):
                    chunk = await chunk

                if not chunk:
                    break

                yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk

        elif hasattr(body, "__aiter__"):
            async for chunk in body:
                yield chunk

        elif hasattr(body, "__iter__"):
            for chunk in body:
                yield chunk

        else:
            raise TypeError("Unsupported multipart body type %s" % type(body).__name__)


class MultipartBody:
    """An ordered multipart/related body.

    The first part is the primary (envelope) part, its Content-ID is the
    `start` parameter of the outer Content-Type.

    Args:
        parts: The parts in wire order.
        boundary: The boundary string separating the parts.
        start: The content id of the primary part.
    """

    def __init__(
        self,
        parts: typing.Sequence[Part],
        boundary: str,
        start: str,
    ):
        self.parts = list(parts)
        self.boundary = boundary
        self.start = start

    def __len__(self):
        return len(self.parts)

    @property
    def primary(self) -> Part:
        return self.parts[0]

    @property
    def attachments(self) -> typing.List[Part]:
        return self.parts[1:]

    async def __aiter__(self) -> typing.AsyncIterator[bytes]:
        delimiter = b"--" + self.boundary.encode("utf-8")

        for part in self.parts:
            yield delimiter + CRLF + part.header_bytes() + CRLF + CRLF
            async for chunk in part.aiter_body():
                if chunk:
                    yield chunk
            yield CRLF

        yield delimiter + b"--" + CRLF

    async def read_all(self) -> bytes:
        return b"".join([chunk async for chunk in self])


def is_plain(
    data: typing.Any,
    attachments: typing.Sequence[Attachment],
    force_mtom: bool,
) -> bool:
    return isinstance(data, str) and not attachments and not force_mtom


def is_mtom(
    data: typing.Any,
    attachments: typing.Sequence[Attachment],
    force_mtom: bool,
) -> bool:
    return isinstance(data, str) and (bool(attachments) or force_mtom)


def set_plain_headers(
    headers: httpx.Headers,
    data: str,
) -> httpx.Headers:
    """Set the plain encoding headers, Content-Length is the UTF-8 byte length."""
    headers["Content-Length"] = str(len(data.encode("utf-8")))
    headers["Content-Type"] = PLAIN_CONTENT_TYPE

    return headers


def _action_parameter(
    content_type: str,
) -> typing.Optional[str]:
    action = None
    for param in content_type.split(";"):
        if ACTION_PATTERN.match(param):
            action = param.strip()

    return action


def encode_mtom(
    data: str,
    headers: httpx.Headers,
    attachments: typing.Sequence[Attachment],
) -> MultipartBody:
    """Build an MTOM multipart/related body and set its Content-Type on `headers`.

    An `action` parameter on the existing Content-Type (SOAP 1.2) is carried
    over to the multipart Content-Type.

    Args:
        data: The envelope.
        headers: The request headers, updated in place.
        attachments: The attachments to send after the envelope.

    Returns:
        MultipartBody: The body to send.
    """
    start = _new_id()
    boundary = _new_id()

    content_type = (
        'multipart/related; type="application/xop+xml"; start="<%s>"; start-info="text/xml"; boundary=%s'
        % (start, boundary)
    )
    action = _action_parameter(headers.get("Content-Type", ""))
    if action:
        content_type = "%s; %s" % (content_type, action)

    headers["Content-Type"] = content_type

    parts = [
        Part(
            {
                "Content-Type": XOP_CONTENT_TYPE,
                "Content-ID": "<%s>" % start,
            },
            data,
        )
    ]
    for attachment in attachments:
        parts.append(
            Part(
                {
                    "Content-Type": attachment.mime_type,
                    "Content-Transfer-Encoding": "binary",
                    "Content-ID": "<%s>" % attachment.content_id,
                    "Content-Disposition": 'attachment; filename="%s"' % attachment.name,
                },
                attachment.body,
            )
        )

    return MultipartBody(parts, boundary, start)


def encode_body(
    data: typing.Any,
    headers: httpx.Headers,
    attachments: typing.Sequence[Attachment] = (),
    force_mtom: bool = False,
) -> typing.Any:
    """Pick the encoding for `data` and return the body to send.

    Plain headers are expected to have been applied already (see
    `set_plain_headers`) so caller supplied headers can override them. Only
    the MTOM encoding touches `headers` here.
    """
    if is_mtom(data, attachments, force_mtom):
        return encode_mtom(data, headers, attachments)

    return data
