# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import httpx

import pytest

from soaphttp import (
    Attachment,
    MultipartBody,
    NTLMOptions,
    RequestDescriptor,
    RequestOptions,
    build_request,
)

URL = "http://example.com:8080/service"
ENVELOPE = "<soap:Envelope><soap:Body>ü</soap:Body></soap:Envelope>"


def test_build_plain_request():
    request = build_request(URL, ENVELOPE)

    assert request.uri == URL
    assert request.method == "POST"
    assert request.body == ENVELOPE
    assert request.follow_redirects is True
    assert request.headers["Host"] == "example.com:8080"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.headers["Content-Length"] == str(len(ENVELOPE.encode("utf-8")))


def test_build_get_request_without_payload():
    request = build_request(URL, None)

    assert request.method == "GET"
    assert request.body is None
    assert "Content-Length" not in request.headers
    assert "Content-Type" not in request.headers


def test_extra_headers_override_plain_content_type():
    request = build_request(URL, ENVELOPE, {"content-type": "text/xml; charset=utf-8", "SOAPAction": '"urn:Do"'})

    assert request.headers["Content-Type"] == "text/xml; charset=utf-8"
    assert request.headers["SOAPAction"] == '"urn:Do"'


def test_build_mtom_request():
    options = RequestOptions(attachments=[Attachment("f.bin", "file-1", "application/octet-stream", b"\x00")])
    request = build_request(
        URL, ENVELOPE, {"Content-Type": 'application/soap+xml; action="urn:Put"'}, options
    )

    assert isinstance(request.body, MultipartBody)
    assert len(request.body) == 2
    assert "Content-Length" not in request.headers
    assert request.headers["Content-Type"].startswith("multipart/related")
    assert request.headers["Content-Type"].endswith('; action="urn:Put"')


def test_non_string_payload_is_passed_through_even_with_attachments():
    payload = b"<raw/>"
    options = RequestOptions(attachments=[Attachment("f.bin", "file-1", "application/octet-stream", b"")])
    request = build_request(URL, payload, None, options)

    assert request.body is payload
    assert "Content-Type" not in request.headers


def test_option_headers_merge_key_by_key():
    options = RequestOptions(headers={"Connection": "keep-alive", "X-Trace": "1"})
    request = build_request(URL, ENVELOPE, {"X-Trace": "0", "X-Other": "a"}, options)

    assert request.headers["Connection"] == "keep-alive"
    assert request.headers["X-Trace"] == "1"
    assert request.headers["X-Other"] == "a"
    assert request.headers["User-Agent"].startswith("soaphttp/")


def test_transport_options_passthrough():
    options = RequestOptions(follow_redirects=False, transport={"timeout": 5})
    request = build_request(URL, ENVELOPE, options=options)

    assert request.follow_redirects is False
    assert request.extensions == {"timeout": 5}


def test_persistent_connection_option():
    request = build_request(URL, ENVELOPE, options=RequestOptions(persistent_connection=True))
    assert request.headers["Connection"] == "keep-alive"


def test_descriptor_with_headers_is_a_copy():
    request = build_request(URL, ENVELOPE)
    authed = request.with_headers({"Authorization": "NTLM abc"})

    assert authed.headers["Authorization"] == "NTLM abc"
    assert "Authorization" not in request.headers
    assert authed.body == request.body


def test_descriptor_is_immutable():
    request = build_request(URL, ENVELOPE)
    with pytest.raises(AttributeError):
        request.method = "PUT"


def test_options_duplicate_content_id():
    attachments = [
        Attachment("a", "same", "text/plain", b""),
        Attachment("b", "same", "text/plain", b""),
    ]
    with pytest.raises(ValueError, match="Duplicate attachment content_id 'same'"):
        RequestOptions(attachments=attachments)


def test_options_invalid_types():
    with pytest.raises(TypeError, match="attachments must be Attachment"):
        RequestOptions(attachments=[{"name": "a"}])

    with pytest.raises(TypeError, match="ntlm must be NTLMOptions"):
        RequestOptions(ntlm={"username": "user"})

    with pytest.raises(TypeError, match="transport must be a mapping"):
        RequestOptions(transport=[("timeout", 1)])


def test_ntlm_options_validation():
    with pytest.raises(ValueError, match="username"):
        NTLMOptions("")

    with pytest.raises(ValueError, match="password or an nt_hash"):
        NTLMOptions("user")


@pytest.mark.parametrize('username, domain, expected', [
    ("user", None, "user"),
    ("user", "DOMAIN", "DOMAIN\\user"),
    ("OTHER\\user", "DOMAIN", "OTHER\\user"),
    ("user@domain.local", "DOMAIN", "user@domain.local"),
])
def test_ntlm_options_principal(username, domain, expected):
    assert NTLMOptions(username, "pass", domain=domain).principal == expected


def test_descriptor_default_extensions_read_only():
    request = RequestDescriptor(uri=URL, method="GET", headers=httpx.Headers())
    other = RequestDescriptor(uri=URL, method="GET", headers=httpx.Headers())

    assert request.extensions == {}
    with pytest.raises(TypeError):
        request.extensions["timeout"] = 1

    assert other.extensions == {}
