# -*- coding: utf-8 -*-
# MIT License (see LICENSE or https://opensource.org/licenses/MIT)

import httpx

import pytest

from conftest import (
    make_response,
)

from soaphttp import (
    Attachment,
    CallableExecutor,
    HTTPXExecutor,
    HTTPXResponseStream,
    RequestOptions,
    build_request,
)

from soaphttp.exceptions import (
    TransportError,
)

URL = "http://example.com/service"
ENVELOPE = "<soap:Envelope><soap:Body>ø</soap:Body></soap:Envelope>"


def mock_executor(handler) -> HTTPXExecutor:
    return HTTPXExecutor(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


async def test_execute_plain_request():
    seen = {}

    async def handler(request):
        seen["method"] = request.method
        seen["content"] = await request.aread()
        seen["headers"] = request.headers
        return httpx.Response(200, text="<soap:Envelope/>", headers={"Content-Type": "text/xml; charset=utf-8"})

    async with mock_executor(handler) as executor:
        response = await executor.execute(build_request(URL, ENVELOPE))

        assert response.status_code == 200
        assert response.status_message == "OK"
        assert response.ok
        assert response.elapsed_time_ms >= 0
        assert response.response_headers["Content-Type"] == "text/xml; charset=utf-8"
        assert response.request_headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert isinstance(response.body, HTTPXResponseStream)
        assert response.body.encoding == "utf-8"
        assert await response.body.aread() == b"<soap:Envelope/>"

    assert seen["method"] == "POST"
    assert seen["content"] == ENVELOPE.encode("utf-8")
    assert seen["headers"]["Content-Length"] == str(len(ENVELOPE.encode("utf-8")))
    assert seen["headers"]["Host"] == "example.com"
    assert seen["headers"]["Accept-Encoding"] == "none"


async def test_execute_multipart_request():
    seen = {}

    async def handler(request):
        seen["content"] = await request.aread()
        seen["content_type"] = request.headers["Content-Type"]
        return httpx.Response(200)

    options = RequestOptions(attachments=[Attachment("a.bin", "att-1", "application/octet-stream", b"\x00\xff")])
    request = build_request(URL, ENVELOPE, options=options)

    async with mock_executor(handler) as executor:
        await executor.execute(request)

    boundary = request.body.boundary.encode()
    assert seen["content_type"] == request.headers["Content-Type"]
    assert seen["content"].startswith(b"--" + boundary + b"\r\n")
    assert seen["content"].endswith(b"--" + boundary + b"--\r\n")
    assert b"\x00\xff" in seen["content"]


async def test_execute_non_2xx_is_not_an_error():
    async with mock_executor(lambda request: httpx.Response(500, text="fault")) as executor:
        response = await executor.execute(build_request(URL, ENVELOPE))

        assert response.status_code == 500
        assert response.status_message == "Internal Server Error"
        assert not response.ok
        assert await response.body.aread() == b"fault"


async def test_execute_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_executor(handler) as executor:
        with pytest.raises(TransportError, match="connection refused") as err:
            await executor.execute(build_request(URL, ENVELOPE))

    assert isinstance(err.value.__cause__, httpx.ConnectError)


async def test_execute_get_without_body():
    seen = {}

    async def handler(request):
        seen["method"] = request.method
        seen["content"] = await request.aread()
        return httpx.Response(204)

    async with mock_executor(handler) as executor:
        response = await executor.execute(build_request(URL, None))

    assert response.status_code == 204
    assert seen == {"method": "GET", "content": b""}


async def test_execute_follows_redirects_by_default():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(302, headers={"Location": URL})
        return httpx.Response(200, text="moved")

    async with mock_executor(handler) as executor:
        response = await executor.execute(build_request("http://example.com/old", ENVELOPE))
        assert response.status_code == 200

        no_follow = build_request("http://example.com/old", ENVELOPE, options=RequestOptions(follow_redirects=False))
        response = await executor.execute(no_follow)
        assert response.status_code == 302


async def test_external_client_is_not_closed():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    executor = HTTPXExecutor(client=client)
    await executor.aclose()

    assert not client.is_closed
    await client.aclose()


async def test_callable_executor():
    async def execute(request):
        return make_response(200, request.uri)

    executor = CallableExecutor(execute)
    response = await executor.execute(build_request(URL, ENVELOPE))

    assert response.body == URL


def test_callable_executor_requires_coroutine():
    with pytest.raises(TypeError, match="coroutine function"):
        CallableExecutor(lambda request: None)
