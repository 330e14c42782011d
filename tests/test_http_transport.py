import asyncio

import httpx
import pytest

from ryst_client import (
    RequestAbortedError,
    RequestOptions,
    RequestTimeoutError,
    RystClient,
    TransportError,
)
from ryst_client.transport import HttpxResponseHandle


class Recorder:
    def __init__(self, handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(await request.aread())
        return self.handler(request)


def make_client(handler, **kwargs) -> RystClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RystClient(http_client=http_client, **kwargs)


@pytest.mark.asyncio
async def test_get_sends_no_body_and_buffers_response() -> None:
    recorder = Recorder(lambda request: httpx.Response(200, json={"a": 1}))
    client = make_client(recorder, default_headers={"User-Agent": "ryst-test"})
    heads = []

    response = await client.get("http://example.com/items", on_response=heads.append).settle()

    assert response.json() == {"a": 1}
    assert response.status == 200
    assert isinstance(heads[0], HttpxResponseHandle)
    assert response.message is heads[0]
    sent = recorder.requests[0]
    assert sent.method == "GET"
    assert sent.headers["user-agent"] == "ryst-test"
    assert "transfer-encoding" not in sent.headers
    assert recorder.bodies == [b""]
    await client.aclose()


@pytest.mark.asyncio
async def test_post_streams_written_body() -> None:
    recorder = Recorder(lambda request: httpx.Response(201, text="created"))
    client = make_client(recorder)
    written = []

    exchange = client.post(
        "http://example.com/items",
        RequestOptions(body={"name": "ryst"}, on_body_written=written.append),
    )
    exchange.write(" trailer")
    response = await exchange.settle()

    assert response.status == 201
    assert response.body == "created"
    assert recorder.bodies == [b'{"name": "ryst"} trailer']
    assert recorder.requests[0].headers["content-type"] == "application/json"
    assert written == [None]
    await client.aclose()


@pytest.mark.asyncio
async def test_timeout_is_reported_and_request_destroyed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow upstream", request=request)

    client = make_client(handler, timeout=0.1)
    exchange = client.get("http://example.com/slow")

    with pytest.raises(RequestTimeoutError):
        await exchange.settle()
    assert exchange.request.destroyed
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_failure_becomes_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = make_client(handler)
    with pytest.raises(TransportError) as info:
        await client.get("http://example.com/").settle()
    assert isinstance(info.value.cause, httpx.ConnectError)
    await client.aclose()


@pytest.mark.asyncio
async def test_abort_before_dispatch() -> None:
    recorder = Recorder(lambda request: httpx.Response(200))
    client = make_client(recorder)
    exchange = client.get("http://example.com/never")

    exchange.request.abort()

    with pytest.raises(RequestAbortedError):
        await exchange.settle()
    assert recorder.requests == []
    await client.aclose()


@pytest.mark.asyncio
async def test_unfinished_request_allocates_no_client(monkeypatch) -> None:
    created = []
    real_client = httpx.AsyncClient

    def counting_client(*args, **kwargs):
        created.append(1)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", counting_client)
    exchange = RystClient().get("http://localhost:1/never")
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert created == []

    exchange.request.abort()
    await asyncio.sleep(0)
    assert created == []
