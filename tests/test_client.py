import pytest

from ryst_client import RequestOptions, RystClient
from ryst_client.transport import HttpxRequest


@pytest.mark.asyncio
async def test_default_headers_are_preserved(transport) -> None:
    client = RystClient(transport=transport, default_headers={"X-Test": "1", "Accept": "*/*"})
    client.request("http://localhost:8085/ping", RequestOptions(headers={"accept": "application/json"}))
    headers = transport.last.descriptor.headers
    assert headers["X-Test"] == "1"
    assert headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_clients_do_not_share_default_headers(transport) -> None:
    RystClient(transport=transport, default_headers={"X-Tenant": "a"}).get("http://example.com")
    RystClient(transport=transport).get("http://example.com")
    assert "x-tenant" not in transport.last.descriptor.headers


@pytest.mark.parametrize(
    ("verb", "method"),
    [("get", "GET"), ("post", "POST"), ("head", "HEAD")],
)
@pytest.mark.asyncio
async def test_verb_helpers_force_method(transport, verb: str, method: str) -> None:
    client = RystClient(transport=transport)
    exchange = getattr(client, verb)("http://example.com/thing", RequestOptions(method="PATCH"))
    assert exchange.descriptor.method == method


@pytest.mark.asyncio
async def test_client_timeout_applies_unless_overridden(transport) -> None:
    client = RystClient(transport=transport, timeout=2.5)
    client.get("http://example.com")
    assert transport.last.descriptor.timeout == 2.5
    client.get("http://example.com", RequestOptions(timeout=0.5))
    assert transport.last.descriptor.timeout == 0.5


@pytest.mark.asyncio
async def test_request_returns_settleable_exchange(transport) -> None:
    client = RystClient(transport=transport)
    exchange = client.post("http://example.com/items", RequestOptions(body={"id": 7}))
    pending = exchange.settle()
    transport.last.complete(['{"created": true}'], status=201)

    response = await pending
    assert response.status == 201
    assert response.json() == {"created": True}
    assert transport.last.writes == [('{"id": 7}', "utf-8")]


@pytest.mark.asyncio
async def test_default_transport_is_httpx() -> None:
    client = RystClient()
    exchange = client.get("http://localhost:1/unused")
    try:
        assert isinstance(exchange.request, HttpxRequest)
    finally:
        exchange.request.abort()
