"""Tests for ApiTransport error mapping and ResourceCache."""

import json

import httpx
import pytest

from gridiron.core.exceptions import AuthError, TransportError, ValidationError
from gridiron.onboarding.transport import ApiTransport, ResourceCache

pytestmark = pytest.mark.unit


def make_transport(handler) -> ApiTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api.test/api")
    return ApiTransport(client=client)


async def test_request_returns_decoded_json():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"applied": True})

    async with make_transport(handler) as transport:
        body = await transport.request("POST", "/athletes/7/onboarding/progress", json={"step": 2})

    assert body == {"applied": True}
    assert seen["url"] == "http://api.test/api/athletes/7/onboarding/progress"
    assert seen["body"] == {"step": 2}


async def test_empty_body_returns_none():
    async with make_transport(lambda request: httpx.Response(204)) as transport:
        assert await transport.request("DELETE", "/x") is None


@pytest.mark.parametrize("status", [401, 403])
async def test_auth_statuses_raise_auth_error(status):
    handler = lambda request: httpx.Response(status, json={"detail": "Access denied"})  # noqa: E731

    async with make_transport(handler) as transport:
        with pytest.raises(AuthError, match="Access denied") as exc_info:
            await transport.request("GET", "/x")

    assert exc_info.value.status_code == status


@pytest.mark.parametrize("status", [400, 422])
async def test_client_errors_raise_validation_error(status):
    async with make_transport(lambda request: httpx.Response(status, json={"detail": "bad step"})) as transport:
        with pytest.raises(ValidationError, match="bad step"):
            await transport.request("POST", "/x", json={})


async def test_server_error_raises_transport_error_with_status():
    async with make_transport(lambda request: httpx.Response(503, text="unavailable")) as transport:
        with pytest.raises(TransportError) as exc_info:
            await transport.request("GET", "/x")

    assert exc_info.value.status_code == 503


async def test_network_failure_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_transport(handler) as transport:
        with pytest.raises(TransportError, match="connection refused"):
            await transport.request("GET", "/x")


async def test_invalid_json_raises_transport_error():
    async with make_transport(lambda request: httpx.Response(200, text="<html>")) as transport:
        with pytest.raises(TransportError, match="invalid JSON"):
            await transport.request("GET", "/x")


def test_resource_cache_invalidation():
    cache = ResourceCache()
    cache.set("/a", 1)
    cache.set("/b", 2)

    cache.invalidate("/a")
    cache.invalidate("/missing")

    assert "/a" not in cache
    assert cache.get("/b") == 2

    cache.clear()
    assert cache.get("/b") is None
