import httpx
import pytest

from hue_chat.errors import AuthExpiredError, HueApiError, UpstreamProtocolError
from hue_chat.hue_client import HueClient, HueTransportError


@pytest.mark.asyncio
async def test_hue_client_sends_bearer_and_returns_json_body():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers.get("authorization") == "Bearer tok"
        assert request.url.path == "/bridge/wl/lights"
        return httpx.Response(200, json={"1": {"name": "Lamp"}})

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        body = await client.get_bridge(token="tok", whitelist_id="wl", path="lights")
        assert body == {"1": {"name": "Lamp"}}
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_hue_client_returns_status_and_headers_without_raising():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, headers={"WWW-Authenticate": 'Digest realm="r", nonce="n"'})

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        result = await client.request_jsonish(method="POST", path="/oauth2/token")
        assert result.status_code == 401
        assert result.body is None
        assert result.header("WWW-Authenticate") == 'Digest realm="r", nonce="n"'
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_bridge_401_maps_to_auth_expired():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"fault": "invalid token"})

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(AuthExpiredError):
            await client.get_bridge(token="tok", whitelist_id="wl", path="lights")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_bridge_error_object_maps_to_api_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"error": {"type": 201, "description": "parameter not modifiable"}}])

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(HueApiError) as exc:
            await client.put_bridge(token="tok", whitelist_id="wl", path="lights/1/state", json_body={"bri": 1})
        assert exc.value.details["error"]["type"] == 201
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_bridge_non_json_or_non_200_maps_to_protocol_error():
    responses = iter([httpx.Response(500, json={"oops": True}), httpx.Response(200, text="<html>")])

    async def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(UpstreamProtocolError):
            await client.get_bridge(token="tok", whitelist_id="wl", path="groups")
        with pytest.raises(UpstreamProtocolError):
            await client.get_bridge(token="tok", whitelist_id="wl", path="groups")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_hue_client_raises_transport_error_on_connect_failure():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(HueTransportError):
            await client.request_jsonish(method="GET", path="/bridge/wl/lights")
    finally:
        await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [httpx.RemoteProtocolError, httpx.WriteTimeout, httpx.PoolTimeout, httpx.ReadError],
)
async def test_any_httpx_failure_becomes_transport_error(error):
    async def handler(request: httpx.Request) -> httpx.Response:
        raise error("broken", request=request)

    client = HueClient(base_url="https://api.meethue.test", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(HueTransportError):
            await client.put_bridge(token="tok", whitelist_id="wl", path="lights/1/state", json_body={"on": True})
    finally:
        await client.close()
