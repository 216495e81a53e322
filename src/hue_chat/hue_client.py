from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from hue_chat.errors import AuthExpiredError, HueApiError, UpstreamProtocolError


class HueTransportError(Exception):
    code = "bridge_unreachable"


@dataclass(frozen=True)
class HueJSONishResult:
    status_code: int
    body: Any
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


class HueClient:
    """
    Async client for the Hue cloud (remote) API.

    Status codes are returned, not raised: the OAuth flow needs the 401 challenge,
    and bridge helpers map statuses to typed errors themselves.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client:
            return self._client
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout_seconds, connect=3.0),
            transport=self._transport,
        )
        return self._client

    async def request_jsonish(
        self,
        *,
        method: str,
        path: str,
        json_body: Any | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        token: str | None = None,
    ) -> HueJSONishResult:
        client = await self._get_client()
        request_headers = dict(headers or {})
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        try:
            resp = await client.request(method, path, json=json_body, params=params, headers=request_headers)
        except httpx.HTTPError as exc:
            raise HueTransportError(str(exc)) from exc

        body: Any
        if not resp.content:
            body = None
        else:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text

        return HueJSONishResult(
            status_code=resp.status_code,
            body=body,
            headers={k.lower(): v for k, v in resp.headers.items()},
        )

    async def get_bridge(self, *, token: str, whitelist_id: str, path: str) -> Any:
        result = await self.request_jsonish(method="GET", path=f"/bridge/{whitelist_id}/{path}", token=token)
        return check_bridge_result(result)

    async def put_bridge(self, *, token: str, whitelist_id: str, path: str, json_body: Any) -> Any:
        result = await self.request_jsonish(
            method="PUT", path=f"/bridge/{whitelist_id}/{path}", json_body=json_body, token=token
        )
        return check_bridge_result(result)


def check_bridge_result(result: HueJSONishResult) -> Any:
    if result.status_code == 401:
        raise AuthExpiredError()
    if result.status_code != 200 or result.body is None or isinstance(result.body, str):
        raise UpstreamProtocolError(details={"status": result.status_code})
    body = result.body
    # Hue v1 style: [{"error": {...}}] or [{"success": {...}}]
    if isinstance(body, list) and body and isinstance(body[0], dict) and "error" in body[0]:
        raise HueApiError("Error occurred!", details={"error": body[0]["error"]})
    return body
