"""Shared fixtures: a credential and a mock token endpoint behind a dispatcher."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from igpt.gateway import Credential, ProxyDispatcher

TOKEN_URL = "https://auth.example/token"
PROXY_URL = "http://proxy.example:912"


class TokenEndpoint:
    """Records every request and answers with the configured handler."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if hasattr(result, "__await__"):
            result = await result
        return result

    def dispatcher(self, proxy_url: str | None = PROXY_URL) -> ProxyDispatcher:
        return ProxyDispatcher(proxy_url, transport=httpx.MockTransport(self))


def json_response(body: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status_code, json=body)


@pytest.fixture
def credential() -> Credential:
    return Credential(token_url=TOKEN_URL, client_id="id1", client_secret="secret1")


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint(json_response({"access_token": "tok-xyz", "token_type": "Bearer", "expires_in": 1800}))
