from collections.abc import Callable
from typing import Any

import httpx
import pytest

from acmeauth.config import FlowSettings
from acmeauth.models.request import AuthRequest

AUTH_ENDPOINT = (
    "https://idp.example/auth/realms/healthid/protocol/openid-connect/auth"
)
CODE_CHALLENGE = "leDpL-Rywd20NV_EgY31k_m4VcENQvAgDDKNJM9GeTE"

Responder = Callable[[httpx.Request], Any]


class FakeIdentityProvider:
    """Scripted identity provider behind an httpx.MockTransport.

    Each incoming request is answered by the next scripted responder, in
    order. Requests beyond the script fail the test.
    """

    def __init__(self, *responders: Responder):
        self.responders = list(responders)
        self.requests: list[httpx.Request] = []
        self.transports: list["ClosingTransport"] = []

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responders:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responders.pop(0)(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    def transport_factory(self) -> "ClosingTransport":
        transport = ClosingTransport(self.handle)
        self.transports.append(transport)
        return transport


class ClosingTransport(httpx.MockTransport):
    """Mock transport that records whether its session closed it."""

    closed = False

    async def aclose(self) -> None:
        self.closed = True


def html_page(body: str, status_code: int = 200, **kwargs: Any) -> Responder:
    return lambda request: httpx.Response(
        status_code,
        html=f"<html><body>{body}</body></html>",
        **kwargs,
    )


def json_body(payload: dict[str, Any], status_code: int = 200) -> Responder:
    return lambda request: httpx.Response(status_code, json=payload)


def redirect(location: str | None, status_code: int = 302) -> Responder:
    headers = {"Location": location} if location is not None else {}
    return lambda request: httpx.Response(status_code, headers=headers)


def form_body(request: httpx.Request) -> dict[str, str]:
    return dict(httpx.QueryParams(request.content.decode()))


@pytest.fixture
def settings() -> FlowSettings:
    return FlowSettings(authorization_endpoint=AUTH_ENDPOINT)


@pytest.fixture
def local_request() -> AuthRequest:
    return AuthRequest(
        client_id="aua.example",
        redirect_uri="https://client.example/cb",
        code_challenge=CODE_CHALLENGE,
        scope="openid",
    )


@pytest.fixture
def remote_request() -> AuthRequest:
    return AuthRequest(
        client_id="aua.example",
        redirect_uri="https://client.example/cb",
        code_challenge=CODE_CHALLENGE,
        scope="openid",
        authn_challenge="sig123",
    )
