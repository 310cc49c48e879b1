"""Tests for the FatSecret token manager."""

import asyncio

import pytest

from calorie_planner.domain.errors import AuthError, UpstreamError
from calorie_planner.services.tokens import TokenManager, TokenState
from tests.conftest import FakeClock, FakeHttpClient, json_result, text_result

TOKEN_URL = "https://oauth.test/connect/token"


def _manager(client: FakeHttpClient, clock: FakeClock) -> TokenManager:
    return TokenManager(
        http_client=client,
        client_id="client-id",
        client_secret="client-secret",
        token_url=TOKEN_URL,
        clock=clock,
    )


def test_token_exchange_uses_client_credentials() -> None:
    client = FakeHttpClient(
        lambda request: json_result({"access_token": "abc", "expires_in": 86400})
    )
    manager = _manager(client, FakeClock())

    token = asyncio.run(manager.get_token())

    assert token == "abc"
    request = client.requests[0]
    assert request.method == "POST"
    assert request.url == TOKEN_URL
    assert request.data == {"grant_type": "client_credentials", "scope": "basic"}
    assert request.auth == ("client-id", "client-secret")


def test_token_is_reused_inside_validity_window() -> None:
    issued = iter(["first", "second"])
    client = FakeHttpClient(
        lambda request: json_result({"access_token": next(issued), "expires_in": 3600})
    )
    clock = FakeClock()
    manager = _manager(client, clock)

    assert asyncio.run(manager.get_token()) == "first"
    clock.advance(3589)
    assert asyncio.run(manager.get_token()) == "first"
    assert len(client.requests) == 1

    clock.advance(1)
    assert asyncio.run(manager.get_token()) == "second"
    assert len(client.requests) == 2


def test_token_state_is_shared_between_managers() -> None:
    client = FakeHttpClient(
        lambda request: json_result({"access_token": "shared", "expires_in": 600})
    )
    clock = FakeClock()
    state = TokenState()
    first = TokenManager(client, "id", "secret", TOKEN_URL, state=state, clock=clock)
    second = TokenManager(client, "id", "secret", TOKEN_URL, state=state, clock=clock)

    asyncio.run(first.get_token())
    token = asyncio.run(second.get_token())

    assert token == "shared"
    assert len(client.requests) == 1
    assert state.current is not None
    assert state.current.token == "shared"


def test_token_error_status_raises_auth_error() -> None:
    client = FakeHttpClient(
        lambda request: json_result({"error": "invalid_client"}, status_code=401)
    )
    manager = _manager(client, FakeClock())

    with pytest.raises(AuthError, match="invalid_client"):
        asyncio.run(manager.get_token())


def test_token_non_json_body_raises_auth_error() -> None:
    client = FakeHttpClient(lambda request: text_result("<html>oops</html>"))
    manager = _manager(client, FakeClock())

    with pytest.raises(AuthError):
        asyncio.run(manager.get_token())


def test_token_transport_failure_raises_auth_error() -> None:
    def handler(request):  # type: ignore[no-untyped-def]
        raise UpstreamError("Request to oauth.test failed")

    manager = _manager(FakeHttpClient(handler), FakeClock())

    with pytest.raises(AuthError, match="oauth.test"):
        asyncio.run(manager.get_token())
