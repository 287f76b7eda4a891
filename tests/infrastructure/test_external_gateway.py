"""Tests for the httpx external action gateway."""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest

from src.domain.errors import ExternalActionError
from src.infrastructure.external_gateway import HttpxExternalActionGateway


URL = "https://ledger.example.com/functions/v1/sync-engine"


def _gateway(handler, token=None) -> HttpxExternalActionGateway:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers=headers,
    )
    return HttpxExternalActionGateway(
        URL,
        token=token,
        client=client,
        logger=MagicMock(),
    )


def _invoke(gateway, action, body=None):
    async def scenario():
        async with gateway:
            return await gateway.invoke(action, body)

    return asyncio.run(scenario())


def test_invoke_posts_action_with_body() -> None:
    """The action name should be merged into the JSON payload."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"synced": 3})

    result = _invoke(
        _gateway(handler, token="secret"),
        "sync-customers",
        {"since": "2024-01-01"},
    )

    assert result == {"synced": 3}
    assert seen["url"] == URL
    assert seen["payload"] == {
        "action": "sync-customers",
        "since": "2024-01-01",
    }
    assert seen["auth"] == "Bearer secret"


def test_http_error_status_raises_with_status_code() -> None:
    """Non-success statuses should carry the server error message."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "token expired"})

    with pytest.raises(ExternalActionError) as excinfo:
        _invoke(_gateway(handler), "dashboard-summary")

    assert excinfo.value.action == "dashboard-summary"
    assert excinfo.value.status_code == 500
    assert "token expired" in str(excinfo.value)


def test_error_payload_raises() -> None:
    """An error key in a 200 response is an application failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "Not connected"})

    with pytest.raises(ExternalActionError, match="Not connected"):
        _invoke(_gateway(handler), "list-vendors")


@pytest.mark.parametrize("content", [b"<html>oops</html>", b"[1, 2]"])
def test_non_object_payload_raises(content) -> None:
    """Bodies that are not JSON objects should be rejected."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=content)

    with pytest.raises(ExternalActionError):
        _invoke(_gateway(handler), "list-items")


def test_transport_error_is_wrapped() -> None:
    """Connection failures should surface as ExternalActionError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ExternalActionError) as excinfo:
        _invoke(_gateway(handler), "check-status")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_aclose_closes_client() -> None:
    """Closing the gateway should close its HTTP client."""
    gateway = _gateway(lambda request: httpx.Response(200, json={}))
    client = gateway._get_client()

    asyncio.run(gateway.aclose())

    assert client.is_closed
