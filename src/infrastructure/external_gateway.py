"""HTTP gateway invoking named actions on the external ledger function.

Every sync, read and mutation goes through a single endpoint that accepts
``{"action": <name>, ...body}`` and answers with a JSON object. Transport
failures, non-success statuses and ``{"error": ...}`` payloads are all
raised as ``ExternalActionError``.
"""

from typing import Any, Optional

import httpx

from src.application.ports.gateway import ExternalActionGatewayPort
from src.domain.errors import ExternalActionError
from src.infrastructure.logging.logger import get_app_logger


DEFAULT_TIMEOUT_SECONDS = 30.0


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.text or f"HTTP {response.status_code}"


class HttpxExternalActionGateway(ExternalActionGatewayPort):
    """ExternalActionGatewayPort implementation backed by httpx."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
        logger=None,
    ) -> None:
        """Initialize the gateway.

        Args:
            base_url: URL of the remote action endpoint.
            token: Optional bearer token sent with every call.
            timeout: Request timeout in seconds.
            client: Optional preconfigured client, e.g. for tests.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._base_url = base_url
        self._token = token
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = client
        self._logger = logger or get_app_logger()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers=headers,
            )
        return self._client

    async def invoke(
        self,
        action: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Invoke a named remote action.

        Args:
            action: Remote action name, e.g. ``list-vendors``.
            body: Extra fields merged into the request payload.

        Returns:
            dict[str, Any]: Decoded JSON object returned by the action.

        Raises:
            ExternalActionError: On transport errors, non-success statuses,
                non-object payloads or payloads carrying an ``error`` key.
        """
        payload = {"action": action, **(body or {})}
        client = self._get_client()
        self._logger.debug(f"Invoking external action {action}")
        try:
            response = await client.post(self._base_url, json=payload)
        except httpx.HTTPError as exc:
            self._logger.error(f"External action {action} failed: {exc}")
            raise ExternalActionError(action, str(exc)) from exc

        if response.is_error:
            message = _error_message(response)
            self._logger.error(
                f"External action {action} returned "
                f"{response.status_code}: {message}"
            )
            raise ExternalActionError(
                action,
                message,
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise ExternalActionError(
                action,
                "Response is not valid JSON",
                status_code=response.status_code,
            ) from exc
        if not isinstance(result, dict):
            raise ExternalActionError(
                action,
                "Response is not a JSON object",
                status_code=response.status_code,
            )
        if result.get("error"):
            raise ExternalActionError(
                action,
                str(result["error"]),
                status_code=response.status_code,
            )
        return result

    async def aclose(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "HttpxExternalActionGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = ["HttpxExternalActionGateway", "DEFAULT_TIMEOUT_SECONDS"]
