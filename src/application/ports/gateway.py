"""Port for invoking actions on the external ledger."""

from typing import Any, Protocol


class ExternalActionGatewayPort(Protocol):
    """Single transport primitive for all sync and mutation traffic."""

    async def invoke(
        self,
        action: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Invoke a named remote action and return its JSON result.

        Raises:
            ExternalActionError: On transport or application failure.
        """


__all__ = ["ExternalActionGatewayPort"]
