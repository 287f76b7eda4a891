"""Ports for the error-reporting and notification collaborators."""

from typing import Protocol


class ErrorReporterPort(Protocol):
    """Receives free-text incident reports tagged with their source."""

    def report(self, source: str, message: str) -> None:
        """Record an incident."""


class NotifierPort(Protocol):
    """Receives user-facing success and failure messages."""

    def success(self, title: str, description: str | None = None) -> None:
        """Show a success message."""

    def failure(self, title: str, description: str | None = None) -> None:
        """Show a failure message."""


__all__ = ["ErrorReporterPort", "NotifierPort"]
