"""Logger-backed implementations of the reporting collaborators."""

from src.application.ports.notifications import ErrorReporterPort, NotifierPort
from src.infrastructure.logging.logger import (
    get_app_logger,
    get_usage_logger,
)


class LoggingErrorReporter(ErrorReporterPort):
    """Write incident reports to the application log."""

    def __init__(self, logger=None) -> None:
        self._logger = logger or get_app_logger()
        self.reports: list[tuple[str, str]] = []

    def report(self, source: str, message: str) -> None:
        self.reports.append((source, message))
        self._logger.error(f"[{source}] {message}")


class LoggingNotifier(NotifierPort):
    """Write user-facing messages to the usage log."""

    def __init__(self, logger=None) -> None:
        self._logger = logger or get_usage_logger()

    def success(self, title: str, description: str | None = None) -> None:
        self._logger.info(_format(title, description))

    def failure(self, title: str, description: str | None = None) -> None:
        self._logger.warning(_format(title, description))


def _format(title: str, description: str | None) -> str:
    return f"{title}: {description}" if description else title


__all__ = ["LoggingErrorReporter", "LoggingNotifier"]
