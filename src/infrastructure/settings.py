"""Settings helpers for infrastructure adapters."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import os
from typing import Optional

import dotenv

from src.domain.constants import (
    DEFAULT_PAGE_SIZE,
    RECONCILE_TOLERANCE,
    SECONDARY_FETCH_DELAY_SECONDS,
)
from src.infrastructure.external_gateway import DEFAULT_TIMEOUT_SECONDS
from src.infrastructure.logging.logger import get_app_logger


@dataclass(frozen=True)
class LedgerSettings:
    """Settings for the ledger mirror.

    Attributes:
        gateway_url: URL of the external action endpoint.
        gateway_token: Optional bearer token for the endpoint.
        gateway_timeout: Request timeout in seconds.
        page_size: Rows requested per mirror page.
        secondary_delay: Pause before the secondary fetch, in seconds.
        tolerance: Largest trial-balance difference treated as balanced.
    """

    gateway_url: Optional[str] = None
    gateway_token: Optional[str] = None
    gateway_timeout: float = DEFAULT_TIMEOUT_SECONDS
    page_size: int = DEFAULT_PAGE_SIZE
    secondary_delay: float = SECONDARY_FETCH_DELAY_SECONDS
    tolerance: Decimal = RECONCILE_TOLERANCE

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        """Build settings from environment variables.

        Returns:
            LedgerSettings: Settings sourced from environment variables.
        """
        dotenv.load_dotenv()
        logger = get_app_logger()
        page_size = cls._parse(
            "MIRROR_PAGE_SIZE", int, DEFAULT_PAGE_SIZE, logger
        )
        if page_size <= 0:
            logger.warning(
                f"MIRROR_PAGE_SIZE must be positive, using {DEFAULT_PAGE_SIZE}"
            )
            page_size = DEFAULT_PAGE_SIZE
        return cls(
            gateway_url=os.getenv("LEDGER_GATEWAY_URL") or None,
            gateway_token=os.getenv("LEDGER_GATEWAY_TOKEN") or None,
            gateway_timeout=cls._parse(
                "LEDGER_GATEWAY_TIMEOUT",
                float,
                DEFAULT_TIMEOUT_SECONDS,
                logger,
            ),
            page_size=page_size,
            secondary_delay=cls._parse(
                "SECONDARY_FETCH_DELAY",
                float,
                SECONDARY_FETCH_DELAY_SECONDS,
                logger,
            ),
            tolerance=cls._parse(
                "RECONCILE_TOLERANCE",
                Decimal,
                RECONCILE_TOLERANCE,
                logger,
            ),
        )

    @staticmethod
    def _parse(name: str, convert, default, logger):
        """Convert an environment variable, falling back on bad values.

        Args:
            name: Environment variable name.
            convert: Callable converting the raw string.
            default: Value used when the variable is unset or invalid.
            logger: Logger used for warnings.

        Returns:
            The converted value or the default.
        """
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            return convert(raw.strip())
        except (ValueError, InvalidOperation):
            logger.warning(f"Invalid {name} value {raw!r}, using {default}")
            return default


__all__ = ["LedgerSettings"]
