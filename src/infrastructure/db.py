"""Database infrastructure for the ledger mirror.

This module exposes concrete helpers to create and reuse the SQLAlchemy
engine connected to the mirror database. It belongs to the infrastructure
layer because it deals with external systems (PostgreSQL, SQLite).
"""

import os
from typing import Optional

import dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import QueuePool, StaticPool

from src.application.ports.database import DatabaseEnginePort


def _get_env_var(name: str) -> str:
    """Read an environment variable or raise a descriptive error.

    Args:
        name: Name of the environment variable to read.

    Returns:
        str: The raw value of the environment variable.

    Raises:
        RuntimeError: If the environment variable is missing or empty.
    """
    dotenv.load_dotenv()
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}")
    return value


def _create_engine(db_url: str) -> Engine:
    """Create a configured SQLAlchemy engine for the mirror database.

    Args:
        db_url: Fully qualified database URL (including driver and credentials)

    Returns:
        Engine: A SQLAlchemy engine instance with a small connection pool and
        health checks enabled. In-memory SQLite shares one connection so the
        mirror survives across threads.
    """
    url = make_url(db_url)
    in_memory = url.database in (None, "", ":memory:")
    if url.get_backend_name() == "sqlite" and in_memory:
        return create_engine(
            db_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            future=True,
        )
    return create_engine(
        db_url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
        future=True,
    )


_mirror_engine: Optional[Engine] = None


def get_mirror_engine() -> Engine:
    """Get a singleton SQLAlchemy engine for the mirror database.

    Returns:
        Engine: Lazily initialized engine connected to the mirror.
    """
    global _mirror_engine
    if _mirror_engine is None:
        db_url = _get_env_var("MIRROR_DB_URL")
        _mirror_engine = _create_engine(db_url)
    return _mirror_engine


class SqlAlchemyDatabaseEngineAdapter(DatabaseEnginePort):
    """DatabaseEnginePort implementation backed by SQLAlchemy engines.

    The adapter hides configuration details (environment variables, pooling)
    behind the port so application use cases can depend only on the protocol.
    An explicit engine can be injected, e.g. for tests.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    def get_mirror_engine(self) -> Engine:
        """Get the engine for the mirror database.

        Returns:
            Engine: SQLAlchemy engine connected to the mirror.
        """
        if self._engine is not None:
            return self._engine
        return get_mirror_engine()


__all__ = [
    "get_mirror_engine",
    "SqlAlchemyDatabaseEngineAdapter",
]
