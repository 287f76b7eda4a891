"""Database ports for the ledger mirror.

This module defines the application-layer protocol for accessing the mirror
database engine. Infrastructure implementations are expected to provide
concrete adapters that satisfy this port.
"""

from typing import Protocol

from sqlalchemy.engine import Engine


class DatabaseEnginePort(Protocol):
    """Port exposing the engine of the local ledger mirror.

    Application use cases can depend on this protocol instead of concrete
    database drivers or configuration details.
    """

    def get_mirror_engine(self) -> Engine:
        """Get the engine for the mirror database.

        Returns:
            Engine: SQLAlchemy engine connected to the mirror tables.
        """


__all__ = ["DatabaseEnginePort"]
