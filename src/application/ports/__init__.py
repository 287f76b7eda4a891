"""Application ports package."""

from .database import DatabaseEnginePort
from .gateway import ExternalActionGatewayPort
from .mirror_repository import MirrorFilter, MirrorRepositoryPort
from .notifications import ErrorReporterPort, NotifierPort
from .reconciliation_repository import TrialBalanceRepositoryPort

__all__ = [
    "DatabaseEnginePort",
    "ExternalActionGatewayPort",
    "MirrorFilter",
    "MirrorRepositoryPort",
    "ErrorReporterPort",
    "NotifierPort",
    "TrialBalanceRepositoryPort",
]
