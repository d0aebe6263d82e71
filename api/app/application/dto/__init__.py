"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import SyncOutcomeDTO, SyncStatsDTO

__all__ = [
    "SyncOutcomeDTO",
    "SyncStatsDTO",
]
