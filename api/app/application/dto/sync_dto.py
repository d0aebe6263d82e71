"""
DTOs para la sincronización de cabeceras de nota (Sankhya -> espejo local).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.infrastructure.external.sankhya_sync.types import SyncOutcome, SyncStats


class SyncOutcomeDTO(BaseModel):
    """Resultado de sincronizar una empresa."""

    success: bool
    id_sistema: int
    empresa: str
    total_registros: int = Field(0, description="Notas recibidas de Sankhya")
    registros_inseridos: int = 0
    registros_atualizados: int = 0
    registros_deletados: int = Field(0, description="Notas marcadas sankhya_atual='N'")
    registros_descartados: int = Field(0, description="Notas con datos inválidos, no persistidas")
    data_inicio: datetime
    data_fim: datetime
    duracao: int = Field(..., description="Duración en milisegundos")
    erro: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: SyncOutcome) -> "SyncOutcomeDTO":
        return cls(
            success=outcome.success,
            id_sistema=outcome.id_sistema,
            empresa=outcome.empresa,
            total_registros=outcome.total_records,
            registros_inseridos=outcome.inserted,
            registros_atualizados=outcome.updated,
            registros_deletados=outcome.deactivated,
            registros_descartados=outcome.skipped,
            data_inicio=outcome.started_at,
            data_fim=outcome.finished_at,
            duracao=outcome.duration_ms,
            erro=outcome.error,
        )


class SyncStatsDTO(BaseModel):
    """Estado del espejo para una empresa."""

    id_sistema: int
    total_registros: int
    registros_ativos: int
    registros_deletados: int
    ultima_sincronizacao: Optional[datetime] = None

    @classmethod
    def from_stats(cls, stats: SyncStats) -> "SyncStatsDTO":
        return cls(
            id_sistema=stats.id_sistema,
            total_registros=stats.total_records,
            registros_ativos=stats.active_records,
            registros_deletados=stats.inactive_records,
            ultima_sincronizacao=stats.last_sync_at,
        )
