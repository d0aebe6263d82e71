"""
Tipos y utilidades puras para el pipeline Sankhya -> Postgres.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

# Campos pedidos a CRUDServiceProvider.loadRecords (orden = fieldset.list)
NOTE_HEADER_FIELDS: tuple[str, ...] = (
    "NUNOTA",
    "CODTIPOPER",
    "CODTIPVENDA",
    "CODPARC",
    "CODVEND",
    "VLRNOTA",
    "DTNEG",
    "TIPMOV",
)


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    SQLite (tests) devuelve datetimes naive; los tratamos como UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class NoteHeader:
    """
    Cabecera de nota tal como llega de Sankhya.

    Los valores se guardan crudos (normalmente str). El cast a tipos de columna
    ocurre en la reconciliación, registro por registro, para que un valor
    malformado descarte solo esa nota y no el snapshot completo.
    Un campo ausente es None (sin valor), nunca cero.
    """

    nunota: Any
    codtipoper: Any = None
    codtipvenda: Any = None
    codparc: Any = None
    codvend: Any = None
    vlrnota: Any = None
    dtneg: Any = None
    tipmov: Any = None

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "NoteHeader":
        """Construye desde un dict {NOMBRE_CAMPO_SANKHYA: valor}."""
        return cls(**{name.lower(): fields.get(name) for name in NOTE_HEADER_FIELDS})


@dataclass(frozen=True)
class RemotePage:
    """Una página de loadRecords ya mapeada."""

    records: list[NoteHeader]
    has_more: bool


@dataclass(frozen=True)
class SyncOutcome:
    """Resultado inmutable de una corrida de sync para una empresa."""

    id_sistema: int
    empresa: str
    success: bool
    started_at: datetime
    finished_at: datetime
    duration_ms: int
    total_records: int = 0
    inserted: int = 0
    updated: int = 0
    deactivated: int = 0
    skipped: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class SyncStats:
    """Estadísticas del espejo agrupadas por empresa."""

    id_sistema: int
    total_records: int
    active_records: int
    inactive_records: int
    last_sync_at: Optional[datetime]


@dataclass(frozen=True)
class Tenant:
    """Empresa habilitada para sync (fila activa de ad_contratos)."""

    id_sistema: int
    empresa: str
