"""
Repositorio del espejo local as_cabecalho_nota.

Solo emite sentencias: commits y savepoints los controla el caller
(Reconciler / orquestador).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.orm import Session

from app.infrastructure.database.models import CabecalhoNotaModel

from .types import SyncStats, ensure_utc

ACTIVE = "S"
INACTIVE = "N"

BUSINESS_COLUMNS: tuple[str, ...] = (
    "codtipoper",
    "codtipvenda",
    "codparc",
    "codvend",
    "vlrnota",
    "dtneg",
    "tipmov",
)


class CabecalhoNotaRepository:
    def __init__(self, db: Session):
        self.db = db

    def mark_all_inactive(self, id_sistema: int, *, refreshed_at: datetime) -> int:
        """
        Soft delete masivo: toda fila activa de la empresa pasa a 'N'.
        Una sola sentencia; las que vuelvan en el snapshot se reactivan en el upsert.
        """
        result = self.db.execute(
            update(CabecalhoNotaModel)
            .where(
                CabecalhoNotaModel.id_sistema == id_sistema,
                CabecalhoNotaModel.sankhya_atual == ACTIVE,
            )
            .values(sankhya_atual=INACTIVE, dt_ult_carga=refreshed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def exists(self, id_sistema: int, nunota: int) -> bool:
        query = select(CabecalhoNotaModel.nunota).where(
            CabecalhoNotaModel.id_sistema == id_sistema,
            CabecalhoNotaModel.nunota == nunota,
        )
        return self.db.execute(query).first() is not None

    def update_row(self, id_sistema: int, row: dict[str, Any], *, refreshed_at: datetime) -> None:
        values = {c: row.get(c) for c in BUSINESS_COLUMNS}
        self.db.execute(
            update(CabecalhoNotaModel)
            .where(
                CabecalhoNotaModel.id_sistema == id_sistema,
                CabecalhoNotaModel.nunota == row["nunota"],
            )
            .values(**values, sankhya_atual=ACTIVE, dt_ult_carga=refreshed_at)
            .execution_options(synchronize_session=False)
        )

    def insert_row(self, id_sistema: int, row: dict[str, Any], *, now: datetime) -> None:
        values = {c: row.get(c) for c in BUSINESS_COLUMNS}
        self.db.execute(
            insert(CabecalhoNotaModel).values(
                id_sistema=id_sistema,
                nunota=row["nunota"],
                **values,
                sankhya_atual=ACTIVE,
                dt_ult_carga=now,
                dt_criacao=now,
            )
        )

    def get_stats(self, id_sistema: Optional[int] = None) -> list[SyncStats]:
        """Totales/activos/inactivos y última carga, agrupados por empresa."""
        active = func.sum(case((CabecalhoNotaModel.sankhya_atual == ACTIVE, 1), else_=0))
        inactive = func.sum(case((CabecalhoNotaModel.sankhya_atual == INACTIVE, 1), else_=0))
        query = (
            select(
                CabecalhoNotaModel.id_sistema,
                func.count().label("total"),
                active.label("active"),
                inactive.label("inactive"),
                func.max(CabecalhoNotaModel.dt_ult_carga).label("last_sync_at"),
            )
            .group_by(CabecalhoNotaModel.id_sistema)
            .order_by(CabecalhoNotaModel.id_sistema)
        )
        if id_sistema is not None:
            query = query.where(CabecalhoNotaModel.id_sistema == id_sistema)

        return [
            SyncStats(
                id_sistema=r.id_sistema,
                total_records=int(r.total or 0),
                active_records=int(r.active or 0),
                inactive_records=int(r.inactive or 0),
                last_sync_at=ensure_utc(r.last_sync_at) if r.last_sync_at else None,
            )
            for r in self.db.execute(query).all()
        ]
