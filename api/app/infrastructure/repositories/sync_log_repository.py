"""
Repositorio para el log de auditoria de sincronizaciones (as_sync_logs).
"""
from typing import Callable

from loguru import logger
from sqlalchemy.orm import Session

from app.infrastructure.database.models import SyncLogModel
from app.infrastructure.external.sankhya_sync.sync_config import TARGET_TABLE
from app.infrastructure.external.sankhya_sync.types import SyncOutcome


class SyncLogRepository:
    """
    Persiste un SyncOutcome por corrida.

    Abre su propia sesión: el log se escribe aunque la transacción del sync
    haya hecho rollback.
    """

    def __init__(self, session_factory: Callable[[], Session], table_name: str = TARGET_TABLE):
        self._session_factory = session_factory
        self._table_name = table_name

    def record_outcome(self, outcome: SyncOutcome) -> None:
        entry = SyncLogModel(
            id_sistema=outcome.id_sistema,
            empresa=outcome.empresa,
            tabela=self._table_name,
            status="SUCESSO" if outcome.success else "FALHA",
            total_registros=outcome.total_records,
            registros_inseridos=outcome.inserted,
            registros_atualizados=outcome.updated,
            registros_deletados=outcome.deactivated,
            duracao_ms=outcome.duration_ms,
            mensagem_erro=outcome.error[:2000] if outcome.error else None,
            data_inicio=outcome.started_at,
            data_fim=outcome.finished_at,
        )
        with self._session_factory() as db:
            db.add(entry)
            db.commit()
        logger.debug(f"Log de sync guardado para empresa {outcome.id_sistema} ({entry.status})")
