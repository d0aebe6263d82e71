"""
Servicio de sincronización Sankhya (CabecalhoNota) -> Postgres (as_cabecalho_nota).

Diseño (resumen):
- Token siempre renovado al iniciar (no se conoce la vida restante del anterior)
- Snapshot completo vía ResumableRetriever (no hay delta en el origen)
- Reconciliación: stale-mark + upsert por lotes, commit final
- Nunca levanta: toda falla se convierte en un SyncOutcome con success=False
- Empresas en serie, con pausa entre ellas (token y rate limit por empresa)
- Una sola corrida por empresa a la vez (TenantRunLock: lock local + advisory lock)
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Optional, Protocol

from loguru import logger
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as app_settings
from app.infrastructure.database.session import SessionLocal
from app.infrastructure.repositories.sync_log_repository import SyncLogRepository

from .contracts import ContractDirectory
from .mirror_repository import CabecalhoNotaRepository
from .reconciler import Reconciler
from .retriever import ResumableRetriever
from .run_lock import TenantRunLock
from .sankhya_client import SankhyaClient
from .sync_config import SyncSettings
from .token_supplier import SankhyaTokenSupplier, TokenSupplier
from .types import SyncOutcome, SyncStats, Tenant, utc_now


class OutcomeSink(Protocol):
    def record_outcome(self, outcome: SyncOutcome) -> None:
        ...


class OutcomeRecorder:
    """
    Persistencia best-effort del resultado.

    Una falla del sink se loguea y queda en last_error; nunca se propaga ni
    altera el outcome que retorna el orquestador.
    """

    def __init__(self, sink: Optional[OutcomeSink]) -> None:
        self._sink = sink
        self.last_error: Optional[Exception] = None

    def record(self, outcome: SyncOutcome) -> bool:
        if self._sink is None:
            return False
        try:
            self._sink.record_outcome(outcome)
        except Exception as e:
            self.last_error = e
            logger.error(f"[Sync] Error al guardar log de sincronización: {e}")
            return False
        self.last_error = None
        return True


def _duration_ms(started_at: datetime, finished_at: datetime) -> int:
    return int((finished_at - started_at).total_seconds() * 1000)


class CabecalhoNotaSync:
    """
    Orquestador del pipeline: una empresa (sync_tenant) o todas (sync_all_tenants).
    """

    def __init__(
        self,
        *,
        tokens: TokenSupplier,
        retriever: ResumableRetriever,
        session_factory: Callable[[], Session],
        list_tenants: Callable[[], list[Tenant]],
        outcome_sink: Optional[OutcomeSink] = None,
        config: Optional[SyncSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utc_now,
        run_lock: Optional[TenantRunLock] = None,
    ) -> None:
        self._tokens = tokens
        self._retriever = retriever
        self._session_factory = session_factory
        self._list_tenants = list_tenants
        self._config = config or SyncSettings()
        self._sleep = sleep
        self._clock = clock
        self.recorder = OutcomeRecorder(outcome_sink)
        self._run_lock = run_lock or TenantRunLock(session_factory)

    def sync_tenant(self, id_sistema: int, empresa: str) -> SyncOutcome:
        """
        Sincroniza una empresa de punta a punta. Siempre retorna un SyncOutcome.

        Si ya hay una corrida en curso para la empresa (este proceso u otro),
        no se ejecuta y el resultado es una falla.
        """
        started_at = self._clock()
        logger.info("=" * 60)
        logger.info(f"SINCRONIZACIÓN DE CABECERAS DE NOTA | ID_SISTEMA: {id_sistema} | Empresa: {empresa}")
        logger.info("=" * 60)

        try:
            with self._run_lock.hold(id_sistema) as acquired:
                if acquired:
                    outcome = self._run(id_sistema, empresa, started_at)
                else:
                    logger.warning(f"[Sync] Sync ya está corriendo para {empresa} (lock ocupado). Saliendo.")
                    outcome = self._failed(
                        id_sistema,
                        empresa,
                        started_at,
                        f"Sincronización ya en curso para empresa {id_sistema}",
                    )
        except Exception as e:
            logger.error(f"[Sync] Error al tomar el lock de sincronización para {empresa}: {e}")
            outcome = self._failed(id_sistema, empresa, started_at, str(e))

        self.recorder.record(outcome)
        return outcome

    def _run(self, id_sistema: int, empresa: str, started_at: datetime) -> SyncOutcome:
        try:
            logger.info(f"[Sync] Forzando renovación del token para contrato {id_sistema}...")
            token = self._tokens.get_token(id_sistema, force_renew=True)
            headers = self._retriever.retrieve(id_sistema, token)

            with self._session_factory() as db:
                try:
                    result = Reconciler(
                        db, batch_size=self._config.batch_size, clock=self._clock
                    ).reconcile(id_sistema, headers)
                    db.commit()
                except Exception:
                    self._rollback(db)
                    raise
        except Exception as e:
            logger.error(f"[Sync] Error al sincronizar cabeceras de nota para {empresa}: {e}")
            return self._failed(id_sistema, empresa, started_at, str(e))

        finished_at = self._clock()
        outcome = SyncOutcome(
            id_sistema=id_sistema,
            empresa=empresa,
            success=True,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=_duration_ms(started_at, finished_at),
            total_records=len(headers),
            inserted=result.inserted,
            updated=result.updated,
            deactivated=result.deactivated,
            skipped=result.skipped,
        )
        logger.success(
            f"[Sync] Sincronización concluida para {empresa}: {outcome.total_records} registros, "
            f"{outcome.inserted} insertados, {outcome.updated} actualizados, "
            f"{outcome.deactivated} marcados no actuales ({outcome.duration_ms}ms)"
        )
        return outcome

    def _failed(self, id_sistema: int, empresa: str, started_at: datetime, error: str) -> SyncOutcome:
        finished_at = self._clock()
        return SyncOutcome(
            id_sistema=id_sistema,
            empresa=empresa,
            success=False,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=_duration_ms(started_at, finished_at),
            error=error,
        )

    def sync_all_tenants(self) -> list[SyncOutcome]:
        """
        Sincroniza todas las empresas activas, una por vez. Una falla no corta la iteración.
        """
        logger.info("[Sync] Iniciando sincronización de cabeceras de nota de todas las empresas...")
        tenants = self._list_tenants()
        if not tenants:
            logger.warning("[Sync] Ninguna empresa activa encontrada")
            return []

        logger.info(f"[Sync] {len(tenants)} empresas activas encontradas")
        outcomes: list[SyncOutcome] = []
        for i, tenant in enumerate(tenants):
            if i > 0:
                self._sleep(self._config.tenant_delay_s)
            outcomes.append(self.sync_tenant(tenant.id_sistema, tenant.empresa))

        successes = sum(1 for o in outcomes if o.success)
        logger.info(
            f"[Sync] Sincronización de todas las empresas concluida. "
            f"Éxitos: {successes}, Fallas: {len(outcomes) - successes}"
        )
        return outcomes

    def get_sync_stats(self, id_sistema: Optional[int] = None) -> list[SyncStats]:
        with self._session_factory() as db:
            return CabecalhoNotaRepository(db).get_stats(id_sistema)

    @staticmethod
    def _rollback(db: Session) -> None:
        try:
            db.rollback()
        except Exception as rollback_error:
            logger.error(f"[Sync] Error al hacer rollback: {rollback_error}")


def build_from_settings(
    config: Settings = app_settings,
    *,
    session_factory: Optional[Callable[[], Session]] = None,
) -> CabecalhoNotaSync:
    """
    Constructor “oficial” del pipeline a partir de Settings (env / .env).
    """
    if session_factory is None:
        session_factory = SessionLocal

    sync_settings = SyncSettings.from_settings(config)
    contracts = ContractDirectory(
        session_factory,
        base_url=config.SANKHYA_BASE_URL,
        sandbox_base_url=config.SANKHYA_SANDBOX_BASE_URL,
    )
    tokens = SankhyaTokenSupplier(
        contracts,
        auth_path=config.SANKHYA_AUTH_PATH,
        default_ttl_s=config.SANKHYA_TOKEN_TTL_S,
    )
    retriever = ResumableRetriever(
        SankhyaClient(timeout_s=sync_settings.page_timeout_s),
        tokens,
        contracts.base_url_for,
        config=sync_settings,
    )
    return CabecalhoNotaSync(
        tokens=tokens,
        retriever=retriever,
        session_factory=session_factory,
        list_tenants=contracts.list_active_tenants,
        outcome_sink=SyncLogRepository(session_factory),
        config=sync_settings,
    )
