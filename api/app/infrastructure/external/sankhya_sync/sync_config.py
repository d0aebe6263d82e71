"""
Configuración del sync (reintentos, pausas, tamaño de lote).

Los valores se inyectan en el retriever/reconciler/orquestador en vez de
vivir como constantes de módulo, así los tests pueden usar pausas de 0.

Este módulo no realiza I/O: solo define configuración.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings


TARGET_TABLE = "AS_CABECALHO_NOTA"


class SyncConfigError(RuntimeError):
    """Error de configuración del pipeline (p.ej. contrato sin credenciales)."""


@dataclass(frozen=True)
class SyncSettings:
    """
    Parámetros del pipeline.

    - max_attempts: intentos totales de la descarga completa (desde página 0)
    - retry_delay_s: pausa base entre intentos; se multiplica por el nro de intento
    - page_delay_s: pausa entre páginas (rate limit de Sankhya)
    - auth_renew_delay_s: pausa tras renovar el token a mitad de paginación
    - max_auth_renewals: renovaciones consecutivas permitidas para una misma página
    - tenant_delay_s: pausa entre empresas en el sync masivo
    - batch_size: notas por lote/commit en la reconciliación
    - page_timeout_s: timeout HTTP por página
    """

    max_attempts: int = 3
    retry_delay_s: float = 2.0
    page_delay_s: float = 0.5
    auth_renew_delay_s: float = 1.0
    max_auth_renewals: int = 3
    tenant_delay_s: float = 2.0
    batch_size: int = 100
    page_timeout_s: int = 60

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncSettings":
        return cls(
            max_attempts=settings.SYNC_MAX_ATTEMPTS,
            retry_delay_s=settings.SYNC_RETRY_DELAY_S,
            page_delay_s=settings.SYNC_PAGE_DELAY_S,
            auth_renew_delay_s=settings.SYNC_AUTH_RENEW_DELAY_S,
            max_auth_renewals=settings.SYNC_MAX_AUTH_RENEWALS,
            tenant_delay_s=settings.SYNC_TENANT_DELAY_S,
            batch_size=settings.SYNC_BATCH_SIZE,
            page_timeout_s=settings.SYNC_PAGE_TIMEOUT_S,
        )
