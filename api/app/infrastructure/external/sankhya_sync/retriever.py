"""
Descarga completa (snapshot) de CabecalhoNota con paginación reanudable.

Estrategia:
- Página a página desde offsetPage=0 con el token *actual*.
- 401/403 a mitad de paginación: se renueva el token y se reintenta la misma
  página; lo acumulado no se pierde.
- Fallas transitorias (timeout, red, 429, 5xx): se reintenta la descarga
  completa desde la página 0, hasta max_attempts, con pausa creciente.
- Nunca se devuelve un snapshot parcial: o llega completo o se levanta
  SankhyaRetrievalError.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from loguru import logger

from .sankhya_client import SankhyaAuthError, SankhyaTransientError
from .sync_config import SyncSettings
from .token_supplier import TokenSupplier
from .types import NoteHeader, RemotePage


class SankhyaRetrievalError(RuntimeError):
    """La descarga del snapshot falló (no transitoria o reintentos agotados)."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class PageFetcher(Protocol):
    def fetch_page(self, *, base_url: str, token: str, page: int) -> RemotePage:
        ...


@dataclass
class _TokenState:
    token: str
    renew_before_next_attempt: bool = False


class ResumableRetriever:
    def __init__(
        self,
        fetcher: PageFetcher,
        tokens: TokenSupplier,
        resolve_base_url: Callable[[int], str],
        *,
        config: Optional[SyncSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._tokens = tokens
        self._resolve_base_url = resolve_base_url
        self._config = config or SyncSettings()
        self._sleep = sleep

    def retrieve(self, id_sistema: int, token: str) -> list[NoteHeader]:
        """
        Retorna todas las cabeceras de la empresa o levanta SankhyaRetrievalError.
        """
        max_attempts = self._config.max_attempts
        state = _TokenState(token=token)

        for attempt in range(1, max_attempts + 1):
            logger.info(
                f"[Sync] Buscando cabeceras de nota de Sankhya para empresa {id_sistema} "
                f"(intento {attempt}/{max_attempts})"
            )
            try:
                if state.renew_before_next_attempt:
                    state.token = self._tokens.get_token(id_sistema, force_renew=True)
                    state.renew_before_next_attempt = False
                return self._fetch_all_pages(id_sistema, state)
            except (SankhyaTransientError, SankhyaAuthError) as e:
                logger.error(
                    f"[Sync] Error al buscar cabeceras de nota (intento {attempt}/{max_attempts}): {e}"
                )
                if attempt >= max_attempts:
                    raise SankhyaRetrievalError(
                        f"Error al buscar cabeceras de nota tras {attempt} intentos: {e}",
                        attempts=attempt,
                    ) from e

                if isinstance(e, SankhyaAuthError):
                    state.renew_before_next_attempt = True

                delay = self._config.retry_delay_s * attempt
                logger.info(f"[Sync] Esperando {delay:.1f}s antes del próximo intento...")
                self._sleep(delay)
            except Exception as e:
                logger.error(f"[Sync] Error no recuperable al buscar cabeceras de nota: {e}")
                raise SankhyaRetrievalError(
                    f"Error al buscar cabeceras de nota tras {attempt} intento(s): {e}",
                    attempts=attempt,
                ) from e

        # max_attempts < 1
        raise SankhyaRetrievalError("No se configuraron intentos de descarga", attempts=0)

    def _fetch_all_pages(self, id_sistema: int, state: _TokenState) -> list[NoteHeader]:
        base_url = self._resolve_base_url(id_sistema)
        records: list[NoteHeader] = []
        page = 0
        renewals = 0

        while True:
            try:
                result = self._fetcher.fetch_page(base_url=base_url, token=state.token, page=page)
            except SankhyaAuthError:
                if renewals >= self._config.max_auth_renewals:
                    raise
                renewals += 1
                logger.warning(
                    f"[Sync] Token expirado en página {page}, renovando "
                    f"(progreso mantenido: {len(records)} registros)"
                )
                state.token = self._tokens.get_token(id_sistema, force_renew=True)
                self._sleep(self._config.auth_renew_delay_s)
                continue

            renewals = 0
            records.extend(result.records)
            logger.info(
                f"[Sync] Página {page}: {len(result.records)} registros "
                f"(total acumulado: {len(records)})"
            )

            # Página vacía gana sobre hasMoreResult=true
            if not result.records or not result.has_more:
                logger.info(
                    f"[Sync] Última página alcanzada (hasMoreResult: {result.has_more}, "
                    f"registros: {len(result.records)})"
                )
                break

            page += 1
            self._sleep(self._config.page_delay_s)

        logger.info(f"[Sync] Total de {len(records)} cabeceras de nota en {page + 1} página(s)")
        return records
