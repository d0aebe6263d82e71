"""
Obtención y cache de tokens Bearer de Sankhya por empresa.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import requests
from loguru import logger

from .contracts import ContractDirectory
from .sankhya_client import SankhyaApiError, SankhyaAuthError, SankhyaTransientError
from .sync_config import SyncConfigError

# Renovar un poco antes de que el token venza
_EXPIRY_MARGIN_S = 30.0


class TokenSupplier(Protocol):
    """Entrega un token para la empresa; force_renew descarta el cacheado."""

    def get_token(self, id_sistema: int, force_renew: bool = False) -> str:
        ...


@dataclass(frozen=True)
class _CachedToken:
    token: str
    expires_at: float


class SankhyaTokenSupplier:
    """
    Login client_credentials contra el gateway (POST {base}/authenticate).

    Un token por empresa, cacheado hasta su expiración. Thread-safe: el
    endpoint HTTP puede disparar syncs desde threads distintos.
    """

    def __init__(
        self,
        contracts: ContractDirectory,
        *,
        session: Optional[requests.Session] = None,
        auth_path: str = "/authenticate",
        default_ttl_s: int = 300,
        timeout_s: int = 30,
    ) -> None:
        self._contracts = contracts
        self._session = session or requests.Session()
        self._auth_path = auth_path
        self._default_ttl_s = default_ttl_s
        self._timeout_s = timeout_s
        self._cache: dict[int, _CachedToken] = {}
        self._lock = threading.Lock()

    def get_token(self, id_sistema: int, force_renew: bool = False) -> str:
        with self._lock:
            if force_renew:
                self._cache.pop(id_sistema, None)

            cached = self._cache.get(id_sistema)
            if cached and cached.expires_at > time.monotonic():
                return cached.token

            token, ttl_s = self._authenticate(id_sistema)
            self._cache[id_sistema] = _CachedToken(
                token=token,
                expires_at=time.monotonic() + max(ttl_s - _EXPIRY_MARGIN_S, 0.0),
            )
            logger.info(f"Token Sankhya obtenido para empresa {id_sistema} (ttl={ttl_s}s)")
            return token

    def _authenticate(self, id_sistema: int) -> tuple[str, float]:
        contract = self._contracts.get_active_contract(id_sistema)
        missing = [
            name
            for name in ("client_id", "client_secret", "x_token")
            if not getattr(contract, name)
        ]
        if missing:
            raise SyncConfigError(
                f"Contrato de empresa {id_sistema} sin credenciales: {', '.join(missing)}"
            )

        base_url = self._contracts.base_url_for(id_sistema)
        url = f"{base_url}{self._auth_path}"

        try:
            resp = self._session.post(
                url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": contract.client_id,
                    "client_secret": contract.client_secret,
                },
                headers={"X-Token": contract.x_token},
                timeout=self._timeout_s,
            )
        except requests.Timeout as e:
            raise SankhyaTransientError(f"Timeout autenticando empresa {id_sistema}: {e}") from e
        except requests.ConnectionError as e:
            raise SankhyaTransientError(f"Error de conexión autenticando empresa {id_sistema}: {e}") from e

        if resp.status_code in (401, 403):
            raise SankhyaAuthError(
                f"Credenciales rechazadas para empresa {id_sistema} ({resp.status_code})",
                status_code=resp.status_code,
            )
        if resp.status_code == 429 or resp.status_code >= 500:
            raise SankhyaTransientError(
                f"Sankhya error {resp.status_code} autenticando empresa {id_sistema}",
                status_code=resp.status_code,
            )
        if not 200 <= resp.status_code < 300:
            raise SankhyaApiError(
                f"Autenticación falló {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise SankhyaApiError("Respuesta de autenticación no es JSON válido") from e

        token = body.get("access_token") or body.get("bearerToken")
        if not token:
            raise SankhyaApiError(f"Respuesta de autenticación sin access_token (empresa {id_sistema})")

        try:
            ttl_s = float(body.get("expires_in") or self._default_ttl_s)
        except (TypeError, ValueError):
            ttl_s = float(self._default_ttl_s)
        return token, ttl_s
