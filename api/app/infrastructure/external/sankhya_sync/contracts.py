"""
Búsqueda de contrato activo por empresa y resolución de URL base
(sandbox vs producción).
"""

from __future__ import annotations

from typing import Callable

from sqlalchemy.orm import Session

from app.infrastructure.repositories.contract_repository import ContractInfo, ContractRepository
from app.shared.exceptions.domain import EntityNotFoundException

from .types import Tenant


class ContractDirectory:
    """
    Fachada sobre ContractRepository que abre/cierra su propia sesión por consulta.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        base_url: str,
        sandbox_base_url: str,
    ) -> None:
        self._session_factory = session_factory
        self._base_url = base_url.rstrip("/")
        self._sandbox_base_url = sandbox_base_url.rstrip("/")

    def get_active_contract(self, id_sistema: int) -> ContractInfo:
        with self._session_factory() as db:
            contract = ContractRepository(db).get_contract(id_sistema)
        if contract is None or not contract.ativo:
            raise EntityNotFoundException("Contrato activo", id_sistema)
        return contract

    def base_url_for(self, id_sistema: int) -> str:
        contract = self.get_active_contract(id_sistema)
        return self._sandbox_base_url if contract.is_sandbox else self._base_url

    def list_active_tenants(self) -> list[Tenant]:
        with self._session_factory() as db:
            return ContractRepository(db).list_active_tenants()
