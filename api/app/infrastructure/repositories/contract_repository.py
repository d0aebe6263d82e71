"""
Repositorio de contratos Sankhya (tabla ad_contratos).
"""
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.infrastructure.database.models import ContratoModel
from app.infrastructure.external.sankhya_sync.types import Tenant


@dataclass(frozen=True)
class ContractInfo:
    """Copia desacoplada de la sesión de un contrato."""

    id_sistema: int
    empresa: str
    ativo: bool
    is_sandbox: bool
    client_id: Optional[str]
    client_secret: Optional[str]
    x_token: Optional[str]


class ContractRepository:
    """
    Lectura de contratos. No escribe: los contratos se administran fuera del sync.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_active_tenants(self) -> List[Tenant]:
        """Empresas con ativo='S', ordenadas por nombre."""
        query = (
            select(ContratoModel.id_empresa, ContratoModel.empresa)
            .where(ContratoModel.ativo == "S")
            .order_by(ContratoModel.empresa)
        )
        rows = self.db.execute(query).all()
        return [Tenant(id_sistema=r.id_empresa, empresa=r.empresa) for r in rows]

    def get_contract(self, id_sistema: int) -> Optional[ContractInfo]:
        contrato = self.db.get(ContratoModel, id_sistema)
        if contrato is None:
            return None
        return ContractInfo(
            id_sistema=contrato.id_empresa,
            empresa=contrato.empresa,
            ativo=contrato.ativo == "S",
            is_sandbox=bool(contrato.is_sandbox),
            client_id=contrato.client_id,
            client_secret=contrato.client_secret,
            x_token=contrato.x_token,
        )
