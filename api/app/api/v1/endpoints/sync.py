"""
Endpoints para sincronizacion de cabeceras de nota Sankhya -> espejo local.

El pipeline es bloqueante (requests + SQLAlchemy sync); se ejecuta en un
thread separado para no bloquear el event loop.
"""
import asyncio
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from app.api.v1.dependencies.use_case_deps import get_cabecalho_nota_sync
from app.application.dto.sync_dto import SyncOutcomeDTO, SyncStatsDTO
from app.infrastructure.external.sankhya_sync.sync_service import CabecalhoNotaSync
from app.shared.exceptions.domain import ValidationException


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.get(
    "/cabecalho-nota",
    response_model=List[SyncStatsDTO],
    status_code=status.HTTP_200_OK,
    summary="Estadisticas del espejo de cabeceras de nota"
)
async def get_cabecalho_nota_stats(
    id_sistema: Optional[int] = Query(default=None, description="Filtra por empresa"),
    service: CabecalhoNotaSync = Depends(get_cabecalho_nota_sync),
) -> List[SyncStatsDTO]:
    """
    Retorna, por empresa: total de notas, activas, marcadas como no actuales
    y fecha de la ultima carga.
    """
    stats = await asyncio.to_thread(service.get_sync_stats, id_sistema)
    return [SyncStatsDTO.from_stats(s) for s in stats]


@router.post(
    "/cabecalho-nota",
    response_model=Union[SyncOutcomeDTO, List[SyncOutcomeDTO]],
    status_code=status.HTTP_200_OK,
    summary="Sincronizar cabeceras de nota desde Sankhya"
)
async def sync_cabecalho_nota(
    id_sistema: Optional[int] = Query(default=None, description="Empresa a sincronizar"),
    empresa: Optional[str] = Query(default=None, description="Nombre de la empresa (para logs)"),
    service: CabecalhoNotaSync = Depends(get_cabecalho_nota_sync),
) -> Union[SyncOutcomeDTO, List[SyncOutcomeDTO]]:
    """
    Ejecuta la sincronizacion.

    - Con id_sistema y empresa: sincroniza solo esa empresa y retorna su resultado.
    - Sin parametros: sincroniza todas las empresas activas, una por vez, y retorna la lista.

    Las fallas por empresa vienen en el resultado (success=False), no como error HTTP.
    """
    if (id_sistema is None) != (empresa is None):
        raise ValidationException(
            "id_sistema y empresa deben enviarse juntos (u omitirse para sincronizar todas)",
            field="id_sistema" if id_sistema is None else "empresa",
        )

    if id_sistema is not None:
        logger.info(f"Iniciando sincronizacion de cabeceras de nota desde API: empresa {id_sistema}")
        outcome = await asyncio.to_thread(service.sync_tenant, id_sistema, empresa)
        return SyncOutcomeDTO.from_outcome(outcome)

    logger.info("Iniciando sincronizacion de cabeceras de nota desde API: todas las empresas")
    outcomes = await asyncio.to_thread(service.sync_all_tenants)

    return [SyncOutcomeDTO.from_outcome(o) for o in outcomes]
