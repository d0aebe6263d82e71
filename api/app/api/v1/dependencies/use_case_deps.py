"""
Dependencias para inyeccion de casos de uso.
"""
from functools import lru_cache

from app.infrastructure.external.sankhya_sync.sync_service import (
    CabecalhoNotaSync,
    build_from_settings,
)


@lru_cache(maxsize=1)
def get_cabecalho_nota_sync() -> CabecalhoNotaSync:
    """
    Dependencia para obtener el servicio de sync de cabeceras de nota.

    Se reutiliza una sola instancia para conservar el cache de tokens por empresa.

    Returns:
        CabecalhoNotaSync: Servicio configurado desde settings
    """
    return build_from_settings()
