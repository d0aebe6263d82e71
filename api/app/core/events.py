"""
Ciclo de vida de la aplicacion: inicio y cierre.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from loguru import logger

from app.core.config import settings
from app.infrastructure.database.session import init_db, close_db


def configure_file_logging() -> None:
    """Agrega el sink de archivo con rotacion (API y CLI)."""
    logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level=settings.LOG_LEVEL
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Ciclo de vida de la aplicacion (inicio y cierre).

    Args:
        app: Instancia de FastAPI
    """
    try:
        logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Entorno: {settings.ENVIRONMENT}")

        # Inicializar base de datos (crea tablas si no existen)
        init_db()
        logger.info("Base de datos inicializada")

        configure_file_logging()

        logger.success("Aplicacion iniciada correctamente")

    except Exception as e:
        logger.error(f"Error durante startup: {e}")
        logger.exception("Detalle del error:")
        raise

    yield

    logger.info("Cerrando aplicacion...")

    # Cerrar conexiones de base de datos
    close_db()
    logger.info("Conexiones de base de datos cerradas")

    logger.success("Aplicacion cerrada correctamente")
