"""
Gestión de sesiones de base de datos.

El pipeline de sync es sincrónico (requests + psycopg), por lo que se usa
el engine sincrónico de SQLAlchemy. Desde FastAPI se invoca vía
asyncio.to_thread para no bloquear el event loop.
"""
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(url: str) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite no lo soporta.
    """
    args = {
        "echo": settings.DEBUG,
        "future": True,
    }

    # Configuracion de pool solo para PostgreSQL
    if "postgresql" in url:
        args.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


# Engine de base de datos
engine = create_engine(
    settings.effective_database_url,
    **_create_engine_args(settings.effective_database_url),
)

# Session factory
SessionLocal = sessionmaker(
    engine,
    class_=Session,
    expire_on_commit=False,
    autoflush=False
)


def get_db() -> Generator[Session, None, None]:
    """
    Generador de sesiones de base de datos.
    Para usar como dependencia en FastAPI.

    Yields:
        Session: Sesión de base de datos
    """
    with SessionLocal() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def init_db() -> None:
    """Inicializa la base de datos creando todas las tablas."""
    # Registrar modelos en el metadata antes de create_all
    from app.infrastructure.database import models  # noqa: F401

    Base.metadata.create_all(engine)


def close_db() -> None:
    """Cierra las conexiones de la base de datos."""
    engine.dispose()
