"""
Configuración de fixtures para pytest.
"""
from __future__ import annotations

from typing import Callable, Iterator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.infrastructure.database.session import Base
from app.infrastructure.database.models import ContratoModel


@pytest.fixture(scope="function")
def engine(tmp_path) -> Iterator[Engine]:
    """
    Engine SQLite en archivo temporal, una base por test.

    pysqlite abre transacciones implícitas que rompen SAVEPOINT; se desactiva
    y se emite BEGIN explícito (receta de la doc de SQLAlchemy).
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'mirror.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(engine, class_=Session, expire_on_commit=False, autoflush=False)


@pytest.fixture
def seed_contracts(session_factory):
    """Inserta contratos: (id, empresa, ativo, is_sandbox)."""

    def _seed(*contracts: tuple[int, str, str, bool]) -> None:
        with session_factory() as db:
            for id_empresa, empresa, ativo, is_sandbox in contracts:
                db.add(
                    ContratoModel(
                        id_empresa=id_empresa,
                        empresa=empresa,
                        ativo=ativo,
                        is_sandbox=is_sandbox,
                        client_id=f"client-{id_empresa}",
                        client_secret="secret",
                        x_token="xtoken",
                    )
                )
            db.commit()

    return _seed

