"""
Lock por empresa: evita dos corridas simultáneas del sync para el mismo ID_SISTEMA.

- Dentro del proceso: threading.Lock por empresa (API con varios requests).
- Entre procesos (API + cron): pg_try_advisory_lock sobre una conexión que se
  mantiene abierta durante toda la corrida. Solo en PostgreSQL.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator

from loguru import logger
from sqlalchemy import text
from sqlalchemy.orm import Session

from .sync_config import TARGET_TABLE


def stable_lock_namespace(table_name: str = TARGET_TABLE) -> int:
    """Primer int del advisory lock; determinista entre procesos (hash() no lo es)."""
    raw = f"sankhya_sync:{table_name}".encode("utf-8")
    return int(sum(raw) % (2**31 - 1))


_local_locks: dict[int, threading.Lock] = {}
_local_locks_guard = threading.Lock()


def _local_lock(id_sistema: int) -> threading.Lock:
    with _local_locks_guard:
        return _local_locks.setdefault(id_sistema, threading.Lock())


class TenantRunLock:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        namespace: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._namespace = stable_lock_namespace() if namespace is None else namespace

    @contextmanager
    def hold(self, id_sistema: int) -> Iterator[bool]:
        """
        Intenta tomar el lock sin esperar. Entrega True si se tomó; False si
        ya hay una corrida en curso para esa empresa.
        """
        local = _local_lock(id_sistema)
        if not local.acquire(blocking=False):
            yield False
            return

        try:
            with self._session_factory() as db:
                if db.get_bind().dialect.name != "postgresql":
                    yield True
                    return

                locked = db.execute(
                    text("SELECT pg_try_advisory_lock(:ns, :id_sistema)"),
                    {"ns": self._namespace, "id_sistema": id_sistema},
                ).scalar()
                if not locked:
                    db.rollback()
                    yield False
                    return

                try:
                    yield True
                finally:
                    self._unlock(db, id_sistema)
        finally:
            local.release()

    def _unlock(self, db: Session, id_sistema: int) -> None:
        try:
            db.execute(
                text("SELECT pg_advisory_unlock(:ns, :id_sistema)"),
                {"ns": self._namespace, "id_sistema": id_sistema},
            )
            db.commit()
        except Exception as e:
            logger.error(f"[Sync] Error al liberar advisory lock de empresa {id_sistema}: {e}")
            # La conexión no vuelve al pool; al cerrarse Postgres libera el lock
            db.invalidate()
