"""
Reconciliación snapshot completo -> espejo local.

1. Marca todo lo activo de la empresa como 'N' (una sentencia).
2. Upsert por lotes: lo que vino en el snapshot vuelve a 'S' (update) o se
   inserta. Cada nota corre en un SAVEPOINT; si falla se descarta solo esa.
3. Commit por lote; el orquestador hace el commit final.

Resultado neto: activas = exactamente las notas del snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from loguru import logger
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from app.shared.utils.date_utils import parse_negotiation_date

from .mirror_repository import CabecalhoNotaRepository
from .types import NoteHeader, utc_now

# Errores de dato de una sola nota; cualquier otro (conexión, etc.) aborta el sync.
_RECORD_ERRORS = (ValueError, TypeError, ArithmeticError, IntegrityError, DataError)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _optional_int(value: Any) -> Optional[int]:
    if _blank(value):
        return None
    return int(str(value).strip())


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if _blank(value):
        return None
    return Decimal(str(value).strip())


def build_mirror_row(header: NoteHeader) -> dict[str, Any]:
    """
    Castea una NoteHeader a los tipos de columna de as_cabecalho_nota.

    Levanta ValueError si NUNOTA falta o no es numérico, o si un campo numérico
    viene malformado. DTNEG inválido no levanta: queda None.
    """
    nunota = _optional_int(header.nunota)
    if nunota is None:
        raise ValueError("NUNOTA ausente")

    return {
        "nunota": nunota,
        "codtipoper": _optional_int(header.codtipoper),
        "codtipvenda": _optional_int(header.codtipvenda),
        "codparc": _optional_int(header.codparc),
        "codvend": _optional_int(header.codvend),
        "vlrnota": _optional_decimal(header.vlrnota),
        "dtneg": parse_negotiation_date(header.dtneg),
        "tipmov": None if _blank(header.tipmov) else str(header.tipmov).strip(),
    }


@dataclass(frozen=True)
class ReconcileResult:
    deactivated: int
    inserted: int
    updated: int
    skipped: int


class Reconciler:
    def __init__(
        self,
        db: Session,
        *,
        batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size debe ser >= 1")
        self.db = db
        self.repository = CabecalhoNotaRepository(db)
        self._batch_size = batch_size
        self._clock = clock

    def reconcile(self, id_sistema: int, headers: Sequence[NoteHeader]) -> ReconcileResult:
        deactivated = self.mark_all_stale(id_sistema)
        inserted, updated, skipped = self.upsert(id_sistema, headers)
        return ReconcileResult(
            deactivated=deactivated,
            inserted=inserted,
            updated=updated,
            skipped=skipped,
        )

    def mark_all_stale(self, id_sistema: int) -> int:
        rows = self.repository.mark_all_inactive(id_sistema, refreshed_at=self._clock())
        logger.info(f"[Sync] {rows} registros marcados como no actuales")
        return rows

    def upsert(self, id_sistema: int, headers: Sequence[NoteHeader]) -> tuple[int, int, int]:
        inserted = updated = skipped = 0
        total_batches = (len(headers) + self._batch_size - 1) // self._batch_size

        for start in range(0, len(headers), self._batch_size):
            batch = headers[start:start + self._batch_size]
            now = self._clock()

            for header in batch:
                try:
                    with self.db.begin_nested():
                        row = build_mirror_row(header)
                        if self.repository.exists(id_sistema, row["nunota"]):
                            self.repository.update_row(id_sistema, row, refreshed_at=now)
                            updated += 1
                        else:
                            self.repository.insert_row(id_sistema, row, now=now)
                            inserted += 1
                except _RECORD_ERRORS as e:
                    skipped += 1
                    logger.error(f"[Sync] Error al procesar cabecera NUNOTA {header.nunota!r}: {e}")

            self.db.commit()
            logger.info(f"[Sync] Procesado lote {start // self._batch_size + 1} de {total_batches}")

        logger.info(
            f"[Sync] Upsert concluido: {inserted} insertados, {updated} actualizados, "
            f"{skipped} descartados"
        )
        return inserted, updated, skipped
