"""
CLI: Sankhya (CabecalhoNota) -> Postgres (as_cabecalho_nota).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer).
  - Las empresas se procesan en serie; no lanzar dos corridas en paralelo.

Variables de entorno (o .env):
  - DATABASE_URL (postgresql://... o por componentes DATABASE_*)
  - SANKHYA_BASE_URL / SANKHYA_SANDBOX_BASE_URL (opcionales)
  - SYNC_* para ajustar reintentos y pausas

Ejecución:
  python scripts/sankhya_sync.py
  python scripts/sankhya_sync.py --id-sistema 12 --empresa "Empresa X"
  python scripts/sankhya_sync.py --stats
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `app/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (api/.env o raíz del repo).
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from app.core.events import configure_file_logging
from app.infrastructure.external.sankhya_sync.sync_service import build_from_settings


def _print_stats(service, id_sistema: int | None) -> None:
    stats = service.get_sync_stats(id_sistema)
    if not stats:
        logger.warning("Sin registros en as_cabecalho_nota")
        return
    for s in stats:
        last = s.last_sync_at.isoformat() if s.last_sync_at else "-"
        logger.info(
            f"ID_SISTEMA={s.id_sistema} total={s.total_records} activos={s.active_records} "
            f"no_actuales={s.inactive_records} ultima_carga={last}"
        )


def main() -> int:
    parser = argparse.ArgumentParser(description="Sincroniza cabeceras de nota Sankhya al espejo local.")
    parser.add_argument("--id-sistema", type=int, help="Sincroniza solo esta empresa.")
    parser.add_argument("--empresa", help="Nombre de la empresa (requerido con --id-sistema).")
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Solo muestra estadísticas del espejo (no ejecuta sync).",
    )
    args = parser.parse_args()

    configure_file_logging()
    service = build_from_settings()

    if args.stats:
        _print_stats(service, args.id_sistema)
        return 0

    if args.id_sistema is not None:
        if not args.empresa:
            parser.error("--empresa es obligatorio junto con --id-sistema")
        outcomes = [service.sync_tenant(args.id_sistema, args.empresa)]
    else:
        outcomes = service.sync_all_tenants()

    failed = [o for o in outcomes if not o.success]
    for o in failed:
        logger.error(f"Falla en empresa {o.id_sistema} ({o.empresa}): {o.error}")

    logger.info(f"Sync terminado: {len(outcomes) - len(failed)} OK, {len(failed)} con falla")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
