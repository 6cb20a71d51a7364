"""
CLI: FPL -> Postgres -> cache (sync por tipo de entidad).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer), una vez por tipo de entidad.
  - La API expone los mismos casos de uso, pero una corrida grande puede
    superar los timeouts del request.

Ejecucion:
  python scripts/run_sync.py --kind entry_info
  python scripts/run_sync.py --kind entry_event_pick --event 12
  python scripts/run_sync.py --kind entry_event_transfer --entries 101 202
  python scripts/run_sync.py --kind entry_event_pick --event 12 --refresh

Codigos de salida:
  0 - corrida completa (aunque fallen entries individuales)
  1 - la corrida no pudo empezar (enumeracion, evento, tipo desconocido)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

# Cargar variables desde .env si existe (antes de importar settings).
load_dotenv(_ROOT / ".env", override=False)

from fpl_sync.core.config import settings
from fpl_sync.core.logging import configure_logging
from fpl_sync.domain.entities.records import RECORD_TYPES
from fpl_sync.infrastructure.container import build_container
from fpl_sync.infrastructure.database.session import close_db, init_db
from fpl_sync.shared.exceptions.base import AppException


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sincroniza datos de FPL en Postgres y en el cache")
    parser.add_argument(
        "--kind",
        required=True,
        choices=sorted(RECORD_TYPES),
        help="Tipo de entidad a sincronizar.",
    )
    parser.add_argument(
        "--event",
        type=int,
        default=None,
        help="Evento (gameweek). Por defecto el evento actual segun FPL.",
    )
    parser.add_argument(
        "--entries",
        type=int,
        nargs="+",
        default=None,
        help="Entries explicitos. Por defecto los registrados en entry_infos.",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Borra filas y cache antes de sincronizar.",
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    await init_db()
    container = build_container(settings)
    try:
        use_cases = container.sync_use_cases
        if args.refresh:
            result = await use_cases.refresh(args.kind, event_id=args.event, subject_ids=args.entries)
        else:
            result = await use_cases.sync(args.kind, event_id=args.event, subject_ids=args.entries)
    except AppException as e:
        logger.error(f"Sync {args.kind} abortado: {e.message} ({e.error_code})")
        return 1
    finally:
        await container.close()
        await close_db()

    logger.info(
        f"Sync {result.kind} OK: intentados={result.attempted}, ok={result.succeeded}, "
        f"existentes={result.skipped_existing}, vacios={result.empty}, fallidos={result.failed}, "
        f"escritos={result.records_written} ({result.duration_seconds:.1f}s)"
    )
    return 0


def main(argv=None) -> int:
    args = _parse_args(argv)
    configure_logging(settings)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
