"""
Utilidades para manejo de fechas y horas.

Se mantienen libres de I/O para poder testearlas facilmente.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

# La temporada FPL arranca en agosto.
SEASON_START_MONTH = 8


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    FPL devuelve ISO8601 con 'Z'; SQLite devuelve datetimes naive.
    Normalizamos para comparar/almacenar de forma consistente.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: str) -> Optional[datetime]:
    """
    Convierte un string ISO 8601 (con o sin 'Z') a datetime UTC.

    Returns:
        Optional[datetime]: datetime aware o None si el formato es invalido
    """
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except (ValueError, TypeError):
        return None


def season_code(today: Optional[date] = None) -> str:
    """
    Codigo de temporada de 4 digitos usado en claves de cache.

    Ejemplos:
    - 2024-09-01 -> '2425'
    - 2025-03-15 -> '2425'
    - 2025-08-01 -> '2526'
    """
    today = today or utc_now().date()
    start_year = today.year if today.month >= SEASON_START_MONTH else today.year - 1
    return f"{start_year % 100:02d}{(start_year + 1) % 100:02d}"
