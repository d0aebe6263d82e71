from datetime import date
from typing import Any, Optional
from loguru import logger


def parse_negotiation_date(value: Any) -> Optional[date]:
    """
    Convierte DTNEG de Sankhya a date.

    Formatos aceptados (la hora, si viene, se descarta):
    - ISO: YYYY-MM-DD[ HH:MM:SS]
    - Brasileño: DD/MM/YYYY[ HH:MM:SS]

    Cualquier forma invalida retorna None: la nota se persiste igual, sin fecha.
    """
    if value is None:
        return None

    raw = str(value).strip()
    if not raw:
        return None

    date_part = raw.split(" ", 1)[0]
    if "-" in date_part:
        parts = date_part.split("-")
        order = ("year", "month", "day")
    elif "/" in date_part:
        parts = date_part.split("/")
        order = ("day", "month", "year")
    else:
        logger.warning(f"Formato de fecha no reconocido: {raw}")
        return None

    if len(parts) != 3:
        logger.warning(f"Fecha invalida: {raw}")
        return None

    try:
        components = dict(zip(order, (int(p) for p in parts)))
    except ValueError:
        logger.warning(f"Fecha invalida: {raw}")
        return None

    year, month, day = components["year"], components["month"], components["day"]
    if year < 1 or not 1 <= month <= 12 or not 1 <= day <= 31:
        logger.warning(f"Fecha invalida: {raw}")
        return None

    try:
        return date(year, month, day)
    except ValueError:
        # p.ej. 31/02: pasa el rango pero no existe en el calendario
        logger.warning(f"Fecha inexistente: {raw}")
        return None
