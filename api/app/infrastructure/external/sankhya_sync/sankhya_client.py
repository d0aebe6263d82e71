"""
Cliente mínimo del gateway Sankhya (CRUDServiceProvider.loadRecords).

Requisitos cubiertos:
- requests
- una página por llamada (offsetPage); la iteración vive en el retriever
- clasificación de errores: auth (401/403), transitorios (timeout, red, 429, 5xx),
  permanentes (resto de 4xx, payload malformado)
- mapeo posicional genérico de la metadata dinámica de campos
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from .types import NOTE_HEADER_FIELDS, NoteHeader, RemotePage

LOAD_RECORDS_PATH = (
    "/gateway/v1/mge/service.sbr"
    "?serviceName=CRUDServiceProvider.loadRecords&outputType=json"
)
ROOT_ENTITY = "CabecalhoNota"


class SankhyaApiError(RuntimeError):
    """Error de integración con Sankhya (no recuperable por defecto)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SankhyaAuthError(SankhyaApiError):
    """Token vencido o rechazado (401/403)."""


class SankhyaTransientError(SankhyaApiError):
    """Falla transitoria: timeout, reset de conexión, DNS, 429 o 5xx."""


def build_load_records_payload(page: int, fields: tuple[str, ...] = NOTE_HEADER_FIELDS) -> dict[str, Any]:
    """Body de loadRecords para una página (offsetPage empieza en 0)."""
    return {
        "requestBody": {
            "dataSet": {
                "rootEntity": ROOT_ENTITY,
                "includePresentationFields": "N",
                "useFileBasedPagination": True,
                "disableRowsLimit": True,
                "offsetPage": str(page),
                "entity": {
                    "fieldset": {
                        "list": ", ".join(fields),
                    }
                },
            }
        }
    }


def _as_list(value: Any) -> list[Any]:
    """Sankhya devuelve un objeto suelto (no lista) cuando hay un solo elemento."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def map_entities(field_names: list[str], raw_entities: Any) -> list[NoteHeader]:
    """
    Mapea entidades posicionales (f0, f1, ...) a NoteHeader.

    El campo i de metadata corresponde a la clave f{i} de cada entidad, con el
    valor en "$". Si la clave falta o viene vacía ({}), el campo queda sin valor.
    """
    records: list[NoteHeader] = []
    for raw_entity in _as_list(raw_entities):
        fields: dict[str, Any] = {}
        for i, name in enumerate(field_names):
            cell = raw_entity.get(f"f{i}") if isinstance(raw_entity, dict) else None
            value = cell.get("$") if isinstance(cell, dict) else cell
            if value is not None:
                fields[name] = value
        records.append(NoteHeader.from_fields(fields))
    return records


def parse_load_records_response(payload: Any) -> RemotePage:
    """
    Convierte la respuesta JSON de loadRecords en una RemotePage.

    Sin entidades -> página vacía sin más resultados (fin normal de paginación).
    """
    if not isinstance(payload, dict):
        raise SankhyaApiError(f"Respuesta inesperada de Sankhya: {type(payload).__name__}")

    if str(payload.get("status", "")) == "0":
        raise SankhyaApiError(f"Sankhya rechazó la consulta: {payload.get('statusMessage')}")

    entities = (payload.get("responseBody") or {}).get("entities") or {}
    if not entities.get("entity"):
        return RemotePage(records=[], has_more=False)

    try:
        field_names = [f["name"] for f in _as_list(entities["metadata"]["fields"]["field"])]
    except (KeyError, TypeError) as e:
        raise SankhyaApiError(f"Respuesta de Sankhya sin metadata de campos: {e}") from e

    return RemotePage(
        records=map_entities(field_names, entities["entity"]),
        has_more=_as_bool(entities.get("hasMoreResult")),
    )


class SankhyaClient:
    """
    Cliente HTTP de Sankhya. Trae una página de CabecalhoNota por llamada.

    No reintenta: la política de reintentos/renovación de token es del
    ResumableRetriever, que es quien conserva el progreso acumulado.
    """

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: int = 60,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_s = timeout_s

    def fetch_page(self, *, base_url: str, token: str, page: int) -> RemotePage:
        url = f"{base_url.rstrip('/')}{LOAD_RECORDS_PATH}"
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            resp = self._session.post(
                url,
                json=build_load_records_payload(page),
                headers=headers,
                timeout=self._timeout_s,
            )
        except requests.Timeout as e:
            raise SankhyaTransientError(f"Timeout consultando página {page}: {e}") from e
        except requests.ConnectionError as e:
            # Incluye connection reset y fallas de DNS
            raise SankhyaTransientError(f"Error de conexión consultando página {page}: {e}") from e

        status = resp.status_code
        if status in (401, 403):
            raise SankhyaAuthError(f"Sankhya rechazó el token ({status})", status_code=status)
        if status == 429 or 500 <= status < 600:
            raise SankhyaTransientError(
                f"Sankhya error {status}: {resp.text[:500]}", status_code=status
            )
        if not 200 <= status < 300:
            raise SankhyaApiError(
                f"Sankhya request falló {status}: {resp.text[:500]}", status_code=status
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise SankhyaApiError(f"Respuesta de Sankhya no es JSON válido (página {page})") from e

        return parse_load_records_response(payload)
