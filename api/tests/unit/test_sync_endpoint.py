"""
Tests unitarios para los endpoints de sync de cabeceras de nota.

Verifica el contrato HTTP:
- GET devuelve estadísticas por empresa.
- POST con id_sistema + empresa sincroniza una sola empresa y retorna un objeto.
- POST sin parámetros sincroniza todas y retorna una lista.
- POST con un solo parámetro es rechazado con 400.
- Una falla de sync viene en el cuerpo (success=false), no como error HTTP.
- El ciclo de vida inicializa y cierra la base de datos.
"""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.v1.dependencies.use_case_deps import get_cabecalho_nota_sync
from app.infrastructure.external.sankhya_sync.types import SyncOutcome, SyncStats


NOW = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def _outcome(id_sistema: int, empresa: str, success: bool = True) -> SyncOutcome:
    return SyncOutcome(
        id_sistema=id_sistema,
        empresa=empresa,
        success=success,
        started_at=NOW,
        finished_at=NOW,
        duration_ms=1200,
        total_records=10 if success else 0,
        inserted=4 if success else 0,
        updated=6 if success else 0,
        deactivated=1 if success else 0,
        error=None if success else "Error al buscar cabeceras de nota tras 3 intentos",
    )


@pytest.fixture
def mock_service() -> MagicMock:
    service = MagicMock()
    service.sync_tenant.return_value = _outcome(1, "Alfa")
    service.sync_all_tenants.return_value = [_outcome(1, "Alfa"), _outcome(2, "Beta", success=False)]
    service.get_sync_stats.return_value = [
        SyncStats(id_sistema=1, total_records=10, active_records=9, inactive_records=1, last_sync_at=NOW)
    ]
    return service


@pytest.fixture
def app_with_mock(mock_service: MagicMock):
    """Crea la app FastAPI con el servicio mockeado via dependency_overrides."""
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_cabecalho_nota_sync] = lambda: mock_service
    yield app
    app.dependency_overrides.clear()


async def _request(app, method: str, url: str, **kwargs):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, url, **kwargs)


@pytest.mark.asyncio
async def test_get_stats(app_with_mock, mock_service: MagicMock) -> None:
    response = await _request(app_with_mock, "GET", "/api/v1/sync/cabecalho-nota", params={"id_sistema": 1})

    assert response.status_code == 200
    [item] = response.json()
    assert item["id_sistema"] == 1
    assert item["registros_ativos"] == 9
    assert item["registros_deletados"] == 1
    mock_service.get_sync_stats.assert_called_once_with(1)


@pytest.mark.asyncio
async def test_post_single_tenant(app_with_mock, mock_service: MagicMock) -> None:
    response = await _request(
        app_with_mock,
        "POST",
        "/api/v1/sync/cabecalho-nota",
        params={"id_sistema": 1, "empresa": "Alfa"},
    )

    assert response.status_code == 200
    item = response.json()
    assert isinstance(item, dict)
    assert item["success"] is True
    assert item["registros_inseridos"] == 4
    assert item["duracao"] == 1200
    mock_service.sync_tenant.assert_called_once_with(1, "Alfa")
    mock_service.sync_all_tenants.assert_not_called()


@pytest.mark.asyncio
async def test_post_all_tenants_reports_failures_in_body(app_with_mock, mock_service: MagicMock) -> None:
    response = await _request(app_with_mock, "POST", "/api/v1/sync/cabecalho-nota")

    assert response.status_code == 200
    data = response.json()
    assert [(d["id_sistema"], d["success"]) for d in data] == [(1, True), (2, False)]
    assert "3 intentos" in data[1]["erro"]
    mock_service.sync_all_tenants.assert_called_once_with()


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"id_sistema": 1}, {"empresa": "Alfa"}])
async def test_post_with_partial_params_is_rejected(app_with_mock, mock_service: MagicMock, params) -> None:
    response = await _request(app_with_mock, "POST", "/api/v1/sync/cabecalho-nota", params=params)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    mock_service.sync_tenant.assert_not_called()
    mock_service.sync_all_tenants.assert_not_called()


@pytest.mark.asyncio
async def test_health(app_with_mock) -> None:
    response = await _request(app_with_mock, "GET", "/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_lifespan_initializes_and_closes_database(monkeypatch) -> None:
    from app.core import events
    from main import create_application

    calls: list[str] = []
    monkeypatch.setattr(events, "init_db", lambda: calls.append("init_db"))
    monkeypatch.setattr(events, "close_db", lambda: calls.append("close_db"))
    monkeypatch.setattr(events, "configure_file_logging", lambda: calls.append("logging"))

    app = create_application()
    async with app.router.lifespan_context(app):
        assert calls == ["init_db", "logging"]

    assert calls == ["init_db", "logging", "close_db"]
