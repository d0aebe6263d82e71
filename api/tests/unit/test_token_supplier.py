from __future__ import annotations

import pytest
import requests

from app.infrastructure.database.models import ContratoModel
from app.infrastructure.external.sankhya_sync.contracts import ContractDirectory
from app.infrastructure.external.sankhya_sync.sankhya_client import (
    SankhyaApiError,
    SankhyaAuthError,
    SankhyaTransientError,
)
from app.infrastructure.external.sankhya_sync.sync_config import SyncConfigError
from app.infrastructure.external.sankhya_sync.token_supplier import SankhyaTokenSupplier


class _AuthResponse:
    def __init__(self, status_code: int = 200, body=None) -> None:
        self.status_code = status_code
        self._body = body
        self.text = ""

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class _AuthSession:
    """Emite access_token-1, access_token-2, ... o el error configurado."""

    def __init__(self, error=None, status_code: int = 200, expires_in=3600) -> None:
        self.error = error
        self.status_code = status_code
        self.expires_in = expires_in
        self.requests: list[dict] = []

    def post(self, url, **kwargs):
        self.requests.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        body = {"access_token": f"access_token-{len(self.requests)}", "expires_in": self.expires_in}
        return _AuthResponse(self.status_code, body)


@pytest.fixture
def contracts(session_factory, seed_contracts) -> ContractDirectory:
    seed_contracts((1, "Prod SA", "S", False), (2, "Sandbox SA", "S", True))
    return ContractDirectory(
        session_factory,
        base_url="https://api.sankhya.com.br",
        sandbox_base_url="https://api.sandbox.sankhya.com.br",
    )


def test_authenticates_with_client_credentials(contracts) -> None:
    session = _AuthSession()
    supplier = SankhyaTokenSupplier(contracts, session=session)

    assert supplier.get_token(2) == "access_token-1"

    [req] = session.requests
    assert req["url"] == "https://api.sandbox.sankhya.com.br/authenticate"
    assert req["data"] == {
        "grant_type": "client_credentials",
        "client_id": "client-2",
        "client_secret": "secret",
    }
    assert req["headers"] == {"X-Token": "xtoken"}


def test_token_is_cached_per_tenant(contracts) -> None:
    session = _AuthSession()
    supplier = SankhyaTokenSupplier(contracts, session=session)

    assert supplier.get_token(1) == "access_token-1"
    assert supplier.get_token(1) == "access_token-1"
    assert supplier.get_token(2) == "access_token-2"
    assert len(session.requests) == 2


def test_force_renew_discards_cached_token(contracts) -> None:
    session = _AuthSession()
    supplier = SankhyaTokenSupplier(contracts, session=session)

    supplier.get_token(1)
    assert supplier.get_token(1, force_renew=True) == "access_token-2"


def test_short_lived_token_is_not_reused(contracts) -> None:
    # expires_in menor al margen de expiración: nunca se reutiliza
    session = _AuthSession(expires_in=10)
    supplier = SankhyaTokenSupplier(contracts, session=session)

    supplier.get_token(1)
    assert supplier.get_token(1) == "access_token-2"


def test_rejected_credentials_raise_auth_error(contracts) -> None:
    supplier = SankhyaTokenSupplier(contracts, session=_AuthSession(status_code=401))
    with pytest.raises(SankhyaAuthError):
        supplier.get_token(1)


def test_network_error_is_transient(contracts) -> None:
    supplier = SankhyaTokenSupplier(contracts, session=_AuthSession(error=requests.ConnectionError("dns")))
    with pytest.raises(SankhyaTransientError):
        supplier.get_token(1)


def test_missing_access_token_is_an_api_error(contracts) -> None:
    class _NoTokenSession(_AuthSession):
        def post(self, url, **kwargs):
            return _AuthResponse(200, {"error": "invalid_client"})

    supplier = SankhyaTokenSupplier(contracts, session=_NoTokenSession())
    with pytest.raises(SankhyaApiError, match="access_token"):
        supplier.get_token(1)


def test_contract_without_credentials_is_a_config_error(session_factory, contracts) -> None:
    with session_factory() as db:
        db.add(ContratoModel(id_empresa=5, empresa="Sin Llave SA", ativo="S", is_sandbox=False, client_id="c5"))
        db.commit()
    session = _AuthSession()
    supplier = SankhyaTokenSupplier(contracts, session=session)

    with pytest.raises(SyncConfigError, match="client_secret, x_token"):
        supplier.get_token(5)
    assert session.requests == []
