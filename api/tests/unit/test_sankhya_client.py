from __future__ import annotations

import pytest
import requests

from app.infrastructure.external.sankhya_sync.sankhya_client import (
    SankhyaApiError,
    SankhyaAuthError,
    SankhyaClient,
    SankhyaTransientError,
    build_load_records_payload,
    map_entities,
    parse_load_records_response,
)


FIELDS = ["NUNOTA", "CODTIPOPER", "CODTIPVENDA", "CODPARC", "CODVEND", "VLRNOTA", "DTNEG", "TIPMOV"]


def _entities_payload(entity, has_more="false", fields=FIELDS):
    return {
        "serviceName": "CRUDServiceProvider.loadRecords",
        "status": "1",
        "responseBody": {
            "entities": {
                "total": "1",
                "hasMoreResult": has_more,
                "metadata": {"fields": {"field": [{"name": n} for n in fields]}},
                "entity": entity,
            }
        },
    }


class _FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, outcome) -> None:
        self._outcome = outcome
        self.requests: list[dict] = []

    def post(self, url, **kwargs):
        self.requests.append({"url": url, **kwargs})
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def test_payload_uses_string_offset_page_and_fixed_fieldset() -> None:
    payload = build_load_records_payload(3)
    data_set = payload["requestBody"]["dataSet"]
    assert data_set["rootEntity"] == "CabecalhoNota"
    assert data_set["offsetPage"] == "3"
    assert data_set["entity"]["fieldset"]["list"] == ", ".join(FIELDS)


def test_map_entities_is_positional_and_leaves_missing_fields_unset() -> None:
    entity = {"f0": {"$": "101"}, "f1": {"$": "1100"}, "f3": {"$": "55"}, "f5": {}, "f7": {"$": "V"}}
    [header] = map_entities(FIELDS, [entity])
    assert header.nunota == "101"
    assert header.codtipoper == "1100"
    assert header.codtipvenda is None
    assert header.codparc == "55"
    assert header.vlrnota is None
    assert header.dtneg is None
    assert header.tipmov == "V"


def test_map_entities_follows_dynamic_field_order() -> None:
    [header] = map_entities(["TIPMOV", "NUNOTA"], {"f0": {"$": "C"}, "f1": {"$": "9"}})
    assert header.nunota == "9"
    assert header.tipmov == "C"


def test_single_entity_object_is_normalized_to_list() -> None:
    page = parse_load_records_response(_entities_payload({"f0": {"$": "7"}}))
    assert [h.nunota for h in page.records] == ["7"]
    assert page.has_more is False


@pytest.mark.parametrize("flag,expected", [("true", True), (True, True), ("false", False), (None, False)])
def test_has_more_result_accepts_bool_or_string(flag, expected) -> None:
    page = parse_load_records_response(_entities_payload([{"f0": {"$": "1"}}], has_more=flag))
    assert page.has_more is expected


def test_empty_entities_end_pagination() -> None:
    page = parse_load_records_response({"status": "1", "responseBody": {"entities": {"total": "0"}}})
    assert page.records == []
    assert page.has_more is False


def test_status_zero_is_a_permanent_error() -> None:
    with pytest.raises(SankhyaApiError, match="rechazó"):
        parse_load_records_response({"status": "0", "statusMessage": "Campo inexistente"})


def test_missing_metadata_is_a_permanent_error() -> None:
    payload = {"status": "1", "responseBody": {"entities": {"entity": [{"f0": {"$": "1"}}]}}}
    with pytest.raises(SankhyaApiError, match="metadata"):
        parse_load_records_response(payload)


def test_fetch_page_sends_bearer_and_timeout() -> None:
    session = _FakeSession(_FakeResponse(200, _entities_payload([{"f0": {"$": "1"}}])))
    client = SankhyaClient(session=session, timeout_s=60)

    page = client.fetch_page(base_url="https://api.sandbox.sankhya.com.br/", token="abc", page=0)

    [req] = session.requests
    assert req["url"].startswith("https://api.sandbox.sankhya.com.br/gateway/v1/mge/service.sbr?")
    assert req["headers"]["Authorization"] == "Bearer abc"
    assert req["timeout"] == 60
    assert len(page.records) == 1


@pytest.mark.parametrize("status", [401, 403])
def test_fetch_page_auth_errors(status) -> None:
    client = SankhyaClient(session=_FakeSession(_FakeResponse(status, text="expired")))
    with pytest.raises(SankhyaAuthError) as exc_info:
        client.fetch_page(base_url="https://x", token="t", page=2)
    assert exc_info.value.status_code == status


@pytest.mark.parametrize("status", [429, 500, 502, 503])
def test_fetch_page_transient_status(status) -> None:
    client = SankhyaClient(session=_FakeSession(_FakeResponse(status, text="busy")))
    with pytest.raises(SankhyaTransientError):
        client.fetch_page(base_url="https://x", token="t", page=0)


@pytest.mark.parametrize(
    "error",
    [requests.Timeout("read timed out"), requests.ConnectionError("Connection reset by peer")],
)
def test_fetch_page_network_errors_are_transient(error) -> None:
    client = SankhyaClient(session=_FakeSession(error))
    with pytest.raises(SankhyaTransientError):
        client.fetch_page(base_url="https://x", token="t", page=0)


def test_fetch_page_other_4xx_is_permanent() -> None:
    client = SankhyaClient(session=_FakeSession(_FakeResponse(400, text="bad request")))
    with pytest.raises(SankhyaApiError) as exc_info:
        client.fetch_page(base_url="https://x", token="t", page=0)
    assert not isinstance(exc_info.value, (SankhyaAuthError, SankhyaTransientError))


def test_fetch_page_non_json_body_is_permanent() -> None:
    client = SankhyaClient(session=_FakeSession(_FakeResponse(200, payload=None, text="<html>")))
    with pytest.raises(SankhyaApiError, match="JSON"):
        client.fetch_page(base_url="https://x", token="t", page=0)
