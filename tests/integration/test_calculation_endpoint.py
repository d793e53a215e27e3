"""Integration tests for the tariff calculation REST endpoint."""

from __future__ import annotations

import json
from http import HTTPStatus
from pathlib import Path
from typing import Dict, Iterable

import pytest
from flask.testing import FlaskClient

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "tariff_scenarios.json"


def _load_scenarios() -> Iterable[Dict[str, object]]:
    with DATA_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@pytest.mark.parametrize("scenario", _load_scenarios(), ids=lambda item: item["name"])
def test_calculation_endpoint_matches_regression_scenarios(
    client: FlaskClient, scenario: Dict[str, object]
) -> None:
    """Each regression scenario should remain stable over time."""

    response = client.post("/api/v1/calculations", json=scenario["payload"])
    assert response.status_code == HTTPStatus.OK

    result = response.get_json()["result"]
    for key, value in scenario["expectations"].items():
        assert result[key] == value, key


def test_money_is_serialised_as_decimal_strings(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"service_id": 2})

    assert response.status_code == HTTPStatus.OK
    result = response.get_json()["result"]
    assert result["total"] == "171000.00"
    assert result["technical_factor"] == "65000"
    assert result["technical_coefficient"] == "2"
    assert result["as_of"] == "2025-06-01"


def test_calculation_endpoint_uses_accept_language_header(client: FlaskClient) -> None:
    """Accept-Language header should influence locale if body omits it."""

    english = client.post("/api/v1/calculations", json={"service_id": 1}).get_json()
    response = client.post(
        "/api/v1/calculations",
        json={"service_id": 1},
        headers={"Accept-Language": "fa-IR"},
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["meta"]["locale"] == "fa"
    assert payload["labels"]["total"] != english["labels"]["total"]


def test_calculation_endpoint_returns_validation_error(client: FlaskClient) -> None:
    """Invalid payloads should return a structured 400 response."""

    response = client.post("/api/v1/calculations", json={"department_id": 7})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "invalid_input"
    assert "service_id" in payload["message"]


def test_calculation_endpoint_rejects_malformed_json(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations", data="{not json", content_type="application/json"
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "bad_request"


def test_non_positive_identifiers_are_rejected(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"service_id": 1, "department_id": 0})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "invalid_input"


def test_unknown_service_returns_not_found(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"service_id": 404})

    assert response.status_code == HTTPStatus.NOT_FOUND
    payload = response.get_json()
    assert payload["error"] == "not_found"
    assert payload["service_id"] == 404


def test_missing_component_is_unprocessable(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"service_id": 5})

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    payload = response.get_json()
    assert payload["error"] == "missing_component"
    assert payload["kind"] == "professional"
    assert payload["found"] == 0
    assert "Wound dressing" in payload["message"]


def test_missing_factor_is_unprocessable_with_context(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations", json={"service_id": 1, "as_of": "2023-06-01"}
    )

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    payload = response.get_json()
    assert payload["error"] == "missing_factor"
    assert payload["financial_year"] == 1402
    assert payload["kind"] == "professional"
    assert payload["as_of"] == "2023-06-01"


def test_error_messages_are_localised(client: FlaskClient) -> None:
    english = client.post("/api/v1/calculations", json={"service_id": 5}).get_json()
    persian = client.post(
        "/api/v1/calculations", json={"service_id": 5, "locale": "fa"}
    ).get_json()

    assert persian["error"] == english["error"]
    assert persian["message"] != english["message"]
    assert "5" in persian["message"]


def test_frozen_year_returns_conflict(client: FlaskClient) -> None:
    freeze = client.post("/api/v1/years/1404/freeze", headers={"X-Actor-Id": "finance-lead"})
    assert freeze.status_code == HTTPStatus.OK

    response = client.post("/api/v1/calculations", json={"service_id": 1})

    assert response.status_code == HTTPStatus.CONFLICT
    payload = response.get_json()
    assert payload["error"] == "frozen_year"
    assert payload["financial_year"] == 1404

    other_year = client.post(
        "/api/v1/calculations", json={"service_id": 1, "as_of": "2026-06-01"}
    )
    assert other_year.status_code == HTTPStatus.OK
