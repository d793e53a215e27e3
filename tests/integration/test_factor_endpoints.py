"""Integration tests for factor administration endpoints."""

from __future__ import annotations

from http import HTTPStatus

from flask.testing import FlaskClient

ACTOR = {"X-Actor-Id": "finance-lead"}


def _factor_id(client: FlaskClient, year: int, kind: str, tier: str) -> int:
    factors = client.get(f"/api/v1/factors?year={year}").get_json()["items"]
    return next(
        factor["id"] for factor in factors if factor["kind"] == kind and factor["tier"] == tier
    )


def test_list_factors_for_a_year(client: FlaskClient) -> None:
    response = client.get("/api/v1/factors?year=1405")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    factors = payload["items"]
    assert payload["total"] == 4
    assert len(factors) == 4
    assert {factor["financial_year"] for factor in factors} == {1405}
    assert all(factor["status"] == "open" for factor in factors)
    professional = [factor for factor in factors if factor["kind"] == "professional"]
    assert [factor["value"] for factor in professional] == ["47000", "49500"]


def test_resolve_uses_the_date_to_pick_the_year(client: FlaskClient) -> None:
    response = client.get("/api/v1/factors/resolve?kind=technical&tier=hashtagged")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["financial_year"] == 1404
    assert payload["value"] == "65000"


def test_resolve_mid_year_revision(client: FlaskClient) -> None:
    response = client.get("/api/v1/factors/resolve?kind=professional&as_of=2026-10-01")

    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["value"] == "49500"


def test_resolve_reports_missing_factor(client: FlaskClient) -> None:
    response = client.get("/api/v1/factors/resolve?kind=technical&as_of=2023-06-01")

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    assert response.get_json()["error"] == "missing_factor"


def test_resolve_rejects_unknown_kind(client: FlaskClient) -> None:
    missing = client.get("/api/v1/factors/resolve")
    unknown = client.get("/api/v1/factors/resolve?kind=material")

    assert missing.status_code == HTTPStatus.BAD_REQUEST
    assert unknown.status_code == HTTPStatus.BAD_REQUEST
    assert "technical" in unknown.get_json()["message"]


def test_create_requires_an_actor(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/factors",
        json={
            "kind": "technical",
            "tier": "standard",
            "year": 1406,
            "value": "39000",
            "effective_from": "2027-03-21",
        },
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "X-Actor-Id" in response.get_json()["message"]


def test_create_get_update_and_delete(client: FlaskClient) -> None:
    created = client.post(
        "/api/v1/factors",
        json={
            "kind": "technical",
            "hashtagged": True,
            "year": 1406,
            "value": "82000",
            "effective_from": "2027-03-21",
        },
        headers=ACTOR,
    )
    assert created.status_code == HTTPStatus.CREATED
    factor = created.get_json()
    assert factor["tier"] == "hashtagged"
    assert factor["value"] == "82000"

    fetched = client.get(f"/api/v1/factors/{factor['id']}")
    assert fetched.get_json() == factor

    updated = client.put(
        f"/api/v1/factors/{factor['id']}",
        json={"value": "82500.50", "description": "Corrected"},
        headers=ACTOR,
    )
    assert updated.status_code == HTTPStatus.OK
    assert updated.get_json()["value"] == "82500.50"
    assert updated.get_json()["description"] == "Corrected"

    deleted = client.delete(f"/api/v1/factors/{factor['id']}", headers=ACTOR)
    assert deleted.status_code == HTTPStatus.OK
    assert deleted.get_json()["deleted"] is True
    remaining = client.get("/api/v1/factors?year=1406").get_json()["items"]
    assert all(item["id"] != factor["id"] for item in remaining)


def test_overlapping_factor_is_a_conflict(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/factors",
        json={
            "kind": "professional",
            "year": 1404,
            "value": "43000",
            "effective_from": "2025-10-01",
        },
        headers=ACTOR,
    )

    assert response.status_code == HTTPStatus.CONFLICT
    payload = response.get_json()
    assert payload["error"] == "factor_conflict"
    assert payload["conflicting_factor_id"] == _factor_id(client, 1404, "professional", "standard")


def test_invalid_factor_payload(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/factors",
        json={"kind": "technical", "year": 1406, "value": "-5", "effective_from": "2027-03-21"},
        headers=ACTOR,
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["message"].startswith("Invalid factor payload")


def test_frozen_factor_cannot_be_updated(client: FlaskClient) -> None:
    factor_id = _factor_id(client, 1404, "technical", "standard")
    client.post("/api/v1/years/1404/freeze", headers=ACTOR)

    response = client.put(f"/api/v1/factors/{factor_id}", json={"value": "1"}, headers=ACTOR)

    assert response.status_code == HTTPStatus.CONFLICT
    assert response.get_json()["error"] == "frozen_factor"

    frozen = client.get("/api/v1/factors/frozen?year=1404").get_json()
    assert len(frozen) == 3
    assert all(item["frozen_by"] == "finance-lead" for item in frozen)


def test_unknown_factor_returns_not_found(client: FlaskClient) -> None:
    response = client.get("/api/v1/factors/9999")

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.get_json()["factor_id"] == 9999


def test_list_factors_filters_and_pages(client: FlaskClient) -> None:
    response = client.get("/api/v1/factors?kind=technical&search=HASHTAG&page=2&page_size=4")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["total"] == 6
    assert payload["page"] == 2
    assert payload["page_size"] == 4
    assert payload["page_count"] == 2
    assert [item["financial_year"] for item in payload["items"]] == [1403, 1403]
    assert all(item["kind"] == "technical" for item in payload["items"])


def test_list_factors_orders_newest_year_first(client: FlaskClient) -> None:
    items = client.get("/api/v1/factors?kind=professional").get_json()["items"]

    assert [item["financial_year"] for item in items] == [1405, 1405, 1404, 1403]


def test_list_factors_filters_by_active_flag(client: FlaskClient) -> None:
    factor_id = _factor_id(client, 1405, "technical", "standard")
    client.put(f"/api/v1/factors/{factor_id}", json={"active": False}, headers=ACTOR)

    inactive = client.get("/api/v1/factors?active=false").get_json()
    active = client.get("/api/v1/factors?year=1405&active=true").get_json()

    assert [item["id"] for item in inactive["items"]] == [factor_id]
    assert active["total"] == 3


def test_list_factors_rejects_bad_paging(client: FlaskClient) -> None:
    for query in ("page=0", "page_size=0", "page_size=101", "active=maybe", "kind=material"):
        response = client.get(f"/api/v1/factors?{query}")

        assert response.status_code == HTTPStatus.BAD_REQUEST, query
        assert response.get_json()["error"] == "invalid_input"
