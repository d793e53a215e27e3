"""Unit tests for response formatting helpers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import Flask

from clinictariff.backend.app.models import Factor, FactorKind, FactorModel, TariffTier
from clinictariff.backend.services.response_builder import (
    build_calculation_response,
    build_json_response,
)


def _factor_model(factor_id: int) -> FactorModel:
    return FactorModel.from_domain(
        Factor(
            id=factor_id,
            kind=FactorKind.PROFESSIONAL,
            tier=TariffTier.STANDARD,
            financial_year=1404,
            value=Decimal("41000"),
            effective_from=date(2025, 3, 21),
        )
    )


def test_build_calculation_response_returns_json(app: Flask) -> None:
    """Formatting helper should generate a JSON response tuple."""

    with app.app_context():
        response, status = build_calculation_response({"total": "103000.00"})

    assert status == 200
    assert response.get_json() == {"total": "103000.00"}


def test_models_are_serialised_in_json_mode(app: Flask) -> None:
    with app.app_context():
        response, status = build_json_response(_factor_model(4), status=201)

    body = response.get_json()
    assert status == 201
    assert body["value"] == "41000"
    assert body["effective_from"] == "2025-03-21"
    assert body["status"] == "open"


def test_lists_of_models_become_json_arrays(app: Flask) -> None:
    with app.app_context():
        response, _ = build_json_response([_factor_model(4), _factor_model(5)])

    assert [item["id"] for item in response.get_json()] == [4, 5]
