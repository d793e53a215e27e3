"""REST endpoints for tariff price calculations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from clinictariff.backend.app.http import current_engine
from clinictariff.backend.app.services.calculation_service import calculate_price
from clinictariff.backend.services.request_parser import parse_calculation_payload
from clinictariff.backend.services.response_builder import build_calculation_response

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Price a service using the submitted JSON payload."""

    payload = parse_calculation_payload(request)
    result = calculate_price(payload, current_engine())

    return build_calculation_response(result)
