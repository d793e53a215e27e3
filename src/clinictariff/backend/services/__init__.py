"""Service-layer helpers for the clinic tariff backend."""

from clinictariff.backend.app.services.calculation_service import calculate_price

from .request_parser import (
    parse_calculation_payload,
    parse_date_arg,
    parse_int_arg,
    parse_json_object,
)
from .response_builder import build_calculation_response, build_json_response

__all__ = [
    "build_calculation_response",
    "build_json_response",
    "calculate_price",
    "parse_calculation_payload",
    "parse_date_arg",
    "parse_int_arg",
    "parse_json_object",
]
