"""Pre-flight validation of the canonical factor combinations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from clinictariff.backend.app.http import current_engine, request_translator
from clinictariff.backend.app.models import ValidationReportModel
from clinictariff.backend.services.request_parser import parse_date_arg
from clinictariff.backend.services.response_builder import build_json_response

blueprint = Blueprint("validation", __name__, url_prefix="/api/v1/validation")


@blueprint.get("")
def validate_required_factors() -> tuple[Any, int]:
    """Report whether prices can be computed on ``as_of`` (default today)."""

    as_of = parse_date_arg(request, "as_of")
    report = current_engine().validate_required_factors(as_of, request_translator())
    return build_json_response(ValidationReportModel.from_domain(report))
