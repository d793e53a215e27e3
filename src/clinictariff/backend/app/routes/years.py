"""Financial-year freeze lifecycle and statistics endpoints."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request
from pydantic import ValidationError

from clinictariff.backend.app.http import ACTOR_HEADER, current_engine
from clinictariff.backend.app.models import (
    FreezeRequest,
    FreezeStatusModel,
    YearStatsModel,
    format_validation_error,
)
from clinictariff.backend.app.services.errors import InvalidInputError
from clinictariff.backend.app.services.freeze_manager import validate_financial_year
from clinictariff.backend.services.request_parser import parse_json_object
from clinictariff.backend.services.response_builder import build_json_response

blueprint = Blueprint("years", __name__, url_prefix="/api/v1/years")


@blueprint.get("/<int:year>/freeze")
def get_freeze_status(year: int) -> tuple[Any, int]:
    engine = current_engine()
    validate_financial_year(year)
    state = engine.freeze_manager.freeze_state(year)
    return build_json_response(
        FreezeStatusModel.from_state(year, state, engine.freeze_manager.policy.value)
    )


@blueprint.post("/<int:year>/freeze")
def freeze_year(year: int) -> tuple[Any, int]:
    """Freeze every live factor of ``year``; repeat calls freeze nothing new."""

    body = parse_json_object(request, allow_empty=True)
    try:
        payload = FreezeRequest.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError(format_validation_error(exc, "freeze")) from exc

    actor = (request.headers.get(ACTOR_HEADER) or payload.actor_id or "").strip()
    if not actor:
        raise InvalidInputError(
            f"The {ACTOR_HEADER} header or an 'actor_id' field is required to freeze a year",
            financial_year=year,
        )

    engine = current_engine()
    changed = engine.freeze(year, actor)
    state = engine.freeze_manager.freeze_state(year)
    return build_json_response(
        FreezeStatusModel.from_state(
            year, state, engine.freeze_manager.policy.value, frozen_count=changed
        )
    )


@blueprint.get("/<int:year>/stats")
def year_statistics(year: int) -> tuple[Any, int]:
    engine = current_engine()
    validate_financial_year(year)
    stats = engine.freeze_manager.year_statistics(year)
    return build_json_response(YearStatsModel.from_domain(stats, engine.is_frozen(year)))
