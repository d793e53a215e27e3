"""Administrative endpoints for the versioned factor table."""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, request
from pydantic import ValidationError

from clinictariff.backend.app.http import current_engine, require_actor
from clinictariff.backend.app.models import (
    FactorKind,
    FactorModel,
    FactorPageModel,
    FactorPayload,
    FactorUpdatePayload,
    TariffTier,
    format_validation_error,
)
from clinictariff.backend.app.services.errors import InvalidInputError
from clinictariff.backend.app.services.factor_catalog import DEFAULT_PAGE_SIZE
from clinictariff.backend.services.request_parser import (
    parse_bool_arg,
    parse_date_arg,
    parse_int_arg,
    parse_json_object,
)
from clinictariff.backend.services.response_builder import build_json_response

_LOGGER = logging.getLogger(__name__)

blueprint = Blueprint("factors", __name__, url_prefix="/api/v1/factors")


def _enum_arg(enum_type: type[FactorKind] | type[TariffTier], name: str, default: str | None):
    raw = request.args.get(name, default)
    if raw is None:
        raise InvalidInputError(f"Query parameter '{name}' is required")
    try:
        return enum_type(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise InvalidInputError(
            f"Query parameter '{name}' must be one of: {allowed}", **{name: raw}
        ) from exc


@blueprint.get("")
def list_factors() -> tuple[Any, int]:
    """List factor rows a page at a time, filtered by year, kind, state or description."""

    kind = _enum_arg(FactorKind, "kind", None) if request.args.get("kind") else None
    number = parse_int_arg(request, "page")
    size = parse_int_arg(request, "page_size")
    page = current_engine().catalog.page_factors(
        1 if number is None else number,
        DEFAULT_PAGE_SIZE if size is None else size,
        financial_year=parse_int_arg(request, "year"),
        kind=kind,
        active=parse_bool_arg(request, "active"),
        search=request.args.get("search"),
        include_deleted=bool(parse_bool_arg(request, "include_deleted")),
    )
    return build_json_response(FactorPageModel.from_domain(page))


@blueprint.get("/frozen")
def list_frozen_factors() -> tuple[Any, int]:
    year = parse_int_arg(request, "year")
    factors = current_engine().catalog.frozen_factors(year)
    return build_json_response([FactorModel.from_domain(factor) for factor in factors])


@blueprint.get("/resolve")
def resolve_factor() -> tuple[Any, int]:
    """Return the factor in force for a kind and tier on a date."""

    engine = current_engine()
    kind = _enum_arg(FactorKind, "kind", None)
    tier = _enum_arg(TariffTier, "tier", TariffTier.STANDARD.value)
    as_of = parse_date_arg(request, "as_of") or engine.today()
    year = parse_int_arg(request, "year")
    if year is None:
        year = engine.year_of(as_of)

    factor = engine.resolve(kind, tier, year, as_of)
    return build_json_response(FactorModel.from_domain(factor))


@blueprint.get("/<int:factor_id>")
def get_factor(factor_id: int) -> tuple[Any, int]:
    factor = current_engine().catalog.get_factor(factor_id)
    return build_json_response(FactorModel.from_domain(factor))


@blueprint.post("")
def create_factor() -> tuple[Any, int]:
    """Register a new factor row for an open financial year."""

    actor = require_actor()
    body = parse_json_object(request)
    try:
        payload = FactorPayload.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError(format_validation_error(exc, "factor")) from exc

    factor = current_engine().catalog.create_factor(
        FactorKind(payload.kind),
        TariffTier(payload.tier),
        payload.financial_year,
        payload.value,
        payload.effective_from,
        payload.effective_to,
        active=payload.active,
        description=payload.description,
    )
    _LOGGER.info("Factor %s created by %s", factor.id, actor)
    return build_json_response(FactorModel.from_domain(factor), status=201)


@blueprint.put("/<int:factor_id>")
def update_factor(factor_id: int) -> tuple[Any, int]:
    actor = require_actor()
    body = parse_json_object(request)
    try:
        payload = FactorUpdatePayload.model_validate(body)
    except ValidationError as exc:
        raise InvalidInputError(format_validation_error(exc, "factor")) from exc

    factor = current_engine().catalog.update_factor(factor_id, **payload.changes())
    _LOGGER.info("Factor %s updated by %s", factor_id, actor)
    return build_json_response(FactorModel.from_domain(factor))


@blueprint.delete("/<int:factor_id>")
def delete_factor(factor_id: int) -> tuple[Any, int]:
    actor = require_actor()
    factor = current_engine().catalog.delete_factor(factor_id)
    _LOGGER.info("Factor %s deleted by %s", factor_id, actor)
    return build_json_response(FactorModel.from_domain(factor))
