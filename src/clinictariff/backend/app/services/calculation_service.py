"""Orchestrate request validation, localisation and price calculations.

The calculation service turns an inbound payload into an engine call and
shapes the engine's :class:`CalculationResult` into the localised JSON
payload returned by the API. Profiling hooks live here so the calculator
itself stays free of environment lookups.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from decimal import Decimal
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from clinictariff.backend.app.localization import Translator, get_translator
from clinictariff.backend.app.models import (
    CalculationRequest,
    CalculationResponse,
    CalculationResultModel,
    FactorKind,
    Service,
    ServiceComponent,
    ServiceInput,
    format_validation_error,
)

from .engine import TariffEngine
from .errors import InvalidInputError

_LOGGER = logging.getLogger(__name__)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("CLINICTARIFF_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


def _service_from_input(payload: ServiceInput) -> Service:
    return Service(
        id=payload.id,
        title=payload.title,
        hashtagged=payload.hashtagged,
        components=tuple(
            ServiceComponent(
                kind=FactorKind(component.kind),
                coefficient=component.coefficient,
                active=component.active,
                deleted=component.deleted,
            )
            for component in payload.components
        ),
        flat_price=payload.flat_price or Decimal("0"),
    )


def _labels(translator: Translator, pricing_mode: str) -> dict[str, str]:
    return {
        "technical_amount": translator("labels.technical_amount"),
        "professional_amount": translator("labels.professional_amount"),
        "total": translator("labels.total"),
        "pricing_mode": translator(f"pricing_mode.{pricing_mode}"),
    }


def parse_calculation_request(
    payload: Mapping[str, Any] | CalculationRequest,
) -> CalculationRequest:
    if isinstance(payload, CalculationRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidInputError("Payload must be a mapping")
    try:
        return CalculationRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(format_validation_error(exc, "calculation")) from exc


def calculate_price(
    payload: Mapping[str, Any] | CalculationRequest,
    engine: TariffEngine,
) -> dict[str, Any]:
    """Price the service described by ``payload`` and return the response body."""

    request_model = parse_calculation_request(payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    translator = get_translator(request_model.locale)

    if request_model.service is not None:
        result = engine.calculator.calculate(
            _service_from_input(request_model.service),
            request_model.department_id,
            request_model.as_of,
            request_model.financial_year,
            timings=timings,
        )
    else:
        result = engine.calculator.calculate_for_service_id(
            request_model.service_id,
            request_model.department_id,
            request_model.as_of,
            request_model.financial_year,
            timings=timings,
        )

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_price timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    response_model = CalculationResponse(
        result=CalculationResultModel.from_domain(result),
        labels=_labels(translator, result.pricing_mode.value),
        meta={
            "locale": translator.locale,
            "financial_year": result.financial_year,
            "frozen": engine.is_frozen(result.financial_year),
        },
    )

    return response_model.model_dump(mode="json", exclude_none=True)


__all__ = ["calculate_price", "parse_calculation_request"]
