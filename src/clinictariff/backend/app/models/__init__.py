"""Domain entities and request/response models shared across the backend.

Engine services work on the immutable dataclasses in :mod:`.domain`; the
Pydantic models in :mod:`.api` validate inbound payloads and shape the JSON
returned by the routes.
"""

from __future__ import annotations

from .api import (
    CalculationLabels,
    CalculationRequest,
    CalculationResponse,
    CalculationResultModel,
    ComponentInput,
    FactorModel,
    FactorPageModel,
    FactorPayload,
    FactorUpdatePayload,
    FreezeRequest,
    FreezeStatusModel,
    ResponseMeta,
    ServiceInput,
    ValidationReportModel,
    YearStatsModel,
    format_validation_error,
)
from .domain import (
    OPEN,
    CalculationResult,
    Factor,
    FactorKind,
    FactorPage,
    FactorValidationReport,
    FinancialYearStats,
    FreezeState,
    FrozenState,
    OpenState,
    Override,
    PricingModeName,
    Service,
    ServiceComponent,
    TariffTier,
    YearFreeze,
)

__all__ = [
    "CalculationLabels",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationResult",
    "CalculationResultModel",
    "ComponentInput",
    "Factor",
    "FactorKind",
    "FactorModel",
    "FactorPage",
    "FactorPageModel",
    "FactorPayload",
    "FactorUpdatePayload",
    "FactorValidationReport",
    "FinancialYearStats",
    "FreezeRequest",
    "FreezeState",
    "FreezeStatusModel",
    "FrozenState",
    "OPEN",
    "OpenState",
    "Override",
    "PricingModeName",
    "ResponseMeta",
    "Service",
    "ServiceComponent",
    "ServiceInput",
    "TariffTier",
    "ValidationReportModel",
    "YearFreeze",
    "YearStatsModel",
    "format_validation_error",
]
