"""Pydantic models describing the public API surface."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from clinictariff.backend.config.schema import (
    MAX_FACTOR_VALUE,
    MAX_FINANCIAL_YEAR,
    MIN_FACTOR_VALUE,
    MIN_FINANCIAL_YEAR,
)

from .domain import (
    CalculationResult,
    Factor,
    FactorPage,
    FactorValidationReport,
    FinancialYearStats,
    FreezeState,
    FrozenState,
)

__all__ = [
    "CalculationLabels",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationResultModel",
    "ComponentInput",
    "FactorModel",
    "FactorPageModel",
    "FactorPayload",
    "FactorUpdatePayload",
    "FreezeRequest",
    "FreezeStatusModel",
    "ResponseMeta",
    "ServiceInput",
    "ValidationReportModel",
    "YearStatsModel",
    "format_validation_error",
]

KindName = Literal["technical", "professional"]
TierName = Literal["standard", "hashtagged"]

_CENT = Decimal("0.01")


def _accept_hashtag_flag(data: Any) -> Any:
    if not isinstance(data, Mapping) or "hashtagged" not in data or "tier" in data:
        return data
    prepared = dict(data)
    prepared["tier"] = "hashtagged" if prepared.pop("hashtagged") else "standard"
    return prepared


class ComponentInput(BaseModel):
    """One priced part of an ad hoc service submitted for calculation."""

    model_config = ConfigDict(extra="forbid")

    kind: KindName
    coefficient: Decimal = Field(gt=0)
    active: bool = True
    deleted: bool = False


class ServiceInput(BaseModel):
    """Service definition supplied inline instead of a catalogue identifier."""

    model_config = ConfigDict(extra="forbid")

    id: int
    title: str = Field(min_length=1)
    hashtagged: bool = False
    components: list[ComponentInput] = Field(default_factory=list)
    flat_price: Decimal = Field(default=Decimal("0"), ge=0)


class CalculationRequest(BaseModel):
    """Payload accepted by the calculation endpoint."""

    model_config = ConfigDict(extra="forbid")

    service_id: int | None = None
    service: ServiceInput | None = None
    department_id: int | None = None
    as_of: date | None = None
    financial_year: int | None = None
    locale: str = Field(default="en")

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        if value is None:
            return "en"
        text = str(value).strip()
        return text or "en"

    @model_validator(mode="after")
    def _require_single_service_reference(self) -> "CalculationRequest":
        if (self.service_id is None) == (self.service is None):
            raise ValueError("Provide exactly one of 'service_id' or 'service'")
        return self


class FactorPayload(BaseModel):
    """Factor row submitted by an administrator."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: KindName
    tier: TierName = "standard"
    financial_year: int = Field(
        alias="year", ge=MIN_FINANCIAL_YEAR, le=MAX_FINANCIAL_YEAR
    )
    value: Decimal = Field(ge=MIN_FACTOR_VALUE, le=MAX_FACTOR_VALUE)
    effective_from: date
    effective_to: date | None = None
    active: bool = True
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_tier(cls, data: Any) -> Any:
        return _accept_hashtag_flag(data)


class FactorUpdatePayload(BaseModel):
    """Partial update; only fields present in the payload change."""

    model_config = ConfigDict(extra="forbid")

    value: Decimal | None = Field(default=None, ge=MIN_FACTOR_VALUE, le=MAX_FACTOR_VALUE)
    effective_from: date | None = None
    effective_to: date | None = None
    active: bool | None = None
    description: str | None = None

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in sorted(self.model_fields_set)}


class FreezeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    actor_id: str | None = None


class CalculationLabels(BaseModel):
    """Localized labels for the calculation breakdown."""

    model_config = ConfigDict(extra="forbid")

    technical_amount: str
    professional_amount: str
    total: str
    pricing_mode: str


class CalculationResultModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service_id: int
    service_title: str
    tier: TierName
    department_id: int | None = None
    financial_year: int
    as_of: date
    pricing_mode: str
    technical_coefficient: Decimal
    professional_coefficient: Decimal
    technical_factor: Decimal
    professional_factor: Decimal
    technical_amount: Decimal
    professional_amount: Decimal
    total: Decimal
    technical_factor_id: int | None = None
    professional_factor_id: int | None = None
    override_applied: bool
    overridden: list[KindName] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: CalculationResult) -> "CalculationResultModel":
        return cls(
            service_id=result.service_id,
            service_title=result.service_title,
            tier=result.tier.value,
            department_id=result.department_id,
            financial_year=result.financial_year,
            as_of=result.as_of,
            pricing_mode=result.pricing_mode.value,
            technical_coefficient=result.technical_coefficient,
            professional_coefficient=result.professional_coefficient,
            technical_factor=result.technical_factor,
            professional_factor=result.professional_factor,
            technical_amount=result.technical_amount,
            professional_amount=result.professional_amount,
            total=result.total,
            technical_factor_id=result.technical_factor_id,
            professional_factor_id=result.professional_factor_id,
            override_applied=result.override_applied,
            overridden=[kind.value for kind in result.overridden],
        )

    @field_serializer("technical_amount", "professional_amount", "total", when_used="json")
    def _serialize_money(self, value: Decimal) -> str:
        """Render amounts in whole cents, halves rounded away from zero."""

        return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


class ResponseMeta(BaseModel):
    """Metadata returned alongside the calculation output."""

    model_config = ConfigDict(extra="forbid")

    locale: str
    financial_year: int
    frozen: bool


class CalculationResponse(BaseModel):
    """Full response payload produced by the calculation service."""

    model_config = ConfigDict(extra="forbid")

    result: CalculationResultModel
    labels: CalculationLabels
    meta: ResponseMeta


def _state_payload(state: FreezeState) -> dict[str, Any]:
    if isinstance(state, FrozenState):
        return {"status": "frozen", "frozen_at": state.at, "frozen_by": state.by}
    return {"status": "open", "frozen_at": None, "frozen_by": None}


class FactorModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    kind: KindName
    tier: TierName
    financial_year: int
    value: Decimal
    effective_from: date
    effective_to: date | None = None
    active: bool
    deleted: bool
    status: Literal["open", "frozen"]
    frozen_at: datetime | None = None
    frozen_by: str | None = None
    description: str | None = None

    @classmethod
    def from_domain(cls, factor: Factor) -> "FactorModel":
        return cls(
            id=factor.id or 0,
            kind=factor.kind.value,
            tier=factor.tier.value,
            financial_year=factor.financial_year,
            value=factor.value,
            effective_from=factor.effective_from,
            effective_to=factor.effective_to,
            active=factor.active,
            deleted=factor.deleted,
            description=factor.description,
            **_state_payload(factor.freeze_state),
        )


class FactorPageModel(BaseModel):
    """Paged factor listing returned by the admin endpoint."""

    model_config = ConfigDict(extra="forbid")

    items: list[FactorModel]
    total: int
    page: int
    page_size: int
    page_count: int

    @classmethod
    def from_domain(cls, page: FactorPage) -> "FactorPageModel":
        return cls(
            items=[FactorModel.from_domain(factor) for factor in page.items],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            page_count=page.page_count,
        )


class FreezeStatusModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    financial_year: int
    status: Literal["open", "frozen"]
    frozen_at: datetime | None = None
    frozen_by: str | None = None
    policy: str
    frozen_count: int | None = None

    @classmethod
    def from_state(
        cls,
        financial_year: int,
        state: FreezeState,
        policy: str,
        frozen_count: int | None = None,
    ) -> "FreezeStatusModel":
        return cls(
            financial_year=financial_year,
            policy=policy,
            frozen_count=frozen_count,
            **_state_payload(state),
        )


class ValidationReportModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    financial_year: int
    as_of: date
    is_valid: bool
    missing: list[str]
    professional: FactorModel | None = None
    technical_hashtagged: FactorModel | None = None
    technical_standard: FactorModel | None = None

    @classmethod
    def from_domain(cls, report: FactorValidationReport) -> "ValidationReportModel":
        def _optional(factor: Factor | None) -> FactorModel | None:
            return FactorModel.from_domain(factor) if factor is not None else None

        return cls(
            financial_year=report.financial_year,
            as_of=report.as_of,
            is_valid=report.is_valid,
            missing=list(report.missing),
            professional=_optional(report.professional),
            technical_hashtagged=_optional(report.technical_hashtagged),
            technical_standard=_optional(report.technical_standard),
        )


class YearStatsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    financial_year: int
    total: int
    active: int
    frozen: int
    professional: int
    technical: int
    hashtagged: int
    standard: int
    status: Literal["open", "frozen"]

    @classmethod
    def from_domain(cls, stats: FinancialYearStats, frozen: bool) -> "YearStatsModel":
        return cls(
            financial_year=stats.financial_year,
            total=stats.total,
            active=stats.active,
            frozen=stats.frozen,
            professional=stats.professional,
            technical=stats.technical,
            hashtagged=stats.hashtagged,
            standard=stats.standard,
            status="frozen" if frozen else "open",
        )


def format_validation_error(error: ValidationError, subject: str = "request") -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid {subject} payload: {details}"
