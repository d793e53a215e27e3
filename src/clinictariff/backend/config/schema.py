"""Pydantic models describing the factor table and catalogue configuration."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)
from typing_extensions import Self

MIN_FACTOR_VALUE = Decimal("0.01")
MAX_FACTOR_VALUE = Decimal("999999999.99")
MIN_FINANCIAL_YEAR = 1300
MAX_FINANCIAL_YEAR = 1500

FactorKindName = Literal["technical", "professional"]
TariffTierName = Literal["standard", "hashtagged"]


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class FreezePolicy(str, Enum):
    """What a frozen financial year prevents."""

    BLOCK_CALCULATIONS = "block_calculations"
    LOCK_EDITS_ONLY = "lock_edits_only"


def _coerce_tier(data: Any) -> Any:
    """Accept the legacy ``hashtagged: true/false`` flag in place of ``tier``."""

    if not isinstance(data, Mapping) or "hashtagged" not in data:
        return data
    prepared = dict(data)
    flag = prepared.pop("hashtagged")
    if "tier" in prepared:
        raise ConfigurationError("Specify either 'tier' or 'hashtagged', not both")
    if not isinstance(flag, bool):
        raise ConfigurationError("The 'hashtagged' flag must be an explicit true/false value")
    prepared["tier"] = "hashtagged" if flag else "standard"
    return prepared


class FactorDefinition(ImmutableModel):
    """One factor row declared in a financial-year table."""

    kind: FactorKindName
    tier: TariffTierName = "standard"
    value: Decimal
    effective_from: date
    effective_to: date | None = None
    active: bool = True
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_hashtag_flag(cls, data: Any) -> Any:
        return _coerce_tier(data)

    @model_validator(mode="after")
    def _validate_values(self) -> Self:
        if not MIN_FACTOR_VALUE <= self.value <= MAX_FACTOR_VALUE:
            raise ConfigurationError(
                f"Factor values must be between {MIN_FACTOR_VALUE} and {MAX_FACTOR_VALUE}"
            )
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ConfigurationError("effective_to cannot precede effective_from")
        if self.kind == "professional" and self.tier != "standard":
            raise ConfigurationError("Professional factors are defined on the standard tier")
        return self


class FactorTable(ImmutableModel):
    """All factor rows configured for a single financial year."""

    year: int = Field(ge=MIN_FINANCIAL_YEAR, le=MAX_FINANCIAL_YEAR)
    factors: Sequence[FactorDefinition] = Field(default_factory=tuple)
    notes: str | None = None


class LegacyConstants(ImmutableModel):
    """Fixed factors used only when a year has no registered factor rows."""

    enabled: bool = False
    technical_standard: Decimal = Decimal("31000")
    technical_hashtagged: Decimal = Decimal("65000")
    professional: Decimal = Decimal("41000")

    @model_validator(mode="after")
    def _validate_constants(self) -> Self:
        for value in (self.technical_standard, self.technical_hashtagged, self.professional):
            if value <= 0:
                raise ConfigurationError("Legacy tariff constants must be positive")
        return self

    def technical_for(self, hashtagged: bool) -> Decimal:
        return self.technical_hashtagged if hashtagged else self.technical_standard


class EngineSettings(ImmutableModel):
    freeze_policy: FreezePolicy = FreezePolicy.BLOCK_CALCULATIONS
    legacy_constants: LegacyConstants = Field(default_factory=LegacyConstants)


class FactorTableManifestEntry(ImmutableModel):
    """Entry describing a configured financial year in the manifest."""

    year: int = Field(ge=MIN_FINANCIAL_YEAR, le=MAX_FINANCIAL_YEAR)
    filename: str | None = None
    status: str = "active"

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class FactorTableManifest(ImmutableModel):
    """Manifest describing the available factor table files."""

    years: Sequence[FactorTableManifestEntry]
    settings: EngineSettings = Field(default_factory=EngineSettings)
    catalog: str | None = "catalog.yaml"

    @model_validator(mode="after")
    def _validate_years(self) -> Self:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the factor table manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> FactorTableManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


class CatalogComponent(ImmutableModel):
    kind: FactorKindName
    coefficient: Decimal = Field(gt=0)
    active: bool = True


class CatalogService(ImmutableModel):
    id: int = Field(gt=0)
    title: str
    code: str | None = None
    tier: TariffTierName = "standard"
    flat_price: Decimal = Field(default=Decimal("0"), ge=0)
    components: Sequence[CatalogComponent] = Field(default_factory=tuple)

    @model_validator(mode="before")
    @classmethod
    def _accept_hashtag_flag(cls, data: Any) -> Any:
        return _coerce_tier(data)

    @model_validator(mode="after")
    def _validate_components(self) -> Self:
        kinds = [component.kind for component in self.components if component.active]
        for kind in set(kinds):
            if kinds.count(kind) > 1:
                raise ConfigurationError(
                    f"Service {self.id} declares more than one active {kind} component"
                )
        return self


class CatalogOverride(ImmutableModel):
    service_id: int = Field(gt=0)
    department_id: int = Field(gt=0)
    technical_factor: Decimal | None = Field(default=None, gt=0)
    professional_factor: Decimal | None = Field(default=None, gt=0)
    active: bool = True


class ServiceCatalog(ImmutableModel):
    """Seed catalogue of services and department overrides."""

    services: Sequence[CatalogService] = Field(default_factory=tuple)
    overrides: Sequence[CatalogOverride] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_references(self) -> Self:
        service_ids = {service.id for service in self.services}
        if len(service_ids) != len(self.services):
            raise ConfigurationError("Service identifiers in the catalogue must be unique")
        pairs: set[tuple[int, int]] = set()
        for override in self.overrides:
            if override.service_id not in service_ids:
                raise ConfigurationError(
                    f"Override references unknown service {override.service_id}"
                )
            pair = (override.service_id, override.department_id)
            if override.active and pair in pairs:
                raise ConfigurationError(
                    f"Duplicate active override for service {pair[0]} in department {pair[1]}"
                )
            pairs.add(pair)
        return self


__all__ = [
    "CatalogComponent",
    "CatalogOverride",
    "CatalogService",
    "ConfigurationError",
    "EngineSettings",
    "FactorDefinition",
    "FactorKindName",
    "FactorTable",
    "FactorTableManifest",
    "FactorTableManifestEntry",
    "FreezePolicy",
    "ImmutableModel",
    "LegacyConstants",
    "MAX_FACTOR_VALUE",
    "MAX_FINANCIAL_YEAR",
    "MIN_FACTOR_VALUE",
    "MIN_FINANCIAL_YEAR",
    "ServiceCatalog",
    "TariffTierName",
    "ValidationError",
]
