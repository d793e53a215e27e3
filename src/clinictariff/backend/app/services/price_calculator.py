"""Tariff formula: coefficients times effective factors, with overrides.

``price = technical coefficient × technical factor
        + professional coefficient × professional factor``

Factors come from one pricing mode chosen once per calculation: the versioned
factor table, or (only when enabled and the year has no factor rows at all)
the fixed legacy constants. Department overrides replace the chosen factor
value per axis. Amounts are exact products; rounding to cents happens when
results are rendered for clients.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Union

from clinictariff.backend.app.models.domain import (
    CalculationResult,
    FactorKind,
    PricingModeName,
    Service,
    ServiceComponent,
    TariffTier,
)
from clinictariff.backend.app.storage.base import TariffStore
from clinictariff.backend.config.schema import LegacyConstants

from .errors import InvalidInputError, MissingComponentError, ServiceNotFoundError
from .factor_registry import FactorRegistry
from .financial_year import year_of
from .freeze_manager import FreezeManager, validate_financial_year
from .override_resolver import OverrideResolver
from .utils import profile_section

_LOGGER = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ResolvedFactor:
    value: Decimal
    factor_id: int | None = None


@dataclass(frozen=True)
class FactorTablePricing:
    """Resolve factors from the versioned, effective-dated registry."""

    name: ClassVar[PricingModeName] = PricingModeName.FACTOR_TABLE

    registry: FactorRegistry
    include_frozen: bool = False

    def factor(
        self, kind: FactorKind, tier: TariffTier, financial_year: int, as_of: date
    ) -> ResolvedFactor:
        factor = self.registry.resolve(
            kind, tier, financial_year, as_of, include_frozen=self.include_frozen
        )
        return ResolvedFactor(value=factor.value, factor_id=factor.id)


@dataclass(frozen=True)
class LegacyConstantPricing:
    """Fixed national constants for years without any registered factors."""

    name: ClassVar[PricingModeName] = PricingModeName.LEGACY_CONSTANTS

    constants: LegacyConstants

    def factor(
        self, kind: FactorKind, tier: TariffTier, financial_year: int, as_of: date
    ) -> ResolvedFactor:
        if kind is FactorKind.PROFESSIONAL:
            return ResolvedFactor(value=self.constants.professional)
        return ResolvedFactor(value=self.constants.technical_for(tier.is_hashtagged))


PricingMode = Union[FactorTablePricing, LegacyConstantPricing]


@dataclass(frozen=True)
class _ComponentPair:
    technical: ServiceComponent
    professional: ServiceComponent


class PriceCalculator:
    def __init__(
        self,
        store: TariffStore,
        registry: FactorRegistry,
        overrides: OverrideResolver,
        freeze_manager: FreezeManager,
        *,
        legacy_constants: LegacyConstants | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._overrides = overrides
        self._freeze = freeze_manager
        self._legacy = legacy_constants or LegacyConstants()
        self._clock = clock or datetime.now

    def pricing_mode(self, financial_year: int) -> PricingMode:
        """Choose the single pricing mode used for a calculation in ``financial_year``."""

        if self._legacy.enabled and not any(
            factor.is_live for factor in self._store.list_factors(financial_year)
        ):
            _LOGGER.warning(
                "No factor rows registered for financial year %s; using legacy constants",
                financial_year,
            )
            return LegacyConstantPricing(constants=self._legacy)
        return FactorTablePricing(
            registry=self._registry, include_frozen=self._freeze.admits_frozen_rates
        )

    def calculate_for_service_id(
        self,
        service_id: int,
        department_id: int | None = None,
        as_of: date | None = None,
        financial_year: int | None = None,
        *,
        timings: dict[str, float] | None = None,
    ) -> CalculationResult:
        if service_id is None or service_id <= 0:
            raise InvalidInputError(
                "Service identifier must be a positive integer", service_id=service_id
            )
        service = self._store.get_service(service_id)
        if service is None:
            raise ServiceNotFoundError(f"Service {service_id} was not found", service_id=service_id)
        service = replace(service, components=tuple(self._store.find_components(service_id)))
        return self.calculate(
            service, department_id, as_of, financial_year, timings=timings
        )

    def calculate(
        self,
        service: Service | None,
        department_id: int | None = None,
        as_of: date | None = None,
        financial_year: int | None = None,
        *,
        timings: dict[str, float] | None = None,
    ) -> CalculationResult:
        """Price ``service`` for ``as_of`` (default today) in ``financial_year``.

        ``financial_year`` defaults to the solar year containing ``as_of``;
        passing it explicitly lets historical recomputation use another
        year's table. Checks run in order: frozen year, components,
        professional factor, technical factor; overrides are applied last.
        """

        if service is None:
            raise InvalidInputError("A service is required to calculate a price")
        if service.id <= 0:
            raise InvalidInputError(
                "Service identifier must be a positive integer", service_id=service.id
            )
        if department_id is not None and department_id <= 0:
            raise InvalidInputError(
                "Department identifier must be a positive integer",
                service_id=service.id,
                department_id=department_id,
            )

        calculation_date = as_of or self._clock().date()
        year = financial_year if financial_year is not None else year_of(calculation_date)
        validate_financial_year(year)

        with profile_section("freeze_check", timings):
            self._freeze.ensure_calculable(year)

        mode = self.pricing_mode(year)

        with profile_section("components", timings):
            components = self._select_components(service, mode, year)

        if components is None:
            return self._flat_price_result(service, department_id, calculation_date, year)

        with profile_section("factors", timings):
            professional = mode.factor(
                FactorKind.PROFESSIONAL, TariffTier.STANDARD, year, calculation_date
            )
            technical = mode.factor(FactorKind.TECHNICAL, service.tier, year, calculation_date)

        with profile_section("overrides", timings):
            override = self._overrides.resolve(service.id, department_id)

        technical_factor = technical.value
        professional_factor = professional.value
        overridden: list[FactorKind] = []
        if override.technical is not None:
            technical_factor = override.technical
            overridden.append(FactorKind.TECHNICAL)
        if override.professional is not None:
            professional_factor = override.professional
            overridden.append(FactorKind.PROFESSIONAL)

        technical_amount = components.technical.coefficient * technical_factor
        professional_amount = components.professional.coefficient * professional_factor

        return CalculationResult(
            service_id=service.id,
            service_title=service.title,
            tier=service.tier,
            financial_year=year,
            as_of=calculation_date,
            pricing_mode=mode.name,
            technical_coefficient=components.technical.coefficient,
            professional_coefficient=components.professional.coefficient,
            technical_factor=technical_factor,
            professional_factor=professional_factor,
            technical_amount=technical_amount,
            professional_amount=professional_amount,
            total=technical_amount + professional_amount,
            department_id=department_id,
            technical_factor_id=technical.factor_id,
            professional_factor_id=professional.factor_id,
            overridden=tuple(overridden),
        )

    def _select_components(
        self, service: Service, mode: PricingMode, financial_year: int
    ) -> _ComponentPair | None:
        """Return the priced parts of ``service``, or ``None`` for a flat-price legacy service."""

        technical = service.live_components(FactorKind.TECHNICAL)
        professional = service.live_components(FactorKind.PROFESSIONAL)

        if (
            isinstance(mode, LegacyConstantPricing)
            and not technical
            and not professional
        ):
            return None

        for kind, found in (
            (FactorKind.TECHNICAL, technical),
            (FactorKind.PROFESSIONAL, professional),
        ):
            if len(found) != 1:
                raise MissingComponentError(
                    (
                        f"Service {service.id} ({service.title}) needs exactly one active "
                        f"{kind.value} component; found {len(found)}"
                    ),
                    service_id=service.id,
                    service_title=service.title,
                    kind=kind.value,
                    found=len(found),
                    financial_year=financial_year,
                )

        return _ComponentPair(technical=technical[0], professional=professional[0])

    def _flat_price_result(
        self,
        service: Service,
        department_id: int | None,
        as_of: date,
        financial_year: int,
    ) -> CalculationResult:
        return CalculationResult(
            service_id=service.id,
            service_title=service.title,
            tier=service.tier,
            financial_year=financial_year,
            as_of=as_of,
            pricing_mode=PricingModeName.FLAT_PRICE,
            technical_coefficient=_ZERO,
            professional_coefficient=_ZERO,
            technical_factor=_ZERO,
            professional_factor=_ZERO,
            technical_amount=_ZERO,
            professional_amount=_ZERO,
            total=service.flat_price,
            department_id=department_id,
        )


__all__ = [
    "FactorTablePricing",
    "LegacyConstantPricing",
    "PriceCalculator",
    "PricingMode",
    "ResolvedFactor",
]
