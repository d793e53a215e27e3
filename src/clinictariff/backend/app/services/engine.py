"""Facade wiring the tariff services around a single store and clock."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from clinictariff.backend.app.localization import Translator
from clinictariff.backend.app.models.domain import (
    CalculationResult,
    Factor,
    FactorKind,
    FactorValidationReport,
    Service,
    TariffTier,
)
from clinictariff.backend.app.storage.base import TariffStore
from clinictariff.backend.config.schema import EngineSettings

from .factor_catalog import FactorCatalog
from .factor_registry import FactorRegistry
from .financial_year import current_financial_year, year_of
from .freeze_manager import FreezeManager
from .override_resolver import OverrideResolver
from .price_calculator import PriceCalculator
from .validation_reporter import ValidationReporter


@dataclass(frozen=True)
class TariffEngine:
    """Entry point exposing the engine operations to request handlers."""

    store: TariffStore
    settings: EngineSettings
    clock: Callable[[], datetime]
    registry: FactorRegistry
    overrides: OverrideResolver
    freeze_manager: FreezeManager
    calculator: PriceCalculator
    reporter: ValidationReporter
    catalog: FactorCatalog

    def today(self) -> date:
        return self.clock().date()

    def current_financial_year(self) -> int:
        return current_financial_year(self.clock)

    def year_of(self, value: date) -> int:
        return year_of(value)

    def resolve(
        self, kind: FactorKind, tier: TariffTier, financial_year: int, as_of: date
    ) -> Factor:
        return self.registry.resolve(
            kind,
            tier,
            financial_year,
            as_of,
            include_frozen=self.freeze_manager.admits_frozen_rates,
        )

    def calculate(
        self,
        service: Service,
        department_id: int | None = None,
        as_of: date | None = None,
        financial_year: int | None = None,
    ) -> CalculationResult:
        return self.calculator.calculate(service, department_id, as_of, financial_year)

    def freeze(self, financial_year: int, actor_id: str) -> int:
        return self.freeze_manager.freeze(financial_year, actor_id)

    def is_frozen(self, financial_year: int) -> bool:
        return self.freeze_manager.is_frozen(financial_year)

    def validate_required_factors(
        self, as_of: date | None = None, translator: Translator | None = None
    ) -> FactorValidationReport:
        return self.reporter.validate_required_factors(as_of, translator)


def build_engine(
    store: TariffStore,
    clock: Callable[[], datetime] | None = None,
    settings: EngineSettings | None = None,
) -> TariffEngine:
    """Assemble a :class:`TariffEngine` over ``store``."""

    clock = clock or datetime.now
    settings = settings or EngineSettings()

    registry = FactorRegistry(store)
    overrides = OverrideResolver(store)
    freeze_manager = FreezeManager(store, policy=settings.freeze_policy, clock=clock)
    calculator = PriceCalculator(
        store,
        registry,
        overrides,
        freeze_manager,
        legacy_constants=settings.legacy_constants,
        clock=clock,
    )
    reporter = ValidationReporter(
        registry, clock=clock, include_frozen=freeze_manager.admits_frozen_rates
    )
    catalog = FactorCatalog(store, freeze_manager)

    return TariffEngine(
        store=store,
        settings=settings,
        clock=clock,
        registry=registry,
        overrides=overrides,
        freeze_manager=freeze_manager,
        calculator=calculator,
        reporter=reporter,
        catalog=catalog,
    )


__all__ = ["TariffEngine", "build_engine"]
