"""Tariff engine services: lookup, pricing, freezing and administration."""

from .engine import TariffEngine, build_engine
from .errors import (
    FactorConflictError,
    FactorNotFoundError,
    FrozenFactorError,
    FrozenYearError,
    InvalidInputError,
    MissingComponentError,
    MissingFactorError,
    ServiceNotFoundError,
    TariffError,
)
from .factor_catalog import FactorCatalog
from .factor_registry import FactorRegistry
from .financial_year import current_financial_year, nowruz, year_bounds, year_of
from .freeze_manager import FreezeManager, FreezePolicy
from .override_resolver import OverrideResolver, OverrideValues
from .price_calculator import (
    FactorTablePricing,
    LegacyConstantPricing,
    PriceCalculator,
    PricingMode,
)
from .validation_reporter import ValidationReporter

__all__ = [
    "FactorCatalog",
    "FactorConflictError",
    "FactorNotFoundError",
    "FactorRegistry",
    "FactorTablePricing",
    "FreezeManager",
    "FreezePolicy",
    "FrozenFactorError",
    "FrozenYearError",
    "InvalidInputError",
    "LegacyConstantPricing",
    "MissingComponentError",
    "MissingFactorError",
    "OverrideResolver",
    "OverrideValues",
    "PriceCalculator",
    "PricingMode",
    "ServiceNotFoundError",
    "TariffEngine",
    "TariffError",
    "ValidationReporter",
    "build_engine",
    "current_financial_year",
    "nowruz",
    "year_bounds",
    "year_of",
]
