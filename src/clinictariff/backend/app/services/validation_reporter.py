"""Pre-flight check that the canonical factor combinations are resolvable."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime

from clinictariff.backend.app.localization import Translator
from clinictariff.backend.app.models.domain import (
    FactorKind,
    FactorValidationReport,
    TariffTier,
)

from .factor_registry import FactorRegistry
from .financial_year import year_of

_REQUIRED: tuple[tuple[FactorKind, TariffTier, str], ...] = (
    (FactorKind.PROFESSIONAL, TariffTier.STANDARD, "validation.missing_professional"),
    (FactorKind.TECHNICAL, TariffTier.HASHTAGGED, "validation.missing_technical_hashtagged"),
    (FactorKind.TECHNICAL, TariffTier.STANDARD, "validation.missing_technical_standard"),
)

_DEFAULT_REASONS = {
    "validation.missing_professional": (
        "No professional factor is defined for financial year {financial_year}"
    ),
    "validation.missing_technical_hashtagged": (
        "No technical factor for hashtagged services is defined for financial year "
        "{financial_year}"
    ),
    "validation.missing_technical_standard": (
        "No technical factor for standard services is defined for financial year "
        "{financial_year}"
    ),
}


class ValidationReporter:
    def __init__(
        self,
        registry: FactorRegistry,
        *,
        clock: Callable[[], datetime] | None = None,
        include_frozen: bool = False,
    ) -> None:
        self._registry = registry
        self._clock = clock or datetime.now
        self._include_frozen = include_frozen

    def validate_required_factors(
        self, as_of: date | None = None, translator: Translator | None = None
    ) -> FactorValidationReport:
        """Report which of the three canonical factors cannot be resolved on ``as_of``."""

        check_date = as_of or self._clock().date()
        financial_year = year_of(check_date)

        found = {}
        missing: list[str] = []
        for kind, tier, reason_key in _REQUIRED:
            factor = self._registry.find(
                kind, tier, financial_year, check_date, include_frozen=self._include_frozen
            )
            found[(kind, tier)] = factor
            if factor is None:
                missing.append(_reason(reason_key, financial_year, translator))

        return FactorValidationReport(
            financial_year=financial_year,
            as_of=check_date,
            missing=tuple(missing),
            professional=found[(FactorKind.PROFESSIONAL, TariffTier.STANDARD)],
            technical_hashtagged=found[(FactorKind.TECHNICAL, TariffTier.HASHTAGGED)],
            technical_standard=found[(FactorKind.TECHNICAL, TariffTier.STANDARD)],
        )


def _reason(key: str, financial_year: int, translator: Translator | None) -> str:
    default = _DEFAULT_REASONS[key].format(financial_year=financial_year)
    if translator is None:
        return default
    return translator.format(key, default, financial_year=financial_year)


__all__ = ["ValidationReporter"]
