"""Error types raised by the tariff engine.

Every error carries a stable ``code``, the HTTP status used by the API layer,
a translation key for the human-readable message, and the context needed to
build an actionable message (service id, factor kind, tier, financial year).
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from clinictariff.backend.app.localization import Translator


class TariffError(ValueError):
    """Base class for tariff engine failures."""

    code = "tariff_error"
    status = 400
    message_key = "errors.tariff_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Mapping[str, Any] = MappingProxyType(
            {key: value for key, value in context.items() if value is not None}
        )

    def render(self, translator: Translator | None = None) -> str:
        """Return the message, localised through ``translator`` when provided."""

        if translator is None:
            return self.message
        return translator.format(self.message_key, self.message, **self.context)


class InvalidInputError(TariffError):
    code = "invalid_input"
    status = 400
    message_key = "errors.invalid_input"


class MissingComponentError(TariffError):
    code = "missing_component"
    status = 422
    message_key = "errors.missing_component"


class MissingFactorError(TariffError):
    code = "missing_factor"
    status = 422
    message_key = "errors.missing_factor"


class FrozenYearError(TariffError):
    code = "frozen_year"
    status = 409
    message_key = "errors.frozen_year"


class FrozenFactorError(TariffError):
    code = "frozen_factor"
    status = 409
    message_key = "errors.frozen_factor"


class FactorConflictError(TariffError):
    code = "factor_conflict"
    status = 409
    message_key = "errors.factor_conflict"


class FactorNotFoundError(TariffError):
    code = "not_found"
    status = 404
    message_key = "errors.factor_not_found"


class ServiceNotFoundError(TariffError):
    code = "not_found"
    status = 404
    message_key = "errors.service_not_found"


__all__ = [
    "FactorConflictError",
    "FactorNotFoundError",
    "FrozenFactorError",
    "FrozenYearError",
    "InvalidInputError",
    "MissingComponentError",
    "MissingFactorError",
    "ServiceNotFoundError",
    "TariffError",
]
