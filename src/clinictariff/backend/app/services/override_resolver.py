"""Department-specific factor overrides for shared services."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from clinictariff.backend.app.models.domain import FactorKind
from clinictariff.backend.app.storage.base import TariffStore


@dataclass(frozen=True)
class OverrideValues:
    """Replacement factor values; ``None`` means the registry value stands."""

    technical: Decimal | None = None
    professional: Decimal | None = None

    def for_kind(self, kind: FactorKind) -> Decimal | None:
        return self.technical if kind is FactorKind.TECHNICAL else self.professional

    @property
    def is_empty(self) -> bool:
        return self.technical is None and self.professional is None


NO_OVERRIDE = OverrideValues()


class OverrideResolver:
    def __init__(self, store: TariffStore) -> None:
        self._store = store

    def resolve(self, service_id: int, department_id: int | None = None) -> OverrideValues:
        """Return the live override pairing for the service in the department, if any."""

        if department_id is None:
            return NO_OVERRIDE

        override = self._store.find_override(service_id, department_id)
        if override is None or not override.is_live:
            return NO_OVERRIDE

        return OverrideValues(
            technical=override.technical_factor,
            professional=override.professional_factor,
        )


__all__ = ["NO_OVERRIDE", "OverrideResolver", "OverrideValues"]
