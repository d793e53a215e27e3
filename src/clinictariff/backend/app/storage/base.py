"""Storage contract consumed by the tariff engine."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from clinictariff.backend.app.models.domain import (
    Factor,
    Override,
    Service,
    ServiceComponent,
    YearFreeze,
)


class TariffStore(Protocol):
    """Data-access capability for services, factors, overrides and freezes.

    Implementations return raw rows; filtering on active/deleted/frozen flags
    and effective dates is the engine's responsibility.
    """

    def get_service(self, service_id: int) -> Service | None:
        ...

    def find_components(self, service_id: int) -> Sequence[ServiceComponent]:
        ...

    def add_service(self, service: Service) -> Service:
        ...

    def list_factors(self, financial_year: int | None = None) -> Sequence[Factor]:
        ...

    def get_factor(self, factor_id: int) -> Factor | None:
        ...

    def add_factor(self, factor: Factor) -> Factor:
        ...

    def replace_factor(self, factor: Factor) -> Factor:
        ...

    def find_override(self, service_id: int, department_id: int) -> Override | None:
        ...

    def add_override(self, override: Override) -> Override:
        ...

    def freeze_factors(self, financial_year: int, actor_id: str, at: datetime) -> int:
        """Freeze live, unfrozen rows of ``financial_year``; return rows changed."""
        ...

    def get_year_freeze(self, financial_year: int) -> YearFreeze | None:
        ...

    def record_year_freeze(self, record: YearFreeze) -> YearFreeze:
        """Persist ``record`` unless one exists; return whichever record is stored."""
        ...


__all__ = ["TariffStore"]
