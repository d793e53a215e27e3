"""Thread-safe in-memory implementation of :class:`TariffStore`."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Sequence

from clinictariff.backend.app.models.domain import (
    Factor,
    Override,
    Service,
    ServiceComponent,
    YearFreeze,
)


class InMemoryTariffStore:
    """Dictionary-backed store guarded by a single lock."""

    def __init__(self) -> None:
        self._services: dict[int, Service] = {}
        self._factors: dict[int, Factor] = {}
        self._overrides: dict[tuple[int, int], Override] = {}
        self._year_freezes: dict[int, YearFreeze] = {}
        self._factor_ids = count(1)
        self._lock = Lock()

    def get_service(self, service_id: int) -> Service | None:
        with self._lock:
            return self._services.get(service_id)

    def find_components(self, service_id: int) -> Sequence[ServiceComponent]:
        with self._lock:
            service = self._services.get(service_id)
        if service is None:
            return ()
        return tuple(service.components)

    def add_service(self, service: Service) -> Service:
        with self._lock:
            self._services[service.id] = service
        return service

    def list_factors(self, financial_year: int | None = None) -> Sequence[Factor]:
        with self._lock:
            factors = list(self._factors.values())
        if financial_year is None:
            return factors
        return [factor for factor in factors if factor.financial_year == financial_year]

    def get_factor(self, factor_id: int) -> Factor | None:
        with self._lock:
            return self._factors.get(factor_id)

    def add_factor(self, factor: Factor) -> Factor:
        with self._lock:
            stored = replace(factor, id=next(self._factor_ids))
            self._factors[stored.id] = stored
        return stored

    def replace_factor(self, factor: Factor) -> Factor:
        if factor.id is None:
            raise ValueError("Cannot replace a factor without an identifier")
        with self._lock:
            if factor.id not in self._factors:
                raise KeyError(factor.id)
            self._factors[factor.id] = factor
        return factor

    def find_override(self, service_id: int, department_id: int) -> Override | None:
        with self._lock:
            return self._overrides.get((service_id, department_id))

    def add_override(self, override: Override) -> Override:
        with self._lock:
            self._overrides[(override.service_id, override.department_id)] = override
        return override

    def freeze_factors(self, financial_year: int, actor_id: str, at: datetime) -> int:
        changed = 0
        with self._lock:
            for factor_id, factor in list(self._factors.items()):
                if (
                    factor.financial_year != financial_year
                    or not factor.is_live
                    or factor.is_frozen
                ):
                    continue
                self._factors[factor_id] = factor.freeze(at, actor_id)
                changed += 1
        return changed

    def get_year_freeze(self, financial_year: int) -> YearFreeze | None:
        with self._lock:
            return self._year_freezes.get(financial_year)

    def record_year_freeze(self, record: YearFreeze) -> YearFreeze:
        with self._lock:
            return self._year_freezes.setdefault(record.financial_year, record)


__all__ = ["InMemoryTariffStore"]
