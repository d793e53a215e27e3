"""Effective-dated lookup over the versioned factor table."""

from __future__ import annotations

import logging
from datetime import date

from clinictariff.backend.app.models.domain import Factor, FactorKind, TariffTier
from clinictariff.backend.app.storage.base import TariffStore

from .errors import MissingFactorError

_LOGGER = logging.getLogger(__name__)


def _selection_key(factor: Factor) -> tuple[date, int]:
    return factor.effective_from, factor.id or 0


class FactorRegistry:
    """Resolve the single factor in force for a kind, tier, year and date.

    Matching rows must agree on kind, tier and financial year exactly, be
    active and not deleted, be unfrozen (unless the caller admits frozen
    rates) and contain ``as_of`` in their inclusive effective range. The row
    that started most recently wins; rows sharing that start date are ordered
    by identifier so the newest registration is chosen.
    """

    def __init__(self, store: TariffStore) -> None:
        self._store = store

    def candidates(
        self,
        kind: FactorKind,
        tier: TariffTier,
        financial_year: int,
        as_of: date,
        *,
        include_frozen: bool = False,
    ) -> list[Factor]:
        """Return every row eligible for the lookup, latest start first."""

        matches = [
            factor
            for factor in self._store.list_factors(financial_year)
            if factor.kind is kind
            and factor.tier is tier
            and factor.financial_year == financial_year
            and factor.is_live
            and (include_frozen or not factor.is_frozen)
            and factor.covers(as_of)
        ]
        matches.sort(key=_selection_key, reverse=True)
        return matches

    def find(
        self,
        kind: FactorKind,
        tier: TariffTier,
        financial_year: int,
        as_of: date,
        *,
        include_frozen: bool = False,
    ) -> Factor | None:
        matches = self.candidates(
            kind, tier, financial_year, as_of, include_frozen=include_frozen
        )
        if not matches:
            return None
        if len(matches) > 1 and matches[0].effective_from == matches[1].effective_from:
            _LOGGER.warning(
                "Ambiguous %s/%s factors for year %s on %s; using factor %s",
                kind.value,
                tier.value,
                financial_year,
                as_of.isoformat(),
                matches[0].id,
            )
        return matches[0]

    def resolve(
        self,
        kind: FactorKind,
        tier: TariffTier,
        financial_year: int,
        as_of: date,
        *,
        include_frozen: bool = False,
    ) -> Factor:
        """Return the effective factor or raise :class:`MissingFactorError`."""

        factor = self.find(kind, tier, financial_year, as_of, include_frozen=include_frozen)
        if factor is None:
            raise MissingFactorError(
                (
                    f"No {kind.value} factor for {tier.value} services in financial year "
                    f"{financial_year} is effective on {as_of.isoformat()}; define the rate first"
                ),
                kind=kind.value,
                tier=tier.value,
                financial_year=financial_year,
                as_of=as_of.isoformat(),
            )
        return factor


__all__ = ["FactorRegistry"]
