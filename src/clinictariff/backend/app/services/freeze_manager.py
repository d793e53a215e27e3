"""Financial-year freeze lifecycle.

A year moves from open to frozen exactly once. The transition is stored as a
per-year :class:`YearFreeze` record; the row-level frozen state on each factor
is still written so existing reports that read factor rows keep working, and
rows frozen before year records existed are honoured when no record is found.

What a frozen year prevents is a policy decision kept behind this class:
``BLOCK_CALCULATIONS`` refuses new price calculations for the year, while
``LOCK_EDITS_ONLY`` keeps pricing against the frozen rates and only locks
edits. Factor edits are refused for frozen years under either policy.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from clinictariff.backend.app.models.domain import (
    OPEN,
    FactorKind,
    FinancialYearStats,
    FreezeState,
    FrozenState,
    TariffTier,
    YearFreeze,
)
from clinictariff.backend.app.storage.base import TariffStore
from clinictariff.backend.config.schema import (
    MAX_FINANCIAL_YEAR,
    MIN_FINANCIAL_YEAR,
    FreezePolicy,
)

from .errors import FrozenYearError, InvalidInputError

_LOGGER = logging.getLogger(__name__)


def validate_financial_year(financial_year: int) -> int:
    if not MIN_FINANCIAL_YEAR <= financial_year <= MAX_FINANCIAL_YEAR:
        raise InvalidInputError(
            (
                f"Financial year {financial_year} must be between "
                f"{MIN_FINANCIAL_YEAR} and {MAX_FINANCIAL_YEAR}"
            ),
            financial_year=financial_year,
        )
    return financial_year


class FreezeManager:
    def __init__(
        self,
        store: TariffStore,
        *,
        policy: FreezePolicy = FreezePolicy.BLOCK_CALCULATIONS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._policy = policy
        self._clock = clock or datetime.now

    @property
    def policy(self) -> FreezePolicy:
        return self._policy

    @property
    def admits_frozen_rates(self) -> bool:
        """Whether price lookups may use rows locked by a freeze."""

        return self._policy is FreezePolicy.LOCK_EDITS_ONLY

    def freeze(self, financial_year: int, actor_id: str) -> int:
        """Freeze every live, unfrozen factor of ``financial_year``.

        Returns the number of rows changed by this call. Repeated or
        concurrent calls converge on every row being frozen once; the year
        record keeps the first caller's timestamp and identity.
        """

        validate_financial_year(financial_year)
        actor = (actor_id or "").strip()
        if not actor:
            raise InvalidInputError("An actor identity is required to freeze a financial year")

        at = self._clock()
        changed = self._store.freeze_factors(financial_year, actor, at)
        record = self._store.record_year_freeze(
            YearFreeze(financial_year=financial_year, at=at, by=actor, factors_frozen=changed)
        )

        _LOGGER.info(
            "Financial year %s frozen by %s: %s factor rows changed (year frozen at %s)",
            financial_year,
            actor,
            changed,
            record.at.isoformat(),
        )
        return changed

    def year_record(self, financial_year: int) -> YearFreeze | None:
        return self._store.get_year_freeze(financial_year)

    def freeze_state(self, financial_year: int) -> FreezeState:
        record = self._store.get_year_freeze(financial_year)
        if record is not None:
            return FrozenState(at=record.at, by=record.by)

        for factor in self._store.list_factors(financial_year):
            if factor.is_live and factor.is_frozen:
                return factor.freeze_state
        return OPEN

    def is_frozen(self, financial_year: int) -> bool:
        return self.freeze_state(financial_year).is_frozen

    def ensure_calculable(self, financial_year: int) -> None:
        """Raise :class:`FrozenYearError` when the policy blocks pricing the year."""

        if self._policy is FreezePolicy.BLOCK_CALCULATIONS and self.is_frozen(financial_year):
            raise FrozenYearError(
                (
                    f"Financial year {financial_year} is frozen; "
                    "new calculations are not allowed"
                ),
                financial_year=financial_year,
            )

    def ensure_editable(self, financial_year: int) -> None:
        if self.is_frozen(financial_year):
            raise FrozenYearError(
                f"Financial year {financial_year} is frozen; its factors cannot change",
                financial_year=financial_year,
            )

    def year_statistics(self, financial_year: int) -> FinancialYearStats:
        factors = [
            factor
            for factor in self._store.list_factors(financial_year)
            if not factor.deleted
        ]
        return FinancialYearStats(
            financial_year=financial_year,
            total=len(factors),
            active=sum(1 for factor in factors if factor.active),
            frozen=sum(1 for factor in factors if factor.is_frozen),
            professional=sum(1 for factor in factors if factor.kind is FactorKind.PROFESSIONAL),
            technical=sum(1 for factor in factors if factor.kind is FactorKind.TECHNICAL),
            hashtagged=sum(1 for factor in factors if factor.tier is TariffTier.HASHTAGGED),
            standard=sum(1 for factor in factors if factor.tier is TariffTier.STANDARD),
        )


__all__ = ["FreezeManager", "FreezePolicy", "validate_financial_year"]
