"""Administrative operations on factor rows.

Factors stay editable until their financial year is frozen. Deletion is soft:
rows are flagged as deleted so historical calculations can still be traced to
the rate they used.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any

from clinictariff.backend.app.models.domain import Factor, FactorKind, FactorPage, TariffTier
from clinictariff.backend.app.storage.base import TariffStore
from clinictariff.backend.config.schema import MAX_FACTOR_VALUE, MIN_FACTOR_VALUE

from .errors import (
    FactorConflictError,
    FactorNotFoundError,
    FrozenFactorError,
    InvalidInputError,
)
from .freeze_manager import FreezeManager, validate_financial_year

_LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_UNSET: Any = object()


def _validate_factor(factor: Factor) -> None:
    validate_financial_year(factor.financial_year)

    if not MIN_FACTOR_VALUE <= factor.value <= MAX_FACTOR_VALUE:
        raise InvalidInputError(
            f"Factor value must be between {MIN_FACTOR_VALUE} and {MAX_FACTOR_VALUE}",
            value=str(factor.value),
        )
    if factor.effective_to is not None and factor.effective_to < factor.effective_from:
        raise InvalidInputError(
            "Factor effective_to cannot be earlier than effective_from",
            effective_from=factor.effective_from.isoformat(),
            effective_to=factor.effective_to.isoformat(),
        )
    if factor.kind is FactorKind.PROFESSIONAL and factor.tier is not TariffTier.STANDARD:
        raise InvalidInputError(
            "Professional factors are not tiered; use the standard tier",
            kind=factor.kind.value,
            tier=factor.tier.value,
        )


class FactorCatalog:
    def __init__(self, store: TariffStore, freeze_manager: FreezeManager) -> None:
        self._store = store
        self._freeze = freeze_manager

    def list_factors(
        self,
        financial_year: int | None = None,
        *,
        kind: FactorKind | None = None,
        active: bool | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> list[Factor]:
        """Return matching factors, newest financial year first.

        ``search`` matches the description case-insensitively. Within a year
        rows are ordered by kind, tier and effective date.
        """

        needle = search.strip().casefold() if search else ""
        factors = [
            factor
            for factor in self._store.list_factors(financial_year)
            if (include_deleted or not factor.deleted)
            and (kind is None or factor.kind is kind)
            and (active is None or factor.active is active)
            and (not needle or needle in (factor.description or "").casefold())
        ]
        factors.sort(
            key=lambda factor: (
                -factor.financial_year,
                factor.kind.value,
                factor.tier.value,
                factor.effective_from,
                factor.id or 0,
            )
        )
        return factors

    def count_factors(
        self,
        financial_year: int | None = None,
        *,
        kind: FactorKind | None = None,
        active: bool | None = None,
        search: str | None = None,
    ) -> int:
        return len(
            self.list_factors(financial_year, kind=kind, active=active, search=search)
        )

    def page_factors(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        *,
        financial_year: int | None = None,
        kind: FactorKind | None = None,
        active: bool | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> FactorPage:
        if page < 1:
            raise InvalidInputError("Page numbers start at 1", page=page)
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise InvalidInputError(
                f"Page size must be between 1 and {MAX_PAGE_SIZE}", page_size=page_size
            )

        matches = self.list_factors(
            financial_year,
            kind=kind,
            active=active,
            search=search,
            include_deleted=include_deleted,
        )
        start = (page - 1) * page_size
        return FactorPage(
            items=tuple(matches[start : start + page_size]),
            total=len(matches),
            page=page,
            page_size=page_size,
        )

    def frozen_factors(self, financial_year: int | None = None) -> list[Factor]:
        return [factor for factor in self.list_factors(financial_year) if factor.is_frozen]

    def get_factor(self, factor_id: int) -> Factor:
        factor = self._store.get_factor(factor_id)
        if factor is None:
            raise FactorNotFoundError(f"Factor {factor_id} was not found", factor_id=factor_id)
        return factor

    def create_factor(
        self,
        kind: FactorKind,
        tier: TariffTier,
        financial_year: int,
        value: Decimal,
        effective_from: date,
        effective_to: date | None = None,
        *,
        active: bool = True,
        description: str | None = None,
    ) -> Factor:
        draft = Factor(
            id=None,
            kind=kind,
            tier=tier,
            financial_year=financial_year,
            value=value,
            effective_from=effective_from,
            effective_to=effective_to,
            active=active,
            description=description,
        )
        _validate_factor(draft)
        self._freeze.ensure_editable(financial_year)
        self._ensure_no_overlap(draft)

        stored = self._store.add_factor(draft)
        _LOGGER.info(
            "Created %s/%s factor %s for financial year %s: %s from %s",
            stored.kind.value,
            stored.tier.value,
            stored.id,
            stored.financial_year,
            stored.value,
            stored.effective_from.isoformat(),
        )
        return stored

    def update_factor(
        self,
        factor_id: int,
        *,
        value: Decimal | None = None,
        effective_from: date | None = None,
        effective_to: date | None = _UNSET,
        active: bool | None = None,
        description: str | None = _UNSET,
    ) -> Factor:
        """Change the mutable attributes of an unfrozen factor.

        ``effective_to`` and ``description`` may be cleared by passing
        ``None`` explicitly; omitted arguments leave the stored value alone.
        """

        current = self._editable(factor_id)

        changes: dict[str, Any] = {}
        if value is not None:
            changes["value"] = value
        if effective_from is not None:
            changes["effective_from"] = effective_from
        if effective_to is not _UNSET:
            changes["effective_to"] = effective_to
        if active is not None:
            changes["active"] = active
        if description is not _UNSET:
            changes["description"] = description

        if not changes:
            return current

        updated = replace(current, **changes)
        _validate_factor(updated)
        self._ensure_no_overlap(updated)

        stored = self._store.replace_factor(updated)
        _LOGGER.info(
            "Updated factor %s (financial year %s): %s",
            factor_id,
            stored.financial_year,
            ", ".join(sorted(changes)),
        )
        return stored

    def delete_factor(self, factor_id: int) -> Factor:
        current = self._editable(factor_id)
        if current.deleted:
            return current

        stored = self._store.replace_factor(replace(current, deleted=True))
        _LOGGER.info(
            "Deleted factor %s (financial year %s)", factor_id, stored.financial_year
        )
        return stored

    def _editable(self, factor_id: int) -> Factor:
        factor = self.get_factor(factor_id)
        if factor.is_frozen:
            raise FrozenFactorError(
                (
                    f"Factor {factor_id} was frozen on {factor.frozen_at.isoformat()} "
                    f"by {factor.frozen_by} and cannot change"
                ),
                factor_id=factor_id,
                financial_year=factor.financial_year,
            )
        self._freeze.ensure_editable(factor.financial_year)
        return factor

    def _ensure_no_overlap(self, factor: Factor) -> None:
        if not factor.is_live:
            return

        for existing in self._store.list_factors(factor.financial_year):
            if (
                existing.id == factor.id
                or not existing.is_live
                or existing.kind is not factor.kind
                or existing.tier is not factor.tier
            ):
                continue
            if existing.overlaps(factor):
                raise FactorConflictError(
                    (
                        f"The {factor.kind.value}/{factor.tier.value} factor range overlaps "
                        f"factor {existing.id} in financial year {factor.financial_year}"
                    ),
                    kind=factor.kind.value,
                    tier=factor.tier.value,
                    financial_year=factor.financial_year,
                    conflicting_factor_id=existing.id,
                )


__all__ = ["DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE", "FactorCatalog"]
