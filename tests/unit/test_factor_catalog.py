"""Unit tests for factor administration."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from clinictariff.backend.app.models import FactorKind, TariffTier
from clinictariff.backend.app.services.engine import TariffEngine
from clinictariff.backend.app.services.errors import (
    FactorConflictError,
    FactorNotFoundError,
    FrozenFactorError,
    FrozenYearError,
    InvalidInputError,
)
from clinictariff.backend.app.storage import InMemoryTariffStore


def _factor_id(store: InMemoryTariffStore, year: int, kind: FactorKind, tier: TariffTier) -> int:
    for factor in store.list_factors(year):
        if factor.kind is kind and factor.tier is tier:
            assert factor.id is not None
            return factor.id
    raise AssertionError("seeded factor not found")


def test_create_factor_for_open_year(engine: TariffEngine, caplog) -> None:
    with caplog.at_level(logging.INFO):
        factor = engine.catalog.create_factor(
            FactorKind.TECHNICAL,
            TariffTier.STANDARD,
            1406,
            Decimal("39000"),
            date(2027, 3, 21),
            description="Draft 1406 rate",
        )

    assert factor.id is not None
    assert engine.catalog.get_factor(factor.id) == factor
    assert any("Created technical/standard factor" in r.getMessage() for r in caplog.records)


def test_overlapping_live_range_is_a_conflict(engine: TariffEngine) -> None:
    with pytest.raises(FactorConflictError) as excinfo:
        engine.catalog.create_factor(
            FactorKind.TECHNICAL,
            TariffTier.STANDARD,
            1404,
            Decimal("33000"),
            date(2025, 9, 23),
        )

    assert excinfo.value.status == 409
    assert "conflicting_factor_id" in excinfo.value.context


def test_inactive_draft_may_overlap(engine: TariffEngine) -> None:
    factor = engine.catalog.create_factor(
        FactorKind.TECHNICAL,
        TariffTier.STANDARD,
        1404,
        Decimal("33000"),
        date(2025, 9, 23),
        active=False,
    )

    assert not factor.active


def test_closing_a_range_makes_room_for_a_revision(
    engine: TariffEngine, store: InMemoryTariffStore
) -> None:
    factor_id = _factor_id(store, 1404, FactorKind.TECHNICAL, TariffTier.STANDARD)

    engine.catalog.update_factor(factor_id, effective_to=date(2025, 9, 22))
    revised = engine.catalog.create_factor(
        FactorKind.TECHNICAL,
        TariffTier.STANDARD,
        1404,
        Decimal("33000"),
        date(2025, 9, 23),
    )

    resolved = engine.resolve(FactorKind.TECHNICAL, TariffTier.STANDARD, 1404, date(2025, 10, 1))
    assert resolved.id == revised.id


def test_update_can_clear_effective_to(engine: TariffEngine, store: InMemoryTariffStore) -> None:
    factor_id = _factor_id(store, 1405, FactorKind.TECHNICAL, TariffTier.HASHTAGGED)
    engine.catalog.update_factor(factor_id, effective_to=date(2026, 12, 31))

    updated = engine.catalog.update_factor(factor_id, effective_to=None)

    assert updated.effective_to is None


def test_update_without_changes_returns_current_row(
    engine: TariffEngine, store: InMemoryTariffStore
) -> None:
    factor_id = _factor_id(store, 1405, FactorKind.TECHNICAL, TariffTier.HASHTAGGED)

    assert engine.catalog.update_factor(factor_id) == store.get_factor(factor_id)


@pytest.mark.parametrize(
    ("kind", "tier", "year", "value", "effective_to"),
    [
        (FactorKind.TECHNICAL, TariffTier.STANDARD, 1406, Decimal("0"), None),
        (FactorKind.TECHNICAL, TariffTier.STANDARD, 1406, Decimal("1000000000"), None),
        (FactorKind.TECHNICAL, TariffTier.STANDARD, 1200, Decimal("31000"), None),
        (FactorKind.TECHNICAL, TariffTier.STANDARD, 1406, Decimal("31000"), date(2027, 1, 1)),
        (FactorKind.PROFESSIONAL, TariffTier.HASHTAGGED, 1406, Decimal("41000"), None),
    ],
)
def test_invalid_definitions_are_rejected(
    engine: TariffEngine, kind, tier, year, value, effective_to
) -> None:
    with pytest.raises(InvalidInputError):
        engine.catalog.create_factor(kind, tier, year, value, date(2027, 3, 21), effective_to)


def test_delete_is_soft(engine: TariffEngine, store: InMemoryTariffStore) -> None:
    factor_id = _factor_id(store, 1405, FactorKind.TECHNICAL, TariffTier.HASHTAGGED)

    deleted = engine.catalog.delete_factor(factor_id)

    assert deleted.deleted
    assert store.get_factor(factor_id) is not None
    assert all(factor.id != factor_id for factor in engine.catalog.list_factors(1405))
    assert any(
        factor.id == factor_id
        for factor in engine.catalog.list_factors(1405, include_deleted=True)
    )


def test_frozen_rows_cannot_change(engine: TariffEngine, store: InMemoryTariffStore) -> None:
    factor_id = _factor_id(store, 1404, FactorKind.PROFESSIONAL, TariffTier.STANDARD)
    engine.freeze(1404, "finance-lead")

    with pytest.raises(FrozenFactorError):
        engine.catalog.update_factor(factor_id, value=Decimal("42000"))
    with pytest.raises(FrozenFactorError):
        engine.catalog.delete_factor(factor_id)


def test_frozen_year_refuses_new_rows(engine: TariffEngine) -> None:
    engine.freeze(1404, "finance-lead")

    with pytest.raises(FrozenYearError):
        engine.catalog.create_factor(
            FactorKind.TECHNICAL,
            TariffTier.STANDARD,
            1404,
            Decimal("33000"),
            date(2025, 9, 23),
        )


def test_unknown_factor_is_not_found(engine: TariffEngine) -> None:
    with pytest.raises(FactorNotFoundError) as excinfo:
        engine.catalog.update_factor(9999, value=Decimal("1"))

    assert excinfo.value.status == 404


def test_frozen_factors_lists_only_frozen_rows(engine: TariffEngine) -> None:
    engine.freeze(1403, "finance-lead")

    frozen = engine.catalog.frozen_factors()

    assert {factor.financial_year for factor in frozen} == {1403}
    assert len(frozen) == 3


def test_listing_filters_by_kind_year_and_description(engine: TariffEngine) -> None:
    catalog = engine.catalog

    professional = catalog.list_factors(kind=FactorKind.PROFESSIONAL)
    revised = catalog.list_factors(1405, search="  mehr ")

    assert [factor.financial_year for factor in professional] == [1405, 1405, 1404, 1403]
    assert [factor.value for factor in revised] == [Decimal("49500")]
    assert catalog.count_factors(search="hashtag") == 6
    assert catalog.count_factors(1404, kind=FactorKind.TECHNICAL) == 2


def test_listing_filters_by_active_flag(engine: TariffEngine, store: InMemoryTariffStore) -> None:
    factor_id = _factor_id(store, 1405, FactorKind.TECHNICAL, TariffTier.HASHTAGGED)
    engine.catalog.update_factor(factor_id, active=False)

    inactive = engine.catalog.list_factors(active=False)

    assert [factor.id for factor in inactive] == [factor_id]
    assert engine.catalog.count_factors(active=True) == 9


def test_page_factors_slices_the_ordered_listing(engine: TariffEngine) -> None:
    first = engine.catalog.page_factors(1, 4)
    last = engine.catalog.page_factors(3, 4)
    beyond = engine.catalog.page_factors(4, 4)

    assert first.total == last.total == 10
    assert first.page_count == 3
    assert [factor.financial_year for factor in first.items] == [1405] * 4
    assert [factor.financial_year for factor in last.items] == [1403, 1403]
    assert beyond.items == ()


@pytest.mark.parametrize(("page", "page_size"), [(0, 20), (-1, 20), (1, 0), (1, 101)])
def test_page_factors_rejects_invalid_paging(
    engine: TariffEngine, page: int, page_size: int
) -> None:
    with pytest.raises(InvalidInputError):
        engine.catalog.page_factors(page, page_size)


def test_deleted_rows_are_paged_only_on_request(
    engine: TariffEngine, store: InMemoryTariffStore
) -> None:
    factor_id = _factor_id(store, 1405, FactorKind.TECHNICAL, TariffTier.STANDARD)
    engine.catalog.delete_factor(factor_id)

    assert engine.catalog.page_factors(financial_year=1405).total == 3
    assert engine.catalog.page_factors(financial_year=1405, include_deleted=True).total == 4
