"""Unit tests for the solar financial-year mapping."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from clinictariff.backend.app.services.financial_year import (
    current_financial_year,
    nowruz,
    year_bounds,
    year_of,
)


@pytest.mark.parametrize(
    ("financial_year", "expected"),
    [
        (1402, date(2023, 3, 21)),
        (1403, date(2024, 3, 20)),
        (1404, date(2025, 3, 21)),
        (1405, date(2026, 3, 21)),
        (1406, date(2027, 3, 21)),
    ],
)
def test_nowruz_matches_published_calendar(financial_year: int, expected: date) -> None:
    assert nowruz(financial_year) == expected


def test_year_changes_exactly_at_nowruz() -> None:
    assert year_of(date(2025, 3, 20)) == 1403
    assert year_of(date(2025, 3, 21)) == 1404
    assert year_of(date(2024, 3, 19)) == 1402
    assert year_of(date(2024, 3, 20)) == 1403


def test_year_of_accepts_datetimes() -> None:
    assert year_of(datetime(2025, 12, 31, 23, 59)) == 1404
    assert year_of(datetime(2026, 1, 1, 0, 0)) == 1404


def test_year_bounds_are_contiguous() -> None:
    start, end = year_bounds(1403)
    next_start, _ = year_bounds(1404)

    assert start == date(2024, 3, 20)
    assert end == date(2025, 3, 20)
    assert (next_start - end).days == 1
    assert year_of(start) == year_of(end) == 1403


def test_current_financial_year_uses_injected_clock() -> None:
    assert current_financial_year(lambda: datetime(2026, 10, 19, 8, 0)) == 1405


@pytest.mark.parametrize(
    "value", [date(1, 3, 21), date(622, 3, 22), date(3900, 6, 1), date.max]
)
def test_every_gregorian_date_maps_onto_a_year(value: date) -> None:
    year = year_of(value)

    assert year in (value.year - 621, value.year - 622)
    assert nowruz(year) <= value


def test_first_representable_date_falls_before_the_first_nowruz() -> None:
    assert year_of(date.min) == -621


def test_years_beyond_the_break_table_stay_in_march() -> None:
    for financial_year in (-500, -62, 3178, 4000, 9000):
        start = nowruz(financial_year)

        assert start.month == 3
        assert year_of(start) == financial_year
