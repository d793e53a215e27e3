"""Map Gregorian dates onto solar (Jalaali) financial years.

Financial years start at Nowruz (1 Farvardin). The Nowruz date for a given
year is derived from the published break table of the 33-year leap cycles,
which is exact for every year the clinic can plausibly record. Outside the
table the last known 33-year cycle arithmetic is carried forward or back, so
every Gregorian date maps onto a year.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta

_BREAKS = (
    -61, 9, 38, 199, 426, 686, 756, 818, 1111, 1181, 1210,
    1635, 2060, 2097, 2192, 2262, 2324, 2394, 2456, 3178,
)
_GREGORIAN_OFFSET = 621

Clock = Callable[[], datetime]


def _nowruz_march_day(jalaali_year: int) -> int:
    """Return the March day of the Gregorian year on which ``jalaali_year`` begins."""

    gregorian_year = jalaali_year + _GREGORIAN_OFFSET
    leap_j = -14
    previous_break = _BREAKS[0]
    jump = 0
    for current_break in _BREAKS[1:]:
        jump = current_break - previous_break
        if jalaali_year < current_break:
            break
        leap_j += (jump // 33) * 8 + (jump % 33) // 4
        previous_break = current_break

    offset = jalaali_year - previous_break
    leap_j += (offset // 33) * 8 + ((offset % 33) + 3) // 4
    if jump % 33 == 4 and jump - offset == 4:
        leap_j += 1

    leap_g = gregorian_year // 4 - ((gregorian_year // 100 + 1) * 3) // 4 - 150
    return 20 + leap_j - leap_g


def nowruz(financial_year: int) -> date:
    """Return the Gregorian date of the first day of ``financial_year``."""

    march_first = date(financial_year + _GREGORIAN_OFFSET, 3, 1)
    return march_first + timedelta(days=_nowruz_march_day(financial_year) - 1)


def year_of(value: date | datetime) -> int:
    """Return the solar financial year containing ``value``."""

    if isinstance(value, datetime):
        value = value.date()
    candidate = value.year - _GREGORIAN_OFFSET
    if value < nowruz(candidate):
        return candidate - 1
    return candidate


def year_bounds(financial_year: int) -> tuple[date, date]:
    """Return the inclusive Gregorian start and end dates of ``financial_year``."""

    start = nowruz(financial_year)
    following = nowruz(financial_year + 1)
    return start, date.fromordinal(following.toordinal() - 1)


def current_financial_year(clock: Clock | None = None) -> int:
    now = clock() if clock is not None else datetime.now()
    return year_of(now)


__all__ = ["Clock", "current_financial_year", "nowruz", "year_bounds", "year_of"]
