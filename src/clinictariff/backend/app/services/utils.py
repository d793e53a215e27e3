"""Utility helpers shared by the tariff services."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter


@contextmanager
def profile_section(name: str, store: dict[str, float] | None) -> Iterator[None]:
    """Capture the duration of a named section when ``store`` is provided."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


__all__ = ["profile_section"]
