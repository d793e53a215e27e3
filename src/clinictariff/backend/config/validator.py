"""Utilities for validating factor tables and surfacing issues."""

from __future__ import annotations

import argparse
from collections import defaultdict
from typing import Sequence

from clinictariff.backend.app.services.financial_year import year_bounds

from .factor_tables import (
    ConfigurationError,
    FactorDefinition,
    FactorTable,
    available_years,
    load_factor_table,
)

_REQUIRED_COMBINATIONS = (
    ("professional", "standard"),
    ("technical", "standard"),
    ("technical", "hashtagged"),
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _ranges_overlap(first: FactorDefinition, second: FactorDefinition) -> bool:
    if first.effective_to is not None and first.effective_to < second.effective_from:
        return False
    if second.effective_to is not None and second.effective_to < first.effective_from:
        return False
    return True


def _validate_overlaps(groups: dict[tuple[str, str], list[FactorDefinition]]) -> list[str]:
    errors: list[str] = []
    for (kind, tier), factors in sorted(groups.items()):
        ordered = sorted(factors, key=lambda factor: factor.effective_from)
        for index, factor in enumerate(ordered):
            for other in ordered[index + 1:]:
                if _ranges_overlap(factor, other):
                    errors.append(
                        _format_scope(
                            f"factors.{kind}.{tier}",
                            (
                                "overlapping effective ranges starting "
                                f"{factor.effective_from.isoformat()} and "
                                f"{other.effective_from.isoformat()}"
                            ),
                        )
                    )
    return errors


def _validate_coverage(
    table: FactorTable, groups: dict[tuple[str, str], list[FactorDefinition]]
) -> list[str]:
    errors: list[str] = []
    for kind, tier in _REQUIRED_COMBINATIONS:
        if not groups.get((kind, tier)):
            errors.append(
                _format_scope(f"factors.{kind}.{tier}", "no active factor defined")
            )

    start, end = year_bounds(table.year)
    for factor in table.factors:
        if not start <= factor.effective_from <= end:
            errors.append(
                _format_scope(
                    f"factors.{factor.kind}.{factor.tier}",
                    (
                        f"effective_from {factor.effective_from.isoformat()} falls outside "
                        f"financial year {table.year} ({start.isoformat()} to {end.isoformat()})"
                    ),
                )
            )
    return errors


def validate_factor_table(table: FactorTable) -> list[str]:
    """Return human-readable issues detected in ``table``."""

    groups: dict[tuple[str, str], list[FactorDefinition]] = defaultdict(list)
    for factor in table.factors:
        if factor.active:
            groups[(factor.kind, factor.tier)].append(factor)

    errors: list[str] = []
    errors.extend(_validate_overlaps(groups))
    errors.extend(_validate_coverage(table, groups))
    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        table = load_factor_table(year)
        results[int(year)] = validate_factor_table(table)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured factor tables before publishing them."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific financial years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            table = load_factor_table(year)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{year}] failed to load factor table: {error}")
            exit_code = 1
            continue

        issues = validate_factor_table(table)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
