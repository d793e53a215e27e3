"""Unit coverage for factor table discovery and parsing utilities."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from shutil import copy2

import pytest
import yaml

from clinictariff.backend.config import factor_tables
from clinictariff.backend.config.schema import (
    ConfigurationError,
    FactorDefinition,
    FreezePolicy,
)


@pytest.fixture()
def isolated_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Return a temporary configuration directory patched into ``factor_tables``."""

    original_directory = factor_tables.CONFIG_DIRECTORY
    for filename in ("1403.yaml", "1404.yaml", "1405.yaml", "catalog.yaml", "manifest.yaml"):
        copy2(original_directory / filename, tmp_path / filename)

    monkeypatch.setattr(factor_tables, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(factor_tables, "MANIFEST_FILE", tmp_path / "manifest.yaml")
    factor_tables.clear_caches()

    yield tmp_path

    factor_tables.clear_caches()


def _update_manifest(directory: Path, **changes) -> None:
    manifest_path = directory / "manifest.yaml"
    manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    manifest.update(changes)
    manifest_path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
    factor_tables.clear_caches()


def test_packaged_tables_load() -> None:
    table = factor_tables.load_factor_table(1404)

    assert table.year == 1404
    assert {(factor.kind, factor.tier) for factor in table.factors} == {
        ("professional", "standard"),
        ("technical", "standard"),
        ("technical", "hashtagged"),
    }
    assert factor_tables.available_years() == (1403, 1404, 1405)


def test_packaged_settings_default_to_blocking_calculations() -> None:
    settings = factor_tables.engine_settings()

    assert settings.freeze_policy is FreezePolicy.BLOCK_CALCULATIONS
    assert not settings.legacy_constants.enabled
    assert settings.legacy_constants.technical_hashtagged == Decimal("65000")


def test_available_years_follow_the_manifest(isolated_config_directory: Path) -> None:
    new_year_path = isolated_config_directory / "1406.yaml"
    new_year_path.write_text(
        yaml.safe_dump(
            {
                "year": 1406,
                "factors": [
                    {"kind": "professional", "value": 52000, "effective_from": "2027-03-21"},
                ],
            }
        ),
        encoding="utf-8",
    )
    manifest = yaml.safe_load((isolated_config_directory / "manifest.yaml").read_text())
    _update_manifest(
        isolated_config_directory, years=[*manifest["years"], {"year": 1406}]
    )

    assert factor_tables.available_years() == (1403, 1404, 1405, 1406)
    assert factor_tables.load_factor_table(1406).factors[0].value == Decimal("52000")


def test_undeclared_year_is_not_loaded(isolated_config_directory: Path) -> None:
    with pytest.raises(FileNotFoundError):
        factor_tables.load_factor_table(1410)


def test_declared_year_without_file_is_reported(isolated_config_directory: Path) -> None:
    (isolated_config_directory / "1405.yaml").unlink()

    with pytest.raises(FileNotFoundError):
        factor_tables.load_factor_table(1405)


def test_duplicate_manifest_years_are_rejected(isolated_config_directory: Path) -> None:
    _update_manifest(isolated_config_directory, years=[{"year": 1404}, {"year": 1404}])

    with pytest.raises(ConfigurationError):
        factor_tables.load_manifest()


def test_mismatched_table_year_is_rejected(isolated_config_directory: Path) -> None:
    table_path = isolated_config_directory / "1405.yaml"
    table = yaml.safe_load(table_path.read_text(encoding="utf-8"))
    table["year"] = 1404
    table_path.write_text(yaml.safe_dump(table), encoding="utf-8")

    with pytest.raises(ConfigurationError):
        factor_tables.load_factor_table(1405)


def test_missing_catalogue_reference_yields_empty_catalogue(
    isolated_config_directory: Path,
) -> None:
    _update_manifest(isolated_config_directory, catalog=None)

    catalog = factor_tables.load_catalog()

    assert catalog.services == ()
    assert catalog.overrides == ()


def test_hashtag_flag_maps_to_tier() -> None:
    definition = FactorDefinition.model_validate(
        {"kind": "technical", "hashtagged": True, "value": 65000, "effective_from": "2025-03-21"}
    )

    assert definition.tier == "hashtagged"


@pytest.mark.parametrize(
    "payload",
    [
        {"kind": "technical", "value": 0, "effective_from": "2025-03-21"},
        {
            "kind": "technical",
            "value": 31000,
            "effective_from": "2025-03-21",
            "effective_to": "2025-03-20",
        },
        {"kind": "professional", "tier": "hashtagged", "value": 1, "effective_from": "2025-03-21"},
        {
            "kind": "technical",
            "tier": "standard",
            "hashtagged": False,
            "value": 1,
            "effective_from": "2025-03-21",
        },
    ],
)
def test_invalid_factor_definitions(payload) -> None:
    with pytest.raises(ValueError):
        FactorDefinition.model_validate(payload)
