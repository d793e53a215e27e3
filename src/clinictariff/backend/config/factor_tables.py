"""Configuration loader for the YAML factor tables and service catalogue."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    CatalogComponent,
    CatalogOverride,
    CatalogService,
    ConfigurationError,
    EngineSettings,
    FactorDefinition,
    FactorTable,
    FactorTableManifest,
    FactorTableManifestEntry,
    FreezePolicy,
    LegacyConstants,
    ServiceCatalog,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> FactorTableManifest:
    """Load and cache the factor table manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Factor table manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return FactorTableManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


def manifest_entries() -> Sequence[FactorTableManifestEntry]:
    return load_manifest().years


def engine_settings() -> EngineSettings:
    """Return the engine-wide settings declared in the manifest."""

    return load_manifest().settings


@lru_cache(maxsize=16)
def load_factor_table(year: int) -> FactorTable:
    """Load the factor table for the specified financial year from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Factor table for year {year} not declared in manifest") from exc

    table_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not table_file.exists():
        raise FileNotFoundError(f"Factor table file for year {year} missing: {table_file.name}")

    raw_table = _load_yaml(table_file)
    raw_table.setdefault("year", year)

    try:
        table = FactorTable.model_validate(raw_table)
    except ValidationError as error:
        raise ConfigurationError(f"Factor table validation failed for {year}: {error}") from error

    if table.year != year:
        raise ConfigurationError(
            f"Factor table year mismatch: expected {year}, found {table.year}"
        )

    return table


@lru_cache(maxsize=1)
def load_catalog() -> ServiceCatalog:
    """Load the seed service catalogue referenced by the manifest."""

    filename = load_manifest().catalog
    if not filename:
        return ServiceCatalog()

    catalog_file = CONFIG_DIRECTORY / filename
    if not catalog_file.exists():
        raise FileNotFoundError(f"Service catalogue missing: {catalog_file.name}")

    try:
        return ServiceCatalog.model_validate(_load_yaml(catalog_file))
    except ValidationError as error:
        raise ConfigurationError(f"Service catalogue validation failed: {error}") from error


def available_years() -> Sequence[int]:
    """Return the financial years declared in the manifest."""

    return load_manifest().supported_years


def clear_caches() -> None:
    load_manifest.cache_clear()
    load_factor_table.cache_clear()
    load_catalog.cache_clear()


__all__ = [
    "CONFIG_DIRECTORY",
    "CatalogComponent",
    "CatalogOverride",
    "CatalogService",
    "ConfigurationError",
    "EngineSettings",
    "FactorDefinition",
    "FactorTable",
    "FactorTableManifest",
    "FactorTableManifestEntry",
    "FreezePolicy",
    "LegacyConstants",
    "MANIFEST_FILE",
    "ServiceCatalog",
    "available_years",
    "clear_caches",
    "engine_settings",
    "load_catalog",
    "load_factor_table",
    "load_manifest",
    "manifest_entries",
]
