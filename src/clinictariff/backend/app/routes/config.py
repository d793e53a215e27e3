"""Expose configuration metadata derived from the factor-table manifest."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from clinictariff.backend.app.http import current_engine
from clinictariff.backend.config.factor_tables import load_manifest, manifest_entries
from clinictariff.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


@blueprint.get("")
def get_configuration():
    """Return configured years together with the engine's runtime settings."""

    engine = current_engine()
    settings = engine.settings
    payload = {
        **get_configuration_metadata(),
        "current_financial_year": engine.current_financial_year(),
        "freeze_policy": settings.freeze_policy.value,
        "legacy_constants": settings.legacy_constants.model_dump(mode="json"),
    }
    return jsonify(payload), 200


@blueprint.get("/years")
def list_years():
    """Return the manifest entries describing each configured financial year."""

    engine = current_engine()
    years = [
        {
            "year": entry.year,
            "status": entry.status,
            "frozen": engine.is_frozen(entry.year),
        }
        for entry in manifest_entries()
    ]
    return jsonify({"years": years}), 200
