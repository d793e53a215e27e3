"""Application factory for the clinic tariff backend."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from datetime import datetime
from warnings import warn

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from clinictariff.backend.config.factor_tables import engine_settings
from clinictariff.backend.config.schema import EngineSettings

from .http import ENGINE_EXTENSION, problem_response, request_translator, tariff_problem
from .routes import register_routes
from .routes.config import get_configuration_metadata
from .services.engine import build_engine
from .services.errors import TariffError
from .storage import InMemoryTariffStore, SQLiteTariffStore, TariffStore, seed_store

_LOGGER = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def _seed_enabled(raw: str | None) -> bool:
    if raw is None or not raw.strip():
        return True
    flag = raw.strip().lower()
    if flag in _FALSY:
        return False
    if flag not in _TRUTHY:
        _LOGGER.warning("Ignoring unrecognised CLINICTARIFF_SEED value %r", raw)
    return True


def _default_store() -> TariffStore:
    """Build the store selected by the environment and seed it when enabled."""

    database = (os.getenv("CLINICTARIFF_DB") or "").strip()
    store: TariffStore
    if database:
        store = SQLiteTariffStore(database)
    else:
        store = InMemoryTariffStore()

    if _seed_enabled(os.getenv("CLINICTARIFF_SEED")):
        seed_store(store)
    return store


def create_app(
    store: TariffStore | None = None,
    clock: Callable[[], datetime] | None = None,
    settings: EngineSettings | None = None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``store`` defaults to a YAML-seeded store chosen by ``CLINICTARIFF_DB``;
    ``settings`` default to the manifest's engine settings.
    """

    app = Flask(__name__)

    allowed_origins = _parse_allowed_origins(
        os.getenv("CLINICTARIFF_ALLOWED_ORIGINS")
    )

    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-Actor-Id"],
    )

    engine = build_engine(
        store if store is not None else _default_store(),
        clock=clock,
        settings=settings if settings is not None else engine_settings(),
    )
    app.extensions[ENGINE_EXTENSION] = engine

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(TariffError)
    def handle_tariff_error(error: TariffError):
        """Render engine failures with their stable code and localised message."""

        return tariff_problem(error, request_translator()).to_response()

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app


__all__ = ["create_app"]
