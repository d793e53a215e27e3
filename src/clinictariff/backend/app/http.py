"""HTTP helper utilities shared across Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import current_app, jsonify, request

from clinictariff.backend.app.localization import Translator, get_translator, negotiate_locale
from clinictariff.backend.app.services.engine import TariffEngine
from clinictariff.backend.app.services.errors import InvalidInputError, TariffError

ENGINE_EXTENSION = "clinictariff.engine"
ACTOR_HEADER = "X-Actor-Id"


@dataclass(frozen=True)
class ProblemResponse:
    """Lightweight representation of an RFC 7807-style error payload."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return the serialisable payload for this problem response."""

        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        """Convert the problem payload into a Flask response tuple."""

        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Convenience factory mirroring Flask's ``jsonify`` interface."""

    additional: Mapping[str, Any] | None = extra or None
    return ProblemResponse(error=error, status=status, message=message, extra=additional)


def tariff_problem(error: TariffError, translator: Translator | None = None) -> ProblemResponse:
    """Render an engine error, localising its message when ``translator`` is given."""

    return problem_response(
        error.code,
        status=error.status,
        message=error.render(translator),
        **dict(error.context),
    )


def request_locale() -> str | None:
    """Best-effort locale hint for the active request."""

    data = request.get_json(silent=True) if request.is_json else None
    if isinstance(data, Mapping) and isinstance(data.get("locale"), str) and data["locale"].strip():
        return data["locale"]

    locale = request.args.get("locale")
    if locale:
        return locale

    return negotiate_locale(request.headers.get("Accept-Language"))


def request_translator() -> Translator:
    return get_translator(request_locale())


def current_engine() -> TariffEngine:
    """Return the engine attached to the running application."""

    return current_app.extensions[ENGINE_EXTENSION]


def require_actor() -> str:
    """Return the acting user's identity from the request headers."""

    actor = (request.headers.get(ACTOR_HEADER) or "").strip()
    if not actor:
        raise InvalidInputError(f"The {ACTOR_HEADER} header is required for this operation")
    return actor


__all__ = [
    "ACTOR_HEADER",
    "ENGINE_EXTENSION",
    "ProblemResponse",
    "current_engine",
    "problem_response",
    "request_locale",
    "request_translator",
    "require_actor",
    "tariff_problem",
]
