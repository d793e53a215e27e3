"""Helpers for normalising incoming API requests."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from clinictariff.backend.app.localization import negotiate_locale, normalise_locale
from clinictariff.backend.app.services.errors import InvalidInputError

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def _resolve_locale(req: Request, payload: dict[str, Any]) -> None:
    """Populate the locale field in ``payload`` based on hints in ``req``."""

    locale = payload.get("locale")
    if isinstance(locale, str) and locale.strip():
        payload["locale"] = normalise_locale(locale)
        return

    locale_param = req.args.get("locale")
    if locale_param:
        payload["locale"] = normalise_locale(locale_param)
        return

    negotiated = negotiate_locale(req.headers.get("Accept-Language"))
    if negotiated:
        payload["locale"] = negotiated


def parse_json_object(req: Request, *, allow_empty: bool = False) -> dict[str, Any]:
    """Return the JSON object body of ``req`` or raise :class:`BadRequest`."""

    data = req.get_json(silent=True)
    if data is None:
        if allow_empty and not req.get_data():
            return {}
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a calculation payload from ``req`` with its locale resolved."""

    payload = parse_json_object(req)
    _resolve_locale(req, payload)
    return payload


def parse_date_arg(req: Request, name: str) -> date | None:
    """Return the ISO date query parameter ``name`` if supplied."""

    raw = req.args.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InvalidInputError(
            f"Query parameter '{name}' must be an ISO date (YYYY-MM-DD)", **{name: raw}
        ) from exc


def parse_int_arg(req: Request, name: str) -> int | None:
    raw = req.args.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise InvalidInputError(
            f"Query parameter '{name}' must be an integer", **{name: raw}
        ) from exc


def parse_bool_arg(req: Request, name: str) -> bool | None:
    """Return the boolean query parameter ``name``; ``None`` when absent."""

    raw = req.args.get(name)
    if raw is None or not raw.strip():
        return None
    flag = raw.strip().lower()
    if flag in _TRUTHY:
        return True
    if flag in _FALSY:
        return False
    raise InvalidInputError(f"Query parameter '{name}' must be true or false", **{name: raw})
