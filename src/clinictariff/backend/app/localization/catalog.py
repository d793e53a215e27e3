"""Locale catalogues for engine messages and calculation labels.

Each locale ships as ``clinictariff/translations/<locale>.json`` with a
``backend`` mapping of message keys to ``str.format`` templates. English is
the base catalogue and fills any key a locale leaves out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import cache
from importlib import resources
from typing import Any, Mapping

_BASE_LOCALE = "en"
_TRANSLATIONS_PACKAGE = "clinictariff.translations"


@dataclass(frozen=True)
class Translator:
    """Resolve message keys for one locale, falling back to English."""

    locale: str
    _messages: Mapping[str, str]
    _fallback: Mapping[str, str]

    def __call__(self, key: str) -> str:
        return self._messages.get(key) or self._fallback.get(key, key)

    def has(self, key: str) -> bool:
        return key in self._messages or key in self._fallback

    def format(self, key: str, default: str, **context: Any) -> str:
        """Fill the template for ``key`` with ``context``.

        ``default`` is returned when the key is unknown or the template names
        a placeholder that ``context`` does not provide.
        """

        if not self.has(key):
            return default
        try:
            return self(key).format(**context)
        except (KeyError, IndexError):
            return default


@cache
def _available_locales() -> tuple[str, ...]:
    root = resources.files(_TRANSLATIONS_PACKAGE)
    locales = sorted(
        entry.name[: -len(".json")] for entry in root.iterdir() if entry.name.endswith(".json")
    )
    return tuple(locales) or (_BASE_LOCALE,)


@cache
def _backend_messages(locale: str) -> Mapping[str, str]:
    """Return the cached ``backend`` section of a locale catalogue."""

    resource = resources.files(_TRANSLATIONS_PACKAGE).joinpath(f"{locale}.json")
    if not resource.is_file():
        return {}

    with resource.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    section = payload.get("backend") or {}
    if not isinstance(section, dict):
        raise ValueError(f"Translation catalogue '{locale}' has a malformed backend section")
    return {str(key): str(value) for key, value in section.items()}


def _supported(tag: str) -> str | None:
    language = tag.strip().lower().replace("_", "-").split("-")[0]
    return language if language in _available_locales() else None


def normalise_locale(locale: str | None) -> str:
    """Map a locale tag such as ``fa-IR`` or ``FA`` onto a published catalogue."""

    if not locale:
        return _BASE_LOCALE
    return _supported(locale) or _BASE_LOCALE


def negotiate_locale(accept_language: str | None) -> str | None:
    """Pick the best supported locale from an ``Accept-Language`` header.

    Ranges are ordered by their ``q`` weight, ties keeping header order.
    Returns ``None`` when no listed language has a catalogue.
    """

    if not accept_language:
        return None

    weighted: list[tuple[float, int, str]] = []
    for position, item in enumerate(accept_language.split(",")):
        tag, _, params = item.partition(";")
        if not tag.strip() or tag.strip() == "*":
            continue
        weight = 1.0
        for param in params.split(";"):
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    weight = float(value)
                except ValueError:
                    weight = 0.0
        if weight > 0:
            weighted.append((-weight, position, tag))

    for _, _, tag in sorted(weighted):
        supported = _supported(tag)
        if supported:
            return supported
    return None


def get_translator(locale: str | None = None) -> Translator:
    normalized = normalise_locale(locale)
    return Translator(
        locale=normalized,
        _messages=_backend_messages(normalized),
        _fallback=_backend_messages(_BASE_LOCALE),
    )


def load_translations(locale: str | None = None) -> dict[str, Any]:
    """Return a locale's messages with the English fallback for API consumers."""

    normalized = normalise_locale(locale)
    return {
        "locale": normalized,
        "available_locales": list(_available_locales()),
        "backend": dict(_backend_messages(normalized)),
        "fallback": {
            "locale": _BASE_LOCALE,
            "backend": dict(_backend_messages(_BASE_LOCALE)),
        },
    }


__all__ = [
    "Translator",
    "get_translator",
    "load_translations",
    "negotiate_locale",
    "normalise_locale",
]
