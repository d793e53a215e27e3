"""Shared translation helpers for engine messages and API labels."""

from .catalog import (
    Translator,
    get_translator,
    load_translations,
    negotiate_locale,
    normalise_locale,
)

__all__ = [
    "Translator",
    "get_translator",
    "load_translations",
    "negotiate_locale",
    "normalise_locale",
]
