"""Packaged translation catalogues (one JSON document per locale)."""
