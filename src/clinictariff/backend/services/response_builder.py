"""Utilities for serialising API responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from flask import jsonify
from pydantic import BaseModel

ResponseTuple = Tuple[Any, int]


def build_calculation_response(payload: Mapping[str, Any]) -> ResponseTuple:
    """Return a Flask JSON response for the calculation ``payload``."""

    return jsonify(payload), 200


def build_json_response(model: BaseModel | list[BaseModel], status: int = 200) -> ResponseTuple:
    """Serialise one or many Pydantic models in JSON mode."""

    if isinstance(model, list):
        return jsonify([item.model_dump(mode="json") for item in model]), status
    return jsonify(model.model_dump(mode="json")), status
