"""
Schema contract enforced at the boundary with the inference service.

The Pydantic models in :mod:`tradelogic.data.models` are the declarative
shape.  This module turns them into the ``response_format`` sent with
each request and validates the text that comes back.  A response that
is not JSON, is not an object, misses a required key, or uses a value
outside an enumerated set raises :class:`~tradelogic.errors.SchemaError`;
nothing is coerced to a default.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from tradelogic.data.models import AnalysisPayload, ConsistencyResult
from tradelogic.errors import SchemaError

T = TypeVar("T", bound=BaseModel)

ANALYSIS_REQUIRED_KEYS: tuple[str, ...] = (
    "ticker",
    "priceInfo",
    "marketCapAnalysis",
    "supplyDemand",
    "prediction",
    "stressTest",
    "brokerAnalysis",
    "summary",
    "bearCase",
    "strategy",
    "fullAnalysis",
)

CONSISTENCY_REQUIRED_KEYS: tuple[str, ...] = (
    "ticker",
    "dataPoints",
    "trendVerdict",
    "consistencyScore",
    "analysis",
    "actionItem",
)


def _response_format(name: str, model: type[BaseModel]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "schema": model.model_json_schema(by_alias=True),
            "strict": False,
        },
    }


def analysis_response_format() -> dict[str, Any]:
    """``response_format`` describing an :class:`AnalysisPayload`."""
    return _response_format("AnalysisResult", AnalysisPayload)


def consistency_response_format() -> dict[str, Any]:
    """``response_format`` describing a :class:`ConsistencyResult`."""
    return _response_format("ConsistencyResult", ConsistencyResult)


def _parse(text: str, model: type[T], required: tuple[str, ...]) -> T:
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        raise SchemaError(f"Response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SchemaError(
            f"Response must be a JSON object, got {type(data).__name__}"
        )

    missing = [key for key in required if key not in data]
    if missing:
        raise SchemaError(f"Response is missing required keys: {', '.join(missing)}")

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SchemaError(f"Response failed schema validation: {exc}") from exc


def parse_analysis_payload(text: str) -> AnalysisPayload:
    return _parse(text, AnalysisPayload, ANALYSIS_REQUIRED_KEYS)


def parse_consistency_payload(text: str) -> ConsistencyResult:
    return _parse(text, ConsistencyResult, CONSISTENCY_REQUIRED_KEYS)
