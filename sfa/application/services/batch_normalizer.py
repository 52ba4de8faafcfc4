"""Batch normalizer: resolves an incoming bulk payload into upsert items."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pydantic

from sfa.core.exceptions import AmbiguousBatchShapeError, ValidationError
from sfa.domain.schemas.visit_batch import BulkVisitItem

# Keys of a flattened visit that belong to child collections, not the visit row
CHILD_KEYS = ("orders", "payments", "cooler_inspections", "survey")

SHAPE_HINT = "Expected { visits: [...] }, { visit: [...] }, [{ visit: {...} }] or { visit: {...} }"


class BatchShape(str, Enum):
    VISITS = "visits"                      # {visits: [item, ...]} or a JSON string of it
    FLATTENED_VISITS = "flattened_visits"  # {visit: [visit fields + children, ...]}
    BARE_ARRAY = "bare_array"              # [item, ...]
    SINGLE = "single"                      # {visit: {...}, orders: [...], ...}


@dataclass
class NormalizedBatch:
    shape: BatchShape
    items: list[dict[str, Any]]


def _parse_json_field(value: Any, field: str) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Invalid {field} JSON string",
            details={"field": field, "error": str(e)},
        ) from e


def detect_shape(payload: Any) -> BatchShape:
    """Classify the payload once, in fixed priority order."""
    if isinstance(payload, list):
        return BatchShape.BARE_ARRAY
    if not isinstance(payload, dict):
        raise ValidationError(f"Invalid input format. {SHAPE_HINT}")

    has_visits = payload.get("visits") is not None
    has_visit = payload.get("visit") is not None
    if has_visits and has_visit:
        raise AmbiguousBatchShapeError(
            "Payload carries both 'visits' and 'visit'; send exactly one",
            details={"keys": ["visits", "visit"]},
        )
    if has_visits:
        return BatchShape.VISITS
    if has_visit:
        visit = _parse_json_field(payload["visit"], "visit")
        if isinstance(visit, list):
            return BatchShape.FLATTENED_VISITS
        if isinstance(visit, dict):
            return BatchShape.SINGLE
    raise ValidationError(f"Invalid input format. {SHAPE_HINT}")


def _unflatten(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return entry
    visit = {key: value for key, value in entry.items() if key not in CHILD_KEYS}
    item = {"visit": visit}
    for key in CHILD_KEYS:
        if key in entry:
            item[key] = entry[key]
    return item


def normalize_batch(payload: Any) -> NormalizedBatch:
    """Turn any accepted payload shape into an ordered list of raw items.

    Raises ValidationError when nothing usable can be extracted; this is the
    only failure that rejects the whole batch.
    """
    shape = detect_shape(payload)

    if shape is BatchShape.VISITS:
        items = _parse_json_field(payload["visits"], "visits")
    elif shape is BatchShape.FLATTENED_VISITS:
        items = [_unflatten(entry) for entry in _parse_json_field(payload["visit"], "visit")]
    elif shape is BatchShape.BARE_ARRAY:
        items = payload
    else:
        # Form submissions carry each child collection as its own JSON string
        item = {**payload, "visit": _parse_json_field(payload["visit"], "visit")}
        for key in CHILD_KEYS:
            if key in item:
                item[key] = _parse_json_field(item[key], key)
        items = [item]

    if not isinstance(items, list):
        raise ValidationError(f"Invalid input format. {SHAPE_HINT}", details={"shape": shape.value})
    if not items:
        raise ValidationError("No visit data provided", details={"shape": shape.value})

    return NormalizedBatch(shape=shape, items=items)


def parse_item(raw: Any) -> BulkVisitItem:
    """Validate one raw item; failures affect that item only."""
    if not isinstance(raw, dict) or not isinstance(raw.get("visit"), dict):
        raise ValidationError("Visit data is required")

    try:
        return BulkVisitItem.model_validate(raw)
    except pydantic.ValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        required = {("visit", "customer_id"), ("visit", "sales_person_id")}
        if any(tuple(error["loc"][:2]) in required for error in errors):
            message = "Customer ID and Sales Person ID are required"
        else:
            message = "Invalid visit data"
        raise ValidationError(message, details={"errors": errors}) from e
