# app/services/coercer.py
from __future__ import annotations
from typing import Any, List, Optional, Tuple
import json
import math
import re

from app.services.changes import ChangeRecord, coerced
from app.services.schema_nav import (
    SchemaNode,
    child_schema,
    join_pointer,
    json_type_name,
    matches_any_type,
)

NUMERIC = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
INTEGER_LITERAL = re.compile(r"^[+-]?\d+$")

_FAILED = object()


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _to_string(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return _FAILED


def _to_number(value: Any, integer: bool) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, str):
        text = value.strip()
        if not NUMERIC.match(text):
            return _FAILED
        if INTEGER_LITERAL.match(text):
            return int(text)
        number = float(text)
        if math.isinf(number):
            return _FAILED
        if integer:
            return _round_half_up(number)
        return number
    return _FAILED


def _to_boolean(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0", ""):
            return False
        return _FAILED
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    return _FAILED


def _to_array(value: Any) -> Any:
    return [value]


def _to_null(value: Any) -> Any:
    if value in ("", "null"):
        return None
    return _FAILED


def try_coerce(value: Any, target: str) -> Any:
    """
    Convert a scalar to `target`, or return the _FAILED sentinel.
    Nulls and containers are never converted.
    """
    if value is None or isinstance(value, (dict, list)):
        return _FAILED
    if target == "string":
        return _to_string(value)
    if target in ("number", "integer"):
        return _to_number(value, target == "integer")
    if target == "boolean":
        return _to_boolean(value)
    if target == "array":
        return _to_array(value)
    if target == "null":
        return _to_null(value)
    return _FAILED


def coerce(value: Any, schema: Optional[SchemaNode], path: str = "") -> Tuple[Any, List[ChangeRecord]]:
    changes: List[ChangeRecord] = []
    if schema is None:
        return value, changes

    if matches_any_type(value, schema):
        return _coerce_children(value, schema, path)

    for target in schema.types:
        result = try_coerce(value, target)
        if result is _FAILED:
            continue
        changes.append(
            coerced(path, value, result, f"Coerced {json_type_name(value)} to {target}")
        )
        if isinstance(result, list):
            result, delta = _coerce_children(result, schema, path)
            changes.extend(delta)
        return result, changes

    return value, changes


def _coerce_children(value: Any, schema: SchemaNode, path: str) -> Tuple[Any, List[ChangeRecord]]:
    changes: List[ChangeRecord] = []
    if isinstance(value, dict) and schema.is_object:
        out = {}
        for key, item in value.items():
            out[key], delta = coerce(item, child_schema(schema, key), join_pointer(path, key))
            changes.extend(delta)
        return out, changes
    if isinstance(value, list) and schema.items is not None:
        out_list = []
        for i, item in enumerate(value):
            new_item, delta = coerce(item, schema.items, join_pointer(path, i))
            out_list.append(new_item)
            changes.extend(delta)
        return out_list, changes
    return value, changes
