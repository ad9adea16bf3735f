# app/services/pruner.py
from __future__ import annotations
from typing import Any, List, Optional, Tuple

from app.services.changes import ChangeRecord, removed
from app.services.schema_nav import SchemaNode, child_schema, join_pointer

REASON = "Property not allowed by schema (additionalProperties: false)"


def prune(value: Any, schema: Optional[SchemaNode], path: str = "") -> Tuple[Any, List[ChangeRecord]]:
    """
    Drop object keys that an `additionalProperties: false` schema does not
    declare (by name or patternProperties). Returns a new value and the
    removals, in key order.
    """
    changes: List[ChangeRecord] = []
    if schema is None:
        return value, changes

    if isinstance(value, list):
        if schema.items is None:
            return value, changes
        out_list = []
        for i, item in enumerate(value):
            new_item, delta = prune(item, child_schema(schema, i), join_pointer(path, i))
            out_list.append(new_item)
            changes.extend(delta)
        return out_list, changes

    if not isinstance(value, dict) or not schema.is_object:
        return value, changes

    # no declared shape means nothing to prune against
    strict = not schema.additional_properties and schema.has_shape

    out = {}
    for key, item in value.items():
        key_path = join_pointer(path, key)
        if strict and not schema.declares(key):
            changes.append(removed(key_path, item, REASON))
            continue
        new_item, delta = prune(item, child_schema(schema, key), key_path)
        out[key] = new_item
        changes.extend(delta)
    return out, changes
