# app/services/defaults.py
from __future__ import annotations
from typing import Any, List, Optional, Tuple
import copy

from app.services.changes import ChangeRecord, added, defaulted
from app.services.schema_nav import (
    SchemaNode,
    child_schema,
    join_pointer,
    matches_any_type,
)

# Marks a position that holds no value at all (missing key).
ABSENT = object()


def apply_defaults(
    value: Any, schema: Optional[SchemaNode], path: str = ""
) -> Tuple[Any, List[ChangeRecord]]:
    """
    Fill gaps from schema defaults.

    Missing properties take their declared `default`; missing *required*
    object/array properties get an empty `{}` / `[]`. Required scalars
    without a default are left missing, the validator reports them.
    A value of the wrong kind where an object or array is expected is
    replaced by the schema default when there is one.

    Passing ABSENT returns the default for that position (or ABSENT);
    the caller decides where to put it.
    """
    changes: List[ChangeRecord] = []
    if schema is None:
        return value, changes

    if value is ABSENT:
        if schema.has_default:
            changes.append(defaulted(path, schema.default, "Applied schema default value"))
            return _settle(schema, path, changes)
        return ABSENT, changes

    if isinstance(value, dict) and schema.is_object:
        return _fill_object(value, schema, path)
    if isinstance(value, list) and schema.is_array:
        return _fill_array(value, schema, path)

    if matches_any_type(value, schema):
        return value, changes

    if schema.is_object:
        if schema.has_default:
            changes.append(
                defaulted(path, schema.default, "Applied schema default for non-object value", before=value)
            )
            return _settle(schema, path, changes)
        if not schema.has_shape:
            return value, changes
        changes.append(added(path, {}, "Replaced non-object value with an empty object", before=value))
        filled, delta = _fill_object({}, schema, path)
        changes.extend(delta)
        return filled, changes

    if schema.is_array:
        if schema.has_default:
            changes.append(
                defaulted(path, schema.default, "Applied schema default for non-array value", before=value)
            )
            return _settle(schema, path, changes)
        return value, changes

    return value, changes


def _settle(schema: SchemaNode, path: str, changes: List[ChangeRecord]) -> Tuple[Any, List[ChangeRecord]]:
    """Place a copy of the schema default and fill any gaps inside it."""
    value = copy.deepcopy(schema.default)
    if isinstance(value, dict) and schema.is_object:
        value, delta = _fill_object(value, schema, path)
        changes.extend(delta)
    elif isinstance(value, list) and schema.is_array:
        value, delta = _fill_array(value, schema, path)
        changes.extend(delta)
    return value, changes


def _fill_object(obj: dict, schema: SchemaNode, path: str) -> Tuple[dict, List[ChangeRecord]]:
    changes: List[ChangeRecord] = []
    out = {}
    for key, item in obj.items():
        out[key], delta = apply_defaults(item, child_schema(schema, key), join_pointer(path, key))
        changes.extend(delta)

    for name, prop in schema.properties.items():
        if name in out:
            continue
        prop_path = join_pointer(path, name)
        if prop.has_default:
            filled, delta = apply_defaults(ABSENT, prop, prop_path)
            out[name] = filled
            changes.extend(delta)
        elif name in schema.required:
            if "object" in prop.types:
                changes.append(added(prop_path, {}, "Added required object property"))
                out[name], delta = _fill_object({}, prop, prop_path)
                changes.extend(delta)
            elif "array" in prop.types:
                out[name] = []
                changes.append(added(prop_path, [], "Added required array property"))
            # required scalars are never invented
    return out, changes


def _fill_array(arr: list, schema: SchemaNode, path: str) -> Tuple[list, List[ChangeRecord]]:
    changes: List[ChangeRecord] = []
    if schema.items is None:
        return arr, changes
    out = []
    for i, item in enumerate(arr):
        new_item, delta = apply_defaults(item, schema.items, join_pointer(path, i))
        out.append(new_item)
        changes.extend(delta)
    return out, changes
