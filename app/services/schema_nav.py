# app/services/schema_nav.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import re


_NO_DEFAULT = object()


def escape_segment(segment: Any) -> str:
    return str(segment).replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def join_pointer(parent: str, segment: Any) -> str:
    """Append one segment to a JSON pointer; '' is the root."""
    base = "" if parent in ("", "/") else parent
    return f"{base}/{escape_segment(segment)}"


def split_pointer(path: str) -> List[str]:
    if path in ("", "/"):
        return []
    return [unescape_segment(p) for p in path.lstrip("/").split("/")]


def display_pointer(path: str) -> str:
    return path or "/"


@dataclass(frozen=True)
class SchemaNode:
    """
    Read-only view over the draft-07 subset the repair passes understand:
    type, properties, items, required, additionalProperties, default and
    patternProperties. Everything else in the raw schema is ignored here
    and left to the validator.
    """

    types: Tuple[str, ...] = ()
    properties: Dict[str, "SchemaNode"] = field(default_factory=dict)
    items: Optional["SchemaNode"] = None
    required: Tuple[str, ...] = ()
    additional_properties: bool = True
    pattern_properties: Tuple[Tuple[str, "SchemaNode"], ...] = ()
    default: Any = _NO_DEFAULT

    @classmethod
    def parse(cls, raw: Any) -> "SchemaNode":
        # boolean schemas and anything non-dict are unconstrained
        if not isinstance(raw, dict):
            return cls()

        t = raw.get("type")
        if isinstance(t, str):
            types: Tuple[str, ...] = (t,)
        elif isinstance(t, list):
            types = tuple(x for x in t if isinstance(x, str))
        else:
            types = ()

        props = raw.get("properties")
        properties = (
            {k: cls.parse(v) for k, v in props.items()} if isinstance(props, dict) else {}
        )

        # tuple-form items is out of scope
        items_raw = raw.get("items")
        items = cls.parse(items_raw) if isinstance(items_raw, dict) else None

        req = raw.get("required")
        required = tuple(r for r in req if isinstance(r, str)) if isinstance(req, list) else ()

        pats = raw.get("patternProperties")
        pattern_properties = (
            tuple((p, cls.parse(s)) for p, s in pats.items()) if isinstance(pats, dict) else ()
        )

        return cls(
            types=types,
            properties=properties,
            items=items,
            required=required,
            additional_properties=raw.get("additionalProperties") is not False,
            pattern_properties=pattern_properties,
            default=raw.get("default", _NO_DEFAULT),
        )

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT

    @property
    def is_object(self) -> bool:
        return "object" in self.types or bool(self.properties) or bool(self.pattern_properties)

    @property
    def is_array(self) -> bool:
        return "array" in self.types or self.items is not None

    @property
    def has_shape(self) -> bool:
        """True when the object schema names any keys at all."""
        return bool(self.properties) or bool(self.pattern_properties)

    def declares(self, key: str) -> bool:
        return key in self.properties or self.match_pattern(key) is not None

    def match_pattern(self, key: str) -> Optional["SchemaNode"]:
        for pattern, sub in self.pattern_properties:
            if re.search(pattern, key):
                return sub
        return None


def child_schema(node: Optional[SchemaNode], segment: Any) -> Optional[SchemaNode]:
    """
    Sub-schema governing one step below `node`, or None when unconstrained.
    Arrays ignore the index and always descend into `items`.
    """
    if node is None:
        return None
    if node.is_object and isinstance(segment, str):
        if segment in node.properties:
            return node.properties[segment]
        matched = node.match_pattern(segment)
        if matched is not None:
            return matched
    if node.is_array:
        return node.items
    return None


def schema_at(node: Optional[SchemaNode], path: str) -> Optional[SchemaNode]:
    """Resolve a whole pointer; the passes walk one `child_schema` step at a time instead."""
    current = node
    for segment in split_pointer(path):
        current = child_schema(current, segment)
        if current is None:
            return None
    return current


_TYPE_CHECKS = {
    "null": lambda v: v is None,
    "boolean": lambda v: isinstance(v, bool),
    "string": lambda v: isinstance(v, str),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "integer": lambda v: (isinstance(v, int) and not isinstance(v, bool))
    or (isinstance(v, float) and v.is_integer()),
}


def matches_type(value: Any, type_name: str) -> bool:
    check = _TYPE_CHECKS.get(type_name)
    return bool(check and check(value))


def matches_any_type(value: Any, node: SchemaNode) -> bool:
    if not node.types:
        return True
    return any(matches_type(value, t) for t in node.types)


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
