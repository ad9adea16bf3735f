# app/services/validator.py
from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol
import json
import logging
import re
import threading

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as RawError
from jsonschema.protocols import Validator

from app.errors import InvalidInputError, guarded
from app.services.schema_nav import escape_segment

logger = logging.getLogger(__name__)


class CompileError(Exception):
    """The schema cannot be compiled into a validator."""


class SchemaCompiler(Protocol):
    def compile(self, schema: Dict[str, Any]) -> Validator: ...


class JsonschemaCompiler:
    """
    Draft-07 compiler backed by `jsonschema`. Compiled validators are
    cached by the canonical JSON text of the schema.
    """

    def __init__(self, validate_formats: bool = True, cache_size: int = 128):
        self.validate_formats = validate_formats
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, Draft7Validator]" = OrderedDict()
        self._lock = threading.Lock()

    def _key(self, schema: Dict[str, Any]) -> str:
        return json.dumps(schema, sort_keys=True, default=str)

    def validator_for(self, schema: Dict[str, Any]) -> Draft7Validator:
        key = self._key(schema)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            raise CompileError(e.message) from e

        checker = Draft7Validator.FORMAT_CHECKER if self.validate_formats else None
        validator = Draft7Validator(schema, format_checker=checker)

        with self._lock:
            self._cache[key] = validator
            if len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return validator

    def compile(self, schema: Dict[str, Any]) -> Validator:
        return self.validator_for(schema)


@dataclass(frozen=True)
class ValidationError:
    path: str
    keyword: str
    message: str
    params: Dict[str, Any] = field(default_factory=dict)
    schemaPath: str = "#"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "keyword": self.keyword,
            "message": self.message,
            "params": self.params,
            "schemaPath": self.schemaPath,
        }


def to_pointer(segments: Iterable[Any]) -> str:
    parts = [escape_segment(p) for p in segments]
    return "/" + "/".join(parts) if parts else "/"


def _schema_pointer(err: RawError) -> str:
    parts = [escape_segment(p) for p in err.schema_path]
    return "#/" + "/".join(parts) if parts else "#"


_COMPARISONS = {
    "minimum": ">=",
    "maximum": "<=",
    "exclusiveMinimum": ">",
    "exclusiveMaximum": "<",
}

_LIMIT_KEYWORDS = {
    "minLength", "maxLength", "minItems", "maxItems", "minProperties", "maxProperties",
}


def _duplicate_pair(items: List[Any]) -> Dict[str, Any]:
    for j in range(len(items)):
        for i in range(j):
            # 1 == True in Python, not in JSON
            if isinstance(items[i], bool) != isinstance(items[j], bool):
                continue
            if items[i] == items[j]:
                return {"i": j, "j": i}
    return {}


def _params_for(err: RawError, validator: Validator) -> Dict[str, Any]:
    """
    Derive the params mapping for one raw error (required/deps handled by the caller).
    `validator` is the root validator, so oneOf branches keep their `$ref` targets.
    """
    kw = err.validator
    value = err.validator_value
    if kw in _COMPARISONS:
        return {"comparison": _COMPARISONS[kw], "limit": value}
    if kw in _LIMIT_KEYWORDS:
        return {"limit": value}
    if kw == "type":
        return {"type": ",".join(value) if isinstance(value, list) else value}
    if kw == "enum":
        return {"allowedValues": value}
    if kw == "const":
        return {"allowedValue": value}
    if kw == "pattern":
        return {"pattern": value}
    if kw == "format":
        return {"format": value}
    if kw == "multipleOf":
        return {"multipleOf": value}
    if kw == "uniqueItems" and isinstance(err.instance, list):
        return _duplicate_pair(err.instance)
    if kw == "oneOf":
        if err.context:
            return {"passingSchemas": None}
        passing = [
            i for i, sub in enumerate(value)
            if validator.evolve(schema=sub).is_valid(err.instance)
        ]
        return {"passingSchemas": passing}
    if kw == "contains":
        return {"minContains": 1}
    return {}


class JsonValidatorService:
    """
    Validate JSON instances against a draft-07 JSON Schema.
    Returns a structured result with validity and error details; schema
    violations are data, only a bad schema raises.
    """

    def __init__(self, compiler: Optional[SchemaCompiler] = None):
        self.compiler = compiler or JsonschemaCompiler()

    def ensure_schema(self, schema: Any) -> Validator:
        if not isinstance(schema, dict):
            raise InvalidInputError(
                "Schema must be a valid JSON Schema object",
                {"received": type(schema).__name__},
            )
        try:
            return self.compiler.compile(schema)
        except CompileError as e:
            raise InvalidInputError(f"Invalid JSON Schema: {e}", {"schemaError": True}) from e

    @guarded("Validation")
    def validate(self, schema: Any, instance: Any) -> Dict[str, Any]:
        validator = self.ensure_schema(schema)
        errors = self.collect(validator, instance)
        logger.debug("validated instance: %d error(s)", len(errors))
        if not errors:
            return {"valid": True, "errors": []}
        return {"valid": False, "errors": [e.to_dict() for e in errors]}

    def collect(self, validator: Validator, instance: Any) -> List[ValidationError]:
        results: List[ValidationError] = []
        # jsonschema reports one error per missing name, in schema order
        pending: Dict[tuple, List[Any]] = {}

        for e in validator.iter_errors(instance):
            path = to_pointer(e.absolute_path)
            schema_path = _schema_pointer(e)
            keyword = e.validator if e.validator is not None else "false schema"

            if keyword == "additionalProperties" and isinstance(e.instance, dict):
                for extra in _additional_keys(e):
                    results.append(ValidationError(
                        path=path,
                        keyword=keyword,
                        message=f"Additional property {extra!r} is not allowed",
                        params={"additionalProperty": extra},
                        schemaPath=schema_path,
                    ))
                continue

            if keyword in ("required", "dependencies"):
                key = (path, schema_path)
                if key not in pending:
                    pending[key] = _missing_names(keyword, e)
                queue = pending[key]
                params = queue.pop(0) if queue else {}
            else:
                params = _params_for(e, validator)

            results.append(ValidationError(
                path=path,
                keyword=keyword,
                message=e.message,
                params=params,
                schemaPath=schema_path,
            ))
        return results


def _additional_keys(err: RawError) -> List[str]:
    parent = err.schema if isinstance(err.schema, dict) else {}
    props = parent.get("properties", {}) or {}
    patterns = parent.get("patternProperties", {}) or {}
    return [
        k for k in err.instance
        if k not in props and not any(re.search(p, k) for p in patterns)
    ]


def _missing_names(keyword: str, err: RawError) -> List[Dict[str, Any]]:
    instance = err.instance if isinstance(err.instance, dict) else {}
    if keyword == "required":
        return [{"missingProperty": name} for name in err.validator_value if name not in instance]

    out: List[Dict[str, Any]] = []
    for prop, deps in err.validator_value.items():
        if prop not in instance or not isinstance(deps, list):
            continue
        missing = [d for d in deps if d not in instance]
        for name in missing:
            out.append({
                "property": prop,
                "missingProperty": name,
                "depsCount": len(deps),
                "deps": ", ".join(deps),
            })
    return out
