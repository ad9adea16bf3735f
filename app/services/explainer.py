# app/services/explainer.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping
import json

from app.errors import InvalidInputError, guarded


@dataclass(frozen=True)
class Explanation:
    explanation: str
    suggestion: str


def location(path: str) -> str:
    return "root" if path in ("", "/") else f'"{path}"'


def _js(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _fmt(value: Any) -> str:
    # numbers and plain strings read better unquoted in prose
    if isinstance(value, bool) or value is None:
        return _js(value)
    return str(value)


Template = Callable[[Mapping[str, Any], str], Explanation]


def _type(p, loc):
    t = _fmt(p.get("type"))
    return Explanation(
        f'The value at {loc} has the wrong type. Expected "{t}" but got a different type.',
        f'Change the value at {loc} to be of type "{t}".',
    )


def _required(p, loc):
    name = _fmt(p.get("missingProperty"))
    return Explanation(
        f'The required property "{name}" is missing at {loc}.',
        f'Add the missing property "{name}" with an appropriate value.',
    )


def _additional(p, loc):
    name = _fmt(p.get("additionalProperty"))
    return Explanation(
        f'The property "{name}" at {loc} is not allowed by the schema.',
        f'Remove the unexpected property "{name}" or update the schema to allow it.',
    )


def _enum(p, loc):
    allowed = p.get("allowedValues")
    values = ", ".join(_js(v) for v in allowed) if isinstance(allowed, list) and allowed else "specified values"
    return Explanation(
        f"The value at {loc} must be one of the allowed enum values: {values}.",
        f"Change the value at {loc} to one of: {values}.",
    )


def _const(p, loc):
    v = _js(p.get("allowedValue"))
    return Explanation(
        f"The value at {loc} must be exactly {v}.",
        f"Set the value at {loc} to {v}.",
    )


def _minimum(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The value at {loc} is less than the minimum allowed value of {lim}.",
        f"Increase the value at {loc} to be at least {lim}.",
    )


def _maximum(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The value at {loc} exceeds the maximum allowed value of {lim}.",
        f"Decrease the value at {loc} to be at most {lim}.",
    )


def _exclusive_minimum(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The value at {loc} must be greater than {lim} (exclusive).",
        f"Increase the value at {loc} to be strictly greater than {lim}.",
    )


def _exclusive_maximum(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The value at {loc} must be less than {lim} (exclusive).",
        f"Decrease the value at {loc} to be strictly less than {lim}.",
    )


def _min_length(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The string at {loc} is too short. Minimum length is {lim} characters.",
        f"Add more characters to the string at {loc} to reach at least {lim} characters.",
    )


def _max_length(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The string at {loc} is too long. Maximum length is {lim} characters.",
        f"Shorten the string at {loc} to at most {lim} characters.",
    )


def _pattern(p, loc):
    pat = _fmt(p.get("pattern"))
    return Explanation(
        f"The string at {loc} does not match the required pattern: {pat}.",
        f'Modify the string at {loc} to match the pattern "{pat}".',
    )


def _format(p, loc):
    fmt = _fmt(p.get("format"))
    return Explanation(
        f'The string at {loc} does not match the required format "{fmt}".',
        f'Correct the string at {loc} to be a valid "{fmt}" format.',
    )


def _min_items(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The array at {loc} has too few items. Minimum is {lim} items.",
        f"Add more items to the array at {loc} to have at least {lim} items.",
    )


def _max_items(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The array at {loc} has too many items. Maximum is {lim} items.",
        f"Remove items from the array at {loc} to have at most {lim} items.",
    )


def _unique_items(p, loc):
    return Explanation(
        f"The array at {loc} contains duplicate items at positions {_fmt(p.get('i'))} and {_fmt(p.get('j'))}.",
        f"Remove duplicate items from the array at {loc}.",
    )


def _min_properties(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The object at {loc} has too few properties. Minimum is {lim} properties.",
        f"Add more properties to the object at {loc} to have at least {lim} properties.",
    )


def _max_properties(p, loc):
    lim = _fmt(p.get("limit"))
    return Explanation(
        f"The object at {loc} has too many properties. Maximum is {lim} properties.",
        f"Remove properties from the object at {loc} to have at most {lim} properties.",
    )


def _property_names(p, loc):
    return Explanation(
        f"A property name at {loc} does not match the required pattern.",
        "Rename the invalid property to match the schema's property name requirements.",
    )


def _dependencies(p, loc):
    deps = p.get("deps")
    if isinstance(deps, list):
        deps = ", ".join(str(d) for d in deps)
    return Explanation(
        f"The property at {loc} requires additional properties: {deps or _fmt(p.get('missingProperty'))}.",
        "Add the required dependent properties when using this field.",
    )


def _conditional(keyword):
    def build(p, loc):
        return Explanation(
            f"The value at {loc} does not satisfy the conditional schema ({keyword} clause).",
            f"Modify the value at {loc} to satisfy the conditional requirements.",
        )
    return build


def _one_of(p, loc):
    how = "matches multiple" if p.get("passingSchemas") else "matches none"
    return Explanation(
        f"The value at {loc} must match exactly one of the allowed schemas, but it {how}.",
        f"Modify the value at {loc} to match exactly one of the allowed alternatives.",
    )


def _any_of(p, loc):
    return Explanation(
        f"The value at {loc} must match at least one of the allowed schemas, but it matches none.",
        f"Modify the value at {loc} to match at least one of the allowed alternatives.",
    )


def _all_of(p, loc):
    return Explanation(
        f"The value at {loc} must match all of the required schemas, but it fails to match some.",
        f"Modify the value at {loc} to satisfy all the required conditions.",
    )


def _not(p, loc):
    return Explanation(
        f"The value at {loc} matches a schema that it should NOT match.",
        f"Modify the value at {loc} so it does not match the forbidden schema.",
    )


def _multiple_of(p, loc):
    m = _fmt(p.get("multipleOf"))
    return Explanation(
        f"The number at {loc} must be a multiple of {m}.",
        f"Change the value at {loc} to be a multiple of {m}.",
    )


TEMPLATES: Dict[str, Template] = {
    "type": _type,
    "required": _required,
    "additionalProperties": _additional,
    "enum": _enum,
    "const": _const,
    "minimum": _minimum,
    "maximum": _maximum,
    "exclusiveMinimum": _exclusive_minimum,
    "exclusiveMaximum": _exclusive_maximum,
    "minLength": _min_length,
    "maxLength": _max_length,
    "pattern": _pattern,
    "format": _format,
    "minItems": _min_items,
    "maxItems": _max_items,
    "uniqueItems": _unique_items,
    "minProperties": _min_properties,
    "maxProperties": _max_properties,
    "propertyNames": _property_names,
    "dependencies": _dependencies,
    "dependentRequired": _dependencies,
    "if": _conditional("if"),
    "then": _conditional("then"),
    "else": _conditional("else"),
    "oneOf": _one_of,
    "anyOf": _any_of,
    "allOf": _all_of,
    "not": _not,
    "multipleOf": _multiple_of,
}


def explain_error(keyword: str, params: Mapping[str, Any], path: str) -> Explanation:
    loc = location(path)
    template = TEMPLATES.get(keyword)
    if template is None:
        return Explanation(
            f'Validation failed at {loc} due to "{keyword}" constraint.',
            f'Review and fix the value at {loc} to satisfy the "{keyword}" constraint.',
        )
    return template(params or {}, loc)


def _normalize(error: Any) -> Dict[str, Any]:
    """Accept our ValidationError (object or dict) or an Ajv-style error dict."""
    if hasattr(error, "to_dict"):
        error = error.to_dict()
    if not isinstance(error, dict):
        raise InvalidInputError(
            "Each error must be a validation error object",
            {"received": type(error).__name__},
        )
    if "instancePath" in error:
        path = error.get("instancePath") or "/"
    else:
        path = error.get("path") or "/"
    params = error.get("params")
    return {
        "path": path,
        "keyword": str(error.get("keyword") or ""),
        "message": error.get("message") or "Validation failed",
        "params": params if isinstance(params, dict) else {},
    }


class ExplainService:
    @guarded("Explain")
    def explain(self, errors: Any) -> Dict[str, Any]:
        if not isinstance(errors, list):
            raise InvalidInputError(
                "Errors must be an array of validation error objects",
                {"received": type(errors).__name__},
            )
        explanations: List[Dict[str, Any]] = []
        for raw in errors:
            e = _normalize(raw)
            text = explain_error(e["keyword"], e["params"], e["path"])
            explanations.append({
                "path": e["path"],
                "error": e["message"],
                "explanation": text.explanation,
                "suggestion": text.suggestion,
            })
        return {"explanations": explanations}
