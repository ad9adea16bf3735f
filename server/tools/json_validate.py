# server/tools/json_validate.py
from __future__ import annotations
from typing import Any, Dict, List
from pydantic import BaseModel, Field


class JsonValidateIn(BaseModel):
    schema: Dict[str, Any] = Field( # type: ignore
        ..., description="The JSON Schema to validate against (draft-07 supported)"
    )
    instance: Any = Field(
        ..., description="The JSON value to validate (can be any JSON type)"
    )


class ExplainValidationIn(BaseModel):
    errors: List[Dict[str, Any]] = Field(
        ..., description="Array of validation error objects from validate_json"
    )


class RepairJsonIn(BaseModel):
    schema: Dict[str, Any] = Field( # type: ignore
        ..., description="The JSON Schema the repaired JSON should conform to"
    )
    instance_or_text: Any = Field(
        ..., description="The JSON value or malformed JSON string to repair"
    )
