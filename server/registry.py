# server/registry.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type
import logging

from pydantic import BaseModel, ValidationError as ArgsError

from app.di import Container, build_container
from app.errors import EngineError, InvalidInputError
from app.logging import log_tool_call

from server.tools.json_validate import ExplainValidationIn, JsonValidateIn, RepairJsonIn

logger = logging.getLogger(__name__)

SOURCE = "json-validate"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[BaseModel], Any]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def success_envelope(data: Any, warnings: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "ok": True,
        "data": data,
        "meta": {"source": SOURCE, "retrieved_at": _now(), "warnings": warnings or []},
    }


def error_envelope(err: EngineError) -> Dict[str, Any]:
    return {"ok": False, "error": err.to_dict(), "meta": {"retrieved_at": _now()}}


class ToolHandlers:
    """
    Named handlers for each tool (no lambdas).
    Keeps all cross-cutting logic and observability in one place.
    """
    def __init__(self, container: Optional[Container] = None):
        self.container = container or build_container()

    def _run(self, name: str, args: BaseModel, fn: Callable[..., Dict[str, Any]], *call_args: Any) -> Dict[str, Any]:
        log_tool_call(logger, name, args.model_dump(), self.container.settings.LOG_PREVIEW_CHARS)
        try:
            data = fn(*call_args)
        except EngineError as e:
            logger.warning("tool %s failed: %s %s", name, e.code, e.message)
            return error_envelope(e)
        warnings = data.pop("warnings", None)
        return success_envelope(data, warnings)

    # ---- JSON Schema validation
    def validate_json(self, args: JsonValidateIn) -> Dict[str, Any]:
        return self._run(
            "validate_json", args,
            self.container.validator_service.validate, args.schema, args.instance,
        )

    def explain_validation(self, args: ExplainValidationIn) -> Dict[str, Any]:
        return self._run(
            "explain_validation", args,
            self.container.explain_service.explain, args.errors,
        )

    def repair_json(self, args: RepairJsonIn) -> Dict[str, Any]:
        return self._run(
            "repair_json", args,
            self.container.repair_service.repair, args.schema, args.instance_or_text,
        )


def _schema_from_model(model: Type[BaseModel]) -> Dict[str, Any]:
    return model.model_json_schema()


def build_tool_registry(container: Optional[Container] = None) -> Dict[str, ToolSpec]:
    """
    Build a registry once at startup using DI.
    The stdio host and tests both read tools from this table.
    """
    handlers = ToolHandlers(container)

    return {
        "validate_json": ToolSpec(
            name="validate_json",
            description="Validate a JSON instance against a JSON Schema. Returns validation "
            "result with detailed errors including paths, keywords, and messages.",
            input_model=JsonValidateIn,
            handler=handlers.validate_json,
        ),
        "explain_validation": ToolSpec(
            name="explain_validation",
            description="Take validation errors from validate_json and provide human-readable "
            "explanations with fix suggestions for each error.",
            input_model=ExplainValidationIn,
            handler=handlers.explain_validation,
        ),
        "repair_json": ToolSpec(
            name="repair_json",
            description="Attempt to repair invalid JSON to match a schema. Handles malformed "
            "JSON strings, applies schema defaults, removes unknown fields if "
            "additionalProperties is false, and coerces types when safe. Conservative: "
            "never invents unknown fields unless schema requires defaults.",
            input_model=RepairJsonIn,
            handler=handlers.repair_json,
        ),
    }


def list_tools_payload(registry: Dict[str, ToolSpec]) -> Dict[str, Any]:
    """
    Produce the `tools/list` payload body as per MCP Tools spec.
    """
    tools = []
    for spec in registry.values():
        tools.append({
            "name": spec.name,
            "description": spec.description,
            "inputSchema": _schema_from_model(spec.input_model),
        })
    return {"tools": tools}


def dispatch_tool_call(registry: Dict[str, ToolSpec], name: str, arguments: Dict[str, Any]) -> Any:
    """
    Validate args with the tool's Pydantic model, then invoke the named handler.
    """
    if name not in registry:
        return error_envelope(InvalidInputError(
            f"Unknown tool: {name}", {"availableTools": list(registry)}
        ))
    spec = registry[name]
    try:
        args_obj = spec.input_model(**arguments)
    except ArgsError as e:
        return error_envelope(InvalidInputError(
            f"Invalid arguments for {name}", {"errors": e.errors(include_url=False)}
        ))
    return spec.handler(args_obj)


def register_into_fastmcp(mcp, registry: Dict[str, ToolSpec]) -> None:
    """
    Register all registry tools into a FastMCP stdio host.
    """
    for spec in registry.values():
        # Create a local closure so each handler binds to its spec
        def make_tool(spec: ToolSpec):
            def tool_handler(input):
                return spec.handler(input)
            tool_handler.__annotations__ = {"input": spec.input_model, "return": Dict[str, Any]}
            return tool_handler

        mcp.tool(name=spec.name, description=spec.description)(make_tool(spec))
