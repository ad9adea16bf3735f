from app.config import Settings
from app.di import build_container
from server.registry import build_tool_registry, dispatch_tool_call, list_tools_payload

def make_registry():
    return build_tool_registry(build_container(Settings(LOG_LEVEL="DEBUG")))

def test_lists_three_tools():
    payload = list_tools_payload(make_registry())
    names = [t["name"] for t in payload["tools"]]
    assert names == ["validate_json", "explain_validation", "repair_json"]
    assert all("inputSchema" in t for t in payload["tools"])

def test_validate_json_envelope():
    out = dispatch_tool_call(make_registry(), "validate_json", {
        "schema": {"type": "object", "required": ["name"]},
        "instance": {},
    })
    assert out["ok"] is True
    assert out["data"]["valid"] is False
    assert out["meta"]["source"] == "json-validate"
    assert "retrieved_at" in out["meta"]

def test_repair_json_moves_warnings_into_meta():
    out = dispatch_tool_call(make_registry(), "repair_json", {
        "schema": {"type": "object", "properties": {"id": {"type": "string"}}, "required": ["id"]},
        "instance_or_text": "{}",
    })
    assert out["ok"] is True
    assert out["data"]["repaired"] == {}
    assert "warnings" not in out["data"]
    assert out["meta"]["warnings"]

def test_parse_failure_is_error_envelope():
    out = dispatch_tool_call(make_registry(), "repair_json", {
        "schema": {"type": "object"},
        "instance_or_text": "{nope",
    })
    assert out["ok"] is False
    assert out["error"]["code"] == "PARSE_ERROR"
    assert out["error"]["details"]["parseErrors"]

def test_bad_arguments_are_invalid_input():
    out = dispatch_tool_call(make_registry(), "explain_validation", {"errors": "nope"})
    assert out["ok"] is False
    assert out["error"]["code"] == "INVALID_INPUT"

def test_unknown_tool():
    out = dispatch_tool_call(make_registry(), "does_not_exist", {})
    assert out["error"]["code"] == "INVALID_INPUT"
    assert "repair_json" in out["error"]["details"]["availableTools"]
