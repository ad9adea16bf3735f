import pytest

from app.errors import InvalidInputError, ParseFailedError
from app.services.repairer import RepairService
from app.services.validator import JsonValidatorService

USER_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "age": {"type": "integer"},
        "active": {"type": "boolean", "default": True},
    },
    "additionalProperties": False,
}


def make_service():
    return RepairService(JsonValidatorService())


def summary(result):
    return [(c["path"], c["action"]) for c in result["changes"]]


def test_repair_malformed_text_end_to_end():
    svc = make_service()
    res = svc.repair(USER_SCHEMA, "{'name': 'John', 'age': '30', 'extra': 'field',}")
    assert res["repaired"] == {"name": "John", "age": 30, "active": True}
    assert summary(res) == [("/extra", "removed"), ("/age", "coerced"), ("/active", "defaulted")]
    assert res["parseErrors"][-1] == "JSON repaired successfully with syntax fixes"
    assert res["valid"] is True
    assert res["warnings"] == []


def test_change_records_serialize_from_and_to():
    svc = make_service()
    res = svc.repair(USER_SCHEMA, {"name": "John", "age": "30", "active": False})
    assert res["changes"] == [{
        "path": "/age",
        "action": "coerced",
        "from": "30",
        "to": 30,
        "reason": "Coerced string to integer",
    }]


def test_required_scalars_are_not_invented():
    schema = {
        "type": "object",
        "properties": {"id": {"type": "string"}, "data": {"type": "string"}},
        "required": ["id", "data"],
    }
    svc = make_service()
    res = svc.repair(schema, {})
    assert res["repaired"] == {}
    assert res["changes"] == []
    assert res["valid"] is False
    assert res["warnings"]

    check = JsonValidatorService().validate(schema, res["repaired"])
    assert [e["keyword"] for e in check["errors"]] == ["required", "required"]


def test_input_value_is_not_mutated():
    svc = make_service()
    original = {"name": 5, "extra": 1}
    svc.repair(USER_SCHEMA, original)
    assert original == {"name": 5, "extra": 1}


def test_removed_key_is_never_coerced():
    schema = {
        "type": "object",
        "properties": {"a": {"type": "integer"}},
        "additionalProperties": False,
    }
    res = make_service().repair(schema, {"a": 1, "b": "not-an-int"})
    assert summary(res) == [("/b", "removed")]


def test_repair_is_idempotent():
    schema = {
        "type": "object",
        "properties": {
            "tags": {"type": "array", "items": {"type": "string"}},
            "meta": {"type": "object", "properties": {"v": {"type": "integer", "default": 1}}},
            "count": {"type": "integer"},
        },
        "required": ["meta"],
        "additionalProperties": False,
    }
    svc = make_service()
    first = svc.repair(schema, {"tags": 3, "count": "4", "junk": None})
    assert first["changes"]
    second = svc.repair(schema, first["repaired"])
    assert second["changes"] == []
    assert second["repaired"] == first["repaired"]


def test_only_licensed_keys_are_added():
    schema = {
        "type": "object",
        "properties": {
            "withDefault": {"type": "string", "default": "x"},
            "obj": {"type": "object"},
            "plain": {"type": "string"},
        },
        "required": ["obj", "plain"],
    }
    res = make_service().repair(schema, {})
    assert set(res["repaired"]) == {"withDefault", "obj"}


def test_repair_does_not_regress_targeted_errors():
    schema = {
        "type": "object",
        "properties": {
            "n": {"type": "number"},
            "flag": {"type": "boolean", "default": False},
            "label": {"type": "string", "minLength": 3},
        },
        "additionalProperties": False,
    }
    validator = JsonValidatorService()
    instance = {"n": "12", "zzz": 1, "label": "ab"}
    before = {(e["keyword"], e["path"]) for e in validator.validate(schema, instance)["errors"]}
    repaired = make_service().repair(schema, instance)["repaired"]
    after = {(e["keyword"], e["path"]) for e in validator.validate(schema, repaired)["errors"]}
    assert after <= before
    assert after == {("minLength", "/label")}


def test_unparseable_text_raises_parse_error():
    with pytest.raises(ParseFailedError) as exc:
        make_service().repair(USER_SCHEMA, "{definitely not json")
    assert exc.value.code == "PARSE_ERROR"
    assert exc.value.details["parseErrors"] == [
        "Standard JSON parse failed, attempting repairs...",
        "Could not repair JSON syntax",
    ]


def test_bad_schema_is_rejected_before_parsing():
    with pytest.raises(InvalidInputError):
        make_service().repair("not a schema", "{definitely not json")


def test_unexpected_failure_becomes_internal_error(monkeypatch):
    from app.errors import InternalError
    import app.services.repairer as repairer

    def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(repairer, "prune", boom)
    with pytest.raises(InternalError) as exc:
        make_service().repair(USER_SCHEMA, {})
    assert exc.value.code == "INTERNAL_ERROR"
    assert "kaboom" in exc.value.message
    assert "trace" in exc.value.details


def test_repair_reports_ambiguous_one_of_with_refs():
    svc = make_service()
    schema = {
        "type": "object",
        "definitions": {"a": {"type": "integer"}, "b": {"type": "number"}},
        "properties": {"n": {"oneOf": [{"$ref": "#/definitions/a"}, {"$ref": "#/definitions/b"}]}},
    }
    res = svc.repair(schema, {"n": 5})
    assert res["repaired"] == {"n": 5}
    assert res["changes"] == []
    assert res["valid"] is False
    assert res["warnings"] != []
