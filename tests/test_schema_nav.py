from app.services.schema_nav import (
    SchemaNode,
    child_schema,
    join_pointer,
    matches_any_type,
    schema_at,
    split_pointer,
)

SCHEMA = SchemaNode.parse({
    "type": "object",
    "properties": {
        "tags": {"type": "array", "items": {"type": "string"}},
        "user": {"type": "object", "properties": {"name": {"type": "string"}}},
    },
    "patternProperties": {"^x-": {"type": "integer"}},
})

def test_property_lookup():
    assert schema_at(SCHEMA, "/user/name").types == ("string",)

def test_array_items_ignore_index():
    assert schema_at(SCHEMA, "/tags/0").types == ("string",)
    assert schema_at(SCHEMA, "/tags/99").types == ("string",)

def test_pattern_properties_match():
    assert schema_at(SCHEMA, "/x-rate").types == ("integer",)

def test_undeclared_key_is_unconstrained():
    assert schema_at(SCHEMA, "/nope") is None
    assert schema_at(SCHEMA, "/user/nope/deeper") is None

def test_root_paths():
    assert schema_at(SCHEMA, "") is SCHEMA
    assert schema_at(SCHEMA, "/") is SCHEMA

def test_child_schema_of_unconstrained_is_none():
    assert child_schema(None, "a") is None

def test_pointer_escaping_roundtrips():
    path = join_pointer(join_pointer("", "a/b"), "c~d")
    assert path == "/a~1b/c~0d"
    assert split_pointer(path) == ["a/b", "c~d"]

def test_default_presence_is_tracked_separately_from_null():
    assert SchemaNode.parse({"default": None}).has_default is True
    assert SchemaNode.parse({}).has_default is False

def test_type_matching_follows_json_semantics():
    node = SchemaNode.parse({"type": "integer"})
    assert matches_any_type(3, node)
    assert matches_any_type(3.0, node)
    assert not matches_any_type(True, node)
    assert not matches_any_type(3.5, node)
    assert matches_any_type("anything", SchemaNode.parse({}))
