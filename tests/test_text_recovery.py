from app.services.text_recovery import (
    MSG_REPAIRED,
    MSG_STRICT_FAILED,
    MSG_UNREPAIRABLE,
    recover_json,
)

def test_valid_json_parses_without_diagnostics():
    res = recover_json('{"a": [1, 2, 3]}')
    assert res.ok is True
    assert res.parsed == {"a": [1, 2, 3]}
    assert res.diagnostics == []

def test_bare_keys_are_quoted():
    res = recover_json('{name: "John", age: 30}')
    assert res.ok is True
    assert res.parsed == {"name": "John", "age": 30}
    assert res.diagnostics == [MSG_STRICT_FAILED, MSG_REPAIRED]
    assert "repaired successfully" in res.diagnostics[-1]

def test_single_quotes_and_trailing_comma():
    res = recover_json("{'name': 'John', 'age': '30', 'extra': 'field',}")
    assert res.ok is True
    assert res.parsed == {"name": "John", "age": "30", "extra": "field"}

def test_trailing_comma_in_array():
    res = recover_json("[1, 2, 3, ]")
    assert res.parsed == [1, 2, 3]

def test_comments_are_stripped():
    text = '{\n  "a": 1, // first\n  /* block */ "b": 2\n}'
    res = recover_json(text)
    assert res.ok is True
    assert res.parsed == {"a": 1, "b": 2}

def test_undefined_and_nan_become_null():
    res = recover_json('{"a": undefined, "b": NaN, "c": [NaN]}')
    assert res.ok is True
    assert res.parsed == {"a": None, "b": None, "c": [None]}

def test_undefined_inside_string_values_is_kept():
    res = recover_json("{'note': 'a, undefined', 'x': 1,}")
    assert res.ok is True
    assert res.parsed == {"note": "a, undefined", "x": 1}
    res = recover_json('{"tag": "[NaN]", "v": NaN}')
    assert res.parsed == {"tag": "[NaN]", "v": None}

def test_strict_parse_rejects_nan_constant():
    # Python's json accepts NaN, so it must go through the rewrite pass
    res = recover_json('{"a": NaN}')
    assert res.diagnostics[0] == MSG_STRICT_FAILED

def test_unrecoverable_text_reports_both_lines():
    res = recover_json("{this is not json at all")
    assert res.ok is False
    assert res.parsed is None
    assert res.diagnostics == [MSG_STRICT_FAILED, MSG_UNREPAIRABLE]

def test_missing_structure_is_not_guessed():
    res = recover_json('{"a": 1')
    assert res.ok is False
