# tests/test_utils.py
import pytest

from utils import extract_json_object, json_pointer, string_list, to_canonical_json


def test_canonical_json_is_compact_and_keeps_unicode():
    assert to_canonical_json({"a": [1, 2], "b": "ünï"}) == '{"a":[1,2],"b":"ünï"}'


def test_json_pointer_escapes_segments():
    assert json_pointer(["documents", "nft", "properties", 0]) == "/documents/nft/properties/0"
    assert json_pointer(["a/b", "c~d"]) == "/a~1b/c~0d"
    assert json_pointer([]) == ""


@pytest.mark.parametrize("text, expected", [
    ('prefix {"a": {"b": 1}} suffix', '{"a": {"b": 1}}'),
    ("{}", "{}"),
    ("", None),
    ("nothing here", None),
    ("} {", None),
])
def test_extract_json_object(text, expected):
    assert extract_json_object(text) == expected


def test_string_list_keeps_strings_only():
    assert string_list(["a", 1, None, "b"]) == ["a", "b"]
    assert string_list("a") is None
