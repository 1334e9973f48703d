# tests/test_json_parser.py
import json

import pytest

from exporter import export_contract, export_property
from parsers.json_parser import parse_contract_json
from schema import ArrayFields, DataType, IntegerFields, ObjectFields, StringFields
from utils import to_canonical_json

NFT_JSON = ('{"nft":{"type":"object","properties":{"name":{"type":"string","maxLength":63}},'
            '"required":["name"],"additionalProperties":false}}')

RICH_CONTRACT = {
    "profile": {
        "type": "object",
        "properties": {
            "handle": {"type": "string", "minLength": 3, "maxLength": 63, "pattern": "^[a-z]+$",
                       "description": "Public handle"},
            "avatar": {"type": "array", "byteArray": True, "minItems": 32, "maxItems": 32,
                       "contentMediaType": "image/png"},
            "age": {"type": "integer", "minimum": 0, "maximum": 150, "$comment": "years"},
            "score": {"type": "number"},
            "verified": {"type": "boolean"},
            "address": {
                "type": "object",
                "properties": {
                    "street": {"type": "string", "maxLength": 100},
                    "city": {"type": "string", "maxLength": 50},
                },
                "minProperties": 1,
                "required": ["city"],
                "additionalProperties": False,
            },
        },
        "indices": [
            {"name": "byHandle", "properties": [{"handle": "asc"}], "unique": True},
            {"name": "byAge", "properties": [{"age": "asc"}, {"$createdAt": "asc"}]},
        ],
        "required": ["handle", "age", "$createdAt", "$updatedAt"],
        "additionalProperties": False,
        "$comment": "User profiles",
    },
    "post": {
        "type": "object",
        "properties": {"text": {"type": "string", "maxLength": 280}},
        "additionalProperties": False,
    },
}


def test_import_then_export_is_byte_equal():
    assert to_canonical_json(export_contract(parse_contract_json(NFT_JSON))) == NFT_JSON


def test_rich_contract_round_trips():
    contract = parse_contract_json(json.dumps(RICH_CONTRACT))
    assert export_contract(contract) == RICH_CONTRACT
    # a second pass changes nothing
    again = parse_contract_json(to_canonical_json(export_contract(contract)))
    assert again == contract


def test_rich_contract_fields():
    contract = parse_contract_json(json.dumps(RICH_CONTRACT))
    profile = contract.document_types[0]
    assert profile.name == "profile"
    assert profile.comment == "User profiles"
    assert profile.created_at_required and profile.updated_at_required
    assert [p.name for p in profile.properties if p.required] == ["handle", "age"]

    handle, avatar, age, score, verified, address = profile.properties
    assert handle.payload == StringFields(min_length=3, max_length=63, pattern="^[a-z]+$")
    assert handle.description == "Public handle"
    assert avatar.payload == ArrayFields(byte_array=True, min_items=32, max_items=32,
                                         content_media_type="image/png")
    assert age.payload == IntegerFields(minimum=0, maximum=150)
    assert age.comment == "years"
    assert score.data_type is DataType.NUMBER
    assert verified.data_type is DataType.BOOLEAN

    assert isinstance(address.payload, ObjectFields)
    assert address.payload.min_properties == 1
    assert [(p.name, p.required) for p in address.payload.properties] == [("street", False), ("city", True)]

    by_handle, by_age = profile.indices
    assert by_handle.unique is True
    assert [p.field_name for p in by_age.properties] == ["age", "$createdAt"]
    assert by_age.unique is False


@pytest.mark.parametrize("text", ["", "not json", "[1, 2]", "42", "null"])
def test_unparseable_or_non_object_input_yields_empty_contract(text):
    assert parse_contract_json(text).is_empty()


def test_non_object_document_bodies_are_skipped():
    contract = parse_contract_json('{"bad": 1, "good": {"type": "object"}}')
    assert [d.name for d in contract.document_types] == ["good"]
    assert contract.document_types[0].properties == []


def test_unknown_property_type_skips_only_that_property():
    text = json.dumps({"doc": {"properties": {
        "when": {"type": "date"},
        "name": {"type": "string"},
        "broken": "string",
    }}})
    doc = parse_contract_json(text).document_types[0]
    assert [p.name for p in doc.properties] == ["name"]


def test_missing_type_defaults_to_string():
    doc = parse_contract_json('{"doc": {"properties": {"x": {"maxLength": 5}}}}').document_types[0]
    assert doc.properties[0].data_type is DataType.STRING
    assert doc.properties[0].payload.max_length == 5


def test_non_array_required_is_ignored():
    text = '{"doc": {"properties": {"x": {"type": "string"}}, "required": "x"}}'
    doc = parse_contract_json(text).document_types[0]
    assert doc.properties[0].required is False
    assert doc.created_at_required is False


def test_imported_array_without_byte_array_stays_unset():
    doc = parse_contract_json('{"doc": {"properties": {"blob": {"type": "array"}}}}').document_types[0]
    assert doc.properties[0].payload.byte_array is None


def test_fields_of_other_types_are_ignored():
    text = '{"doc": {"properties": {"price": {"type": "number", "minimum": 0}, "s": {"type": "string", "byteArray": true}}}}'
    price, s = parse_contract_json(text).document_types[0].properties
    assert export_property(price) == {"type": "number"}
    assert s.payload == StringFields()


@pytest.mark.parametrize("raw, expected", [
    (63, 63),
    (2**32, 0),
    (-1, 0),
    (63.5, None),
    ("63", None),
    (True, None),
])
def test_unsigned_field_coercion(raw, expected):
    text = json.dumps({"doc": {"properties": {"s": {"type": "string", "maxLength": raw}}}})
    assert parse_contract_json(text).document_types[0].properties[0].payload.max_length == expected


@pytest.mark.parametrize("raw, expected", [(-10, -10), (2**31, 0), (-(2**31) - 1, 0), (1.5, None)])
def test_signed_field_coercion(raw, expected):
    text = json.dumps({"doc": {"properties": {"n": {"type": "integer", "minimum": raw}}}})
    assert parse_contract_json(text).document_types[0].properties[0].payload.minimum == expected


def test_index_defaults_and_sort_normalization():
    text = json.dumps({"doc": {"properties": {}, "indices": [
        {"properties": [{"a": "desc"}, "junk", {}]},
        "junk",
    ]}})
    doc = parse_contract_json(text).document_types[0]
    assert len(doc.indices) == 1
    index = doc.indices[0]
    assert index.name == ""
    assert index.unique is False
    assert [(p.field_name, p.sort_order) for p in index.properties] == [("a", "asc")]


def test_non_string_comment_and_description_are_dropped():
    text = json.dumps({"doc": {"$comment": 5, "properties": {"x": {"type": "string", "description": 1}}}})
    doc = parse_contract_json(text).document_types[0]
    assert doc.comment == ""
    assert doc.properties[0].description is None
