# tests/test_exporter.py
from exporter import export_contract, export_index, export_property
from schema import (
    ArrayFields,
    Contract,
    DocumentType,
    Index,
    IndexProperty,
    IntegerFields,
    ObjectFields,
    Property,
    StringFields,
)
from utils import to_canonical_json

NFT_JSON = ('{"nft":{"type":"object","properties":{"name":{"type":"string","maxLength":63}},'
            '"required":["name"],"additionalProperties":false}}')


def nft_contract(required=True) -> Contract:
    return Contract(document_types=[
        DocumentType(
            name="nft",
            properties=[Property(name="name", required=required, payload=StringFields(max_length=63))],
        )
    ])


def test_single_document_export():
    assert to_canonical_json(export_contract(nft_contract())) == NFT_JSON


def test_required_key_absent_when_nothing_required():
    body = export_contract(nft_contract(required=False))["nft"]
    assert "required" not in body
    assert body["additionalProperties"] is False


def test_document_key_order():
    doc = DocumentType(
        name="post",
        properties=[Property(name="title", required=True)],
        indices=[Index(name="byTitle", properties=[IndexProperty(field_name="title")])],
        created_at_required=True,
        comment="A blog post",
    )
    body = export_contract(Contract(document_types=[doc]))["post"]
    assert list(body) == ["type", "properties", "indices", "required", "additionalProperties", "$comment"]
    assert body["required"] == ["title", "$createdAt"]


def test_array_property_is_byte_array_without_items():
    prop = Property(name="blob", payload=ArrayFields(byte_array=True, max_items=32))
    assert export_property(prop) == {"type": "array", "byteArray": True, "maxItems": 32}


def test_array_without_byte_array_flag_omits_it():
    assert export_property(Property(name="blob", payload=ArrayFields())) == {"type": "array"}


def test_empty_strings_are_omitted():
    prop = Property(
        name="label",
        description="",
        comment="",
        payload=StringFields(pattern="", format="", min_length=1),
    )
    assert export_property(prop) == {"type": "string", "minLength": 1}


def test_property_key_order():
    prop = Property(
        name="count",
        description="How many",
        comment="internal",
        payload=IntegerFields(maximum=10, minimum=0),
    )
    assert list(export_property(prop)) == ["type", "description", "minimum", "maximum", "$comment"]


def test_object_property_exports_children_and_inner_required():
    prop = Property(
        name="address",
        payload=ObjectFields(
            properties=[
                Property(name="street", required=True, payload=StringFields(max_length=100)),
                Property(name="zip"),
            ],
            max_properties=5,
            additional_properties=True,
        ),
    )
    body = export_property(prop)
    assert list(body) == ["type", "properties", "maxProperties", "required", "additionalProperties"]
    assert body["properties"] == {
        "street": {"type": "string", "maxLength": 100},
        "zip": {"type": "string"},
    }
    assert body["required"] == ["street"]
    # closed objects regardless of the model flag
    assert body["additionalProperties"] is False


def test_nested_objects_recurse():
    leaf = Property(name="lat", required=True, payload=IntegerFields())
    inner = Property(name="geo", payload=ObjectFields(properties=[leaf]))
    outer = Property(name="place", payload=ObjectFields(properties=[inner]))
    body = export_property(outer)
    assert body["properties"]["geo"] == {
        "type": "object",
        "properties": {"lat": {"type": "integer"}},
        "required": ["lat"],
        "additionalProperties": False,
    }


def test_index_export():
    index = Index(name="byName", properties=[IndexProperty(field_name="name")])
    assert export_index(index) == {"name": "byName", "properties": [{"name": "asc"}]}

    index.unique = True
    assert export_index(index)["unique"] is True


def test_export_is_deterministic():
    contract = nft_contract()
    assert to_canonical_json(export_contract(contract)) == to_canonical_json(export_contract(contract))


def test_document_types_keep_their_order():
    contract = Contract(document_types=[DocumentType(name="b"), DocumentType(name="a")])
    assert list(export_contract(contract)) == ["b", "a"]
