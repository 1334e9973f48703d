# parsers/json_parser.py
# Parses pasted or generated contract JSON back into the editor tree.

import json
import sys
from typing import Any, Dict, List, Optional

from schema import (
    CREATED_AT,
    SORT_ASC,
    UPDATED_AT,
    Contract,
    DataType,
    DocumentType,
    Index,
    IndexProperty,
    ObjectFields,
    Property,
    default_payload,
)
from utils import coerce_i32, coerce_u32, optional_bool, optional_str, string_list

# How each type-keyed attribute is read from JSON
FIELD_READERS = {
    "min_length": coerce_u32,
    "max_length": coerce_u32,
    "pattern": optional_str,
    "format": optional_str,
    "minimum": coerce_i32,
    "maximum": coerce_i32,
    "byte_array": optional_bool,
    "min_items": coerce_u32,
    "max_items": coerce_u32,
    "content_media_type": optional_str,
    "min_properties": coerce_u32,
    "max_properties": coerce_u32,
}


def parse_contract_json(text: str) -> Contract:
    """
    Parses contract JSON text. Anything that is not a JSON object at the top
    level yields an empty contract rather than an error.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        print(f"WARN: Imported text is not valid JSON, starting from an empty contract: {e}", file=sys.stderr)
        return Contract()

    if not isinstance(data, dict):
        print("WARN: Imported JSON is not an object, starting from an empty contract.", file=sys.stderr)
        return Contract()

    return parse_contract(data)


def parse_contract(data: Dict[str, Any]) -> Contract:
    contract = Contract()
    for doc_name, doc_body in data.items():
        if not isinstance(doc_body, dict):
            print(f"WARN: Skipping document type '{doc_name}': its schema is not an object.", file=sys.stderr)
            continue
        contract.document_types.append(parse_document_type(doc_name, doc_body))
    return contract


def parse_document_type(name: str, body: Dict[str, Any]) -> DocumentType:
    doc_type = DocumentType(name=name)

    required = string_list(body.get("required"))
    if required is not None:
        doc_type.created_at_required = CREATED_AT in required
        doc_type.updated_at_required = UPDATED_AT in required

    properties = body.get("properties")
    if isinstance(properties, dict):
        doc_type.properties = parse_properties(properties, required or [])

    indices = body.get("indices")
    if isinstance(indices, list):
        for index_body in indices:
            if isinstance(index_body, dict):
                doc_type.indices.append(parse_index(index_body))

    comment = optional_str(body.get("$comment"))
    if comment is not None:
        doc_type.comment = comment

    return doc_type


def parse_properties(properties: Dict[str, Any], required: List[str]) -> List[Property]:
    """Parses a `properties` map, taking each property's flag from its parent's `required` list."""
    parsed = []
    for prop_name, prop_body in properties.items():
        prop = parse_property(prop_name, prop_body, prop_name in required)
        if prop is not None:
            parsed.append(prop)
    return parsed


def parse_property(name: str, body: Any, required: bool) -> Optional[Property]:
    if not isinstance(body, dict):
        print(f"WARN: Skipping property '{name}': its schema is not an object.", file=sys.stderr)
        return None

    data_type = DataType.STRING
    if "type" in body:
        try:
            data_type = DataType(body["type"])
        except ValueError:
            print(f"WARN: Skipping property '{name}': unexpected type value {body['type']!r}.", file=sys.stderr)
            return None

    payload = default_payload(data_type)
    # the form default for new arrays does not apply to imported ones
    if data_type is DataType.ARRAY:
        payload.byte_array = None

    for attr, key in payload.JSON_FIELDS:
        if key in body:
            setattr(payload, attr, FIELD_READERS[attr](body[key]))

    if isinstance(payload, ObjectFields) and isinstance(body.get("properties"), dict):
        nested_required = string_list(body.get("required")) or []
        payload.properties = parse_properties(body["properties"], nested_required)

    return Property(
        name=name,
        required=required,
        description=optional_str(body.get("description")),
        comment=optional_str(body.get("$comment")),
        payload=payload,
    )


def parse_index(body: Dict[str, Any]) -> Index:
    index = Index(
        name=optional_str(body.get("name")) or "",
        unique=optional_bool(body.get("unique")) or False,
    )
    properties = body.get("properties")
    if isinstance(properties, list):
        for entry in properties:
            if not isinstance(entry, dict) or not entry:
                continue
            # entries are single-key objects; the last key wins on malformed input
            field_name, order = list(entry.items())[-1]
            if order != SORT_ASC:
                print(f"WARN: Index '{index.name}' sorts '{field_name}' by {order!r}; only 'asc' is supported.", file=sys.stderr)
            index.properties.append(IndexProperty(field_name=field_name))
    return index
