# platform_validator.py
# Default data contract validator: builds a contract for an owner and checks its
# document schemas against the platform's data contract rules.

"""
The surface mirrors the platform protocol library:

    factory = DataContractFactory()
    contract = factory.create(Identifier.random(), documents)   # may raise DataContractCreateError
    result = contract.validate(contract.to_cleaned_object())
    result.errors  # list of ConsensusError

Only a subset of the rules is reproduced: the JSON Schema meta rules for
document types and properties, and the index constraints.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

from jsonschema import Draft7Validator

from utils import json_pointer

DEFAULT_PROTOCOL_VERSION = 1
DATA_CONTRACT_SCHEMA_URI = "https://schema.dash.org/dpp-0-4-0/meta/data-contract"

NAME_PATTERN = "^[a-zA-Z0-9_-]{1,64}$"
MAX_INDEXED_STRING_LENGTH = 63
MAX_INDEXED_ARRAY_ITEMS = 255
# system fields that can be indexed without being declared in `properties`
INDEXABLE_SYSTEM_FIELDS = ("$id", "$ownerId", "$createdAt", "$updatedAt")


# --------------------------
# Identifiers
# --------------------------

class Identifier(bytes):
    """A 32-byte platform identifier."""

    @classmethod
    def random(cls) -> "Identifier":
        return cls(os.urandom(32))

    def __str__(self) -> str:
        return self.hex()


# --------------------------
# Consensus errors
# --------------------------

class ConsensusError:
    """Base of everything a contract validation can report."""


class BasicError(ConsensusError):
    """Structural errors in the submitted data; the only kind an editor can act on."""


class SignatureError(ConsensusError):
    pass


class StateError(ConsensusError):
    pass


@dataclass
class JsonSchemaError(BasicError):
    summary: str
    instance_path: str = ""
    keyword: str = ""

    def __str__(self) -> str:
        return f"JsonSchemaError: {self.summary}"


@dataclass
class DuplicateIndexNameError(BasicError):
    document_type: str
    index_name: str

    def __str__(self) -> str:
        return f"Duplicate index name '{self.index_name}' in '{self.document_type}' document"


@dataclass
class UndefinedIndexPropertyError(BasicError):
    document_type: str
    index_name: str
    property_name: str

    def __str__(self) -> str:
        return (f"'{self.property_name}' property is not defined in the '{self.document_type}' document "
                f"but is used by index '{self.index_name}'")


@dataclass
class InvalidIndexedPropertyConstraintError(BasicError):
    document_type: str
    index_name: str
    property_name: str
    constraint: str
    reason: str

    def __str__(self) -> str:
        return (f"Indexed property '{self.property_name}' of '{self.document_type}' document "
                f"has an invalid constraint '{self.constraint}' in index '{self.index_name}': {self.reason}")


@dataclass
class ValidationResult:
    errors: List[ConsensusError] = field(default_factory=list)

    def is_valid(self) -> bool:
        return not self.errors


class DataContractCreateError(Exception):
    """The raw input could not be turned into a data contract at all."""


# --------------------------
# Meta schema
# --------------------------

PROPERTY_TYPES = ["string", "integer", "number", "boolean", "array", "object"]

_COUNT = {"type": "integer", "minimum": 0}

DATA_CONTRACT_META_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["protocolVersion", "$id", "ownerId", "documents"],
    "properties": {
        "protocolVersion": {"type": "integer", "minimum": 0},
        "$schema": {"type": "string"},
        "$id": {"type": "string"},
        "ownerId": {"type": "string"},
        "documents": {
            "type": "object",
            "minProperties": 1,
            "maxProperties": 100,
            "propertyNames": {"pattern": NAME_PATTERN},
            "additionalProperties": {"$ref": "#/definitions/documentType"},
        },
    },
    "definitions": {
        "propertiesMap": {
            "type": "object",
            "minProperties": 1,
            "propertyNames": {"pattern": NAME_PATTERN},
            "additionalProperties": {"$ref": "#/definitions/property"},
        },
        "documentType": {
            "type": "object",
            "required": ["type", "properties", "additionalProperties"],
            "properties": {
                "type": {"const": "object"},
                "properties": {"$ref": "#/definitions/propertiesMap"},
                "indices": {
                    "type": "array",
                    "minItems": 1,
                    "items": {"$ref": "#/definitions/index"},
                },
                "required": {
                    "type": "array",
                    "items": {"type": "string"},
                    "uniqueItems": True,
                },
                "additionalProperties": {"const": False},
                "$comment": {"type": "string"},
            },
        },
        "index": {
            "type": "object",
            "required": ["name", "properties"],
            "properties": {
                "name": {"type": "string", "minLength": 1, "maxLength": 32},
                "properties": {
                    "type": "array",
                    "minItems": 1,
                    "maxItems": 10,
                    "items": {
                        "type": "object",
                        "minProperties": 1,
                        "maxProperties": 1,
                        "additionalProperties": {"enum": ["asc"]},
                    },
                },
                "unique": {"type": "boolean"},
            },
        },
        "property": {
            "type": "object",
            "required": ["type"],
            "properties": {
                "type": {"enum": PROPERTY_TYPES},
                "description": {"type": "string"},
                "$comment": {"type": "string"},
                "minLength": _COUNT,
                "maxLength": _COUNT,
                "pattern": {"type": "string"},
                "format": {"type": "string"},
                "minimum": {"type": "number"},
                "maximum": {"type": "number"},
                "byteArray": {"type": "boolean"},
                "minItems": _COUNT,
                "maxItems": _COUNT,
                "contentMediaType": {"type": "string"},
                "properties": {"$ref": "#/definitions/propertiesMap"},
                "minProperties": _COUNT,
                "maxProperties": _COUNT,
                "required": {
                    "type": "array",
                    "items": {"type": "string"},
                    "uniqueItems": True,
                },
                "additionalProperties": {"const": False},
            },
            "allOf": [
                {
                    # plain arrays must describe their items; byte arrays must not
                    "if": {
                        "required": ["type"],
                        "properties": {
                            "type": {"const": "array"},
                            "byteArray": {"not": {"const": True}},
                        },
                    },
                    "then": {"required": ["items"]},
                },
                {
                    "if": {
                        "required": ["type"],
                        "properties": {"type": {"const": "object"}},
                    },
                    "then": {"required": ["properties", "additionalProperties"]},
                },
            ],
        },
    },
}

_META_VALIDATOR = Draft7Validator(DATA_CONTRACT_META_SCHEMA)


# --------------------------
# Contract + factory
# --------------------------

class DataContract:
    def __init__(self, owner_id: Identifier, documents: Dict[str, Any], protocol_version: int):
        self.id = Identifier.random()
        self.owner_id = owner_id
        self.documents = documents
        self.protocol_version = protocol_version

    def to_cleaned_object(self) -> Dict[str, Any]:
        return {
            "protocolVersion": self.protocol_version,
            "$schema": DATA_CONTRACT_SCHEMA_URI,
            "$id": str(self.id),
            "ownerId": str(self.owner_id),
            "documents": self.documents,
        }

    def validate(self, raw_contract: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult()
        for error in _META_VALIDATOR.iter_errors(raw_contract):
            result.errors.append(JsonSchemaError(
                summary=error.message,
                instance_path=json_pointer(error.absolute_path),
                keyword=str(error.validator),
            ))
        documents = raw_contract.get("documents")
        if isinstance(documents, dict):
            for doc_name, doc_schema in documents.items():
                if isinstance(doc_schema, dict):
                    result.errors.extend(validate_indices(doc_name, doc_schema))
        return result


class DataContractFactory:
    def __init__(self, protocol_version: int = DEFAULT_PROTOCOL_VERSION):
        self.protocol_version = protocol_version

    def create(self, owner_id: Identifier, documents: Any) -> DataContract:
        if not isinstance(documents, dict):
            raise DataContractCreateError("Data contract documents must be a JSON object")
        if not documents:
            raise DataContractCreateError("Data contract must define at least one document type")
        for doc_name, doc_schema in documents.items():
            if not isinstance(doc_schema, dict):
                raise DataContractCreateError(f"Document type '{doc_name}' must be a JSON object")
        return DataContract(owner_id, documents, self.protocol_version)


# --------------------------
# Index rules
# --------------------------

def validate_indices(doc_name: str, doc_schema: Dict[str, Any]) -> List[BasicError]:
    errors: List[BasicError] = []
    indices = doc_schema.get("indices")
    if not isinstance(indices, list):
        return errors
    properties = doc_schema.get("properties")
    if not isinstance(properties, dict):
        properties = {}

    seen_names = set()
    for index in indices:
        if not isinstance(index, dict):
            continue
        index_name = index.get("name")
        if isinstance(index_name, str):
            if index_name in seen_names:
                errors.append(DuplicateIndexNameError(doc_name, index_name))
            seen_names.add(index_name)

        entries = index.get("properties")
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            for prop_name in entry:
                if prop_name in INDEXABLE_SYSTEM_FIELDS:
                    continue
                prop_schema = properties.get(prop_name)
                if not isinstance(prop_schema, dict):
                    errors.append(UndefinedIndexPropertyError(doc_name, str(index_name), prop_name))
                    continue
                errors.extend(_indexed_constraint_errors(doc_name, str(index_name), prop_name, prop_schema))
    return errors


def _indexed_constraint_errors(doc_name, index_name, prop_name, prop_schema) -> List[BasicError]:
    prop_type = prop_schema.get("type")
    if prop_type == "string":
        constraint, limit = "maxLength", MAX_INDEXED_STRING_LENGTH
    elif prop_type == "array":
        constraint, limit = "maxItems", MAX_INDEXED_ARRAY_ITEMS
    else:
        return []

    value = prop_schema.get(constraint)
    if value is None:
        reason = f"should be set for indexed {prop_type} properties"
    elif isinstance(value, int) and value > limit:
        reason = f"should be less or equal {limit}"
    else:
        return []
    return [InvalidIndexedPropertyConstraintError(doc_name, index_name, prop_name, constraint, reason)]
