# schema.py
# Defines the Pydantic data models for the data contract editor tree.

"""
Canonical contract shape (one document type shown):
{
  "<docTypeName>": {
    "type": "object",
    "properties": {
      "<propName>": {
        "type": "string | integer | array | object | number | boolean",
        "...type-keyed fields...": "...",
        "description": "optional",
        "$comment": "optional"
      }
    },
    "indices": [
      {"name": "byName", "properties": [{"<propName>": "asc"}], "unique": true}
    ],
    "required": ["<propName>", "$createdAt", "$updatedAt"],
    "additionalProperties": false,
    "$comment": "optional"
  }
}

Shared property fields live on `Property`; fields that only make sense for one
data type live on its payload (`StringFields`, `ArrayFields`, ...). The payload
is a discriminated union keyed by `kind`, so changing the data type means
swapping the payload.
"""

from enum import Enum
from typing import Annotated, ClassVar, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

U32_MAX = 2**32 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1

CREATED_AT = "$createdAt"
UPDATED_AT = "$updatedAt"
SYSTEM_PROPERTIES = (CREATED_AT, UPDATED_AT)

SORT_ASC = "asc"

U32 = Annotated[int, Field(ge=0, le=U32_MAX)]
I32 = Annotated[int, Field(ge=I32_MIN, le=I32_MAX)]


class ContractPathError(IndexError):
    """Raised when an edit addresses a document, property or index that does not exist."""


class DataType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    ARRAY = "array"
    OBJECT = "object"
    NUMBER = "number"
    BOOLEAN = "boolean"

    @classmethod
    def parse(cls, value) -> "DataType":
        """Accepts a DataType, a JSON type name ("array") or a form label ("Array")."""
        if isinstance(value, DataType):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise ValueError(f"Invalid data type selected: {value!r}")

    @property
    def label(self) -> str:
        return self.value.capitalize()


# --- Type-keyed payloads ---

class _Payload(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    # (attribute, JSON key) pairs in the order the exporter writes them
    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(attr for attr, _ in cls.JSON_FIELDS)


class StringFields(_Payload):
    kind: Literal["string"] = "string"
    min_length: Optional[U32] = None
    max_length: Optional[U32] = None
    pattern: Optional[str] = None
    format: Optional[str] = None

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("min_length", "minLength"),
        ("max_length", "maxLength"),
        ("pattern", "pattern"),
        ("format", "format"),
    )


class IntegerFields(_Payload):
    kind: Literal["integer"] = "integer"
    minimum: Optional[I32] = None
    maximum: Optional[I32] = None

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("minimum", "minimum"),
        ("maximum", "maximum"),
    )


class ArrayFields(_Payload):
    kind: Literal["array"] = "array"
    byte_array: Optional[bool] = None
    min_items: Optional[U32] = None
    max_items: Optional[U32] = None
    content_media_type: Optional[str] = None

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("byte_array", "byteArray"),
        ("min_items", "minItems"),
        ("max_items", "maxItems"),
        ("content_media_type", "contentMediaType"),
    )


class ObjectFields(_Payload):
    kind: Literal["object"] = "object"
    properties: List["Property"] = Field(default_factory=list)
    min_properties: Optional[U32] = None
    max_properties: Optional[U32] = None
    # Exported as false whatever its value; the platform only accepts closed objects.
    additional_properties: bool = False

    JSON_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("min_properties", "minProperties"),
        ("max_properties", "maxProperties"),
    )

    @property
    def rec_required(self) -> List[str]:
        return derive_required(self.properties)


class NumberFields(_Payload):
    kind: Literal["number"] = "number"


class BooleanFields(_Payload):
    kind: Literal["boolean"] = "boolean"


TypeFields = Annotated[
    Union[StringFields, IntegerFields, ArrayFields, ObjectFields, NumberFields, BooleanFields],
    Field(discriminator="kind"),
]

PAYLOAD_TYPES = {
    DataType.STRING: StringFields,
    DataType.INTEGER: IntegerFields,
    DataType.ARRAY: ArrayFields,
    DataType.OBJECT: ObjectFields,
    DataType.NUMBER: NumberFields,
    DataType.BOOLEAN: BooleanFields,
}


def default_payload(data_type) -> _Payload:
    """
    Returns the payload a property gets when its data type is (re)selected.
    Every type-keyed field starts unset, except that arrays are byte arrays.
    """
    data_type = DataType.parse(data_type)
    if data_type is DataType.ARRAY:
        return ArrayFields(byte_array=True)
    return PAYLOAD_TYPES[data_type]()


# --- Tree ---

class Property(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    required: bool = False
    description: Optional[str] = None
    comment: Optional[str] = None
    payload: TypeFields = Field(default_factory=StringFields)

    @property
    def data_type(self) -> DataType:
        return DataType(self.payload.kind)

    @property
    def children(self) -> List["Property"]:
        """Nested properties; always empty for anything but objects."""
        if isinstance(self.payload, ObjectFields):
            return self.payload.properties
        return []


ObjectFields.model_rebuild()


class IndexProperty(BaseModel):
    field_name: str = ""
    sort_order: Literal["asc"] = SORT_ASC


class Index(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    properties: List[IndexProperty] = Field(default_factory=list)
    unique: bool = False


class DocumentType(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    properties: List[Property] = Field(default_factory=list)
    indices: List[Index] = Field(default_factory=list)
    created_at_required: bool = False
    updated_at_required: bool = False
    additional_properties: bool = False
    comment: str = ""

    @property
    def required(self) -> List[str]:
        """Required property names in walk order, then the required system timestamps."""
        names = derive_required(self.properties)
        if self.created_at_required and CREATED_AT not in names:
            names.append(CREATED_AT)
        if self.updated_at_required and UPDATED_AT not in names:
            names.append(UPDATED_AT)
        return names


class Contract(BaseModel):
    document_types: List[DocumentType] = Field(default_factory=list)

    @classmethod
    def new(cls) -> "Contract":
        """The starting state of an editing session: one blank document type."""
        return cls(document_types=[DocumentType()])

    def is_empty(self) -> bool:
        return not self.document_types


def derive_required(properties: List[Property]) -> List[str]:
    names: List[str] = []
    for prop in properties:
        if prop.required and prop.name not in names:
            names.append(prop.name)
    return names
