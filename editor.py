# editor.py
# Holds the contract tree and the editor's view state, and applies edit
# operations, imports and LLM generations to them.

import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

from exporter import export_contract
from grader import validate_contract
from parsers import LlmGateway, LlmGatewayError, compose_prompt, parse_contract_json
from platform_validator import DataContractFactory
from schema import (
    CREATED_AT,
    UPDATED_AT,
    Contract,
    ContractPathError,
    DataType,
    DocumentType,
    Index,
    IndexProperty,
    ObjectFields,
    Property,
    default_payload,
)
from utils import to_canonical_json, to_pretty_json

# (doc, prop) for a top-level property, (doc, prop, nested, ...) below it
PropertyPath = Tuple[int, ...]

STATUS_ERRORS = "errors"
STATUS_PASSING = "passing"


def _at(items: Sequence, index: int, label: str):
    if not 0 <= index < len(items):
        raise ContractPathError(f"No {label} at index {index}")
    return items[index]


class ContractEditor:
    """
    Owns the contract being edited. Every change goes through one of the
    methods below; the form reads back through the view methods.

    Three error channels are kept apart:
      - error_messages: platform validation errors for the current export
      - ai_error_messages: LLM gateway failures and contracts the validator could not build
      - import problems, which only reach the log
    """

    def __init__(self, gateway: Optional[LlmGateway] = None, factory: Optional[DataContractFactory] = None):
        self.gateway = gateway
        self.factory = factory
        self.prompt = ""
        self.temp_prompt: Optional[str] = None
        self.history: List[str] = []
        self.loading = False
        self.ai_error_messages: List[str] = []
        self._reset()

    def _reset(self) -> None:
        self.contract = Contract.new()
        self.exported: Optional[Dict[str, Any]] = None
        self.imported_json = ""
        self.schema = ""
        self.error_messages: List[str] = []

    # ----------------------------
    # Path resolution
    # ----------------------------

    def document_type(self, doc_index: int) -> DocumentType:
        return _at(self.contract.document_types, doc_index, "document type")

    def _sibling_properties(self, path: PropertyPath) -> List[Property]:
        """The list that holds the property at `path`."""
        if len(path) < 2:
            raise ContractPathError(f"Property path {tuple(path)} needs a document and a property index")
        properties = self.document_type(path[0]).properties
        for depth in range(1, len(path) - 1):
            parent = _at(properties, path[depth], "property")
            if not isinstance(parent.payload, ObjectFields):
                raise ContractPathError(f"Property at {tuple(path[:depth + 1])} is not an object")
            properties = parent.payload.properties
        return properties

    def property_at(self, path: PropertyPath) -> Property:
        return _at(self._sibling_properties(path), path[-1], "property")

    def index_at(self, doc_index: int, index_index: int) -> Index:
        return _at(self.document_type(doc_index).indices, index_index, "index")

    def index_property_at(self, doc_index: int, index_index: int, prop_index: int) -> IndexProperty:
        return _at(self.index_at(doc_index, index_index).properties, prop_index, "index property")

    # ----------------------------
    # Structural edits
    # ----------------------------

    def add_document_type(self) -> int:
        self.contract.document_types.append(DocumentType(properties=[Property()]))
        return len(self.contract.document_types) - 1

    def remove_document_type(self, doc_index: int) -> None:
        self.document_type(doc_index)
        del self.contract.document_types[doc_index]

    def add_property(self, doc_index: int) -> int:
        properties = self.document_type(doc_index).properties
        properties.append(Property())
        return len(properties) - 1

    def remove_property(self, path: PropertyPath) -> None:
        """Removes the property at any depth. The derived `required` lists drop it with it."""
        properties = self._sibling_properties(path)
        _at(properties, path[-1], "property")
        del properties[path[-1]]

    def add_nested_property(self, parent_path: PropertyPath) -> int:
        parent = self.property_at(parent_path)
        if not isinstance(parent.payload, ObjectFields):
            raise ValueError(f"Only object properties can hold nested properties, '{parent.name}' is {parent.data_type.value}")
        parent.payload.properties.append(Property())
        return len(parent.payload.properties) - 1

    def remove_nested_property(self, path: PropertyPath) -> None:
        if len(path) < 3:
            raise ContractPathError(f"Property path {tuple(path)} does not point below a property")
        self.remove_property(path)

    def add_index(self, doc_index: int) -> int:
        indices = self.document_type(doc_index).indices
        indices.append(Index(properties=[IndexProperty()]))
        return len(indices) - 1

    def remove_index(self, doc_index: int, index_index: int) -> None:
        self.index_at(doc_index, index_index)
        del self.document_type(doc_index).indices[index_index]

    def add_index_property(self, doc_index: int, index_index: int) -> int:
        properties = self.index_at(doc_index, index_index).properties
        properties.append(IndexProperty())
        return len(properties) - 1

    def remove_index_property(self, doc_index: int, index_index: int, prop_index: int) -> None:
        self.index_property_at(doc_index, index_index, prop_index)
        del self.index_at(doc_index, index_index).properties[prop_index]

    # ----------------------------
    # Field edits
    # ----------------------------

    def set_document_name(self, doc_index: int, name: str) -> None:
        self.document_type(doc_index).name = name

    def set_document_comment(self, doc_index: int, comment: str) -> None:
        self.document_type(doc_index).comment = comment

    def set_system_property_required(self, doc_index: int, system_property: str, required: bool) -> None:
        doc_type = self.document_type(doc_index)
        if system_property == CREATED_AT:
            doc_type.created_at_required = required
        elif system_property == UPDATED_AT:
            doc_type.updated_at_required = required
        else:
            raise ValueError(f"Unknown system property: {system_property!r}")

    def set_property_name(self, path: PropertyPath, name: str) -> None:
        self.property_at(path).name = name

    def set_property_description(self, path: PropertyPath, description: Optional[str]) -> None:
        self.property_at(path).description = description

    def set_property_comment(self, path: PropertyPath, comment: Optional[str]) -> None:
        self.property_at(path).comment = comment

    def set_property_required(self, path: PropertyPath, required: bool) -> None:
        self.property_at(path).required = required

    def set_property_type(self, path: PropertyPath, data_type) -> None:
        """
        Switches the data type. All type-specific fields start over from the
        defaults of the new type; name, required, description and comment stay.
        """
        self.property_at(path).payload = default_payload(DataType.parse(data_type))

    def set_property_field(self, path: PropertyPath, field: str, value: Any) -> None:
        """
        Sets one type-specific field (e.g. "max_length", "byte_array").
        None clears numeric fields; "" leaves string fields out of the export.
        Out-of-range values raise pydantic's ValidationError, a ValueError,
        and leave the field unchanged.
        """
        prop = self.property_at(path)
        if field not in prop.payload.field_names():
            raise ValueError(f"'{field}' is not a field of {prop.data_type.label} properties")
        setattr(prop.payload, field, value)

    def set_index_name(self, doc_index: int, index_index: int, name: str) -> None:
        self.index_at(doc_index, index_index).name = name

    def set_index_unique(self, doc_index: int, index_index: int, unique: bool) -> None:
        self.index_at(doc_index, index_index).unique = unique

    def set_index_property(self, doc_index: int, index_index: int, prop_index: int, field_name: str) -> None:
        self.index_property_at(doc_index, index_index, prop_index).field_name = field_name

    # ----------------------------
    # Export, import, validate
    # ----------------------------

    def _export_and_validate(self) -> None:
        self.exported = export_contract(self.contract)
        self.schema = to_canonical_json(self.exported) if self.exported else ""

        report = validate_contract(self.exported, self.factory)
        self.error_messages = report.errors
        if report.construction_error and report.construction_error not in self.ai_error_messages:
            self.ai_error_messages.append(report.construction_error)

    def submit(self) -> None:
        self._export_and_validate()
        self.imported_json = ""

    def update_imported_json(self, text: str) -> None:
        self.imported_json = text
        self.schema = text

    def import_json(self, text: Optional[str] = None) -> None:
        """Replaces the tree with the parsed import text, then exports and validates it."""
        if text is not None:
            self.update_imported_json(text)
        self.contract = parse_contract_json(self.imported_json)
        self._export_and_validate()
        self.imported_json = ""

    def clear(self) -> None:
        """Back to a blank contract; prompt history and AI errors are kept."""
        self._reset()

    # ----------------------------
    # LLM generation
    # ----------------------------

    def update_prompt(self, text: str) -> None:
        self.prompt = text

    async def generate_schema(self) -> None:
        """
        One LLM round trip: compose the prompt, send it, then import the reply.
        The tree is only touched after the reply arrives.
        """
        if self.loading:
            print("WARN: A generation request is already in flight; ignoring this one.", file=sys.stderr)
            return

        prompt = compose_prompt(self.schema, self.prompt)
        self.temp_prompt = self.prompt
        self.ai_error_messages = []
        self.loading = True
        self.prompt = ""

        try:
            if self.gateway is None:
                raise LlmGatewayError("No LLM gateway configured.")
            schema = await self.gateway.generate(prompt)
        except LlmGatewayError as e:
            print(f"ERROR: Contract generation failed: {e}", file=sys.stderr)
            self.ai_error_messages = [str(e)]
        else:
            self.receive_schema(schema)
        finally:
            self.loading = False

    def receive_schema(self, schema: str) -> None:
        if self.temp_prompt is not None:
            self.history.append(self.temp_prompt)
            self.temp_prompt = None
        self.import_json(schema)

    # ----------------------------
    # Views
    # ----------------------------

    @property
    def document_types(self) -> Tuple[DocumentType, ...]:
        return tuple(self.contract.document_types)

    def json_output(self) -> str:
        """What the JSON text area shows: the export when there is one, otherwise the pending import text."""
        if self.exported:
            return to_pretty_json(self.exported)
        return self.imported_json

    def size_bytes(self) -> int:
        if not self.exported:
            return 0
        return len(to_canonical_json(self.exported).encode("utf-8"))

    def validation_status(self) -> Optional[str]:
        if self.imported_json:
            return None
        if self.error_messages:
            return STATUS_ERRORS
        if self.exported:
            return STATUS_PASSING
        return None

    def prompt_label(self) -> str:
        if not self.schema:
            return "Project description"
        return "Adjustments to existing contract"
