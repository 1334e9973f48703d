# exporter.py
# Serializes the editor tree into the canonical data contract JSON.

from typing import Any, Dict, List

from schema import Contract, DocumentType, Index, ObjectFields, Property


def export_contract(contract: Contract) -> Dict[str, Any]:
    """
    Returns the contract as a mapping of document type name -> document schema.
    Document types keep their editor order.
    """
    documents: Dict[str, Any] = {}
    for doc_type in contract.document_types:
        documents[doc_type.name] = export_document_type(doc_type)
    return documents


def export_document_type(doc_type: DocumentType) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "type": "object",
        "properties": export_properties(doc_type.properties),
    }
    if doc_type.indices:
        body["indices"] = [export_index(index) for index in doc_type.indices]
    required = doc_type.required
    if required:
        body["required"] = required
    body["additionalProperties"] = False
    if doc_type.comment:
        body["$comment"] = doc_type.comment
    return body


def export_properties(properties: List[Property]) -> Dict[str, Any]:
    return {prop.name: export_property(prop) for prop in properties}


def export_property(prop: Property) -> Dict[str, Any]:
    body: Dict[str, Any] = {"type": prop.data_type.value}
    if prop.description:
        body["description"] = prop.description

    payload = prop.payload
    if isinstance(payload, ObjectFields):
        body["properties"] = export_properties(payload.properties)
        _write_type_fields(body, payload)
        rec_required = payload.rec_required
        if rec_required:
            body["required"] = rec_required
        body["additionalProperties"] = False
    else:
        _write_type_fields(body, payload)

    if prop.comment:
        body["$comment"] = prop.comment
    return body


def _write_type_fields(body: Dict[str, Any], payload) -> None:
    for attr, key in payload.JSON_FIELDS:
        value = getattr(payload, attr)
        # empty strings from cleared form inputs count as unset
        if value is None or value == "":
            continue
        body[key] = value


def export_index(index: Index) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "name": index.name,
        "properties": [{p.field_name: p.sort_order} for p in index.properties],
    }
    if index.unique:
        body["unique"] = True
    return body
