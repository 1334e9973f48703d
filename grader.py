# grader.py
# Validates an exported data contract against the platform rules and turns the
# diagnostics into messages the editor can show.

import re
import sys
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from platform_validator import (
    BasicError,
    ConsensusError,
    DataContractCreateError,
    DataContractFactory,
    Identifier,
    JsonSchemaError,
)

# The only validator wording the editor depends on.
ITEMS_REQUIRED_RE = re.compile(r"""["']items["'] is a required property""")

BYTE_ARRAY_GUIDANCE = (
    'JsonSchemaError: "array" properties must specify "byteArray": true. '
    "In the dynamic form, just change the property from an array to a string "
    "and back to an array again, and resubmit."
)


class ValidationReport(BaseModel):
    errors: List[str] = Field(default_factory=list, description="Deduplicated, user-facing basic errors.")
    construction_error: Optional[str] = Field(None, description="Set when no contract could be built from the input.")


def validate_contract(documents: Dict[str, Any], factory: Optional[DataContractFactory] = None) -> ValidationReport:
    """
    Builds a contract for a fresh owner identifier and validates it.
    Never raises for bad input: construction failures are reported in the result.
    """
    factory = factory or DataContractFactory()
    owner_id = Identifier.random()
    try:
        contract = factory.create(owner_id, documents)
    except DataContractCreateError as e:
        print(f"WARN: Could not build a data contract from the input: {e}", file=sys.stderr)
        return ValidationReport(construction_error=str(e))

    result = contract.validate(contract.to_cleaned_object())
    return ValidationReport(errors=extract_basic_error_messages(result.errors))


def extract_basic_error_messages(errors: Iterable[ConsensusError]) -> List[str]:
    """Keeps basic errors only, formats them and drops duplicates."""
    messages = {format_basic_error(error) for error in errors if isinstance(error, BasicError)}
    return sorted(messages)


def format_basic_error(error: BasicError) -> str:
    if isinstance(error, JsonSchemaError):
        if ITEMS_REQUIRED_RE.search(error.summary):
            return BYTE_ARRAY_GUIDANCE
        return f"JsonSchemaError: {error.summary}, Path: {error.instance_path}"
    return str(error)

