# utils.py
# Contains helper functions for JSON rendering, value coercion and text extraction.

import json
from typing import Any, List, Optional

from schema import I32_MAX, I32_MIN, U32_MAX


# ----------------------------
# JSON rendering
# ----------------------------

def to_canonical_json(data: Any) -> str:
    """Compact rendering used for byte comparisons, sizes and prompts."""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def to_pretty_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def json_pointer(path) -> str:
    """Builds an RFC 6901 pointer ("/documents/nft/properties/name") from path segments."""
    parts = [str(p).replace("~", "~0").replace("/", "~1") for p in path]
    return "".join("/" + p for p in parts)


def extract_json_object(text: Optional[str]) -> Optional[str]:
    """
    Returns the substring from the first '{' to the last '}' of `text`, or None
    when there is no such span. The span is not checked for validity.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


# ----------------------------
# Tolerant value coercion
# ----------------------------

def _is_json_integer(value: Any) -> bool:
    # bool is an int subclass but a JSON boolean is not a number
    return isinstance(value, int) and not isinstance(value, bool)


def coerce_u32(value: Any) -> Optional[int]:
    """JSON integer -> unsigned 32-bit value; out-of-range integers clamp to 0, anything else is unset."""
    if not _is_json_integer(value):
        return None
    return value if 0 <= value <= U32_MAX else 0


def coerce_i32(value: Any) -> Optional[int]:
    """JSON integer -> signed 32-bit value; out-of-range integers clamp to 0, anything else is unset."""
    if not _is_json_integer(value):
        return None
    return value if I32_MIN <= value <= I32_MAX else 0


def optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def optional_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def string_list(value: Any) -> Optional[List[str]]:
    """The string members of a JSON array, or None when `value` is not an array."""
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]
