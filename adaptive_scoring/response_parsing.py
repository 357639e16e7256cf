"""
Helpers for turning free-form LLM output into structured values.
"""

import json
import re
from typing import Optional

from adaptive_scoring.exceptions import ResponseParseError, ResponseValidationError

_JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)
_YES_NO_PATTERN = re.compile(r"\b(yes|no)\b")


def _strip_code_fence(response: str) -> str:
    response = response.strip()
    if response.startswith("```"):
        lines = response.split("\n")
        if lines[-1].strip().startswith("```"):
            lines = lines[1:-1]
        else:
            lines = lines[1:]
        response = "\n".join(lines).strip()
    return response


def extract_json_object(response: str) -> dict:
    """
    Parse a JSON object from an LLM response.

    Accepts a bare object, one wrapped in a markdown code block, or one
    embedded in surrounding prose.

    Raises:
        ResponseParseError: if no JSON object can be recovered.
    """
    if not response or not response.strip():
        raise ResponseParseError("Empty response")

    text = _strip_code_fence(response)
    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_PATTERN.search(text)
        if match is None:
            raise ResponseParseError("No JSON object found in response")
        try:
            result = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ResponseParseError(f"Invalid JSON in response: {e}")

    if not isinstance(result, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(result).__name__}")
    return result


def parse_yes_no(response: str) -> Optional[bool]:
    """
    Read a strict yes/no verdict.

    Returns True for "yes", False for "no", and None when the response
    contains both words or neither.
    """
    tokens = set(_YES_NO_PATTERN.findall((response or "").lower()))
    if tokens == {"yes"}:
        return True
    if tokens == {"no"}:
        return False
    return None


def require_string_list(data: dict, key: str) -> list:
    """Fetch a list of strings from a parsed response, dropping blank entries."""
    value = data.get(key)
    if not isinstance(value, list):
        raise ResponseValidationError(f"'{key}' must be a list")
    if not all(isinstance(item, str) for item in value):
        raise ResponseValidationError(f"'{key}' must contain only strings")
    return [item.strip() for item in value if item.strip()]


def require_non_empty_string(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ResponseValidationError(f"Missing or invalid '{key}' in response")
    return value.strip()


def require_int_in_range(data: dict, key: str, low: int, high: int) -> int:
    """Fetch an integer within [low, high]; integral floats such as 7.0 are accepted."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseValidationError(f"Invalid '{key}' in response: {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ResponseValidationError(f"'{key}' must be an integer, got {value}")
        value = int(value)
    if not low <= value <= high:
        raise ResponseValidationError(f"'{key}' must be between {low} and {high}, got {value}")
    return value
