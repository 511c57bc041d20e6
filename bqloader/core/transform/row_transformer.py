"""
Row transformer: turns one raw JSON document into a sink-bound row.

The transformation is pure. Null-valued top-level keys are dropped so
they are never sent to the sink as explicit nulls; nested values pass
through untouched.
"""

import json
from typing import Any, NamedTuple

from bqloader.core.exceptions import ParseError


class TransformedRow(NamedTuple):
    """A row together with the original text it was parsed from."""

    row: dict[str, Any]
    original_content: str


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be stored by the sink
    raise ValueError(f"Non-standard JSON constant '{name}'")


def parse_document(payload: bytes) -> tuple[Any, str]:
    """
    Decode and parse a payload.

    Args:
        payload: Raw record bytes, expected to be UTF-8 JSON

    Returns:
        Tuple of (parsed value, decoded text)

    Raises:
        ParseError: kind "io" if the bytes are not UTF-8, kind "syntax"
                    if the text is not valid JSON
    """
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError("io", str(e)) from e

    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError("syntax", str(e)) from e

    return value, text


def drop_null_values(document: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the top-level mapping without null-valued keys."""
    return {key: value for key, value in document.items() if value is not None}


def transform(payload: bytes) -> TransformedRow:
    """
    Transform a record payload into a row.

    Args:
        payload: Raw record bytes

    Returns:
        TransformedRow with the null-free row and the original text

    Raises:
        ParseError: If the payload is unreadable, not JSON, or not a JSON object
    """
    value, text = parse_document(payload)

    if not isinstance(value, dict):
        raise ParseError(
            "structural",
            f"Expected a JSON object at top level, got {_json_type_name(value)}"
        )

    return TransformedRow(row=drop_null_values(value), original_content=text)


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return type(value).__name__
