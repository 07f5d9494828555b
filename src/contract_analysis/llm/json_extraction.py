"""Extraction of a JSON object embedded in free-form model output."""

import json
from typing import Any, Dict, Optional


def find_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON string literals are ignored. Returns None when no
    opening brace is ever closed.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the first balanced JSON object found in ``text``.

    Raises:
        ValueError: If no balanced object exists or it is not valid JSON.
    """
    span = find_json_object(text or "")
    if span is None:
        raise ValueError("No JSON object found in model output")
    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in model output: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Model output JSON is not an object")
    return data
