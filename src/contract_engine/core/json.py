"""Fast, type-safe JSON parsing for generative backend output."""

from typing import Any
import json

import msgspec
import orjson
from json_repair import repair_json


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block (```json ... ```) if present."""
    working = text.strip()
    if "```" not in working:
        return working

    if "```json" in working:
        start = working.find("```json") + 7
    else:
        start = working.find("```") + 3

    end = working.find("```", start)
    if end == -1:
        return working[start:].strip()
    return working[start:end].strip()


def _expect_dict(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def extract_json(text: str, repair: bool = True) -> dict[str, Any]:
    """
    Extract and parse a JSON object from model output.

    Args:
        text: Text containing JSON, optionally fenced in markdown
        repair: Attempt to repair invalid JSON with json_repair

    Returns:
        Parsed JSON dictionary

    Raises:
        JSONParseError: If no object can be recovered
    """
    if not isinstance(text, str) or not text.strip():
        raise JSONParseError("Empty response")

    working = strip_code_fences(text)
    start = working.find("{")
    end = working.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise JSONParseError("No JSON object found in text")

    json_str = working[start : end + 1]

    # msgspec first (fastest)
    try:
        return _expect_dict(msgspec.json.decode(json_str.encode("utf-8")))
    except msgspec.DecodeError as e:
        if not repair:
            raise JSONParseError(f"Invalid JSON: {e}", e)

    # Last resort: json_repair
    try:
        repaired = repair_json(json_str)
        return _expect_dict(json.loads(repaired))
    except JSONParseError:
        raise
    except Exception as repair_error:
        raise JSONParseError(f"JSON repair failed: {repair_error}", repair_error)


def safe_json_dumps(obj: Any, **kwargs: Any) -> str:
    """
    Encode object to JSON string.

    Args:
        obj: Object to encode
        **kwargs: Additional arguments (indent)

    Returns:
        JSON string
    """
    indent = kwargs.get("indent", 0)

    if indent == 0:
        try:
            return orjson.dumps(obj).decode("utf-8")
        except (TypeError, ValueError):
            # integers outside 64-bit range, non-str keys
            pass

    return json.dumps(obj, indent=indent if indent > 0 else None, default=str)
