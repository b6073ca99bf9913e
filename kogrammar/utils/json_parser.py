"""Shared utility for parsing JSON arrays from LLM responses.

Models routinely wrap the array in a code fence, add prose around it, or run
out of output tokens mid-object. ``parse_json_array`` tries progressively more
aggressive repairs before giving up:

1. Direct JSON: [{"key": "value"}]
2. Markdown fence: ```json\n[...]\n```
3. Embedded JSON: text before [{"key": "value"}] text after
4. Truncated JSON: [{"a": 1}, {"a": 2}, {"a":  -> cut after the last complete object
5. Trailing comma: [{"a": 1},  -> drop the comma and close
6. Last resort: cut at the last top-level comma and close
"""

import json
import logging
import re
from typing import Any

from kogrammar.exceptions import AIResponseParseFailure

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_OPEN_FENCE_RE = re.compile(r"^```(?:json)?\s*")


def _loads_array(candidate: str) -> list[Any] | None:
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return None


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```json fence, including an unterminated one."""
    content = content.strip()
    match = _FENCE_RE.search(content)
    if match:
        return match.group(1).strip()
    return _OPEN_FENCE_RE.sub("", content).strip()


def scan_top_level(array_text: str) -> tuple[int, int]:
    """Scan a (possibly truncated) JSON array.

    Returns ``(last_object_end, last_comma)``: the index just past the last
    object closed at the top level of the array and the index of the last
    comma at that level, or -1 for either when absent. Braces and commas
    inside strings are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    last_object_end = -1
    last_comma = -1

    for i, char in enumerate(array_text):
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
        elif char in "[{":
            depth += 1
        elif char in "]}":
            depth -= 1
            if char == "}" and depth == 1:
                last_object_end = i + 1
        elif char == "," and depth == 1:
            last_comma = i

    return last_object_end, last_comma


def _truncation_candidates(array_text: str) -> list[tuple[str, str]]:
    """Repair attempts for an array that does not end in ``]``, in order."""
    candidates: list[tuple[str, str]] = []

    last_object_end, last_comma = scan_top_level(array_text)
    if last_object_end > 0:
        candidates.append(("last complete object", array_text[:last_object_end] + "]"))
    else:
        last_brace = array_text.rfind("}")
        if last_brace > 0:
            candidates.append(("last closing brace", array_text[: last_brace + 1] + "]"))

    stripped = array_text.rstrip()
    if stripped.endswith(","):
        candidates.append(("trailing comma", stripped[:-1] + "]"))

    if last_comma > 0:
        candidates.append(("last top-level comma", array_text[:last_comma] + "]"))

    return candidates


def parse_json_array(content: str) -> list[Any]:
    """Parse a JSON array out of a model response.

    Raises:
        AIResponseParseFailure: when no recovery step yields an array.
    """
    data = _loads_array(content.strip())
    if data is not None:
        return data

    cleaned = strip_code_fence(content)
    data = _loads_array(cleaned)
    if data is not None:
        logger.debug("Parsed JSON after stripping code fence")
        return data

    start = cleaned.find("[")
    if start == -1:
        logger.warning("No JSON array in LLM response: %s", content[:200])
        raise AIResponseParseFailure("Response contains no JSON array", raw=content)

    end = cleaned.rfind("]")
    if end > start:
        data = _loads_array(cleaned[start : end + 1])
        if data is not None:
            logger.debug("Parsed JSON array embedded in surrounding text")
            return data

    array_text = cleaned[start:]
    if not array_text.rstrip().endswith("]"):
        logger.warning("LLM response appears truncated, attempting recovery")

    for strategy, candidate in _truncation_candidates(array_text):
        data = _loads_array(candidate)
        if data is not None:
            logger.info("Recovered truncated JSON via %s (%d items)", strategy, len(data))
            return data

    logger.warning("Could not parse JSON from LLM response: %s", content[:200])
    raise AIResponseParseFailure("Could not parse JSON array from response", raw=content)
