"""Recovery of structured JSON from raw model output.

Models wrap JSON in prose, code fences, or stop mid-document when they hit
their output limit. These helpers are pure string functions:
- locate the payload (first `{` or `[`)
- close truncated strings and containers
- degrade to a placeholder instead of failing the invocation
"""

import json
from typing import Any

from content_forge.utils.logging import get_logger


logger = get_logger(__name__)

PLACEHOLDER_TITLE = "Incomplete generation"
PLACEHOLDER_HEADING = "解析失败"
PLACEHOLDER_PREVIEW_CHARS = 50

_CLOSERS = {"{": "}", "[": "]"}


def find_payload_start(text: str) -> int:
    """Index of the first `{` or `[`, whichever comes first, or -1."""
    positions = [i for i in (text.find("{"), text.find("[")) if i != -1]
    return min(positions) if positions else -1


def repair_truncated_json(text: str) -> str:
    """
    Close a JSON document that was cut off mid-stream.

    Scans the text tracking string and escape state:
    - an unterminated string gets its closing quote
    - a dangling trailing comma is dropped
    - every unclosed `[` / `{` is closed, innermost first

    Text that is already balanced is returned unchanged (apart from
    trailing whitespace). The result is not guaranteed to parse; callers
    still need to handle `json.JSONDecodeError`.
    """
    stack: list[str] = []
    in_string = False
    escape = False

    for char in text:
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]") and stack and stack[-1] == char:
            stack.pop()

    repaired = text.rstrip()
    if in_string:
        if escape:
            repaired = repaired[:-1]
        repaired += '"'
    elif repaired.endswith(","):
        repaired = repaired[:-1]

    return repaired + "".join(reversed(stack))


def placeholder_document(raw: str) -> dict[str, Any]:
    """Stand-in object returned when structured output cannot be recovered."""
    return {
        "title": PLACEHOLDER_TITLE,
        "sections": [
            {
                "heading": PLACEHOLDER_HEADING,
                "key_points": [raw[:PLACEHOLDER_PREVIEW_CHARS]],
            }
        ],
    }


def extract_json_payload(raw: str) -> tuple[str, bool]:
    """
    Cut the JSON payload out of raw model output.

    Returns:
        Tuple of (payload text, whether an array was detected)
    """
    start = find_payload_start(raw)
    if start == -1:
        return raw.strip(), False

    payload = raw[start:].strip()
    is_array = payload.startswith("[")

    # A truncated object may still end on a closer, e.g. `{"a":[]`
    payload = repair_truncated_json(payload)

    end = payload.rfind("]" if is_array else "}")
    if end != -1:
        payload = payload[: end + 1]
    return payload, is_array


def parse_structured_output(raw: str) -> Any:
    """
    Parse model output declared as JSON, never raising.

    Falls back to `[]` when an array was expected, or to
    `placeholder_document(raw)` otherwise.
    """
    payload, is_array = extract_json_payload(raw)
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        logger.error(
            "Structured output unrecoverable, using placeholder",
            error=f"{e.msg} at position {e.pos}",
            expected="array" if is_array else "object",
            raw_preview=raw[:200],
        )
        return [] if is_array else placeholder_document(raw)
