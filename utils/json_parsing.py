"""Lenient JSON extraction for model text output."""

import json
import re
from typing import Any, Dict, Optional

_FENCED_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


def _first_object_block(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` block in ``text``."""
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
                return text[start : index + 1]
    return None


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object from model output.

    Accepts pure JSON, JSON inside code fences, or JSON embedded in prose.
    Returns None when no object can be recovered.
    """
    if not text or not text.strip():
        return None
    candidates = [text.strip()]
    fenced = _FENCED_RE.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    block = _first_object_block(text)
    if block:
        candidates.append(block)
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
