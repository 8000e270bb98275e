"""Two-stage JSON parsing for inference responses: strict, then balanced-brace recovery."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from loguru import logger

from finpilot.core.errors import ResponseFormatError

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def extract_balanced_object(text: str) -> Optional[Any]:
    """Parse the first brace-balanced ``{...}`` span of *text* that is valid JSON."""
    for start, ch in enumerate(text):
        if ch != "{":
            continue
        candidate = _balanced_span(text, start)
        if candidate is None:
            continue
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
    return None


def _balanced_span(text: str, start: int) -> Optional[str]:
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]

        if escape:
            escape = False
            continue
        if ch == "\\":
            if in_string:
                escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def parse_with_recovery(text: str) -> Any:
    """
    Strip code fences and parse *text* as JSON.

    On a strict-parse failure, fall back to the first balanced ``{...}`` span.
    Raises ResponseFormatError when neither stage yields JSON.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ResponseFormatError("Empty response from inference service")
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("Strict JSON parse failed ({}); trying brace recovery. head={!r}", e, cleaned[:200])

    recovered = extract_balanced_object(cleaned)
    if recovered is None:
        raise ResponseFormatError("Failed to parse inference response as JSON")
    return recovered
