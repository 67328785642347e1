"""
Analysis Engine - JSON Extraction.

Recover the first well-formed JSON object from free-form
provider text. Candidates are tried in order:

1. Fenced ```json block
2. Balanced-brace scan starting at each '{'
3. Span from the first '{' to the last '}'

Trailing commas before '}' or ']' are stripped before decoding.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, Optional

from core.exceptions import ProviderResponseError


logger = logging.getLogger(__name__)


FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_trailing_commas(text: str) -> str:
    return TRAILING_COMMA.sub(r"\1", text)


def _balanced_object_at(text: str, start: int) -> Optional[str]:
    """Return the brace-balanced span starting at text[start] == '{'."""
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


def _candidates(text: str) -> Iterator[str]:
    for match in FENCED_JSON.finditer(text):
        yield match.group(1)

    position = text.find("{")
    while position != -1:
        span = _balanced_object_at(text, position)
        if span:
            yield span
        position = text.find("{", position + 1)

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        yield text[first:last + 1]


def _decode(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(strip_trailing_commas(candidate.strip()))
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """
    Extract the first decodable JSON object from text.

    Raises:
        ProviderResponseError: No candidate decodes to a JSON object
    """
    if not text:
        raise ProviderResponseError("Empty provider response")

    for candidate in _candidates(text):
        decoded = _decode(candidate)
        if decoded is not None:
            return decoded

    logger.warning(f"No JSON object found in provider response ({len(text)} chars)")
    raise ProviderResponseError("No JSON object in provider response", raw_excerpt=text)


__all__ = ["extract_json_object", "strip_trailing_commas"]
