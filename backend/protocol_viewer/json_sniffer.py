"""
Detection of JSON documents embedded in string values.

Extracted protocol files frequently carry whole sections as strings, often
still wrapped the way an LLM returned them:

    "```json\n{\"Visit\": \"V1\"}\n```"
    "JSON: [1, 2, 3]"
    "Here is the table: {\"a\": 1} (end)"

try_parse_json_string() recovers the value in all of these cases and
returns None for anything else. It never raises.
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?```$")
_JSON_LABEL = re.compile(r"^\s*json\s*[:\-]?\s*", re.IGNORECASE)
_FIRST_OPENER = re.compile(r"[\{\[]")


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity, which are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def loads_strict(text: str) -> Any:
    """json.loads that rejects NaN, Infinity and -Infinity."""
    return json.loads(text, parse_constant=_reject_constant)


def strip_json_wrapping(text: str) -> str:
    """Remove code fences and a leading ``json`` label, trimming the result."""
    s = text.strip()
    if s.startswith("```"):
        s = _OPENING_FENCE.sub("", s)
        s = _CLOSING_FENCE.sub("", s)
        s = s.strip()
    return _JSON_LABEL.sub("", s, count=1).strip()


def _extract_bracketed(text: str) -> Optional[str]:
    """Slice from the first ``{``/``[`` to the last ``}``/``]``."""
    match = _FIRST_OPENER.search(text)
    if not match:
        return None
    start = match.start()
    end = max(text.rfind("}"), text.rfind("]"))
    if end <= start:
        return None
    return text[start:end + 1]


def try_parse_json_string(value: Any) -> Optional[Any]:
    """
    Parse ``value`` if it is a string holding a JSON document.

    Args:
        value: Any value. Only strings are considered.

    Returns:
        The parsed value, or None when ``value`` is not a string, is blank,
        or does not contain parseable JSON. A string holding the literal
        ``null`` also yields None.
    """
    if not isinstance(value, str):
        return None
    s = strip_json_wrapping(value)
    if not s:
        return None

    try:
        return loads_strict(s)
    except ValueError:
        pass

    candidate = _extract_bracketed(s)
    if candidate is None:
        return None
    try:
        return loads_strict(candidate)
    except ValueError:
        logger.debug(f"Bracketed candidate is not JSON: {candidate[:80]!r}")
        return None
