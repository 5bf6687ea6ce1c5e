"""
Recursive normalization of protocol documents.

Every string held by a record whose content is itself a JSON document is
replaced by the parsed value, and the parsed value is normalized in turn.
The input is never mutated.
"""

from typing import Any

from .json_sniffer import try_parse_json_string


def _unwrap_embedded(text: str) -> Any:
    """Parse ``text`` until the result stops being an embedded JSON string."""
    current: Any = text
    while isinstance(current, str):
        parsed = try_parse_json_string(current)
        if parsed is None:
            return current
        current = parsed
    return current


def normalize_protocol_data(value: Any) -> Any:
    """
    Return a copy of ``value`` with embedded JSON strings unwrapped.

    - lists: each element normalized, order and length preserved
    - dicts: same keys in the same order; string values that parse as JSON
      become the normalized parsed value, other strings are kept as-is
    - anything else is returned unchanged

    normalize_protocol_data(normalize_protocol_data(x)) == normalize_protocol_data(x)
    """
    if isinstance(value, list):
        return [normalize_protocol_data(item) for item in value]
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            if isinstance(item, str):
                unwrapped = _unwrap_embedded(item)
                out[key] = unwrapped if isinstance(unwrapped, str) else normalize_protocol_data(unwrapped)
            else:
                out[key] = normalize_protocol_data(item)
        return out
    return value
