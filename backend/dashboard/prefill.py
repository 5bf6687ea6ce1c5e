"""
RTSM info pre-filled from the uploaded protocol.
"""

from typing import Any, Dict, Optional, Sequence

from protocol_viewer.value_kinds import stringify_scalar

BUILT_ON_CHOICES = ("Pulse", "Elosity")

PROTOCOL_NUMBER_KEYS = ("Protocol", "Protocol Number", "ProtocolNumber")
PROTOCOL_DESCRIPTION_KEYS = ("Protocol Description", "ProtocolDescription", "description")


def first_present(document: Optional[Dict[str, Any]], keys: Sequence[str]) -> str:
    """Text of the first key holding a non-empty scalar, else ""."""
    for key in keys:
        value = (document or {}).get(key)
        if value in (None, "", False) or isinstance(value, (dict, list)):
            continue
        return stringify_scalar(value)
    return ""


def derive_rtsm_prefill(document: Optional[Dict[str, Any]], built_on: Optional[str]) -> Dict[str, str]:
    """
    Protocol number, description and platform for the RTSM page.

    Raises:
        ValueError: If ``built_on`` is not one of BUILT_ON_CHOICES.
    """
    if built_on not in BUILT_ON_CHOICES:
        raise ValueError("Please select whether this study is built on Pulse or Elosity.")
    return {
        "protocolNumber": first_present(document, PROTOCOL_NUMBER_KEYS),
        "protocolDescription": first_present(document, PROTOCOL_DESCRIPTION_KEYS),
        "builtOn": built_on,
    }


def merge_prefill(rtsm_info: Optional[Dict[str, Any]], prefill: Dict[str, str]) -> Dict[str, Any]:
    """Apply a prefill to stored RTSM info without erasing typed values."""
    merged = dict(rtsm_info or {})
    merged.setdefault("formData", {})
    for key, value in prefill.items():
        if value or key not in merged:
            merged[key] = value
    return merged
