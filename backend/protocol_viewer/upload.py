"""
Parsing of uploaded protocol files.

The boundary contract is one UTF-8 JSON object. Anything else is rejected
whole; no partial document is ever produced.
"""

from typing import Any, Dict

from .json_sniffer import loads_strict


class ProtocolUploadError(ValueError):
    """Uploaded bytes are not a protocol JSON object."""


def parse_protocol_bytes(data: bytes) -> Dict[str, Any]:
    """
    Decode ``data`` as UTF-8 (a leading BOM is allowed) and parse one JSON object.

    Raises:
        ProtocolUploadError: With a user-facing message.
    """
    try:
        text = data.decode("utf-8-sig").strip()
    except UnicodeDecodeError:
        raise ProtocolUploadError("File is not valid UTF-8")
    if not text:
        raise ProtocolUploadError("Empty JSON file")
    try:
        parsed = loads_strict(text)
    except ValueError:
        raise ProtocolUploadError("Invalid JSON format")
    if not isinstance(parsed, dict):
        raise ProtocolUploadError("Protocol JSON must be an object")
    return parsed
