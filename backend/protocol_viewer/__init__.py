"""
Protocol Viewer - generic JSON-to-form pipeline for protocol documents.

Takes an uploaded protocol document of unknown shape and turns it into
something the dashboard can show and edit section by section.

Components:
    - json_sniffer: detect and parse JSON embedded in string values
    - normalizer: recursively unwrap embedded JSON strings
    - value_kinds: classify a value once (null/bool/number/text/record/list)
    - columns: table column inference for arrays of records
    - renderer: read-only DisplayTree
    - editor: edit sessions and the one-section-at-a-time controller
    - field_counter: total vs. filled leaf counts for progress reporting
    - upload: strict parsing of uploaded protocol files

Usage:
    from protocol_viewer import normalize_protocol_data, render_value, count_fields

    document = normalize_protocol_data(json.loads(raw_bytes))
    for section, value in document.items():
        tree = render_value(value, section)
    progress = count_fields(document)
    print(f"{progress.percent}% complete")
"""

from .json_sniffer import try_parse_json_string
from .normalizer import normalize_protocol_data
from .value_kinds import ValueKind, kind_of
from .columns import VISIT_SCHEDULE_COLUMNS, columns_for_key, infer_columns
from .renderer import render_value
from .editor import (
    EditController,
    EditSession,
    EditShapeError,
    JsonEditError,
    apply_section_edit,
)
from .field_counter import FieldCount, count_fields
from .upload import ProtocolUploadError, parse_protocol_bytes

__version__ = "1.0.0"

__all__ = [
    "try_parse_json_string",
    "normalize_protocol_data",
    "ValueKind",
    "kind_of",
    "VISIT_SCHEDULE_COLUMNS",
    "columns_for_key",
    "infer_columns",
    "render_value",
    "EditController",
    "EditSession",
    "EditShapeError",
    "JsonEditError",
    "apply_section_edit",
    "FieldCount",
    "count_fields",
    "ProtocolUploadError",
    "parse_protocol_bytes",
]
