"""
Unit tests for uploaded protocol file parsing.
"""

import pytest

from protocol_viewer import ProtocolUploadError, parse_protocol_bytes


class TestParseProtocolBytes:
    """Tests for parse_protocol_bytes."""

    def test_object(self):
        assert parse_protocol_bytes(b'{"General": {"Phase": "3"}}') == {"General": {"Phase": "3"}}

    def test_surrounding_whitespace_and_bom(self):
        assert parse_protocol_bytes(b"\xef\xbb\xbf\n  {\"a\": 1}  \n") == {"a": 1}

    def test_key_order_kept(self):
        assert list(parse_protocol_bytes(b'{"z": 1, "a": 2, "m": 3}')) == ["z", "a", "m"]

    def test_embedded_json_left_for_normalizer(self):
        assert parse_protocol_bytes(b'{"Visits": "[{\\"V\\": 1}]"}') == {"Visits": '[{"V": 1}]'}

    @pytest.mark.parametrize("data, message", [
        (b"", "Empty JSON file"),
        (b"   \n\t", "Empty JSON file"),
        (b"\xff\xfe{}", "File is not valid UTF-8"),
        (b"{\"a\": }", "Invalid JSON format"),
        (b"{'a': 1}", "Invalid JSON format"),
        (b"[1, 2]", "Protocol JSON must be an object"),
        (b"\"text\"", "Protocol JSON must be an object"),
        (b"null", "Protocol JSON must be an object"),
        (b'{"General": {"Dose": NaN}}', "Invalid JSON format"),
        (b'{"a": Infinity}', "Invalid JSON format"),
        (b'{"a": -Infinity}', "Invalid JSON format"),
    ])
    def test_rejected(self, data, message):
        with pytest.raises(ProtocolUploadError, match=message):
            parse_protocol_bytes(data)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_protocol_bytes(b"nope")
