"""
Unit tests for RTSM pre-fill from the protocol document.
"""

import pytest

from dashboard.prefill import derive_rtsm_prefill, first_present, merge_prefill


class TestDerivePrefill:
    """Tests for derive_rtsm_prefill."""

    def test_requires_platform_choice(self):
        with pytest.raises(ValueError, match="Pulse or Elosity"):
            derive_rtsm_prefill({"Protocol": "ABC-123"}, None)

    def test_rejects_unknown_platform(self):
        with pytest.raises(ValueError):
            derive_rtsm_prefill({}, "Other")

    def test_uses_first_known_key(self):
        document = {"Protocol Number": "XYZ-9", "ProtocolNumber": "ignored", "description": "Phase 3 study"}
        assert derive_rtsm_prefill(document, "Elosity") == {
            "protocolNumber": "XYZ-9",
            "protocolDescription": "Phase 3 study",
            "builtOn": "Elosity",
        }

    def test_missing_keys_give_empty_text(self):
        prefill = derive_rtsm_prefill({"General": {"Protocol": "nested"}}, "Pulse")
        assert prefill["protocolNumber"] == ""
        assert prefill["protocolDescription"] == ""


class TestFirstPresent:
    """Tests for first_present."""

    def test_skips_blank_and_complex_values(self):
        document = {"Protocol": "", "Protocol Number": {"id": 1}, "ProtocolNumber": 42}
        assert first_present(document, ("Protocol", "Protocol Number", "ProtocolNumber")) == "42"

    def test_none_document(self):
        assert first_present(None, ("Protocol",)) == ""


class TestMergePrefill:
    """Tests for merge_prefill."""

    def test_keeps_typed_values_over_blank_prefill(self):
        stored = {"protocolNumber": "TYPED", "protocolDescription": "", "builtOn": "", "formData": {"x": 1}}
        merged = merge_prefill(stored, {"protocolNumber": "", "protocolDescription": "From protocol", "builtOn": "Pulse"})
        assert merged == {
            "protocolNumber": "TYPED",
            "protocolDescription": "From protocol",
            "builtOn": "Pulse",
            "formData": {"x": 1},
        }

    def test_no_stored_info(self):
        merged = merge_prefill(None, {"protocolNumber": "", "protocolDescription": "", "builtOn": "Pulse"})
        assert merged["formData"] == {}
        assert merged["protocolNumber"] == ""
