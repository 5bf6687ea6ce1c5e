"""
Unit tests for EditSession, EditController and apply_section_edit.
"""

import copy
import json

import pytest

from protocol_viewer.editor import (
    EditController,
    EditSession,
    EditShapeError,
    FieldControl,
    JsonEditError,
    ROOT,
    apply_section_edit,
    is_boolean_like,
    parse_raw_json,
)
from protocol_viewer.value_kinds import ValueKind


@pytest.fixture
def protocol_document():
    """A small normalized protocol document."""
    return {
        "General": {"Protocol": "ABC-123", "Blinded": "Yes", "Adaptive": False, "Sites": 12},
        "Visit Schedule": [
            {"Visit": "V1", "VisitWeek": 0, "KitType": "A"},
            {"Visit": "V2", "VisitWeek": 4, "KitType": "B"},
        ],
        "Countries": ["US", "DE"],
        "Title": "A Phase 3 Study",
        "Schema": {"version": 1},
    }


class TestRecordEditing:
    """Tests for editing record sections."""

    def test_toggle_yes_no_keeps_string(self):
        session = EditSession({"name": "x", "flag": "Yes"})
        session.toggle("flag")
        assert session.commit() == {"name": "x", "flag": "No"}

    def test_toggle_no_becomes_yes(self):
        session = EditSession({"flag": "no"})
        session.toggle("flag")
        assert session.value == {"flag": "Yes"}

    def test_toggle_bool_keeps_bool(self):
        session = EditSession({"flag": False})
        session.toggle("flag")
        assert session.value == {"flag": True}

    def test_toggle_rejects_non_boolean(self):
        session = EditSession({"name": "x"})
        with pytest.raises(EditShapeError):
            session.toggle("name")

    def test_set_text(self):
        session = EditSession({"name": "x"})
        session.set_text("name", "y")
        assert session.value == {"name": "y"}

    def test_set_text_unchanged_is_noop(self):
        """Re-submitting the displayed text does not change types."""
        session = EditSession({"count": 3, "missing": None})
        session.set_text("count", "3")
        session.set_text("missing", "")
        assert session.value == {"count": 3, "missing": None}
        assert not session.is_dirty

    def test_set_text_keeps_numbers_numeric(self):
        session = EditSession({"count": 3, "ratio": 0.5})
        session.set_text("count", "7")
        session.set_text("ratio", "0.75")
        assert session.value == {"count": 7, "ratio": 0.75}

    def test_set_text_non_numeric_becomes_text(self):
        session = EditSession({"count": 3})
        session.set_text("count", "about three")
        assert session.value == {"count": "about three"}

    @pytest.mark.parametrize("text", ["nan", "NaN", "inf", "-Infinity", "1e999", "1_000", "0x10"])
    def test_set_text_non_json_numbers_stay_text(self, text):
        """Only finite JSON numbers keep a numeric field numeric."""
        session = EditSession({"Dose": 5})
        session.set_text("Dose", text)
        assert session.value == {"Dose": text}

    def test_set_text_float_field(self):
        session = EditSession({"ratio": 0.5})
        session.set_text("ratio", " 2 ")
        assert session.value == {"ratio": 2.0}
        assert isinstance(session.value["ratio"], float)

    def test_toggle_yes_with_trailing_newline(self):
        session = EditSession({"flag": "Yes\n"})
        session.toggle("flag")
        assert session.value == {"flag": "No"}

    def test_set_text_rejects_nested(self):
        session = EditSession({"arms": [1, 2]})
        with pytest.raises(EditShapeError):
            session.set_text("arms", "1,2")

    def test_missing_key(self):
        session = EditSession({"a": 1})
        with pytest.raises(KeyError):
            session.set_text("b", "x")

    def test_render_fields(self):
        session = EditSession({"flag": "Yes", "on": True, "arms": [1, 2], "design": {"a": 1}, "name": "x"})
        fields = {f.key: f for f in session.render().fields}
        assert fields["flag"].control == FieldControl.TOGGLE and fields["flag"].checked is True
        assert fields["on"].control == FieldControl.TOGGLE and fields["on"].display == "true"
        assert fields["arms"].control == FieldControl.COMPLEX and fields["arms"].display == "2 item(s)"
        assert fields["design"].display == "Object"
        assert fields["name"].control == FieldControl.TEXT and fields["name"].display == "x"

    def test_embedded_json_string_is_edited_as_structure(self):
        session = EditSession('```json\n{"a": "Yes"}\n```')
        assert session.kind == ValueKind.RECORD
        session.toggle("a")
        assert session.commit() == {"a": "No"}


class TestRawJsonEditor:
    """Tests for the raw JSON escape hatch."""

    def test_field_commit(self):
        session = EditSession({"arms": [{"Name": "A"}], "other": 1})
        text = session.open_raw_editor("arms")
        assert json.loads(text) == [{"Name": "A"}]
        session.set_raw_text('[{"Name": "A"}, {"Name": "B"}]')
        session.commit_raw()
        assert session.value == {"arms": [{"Name": "A"}, {"Name": "B"}], "other": 1}
        assert session.raw_target is None

    def test_invalid_text_changes_nothing(self):
        session = EditSession({"arms": [1], "other": 1})
        before = copy.deepcopy(session.value)
        session.open_raw_editor("arms")
        session.set_raw_text("[1, 2,")
        with pytest.raises(JsonEditError):
            session.commit_raw()
        assert session.value == before
        assert session.raw_target == ("arms",)
        assert session.error.startswith("Invalid JSON")

    @pytest.mark.parametrize("text", ["[1, NaN]", "{\"a\": Infinity}"])
    def test_non_json_constants_rejected(self, text):
        session = EditSession({"arms": [1]})
        session.open_raw_editor("arms")
        session.set_raw_text(text)
        with pytest.raises(JsonEditError):
            session.commit_raw()
        assert session.value == {"arms": [1]}

    def test_whole_array_commit(self):
        session = EditSession(["US", "DE"])
        session.open_raw_editor()
        assert session.raw_target == ROOT
        session.set_raw_text('```json\n["US", "DE", "FR"]\n```')
        session.commit_raw()
        assert session.commit() == ["US", "DE", "FR"]

    def test_commit_discards_open_raw_editor(self):
        session = EditSession({"arms": [1]})
        session.open_raw_editor("arms")
        session.set_raw_text("[1, 2]")
        assert session.commit() == {"arms": [1]}

    def test_raw_null_is_accepted(self):
        session = EditSession({"a": 1})
        session.open_raw_editor("a")
        session.set_raw_text("null")
        session.commit_raw()
        assert session.value == {"a": None}

    def test_commit_without_open_editor(self):
        with pytest.raises(EditShapeError):
            EditSession({"a": 1}).commit_raw()

    def test_parse_raw_json(self):
        assert parse_raw_json("JSON: {\"a\": 1}") == {"a": 1}
        with pytest.raises(JsonEditError):
            parse_raw_json("not json")


class TestRecordArrayEditing:
    """Tests for arrays of records."""

    def test_add_row_copies_first_row_keys(self):
        session = EditSession([{"Visit": "V1", "KitType": "A"}], "Visit Schedule")
        index = session.add_row()
        assert index == 1
        assert session.value[1] == {"Visit": "", "KitType": ""}

    def test_add_row_to_empty_array(self):
        session = EditSession([])
        session.add_row()
        assert session.value == [{}]

    def test_delete_row(self):
        session = EditSession([{"a": 1}, {"a": 2}, {"a": 3}])
        session.delete_row(1)
        assert session.value == [{"a": 1}, {"a": 3}]

    def test_delete_out_of_range(self):
        with pytest.raises(IndexError):
            EditSession([{"a": 1}]).delete_row(3)

    def test_row_operations_need_record_array(self):
        session = EditSession(["US", "DE"])
        with pytest.raises(EditShapeError):
            session.add_row()
        with pytest.raises(EditShapeError):
            session.delete_row(0)

    def test_row_session_round_trip(self):
        session = EditSession([{"Visit": "V1", "Dosing": "No"}], "Visit Schedule")
        row = session.row_session(0)
        assert row.session_key == "Visit Schedule::0"
        row.toggle("Dosing")
        session.apply_row(0, row.commit())
        assert session.value == [{"Visit": "V1", "Dosing": "Yes"}]

    def test_render_rows_use_section_columns(self):
        session = EditSession([{"Visit": "V1", "Extra": [1]}], "Visit Schedule")
        view = session.render()
        assert view.columns[0] == "Visit"
        assert view.rows[0]["Visit"] == "V1"
        assert view.rows[0]["KitType"] == ""


class TestScalarEditing:
    """Tests for scalar sections."""

    def test_set_value_text(self):
        session = EditSession("A Phase 3 Study")
        session.set_value_text("A Phase 2 Study")
        assert session.commit() == "A Phase 2 Study"
        assert session.render().text == "A Phase 2 Study"

    def test_scalar_rejects_row_ops(self):
        with pytest.raises(EditShapeError):
            EditSession("x").add_row()

    def test_reset(self):
        session = EditSession({"a": "Yes"})
        session.toggle("a")
        session.reset()
        assert session.value == {"a": "Yes"}


class TestApplySectionEdit:
    """Saving one section must not touch the others."""

    def test_siblings_untouched(self, protocol_document):
        before = json.dumps(protocol_document)
        updated = apply_section_edit(protocol_document, "Title", "New title")
        assert updated["Title"] == "New title"
        for key in protocol_document:
            if key != "Title":
                assert json.dumps(updated[key]) == json.dumps(protocol_document[key])
                assert updated[key] is protocol_document[key]
        assert json.dumps(protocol_document) == before
        assert list(updated) == list(protocol_document)

    def test_none_document(self):
        assert apply_section_edit(None, "A", 1) == {"A": 1}


class TestEditController:
    """Tests for the per-page edit state machine."""

    def test_lifecycle(self, protocol_document):
        controller = EditController()
        assert controller.state == "none"
        session = controller.begin("General", protocol_document["General"])
        assert controller.state == "editing"
        assert controller.is_editing("General")
        session.toggle("Blinded")
        updated = controller.save(protocol_document)
        assert controller.state == "none"
        assert updated["General"]["Blinded"] == "No"
        assert protocol_document["General"]["Blinded"] == "Yes"
        assert updated["Visit Schedule"] is protocol_document["Visit Schedule"]

    def test_cancel_discards(self, protocol_document):
        controller = EditController()
        controller.begin("General", protocol_document["General"]).toggle("Blinded")
        controller.cancel()
        assert controller.state == "none"
        assert controller.session is None

    def test_begin_replaces_previous_session(self, protocol_document):
        controller = EditController()
        controller.begin("General", protocol_document["General"])
        controller.begin("Title", protocol_document["Title"])
        assert controller.active_key == "Title"

    def test_schema_is_read_only(self, protocol_document):
        controller = EditController()
        assert not controller.is_editable("Schema")
        with pytest.raises(EditShapeError):
            controller.begin("Schema", protocol_document["Schema"])

    def test_row_sessions(self, protocol_document):
        controller = EditController()
        controller.begin("Visit Schedule", protocol_document["Visit Schedule"])
        row = controller.open_row(1)
        assert "Visit Schedule::1" in controller.row_sessions
        row.set_text("KitType", "C")
        controller.save_row(1)
        assert controller.row_sessions == {}
        updated = controller.save(protocol_document)
        assert updated["Visit Schedule"][1]["KitType"] == "C"
        assert protocol_document["Visit Schedule"][1]["KitType"] == "B"

    def test_delete_row_closes_row_sessions(self, protocol_document):
        controller = EditController()
        controller.begin("Visit Schedule", protocol_document["Visit Schedule"])
        controller.open_row(1)
        controller.delete_row(0)
        assert controller.row_sessions == {}
        assert len(controller.session.value) == 1

    def test_save_without_session(self):
        with pytest.raises(EditShapeError):
            EditController().save({})


def test_is_boolean_like():
    assert is_boolean_like(True)
    assert is_boolean_like("YES")
    assert is_boolean_like("no")
    assert not is_boolean_like("yesterday")
    assert is_boolean_like("Yes\n")
    assert not is_boolean_like("yes no")
    assert not is_boolean_like(1)
