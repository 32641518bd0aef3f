"""
Tests for Export Service

Tests record encoding in multiple formats (JSON, CSV, XML).
"""

import csv
import json
import xml.etree.ElementTree as ET  # nosec B405
from io import StringIO
from unittest.mock import patch

import pytest

from taskapi.exceptions import EncodingError, EncodingPreconditionError
from taskapi.models.task import TASK_FIELDS, TaskSeverity
from taskapi.services.export_service import (
    EncodedPayload,
    ExportService,
    OutputFormat,
    export_service,
    tabular_header,
)


def read_csv(payload: EncodedPayload) -> list[list[str]]:
    return list(csv.reader(StringIO(payload.content)))


class TestExportJson:
    """Test structured encoding"""

    def test_full_records(self, sample_tasks):
        """Full records expand to every field with enums by name"""
        payload = export_service.export_json(sample_tasks, TASK_FIELDS)
        data = json.loads(payload.content)

        assert payload.format is OutputFormat.JSON
        assert payload.media_type == "application/json"
        assert payload.header is None
        assert len(data) == 4
        assert data[1] == {
            "id": "t2",
            "title": "Alpha",
            "description": "first letter",
            "assigned_to": "alice",
            "status": "DONE",
            "severity": "HIGH",
        }
        assert data[2]["description"] is None

    def test_projected_records(self):
        """Projected records keep only their keys"""
        payload = export_service.export_json([{"id": "1", "severity": TaskSeverity.LOW}], TASK_FIELDS)
        assert json.loads(payload.content) == [{"id": "1", "severity": "LOW"}]

    def test_empty_sequence(self):
        assert json.loads(export_service.export_json([], TASK_FIELDS).content) == []

    def test_single_item(self, sample_tasks):
        """A single record encodes as an object"""
        payload = export_service.export_json_item(sample_tasks[0], TASK_FIELDS)
        assert json.loads(payload.content)["title"] == "Zeta"


class TestExportCsv:
    """Test tabular encoding"""

    def test_header_and_rows(self):
        """Header comes from the field set, rows follow in the same order"""
        payload = export_service.export_csv(
            [{"id": "1", "title": "A"}, {"id": "2", "title": "B"}],
            TASK_FIELDS,
        )
        assert read_csv(payload) == [["id", "title"], ["1", "A"], ["2", "B"]]
        assert payload.header == ("id", "title")
        assert payload.media_type == "text/csv"
        assert payload.filename == "items.csv"

    def test_full_records(self, sample_tasks):
        """Full records use declared order and render None as empty"""
        rows = read_csv(export_service.export_csv(sample_tasks, TASK_FIELDS))
        assert rows[0] == list(TASK_FIELDS.names)
        assert rows[3] == ["t3", "Mu", "", "bob", "IN_PROGRESS", "LOW"]
        assert len(rows) == 5

    def test_heterogeneous_projections(self):
        """Rows missing a column get an empty cell; columns are the union"""
        items = [{"id": "1", "title": "A"}, {"id": "2", "status": "DONE"}]
        rows = read_csv(export_service.export_csv(items, TASK_FIELDS))
        assert rows == [["id", "title", "status"], ["1", "A", ""], ["2", "", "DONE"]]

    def test_empty_sequence_is_rejected(self):
        """A header cannot be derived from nothing"""
        with pytest.raises(EncodingPreconditionError) as exc_info:
            export_service.export_csv([], TASK_FIELDS)
        assert exc_info.value.details == {"format": "csv"}

    def test_formula_injection_is_sanitized(self):
        """Cells that look like formulas are neutralized by default"""
        items = [{"id": "1", "title": "=SUM(A1:A2)"}]
        assert read_csv(export_service.export_csv(items, TASK_FIELDS))[1] == ["1", "'=SUM(A1:A2)"]
        assert read_csv(export_service.export_csv(items, TASK_FIELDS, sanitize=False))[1] == ["1", "=SUM(A1:A2)"]

    def test_leading_minus_is_quoted(self):
        """Leading minus signs are quoted unless sanitizing is turned off"""
        items = [{"title": "-5 degrees"}]
        assert read_csv(export_service.export_csv(items, TASK_FIELDS))[1] == ["'-5 degrees"]
        assert read_csv(export_service.export_csv(items, TASK_FIELDS, sanitize=False))[1] == ["-5 degrees"]

    def test_rows_without_fields_are_rejected(self):
        """Projections that kept no field leave no header to write"""
        with pytest.raises(EncodingPreconditionError) as exc_info:
            export_service.export_csv([{}, {}], TASK_FIELDS)
        assert "no fields" in exc_info.value.message

    def test_custom_filename(self):
        payload = export_service.export_csv([{"id": "1"}], TASK_FIELDS, filename="tasks.csv")
        assert payload.filename == "tasks.csv"

    def test_writer_failure_becomes_encoding_error(self):
        """Stream failures surface as a generic encoding error"""
        with patch("taskapi.services.export_service.csv.writer", side_effect=OSError("disk full")):
            with pytest.raises(EncodingError) as exc_info:
                export_service.export_csv([{"id": "1"}], TASK_FIELDS)
        assert exc_info.value.status_code == 500

    def test_does_not_mutate_items(self):
        items = [{"title": "A", "id": "1"}]
        export_service.export_csv(items, TASK_FIELDS)
        assert items == [{"title": "A", "id": "1"}]
        assert list(items[0]) == ["title", "id"]


class TestTabularHeader:
    def test_declared_order_wins(self):
        assert tabular_header([{"status": "x", "id": "1"}], TASK_FIELDS) == ("id", "status")

    def test_unknown_keys_appended(self):
        assert tabular_header([{"id": "1"}, {"extra": 2}], TASK_FIELDS) == ("id", "extra")


class TestExportXml:
    """Test markup encoding"""

    def test_element_tree(self, sample_tasks):
        """Each record becomes an element with one child per field"""
        payload = export_service.export_xml(sample_tasks, TASK_FIELDS)
        assert payload.media_type == "application/xml"
        assert payload.content.startswith("<?xml")

        root = ET.fromstring(payload.content.encode("utf-8"))  # nosec B314
        assert root.tag == "tasks"
        assert root.get("count") == "4"
        tasks = root.findall("task")
        assert [child.tag for child in tasks[0]] == list(TASK_FIELDS.names)
        assert tasks[1].findtext("severity") == "HIGH"

    def test_none_values_omitted(self, sample_tasks):
        root = ET.fromstring(export_service.export_xml([sample_tasks[2]], TASK_FIELDS).content.encode("utf-8"))  # nosec B314
        assert root.find("task/description") is None
        assert root.findtext("task/title") == "Mu"

    def test_projected_records(self):
        root = ET.fromstring(
            export_service.export_xml([{"id": "1", "title": "A"}], TASK_FIELDS).content.encode("utf-8")
        )  # nosec B314
        assert [child.tag for child in root.find("task")] == ["id", "title"]

    def test_control_characters_are_dropped(self, sample_tasks):
        """Values carrying characters XML 1.0 forbids still give a parseable document"""
        task = sample_tasks[0]
        task.title = "bad\x01title"
        task.description = "tab\tkept\x0bvtab\x1fgone"
        payload = export_service.export_xml([task], TASK_FIELDS)

        root = ET.fromstring(payload.content.encode("utf-8"))  # nosec B314
        assert root.findtext("task/title") == "badtitle"
        assert root.findtext("task/description") == "tab\tkeptvtabgone"

    def test_non_ascii_text_is_kept(self):
        payload = export_service.export_xml([{"id": "1", "title": "Café ✓ \U0001f600"}], TASK_FIELDS)
        root = ET.fromstring(payload.content.encode("utf-8"))  # nosec B314
        assert root.findtext("task/title") == "Café ✓ \U0001f600"


class TestExportDispatch:
    @pytest.mark.parametrize(
        "export_format,media_type",
        [(OutputFormat.JSON, "application/json"), (OutputFormat.CSV, "text/csv"), (OutputFormat.XML, "application/xml")],
    )
    def test_export_dispatches_by_format(self, sample_tasks, export_format, media_type):
        payload = ExportService().export(sample_tasks, TASK_FIELDS, export_format)
        assert payload.format is export_format
        assert payload.media_type == media_type
