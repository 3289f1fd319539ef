from __future__ import annotations

import json
import os

import pytest

from coda_doc_exporter.errors import ExportError
from coda_doc_exporter.io_utils import dump_json, export_filename, read_json_content, write_export, write_json_file


def test_dump_json_uses_two_space_indent_and_keeps_unicode() -> None:
    text = dump_json({"Name": {"rows": [{"value": "Zoë"}]}})

    assert text.startswith('{\n  "Name": {\n    "rows"')
    assert "Zoë" in text


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Tasks", "Tasks.json"),
        ("Team Roadmap", "Team-Roadmap.json"),
        ("Q3/Q4: plans?", "Q3Q4-plans.json"),
        ("report.json", "report.json"),
        ("", "coda-data.json"),
        (None, "coda-data.json"),
        ("../..", "coda-data.json"),
    ],
)
def test_export_filename(name, expected: str) -> None:
    assert export_filename(name) == expected


def test_write_export_writes_json_file(tmp_path) -> None:
    payload = {"Tasks": {"columns": [], "rows": []}}

    path = write_export(payload, "Tasks", directory=str(tmp_path))

    assert path == os.path.join(str(tmp_path), "Tasks.json")
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == payload


def test_write_export_reports_unserializable_payload(tmp_path) -> None:
    with pytest.raises(ExportError):
        write_export({"bad": object()}, "Tasks", directory=str(tmp_path))


def test_write_json_file_round_trips_through_read_json_content(tmp_path) -> None:
    path = tmp_path / "nested" / "settings.json"

    write_json_file(path, {"docId": "doc-1"})

    assert read_json_content(str(path)) == {"docId": "doc-1"}
    assert [p.name for p in path.parent.iterdir()] == ["settings.json"]
