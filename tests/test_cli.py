"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from clinical_kb.cli import build_parser, main


@pytest.fixture(autouse=True)
def clean_env():
    with patch.dict("os.environ", {}, clear=True):
        yield


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_search_seeded(capsys):
    assert main(["--seed", "search", "pneumothorax"]) == 0
    out = capsys.readouterr().out
    assert "[pneumothorax_001]" in out
    assert "glioblastoma_001" not in out


def test_search_with_filters(capsys):
    assert main(["--seed", "search", "--modality", "MR", "--difficulty", "advanced"]) == 0
    out = capsys.readouterr().out
    assert "[glioblastoma_001]" in out
    assert "pneumothorax_001" not in out


def test_get_and_related(capsys):
    assert main(["--seed", "get", "glioblastoma_001", "missing"]) == 0
    out = capsys.readouterr().out
    assert "Glioblastoma Multiforme" in out
    assert "[missing] not found" in out

    assert main(["--seed", "related", "glioblastoma_001"]) == 0
    assert "Related to [glioblastoma_001]" in capsys.readouterr().out


def test_stats(capsys):
    assert main(["--seed", "stats"]) == 0
    out = capsys.readouterr().out
    assert "Total articles: 2" in out
    assert "respiratory: 1" in out


def test_export_then_import(tmp_path, capsys):
    export_path = tmp_path / "export.json"
    assert main(["--seed", "export", str(export_path)]) == 0
    assert "Exported 2 entries" in capsys.readouterr().out

    snapshot = tmp_path / "kb.json"
    assert main(["--snapshot", str(snapshot), "import", str(export_path)]) == 0
    assert "Import: 2 imported" in capsys.readouterr().out
    # Mutating commands persist the snapshot
    assert len(json.loads(snapshot.read_text())["entries"]) == 2

    assert main(["--snapshot", str(snapshot), "search", "glioblastoma"]) == 0
    assert "[glioblastoma_001]" in capsys.readouterr().out


def test_import_records(tmp_path, capsys):
    records = tmp_path / "records.json"
    records.write_text(
        json.dumps(
            [
                {"id": 10, "title": "Aortic dissection", "system": "cardiovascular"},
                {"id": 11},
            ]
        )
    )
    snapshot = tmp_path / "kb.json"
    assert main(["--snapshot", str(snapshot), "import-records", str(records)]) == 0
    out = capsys.readouterr().out
    assert "Import: 1 imported, 0 updated, 1 error(s)" in out

    data = json.loads(snapshot.read_text())
    assert [e["id"] for e in data["entries"]] == ["external_article_10"]
    assert data["stats"]["sync_status"] == "error"


def test_import_records_requires_list(tmp_path, capsys):
    records = tmp_path / "records.json"
    records.write_text(json.dumps({"id": 1}))
    assert main(["import-records", str(records)]) == 1
    assert "must contain a JSON list" in capsys.readouterr().out


def test_clear_requires_confirm(tmp_path, capsys):
    snapshot = tmp_path / "kb.json"
    main(["--seed", "--snapshot", str(snapshot), "export", str(snapshot)])
    capsys.readouterr()

    assert main(["--snapshot", str(snapshot), "clear"]) == 1
    assert "--confirm" in capsys.readouterr().out
    assert len(json.loads(snapshot.read_text())["entries"]) == 2

    assert main(["--snapshot", str(snapshot), "clear", "--confirm"]) == 0
    assert json.loads(snapshot.read_text())["entries"] == []


def test_missing_import_file(tmp_path, capsys):
    assert main(["import", str(tmp_path / "absent.json")]) == 1
    assert capsys.readouterr().out.startswith("Error:")


def test_corrupt_snapshot(tmp_path, capsys):
    snapshot = tmp_path / "kb.json"
    snapshot.write_text("{broken")
    assert main(["--snapshot", str(snapshot), "stats"]) == 1
    assert capsys.readouterr().out.startswith("Error:")


def test_unwritable_snapshot_reports_error(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    snapshot = blocker / "kb.json"

    assert main(["--seed", "--snapshot", str(snapshot), "clear", "--confirm"]) == 1
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[-1].startswith("Error:")


# --- add / update ---


def test_add_then_update(tmp_path, capsys):
    snapshot = tmp_path / "kb.json"
    argv = ["--snapshot", str(snapshot)]
    assert (
        main(
            [
                *argv,
                "add",
                "aortic_001",
                "Aortic dissection",
                "--type",
                "case",
                "--system",
                "cardiovascular",
                "--modality",
                "CT",
                "--modality",
                "MR",
            ]
        )
        == 0
    )
    assert capsys.readouterr().out.startswith("Created aortic_001")

    assert main([*argv, "update", "aortic_001", "--tag", "emergency"]) == 0
    assert capsys.readouterr().out.startswith("Updated aortic_001")

    (entry,) = json.loads(snapshot.read_text())["entries"]
    assert entry["type"] == "case"
    assert entry["metadata"]["modality"] == ["CT", "MR"]
    assert entry["metadata"]["tags"] == ["emergency"]
    assert entry["metadata"]["source"] == "manual"


def test_update_missing_entry(tmp_path, capsys):
    snapshot = tmp_path / "kb.json"
    assert main(["--snapshot", str(snapshot), "update", "ghost", "--title", "Ghost"]) == 1
    assert capsys.readouterr().out.strip() == "Error: Entry ghost not found"
    assert not snapshot.exists()
