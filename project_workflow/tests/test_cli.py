"""
Tests for cli/cli.py

Runs main() in-process against a JSON store in tmp_path and checks exit codes
and printed output.
"""

import json

import pytest
import yaml

from project_workflow.cli.cli import main
from project_workflow.engine.models import DEFAULT_WORKFLOW_ID


@pytest.fixture
def cli(tmp_path):
    store_path = tmp_path / "workflows.json"

    def run(*argv: str) -> int:
        return main(["--project-root", str(tmp_path), "--store", str(store_path), *argv])

    run.store_path = store_path
    return run


def test_list_shows_default(cli, capsys):
    assert cli("list") == 0
    out = capsys.readouterr().out
    assert DEFAULT_WORKFLOW_ID in out
    assert "1 workflow(s)." in out


def test_add_then_list(cli, capsys):
    assert cli("add", "Fast Track", "--description", "quick") == 0
    assert cli("list") == 0
    out = capsys.readouterr().out
    assert "Fast Track" in out
    assert "2 workflow(s)." in out


def test_show_marks_terminal_steps(cli, capsys):
    assert cli("show", DEFAULT_WORKFLOW_ID) == 0
    out = capsys.readouterr().out
    assert "Standard Project Workflow" in out
    assert "(terminal)" in out
    assert "revise_after_sidang" in out


def test_show_unknown(cli, capsys):
    assert cli("show", "missing") == 1


def test_statuses(cli, capsys):
    assert cli("statuses") == 0
    lines = capsys.readouterr().out.splitlines()
    assert "Pending Offer" in lines
    assert "Canceled" in lines


def test_first_step(cli, capsys):
    assert cli("first-step", DEFAULT_WORKFLOW_ID) == 0
    step = json.loads(capsys.readouterr().out)
    assert step["status"] == "Pending Offer"


def test_resolve_prints_transition_and_notification(cli, capsys):
    assert cli("resolve", DEFAULT_WORKFLOW_ID, "Pending Offer", "10", "submitted",
               "--project", "Gedung A") == 0
    out = capsys.readouterr().out
    assert '"targetStatus": "Pending Approval"' in out
    assert "Notify Owner: Penawaran untuk proyek 'Gedung A'" in out


def test_resolve_terminal(cli, capsys):
    assert cli("resolve", DEFAULT_WORKFLOW_ID, "Completed", "100", "anything") == 0
    assert "terminal" in capsys.readouterr().out


def test_resolve_unknown_step_fails_with_code(cli, capsys):
    assert cli("resolve", DEFAULT_WORKFLOW_ID, "Pending Offer", "11", "submitted") == 1
    assert "CURRENT_STEP_NOT_FOUND" in capsys.readouterr().err


def test_delete_sole_default_fails_with_code(cli, capsys):
    assert cli("list") == 0
    assert cli("delete", DEFAULT_WORKFLOW_ID) == 1
    assert "CANNOT_DELETE_LAST_OR_DEFAULT_WORKFLOW" in capsys.readouterr().err


def test_delete_default_on_fresh_store_fails_with_code(cli, capsys):
    assert cli("delete", DEFAULT_WORKFLOW_ID) == 1
    assert "CANNOT_DELETE_LAST_OR_DEFAULT_WORKFLOW" in capsys.readouterr().err


def test_rename_requires_a_field(cli, capsys):
    assert cli("rename", DEFAULT_WORKFLOW_ID) == 1


def test_rename(cli, capsys):
    assert cli("rename", DEFAULT_WORKFLOW_ID, "--name", "Standar") == 0
    doc = json.loads(cli.store_path.read_text(encoding="utf-8"))
    assert doc[0]["name"] == "Standar"


def test_export_import_round_trip(cli, capsys, tmp_path):
    assert cli("add", "Editable") == 0
    capsys.readouterr()
    wf_id = json.loads(cli.store_path.read_text(encoding="utf-8"))[1]["id"]

    assert cli("export", wf_id) == 0
    exported = capsys.readouterr().out
    steps_file = tmp_path / "steps.yaml"
    # Keep only the last two (terminal) steps
    steps = yaml.safe_load(exported)[-2:]
    steps_file.write_text(yaml.safe_dump(steps, allow_unicode=True), encoding="utf-8")

    assert cli("import", wf_id, str(steps_file)) == 0
    doc = json.loads(cli.store_path.read_text(encoding="utf-8"))
    assert [s["status"] for s in doc[1]["steps"]] == ["Completed", "Canceled"]


def test_import_invalid_steps_fails(cli, capsys, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("[]", encoding="utf-8")
    assert cli("import", DEFAULT_WORKFLOW_ID, str(bad)) == 1
    assert "INVALID_WORKFLOW" in capsys.readouterr().err


@pytest.mark.parametrize("content", ["", "name: not a list\n"])
def test_import_non_list_document_fails(cli, capsys, tmp_path, content):
    steps_file = tmp_path / "steps.yaml"
    steps_file.write_text(content, encoding="utf-8")
    assert cli("import", DEFAULT_WORKFLOW_ID, str(steps_file)) == 1
    assert "must contain a list of steps" in capsys.readouterr().err
    assert not cli.store_path.exists()
