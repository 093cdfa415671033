"""
Tests for server/server.py

Exercises WorkflowServer directly (the FastMCP tools delegate to it) and
checks that the factory registers a server object.
"""

import json

import pytest

from project_workflow.engine.models import DEFAULT_WORKFLOW_ID
from project_workflow.engine.persistence import InMemoryPersistence
from project_workflow.server.server import WorkflowServer, create_mcp_server


@pytest.fixture
def ws():
    server = WorkflowServer(InMemoryPersistence())
    yield server
    server.close()


def test_list_workflows(ws):
    listed = ws.list_workflows()
    assert listed[0]["id"] == DEFAULT_WORKFLOW_ID
    assert listed[0]["step_count"] == 12


def test_get_workflow_unknown(ws):
    result = ws.get_workflow("missing")
    assert result == {
        "success": False,
        "code": "WORKFLOW_NOT_FOUND",
        "reason": "Workflow 'missing' not found.",
    }


def test_add_update_delete(ws):
    added = ws.add_workflow("Fast Track", "desc")
    wf_id = added["workflow"]["id"]

    updated = ws.update_workflow(wf_id, {"name": "Faster"})
    assert updated["workflow"]["name"] == "Faster"

    assert ws.delete_workflow(wf_id) == {"success": True, "deleted": wf_id}
    assert ws.get_workflow(wf_id)["success"] is False


def test_update_invalid_steps_returns_code(ws):
    result = ws.update_workflow(DEFAULT_WORKFLOW_ID, {"steps": []})
    assert result["success"] is False
    assert result["code"] == "INVALID_WORKFLOW"


@pytest.mark.parametrize("fields_json", ["{not json", "5", "[1, 2]", "null"])
def test_update_workflow_json_rejects_non_object(ws, fields_json):
    result = ws.update_workflow_json(DEFAULT_WORKFLOW_ID, fields_json)
    assert result["success"] is False
    assert result["code"] == "INVALID_WORKFLOW"


def test_update_workflow_json_applies_fields(ws):
    result = ws.update_workflow_json(DEFAULT_WORKFLOW_ID, '{"name": "Standar"}')
    assert result["workflow"]["name"] == "Standar"


def test_delete_default_on_fresh_store_returns_code(ws):
    result = ws.delete_workflow(DEFAULT_WORKFLOW_ID)
    assert result["code"] == "CANNOT_DELETE_LAST_OR_DEFAULT_WORKFLOW"


def test_delete_sole_default_returns_code(ws):
    ws.list_workflows()
    result = ws.delete_workflow(DEFAULT_WORKFLOW_ID)
    assert result["code"] == "CANNOT_DELETE_LAST_OR_DEFAULT_WORKFLOW"


def test_first_step_unknown_is_null(ws):
    assert ws.get_first_step("nonexistent-id") == {"step": None}


def test_resolve_transition_with_rendered_notification(ws):
    result = ws.resolve_transition(
        DEFAULT_WORKFLOW_ID, "Pending Approval", 20, "rejected", project_name="Gedung A"
    )
    assert result["success"] is True
    assert result["transition"]["targetStatus"] == "Canceled"
    assert result["notification"] == {
        "divisions": ["Admin Proyek"],
        "message": "Penawaran untuk proyek 'Gedung A' ditolak oleh Owner.",
    }


def test_resolve_transition_terminal(ws):
    result = ws.resolve_transition(DEFAULT_WORKFLOW_ID, "Completed", 100, "anything")
    assert result["terminal"] is True
    assert result["transition"] is None


def test_resolve_transition_error(ws):
    result = ws.resolve_transition("missing", "Pending Offer", 10, "submitted")
    assert result["code"] == "WORKFLOW_NOT_FOUND"


def test_results_are_json_serializable(ws):
    json.dumps(ws.get_workflow(DEFAULT_WORKFLOW_ID))
    json.dumps(ws.resolve_transition(DEFAULT_WORKFLOW_ID, "Pending Offer", 10, "submitted", "P"))


def test_create_mcp_server(ws):
    assert create_mcp_server(ws) is not None
