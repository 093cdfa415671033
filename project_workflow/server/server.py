#!/usr/bin/env python3
"""
Project Workflow MCP Server

FastMCP server exposing workflow definitions and transition resolution to the
Project Lifecycle Manager and admin tooling. Supports stdio and SSE
transports.

Usage (stdio mode):
    python -m project_workflow.server.server --project-root <path>

Usage (SSE mode):
    python -m project_workflow.server.server --project-root <path> --transport sse --port 8080

MCP Tools exposed:
    list_workflows        — every workflow (repair pass included)
    get_workflow          — one workflow by id
    add_workflow          — create a workflow with the standard structure
    update_workflow       — change name/description/steps
    delete_workflow       — remove a workflow
    list_statuses         — every status used by any workflow
    get_first_step        — initial step of a workflow
    resolve_transition    — next step for (status, progress, action)

MCP Resources:
    workflow://definition/{workflow_id}   — full workflow document
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from project_workflow.engine.config import create_persistence, load_engine_config
from project_workflow.engine.errors import InvalidWorkflowError, WorkflowEngineError
from project_workflow.engine.log_config import configure_logging
from project_workflow.engine.notifications import render_notification
from project_workflow.engine.persistence import WorkflowPersistence
from project_workflow.engine.resolver import resolve_transition
from project_workflow.engine.store import WorkflowStore


def _error(exc: WorkflowEngineError) -> dict[str, Any]:
    return {"success": False, "code": exc.code, "reason": str(exc)}


class WorkflowServer:
    """
    Workflow engine server wrapping one WorkflowStore.

    Methods return plain dicts; engine errors become
    {success: false, code, reason} so tool callers can branch on `code`.
    """

    def __init__(self, persistence: WorkflowPersistence):
        self.persistence = persistence
        self.store = WorkflowStore(persistence)

    @classmethod
    def from_project_root(cls, project_root: str | Path) -> "WorkflowServer":
        config = load_engine_config(project_root)
        configure_logging(config.log_level)
        return cls(create_persistence(config))

    def close(self) -> None:
        close = getattr(self.persistence, "close", None)
        if close is not None:
            close()

    # -----------------------------------------------------------------------
    # Definitions
    # -----------------------------------------------------------------------

    def list_workflows(self) -> list[dict[str, Any]]:
        return [
            {"id": wf.id, "name": wf.name, "description": wf.description, "step_count": len(wf.steps)}
            for wf in self.store.get_all()
        ]

    def get_workflow(self, workflow_id: str) -> dict[str, Any]:
        wf = self.store.get_by_id(workflow_id)
        if wf is None:
            return {"success": False, "code": "WORKFLOW_NOT_FOUND",
                    "reason": f"Workflow '{workflow_id}' not found."}
        return {"success": True, "workflow": wf.to_dict()}

    def add_workflow(self, name: str, description: str = "") -> dict[str, Any]:
        try:
            wf = self.store.add(name, description)
        except WorkflowEngineError as exc:
            return _error(exc)
        return {"success": True, "workflow": wf.to_dict()}

    def update_workflow(self, workflow_id: str, fields: Any) -> dict[str, Any]:
        if not isinstance(fields, dict):
            return _error(InvalidWorkflowError(["fields must be a JSON object"]))
        try:
            wf = self.store.update(workflow_id, fields)
        except WorkflowEngineError as exc:
            return _error(exc)
        if wf is None:
            return {"success": False, "code": "WORKFLOW_NOT_FOUND",
                    "reason": f"Workflow '{workflow_id}' not found."}
        return {"success": True, "workflow": wf.to_dict()}

    def update_workflow_json(self, workflow_id: str, fields_json: str) -> dict[str, Any]:
        """update_workflow with the fields given as a JSON object string."""
        try:
            fields = json.loads(fields_json)
        except json.JSONDecodeError as exc:
            return _error(InvalidWorkflowError([f"fields is not valid JSON: {exc}"]))
        return self.update_workflow(workflow_id, fields)

    def delete_workflow(self, workflow_id: str) -> dict[str, Any]:
        try:
            self.store.delete(workflow_id)
        except WorkflowEngineError as exc:
            return _error(exc)
        return {"success": True, "deleted": workflow_id}

    def list_statuses(self) -> list[str]:
        return self.store.get_all_unique_statuses()

    # -----------------------------------------------------------------------
    # Resolution
    # -----------------------------------------------------------------------

    def get_first_step(self, workflow_id: str) -> dict[str, Any]:
        step = self.store.get_first_step(workflow_id)
        return {"step": step.to_dict() if step else None}

    def resolve_transition(
        self,
        workflow_id: str,
        status: str,
        progress: int,
        action: str,
        project_name: str | None = None,
    ) -> dict[str, Any]:
        """
        Resolve the next step.

        Returns:
            {success, terminal: true} for terminal steps
            {success, terminal: false, transition, notification} otherwise
            {success: false, code, reason} on engine errors
        """
        try:
            transition = resolve_transition(self.store, workflow_id, status, progress, action)
        except WorkflowEngineError as exc:
            return _error(exc)
        if transition is None:
            return {"success": True, "terminal": True, "transition": None, "notification": None}

        notification = None
        if project_name is not None:
            request = render_notification(
                transition.notification, project_name, new_status=transition.target_status
            )
            if request is not None:
                notification = {"divisions": request.divisions, "message": request.message}
        return {
            "success": True,
            "terminal": False,
            "transition": transition.to_dict(),
            "notification": notification,
        }


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server(ws: WorkflowServer) -> FastMCP:
    """Create a FastMCP server whose tools delegate to the WorkflowServer."""
    mcp = FastMCP("project-workflow")

    @mcp.tool()
    def list_workflows() -> str:
        """List every workflow with its id, name, description and step count."""
        return json.dumps(ws.list_workflows(), indent=2, ensure_ascii=False)

    @mcp.tool()
    def get_workflow(workflow_id: str) -> str:
        """
        Get a full workflow definition.

        Args:
            workflow_id: Workflow id (e.g. 'default_standard_workflow')
        """
        return json.dumps(ws.get_workflow(workflow_id), indent=2, ensure_ascii=False)

    @mcp.tool()
    def add_workflow(name: str, description: str = "") -> str:
        """
        Create a workflow seeded with the standard step structure.

        Args:
            name: Display name
            description: Optional description
        """
        return json.dumps(ws.add_workflow(name, description), indent=2, ensure_ascii=False)

    @mcp.tool()
    def update_workflow(workflow_id: str, fields: str) -> str:
        """
        Update a workflow's name, description and/or steps.

        Args:
            workflow_id: Workflow id
            fields: JSON object with any of "name", "description", "steps"
        """
        return json.dumps(
            ws.update_workflow_json(workflow_id, fields), indent=2, ensure_ascii=False
        )

    @mcp.tool()
    def delete_workflow(workflow_id: str) -> str:
        """
        Delete a workflow. The default workflow cannot be deleted while it is
        the only one left.

        Args:
            workflow_id: Workflow id
        """
        return json.dumps(ws.delete_workflow(workflow_id), indent=2)

    @mcp.tool()
    def list_statuses() -> str:
        """List every project status used by any workflow."""
        return json.dumps(ws.list_statuses(), indent=2, ensure_ascii=False)

    @mcp.tool()
    def get_first_step(workflow_id: str) -> str:
        """
        Get the step a new project starts on. Returns {"step": null} for
        unknown workflows.

        Args:
            workflow_id: Workflow id
        """
        return json.dumps(ws.get_first_step(workflow_id), indent=2, ensure_ascii=False)

    @mcp.tool()
    def resolve_transition(
        workflow_id: str,
        status: str,
        progress: int,
        action: str,
        project_name: str | None = None,
    ) -> str:
        """
        Resolve the next step for a project.

        Args:
            workflow_id: The project's workflow id
            status: Current project status
            progress: Current project progress (0-100)
            action: Action taken (e.g. 'submitted', 'approved', 'rejected')
            project_name: Optional; when given, the notification message is rendered
        """
        return json.dumps(
            ws.resolve_transition(workflow_id, status, progress, action, project_name),
            indent=2, ensure_ascii=False,
        )

    @mcp.resource("workflow://definition/{workflow_id}")
    def definition_resource(workflow_id: str) -> str:
        """Full workflow document."""
        return json.dumps(ws.get_workflow(workflow_id), indent=2, ensure_ascii=False)

    return mcp


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(description="Project Workflow MCP Server")
    parser.add_argument("--project-root", default=".", help="Directory holding .workflow/config.yaml")
    parser.add_argument("--transport", choices=["stdio", "sse"], default="stdio")
    parser.add_argument("--port", type=int, default=8080, help="Port for SSE transport")
    args = parser.parse_args()

    ws = WorkflowServer.from_project_root(args.project_root)
    try:
        mcp_server = create_mcp_server(ws)
        if args.transport == "sse":
            mcp_server.settings.port = args.port
            mcp_server.run(transport="sse")
        else:
            mcp_server.run(transport="stdio")
    finally:
        ws.close()


if __name__ == "__main__":
    sys.exit(main())
