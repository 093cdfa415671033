#!/usr/bin/env python3
"""
Project Workflow CLI

Admin command-line interface for workflow definitions: inspect, add, rename,
delete, edit steps through an exported YAML/JSON file, and dry-run a
transition.

Usage:
    # All commands auto-detect .workflow/config.yaml from the current directory
    # or accept --project-root and --store overrides.

    project-workflow list                          # list workflows
    project-workflow show <workflow-id>            # steps and transitions
    project-workflow statuses                      # every status in use
    project-workflow first-step <workflow-id>      # initial step

    project-workflow add "Fast Track" --description "..."
    project-workflow rename <workflow-id> --name "..." [--description "..."]
    project-workflow delete <workflow-id>

    project-workflow export <workflow-id> > steps.yaml
    project-workflow import <workflow-id> steps.yaml

    project-workflow resolve <workflow-id> "Pending Offer" 10 submitted --project "Gedung A"
"""

import argparse
import json
import sys
from pathlib import Path

import yaml

from project_workflow.engine.config import (
    EngineConfig,
    create_persistence,
    find_project_root,
    load_engine_config,
)
from project_workflow.engine.errors import WorkflowEngineError
from project_workflow.engine.log_config import configure_logging
from project_workflow.engine.notifications import render_notification
from project_workflow.engine.resolver import resolve_transition
from project_workflow.engine.store import WorkflowStore


def _resolve_config(args: argparse.Namespace) -> EngineConfig:
    """Load config from args or auto-discovery; --store overrides the store path."""
    project_root = Path(args.project_root) if args.project_root else find_project_root()
    config = load_engine_config(project_root)
    if args.store:
        suffix = Path(args.store).suffix.lower()
        config.store_backend = "sqlite" if suffix in (".db", ".sqlite", ".sqlite3") else "json"
        config.store_path = args.store
    return config


def _open_store(args: argparse.Namespace) -> tuple:
    """Build the store; returns (store, persistence) so callers can close it."""
    config = _resolve_config(args)
    configure_logging("DEBUG" if args.verbose else config.log_level)
    persistence = create_persistence(config)
    return WorkflowStore(persistence), persistence


def _close(persistence) -> None:
    close = getattr(persistence, "close", None)
    if close is not None:
        close()


def _fail(exc: WorkflowEngineError) -> int:
    print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
    return 1


# ---------------------------------------------------------------------------
# Query commands
# ---------------------------------------------------------------------------


def cmd_list(args: argparse.Namespace) -> int:
    """List workflows."""
    store, persistence = _open_store(args)
    try:
        workflows = store.get_all()
        print(f"\n{'ID':<36} {'Steps':<6} {'Name'}")
        print("-" * 80)
        for wf in workflows:
            print(f"{wf.id:<36} {len(wf.steps):<6} {wf.name}")
        print(f"\n{len(workflows)} workflow(s).")
        return 0
    finally:
        _close(persistence)


def cmd_show(args: argparse.Namespace) -> int:
    """Show a workflow's steps and transitions."""
    store, persistence = _open_store(args)
    try:
        wf = store.get_by_id(args.workflow_id)
        if wf is None:
            print(f"Workflow '{args.workflow_id}' not found.", file=sys.stderr)
            return 1

        print(f"\nWorkflow: {wf.name} ({wf.id})")
        if wf.description:
            print(f"  {wf.description}")
        print(f"\nSteps ({len(wf.steps)}):")
        for step in wf.steps:
            owner = step.assigned_division or "-"
            print(f"  [{step.progress:>3}%] {step.status:<26} {owner:<15} {step.step_name}")
            if step.transitions is None:
                print("         (terminal)")
                continue
            for action, t in step.transitions.items():
                notify = ", ".join(t.notification.divisions) if t.notification else ""
                notify = f"  notify: {notify}" if notify else ""
                print(f"         {action:<24} -> {t.target_status} ({t.target_progress}%){notify}")
        return 0
    finally:
        _close(persistence)


def cmd_statuses(args: argparse.Namespace) -> int:
    """Print every status used by any workflow."""
    store, persistence = _open_store(args)
    try:
        for status in store.get_all_unique_statuses():
            print(status)
        return 0
    finally:
        _close(persistence)


def cmd_first_step(args: argparse.Namespace) -> int:
    """Show the initial step of a workflow."""
    store, persistence = _open_store(args)
    try:
        step = store.get_first_step(args.workflow_id)
        if step is None:
            print(f"Workflow '{args.workflow_id}' not found.", file=sys.stderr)
            return 1
        print(json.dumps(step.to_dict(), indent=2, ensure_ascii=False))
        return 0
    finally:
        _close(persistence)


def cmd_resolve(args: argparse.Namespace) -> int:
    """Dry-run a transition and show the notification it would send."""
    store, persistence = _open_store(args)
    try:
        transition = resolve_transition(
            store, args.workflow_id, args.status, args.progress, args.action
        )
        if transition is None:
            print(f"'{args.status}' ({args.progress}%) is a terminal step; nothing to do.")
            return 0
        print(json.dumps(transition.to_dict(), indent=2, ensure_ascii=False))
        request = render_notification(
            transition.notification, args.project, new_status=transition.target_status
        )
        if request is not None:
            print(f"\nNotify {', '.join(request.divisions)}: {request.message}")
        return 0
    except WorkflowEngineError as exc:
        return _fail(exc)
    finally:
        _close(persistence)


# ---------------------------------------------------------------------------
# Admin commands
# ---------------------------------------------------------------------------


def cmd_add(args: argparse.Namespace) -> int:
    """Add a workflow seeded with the standard structure."""
    store, persistence = _open_store(args)
    try:
        wf = store.add(args.name, args.description or "")
        print(f"Workflow '{wf.name}' added with ID {wf.id} ({len(wf.steps)} steps).")
        return 0
    except WorkflowEngineError as exc:
        return _fail(exc)
    finally:
        _close(persistence)


def cmd_rename(args: argparse.Namespace) -> int:
    """Change a workflow's name and/or description."""
    fields = {}
    if args.name is not None:
        fields["name"] = args.name
    if args.description is not None:
        fields["description"] = args.description
    if not fields:
        print("Nothing to change: pass --name and/or --description.", file=sys.stderr)
        return 1

    store, persistence = _open_store(args)
    try:
        wf = store.update(args.workflow_id, fields)
        if wf is None:
            print(f"Workflow '{args.workflow_id}' not found.", file=sys.stderr)
            return 1
        print(f"Workflow {wf.id} updated: {wf.name}")
        return 0
    except WorkflowEngineError as exc:
        return _fail(exc)
    finally:
        _close(persistence)


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a workflow."""
    store, persistence = _open_store(args)
    try:
        store.delete(args.workflow_id)
        print(f"Workflow {args.workflow_id} deleted.")
        return 0
    except WorkflowEngineError as exc:
        return _fail(exc)
    finally:
        _close(persistence)


def cmd_export(args: argparse.Namespace) -> int:
    """Write a workflow's steps as YAML (or JSON with --json) to stdout."""
    store, persistence = _open_store(args)
    try:
        wf = store.get_by_id(args.workflow_id)
        if wf is None:
            print(f"Workflow '{args.workflow_id}' not found.", file=sys.stderr)
            return 1
        steps = [s.to_dict() for s in wf.steps]
        if args.json:
            print(json.dumps(steps, indent=2, ensure_ascii=False))
        else:
            print(yaml.safe_dump(steps, sort_keys=False, allow_unicode=True), end="")
        return 0
    finally:
        _close(persistence)


def cmd_import(args: argparse.Namespace) -> int:
    """Replace a workflow's steps with the contents of a YAML or JSON file."""
    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 1
    # JSON is a subset of YAML, so safe_load reads both
    try:
        steps = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        print(f"Could not parse {path}: {exc}", file=sys.stderr)
        return 1
    if not isinstance(steps, list):
        print(f"{path} must contain a list of steps.", file=sys.stderr)
        return 1

    store, persistence = _open_store(args)
    try:
        wf = store.update(args.workflow_id, {"steps": steps})
        if wf is None:
            print(f"Workflow '{args.workflow_id}' not found.", file=sys.stderr)
            return 1
        print(f"Workflow {wf.id} now has {len(wf.steps)} steps.")
        return 0
    except WorkflowEngineError as exc:
        return _fail(exc)
    finally:
        _close(persistence)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="project-workflow",
        description="Project workflow definitions admin CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--project-root", help="Directory holding .workflow/config.yaml")
    parser.add_argument("--store", help="Workflow store file (.json, or .db for SQLite)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List workflows")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show a workflow's steps")
    p.add_argument("workflow_id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("statuses", help="List every status in use")
    p.set_defaults(func=cmd_statuses)

    p = sub.add_parser("first-step", help="Show a workflow's initial step")
    p.add_argument("workflow_id")
    p.set_defaults(func=cmd_first_step)

    p = sub.add_parser("resolve", help="Dry-run a transition")
    p.add_argument("workflow_id")
    p.add_argument("status")
    p.add_argument("progress", type=int)
    p.add_argument("action")
    p.add_argument("--project", default="(project)", help="Project name for the message")
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("add", help="Add a workflow with the standard structure")
    p.add_argument("name")
    p.add_argument("--description", default="")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("rename", help="Change name/description")
    p.add_argument("workflow_id")
    p.add_argument("--name")
    p.add_argument("--description")
    p.set_defaults(func=cmd_rename)

    p = sub.add_parser("delete", help="Delete a workflow")
    p.add_argument("workflow_id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("export", help="Export a workflow's steps")
    p.add_argument("workflow_id")
    p.add_argument("--json", action="store_true", help="JSON instead of YAML")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Replace a workflow's steps from a file")
    p.add_argument("workflow_id")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
