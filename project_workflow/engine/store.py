#!/usr/bin/env python3
"""
Workflow Definition Store

Durable mapping from workflow id to Workflow with invariant enforcement. Every
operation is a synchronous read-modify-write pass over the injected
persistence collaborator; there is no internal locking, so concurrent writers
may lose updates unless the persistence layer serializes them.

Self-healing (run by get_all/get_by_id and everything built on them):
- default workflow missing       → inserted at the front with canonical steps
- default workflow step count
  differs from canonical         → its steps are overwritten with canonical
- any workflow with zero steps   → canonical steps installed
All repairs are persisted in the same call.

Deletion rules:
- deleting the default workflow while it is the only one → rejected
- deleting an unknown id                                 → rejected
- a delete that empties the store reinstates the default workflow
"""

import logging
import random
import string
import time
from typing import Any

from .defaults import canonical_step_count, canonical_steps, default_workflow
from .errors import (
    CannotDeleteLastOrDefaultWorkflowError,
    InvalidWorkflowError,
    WorkflowNotFoundForDeletionError,
    WorkflowSaveError,
)
from .models import DEFAULT_WORKFLOW_ID, Workflow, WorkflowStep
from .persistence import WorkflowPersistence

logger = logging.getLogger(__name__)

# Fields update() accepts; id is immutable and silently ignored
UPDATABLE_FIELDS = frozenset(["name", "description", "steps"])

_ID_ALPHABET = string.digits + string.ascii_lowercase


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _valid_progress(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 100


def validate_steps(steps: list[WorkflowStep]) -> None:
    """
    Validate a step list before it is written.

    Raises:
        InvalidWorkflowError: listing every problem found (empty list, bad
            progress values, empty statuses, duplicate (status, progress)
            pairs, empty action names).
    """
    problems: list[str] = []
    if not steps:
        problems.append("a workflow must have at least one step")

    seen: dict[tuple[str, int], str] = {}
    for index, step in enumerate(steps):
        label = step.step_name or f"step #{index}"
        if not step.status:
            problems.append(f"{label}: status is empty")
        if not _valid_progress(step.progress):
            problems.append(f"{label}: progress {step.progress!r} is not an integer in 0..100")
        elif step.key in seen:
            problems.append(
                f"{label}: duplicate (status, progress) pair {step.key!r} "
                f"already used by '{seen[step.key]}'"
            )
        else:
            seen[step.key] = label

        for action, transition in (step.transitions or {}).items():
            if not action:
                problems.append(f"{label}: transition with empty action name")
            if not _valid_progress(transition.target_progress):
                problems.append(
                    f"{label}: action '{action}' targetProgress "
                    f"{transition.target_progress!r} is not an integer in 0..100"
                )

    if problems:
        raise InvalidWorkflowError(problems)


def _coerce_steps(raw_steps: Any) -> list[WorkflowStep]:
    """Accept WorkflowStep objects or persisted-form dicts."""
    if not isinstance(raw_steps, (list, tuple)):
        raise InvalidWorkflowError(["steps must be a list"])
    steps: list[WorkflowStep] = []
    for index, raw in enumerate(raw_steps):
        if isinstance(raw, WorkflowStep):
            steps.append(raw)
            continue
        try:
            steps.append(WorkflowStep.from_dict(raw))
        except (KeyError, TypeError, AttributeError) as exc:
            raise InvalidWorkflowError([f"step #{index} is malformed: {exc}"]) from exc
    return steps


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class WorkflowStore:
    """Workflow definitions with the default workflow guaranteed present."""

    def __init__(self, persistence: WorkflowPersistence):
        self.persistence = persistence

    # -----------------------------------------------------------------------
    # Repair pass
    # -----------------------------------------------------------------------

    def _repair(self, workflows: list[Workflow]) -> bool:
        """Apply the self-healing rules in place. Return True if anything changed."""
        changed = False
        default = next((wf for wf in workflows if wf.id == DEFAULT_WORKFLOW_ID), None)

        if default is None:
            logger.info("Default workflow (ID: %s) not found. Adding it with full structure.",
                        DEFAULT_WORKFLOW_ID)
            workflows.insert(0, default_workflow())
            changed = True
        elif len(default.steps) != canonical_step_count():
            # Coarse drift check: step count only, customizations are discarded
            logger.warning(
                "Default workflow has %d steps, canonical structure has %d. "
                "Overwriting its steps with the canonical structure.",
                len(default.steps), canonical_step_count(),
            )
            default.steps = canonical_steps()
            changed = True

        for wf in workflows:
            if not wf.steps:
                logger.warning("Workflow '%s' has no steps. Installing canonical structure.", wf.id)
                wf.steps = canonical_steps()
                changed = True

        return changed

    def _load(self) -> list[Workflow]:
        """Read through the repair pass, persisting any repair."""
        workflows = self.persistence.read()
        if self._repair(workflows):
            try:
                self.persistence.write(workflows)
                logger.info("Workflow store persisted after repair.")
            except WorkflowSaveError:
                # The repaired in-memory list is still usable; the next read
                # repeats the repair.
                logger.exception("Failed to persist workflow store after repair.")
        return workflows

    def _save(self, workflows: list[Workflow]) -> None:
        self.persistence.write(workflows)

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_all(self) -> list[Workflow]:
        """Return every workflow, after the repair pass."""
        return self._load()

    def get_by_id(self, workflow_id: str) -> Workflow | None:
        """Return the workflow with this id, or None."""
        return next((wf for wf in self._load() if wf.id == workflow_id), None)

    def get_all_unique_statuses(self) -> list[str]:
        """Distinct step statuses across every workflow, first-seen order."""
        statuses: dict[str, None] = {}
        for wf in self._load():
            for step in wf.steps:
                statuses.setdefault(step.status, None)
        return list(statuses)

    def get_first_step(self, workflow_id: str) -> WorkflowStep | None:
        """Return the initial step of a workflow, or None if it does not exist."""
        workflow = self.get_by_id(workflow_id)
        if workflow is None or not workflow.steps:
            logger.warning("Workflow '%s' not found or has no steps when getting first step.",
                           workflow_id)
            return None
        return workflow.steps[0]

    def get_current_step(
        self,
        workflow_id: str,
        status: str,
        progress: int,
        *,
        status_only_fallback: bool = False,
    ) -> WorkflowStep | None:
        """
        Look up the step a project is currently on.

        With status_only_fallback, a missing (status, progress) pair falls back
        to the first step carrying the same status, for projects whose
        progress was overridden by hand. That match may be the wrong step when
        several steps share a status, so the resolver never uses it.
        """
        workflow = self.get_by_id(workflow_id)
        if workflow is None:
            logger.warning("Workflow '%s' not found when getting current step.", workflow_id)
            return None

        for step in workflow.steps:
            if step.status == status and step.progress == progress:
                return step

        if status_only_fallback:
            for step in workflow.steps:
                if step.status == status:
                    logger.warning(
                        "Step (%r, %d) not in workflow '%s'; matched '%s' by status only.",
                        status, progress, workflow_id, step.step_name,
                    )
                    return step
        return None

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    @staticmethod
    def _generate_id(existing: set[str]) -> str:
        while True:
            suffix = "".join(random.choices(_ID_ALPHABET, k=5))
            candidate = f"wf_{int(time.time() * 1000)}_{suffix}"
            if candidate not in existing:
                return candidate

    def add(self, name: str, description: str = "") -> Workflow:
        """
        Create a workflow seeded with the canonical structure.

        Callers customize the steps afterwards via update().
        """
        workflows = self._load()
        workflow = Workflow(
            id=self._generate_id({wf.id for wf in workflows}),
            name=name,
            description=description or "",
            steps=canonical_steps(),
        )
        workflows.append(workflow)
        self._save(workflows)
        logger.info("New workflow '%s' added with ID %s using default standard steps.",
                    name, workflow.id)
        return workflow

    def update(self, workflow_id: str, fields: dict[str, Any]) -> Workflow | None:
        """
        Merge name, description and/or a replacement steps list into a workflow.

        Returns None when the id does not exist. The id itself is immutable;
        an `id` key in fields is ignored.

        Raises:
            InvalidWorkflowError: unknown fields or invalid steps
            WorkflowSaveError: persistence failure
        """
        unknown = set(fields) - UPDATABLE_FIELDS - {"id"}
        if unknown:
            raise InvalidWorkflowError([f"unknown field(s): {sorted(unknown)}"])

        workflows = self._load()
        workflow = next((wf for wf in workflows if wf.id == workflow_id), None)
        if workflow is None:
            logger.error("Workflow with ID %s not found for update.", workflow_id)
            return None

        if "steps" in fields and fields["steps"] is not None:
            steps = _coerce_steps(fields["steps"])
            validate_steps(steps)
            workflow.steps = steps
        if fields.get("name") is not None:
            workflow.name = str(fields["name"])
        if fields.get("description") is not None:
            workflow.description = str(fields["description"])

        self._save(workflows)
        logger.info("Workflow '%s' (ID: %s) updated.", workflow.name, workflow_id)
        return workflow

    def delete(self, workflow_id: str) -> None:
        """
        Remove a workflow.

        Raises:
            CannotDeleteLastOrDefaultWorkflowError: default workflow is the sole survivor
            WorkflowNotFoundForDeletionError: id does not exist
            WorkflowSaveError: persistence failure
        """
        workflows = self.persistence.read()
        stored_ids = [wf.id for wf in workflows]

        # An unseeded store reads back as the default workflow alone
        if workflow_id == DEFAULT_WORKFLOW_ID and stored_ids in ([], [DEFAULT_WORKFLOW_ID]):
            logger.warning("Cannot delete the default workflow (ID: %s); it is the only one left.",
                           DEFAULT_WORKFLOW_ID)
            raise CannotDeleteLastOrDefaultWorkflowError(workflow_id)

        if workflow_id == DEFAULT_WORKFLOW_ID and DEFAULT_WORKFLOW_ID not in stored_ids:
            # Only the repair pass would add it back; nothing is stored to remove
            logger.info("Default workflow (ID: %s) is not stored; nothing to delete.",
                        DEFAULT_WORKFLOW_ID)
            return

        remaining = [wf for wf in workflows if wf.id != workflow_id]
        if len(remaining) == len(workflows):
            logger.warning("Workflow with ID %s not found for deletion.", workflow_id)
            raise WorkflowNotFoundForDeletionError(workflow_id)

        logger.info("Workflow %s deleted. Remaining workflows: %d", workflow_id, len(remaining))
        if not remaining:
            logger.info("No workflows left after deletion. Reinstating default workflow.")
            remaining.append(default_workflow())

        self._save(remaining)
