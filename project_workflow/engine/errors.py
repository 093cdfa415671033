#!/usr/bin/env python3
"""
Workflow Engine Error Types

Every failure the engine surfaces is a WorkflowEngineError subclass carrying a
stable `code` string, so API and UI layers can map it to a targeted message
instead of a generic failure.

Taxonomy:
    NotFound             — WorkflowNotFoundError, StepNotFoundError
    NoMatchingTransition — NoMatchingTransitionError
    InvariantViolation   — CannotDeleteLastOrDefaultWorkflowError
    NotFound on delete   — WorkflowNotFoundForDeletionError
    Validation           — InvalidWorkflowError
    PersistenceFailure   — WorkflowSaveError

A terminal step is NOT an error: the resolver returns None for it.
"""


class WorkflowEngineError(Exception):
    """Base class for all workflow engine failures."""

    code = "WORKFLOW_ENGINE_ERROR"


class WorkflowNotFoundError(WorkflowEngineError):
    """Raised when a referenced workflow id does not exist in the store."""

    code = "WORKFLOW_NOT_FOUND"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' not found.")


class StepNotFoundError(WorkflowEngineError):
    """
    Raised when no step matches a project's (status, progress) pair.

    This means the project record references a stale or invalid state and
    should be treated as a data-integrity error, not silently defaulted.
    """

    code = "CURRENT_STEP_NOT_FOUND"

    def __init__(self, workflow_id: str, status: str, progress: int):
        self.workflow_id = workflow_id
        self.status = status
        self.progress = progress
        super().__init__(
            f"No step with status '{status}' and progress {progress} "
            f"in workflow '{workflow_id}'."
        )


class NoMatchingTransitionError(WorkflowEngineError):
    """Raised when an action is not recognized and no fallback action applies."""

    code = "NO_TRANSITION_FOR_ACTION"

    def __init__(
        self,
        workflow_id: str,
        step_name: str,
        action: str,
        valid_actions: list[str] | None = None,
    ):
        self.workflow_id = workflow_id
        self.step_name = step_name
        self.action = action
        self.valid_actions = list(valid_actions or [])
        super().__init__(
            f"No transition for action '{action}' from step '{step_name}' "
            f"in workflow '{workflow_id}'. "
            f"Valid actions: {sorted(self.valid_actions)}"
        )


class CannotDeleteLastOrDefaultWorkflowError(WorkflowEngineError):
    """Raised when deleting the default workflow while it is the only one left."""

    code = "CANNOT_DELETE_LAST_OR_DEFAULT_WORKFLOW"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(
            f"Cannot delete workflow '{workflow_id}': it is the default "
            "workflow and the only one remaining."
        )


class WorkflowNotFoundForDeletionError(WorkflowEngineError):
    """Raised when deleting a workflow id that does not exist."""

    code = "WORKFLOW_NOT_FOUND_FOR_DELETION"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow '{workflow_id}' not found for deletion.")


class InvalidWorkflowError(WorkflowEngineError):
    """Raised when workflow fields or steps fail validation."""

    code = "INVALID_WORKFLOW"

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid workflow definition: " + "; ".join(self.problems))


class WorkflowSaveError(WorkflowEngineError):
    """Raised when the persistence collaborator fails to write."""

    code = "WORKFLOW_SAVE_FAILED"

    def __init__(self, message: str = "Failed to save workflow data."):
        super().__init__(message)
