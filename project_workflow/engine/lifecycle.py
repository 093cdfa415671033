#!/usr/bin/env python3
"""
Project lifecycle helpers.

What the Project Lifecycle Manager needs from the engine, expressed as pure
computations over ProjectState. Nothing here persists a project or sends a
notification: callers store the returned state and dispatch the returned
NotificationRequest themselves.
"""

import logging
from dataclasses import dataclass, replace

from .errors import WorkflowNotFoundError
from .models import DEFAULT_WORKFLOW_ID, ProjectState, ProjectStatus, StepTransition
from .notifications import NotificationRequest, render_message, render_notification
from .resolver import resolve_transition
from .store import WorkflowStore

logger = logging.getLogger(__name__)

INITIAL_NOTIFICATION_MESSAGE = (
    "Proyek baru '{projectName}' telah dibuat dan ditugaskan kepada Anda untuk {newStatus}."
)

PARALLEL_UPLOAD_MESSAGE = (
    "Divisi {division} telah menyelesaikan unggahan mereka untuk proyek \"{projectName}\"."
)

# Receives parallel upload completion notices
PARALLEL_UPLOAD_NOTIFY_DIVISION = "Admin Proyek"


@dataclass
class ProjectStart:
    project: ProjectState
    notification: NotificationRequest | None


@dataclass
class TransitionOutcome:
    project: ProjectState
    transition: StepTransition | None
    notification: NotificationRequest | None

    @property
    def terminal(self) -> bool:
        """True when the project was already on a terminal step (no-op)."""
        return self.transition is None


@dataclass
class ParallelUpload:
    project: ProjectState
    done: bool
    notification: NotificationRequest | None


def start_project(
    store: WorkflowStore,
    title: str,
    workflow_id: str | None = None,
) -> ProjectStart:
    """
    Place a new project on the first step of its workflow.

    Raises:
        WorkflowNotFoundError: the workflow does not exist
    """
    effective_id = workflow_id or DEFAULT_WORKFLOW_ID
    first = store.get_first_step(effective_id)
    if first is None:
        raise WorkflowNotFoundError(effective_id)

    project = ProjectState(
        title=title,
        status=first.status,
        progress=first.progress,
        assigned_division=first.assigned_division,
        next_action=first.next_action_description,
        workflow_id=effective_id,
    )

    notification = None
    if first.assigned_division:
        notification = NotificationRequest(
            divisions=[first.assigned_division],
            message=render_message(
                INITIAL_NOTIFICATION_MESSAGE,
                title,
                new_status=first.next_action_description or first.status,
            ),
        )
    return ProjectStart(project=project, notification=notification)


def _on_terminal_status(store: WorkflowStore, project: ProjectState) -> bool:
    """
    True when the project's status is terminal, whatever its progress.

    Cancellation keeps the progress reached, so a canceled project sits on a
    (status, progress) pair that has no step of its own.
    """
    if project.status in ProjectStatus.TERMINAL:
        return True
    workflow = store.get_by_id(project.workflow_id)
    if workflow is None:
        return False
    same_status = [s for s in workflow.steps if s.status == project.status]
    return bool(same_status) and all(s.is_terminal for s in same_status)


def advance_project(
    store: WorkflowStore,
    project: ProjectState,
    action: str,
    actor_username: str | None = None,
) -> TransitionOutcome:
    """
    Apply an action to a project and compute its next state.

    Projects on a terminal status (Completed, Canceled, or a status whose
    steps are all terminal) yield an outcome with the project unchanged and
    `terminal` set. Resolver failures propagate unchanged.
    """
    if _on_terminal_status(store, project):
        logger.info("Project '%s' is %s; action %r ignored.", project.title, project.status, action)
        return TransitionOutcome(project=project, transition=None, notification=None)

    transition = resolve_transition(
        store, project.workflow_id, project.status, project.progress, action
    )
    if transition is None:
        return TransitionOutcome(project=project, transition=None, notification=None)

    advanced = replace(
        project,
        status=transition.target_status,
        progress=transition.target_progress,
        assigned_division=transition.target_assigned_division,
        next_action=transition.target_next_action_description,
        parallel_uploads_completed_by=(),
    )
    logger.info("Project '%s' moved %s(%d) -> %s(%d) via %r",
                project.title, project.status, project.progress,
                advanced.status, advanced.progress, action)

    notification = render_notification(
        transition.notification,
        project.title,
        new_status=advanced.status,
        actor_username=actor_username,
    )
    return TransitionOutcome(project=advanced, transition=transition, notification=notification)


def record_parallel_upload(
    project: ProjectState,
    division: str,
    required_divisions: list[str] | tuple[str, ...],
) -> ParallelUpload:
    """
    Record that a division finished its part of a parallel upload step.

    The outcome carries the updated project, whether every required division
    is now done, and a notice for Admin Proyek when the division is newly
    recorded. Recording the same division twice changes nothing and sends
    nothing. The caller submits the step's action only once `done` is True.
    """
    completed = project.parallel_uploads_completed_by
    notification = None
    if division not in completed:
        completed = completed + (division,)
        project = replace(project, parallel_uploads_completed_by=completed)
        notification = NotificationRequest(
            divisions=[PARALLEL_UPLOAD_NOTIFY_DIVISION],
            message=render_message(
                PARALLEL_UPLOAD_MESSAGE.replace("{division}", division), project.title
            ),
        )
    done = all(required in completed for required in required_divisions)
    return ParallelUpload(project=project, done=done, notification=notification)
