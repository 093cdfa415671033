#!/usr/bin/env python3
"""
Workflow Engine Data Models

Typed dataclasses for workflow definitions and the project snapshot the
engine reads. All models use @dataclass (not Pydantic); serialization is
handled manually by from_dict()/to_dict().

The persisted document uses the camelCase keys of the original workflows.json
(stepName, targetStatus, ...). Python attributes are snake_case; the dict
converters translate between the two so existing files load unchanged.
"""

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Well-known identifiers
# ---------------------------------------------------------------------------

DEFAULT_WORKFLOW_ID = "default_standard_workflow"
DEFAULT_WORKFLOW_NAME = "Standard Project Workflow"
DEFAULT_WORKFLOW_DESCRIPTION = "The standard, multi-stage project workflow."


class ProjectStatus:
    """Statuses of the canonical structure that callers branch on."""
    PENDING_OFFER = "Pending Offer"
    PENDING_APPROVAL = "Pending Approval"
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELED = "Canceled"

    TERMINAL = frozenset([COMPLETED, CANCELED])


# ---------------------------------------------------------------------------
# Workflow definition
# ---------------------------------------------------------------------------


@dataclass
class NotificationDirective:
    """Who to notify after a transition, and the message template to send."""
    message: str
    division: str | list[str] | None = None     # None = no specific division

    @property
    def divisions(self) -> list[str]:
        """Return target divisions as a list, dropping empty names."""
        if self.division is None:
            return []
        if isinstance(self.division, str):
            return [self.division] if self.division else []
        return [d for d in self.division if d]

    def to_dict(self) -> dict[str, Any]:
        division = list(self.division) if isinstance(self.division, list) else self.division
        return {"division": division, "message": self.message}

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "NotificationDirective | None":
        if not d:
            return None
        division = d.get("division")
        if isinstance(division, (list, tuple)):
            division = [str(x) for x in division]
        return cls(message=d.get("message") or "", division=division)


@dataclass
class StepTransition:
    """The effect of taking a named action from a step."""
    target_status: str
    target_assigned_division: str
    target_progress: int
    target_next_action_description: str | None = None
    notification: NotificationDirective | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetStatus": self.target_status,
            "targetAssignedDivision": self.target_assigned_division,
            "targetNextActionDescription": self.target_next_action_description,
            "targetProgress": self.target_progress,
            "notification": self.notification.to_dict() if self.notification else None,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "StepTransition":
        return cls(
            target_status=d["targetStatus"],
            target_assigned_division=d.get("targetAssignedDivision") or "",
            target_progress=d["targetProgress"],
            target_next_action_description=d.get("targetNextActionDescription"),
            notification=NotificationDirective.from_dict(d.get("notification")),
        )


@dataclass
class WorkflowStep:
    """One state of the machine, keyed by (status, progress)."""
    step_name: str
    status: str
    assigned_division: str
    progress: int                       # 0-100, secondary lookup key
    next_action_description: str | None = None
    transitions: dict[str, StepTransition] | None = None   # None = terminal

    @property
    def is_terminal(self) -> bool:
        """True when the step has no outgoing transitions."""
        return self.transitions is None

    @property
    def key(self) -> tuple[str, int]:
        """The (status, progress) pair steps are looked up by."""
        return (self.status, self.progress)

    def to_dict(self) -> dict[str, Any]:
        transitions = None
        if self.transitions is not None:
            transitions = {action: t.to_dict() for action, t in self.transitions.items()}
        return {
            "stepName": self.step_name,
            "status": self.status,
            "assignedDivision": self.assigned_division,
            "progress": self.progress,
            "nextActionDescription": self.next_action_description,
            "transitions": transitions,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "WorkflowStep":
        raw = d.get("transitions")
        transitions = None
        if raw is not None:
            transitions = {
                str(action): StepTransition.from_dict(t) for action, t in raw.items()
            }
        return cls(
            step_name=d.get("stepName") or "",
            status=d["status"],
            assigned_division=d.get("assignedDivision") or "",
            progress=d["progress"],
            next_action_description=d.get("nextActionDescription"),
            transitions=transitions,
        )


@dataclass
class Workflow:
    """A named, ordered graph of steps."""
    id: str
    name: str
    description: str = ""
    steps: list[WorkflowStep] = field(default_factory=list)

    @property
    def statuses(self) -> list[str]:
        """Distinct step statuses in step order."""
        seen: list[str] = []
        for step in self.steps:
            if step.status not in seen:
                seen.append(step.status)
        return seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Workflow":
        return cls(
            id=d["id"],
            name=d.get("name") or "",
            description=d.get("description") or "",
            steps=[WorkflowStep.from_dict(s) for s in d.get("steps") or []],
        )


# ---------------------------------------------------------------------------
# Project snapshot (owned by the Project Lifecycle Manager)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectState:
    """
    The fields of a project record the engine reads.

    Frozen: lifecycle helpers return new instances via dataclasses.replace
    and never mutate the caller's record.
    """
    title: str
    status: str
    progress: int
    assigned_division: str
    next_action: str | None
    workflow_id: str = DEFAULT_WORKFLOW_ID
    parallel_uploads_completed_by: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "status": self.status,
            "progress": self.progress,
            "assignedDivision": self.assigned_division,
            "nextAction": self.next_action,
            "workflowId": self.workflow_id,
            "parallelUploadsCompletedBy": list(self.parallel_uploads_completed_by),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ProjectState":
        """Construct from a project record; a missing workflowId means the default."""
        return cls(
            title=d.get("title") or "",
            status=d["status"],
            progress=d["progress"],
            assigned_division=d.get("assignedDivision") or "",
            next_action=d.get("nextAction"),
            workflow_id=d.get("workflowId") or DEFAULT_WORKFLOW_ID,
            parallel_uploads_completed_by=tuple(d.get("parallelUploadsCompletedBy") or ()),
        )
