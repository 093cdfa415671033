#!/usr/bin/env python3
"""
Notification directive rendering.

Transitions carry a directive (division + message template); the engine turns
it into a NotificationRequest and the caller's Notifier delivers it. Delivery
transport (email, push, in-app) is not the engine's concern.

Placeholders: {projectName}, {newStatus}, {actorUsername}.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .models import NotificationDirective

logger = logging.getLogger(__name__)

DEFAULT_TRANSITION_MESSAGE = "Proyek '{projectName}' telah diperbarui ke status: {newStatus}."


class Notifier(Protocol):
    def notify(self, division: str, message: str, project_id: str | None = None) -> None:
        ...


@dataclass
class NotificationRequest:
    divisions: list[str]
    message: str


@dataclass
class RecordingNotifier:
    """Notifier that keeps what it was asked to send. Used by tests and the CLI dry run."""
    sent: list[tuple[str, str, str | None]] = field(default_factory=list)

    def notify(self, division: str, message: str, project_id: str | None = None) -> None:
        self.sent.append((division, message, project_id))


def render_message(
    template: str,
    project_name: str,
    new_status: str | None = None,
    actor_username: str | None = None,
) -> str:
    """Substitute placeholders. Unknown placeholders are left as written."""
    message = template.replace("{projectName}", project_name)
    if new_status is not None:
        message = message.replace("{newStatus}", new_status)
    if actor_username is not None:
        message = message.replace("{actorUsername}", actor_username)
    return message


def render_notification(
    directive: NotificationDirective | None,
    project_name: str,
    new_status: str | None = None,
    actor_username: str | None = None,
) -> NotificationRequest | None:
    """Return the request to dispatch, or None when there is nobody to notify."""
    if directive is None:
        return None
    divisions = directive.divisions
    if not divisions:
        return None
    message = render_message(
        directive.message or DEFAULT_TRANSITION_MESSAGE,
        project_name,
        new_status=new_status,
        actor_username=actor_username,
    )
    return NotificationRequest(divisions=divisions, message=message)


def dispatch(
    request: NotificationRequest | None,
    notifier: Notifier,
    project_id: str | None = None,
) -> int:
    """Send a request to each of its divisions. Returns how many were sent."""
    if request is None:
        return 0
    for division in request.divisions:
        notifier.notify(division, request.message, project_id)
        logger.info("Notification sent to division %s for project %s", division, project_id)
    return len(request.divisions)
