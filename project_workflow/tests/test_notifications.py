"""
Tests for engine/notifications.py
"""

import pytest

from project_workflow.engine.models import NotificationDirective
from project_workflow.engine.notifications import (
    DEFAULT_TRANSITION_MESSAGE,
    RecordingNotifier,
    dispatch,
    render_message,
    render_notification,
)


def test_render_message_substitutes_project_name():
    msg = render_message("Penawaran untuk proyek '{projectName}' ditolak.", "Gedung A")
    assert msg == "Penawaran untuk proyek 'Gedung A' ditolak."


def test_render_message_optional_placeholders():
    template = "{actorUsername} moved '{projectName}' to {newStatus}"
    assert render_message(template, "P") == "{actorUsername} moved 'P' to {newStatus}"
    assert render_message(template, "P", new_status="Scheduled", actor_username="budi") == (
        "budi moved 'P' to Scheduled"
    )


def test_render_notification_none_directive():
    assert render_notification(None, "P") is None


@pytest.mark.parametrize("division", [None, "", []])
def test_render_notification_without_division(division):
    directive = NotificationDirective(message="hi {projectName}", division=division)
    assert render_notification(directive, "P") is None


def test_render_notification_single_division():
    directive = NotificationDirective(message="Proyek '{projectName}'", division="Owner")
    request = render_notification(directive, "Gedung A")
    assert request.divisions == ["Owner"]
    assert request.message == "Proyek 'Gedung A'"


def test_render_notification_division_list_drops_empty():
    directive = NotificationDirective(message="x", division=["Struktur", "", "MEP"])
    assert render_notification(directive, "P").divisions == ["Struktur", "MEP"]


def test_render_notification_empty_message_uses_default():
    directive = NotificationDirective(message="", division="Owner")
    request = render_notification(directive, "P", new_status="Scheduled")
    assert request.message == DEFAULT_TRANSITION_MESSAGE.replace(
        "{projectName}", "P"
    ).replace("{newStatus}", "Scheduled")


def test_dispatch_sends_once_per_division():
    notifier = RecordingNotifier()
    directive = NotificationDirective(message="m", division=["Struktur", "MEP"])
    sent = dispatch(render_notification(directive, "P"), notifier, project_id="proj-1")
    assert sent == 2
    assert notifier.sent == [("Struktur", "m", "proj-1"), ("MEP", "m", "proj-1")]


def test_dispatch_none_request():
    notifier = RecordingNotifier()
    assert dispatch(None, notifier) == 0
    assert notifier.sent == []
