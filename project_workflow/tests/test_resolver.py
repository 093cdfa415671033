"""
Tests for engine/resolver.py

Validates:
- Exact action lookup on the (status, progress) step
- Terminal steps resolve to None, never an error
- Fallback order is exactly "default" then "submitted"
- NotFound / StepNotFound / NoMatchingTransition failures
- Determinism and first-match on duplicate pairs
- validate_action() and available_actions()
"""

import pytest

from project_workflow.engine.errors import (
    NoMatchingTransitionError,
    StepNotFoundError,
    WorkflowNotFoundError,
)
from project_workflow.engine.models import (
    DEFAULT_WORKFLOW_ID,
    StepTransition,
    Workflow,
    WorkflowStep,
)
from project_workflow.engine.persistence import InMemoryPersistence
from project_workflow.engine.defaults import default_workflow
from project_workflow.engine.resolver import (
    FALLBACK_ACTIONS,
    available_actions,
    resolve_transition,
    validate_action,
)
from project_workflow.engine.store import WorkflowStore


def _transition(target_status: str, progress: int) -> StepTransition:
    return StepTransition(
        target_status=target_status,
        target_assigned_division="Owner",
        target_progress=progress,
    )


def _store_with(*steps: WorkflowStep, workflow_id: str = "wf_test") -> WorkflowStore:
    wf = Workflow(id=workflow_id, name="Test", steps=list(steps))
    return WorkflowStore(InMemoryPersistence([default_workflow(), wf]))


def _step(status: str, progress: int, transitions) -> WorkflowStep:
    return WorkflowStep(
        step_name=f"{status} step",
        status=status,
        assigned_division="Admin Proyek",
        progress=progress,
        transitions=transitions,
    )


# ---------------------------------------------------------------------------
# Canonical workflow scenarios
# ---------------------------------------------------------------------------


def test_submitted_offer_moves_to_approval(store):
    t = resolve_transition(store, DEFAULT_WORKFLOW_ID, "Pending Offer", 10, "submitted")
    assert t.target_status == "Pending Approval"
    assert t.target_progress == 20
    assert t.target_assigned_division == "Owner"
    assert t.target_next_action_description == "Setujui Dokumen Penawaran"
    assert t.notification.division == "Owner"
    assert "{projectName}" in t.notification.message


def test_returns_exact_step_transition(store):
    step = store.get_current_step(DEFAULT_WORKFLOW_ID, "Pending Offer", 10)
    t = resolve_transition(store, DEFAULT_WORKFLOW_ID, "Pending Offer", 10, "submitted")
    assert t == step.transitions["submitted"]


@pytest.mark.parametrize("status,progress,action,target,target_progress", [
    ("Pending Approval", 20, "approved", "Pending DP Invoice", 25),
    ("Pending Approval", 20, "rejected", "Canceled", 20),
    ("Pending Approval", 30, "approved", "Pending Admin Files", 40),
    ("Pending Approval", 30, "rejected", "Pending DP Invoice", 25),
    ("Pending Scheduling", 90, "scheduled", "Scheduled", 95),
    ("Scheduled", 95, "completed", "Completed", 100),
    ("Scheduled", 95, "revise_after_sidang", "Pending Admin Files", 40),
    ("Scheduled", 95, "canceled_after_sidang", "Canceled", 95),
])
def test_canonical_transitions(store, status, progress, action, target, target_progress):
    t = resolve_transition(store, DEFAULT_WORKFLOW_ID, status, progress, action)
    assert (t.target_status, t.target_progress) == (target, target_progress)


def test_completed_step_is_terminal(store):
    assert resolve_transition(store, DEFAULT_WORKFLOW_ID, "Completed", 100, "anything") is None


def test_canceled_step_is_terminal(store):
    assert resolve_transition(store, DEFAULT_WORKFLOW_ID, "Canceled", 0, "submitted") is None


def test_completed_outcome_has_no_notification(store):
    t = resolve_transition(store, DEFAULT_WORKFLOW_ID, "Scheduled", 95, "completed")
    assert t.notification is None


def test_happy_path_reaches_completed(store):
    path = [
        "submitted", "approved", "submitted", "approved", "submitted",
        "submitted", "submitted", "submitted", "scheduled", "completed",
    ]
    status, progress = "Pending Offer", 10
    for action in path:
        t = resolve_transition(store, DEFAULT_WORKFLOW_ID, status, progress, action)
        status, progress = t.target_status, t.target_progress
    assert (status, progress) == ("Completed", 100)


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


def test_fallback_order_constant():
    assert FALLBACK_ACTIONS == ("default", "submitted")


def test_default_wins_over_submitted():
    store = _store_with(_step("Draft", 0, {
        "submitted": _transition("Via Submitted", 50),
        "default": _transition("Via Default", 60),
    }))
    t = resolve_transition(store, "wf_test", "Draft", 0, "foo")
    assert t.target_status == "Via Default"


def test_submitted_used_when_no_default():
    store = _store_with(_step("Draft", 0, {"submitted": _transition("Via Submitted", 50)}))
    t = resolve_transition(store, "wf_test", "Draft", 0, "foo")
    assert t.target_status == "Via Submitted"


def test_exact_action_beats_fallback():
    store = _store_with(_step("Draft", 0, {
        "default": _transition("Via Default", 60),
        "approved": _transition("Via Approved", 70),
    }))
    t = resolve_transition(store, "wf_test", "Draft", 0, "approved")
    assert t.target_status == "Via Approved"


def test_no_match_and_no_fallback_raises(store):
    with pytest.raises(NoMatchingTransitionError) as excinfo:
        resolve_transition(store, DEFAULT_WORKFLOW_ID, "Pending Approval", 20, "foo")
    assert sorted(excinfo.value.valid_actions) == ["approved", "rejected"]
    assert excinfo.value.code == "NO_TRANSITION_FOR_ACTION"


def test_empty_transitions_map_is_not_terminal():
    store = _store_with(_step("Stuck", 0, {}))
    with pytest.raises(NoMatchingTransitionError):
        resolve_transition(store, "wf_test", "Stuck", 0, "submitted")


# ---------------------------------------------------------------------------
# Lookup failures
# ---------------------------------------------------------------------------


def test_unknown_workflow_raises(store):
    with pytest.raises(WorkflowNotFoundError):
        resolve_transition(store, "missing", "Pending Offer", 10, "submitted")


def test_unknown_status_progress_pair_raises(store):
    with pytest.raises(StepNotFoundError) as excinfo:
        resolve_transition(store, DEFAULT_WORKFLOW_ID, "Pending Offer", 11, "submitted")
    assert excinfo.value.status == "Pending Offer"
    assert excinfo.value.progress == 11


def test_status_only_match_is_not_used():
    store = _store_with(_step("Draft", 0, {"submitted": _transition("Next", 50)}))
    with pytest.raises(StepNotFoundError):
        resolve_transition(store, "wf_test", "Draft", 5, "submitted")


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------


def test_resolution_is_deterministic(store):
    results = {
        resolve_transition(store, DEFAULT_WORKFLOW_ID, "Pending Approval", 30, "approved").target_status
        for _ in range(5)
    }
    assert results == {"Pending Admin Files"}


def test_duplicate_pairs_resolve_first_match():
    store = _store_with(
        _step("Draft", 0, {"submitted": _transition("First", 50)}),
        _step("Draft", 0, {"submitted": _transition("Second", 60)}),
    )
    t = resolve_transition(store, "wf_test", "Draft", 0, "submitted")
    assert t.target_status == "First"


# ---------------------------------------------------------------------------
# Early validation helpers
# ---------------------------------------------------------------------------


def test_available_actions(store):
    step = store.get_current_step(DEFAULT_WORKFLOW_ID, "Scheduled", 95)
    assert available_actions(step) == ["completed", "revise_after_sidang", "canceled_after_sidang"]


def test_available_actions_terminal_is_empty(store):
    step = store.get_current_step(DEFAULT_WORKFLOW_ID, "Completed", 100)
    assert available_actions(step) == []


def test_validate_action_returns_selected_key(store):
    step = store.get_current_step(DEFAULT_WORKFLOW_ID, "Pending Offer", 10)
    assert validate_action(step, "submitted") == "submitted"
    assert validate_action(step, "uploaded") == "submitted"


def test_validate_action_rejects_unknown(store):
    step = store.get_current_step(DEFAULT_WORKFLOW_ID, "Pending Approval", 20)
    with pytest.raises(NoMatchingTransitionError):
        validate_action(step, "uploaded", DEFAULT_WORKFLOW_ID)
