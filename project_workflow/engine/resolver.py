#!/usr/bin/env python3
"""
Workflow Transition Resolver

Pure function from (workflow id, current status, current progress, action)
to the transition that applies next:

    1. load the workflow (store repair pass included)   → WorkflowNotFoundError
    2. find the step whose (status, progress) matches   → StepNotFoundError
    3. step.transitions is None                         → None (terminal, no-op)
    4. exact action match                               → that transition
    5. fallback actions, in order: "default", "submitted"
    6. nothing matched                                  → NoMatchingTransitionError

Step lookup is first-match in step order. The resolver never sends the
notification attached to a transition; it returns it to the caller.
"""

import logging

from .errors import NoMatchingTransitionError, StepNotFoundError, WorkflowNotFoundError
from .models import StepTransition, Workflow, WorkflowStep
from .store import WorkflowStore

logger = logging.getLogger(__name__)

FALLBACK_ACTIONS: tuple[str, ...] = ("default", "submitted")


# ---------------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------------


def find_step(workflow: Workflow, status: str, progress: int) -> WorkflowStep | None:
    """Return the first step with this exact (status, progress) pair."""
    for step in workflow.steps:
        if step.status == status and step.progress == progress:
            return step
    return None


def available_actions(step: WorkflowStep) -> list[str]:
    """Return the action names accepted from this step, in definition order."""
    return list(step.transitions or {})


def select_action(step: WorkflowStep, action: str) -> str | None:
    """Return the action key that would fire for `action`, applying fallbacks."""
    transitions = step.transitions or {}
    if action in transitions:
        return action
    for fallback in FALLBACK_ACTIONS:
        if fallback in transitions:
            return fallback
    return None


def validate_action(step: WorkflowStep, action: str, workflow_id: str = "") -> str:
    """
    Check an action against a step before doing any work for it.

    Returns the action key that will fire (the action itself or a fallback).

    Raises:
        NoMatchingTransitionError: the step is terminal, or neither the action
            nor a fallback is defined on it
    """
    selected = select_action(step, action)
    if selected is None:
        raise NoMatchingTransitionError(workflow_id, step.step_name, action, available_actions(step))
    return selected


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_transition(
    store: WorkflowStore,
    workflow_id: str,
    current_status: str,
    current_progress: int,
    action_taken: str,
) -> StepTransition | None:
    """
    Resolve what happens when `action_taken` is applied at (status, progress).

    Returns:
        The matching StepTransition, or None when the current step is terminal.

    Raises:
        WorkflowNotFoundError: workflow id not in the store
        StepNotFoundError: no step with the (status, progress) pair
        NoMatchingTransitionError: action unknown and no fallback defined
    """
    workflow = store.get_by_id(workflow_id)
    if workflow is None:
        logger.error("Workflow with ID %s not found.", workflow_id)
        raise WorkflowNotFoundError(workflow_id)

    step = find_step(workflow, current_status, current_progress)
    if step is None:
        logger.error("Current step for status %r and progress %s not found in workflow %r.",
                     current_status, current_progress, workflow_id)
        raise StepNotFoundError(workflow_id, current_status, current_progress)

    if step.is_terminal:
        logger.info("Step '%s' in workflow '%s' is terminal (no transitions defined).",
                    step.step_name, workflow_id)
        return None

    selected = select_action(step, action_taken)
    if selected is None:
        logger.warning("No transition for action %r from step '%s' (status: %s, progress: %s) "
                       "in workflow %r.",
                       action_taken, step.step_name, current_status, current_progress, workflow_id)
        raise NoMatchingTransitionError(
            workflow_id, step.step_name, action_taken, available_actions(step)
        )

    if selected != action_taken:
        logger.info("Action %r not defined on step '%s'; using fallback %r.",
                    action_taken, step.step_name, selected)
    return step.transitions[selected]
