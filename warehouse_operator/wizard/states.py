"""
Wizard State Machine Definition - Uses `transitions` library.

The step index lives on the controller; these states are the lifecycle
around it. ACTIVE covers every step position, COMPLETED is the summary
screen waiting for the operator to submit, SUBMIT_FAILED waits for a
manual retry or cancel.
"""

from enum import Enum


class WizardStates(str, Enum):
    """All possible lifecycle states of a wizard."""
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    COMPLETED = "completed"            # all steps resolved, awaiting submit
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    SUBMIT_FAILED = "submit_failed"    # human pause: retry or cancel
    CLOSED = "closed"


# Transition table for the state machine.
# Each dict: trigger (method name), source, dest, optional conditions/unless.
TRANSITIONS = [
    # Start
    {'trigger': 'begin', 'source': WizardStates.UNINITIALIZED, 'dest': WizardStates.ACTIVE,
     'conditions': ['has_steps']},

    # Step walk
    {'trigger': 'steps_exhausted', 'source': WizardStates.ACTIVE, 'dest': WizardStates.COMPLETED,
     'conditions': ['is_at_end']},
    {'trigger': 'step_back', 'source': [
        WizardStates.COMPLETED,
        WizardStates.SUBMIT_FAILED,
    ], 'dest': WizardStates.ACTIVE},

    # Submission
    {'trigger': 'send', 'source': [
        WizardStates.COMPLETED,
        WizardStates.SUBMIT_FAILED,
    ], 'dest': WizardStates.SUBMITTING},
    {'trigger': 'send_succeeded', 'source': WizardStates.SUBMITTING, 'dest': WizardStates.SUBMITTED},
    {'trigger': 'send_failed', 'source': WizardStates.SUBMITTING, 'dest': WizardStates.SUBMIT_FAILED},

    # Teardown
    {'trigger': 'finish', 'source': WizardStates.SUBMITTED, 'dest': WizardStates.CLOSED},
    {'trigger': 'abandon', 'source': [
        WizardStates.UNINITIALIZED,
        WizardStates.ACTIVE,
        WizardStates.COMPLETED,
        WizardStates.SUBMITTING,
        WizardStates.SUBMIT_FAILED,
    ], 'dest': WizardStates.CLOSED},
]


# States in which the operator is still allowed to walk steps / scan
STEP_STATES = {WizardStates.ACTIVE.value}

# States in which the finished payload is shown
REVIEW_STATES = {WizardStates.COMPLETED.value, WizardStates.SUBMIT_FAILED.value}
