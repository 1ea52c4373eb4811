# src/jobs/state.py — v1
"""Batch job state machine.

QUEUED -> RUNNING -> SUCCESS | FAILURE, plus QUEUED -> FAILURE for jobs that
cannot start. SUCCESS and FAILURE are terminal. Re-entering the current
state is always allowed (no-op).
"""

from __future__ import annotations

from docworker.core.models import JobState

STATES: tuple[JobState, ...] = ("QUEUED", "RUNNING", "SUCCESS", "FAILURE")

_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    "QUEUED": frozenset({"RUNNING", "FAILURE"}),
    "RUNNING": frozenset({"SUCCESS", "FAILURE"}),
    "SUCCESS": frozenset(),
    "FAILURE": frozenset(),
}


def can_transition(current: JobState, requested: JobState) -> bool:
    """True if ``requested`` may follow ``current``."""
    if current == requested:
        return True
    return requested in _TRANSITIONS.get(current, frozenset())
