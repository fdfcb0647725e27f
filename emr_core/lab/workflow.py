# emr_core/lab/workflow.py
from __future__ import annotations

from emr_core.lab.models import LabStatus

TERMINAL_STATUSES = frozenset({LabStatus.COMPLETED, LabStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    LabStatus.ORDERED: frozenset({LabStatus.IN_PROGRESS, LabStatus.COMPLETED, LabStatus.CANCELLED}),
    LabStatus.IN_PROGRESS: frozenset({LabStatus.COMPLETED, LabStatus.CANCELLED}),
    LabStatus.COMPLETED: frozenset(),
    LabStatus.CANCELLED: frozenset(),
}


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, new: str):
        self.current = current
        self.new = new
        super().__init__(f"Cannot change lab result status from {current} to {new}.")


def assert_transition(current: str, new: str) -> None:
    # Re-saving the same status is a no-op transition.
    if current == new:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransition(current, new)
