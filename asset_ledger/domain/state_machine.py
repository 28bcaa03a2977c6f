from __future__ import annotations

from enum import StrEnum


class AssignmentStatus(StrEnum):
    ACTIVE = "Active"
    RETURNED = "Returned"
    OVERDUE = "Overdue"
    LOST = "Lost"
    DAMAGED = "Damaged"


TERMINAL_STATUSES: frozenset[AssignmentStatus] = frozenset({AssignmentStatus.RETURNED, AssignmentStatus.LOST})

# Returned is reached only through return_asset, which records the return date.
ALLOWED_TRANSITIONS: dict[AssignmentStatus, set[AssignmentStatus]] = {
    AssignmentStatus.ACTIVE: {
        AssignmentStatus.OVERDUE,
        AssignmentStatus.LOST,
        AssignmentStatus.DAMAGED,
    },
    AssignmentStatus.OVERDUE: {
        AssignmentStatus.ACTIVE,
        AssignmentStatus.LOST,
        AssignmentStatus.DAMAGED,
    },
    AssignmentStatus.DAMAGED: {
        AssignmentStatus.ACTIVE,
        AssignmentStatus.OVERDUE,
        AssignmentStatus.LOST,
    },
    AssignmentStatus.RETURNED: set(),
    AssignmentStatus.LOST: set(),
}

RETURNABLE_STATUSES: frozenset[AssignmentStatus] = frozenset(
    {AssignmentStatus.ACTIVE, AssignmentStatus.OVERDUE, AssignmentStatus.DAMAGED}
)

OPEN_STATUSES: frozenset[AssignmentStatus] = frozenset({AssignmentStatus.ACTIVE, AssignmentStatus.OVERDUE})


def is_terminal(status: AssignmentStatus, *, damaged_is_terminal: bool = False) -> bool:
    if status in TERMINAL_STATUSES:
        return True
    return damaged_is_terminal and status == AssignmentStatus.DAMAGED


def can_transition(
    source: AssignmentStatus,
    target: AssignmentStatus,
    *,
    damaged_is_terminal: bool = False,
) -> bool:
    if is_terminal(source, damaged_is_terminal=damaged_is_terminal):
        return False
    return target in ALLOWED_TRANSITIONS.get(source, set())


def can_return(source: AssignmentStatus) -> bool:
    return source in RETURNABLE_STATUSES
