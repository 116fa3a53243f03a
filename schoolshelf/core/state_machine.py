"""Canonical state transition helpers for workflow entities."""

from __future__ import annotations

from schoolshelf.core.enums import MembershipStatus
from schoolshelf.core.exceptions import ConflictError


class InvalidTransitionError(ConflictError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Simple in-memory state machine over a fixed transition table."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")


# APPROVED -> PENDING is intentionally absent.
MEMBERSHIP_TRANSITIONS = StateMachine(
    {
        MembershipStatus.PENDING.value: {MembershipStatus.APPROVED.value, MembershipStatus.REJECTED.value},
        MembershipStatus.REJECTED.value: {MembershipStatus.APPROVED.value},
    }
)
