"""Finalization lock state machine for monthly salary rows."""

from __future__ import annotations

from enum import Enum


class SalaryRowStatus(str, Enum):
    """Lock state of a monthly salary row."""

    OPEN = "open"
    FINALIZED = "finalized"

    @classmethod
    def of(cls, is_finalized: bool | None) -> SalaryRowStatus:
        return cls.FINALIZED if is_finalized else cls.OPEN


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FinalizationStateMachine:
    """State machine for the monthly salary lock.

    Allowed transitions:
    - open → finalized (finalize)
    - finalized → open (unfinalize)

    Recalculation and saving are only allowed while open.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        SalaryRowStatus.OPEN: [SalaryRowStatus.FINALIZED],
        SalaryRowStatus.FINALIZED: [SalaryRowStatus.OPEN],
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        try:
            allowed = cls.VALID_TRANSITIONS.get(SalaryRowStatus(from_status), [])
            return SalaryRowStatus(to_status) in allowed
        except ValueError:
            return False

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, reason: str | None = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def can_recalculate(cls, is_finalized: bool | None) -> bool:
        """Whether a row in this state may be overwritten by a new calculation."""
        return SalaryRowStatus.of(is_finalized) == SalaryRowStatus.OPEN
