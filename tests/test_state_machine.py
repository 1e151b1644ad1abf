"""Tests for the monthly salary finalization state machine."""

import pytest

from erp_payroll.services.state_machine import (
    FinalizationStateMachine,
    InvalidTransitionError,
    SalaryRowStatus,
)

class TestFinalizationStateMachine:
    """Test lock transitions."""

    def test_valid_transitions(self):
        # open → finalized
        assert FinalizationStateMachine.can_transition("open", "finalized") is True

        # finalized → open (unfinalize)
        assert FinalizationStateMachine.can_transition("finalized", "open") is True

    def test_invalid_transitions(self):
        assert FinalizationStateMachine.can_transition("open", "open") is False
        assert FinalizationStateMachine.can_transition("finalized", "finalized") is False

    def test_unknown_status(self):
        assert FinalizationStateMachine.can_transition("paid", "open") is False
        assert FinalizationStateMachine.can_transition("open", "voided") is False

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            FinalizationStateMachine.validate_transition("finalized", "finalized")

        assert exc_info.value.from_status == "finalized"
        assert exc_info.value.to_status == "finalized"
        assert "Invalid transition" in str(exc_info.value)

    def test_validate_transition_reason(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            FinalizationStateMachine.validate_transition(
                SalaryRowStatus.OPEN, SalaryRowStatus.OPEN, reason="employee e-1 in 2024-04"
            )

        assert exc_info.value.reason == "employee e-1 in 2024-04"
        assert str(exc_info.value).endswith(": employee e-1 in 2024-04")

    def test_validate_transition_passes(self):
        FinalizationStateMachine.validate_transition("open", "finalized")

    def test_can_recalculate(self):
        assert FinalizationStateMachine.can_recalculate(False) is True
        assert FinalizationStateMachine.can_recalculate(None) is True
        assert FinalizationStateMachine.can_recalculate(True) is False

    def test_status_of_flag(self):
        assert SalaryRowStatus.of(True) == SalaryRowStatus.FINALIZED
        assert SalaryRowStatus.of(False) == SalaryRowStatus.OPEN
