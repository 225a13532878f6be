"""Unit tests for the requirement review state machine."""

import pytest

from api.errors import ValidationError
from models.document_requirement import RequirementStatus
from services.requirement_state import RequirementEvent, can_transition, transition

ALLOWED = {
    (RequirementStatus.PENDING, RequirementEvent.SUBMIT): RequirementStatus.REVIEW,
    (RequirementStatus.REJECTED, RequirementEvent.SUBMIT): RequirementStatus.REVIEW,
    (RequirementStatus.REVIEW, RequirementEvent.SUBMIT): RequirementStatus.REVIEW,
    (RequirementStatus.REVIEW, RequirementEvent.APPROVE): RequirementStatus.APPROVED,
    (RequirementStatus.APPROVED, RequirementEvent.APPROVE): RequirementStatus.APPROVED,
    (RequirementStatus.REVIEW, RequirementEvent.REJECT): RequirementStatus.REJECTED,
    (RequirementStatus.REJECTED, RequirementEvent.REJECT): RequirementStatus.REJECTED,
}


@pytest.mark.parametrize("current", list(RequirementStatus))
@pytest.mark.parametrize("event", list(RequirementEvent))
def test_transition_table(current, event):
    if (current, event) in ALLOWED:
        assert can_transition(current, event)
        assert transition(current, event) is ALLOWED[(current, event)]
    else:
        assert not can_transition(current, event)
        with pytest.raises(ValidationError) as exc_info:
            transition(current, event)
        assert exc_info.value.status_code == 400


def test_transition_accepts_stored_strings():
    assert transition("pending", RequirementEvent.SUBMIT) is RequirementStatus.REVIEW


def test_approved_is_terminal_for_submissions():
    with pytest.raises(ValidationError) as exc_info:
        transition(RequirementStatus.APPROVED, RequirementEvent.SUBMIT)
    assert "already approved" in exc_info.value.detail


def test_unknown_stored_status_is_rejected():
    with pytest.raises(ValidationError):
        transition("archived", RequirementEvent.SUBMIT)
