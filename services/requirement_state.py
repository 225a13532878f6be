"""Review state machine of a document requirement.

    pending  --submit-->  review
    rejected --submit-->  review
    review   --submit-->  review      (resubmission while under review)
    review   --approve--> approved
    approved --approve--> approved    (no-op)
    review   --reject-->  rejected
    rejected --reject-->  rejected    (note overwrite)

Approved is terminal: nothing re-opens it.
"""

import enum

from api.errors import ValidationError
from models.document_requirement import RequirementStatus


class RequirementEvent(str, enum.Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


_TRANSITIONS: dict[tuple[RequirementStatus, RequirementEvent], RequirementStatus] = {
    (RequirementStatus.PENDING, RequirementEvent.SUBMIT): RequirementStatus.REVIEW,
    (RequirementStatus.REJECTED, RequirementEvent.SUBMIT): RequirementStatus.REVIEW,
    (RequirementStatus.REVIEW, RequirementEvent.SUBMIT): RequirementStatus.REVIEW,
    (RequirementStatus.REVIEW, RequirementEvent.APPROVE): RequirementStatus.APPROVED,
    (RequirementStatus.APPROVED, RequirementEvent.APPROVE): RequirementStatus.APPROVED,
    (RequirementStatus.REVIEW, RequirementEvent.REJECT): RequirementStatus.REJECTED,
    (RequirementStatus.REJECTED, RequirementEvent.REJECT): RequirementStatus.REJECTED,
}


def parse_status(value: str) -> RequirementStatus:
    """Read a stored status; an unknown value is treated as invalid input."""
    try:
        return RequirementStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown requirement status '{value}'")


def can_transition(current: RequirementStatus, event: RequirementEvent) -> bool:
    return (current, event) in _TRANSITIONS


def transition(current: RequirementStatus | str, event: RequirementEvent) -> RequirementStatus:
    """
    Apply ``event`` to ``current``.

    Args:
        current: Current status (enum or stored string)
        event: Event to apply

    Returns:
        The next status

    Raises:
        ValidationError: If the move is not allowed from ``current``
    """
    if not isinstance(current, RequirementStatus):
        current = parse_status(current)
    try:
        return _TRANSITIONS[(current, event)]
    except KeyError:
        if current is RequirementStatus.APPROVED:
            raise ValidationError("Requirement is already approved")
        raise ValidationError(
            f"Cannot {event.value} a requirement in status '{current.value}'"
        )
