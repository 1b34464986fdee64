"""Request status enum and the allowed-transition table.

Pure domain logic with no external dependencies.
"""

from enum import StrEnum

from intake.core.exceptions import IllegalTransitionError


class RequestStatus(StrEnum):
    """Request lifecycle states, in lifecycle order."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    CLARIFICATION_NEEDED = "clarification_needed"
    UNDER_REVIEW = "under_review"
    FEASIBILITY_CONFIRMED = "feasibility_confirmed"
    IN_COSTING = "in_costing"
    COSTING_COMPLETE = "costing_complete"
    SALES_FOLLOWUP = "sales_followup"
    GM_APPROVAL_PENDING = "gm_approval_pending"
    GM_APPROVED = "gm_approved"
    GM_REJECTED = "gm_rejected"
    CLOSED = "closed"


INITIAL_STATUSES = frozenset({RequestStatus.DRAFT, RequestStatus.SUBMITTED})

# Statuses a design reply moves a submitted request into
DESIGN_STATUSES = frozenset({
    RequestStatus.UNDER_REVIEW,
    RequestStatus.CLARIFICATION_NEEDED,
    RequestStatus.FEASIBILITY_CONFIRMED,
})

TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.DRAFT: frozenset({RequestStatus.SUBMITTED}),
    RequestStatus.SUBMITTED: frozenset({RequestStatus.UNDER_REVIEW, RequestStatus.CLARIFICATION_NEEDED}),
    RequestStatus.CLARIFICATION_NEEDED: frozenset({RequestStatus.SUBMITTED}),
    RequestStatus.UNDER_REVIEW: frozenset({RequestStatus.FEASIBILITY_CONFIRMED, RequestStatus.CLARIFICATION_NEEDED}),
    RequestStatus.FEASIBILITY_CONFIRMED: frozenset({RequestStatus.IN_COSTING}),
    RequestStatus.IN_COSTING: frozenset({RequestStatus.COSTING_COMPLETE}),
    RequestStatus.COSTING_COMPLETE: frozenset({RequestStatus.SALES_FOLLOWUP}),
    RequestStatus.SALES_FOLLOWUP: frozenset({RequestStatus.GM_APPROVAL_PENDING, RequestStatus.CLOSED}),
    RequestStatus.GM_APPROVAL_PENDING: frozenset({RequestStatus.GM_APPROVED, RequestStatus.GM_REJECTED}),
    RequestStatus.GM_APPROVED: frozenset({RequestStatus.CLOSED}),
    # Re-negotiation loop back into followup after a GM rejection
    RequestStatus.GM_REJECTED: frozenset({RequestStatus.CLOSED, RequestStatus.SALES_FOLLOWUP}),
    RequestStatus.CLOSED: frozenset(),  # Terminal state
}


def allowed_next(current: RequestStatus) -> frozenset[RequestStatus]:
    """Statuses reachable in one step from ``current``."""
    return TRANSITIONS.get(current, frozenset())


def is_terminal(status: RequestStatus) -> bool:
    return not allowed_next(status)


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in allowed_next(current)


def validate_transition(current: RequestStatus, target: RequestStatus) -> None:
    """Raise IllegalTransitionError unless ``current -> target`` is in the table.

    Same-status moves are rejected too: no status appears in its own
    successor set.
    """
    if not can_transition(current, target):
        raise IllegalTransitionError(str(current), str(target))
