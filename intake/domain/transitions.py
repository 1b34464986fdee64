"""Transition planning.

Pure function that decides whether a request may move to a target status and
what accompanies the move: field carry-overs from the transition comment,
the data each target requires, and the comment recorded in history.
No DB access, fully deterministic.
"""

from dataclasses import dataclass, field
from typing import Any

from intake.core.exceptions import ValidationError
from intake.domain.pricing import format_costing_summary, validate_costing
from intake.domain.roles import Role, authorize_transition
from intake.domain.statuses import RequestStatus, validate_transition
from intake.schemas.customer_request import CustomerRequest


@dataclass
class TransitionPlan:
    """What a validated transition writes besides the history entry."""

    target: RequestStatus
    comment: str | None
    field_updates: dict[str, Any] = field(default_factory=dict)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _join_comments(summary: str, comment: str | None) -> str:
    if _blank(comment) or comment == summary:
        return summary
    return f"{summary}\n{comment}"


def plan_transition(
    request: CustomerRequest,
    target: RequestStatus,
    role: Role | None = None,
    comment: str | None = None,
) -> TransitionPlan:
    """Validate ``request.status -> target`` and build the transition plan.

    ``request`` must already carry any fields sent along with the transition.

    Rules:
        - The transition table always applies, admin included
        - A role may only enter its own statuses (admin: any)
        - clarification_needed: a comment replaces clarificationComment;
          without one, non-admin roles need a stored clarificationComment
        - feasibility_confirmed: non-admin roles need acceptanceMessage and
          expectedDesignReplyDate; the message becomes the default comment
        - submitted from clarification_needed: non-admin roles need
          clarificationResponse; it becomes the default comment
        - costing_complete: sellingPrice > 0 and a numeric calculatedMargin,
          for everyone; the price/margin summary is the recorded comment

    Raises:
        IllegalTransitionError, PermissionDeniedError, ValidationError
    """
    validate_transition(request.status, target)
    authorize_transition(role, target)

    enforce = role is not None and role != Role.ADMIN
    plan = TransitionPlan(target=target, comment=comment)

    if target == RequestStatus.CLARIFICATION_NEEDED:
        if not _blank(comment):
            # Each round asks a new question; the field always shows the latest one
            plan.field_updates["clarification_comment"] = comment
        elif enforce and _blank(request.clarification_comment):
            raise ValidationError("clarificationComment is required", field="clarificationComment")
        else:
            plan.comment = request.clarification_comment

    elif target == RequestStatus.FEASIBILITY_CONFIRMED:
        if enforce and _blank(request.acceptance_message):
            raise ValidationError("acceptanceMessage is required", field="acceptanceMessage")
        if enforce and request.expected_design_reply_date is None:
            raise ValidationError("expectedDesignReplyDate is required", field="expectedDesignReplyDate")
        if _blank(comment):
            plan.comment = request.acceptance_message

    elif target == RequestStatus.SUBMITTED and request.status == RequestStatus.CLARIFICATION_NEEDED:
        if enforce and _blank(request.clarification_response):
            raise ValidationError("clarificationResponse is required", field="clarificationResponse")
        if _blank(comment) and not _blank(request.clarification_response):
            plan.comment = f"Clarification response: {request.clarification_response}"

    elif target == RequestStatus.COSTING_COMPLETE:
        figures = validate_costing(request.selling_price, request.calculated_margin)
        plan.comment = _join_comments(format_costing_summary(figures), comment)

    return plan
