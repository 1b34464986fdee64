"""Field groups and the non-status field update rules.

A field update merges a partial set of fields into a request. It never
touches status, history or identity, never clears a stage field once set,
and only ever appends to attachment buckets.
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from intake.core.exceptions import PermissionDeniedError, ValidationError
from intake.domain.roles import Role
from intake.domain.statuses import RequestStatus
from intake.schemas.customer_request import CustomerRequest

# Only the status engine and the store write these
PROTECTED_FIELDS = frozenset({
    "id",
    "status",
    "version",
    "history",
    "created_at",
    "updated_at",
    "created_by",
    "created_by_name",
})

STAGE_FIELDS: dict[str, frozenset[str]] = {
    "clarification": frozenset({"clarification_comment", "clarification_response"}),
    "design": frozenset({
        "acceptance_message",
        "expected_design_reply_date",
        "design_result_comments",
        "design_result_attachments",
    }),
    "costing": frozenset({
        "costing_notes",
        "selling_price",
        "calculated_margin",
        "incoterm",
        "delivery_leadtime",
        "costing_attachments",
    }),
    "sales_followup": frozenset({
        "sales_final_price",
        "sales_feedback_comment",
        "sales_attachments",
    }),
}

ALL_STAGE_FIELDS = frozenset().union(*STAGE_FIELDS.values())

ATTACHMENT_BUCKETS = frozenset({
    "attachments",
    "design_result_attachments",
    "costing_attachments",
    "sales_attachments",
})

GENERAL_FIELDS = frozenset(CustomerRequest.model_fields) - PROTECTED_FIELDS - ALL_STAGE_FIELDS

SALES_EDITABLE_STATUSES = frozenset({RequestStatus.DRAFT, RequestStatus.CLARIFICATION_NEEDED})

FOLLOWUP_STATUSES = frozenset({
    RequestStatus.SALES_FOLLOWUP,
    RequestStatus.GM_APPROVAL_PENDING,
    RequestStatus.GM_APPROVED,
    RequestStatus.GM_REJECTED,
})

_ALIASES = {field.alias: name for name, field in CustomerRequest.model_fields.items()}


def normalize_field_names(fields: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys to attribute names.

    Raises:
        ValidationError: unknown key
    """
    normalized: dict[str, Any] = {}
    for key, value in fields.items():
        name = _ALIASES.get(key, key)
        if name not in CustomerRequest.model_fields:
            raise ValidationError(f"Unknown field '{key}'", field=key)
        normalized[name] = value
    return normalized


def editable_fields(role: Role | None, status: RequestStatus) -> frozenset[str]:
    """Fields ``role`` may change while the request is in ``status``.

    Fields sent along with a transition are checked against both the current
    and the target status, so sales can fill in follow-up fields on the move
    into sales_followup.
    """
    if role is None or role == Role.ADMIN:
        return GENERAL_FIELDS | ALL_STAGE_FIELDS
    if role == Role.SALES:
        allowed: frozenset[str] = frozenset()
        if status in SALES_EDITABLE_STATUSES:
            allowed |= GENERAL_FIELDS
        if status == RequestStatus.CLARIFICATION_NEEDED:
            allowed |= {"clarification_response"}
        if status in FOLLOWUP_STATUSES:
            allowed |= STAGE_FIELDS["sales_followup"]
        return allowed
    if role == Role.DESIGN:
        return STAGE_FIELDS["design"] | {"clarification_comment"}
    if role == Role.COSTING:
        return STAGE_FIELDS["costing"]
    return frozenset()


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_append_only(name: str, old: list, new: list) -> None:
    if len(new) < len(old) or new[: len(old)] != old:
        raise ValidationError(f"{name} is append-only; existing attachments cannot be changed", field=name)


def apply_field_updates(
    request: CustomerRequest,
    fields: dict[str, Any],
    role: Role | None = None,
    entering: RequestStatus | None = None,
) -> CustomerRequest:
    """Return a copy of ``request`` with ``fields`` merged in.

    ``entering`` is the target status when the fields travel with a
    transition; the role may then also edit what that status opens up.

    Status, history and version are left as they are; the caller bumps
    ``updated_at`` and ``version`` when persisting.

    Raises:
        ValidationError: protected or unknown field, malformed value, stage
            field cleared, attachment removed or rewritten, empty product list
        PermissionDeniedError: role may not edit one of the fields now
    """
    updates = normalize_field_names(fields)

    protected = sorted(PROTECTED_FIELDS.intersection(updates))
    if protected:
        raise ValidationError(f"Fields cannot be updated directly: {', '.join(protected)}", field=protected[0])

    allowed = editable_fields(role, request.status)
    if entering is not None:
        allowed |= editable_fields(role, entering)
    denied = sorted(set(updates) - allowed)
    if denied:
        raise PermissionDeniedError(
            str(role),
            f"Role '{role}' may not edit {', '.join(denied)} while request is '{request.status}'",
        )

    if "products" in updates and not updates["products"]:
        raise ValidationError("A request needs at least one product", field="products")

    merged = request.model_dump()
    merged.update(updates)
    try:
        updated = CustomerRequest.model_validate(merged)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid value for {location}: {first['msg']}", field=location) from exc

    for name in ALL_STAGE_FIELDS.intersection(updates):
        if not _is_empty(getattr(request, name)) and _is_empty(getattr(updated, name)):
            raise ValidationError(f"{name} cannot be cleared once set", field=name)

    for name in ATTACHMENT_BUCKETS.intersection(updates):
        _check_append_only(name, getattr(request, name), getattr(updated, name))

    return updated
