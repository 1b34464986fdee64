"""Role gate: which role may move a request into which status.

Pure domain functions, no DB access. Admin overrides role restrictions but
never the transition table.
"""

from enum import StrEnum

from intake.core.exceptions import PermissionDeniedError
from intake.domain.statuses import RequestStatus


class Role(StrEnum):
    SALES = "sales"
    DESIGN = "design"
    COSTING = "costing"
    ADMIN = "admin"


# Statuses each role may move a request *into*
ROLE_TARGETS: dict[Role, frozenset[RequestStatus]] = {
    Role.SALES: frozenset({
        RequestStatus.SUBMITTED,
        RequestStatus.SALES_FOLLOWUP,
        RequestStatus.GM_APPROVAL_PENDING,
        RequestStatus.CLOSED,
    }),
    Role.DESIGN: frozenset({
        RequestStatus.UNDER_REVIEW,
        RequestStatus.CLARIFICATION_NEEDED,
        RequestStatus.FEASIBILITY_CONFIRMED,
    }),
    Role.COSTING: frozenset({
        RequestStatus.IN_COSTING,
        RequestStatus.COSTING_COMPLETE,
    }),
    Role.ADMIN: frozenset(RequestStatus),
}

# Roles allowed to create new requests
CREATOR_ROLES = frozenset({Role.SALES, Role.ADMIN})


def can_enter(role: Role, target: RequestStatus) -> bool:
    return target in ROLE_TARGETS.get(role, frozenset())


def authorize_transition(role: Role | None, target: RequestStatus) -> None:
    """Raise PermissionDeniedError unless ``role`` may move a request into ``target``.

    ``None`` means a trusted caller and is always allowed.
    """
    if role is None or can_enter(role, target):
        return
    raise PermissionDeniedError(str(role), f"Role '{role}' may not move a request to '{target}'")


def authorize_creation(role: Role | None) -> None:
    if role is None or role in CREATOR_ROLES:
        return
    raise PermissionDeniedError(str(role), f"Role '{role}' may not create requests")
