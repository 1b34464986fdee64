"""Request API payloads and projection responses."""

from typing import Any

from pydantic import Field

from intake.domain.roles import Role
from intake.domain.statuses import RequestStatus
from intake.schemas.customer_request import Actor, CamelModel


class CreateRequestBody(CamelModel):
    actor: Actor
    status: RequestStatus = RequestStatus.DRAFT
    fields: dict[str, Any] = Field(default_factory=dict)


class UpdateFieldsBody(CamelModel):
    fields: dict[str, Any]
    actor: Actor | None = None
    expected_version: int | None = None


class TransitionBody(CamelModel):
    status: RequestStatus
    actor: Actor
    comment: str | None = None
    fields: dict[str, Any] | None = None
    expected_version: int | None = None


class AllowedTransitionsResponse(CamelModel):
    request_id: str
    current_status: RequestStatus
    role: Role | None = None
    allowed: list[RequestStatus] = Field(default_factory=list)


class ActorActivityItem(CamelModel):
    user_id: str
    user_name: str
    transitions: int
    by_status: dict[RequestStatus, int] = Field(default_factory=dict)


class RequestMetrics(CamelModel):
    """History projection for one request. Durations in hours."""

    request_id: str
    current_status: RequestStatus | None
    history_length: int
    design_response_hours: float | None = None
    time_in_status_hours: dict[RequestStatus, float] = Field(default_factory=dict)
    actor_activity: list[ActorActivityItem] = Field(default_factory=list)


class DesignResponseSummary(CamelModel):
    """Cross-request design response projection."""

    average_response_hours: float | None = None
    answered_requests: int = 0
    design_activity: dict[str, int] = Field(default_factory=dict)
