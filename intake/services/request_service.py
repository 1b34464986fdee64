"""RequestService: creation, field updates and status transitions of customer requests.

All mutations go through one read-modify-write path that checks the caller's
expected version, applies the change to a copy of the document, bumps
``updated_at`` and ``version`` and writes it back with a compare-and-swap.
A status transition and the fields sent with it are a single write.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from intake.core.exceptions import ConflictError, IntakeError, ValidationError
from intake.core.logging import request_log_context
from intake.domain import history as projections
from intake.domain.fields import PROTECTED_FIELDS, apply_field_updates, normalize_field_names
from intake.domain.roles import Role, authorize_creation, can_enter
from intake.domain.statuses import INITIAL_STATUSES, RequestStatus, allowed_next
from intake.domain.transitions import plan_transition
from intake.schemas.customer_request import Actor, CustomerRequest, HistoryEntry, normalize_products
from intake.schemas.request_api import (
    ActorActivityItem,
    AllowedTransitionsResponse,
    DesignResponseSummary,
    RequestMetrics,
)
from intake.services.request_ids import RequestIdGenerator
from intake.services.request_store import RequestStore

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _history_entry_id(now: datetime, position: int) -> str:
    # Millisecond timestamp plus 1-based position keeps ids unique per request
    return f"h-{int(now.timestamp() * 1000)}-{position}"


def _hours(seconds: float) -> float:
    return round(seconds / 3600, 1)


class RequestService:
    """Service layer for customer requests.

    Collaborators are injected: the store, the id generator and a clock
    returning timezone-aware datetimes.
    """

    def __init__(
        self,
        store: RequestStore,
        id_generator: RequestIdGenerator,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.id_generator = id_generator
        self.clock = clock

    async def create_request(
        self,
        payload: dict[str, Any],
        actor: Actor,
        status: RequestStatus = RequestStatus.DRAFT,
    ) -> CustomerRequest:
        """Create a request with a fresh id and a one-entry history.

        Args:
            payload: request fields (camelCase or snake_case); identity,
                status, history and timestamps are assigned here
            actor: creating user, recorded as createdBy and on the first entry
            status: initial status, draft or submitted

        Raises:
            ValidationError: protected/unknown field, malformed payload, or an
                initial status other than draft/submitted
            PermissionDeniedError: actor's role may not create requests
        """
        if status not in INITIAL_STATUSES:
            raise ValidationError(f"Requests start as draft or submitted, not '{status}'", field="status")
        authorize_creation(actor.role)

        fields = normalize_field_names(normalize_products(payload))
        protected = sorted(PROTECTED_FIELDS.intersection(fields))
        if protected:
            raise ValidationError(f"Fields cannot be set on creation: {', '.join(protected)}", field=protected[0])

        now = self.clock()

        # Validate the payload before reserving an id
        skeleton = CustomerRequest(
            id="",
            status=status,
            created_at=now,
            updated_at=now,
            created_by=actor.user_id,
            created_by_name=actor.user_name,
            history=[
                HistoryEntry(
                    id=_history_entry_id(now, 1),
                    status=status,
                    timestamp=now,
                    user_id=actor.user_id,
                    user_name=actor.user_name,
                )
            ],
            products=[{}],
        )
        request = apply_field_updates(skeleton, fields)
        request = request.model_copy(update={"id": await self.id_generator.next_id(now.year)})

        await self.store.insert(request)
        logger.info("request_created", request_id=request.id, status=request.status.value, actor=actor.user_id)
        return request

    async def get_request(self, request_id: str) -> CustomerRequest:
        return await self.store.get(request_id)

    async def list_requests(self, status: RequestStatus | None = None) -> list[CustomerRequest]:
        return await self.store.list_all(status)

    async def delete_request(self, request_id: str) -> None:
        await self.store.delete(request_id)
        logger.info("request_deleted", request_id=request_id)

    async def _mutate(
        self,
        request_id: str,
        expected_version: int | None,
        change: Callable[[CustomerRequest, datetime], CustomerRequest],
    ) -> CustomerRequest:
        with request_log_context(request_id):
            current = await self.store.get(request_id)
            if expected_version is not None and expected_version != current.version:
                raise ConflictError(request_id, expected_version, current.version)

            now = self.clock()
            changed = change(current, now)
            updated = changed.model_copy(update={"updated_at": now, "version": current.version + 1})
            await self.store.replace(updated, read_version=current.version)
        return updated

    async def update_request_fields(
        self,
        request_id: str,
        fields: dict[str, Any],
        actor: Actor | None = None,
        expected_version: int | None = None,
    ) -> CustomerRequest:
        """Merge ``fields`` into the request without touching status or history.

        Raises:
            NotFoundError, ValidationError, PermissionDeniedError, ConflictError
        """
        role = actor.role if actor else None
        updated = await self._mutate(
            request_id,
            expected_version,
            lambda request, _now: apply_field_updates(request, fields, role),
        )
        logger.info(
            "request_fields_updated",
            request_id=request_id,
            fields=sorted(fields),
            version=updated.version,
        )
        return updated

    async def apply_transition(
        self,
        request_id: str,
        status: RequestStatus,
        actor: Actor,
        comment: str | None = None,
        fields: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> CustomerRequest:
        """Move a request to ``status`` and append exactly one history entry.

        ``fields`` are merged in the same write, so the request never ends up
        with a status its own data or history disagrees with.

        Raises:
            NotFoundError, IllegalTransitionError, ValidationError,
            PermissionDeniedError, ConflictError, StorageError
        """
        def transition(request: CustomerRequest, now: datetime) -> CustomerRequest:
            if fields:
                request = apply_field_updates(request, fields, actor.role, entering=status)
            plan = plan_transition(request, status, actor.role, comment)
            if plan.field_updates:
                request = request.model_copy(update=plan.field_updates)
            entry = HistoryEntry(
                id=_history_entry_id(now, len(request.history) + 1),
                status=plan.target,
                timestamp=now,
                user_id=actor.user_id,
                user_name=actor.user_name,
                comment=plan.comment,
            )
            return request.model_copy(update={"status": plan.target, "history": [*request.history, entry]})

        try:
            updated = await self._mutate(request_id, expected_version, transition)
        except IntakeError as exc:
            logger.info(
                "status_transition_rejected",
                request_id=request_id,
                to_status=status.value,
                actor=actor.user_id,
                role=actor.role.value if actor.role else None,
                reason=exc.message,
            )
            raise

        logger.info(
            "status_transition_applied",
            request_id=request_id,
            from_status=updated.history[-2].status.value if len(updated.history) > 1 else None,
            to_status=updated.status.value,
            actor=actor.user_id,
            version=updated.version,
        )
        return updated

    async def allowed_transitions(self, request_id: str, role: Role | None = None) -> AllowedTransitionsResponse:
        """Statuses reachable from the current one, narrowed to ``role`` if given."""
        request = await self.store.get(request_id)
        allowed = [s for s in RequestStatus if s in allowed_next(request.status)]
        if role is not None:
            allowed = [s for s in allowed if can_enter(role, s)]
        return AllowedTransitionsResponse(
            request_id=request.id,
            current_status=request.status,
            role=role,
            allowed=allowed,
        )

    async def request_metrics(self, request_id: str) -> RequestMetrics:
        request = await self.store.get(request_id)
        response_time = projections.design_response_time(request.history)
        durations = projections.time_in_status(request.history, self.clock())
        return RequestMetrics(
            request_id=request.id,
            current_status=projections.current_status(request.history),
            history_length=len(request.history),
            design_response_hours=_hours(response_time.total_seconds()) if response_time is not None else None,
            time_in_status_hours={s: _hours(d.total_seconds()) for s, d in durations.items()},
            actor_activity=[
                ActorActivityItem(
                    user_id=a.user_id,
                    user_name=a.user_name,
                    transitions=a.transitions,
                    by_status=dict(a.by_status),
                )
                for a in projections.actor_activity(request.history)
            ],
        )

    async def design_response_summary(self) -> DesignResponseSummary:
        histories = [r.history for r in await self.store.list_all()]
        average, answered = projections.average_response_hours(histories)
        return DesignResponseSummary(
            average_response_hours=average,
            answered_requests=answered,
            design_activity=projections.design_activity(histories),
        )
