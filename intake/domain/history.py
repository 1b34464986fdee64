"""History projections.

Pure derivations over a request's append-only history: current status,
design response time, time spent per status and per-actor activity.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from intake.domain.statuses import DESIGN_STATUSES, RequestStatus, is_terminal
from intake.schemas.customer_request import HistoryEntry


@dataclass
class ActorActivity:
    user_id: str
    user_name: str
    transitions: int = 0
    by_status: Counter = field(default_factory=Counter)


def current_status(history: Sequence[HistoryEntry]) -> RequestStatus | None:
    """Status of the most recent entry, None for an empty history."""
    if not history:
        return None
    return history[-1].status


def design_response_time(history: Sequence[HistoryEntry]) -> timedelta | None:
    """Time from the first submission to the first design reply.

    Returns:
        None when the request was never submitted, never answered, or the
        first reply predates the first submission.
    """
    submitted = next((h for h in history if h.status == RequestStatus.SUBMITTED), None)
    reply = next((h for h in history if h.status in DESIGN_STATUSES), None)
    if submitted is None or reply is None:
        return None
    delta = reply.timestamp - submitted.timestamp
    if delta < timedelta(0):
        return None
    return delta


def time_in_status(history: Sequence[HistoryEntry], now: datetime) -> dict[RequestStatus, timedelta]:
    """Total time spent in each status.

    The latest status accrues time until ``now`` unless it is terminal.
    """
    totals: dict[RequestStatus, timedelta] = {}
    for entry, following in zip(history, history[1:]):
        totals[entry.status] = totals.get(entry.status, timedelta(0)) + (following.timestamp - entry.timestamp)
    if history and not is_terminal(history[-1].status):
        last = history[-1]
        totals[last.status] = totals.get(last.status, timedelta(0)) + max(now - last.timestamp, timedelta(0))
    return totals


def actor_activity(history: Sequence[HistoryEntry]) -> list[ActorActivity]:
    """Transition counts per actor, in order of first appearance."""
    activity: dict[str, ActorActivity] = {}
    for entry in history:
        actor = activity.get(entry.user_id)
        if actor is None:
            actor = activity[entry.user_id] = ActorActivity(user_id=entry.user_id, user_name=entry.user_name)
        actor.transitions += 1
        actor.by_status[entry.status] += 1
    return list(activity.values())


def average_response_hours(histories: Iterable[Sequence[HistoryEntry]]) -> tuple[float | None, int]:
    """Average design response time in hours across requests.

    Returns:
        (average rounded to one decimal or None, number of answered requests)
    """
    hours = [
        delta.total_seconds() / 3600
        for delta in (design_response_time(h) for h in histories)
        if delta is not None
    ]
    if not hours:
        return None, 0
    return round(sum(hours) / len(hours), 1), len(hours)


def design_activity(histories: Iterable[Sequence[HistoryEntry]]) -> dict[str, int]:
    """Number of design replies (review, clarification, feasibility) per user name."""
    counts: Counter = Counter()
    for history in histories:
        for entry in history:
            if entry.status in DESIGN_STATUSES and entry.user_name:
                counts[entry.user_name] += 1
    return dict(counts)
