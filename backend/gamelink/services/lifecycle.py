"""Event status transition rules.

Pure functions: callers pass everything the rules need (times, capacity,
current participant count) and get back a ``TransitionResult``. Nothing here
touches the database.

Progression::

    draft -> upcoming -> live -> completed
      \\         \\         \\
       +---------+---------+--> cancelled
"""
import logging
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from gamelink.config import settings
from gamelink.models.event import EventStatus
from gamelink.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[EventStatus, tuple[EventStatus, ...]] = {
    EventStatus.draft: (EventStatus.upcoming, EventStatus.cancelled),
    EventStatus.upcoming: (EventStatus.live, EventStatus.cancelled),
    EventStatus.live: (EventStatus.completed, EventStatus.cancelled),
    EventStatus.completed: (),
    EventStatus.cancelled: (),
}


class TransitionResult(NamedTuple):
    is_valid: bool
    error: Optional[str] = None


VALID = TransitionResult(True)


def allowed_transitions(current_status: EventStatus) -> tuple[EventStatus, ...]:
    return VALID_TRANSITIONS.get(EventStatus(current_status), ())


def is_terminal(status: EventStatus) -> bool:
    return not allowed_transitions(status)


def validate_status_transition(current_status: EventStatus, new_status: EventStatus) -> TransitionResult:
    """Check the transition against the progression table."""
    current_status = EventStatus(current_status)
    new_status = EventStatus(new_status)
    allowed = allowed_transitions(current_status)
    if new_status not in allowed:
        allowed_text = ", ".join(s.value for s in allowed) or "none"
        return TransitionResult(
            False,
            f"Invalid status transition from '{current_status.value}' to '{new_status.value}'. "
            f"Allowed transitions: {allowed_text}",
        )
    return VALID


def validate_time_based_transition(
    new_status: EventStatus,
    start_time: datetime,
    end_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Time rules: live opens shortly before start, completed needs a start, upcoming needs a future start."""
    now = as_utc(now) or utcnow()
    start_time = as_utc(start_time)
    new_status = EventStatus(new_status)

    if new_status == EventStatus.live:
        earliest = start_time - timedelta(minutes=settings.LIVE_EARLY_START_MINUTES)
        if now < earliest:
            return TransitionResult(
                False,
                f"Event cannot be started yet. Event starts at {start_time.isoformat()}. "
                f"You can start it {settings.LIVE_EARLY_START_MINUTES} minutes before the scheduled time.",
            )
    elif new_status == EventStatus.completed:
        if now < start_time:
            return TransitionResult(False, "Event cannot be completed before it has started")
    elif new_status == EventStatus.upcoming:
        if now >= start_time:
            return TransitionResult(False, "Cannot set event to upcoming - start time must be in the future")
    return VALID


def validate_participant_based_transition(
    new_status: EventStatus,
    min_participants: int,
    participant_count: int,
) -> TransitionResult:
    """An event may only go live with its minimum head count registered or confirmed."""
    if EventStatus(new_status) == EventStatus.live and participant_count < min_participants:
        return TransitionResult(
            False,
            f"Cannot start event - minimum {min_participants} participants required, "
            f"but only {participant_count} registered",
        )
    return VALID


def validate_event_status_transition(
    event_id: str,
    current_status: EventStatus,
    new_status: EventStatus,
    start_time: datetime,
    end_time: Optional[datetime] = None,
    min_participants: int = 1,
    participant_count: int = 0,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Run every transition rule in order; the first failure is returned."""
    for result in (
        validate_status_transition(current_status, new_status),
        validate_time_based_transition(new_status, start_time, end_time, now=now),
        validate_participant_based_transition(new_status, min_participants, participant_count),
    ):
        if not result.is_valid:
            logger.info("Rejected transition for event %s: %s", event_id, result.error)
            return result
    return VALID
