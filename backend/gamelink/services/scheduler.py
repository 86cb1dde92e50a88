"""Time-driven status transitions, run from a cron endpoint.

Each update carries a status guard (``WHERE status = <expected>``) so an
event changed concurrently by its organizer is skipped rather than
overwritten. One event failing does not stop the others.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from gamelink.config import settings
from gamelink.models.event import Event, EventStatus
from gamelink.models.participant import EventParticipant, ParticipantStatus
from gamelink.services.event_service import confirm_registered_participants
from gamelink.timeutils import utcnow

logger = logging.getLogger(__name__)


def _guarded_transition(db: Session, event_id: str, expected: EventStatus, new_status: EventStatus) -> bool:
    updated = (
        db.query(Event)
        .filter(Event.id == event_id, Event.status == expected)
        .update({"status": new_status, "updated_at": utcnow()}, synchronize_session=False)
    )
    return updated == 1


def mark_no_shows(db: Session, event_id: str, now: datetime) -> int:
    """Registered/confirmed rows untouched for the grace period become no-shows. Does not commit."""
    grace_cutoff = now - timedelta(minutes=settings.NO_SHOW_GRACE_MINUTES)
    return (
        db.query(EventParticipant)
        .filter(
            EventParticipant.event_id == event_id,
            EventParticipant.status.in_([ParticipantStatus.registered, ParticipantStatus.confirmed]),
            EventParticipant.last_updated_at < grace_cutoff,
        )
        .update({"status": ParticipantStatus.no_show, "last_updated_at": now}, synchronize_session=False)
    )


def _start_event(db: Session, event_id: str) -> bool:
    if not _guarded_transition(db, event_id, EventStatus.upcoming, EventStatus.live):
        return False
    confirmed = confirm_registered_participants(db, event_id)
    db.commit()
    logger.info("Transitioned event %s to live, auto-confirmed %d participants", event_id, confirmed)
    return True


def _complete_event(db: Session, event_id: str, now: datetime) -> bool:
    if not _guarded_transition(db, event_id, EventStatus.live, EventStatus.completed):
        return False
    no_shows = mark_no_shows(db, event_id, now)
    db.commit()
    logger.info("Transitioned event %s to completed, marked %d no-shows", event_id, no_shows)
    return True


def process_scheduled_status_transitions(db: Session, now: Optional[datetime] = None) -> dict[str, Any]:
    """Start due upcoming events and complete ended live events."""
    now = now or utcnow()
    cutoff = now - timedelta(minutes=settings.SCHEDULER_BUFFER_MINUTES)
    details = {"transitioned_to_live": 0, "transitioned_to_completed": 0, "failed": 0}
    errors: list[str] = []

    to_start = [
        row.id for row in db.query(Event.id)
        .filter(Event.status == EventStatus.upcoming, Event.start_time <= cutoff)
        .order_by(Event.start_time)
        .all()
    ]
    to_complete = [
        row.id for row in db.query(Event.id)
        .filter(Event.status == EventStatus.live, Event.end_time.isnot(None), Event.end_time <= cutoff)
        .order_by(Event.end_time)
        .all()
    ]
    logger.info("Scheduler found %d events to start and %d to complete", len(to_start), len(to_complete))

    for event_id in to_start:
        try:
            if _start_event(db, event_id):
                details["transitioned_to_live"] += 1
        except Exception as e:
            db.rollback()
            logger.exception("Failed to start event %s", event_id)
            errors.append(f"Failed to start event {event_id}: {e}")
            details["failed"] += 1

    for event_id in to_complete:
        try:
            if _complete_event(db, event_id, now):
                details["transitioned_to_completed"] += 1
        except Exception as e:
            db.rollback()
            logger.exception("Failed to complete event %s", event_id)
            errors.append(f"Failed to complete event {event_id}: {e}")
            details["failed"] += 1

    processed = sum(details.values())
    logger.info("Scheduler run finished: %s", details)
    return {"success": not errors, "processed": processed, "details": details, "errors": errors}


def health_check(db: Session) -> dict[str, Any]:
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.exception("Scheduler health check failed")
        return {"healthy": False, "message": f"Database connection failed: {e}"}
    return {"healthy": True, "message": "Scheduler is healthy and database is accessible"}
