"""Participant registration workflow: join, leave, organizer management.

The check-and-insert in ``join_event`` runs in one transaction with the
event row locked (``SELECT ... FOR UPDATE``; a no-op on SQLite). The unique
constraint on (event_id, user_id) backs up the duplicate check, so a racing
second insert surfaces as the same "already registered" error.
"""
import logging
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from gamelink.models.event import Event, TERMINAL_STATUSES
from gamelink.models.participant import EventParticipant, ParticipantRole, ParticipantStatus
from gamelink.models.profile import Profile
from gamelink.services import chat_service
from gamelink.services.profile_service import require_profile
from gamelink.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "You are already registered for this event"
JOINABLE_ROLES = (ParticipantRole.participant, ParticipantRole.spectator)
ORGANIZER_SETTABLE_STATUSES = (
    ParticipantStatus.registered,
    ParticipantStatus.confirmed,
    ParticipantStatus.attended,
    ParticipantStatus.no_show,
    ParticipantStatus.cancelled,
)


def get_event_or_404(db: Session, event_id: str, lock: bool = False) -> Event:
    query = db.query(Event).filter(Event.id == event_id)
    if lock:
        query = query.with_for_update()
    event = query.first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


def count_active_players(db: Session, event_id: str) -> int:
    """Participant-role rows that still hold a seat."""
    return (
        db.query(func.count(EventParticipant.id))
        .filter(
            EventParticipant.event_id == event_id,
            EventParticipant.role == ParticipantRole.participant,
            EventParticipant.status != ParticipantStatus.cancelled,
        )
        .scalar()
    )


def get_participation(db: Session, event_id: str, user_id: str) -> Optional[EventParticipant]:
    return (
        db.query(EventParticipant)
        .filter(EventParticipant.event_id == event_id, EventParticipant.user_id == user_id)
        .first()
    )


def _check_accepting_registrations(event: Event) -> None:
    if event.status in TERMINAL_STATUSES:
        raise HTTPException(status_code=400, detail="This event is no longer accepting registrations")
    deadline = as_utc(event.registration_deadline)
    if deadline and utcnow() > deadline:
        raise HTTPException(status_code=400, detail="Registration deadline has passed")


def join_event(
    db: Session,
    event_id: str,
    fid: Optional[int],
    role: ParticipantRole = ParticipantRole.participant,
    registration_message: Optional[str] = None,
) -> tuple[EventParticipant, Optional[dict[str, Any]]]:
    """Register ``fid`` for the event. Returns the participation and the chat auto-join result."""
    profile = require_profile(db, fid)
    event = get_event_or_404(db, event_id, lock=True)

    role = ParticipantRole(role)
    if role not in JOINABLE_ROLES:
        raise HTTPException(status_code=400, detail="Invalid role. Must be participant or spectator")

    existing = get_participation(db, event_id, profile.id)
    if existing and existing.status != ParticipantStatus.cancelled:
        raise HTTPException(status_code=400, detail=ALREADY_REGISTERED)

    _check_accepting_registrations(event)

    if role == ParticipantRole.participant:
        if count_active_players(db, event_id) >= event.max_participants:
            raise HTTPException(status_code=400, detail="Event is full")
    elif not event.allow_spectators:
        raise HTTPException(status_code=400, detail="Spectators are not allowed for this event")

    initial_status = ParticipantStatus.pending_approval if event.require_approval else ParticipantStatus.confirmed
    now = utcnow()

    if existing:
        participation = existing
        participation.role = role
        participation.status = initial_status
        participation.registration_message = registration_message
        participation.approved_by = None
        participation.approved_at = None
        participation.registered_at = now
        participation.last_updated_at = now
    else:
        participation = EventParticipant(
            event_id=event_id,
            user_id=profile.id,
            role=role,
            status=initial_status,
            registration_message=registration_message,
            registered_at=now,
            last_updated_at=now,
        )
        db.add(participation)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Duplicate registration for FID %s on event %s", fid, event_id)
        raise HTTPException(status_code=400, detail=ALREADY_REGISTERED)
    db.refresh(participation)
    logger.info("FID %s joined event %s as %s (%s)", fid, event_id, role.value, initial_status.value)

    chat_result = None
    if role == ParticipantRole.participant and event.chat_id:
        chat_result = join_event_chat_quietly(db, event, profile)
    return participation, chat_result


def join_event_chat_quietly(db: Session, event: Event, profile: Profile) -> Optional[dict[str, Any]]:
    """Auto-join after RSVP. Failure is logged and never propagated."""
    try:
        _, created = chat_service.add_participant(db, event.chat_id, profile)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Failed to auto-join FID %s to event chat %s", profile.fid, event.chat_id, exc_info=True)
        return None
    if created:
        logger.info("FID %s auto-joined event chat %s", profile.fid, event.chat_id)
    return {"chat_id": event.chat_id, "auto_joined": created, "already_in_chat": not created}


def leave_event(db: Session, event_id: str, fid: Optional[int]) -> None:
    profile = require_profile(db, fid)
    get_event_or_404(db, event_id)
    participation = get_participation(db, event_id, profile.id)
    if not participation:
        raise HTTPException(status_code=400, detail="You are not registered for this event")
    if participation.role == ParticipantRole.organizer:
        raise HTTPException(status_code=400, detail="Event organizers cannot leave their own events")
    db.delete(participation)
    db.commit()
    logger.info("FID %s left event %s", fid, event_id)


def join_event_chat(db: Session, event_id: str, fid: Optional[int]) -> tuple[str, bool]:
    """Explicit chat join for a registered user. Returns (chat_id, newly_joined)."""
    profile = require_profile(db, fid)
    event = get_event_or_404(db, event_id)
    participation = get_participation(db, event_id, profile.id)
    if not participation or participation.status == ParticipantStatus.cancelled:
        raise HTTPException(status_code=403, detail="You must be registered for this event to join its chat")
    if not event.chat_id:
        raise HTTPException(status_code=400, detail="This event has no chat")
    _, created = chat_service.add_participant(db, event.chat_id, profile)
    db.commit()
    logger.info("FID %s joined chat %s for event %s", fid, event.chat_id, event_id)
    return event.chat_id, created


def list_participants(db: Session, event_id: str) -> list[EventParticipant]:
    get_event_or_404(db, event_id)
    return (
        db.query(EventParticipant)
        .options(joinedload(EventParticipant.profile))
        .filter(EventParticipant.event_id == event_id)
        .order_by(EventParticipant.registered_at)
        .all()
    )


def update_participant(
    db: Session,
    event_id: str,
    participant_id: str,
    fid: Optional[int],
    updates: dict[str, Any],
) -> EventParticipant:
    """Organizer-only change of status, score, placement or notes."""
    actor = require_profile(db, fid)
    event = get_event_or_404(db, event_id)
    if event.created_by != actor.id:
        raise HTTPException(status_code=403, detail="Only event organizers can update participants")

    participation = (
        db.query(EventParticipant)
        .filter(EventParticipant.id == participant_id, EventParticipant.event_id == event_id)
        .first()
    )
    if not participation:
        raise HTTPException(status_code=404, detail="Participant not found")

    new_status = updates.pop("status", None)
    if new_status is not None:
        if participation.role == ParticipantRole.organizer:
            raise HTTPException(status_code=400, detail="The organizer's participation status cannot be changed")
        new_status = ParticipantStatus(new_status)
        if new_status not in ORGANIZER_SETTABLE_STATUSES:
            allowed = ", ".join(s.value for s in ORGANIZER_SETTABLE_STATUSES)
            raise HTTPException(status_code=400, detail=f"Invalid status. Must be one of: {allowed}")
        if participation.status == ParticipantStatus.pending_approval and new_status != ParticipantStatus.cancelled:
            participation.approved_by = actor.id
            participation.approved_at = utcnow()
        participation.status = new_status

    for name, value in updates.items():
        setattr(participation, name, value)
    participation.last_updated_at = utcnow()
    db.commit()
    db.refresh(participation)
    logger.info("Organizer FID %s updated participant %s on event %s", fid, participant_id, event_id)
    return participation
