"""Core event service.

Responsibilities:
- Creation with input validation, the organizer's participant row and the
  event chat, all in one transaction
- Authorization hook: only the organizer may edit, change status or broadcast
- Status changes through the lifecycle validator
- Organizer back-fill for events created without their organizer row
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import pytz
from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from gamelink.config import settings
from gamelink.models.chat import Chat, ChatType
from gamelink.models.event import Event, EventStatus, LocationType, TERMINAL_STATUSES
from gamelink.models.group import Group
from gamelink.models.participant import EventParticipant, ParticipantRole, ParticipantStatus
from gamelink.models.profile import Profile
from gamelink.services import chat_service, lifecycle
from gamelink.services.profile_service import require_profile
from gamelink.services.registration_service import count_active_players, get_event_or_404, get_participation
from gamelink.timeutils import as_utc, to_utc, utcnow

logger = logging.getLogger(__name__)

MIN_CAPACITY = 2
MAX_CAPACITY = 1000
CREATABLE_STATUSES = (EventStatus.draft, EventStatus.upcoming)
READINESS_STATUSES = (ParticipantStatus.registered, ParticipantStatus.confirmed)

EDITABLE_FIELDS = {
    "title", "description", "game", "gaming_platform", "event_type", "skill_level",
    "start_time", "end_time", "timezone", "max_participants", "min_participants",
    "require_approval", "location_type", "connection_details", "physical_location",
    "is_private", "allow_spectators", "registration_deadline",
}
TEXT_FIELDS = {"title", "description", "game", "connection_details", "physical_location"}
NULLABLE_FIELDS = {"description", "end_time", "connection_details", "physical_location", "registration_deadline"}
REQUIRED_FIELDS = EDITABLE_FIELDS - NULLABLE_FIELDS


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _check_authorization(event: Event, actor: Profile, action: str = "modify this event") -> None:
    """Only the organizer may ``action``."""
    if event.created_by != actor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the event organizer can {action}",
        )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_timezone(tz_name: str) -> None:
    try:
        pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise _bad_request(f"Invalid timezone: {tz_name}")


def _validate_schedule(start: datetime, end: Optional[datetime], deadline: Optional[datetime]) -> None:
    if end is not None and end <= start:
        raise _bad_request("End time must be after start time")
    if deadline is not None and deadline > start:
        raise _bad_request("Registration deadline must be before the event starts")


def _validate_capacity(min_participants: int, max_participants: int) -> None:
    if not MIN_CAPACITY <= max_participants <= MAX_CAPACITY:
        raise _bad_request(f"Max participants must be between {MIN_CAPACITY} and {MAX_CAPACITY}")
    if not 1 <= min_participants <= max_participants:
        raise _bad_request("Min participants must be between 1 and max participants")


def _validate_location(location_type: LocationType, connection_details: Optional[str], physical_location: Optional[str]) -> None:
    if location_type == LocationType.online and not connection_details:
        raise _bad_request("Connection details are required for online events")
    if location_type == LocationType.in_person and not physical_location:
        raise _bad_request("Physical location is required for in-person events")


def participant_count(db: Session, event_id: str) -> int:
    """Rows in registered or confirmed status, the head count used to go live."""
    return (
        db.query(func.count(EventParticipant.id))
        .filter(EventParticipant.event_id == event_id, EventParticipant.status.in_(READINESS_STATUSES))
        .scalar()
    )


def participant_counts(db: Session, event_ids: list[str]) -> dict[str, int]:
    """Non-cancelled participation rows per event."""
    if not event_ids:
        return {}
    rows = (
        db.query(EventParticipant.event_id, func.count(EventParticipant.id))
        .filter(EventParticipant.event_id.in_(event_ids), EventParticipant.status != ParticipantStatus.cancelled)
        .group_by(EventParticipant.event_id)
        .all()
    )
    counts = dict(rows)
    return {event_id: counts.get(event_id, 0) for event_id in event_ids}


def create_event(db: Session, fid: Optional[int], data: dict[str, Any]) -> Event:
    """Validate and create an event, its organizer row and its chat."""
    organizer = require_profile(db, fid)

    title = _clean(data.get("title"))
    if not title:
        raise _bad_request("Event title is required")
    game = _clean(data.get("game"))
    if not game:
        raise _bad_request("Game is required")
    if data.get("start_time") is None:
        raise _bad_request("Start time is required")

    tz_name = data.get("timezone") or "UTC"
    _check_timezone(tz_name)
    start = to_utc(data["start_time"], tz_name)
    end = to_utc(data.get("end_time"), tz_name)
    deadline = to_utc(data.get("registration_deadline"), tz_name)

    if start <= utcnow() - timedelta(minutes=settings.EVENT_START_BUFFER_MINUTES):
        raise _bad_request("Start time must be in the future")
    _validate_schedule(start, end, deadline)

    max_participants = data.get("max_participants", 8)
    min_participants = data.get("min_participants", 2)
    _validate_capacity(min_participants, max_participants)

    location_type = LocationType(data.get("location_type") or LocationType.online)
    connection_details = _clean(data.get("connection_details"))
    physical_location = _clean(data.get("physical_location"))
    _validate_location(location_type, connection_details, physical_location)

    initial_status = EventStatus(data.get("status") or EventStatus.upcoming)
    if initial_status not in CREATABLE_STATUSES:
        raise _bad_request("New events must start as draft or upcoming")

    group_id = data.get("group_id")
    if group_id and not db.query(Group).filter(Group.id == group_id).first():
        raise HTTPException(status_code=404, detail="Group not found")

    event = Event(
        title=title,
        description=_clean(data.get("description")),
        game=game,
        gaming_platform=data.get("gaming_platform") or "PC",
        event_type=data.get("event_type") or "casual",
        skill_level=data.get("skill_level") or "any",
        start_time=start,
        end_time=end,
        timezone=tz_name,
        max_participants=max_participants,
        min_participants=min_participants,
        require_approval=bool(data.get("require_approval", False)),
        location_type=location_type,
        connection_details=connection_details,
        physical_location=physical_location,
        is_private=bool(data.get("is_private", False)),
        allow_spectators=data.get("allow_spectators", True) is not False,
        registration_deadline=deadline,
        status=initial_status,
        created_by=organizer.id,
        group_id=group_id,
    )
    db.add(event)

    chat = Chat(name=f"{title} - Event Chat", type=ChatType.group, created_by=organizer.id, last_message_at=utcnow())
    db.add(chat)
    db.flush()
    event.chat_id = chat.id
    chat_service.add_participant(db, chat.id, organizer, is_admin=True)

    now = utcnow()
    db.add(EventParticipant(
        event_id=event.id,
        user_id=organizer.id,
        role=ParticipantRole.organizer,
        status=ParticipantStatus.confirmed,
        registered_at=now,
        last_updated_at=now,
    ))
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) by FID %s", title, event.id, organizer.fid)
    return event


def list_events(
    db: Session,
    status_filter: Optional[EventStatus] = None,
    game: Optional[str] = None,
    event_type: Optional[str] = None,
    group_id: Optional[str] = None,
    chat_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Event]:
    """Public events ordered by start time. A ``chat_id`` lookup ignores every other filter."""
    query = db.query(Event)
    if chat_id:
        return query.filter(Event.chat_id == chat_id).all()

    query = query.filter(Event.is_private.is_(False))
    if status_filter:
        query = query.filter(Event.status == status_filter)
    if game:
        query = query.filter(Event.game.ilike(f"%{game}%"))
    if event_type:
        query = query.filter(Event.event_type == event_type)
    if group_id:
        query = query.filter(Event.group_id == group_id)
    return query.order_by(Event.start_time).offset(offset).limit(limit).all()


def get_event_details(db: Session, event_id: str, fid: Optional[int] = None) -> tuple[Event, Optional[EventParticipant]]:
    """The event with participants loaded, plus the caller's participation when ``fid`` is known."""
    event = (
        db.query(Event)
        .options(joinedload(Event.organizer), joinedload(Event.participants).joinedload(EventParticipant.profile))
        .filter(Event.id == event_id)
        .first()
    )
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    mine = None
    if fid is not None:
        profile = db.query(Profile).filter(Profile.fid == fid).first()
        if profile:
            mine = next((p for p in event.participants if p.user_id == profile.id), None)
    return event, mine


def update_event(db: Session, event_id: str, fid: Optional[int], updates: dict[str, Any]) -> Event:
    """Organizer-only field edit. Schedule and capacity are re-validated on merged values."""
    actor = require_profile(db, fid)
    event = get_event_or_404(db, event_id, lock=True)
    _check_authorization(event, actor, "edit this event")
    if event.status in TERMINAL_STATUSES:
        raise _bad_request("Completed or cancelled events cannot be edited")

    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise _bad_request(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    for name in ("title", "game"):
        if name in updates and not _clean(updates[name]):
            raise _bad_request(f"Event {name} cannot be empty")

    null_fields = sorted(name for name, value in updates.items() if value is None and name in REQUIRED_FIELDS)
    if null_fields:
        raise _bad_request(f"Fields cannot be null: {', '.join(null_fields)}")

    tz_name = updates.get("timezone") or event.timezone
    _check_timezone(tz_name)
    for name in ("start_time", "end_time", "registration_deadline"):
        if name in updates:
            updates[name] = to_utc(updates[name], tz_name)

    start = updates.get("start_time") or as_utc(event.start_time)
    end = updates["end_time"] if "end_time" in updates else as_utc(event.end_time)
    deadline = updates["registration_deadline"] if "registration_deadline" in updates else as_utc(event.registration_deadline)
    _validate_schedule(start, end, deadline)

    max_participants = updates["max_participants"] if "max_participants" in updates else event.max_participants
    min_participants = updates["min_participants"] if "min_participants" in updates else event.min_participants
    _validate_capacity(min_participants, max_participants)
    current = count_active_players(db, event_id)
    if max_participants < current:
        raise _bad_request(f"Max participants cannot be lower than the current participant count ({current})")

    location_type = LocationType(updates.get("location_type") or event.location_type)
    _validate_location(
        location_type,
        _clean(updates["connection_details"]) if "connection_details" in updates else event.connection_details,
        _clean(updates["physical_location"]) if "physical_location" in updates else event.physical_location,
    )

    for name, value in updates.items():
        setattr(event, name, _clean(value) if name in TEXT_FIELDS else value)
    event.updated_at = utcnow()
    db.commit()
    db.refresh(event)
    logger.info("Updated event %s fields %s", event_id, sorted(updates))
    return event


def change_status(db: Session, event_id: str, fid: Optional[int], new_status: EventStatus) -> tuple[Event, EventStatus]:
    """Organizer-driven transition. Returns the event and its previous status."""
    actor = require_profile(db, fid)
    event = get_event_or_404(db, event_id, lock=True)
    _check_authorization(event, actor, "change the event status")

    new_status = EventStatus(new_status)
    previous = EventStatus(event.status)
    result = lifecycle.validate_event_status_transition(
        event_id,
        previous,
        new_status,
        as_utc(event.start_time),
        as_utc(event.end_time),
        min_participants=event.min_participants,
        participant_count=participant_count(db, event_id),
    )
    if not result.is_valid:
        raise _bad_request(result.error)

    event.status = new_status
    event.updated_at = utcnow()
    if new_status == EventStatus.live:
        confirmed = confirm_registered_participants(db, event_id)
        logger.info("Auto-confirmed %d registered participants for event %s", confirmed, event_id)
    db.commit()
    db.refresh(event)
    logger.info("Event %s status %s -> %s by FID %s", event_id, previous.value, new_status.value, actor.fid)
    return event, previous


def confirm_registered_participants(db: Session, event_id: str) -> int:
    """Move registered rows to confirmed. Does not commit."""
    return (
        db.query(EventParticipant)
        .filter(EventParticipant.event_id == event_id, EventParticipant.status == ParticipantStatus.registered)
        .update(
            {"status": ParticipantStatus.confirmed, "last_updated_at": utcnow()},
            synchronize_session=False,
        )
    )


def prepare_broadcast(db: Session, event_id: str, fid: Optional[int]) -> tuple[Event, Profile, list[int]]:
    """Authorize an organizer broadcast and collect the recipients' FIDs."""
    actor = require_profile(db, fid)
    event = get_event_or_404(db, event_id)
    _check_authorization(event, actor, "broadcast messages")
    rows = (
        db.query(Profile.fid)
        .join(EventParticipant, EventParticipant.user_id == Profile.id)
        .filter(EventParticipant.event_id == event_id, EventParticipant.status != ParticipantStatus.cancelled)
        .all()
    )
    if not rows:
        raise HTTPException(status_code=404, detail="No participants found for this event")
    return event, actor, [row.fid for row in rows]


def fix_missing_organizers(db: Session) -> dict[str, Any]:
    """Back-fill the organizer participant row for every event missing it."""
    events = db.query(Event).all()
    fixed = already_fixed = 0
    errors: list[str] = []
    for event in events:
        if get_participation(db, event.id, event.created_by):
            already_fixed += 1
            continue
        now = utcnow()
        try:
            db.add(EventParticipant(
                event_id=event.id,
                user_id=event.created_by,
                role=ParticipantRole.organizer,
                status=ParticipantStatus.confirmed,
                registered_at=now,
                last_updated_at=now,
            ))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.exception("Failed to add organizer for event %s", event.id)
            errors.append(f"Event {event.id}: {e}")
            continue
        fixed += 1
        logger.info("Added organizer participant for event %s", event.id)

    logger.info("Organizer fix completed: %d fixed, %d already fixed, %d errors", fixed, already_fixed, len(errors))
    return {
        "total_events": len(events),
        "fixed": fixed,
        "already_fixed": already_fixed,
        "errors": len(errors),
        "error_details": errors,
    }
