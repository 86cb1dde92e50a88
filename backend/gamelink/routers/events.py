"""Event API routes. Validation and authorization live in event_service."""
import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gamelink.clients.deps import get_neynar_client
from gamelink.clients.neynar import NeynarClient
from gamelink.database import get_db
from gamelink.models.event import Event, EventStatus, EventType
from gamelink.schemas.event import (
    BroadcastOut,
    BroadcastRequest,
    EventCreate,
    EventDetailOut,
    EventListOut,
    EventOut,
    EventStatusChange,
    EventUpdate,
    ParticipantOut,
)
from gamelink.services import event_service, notification_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _with_count(db: Session, event: Event) -> EventOut:
    out = EventOut.model_validate(event)
    out.participant_count = event_service.participant_counts(db, [event.id])[event.id]
    return out


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Create an event with its organizer row and chat; announce public events to followers."""
    event = event_service.create_event(db, payload.fid, payload.model_dump(exclude={"fid"}))
    announcement = notification_service.event_creation_notification(event, event.organizer)
    if announcement:
        notification, filters = announcement
        background_tasks.add_task(notification_service.dispatch, client, [], notification, filters)
    return _with_count(db, event)


@router.get("/", response_model=EventListOut)
def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    game: Optional[str] = Query(None),
    event_type: Optional[EventType] = Query(None),
    group_id: Optional[str] = Query(None),
    chat_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List public events with participant counts."""
    events = event_service.list_events(
        db,
        status_filter=status_filter,
        game=game,
        event_type=event_type,
        group_id=group_id,
        chat_id=chat_id,
        limit=limit,
        offset=offset,
    )
    counts = event_service.participant_counts(db, [e.id for e in events])
    items = []
    for event in events:
        out = EventOut.model_validate(event)
        out.participant_count = counts[event.id]
        items.append(out)
    return EventListOut(events=items, count=len(items))


@router.get("/{event_id}", response_model=EventDetailOut)
def get_event(event_id: str, fid: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """Fetch an event with organizer, participants and the caller's participation."""
    event, mine = event_service.get_event_details(db, event_id, fid)
    out = EventDetailOut.model_validate(event)
    out.participant_count = event_service.participant_counts(db, [event.id])[event.id]
    out.user_participation = ParticipantOut.model_validate(mine) if mine else None
    return out


@router.patch("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    fid: Optional[int] = Query(None, description="FID of the user performing the update"),
    db: Session = Depends(get_db),
):
    """Edit event fields (organizer only, non-terminal events)."""
    event = event_service.update_event(db, event_id, fid, payload.model_dump(exclude_unset=True))
    return _with_count(db, event)


@router.put("/{event_id}/status", response_model=EventOut)
def change_event_status(
    event_id: str,
    payload: EventStatusChange,
    background_tasks: BackgroundTasks,
    fid: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Move the event through its lifecycle and notify participants."""
    event, _ = event_service.change_status(db, event_id, fid, payload.status)
    outgoing = notification_service.status_change_notification(db, event, payload.status)
    if outgoing:
        fids, notification = outgoing
        background_tasks.add_task(notification_service.dispatch, client, fids, notification)
    return _with_count(db, event)


@router.post("/{event_id}/broadcast", response_model=BroadcastOut)
def broadcast(
    event_id: str,
    payload: BroadcastRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Organizer announcement to every non-cancelled participant."""
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
    event, organizer, recipient_fids = event_service.prepare_broadcast(db, event_id, payload.fid)
    outgoing = notification_service.broadcast_notification(
        db,
        event,
        recipient_fids,
        (payload.title or "").strip() or "Event Announcement",
        message,
        organizer.name,
    )
    recipients = 0
    if outgoing:
        fids, notification = outgoing
        recipients = len(fids)
        background_tasks.add_task(notification_service.dispatch, client, fids, notification)
    logger.info("Queued broadcast for event %s to %d recipients", event_id, recipients)
    return BroadcastOut(message="Broadcast sent successfully", recipients=recipients)
