"""Participant / RSVP API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gamelink.database import get_db
from gamelink.schemas.event import ChatJoinOut, JoinChatRequest, ParticipantOut, ParticipantUpdate, RSVPOut, RSVPRequest
from gamelink.services import registration_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{event_id}/rsvp", response_model=RSVPOut)
def join_event(event_id: str, payload: RSVPRequest, db: Session = Depends(get_db)):
    """Register the caller as a participant or spectator."""
    participation, chat = registration_service.join_event(
        db, event_id, payload.fid, payload.role, payload.registration_message
    )
    pending = participation.status.value == "pending_approval"
    return RSVPOut(
        message="Registration submitted for approval" if pending else "Successfully joined event!",
        participation=participation,
        chat=chat,
    )


@router.delete("/{event_id}/rsvp")
def leave_event(event_id: str, fid: Optional[int] = Query(None), db: Session = Depends(get_db)):
    registration_service.leave_event(db, event_id, fid)
    return {"success": True, "message": "Successfully left event"}


@router.get("/{event_id}/participants", response_model=list[ParticipantOut])
def list_participants(event_id: str, db: Session = Depends(get_db)):
    return registration_service.list_participants(db, event_id)


@router.patch("/{event_id}/participants/{participant_id}", response_model=ParticipantOut)
def update_participant(
    event_id: str,
    participant_id: str,
    payload: ParticipantUpdate,
    fid: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    """Organizer sets status, score, placement or notes."""
    return registration_service.update_participant(
        db, event_id, participant_id, fid, payload.model_dump(exclude_unset=True)
    )


@router.post("/{event_id}/join-chat", response_model=ChatJoinOut)
def join_event_chat(event_id: str, payload: JoinChatRequest, db: Session = Depends(get_db)):
    chat_id, created = registration_service.join_event_chat(db, event_id, payload.fid)
    return ChatJoinOut(chat_id=chat_id, auto_joined=created, already_in_chat=not created)
