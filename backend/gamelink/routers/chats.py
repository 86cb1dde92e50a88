"""Chat and messaging API routes."""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from gamelink.clients.deps import get_neynar_client
from gamelink.clients.neynar import NeynarClient
from gamelink.database import get_db
from gamelink.schemas.chat import ChatCreate, ChatLeaveRequest, ChatOut, MessageCreate, MessageOut
from gamelink.services import chat_service, notification_service
from gamelink.services.profile_service import require_profile
from gamelink.timeutils import as_utc

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ChatOut, status_code=status.HTTP_201_CREATED)
def create_chat(payload: ChatCreate, db: Session = Depends(get_db)):
    """Create a direct chat (exactly one other participant) or a group chat."""
    creator = require_profile(db, payload.fid)
    return chat_service.create_chat(db, creator, payload.participant_fids, payload.type, payload.name)


@router.get("/", response_model=list[ChatOut])
def list_chats(fid: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """The caller's active chats, most recent activity first."""
    profile = require_profile(db, fid)
    return chat_service.list_chats_for(db, profile)


@router.get("/{chat_id}", response_model=ChatOut)
def get_chat(chat_id: str, fid: Optional[int] = Query(None), db: Session = Depends(get_db)):
    profile = require_profile(db, fid)
    chat = chat_service.get_chat(db, chat_id)
    chat_service.require_membership(db, chat_id, profile)
    return chat


@router.get("/{chat_id}/messages", response_model=list[MessageOut])
def list_messages(
    chat_id: str,
    fid: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """Messages oldest first; page backwards with ``before``."""
    profile = require_profile(db, fid)
    chat_service.get_chat(db, chat_id)
    chat_service.require_membership(db, chat_id, profile)
    return chat_service.list_messages(db, chat_id, limit=limit, before=as_utc(before))


@router.post("/{chat_id}/messages", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def send_message(
    chat_id: str,
    payload: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Post a message and notify the other active participants."""
    sender = require_profile(db, payload.fid)
    message, participant_fids = chat_service.send_message(
        db, chat_id, sender, payload.content, payload.message_type, payload.reply_to
    )
    outgoing = notification_service.message_notification(db, chat_id, participant_fids, sender, payload.content)
    if outgoing:
        fids, notification = outgoing
        background_tasks.add_task(notification_service.dispatch, client, fids, notification)
    return message


@router.post("/{chat_id}/leave")
def leave_chat(chat_id: str, payload: ChatLeaveRequest, db: Session = Depends(get_db)):
    profile = require_profile(db, payload.fid)
    chat_service.leave_chat(db, chat_id, profile)
    return {"success": True, "message": "Successfully left the chat"}
