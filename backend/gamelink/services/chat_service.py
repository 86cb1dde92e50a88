"""Chats, memberships and messages."""
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gamelink.models.chat import Chat, ChatParticipant, ChatType, Message, MessageType
from gamelink.models.profile import Profile
from gamelink.timeutils import utcnow

logger = logging.getLogger(__name__)


def get_chat(db: Session, chat_id: str) -> Chat:
    chat = db.query(Chat).filter(Chat.id == chat_id).first()
    if not chat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return chat


def get_active_membership(db: Session, chat_id: str, user_id: str) -> Optional[ChatParticipant]:
    return (
        db.query(ChatParticipant)
        .filter(
            ChatParticipant.chat_id == chat_id,
            ChatParticipant.user_id == user_id,
            ChatParticipant.left_at.is_(None),
        )
        .first()
    )


def require_membership(db: Session, chat_id: str, profile: Profile) -> ChatParticipant:
    membership = get_active_membership(db, chat_id, profile.id)
    if not membership:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a participant in this chat")
    return membership


def add_participant(db: Session, chat_id: str, profile: Profile, is_admin: bool = False) -> tuple[ChatParticipant, bool]:
    """Add ``profile`` to the chat unless already active. Returns (membership, created). Does not commit."""
    existing = get_active_membership(db, chat_id, profile.id)
    if existing:
        return existing, False
    membership = ChatParticipant(chat_id=chat_id, user_id=profile.id, fid=profile.fid, is_admin=is_admin, joined_at=utcnow())
    db.add(membership)
    db.flush()
    return membership, True


def _find_direct_chat(db: Session, first: Profile, second: Profile) -> Optional[Chat]:
    first_chats = select(ChatParticipant.chat_id).where(
        ChatParticipant.user_id == first.id, ChatParticipant.left_at.is_(None)
    )
    return (
        db.query(Chat)
        .join(ChatParticipant, ChatParticipant.chat_id == Chat.id)
        .filter(
            Chat.type == ChatType.direct,
            Chat.is_active.is_(True),
            Chat.id.in_(first_chats),
            ChatParticipant.user_id == second.id,
            ChatParticipant.left_at.is_(None),
        )
        .first()
    )


def create_chat(
    db: Session,
    creator: Profile,
    participant_fids: list[int],
    chat_type: ChatType = ChatType.group,
    name: Optional[str] = None,
) -> Chat:
    """Create a direct or group chat. A direct chat between the same pair is reused."""
    other_fids = [fid for fid in dict.fromkeys(participant_fids) if fid != creator.fid]
    others = db.query(Profile).filter(Profile.fid.in_(other_fids)).all() if other_fids else []

    if chat_type == ChatType.direct:
        if len(other_fids) != 1:
            raise HTTPException(status_code=400, detail="Direct chats require exactly one other participant")
        if not others:
            raise HTTPException(status_code=404, detail="Target user not found")
        existing = _find_direct_chat(db, creator, others[0])
        if existing:
            logger.info("Reusing direct chat %s between FIDs %s and %s", existing.id, creator.fid, others[0].fid)
            return existing
    elif not others:
        raise HTTPException(status_code=400, detail="No valid participants found")

    chat = Chat(name=name, type=chat_type, created_by=creator.id, last_message_at=utcnow())
    db.add(chat)
    db.flush()
    add_participant(db, chat.id, creator, is_admin=True)
    for profile in others:
        add_participant(db, chat.id, profile, is_admin=False)
    db.commit()
    db.refresh(chat)
    logger.info("Created %s chat %s by FID %s with %d participants", chat_type.value, chat.id, creator.fid, len(others) + 1)
    return chat


def list_chats_for(db: Session, profile: Profile) -> list[Chat]:
    return (
        db.query(Chat)
        .join(ChatParticipant, ChatParticipant.chat_id == Chat.id)
        .filter(
            ChatParticipant.user_id == profile.id,
            ChatParticipant.left_at.is_(None),
            Chat.is_active.is_(True),
        )
        .order_by(Chat.last_message_at.desc())
        .all()
    )


def list_messages(db: Session, chat_id: str, limit: int = 50, before=None) -> list[Message]:
    """Newest ``limit`` messages before ``before``, returned oldest first."""
    query = db.query(Message).filter(Message.chat_id == chat_id, Message.is_deleted.is_(False))
    if before is not None:
        query = query.filter(Message.created_at < before)
    messages = query.order_by(Message.created_at.desc()).limit(limit).all()
    return list(reversed(messages))


def send_message(
    db: Session,
    chat_id: str,
    sender: Profile,
    content: str,
    message_type: MessageType = MessageType.text,
    reply_to: Optional[str] = None,
) -> tuple[Message, list[int]]:
    """Store a message and return it with the FIDs of every active participant."""
    chat = get_chat(db, chat_id)
    require_membership(db, chat_id, sender)
    if reply_to and not db.query(Message).filter(Message.id == reply_to, Message.chat_id == chat_id).first():
        raise HTTPException(status_code=400, detail="Replied-to message not found in this chat")

    now = utcnow()
    message = Message(
        chat_id=chat_id,
        sender_id=sender.id,
        sender_fid=sender.fid,
        content=content,
        message_type=message_type,
        reply_to=reply_to,
        created_at=now,
    )
    db.add(message)
    chat.last_message_at = now
    db.commit()
    db.refresh(message)
    db.refresh(chat)
    logger.info("FID %s sent message %s in chat %s", sender.fid, message.id, chat_id)
    return message, [p.fid for p in chat.active_participants if p.fid is not None]


def leave_chat(db: Session, chat_id: str, profile: Profile) -> None:
    get_chat(db, chat_id)
    membership = get_active_membership(db, chat_id, profile.id)
    if not membership:
        raise HTTPException(status_code=404, detail="User is not a member of this chat")
    membership.left_at = utcnow()
    db.commit()
    logger.info("FID %s left chat %s", profile.fid, chat_id)
