"""Pydantic schemas for Chats and Messages."""
from __future__ import annotations
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field

from gamelink.models.chat import ChatType, MessageType
from gamelink.schemas.common import UTCDatetime


class ChatCreate(BaseModel):
    fid: Optional[int] = None
    participant_fids: list[int] = []
    type: ChatType = ChatType.group
    name: Optional[str] = Field(None, max_length=255)


class ChatParticipantOut(BaseModel):
    user_id: str
    fid: Optional[int] = None
    is_admin: bool
    joined_at: Optional[UTCDatetime] = None

    model_config = {"from_attributes": True}


class ChatOut(BaseModel):
    id: str
    name: Optional[str] = None
    type: ChatType
    created_by: str
    is_active: bool
    last_message_at: Optional[UTCDatetime] = None
    created_at: Optional[UTCDatetime] = None
    participants: list[ChatParticipantOut] = Field([], validation_alias=AliasChoices("active_participants", "participants"))

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    fid: Optional[int] = None
    content: str = Field(..., min_length=1, max_length=2000)
    message_type: MessageType = MessageType.text
    reply_to: Optional[str] = None


class MessageOut(BaseModel):
    id: str
    chat_id: str
    sender_id: str
    sender_fid: Optional[int] = None
    content: str
    message_type: MessageType
    reply_to: Optional[str] = None
    is_edited: bool
    created_at: Optional[UTCDatetime] = None

    model_config = {"from_attributes": True}


class ChatLeaveRequest(BaseModel):
    fid: Optional[int] = None


