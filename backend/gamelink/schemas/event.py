"""Pydantic schemas for Events and their participants."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from gamelink.models.event import EventStatus, EventType, LocationType, SkillLevel
from gamelink.models.participant import ParticipantRole, ParticipantStatus
from gamelink.schemas.common import UTCDatetime
from gamelink.schemas.profile import ProfileOut


class EventCreate(BaseModel):
    fid: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    game: Optional[str] = None
    gaming_platform: str = "PC"
    event_type: EventType = EventType.casual
    skill_level: SkillLevel = SkillLevel.any
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    timezone: str = "UTC"
    max_participants: int = 8
    min_participants: int = 2
    require_approval: bool = False
    location_type: LocationType = LocationType.online
    connection_details: Optional[str] = None
    physical_location: Optional[str] = None
    is_private: bool = False
    allow_spectators: bool = True
    registration_deadline: Optional[datetime] = None
    status: EventStatus = EventStatus.upcoming
    group_id: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    game: Optional[str] = None
    gaming_platform: Optional[str] = None
    event_type: Optional[EventType] = None
    skill_level: Optional[SkillLevel] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    timezone: Optional[str] = None
    max_participants: Optional[int] = None
    min_participants: Optional[int] = None
    require_approval: Optional[bool] = None
    location_type: Optional[LocationType] = None
    connection_details: Optional[str] = None
    physical_location: Optional[str] = None
    is_private: Optional[bool] = None
    allow_spectators: Optional[bool] = None
    registration_deadline: Optional[datetime] = None


class EventStatusChange(BaseModel):
    status: EventStatus


class EventOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    game: Optional[str] = None
    gaming_platform: str
    event_type: EventType
    skill_level: SkillLevel
    start_time: UTCDatetime
    end_time: Optional[UTCDatetime] = None
    timezone: str
    max_participants: int
    min_participants: int
    require_approval: bool
    location_type: LocationType
    connection_details: Optional[str] = None
    physical_location: Optional[str] = None
    is_private: bool
    allow_spectators: bool
    registration_deadline: Optional[UTCDatetime] = None
    status: EventStatus
    created_by: str
    group_id: Optional[str] = None
    chat_id: Optional[str] = None
    created_at: Optional[UTCDatetime] = None
    updated_at: Optional[UTCDatetime] = None
    participant_count: int = 0

    model_config = {"from_attributes": True}


class ParticipantOut(BaseModel):
    id: str
    event_id: str
    user_id: str
    role: ParticipantRole
    status: ParticipantStatus
    registration_message: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[UTCDatetime] = None
    placement: Optional[int] = None
    score: Optional[float] = None
    notes: Optional[str] = None
    registered_at: Optional[UTCDatetime] = None
    last_updated_at: Optional[UTCDatetime] = None
    profile: Optional[ProfileOut] = None

    model_config = {"from_attributes": True}


class EventDetailOut(EventOut):
    organizer: Optional[ProfileOut] = None
    participants: list[ParticipantOut] = []
    user_participation: Optional[ParticipantOut] = None


class RSVPRequest(BaseModel):
    fid: Optional[int] = None
    role: ParticipantRole = ParticipantRole.participant
    registration_message: Optional[str] = Field(None, max_length=500)


class ChatJoinOut(BaseModel):
    chat_id: str
    auto_joined: bool
    already_in_chat: bool = False


class RSVPOut(BaseModel):
    success: bool = True
    message: str
    participation: ParticipantOut
    chat: Optional[ChatJoinOut] = None


class ParticipantUpdate(BaseModel):
    status: Optional[ParticipantStatus] = None
    score: Optional[float] = None
    placement: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None


class JoinChatRequest(BaseModel):
    fid: Optional[int] = None


class BroadcastRequest(BaseModel):
    fid: Optional[int] = None
    title: Optional[str] = Field(None, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)


class BroadcastOut(BaseModel):
    success: bool = True
    message: str
    recipients: int


class EventListOut(BaseModel):
    success: bool = True
    events: list[EventOut]
    count: int
