"""Event ORM model."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from gamelink.database import Base


class EventStatus(str, enum.Enum):
    draft = "draft"
    upcoming = "upcoming"
    live = "live"
    completed = "completed"
    cancelled = "cancelled"


TERMINAL_STATUSES = (EventStatus.completed, EventStatus.cancelled)


class EventType(str, enum.Enum):
    casual = "casual"
    tournament = "tournament"
    practice = "practice"
    scrimmage = "scrimmage"
    ranked = "ranked"


class SkillLevel(str, enum.Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"
    any = "any"


class LocationType(str, enum.Enum):
    online = "online"
    in_person = "in_person"
    hybrid = "hybrid"


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    game = Column(String(150), nullable=True)
    gaming_platform = Column(String(50), nullable=False, default="PC")
    event_type = Column(SAEnum(EventType), nullable=False, default=EventType.casual)
    skill_level = Column(SAEnum(SkillLevel), nullable=False, default=SkillLevel.any)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    timezone = Column(String(50), nullable=False, default="UTC")
    max_participants = Column(Integer, nullable=False, default=8)
    min_participants = Column(Integer, nullable=False, default=2)
    require_approval = Column(Boolean, nullable=False, default=False)
    location_type = Column(SAEnum(LocationType), nullable=False, default=LocationType.online)
    connection_details = Column(Text, nullable=True)
    physical_location = Column(String(500), nullable=True)
    is_private = Column(Boolean, nullable=False, default=False)
    allow_spectators = Column(Boolean, nullable=False, default=True)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.upcoming, index=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=True)
    chat_id = Column(String(36), ForeignKey("chats.id"), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organizer = relationship("Profile", foreign_keys=[created_by])
    participants = relationship(
        "EventParticipant",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventParticipant.registered_at",
    )
