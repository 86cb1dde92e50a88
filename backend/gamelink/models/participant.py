"""EventParticipant ORM model."""
import uuid
import enum
from sqlalchemy import Column, String, Text, Integer, Float, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from gamelink.database import Base


class ParticipantRole(str, enum.Enum):
    organizer = "organizer"
    moderator = "moderator"
    participant = "participant"
    spectator = "spectator"


class ParticipantStatus(str, enum.Enum):
    pending_approval = "pending_approval"
    registered = "registered"
    confirmed = "confirmed"
    attended = "attended"
    no_show = "no_show"
    cancelled = "cancelled"


class EventParticipant(Base):
    __tablename__ = "event_participants"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    role = Column(SAEnum(ParticipantRole), nullable=False, default=ParticipantRole.participant)
    status = Column(SAEnum(ParticipantStatus), nullable=False, default=ParticipantStatus.registered)
    registration_message = Column(Text, nullable=True)
    approved_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    placement = Column(Integer, nullable=True)
    score = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())
    last_updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event", back_populates="participants")
    profile = relationship("Profile", foreign_keys=[user_id])
