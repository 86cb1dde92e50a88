"""Notification preference and push-token ORM models."""
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from sqlalchemy.sql import func
from gamelink.database import Base

DEFAULT_TOKEN_URL = "https://api.farcaster.xyz/v1/frame-notifications"


class NotificationPreferences(Base):
    __tablename__ = "notification_preferences"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_fid = Column(Integer, nullable=False, unique=True, index=True)
    messages_enabled = Column(Boolean, nullable=False, default=True)
    group_invites_enabled = Column(Boolean, nullable=False, default=True)
    events_enabled = Column(Boolean, nullable=False, default=True)
    groups_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class NotificationToken(Base):
    __tablename__ = "notification_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fid = Column(Integer, nullable=False, index=True)
    token = Column(String(255), nullable=False, unique=True)
    url = Column(String(500), nullable=False, default=DEFAULT_TOKEN_URL)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
