"""Chat, ChatParticipant and Message ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from gamelink.database import Base


class ChatType(str, enum.Enum):
    direct = "direct"
    group = "group"


class MessageType(str, enum.Enum):
    text = "text"
    image = "image"
    file = "file"
    system = "system"


class Chat(Base):
    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=True)
    type = Column(SAEnum(ChatType), nullable=False, default=ChatType.group)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_message_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    participants = relationship("ChatParticipant", back_populates="chat", cascade="all, delete-orphan")

    @property
    def active_participants(self):
        return [p for p in self.participants if p.left_at is None]


class ChatParticipant(Base):
    __tablename__ = "chat_participants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    chat_id = Column(String(36), ForeignKey("chats.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    fid = Column(Integer, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    left_at = Column(DateTime(timezone=True), nullable=True)

    chat = relationship("Chat", back_populates="participants")


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    chat_id = Column(String(36), ForeignKey("chats.id"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    sender_fid = Column(Integer, nullable=True)
    content = Column(Text, nullable=False)
    message_type = Column(SAEnum(MessageType), nullable=False, default=MessageType.text)
    reply_to = Column(String(36), ForeignKey("messages.id"), nullable=True)
    is_edited = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
