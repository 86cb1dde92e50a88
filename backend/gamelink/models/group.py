"""Group, GroupMember and GroupInvitation ORM models."""
import uuid
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from gamelink.database import Base
from gamelink.models.event import SkillLevel
import enum


class GroupRole(str, enum.Enum):
    admin = "admin"
    moderator = "moderator"
    member = "member"


class MembershipStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    banned = "banned"
    pending = "pending"


class InvitationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    expired = "expired"


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    is_private = Column(Boolean, nullable=False, default=False)
    max_members = Column(Integer, nullable=False, default=50)
    allow_member_invites = Column(Boolean, nullable=False, default=True)
    require_admin_approval = Column(Boolean, nullable=False, default=False)
    primary_game = Column(String(150), nullable=True)
    gaming_platform = Column(String(50), nullable=True)
    skill_level = Column(SAEnum(SkillLevel), nullable=False, default=SkillLevel.any)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")
    creator = relationship("Profile", foreign_keys=[created_by])

    @property
    def active_members(self):
        return [m for m in self.members if m.status == MembershipStatus.active]


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    role = Column(SAEnum(GroupRole), nullable=False, default=GroupRole.member)
    status = Column(SAEnum(MembershipStatus), nullable=False, default=MembershipStatus.active)
    invited_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="members")
    profile = relationship("Profile", foreign_keys=[user_id])


class GroupInvitation(Base):
    __tablename__ = "group_invitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    inviter_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    invitee_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    message = Column(Text, nullable=True)
    status = Column(SAEnum(InvitationStatus), nullable=False, default=InvitationStatus.pending)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group")
