"""Pydantic schemas for Groups, memberships and invitations."""
from __future__ import annotations
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field

from gamelink.models.event import SkillLevel
from gamelink.models.group import GroupRole, InvitationStatus, MembershipStatus
from gamelink.schemas.common import UTCDatetime
from gamelink.schemas.profile import ProfileOut


class GroupCreate(BaseModel):
    fid: Optional[int] = None
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    is_private: bool = False
    max_members: int = Field(50, ge=1, le=1000)
    allow_member_invites: bool = True
    require_admin_approval: bool = False
    primary_game: Optional[str] = Field(None, max_length=100)
    gaming_platform: Optional[str] = Field(None, max_length=50)
    skill_level: SkillLevel = SkillLevel.any


class GroupMemberOut(BaseModel):
    user_id: str
    role: GroupRole
    status: MembershipStatus
    invited_by: Optional[str] = None
    joined_at: Optional[UTCDatetime] = None
    profile: Optional[ProfileOut] = None

    model_config = {"from_attributes": True}


class GroupOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    is_private: bool
    max_members: int
    allow_member_invites: bool
    require_admin_approval: bool
    primary_game: Optional[str] = None
    gaming_platform: Optional[str] = None
    skill_level: SkillLevel
    created_by: str
    created_at: Optional[UTCDatetime] = None
    members: list[GroupMemberOut] = Field([], validation_alias=AliasChoices("active_members", "members"))

    model_config = {"from_attributes": True}


class InvitationCreate(BaseModel):
    fid: Optional[int] = None
    invitee_fid: int
    message: Optional[str] = Field(None, max_length=500)


class InvitationRespond(BaseModel):
    fid: Optional[int] = None
    accept: bool


class InvitationOut(BaseModel):
    id: str
    group_id: str
    inviter_id: str
    invitee_id: str
    message: Optional[str] = None
    status: InvitationStatus
    expires_at: UTCDatetime
    responded_at: Optional[UTCDatetime] = None
    created_at: Optional[UTCDatetime] = None

    model_config = {"from_attributes": True}
