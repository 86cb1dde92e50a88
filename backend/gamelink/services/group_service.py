"""Groups, memberships and invitations."""
import logging
from datetime import timedelta
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from gamelink.config import settings
from gamelink.models.group import Group, GroupInvitation, GroupMember, GroupRole, InvitationStatus, MembershipStatus
from gamelink.models.profile import Profile
from gamelink.services.profile_service import get_profile_by_fid, require_profile
from gamelink.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


def get_group(db: Session, group_id: str) -> Group:
    group = (
        db.query(Group)
        .options(joinedload(Group.members).joinedload(GroupMember.profile))
        .filter(Group.id == group_id)
        .first()
    )
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group


def get_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMember]:
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        .first()
    )


def _active_count(db: Session, group_id: str) -> int:
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.status == MembershipStatus.active)
        .count()
    )


def create_group(db: Session, fid: Optional[int], data: dict[str, Any]) -> tuple[Group, Profile]:
    """Create a group; the creator joins as its admin."""
    creator = require_profile(db, fid)
    name = (data.get("name") or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Group name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Group name must be {MAX_NAME_LENGTH} characters or less")
    duplicate = db.query(Group).filter(Group.created_by == creator.id, Group.name == name).first()
    if duplicate:
        raise HTTPException(
            status_code=409,
            detail="You already have a group with this name. Please choose a different name.",
        )

    fields = {k: v for k, v in data.items() if k != "name" and v is not None}
    group = Group(name=name, created_by=creator.id, **fields)
    db.add(group)
    db.flush()
    db.add(GroupMember(group_id=group.id, user_id=creator.id, role=GroupRole.admin, joined_at=utcnow()))
    db.commit()
    db.refresh(group)
    logger.info("Created group '%s' (%s) by FID %s", name, group.id, creator.fid)
    return group, creator


def list_groups(db: Session, limit: int = 50, offset: int = 0) -> list[Group]:
    """Public groups, newest first."""
    return (
        db.query(Group)
        .filter(Group.is_private.is_(False))
        .order_by(Group.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def invite(
    db: Session,
    group_id: str,
    inviter_fid: Optional[int],
    invitee_fid: int,
    message: Optional[str] = None,
) -> tuple[GroupInvitation, Group, Profile, Profile]:
    inviter = require_profile(db, inviter_fid)
    group = get_group(db, group_id)

    membership = get_membership(db, group_id, inviter.id)
    if not membership or membership.status != MembershipStatus.active:
        raise HTTPException(status_code=403, detail="Only group members can send invitations")
    if membership.role != GroupRole.admin and not group.allow_member_invites:
        raise HTTPException(status_code=403, detail="Only group admins can send invitations")

    invitee = get_profile_by_fid(db, invitee_fid)
    if not invitee:
        raise HTTPException(status_code=404, detail="Invited user not found")
    existing_member = get_membership(db, group_id, invitee.id)
    if existing_member and existing_member.status == MembershipStatus.active:
        raise HTTPException(status_code=409, detail="User is already a member of this group")
    pending = (
        db.query(GroupInvitation)
        .filter(
            GroupInvitation.group_id == group_id,
            GroupInvitation.invitee_id == invitee.id,
            GroupInvitation.status == InvitationStatus.pending,
            GroupInvitation.expires_at > utcnow(),
        )
        .first()
    )
    if pending:
        raise HTTPException(status_code=409, detail="User already has a pending invitation to this group")

    invitation = GroupInvitation(
        group_id=group_id,
        inviter_id=inviter.id,
        invitee_id=invitee.id,
        message=message,
        status=InvitationStatus.pending,
        expires_at=utcnow() + timedelta(days=settings.INVITATION_TTL_DAYS),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info("FID %s invited FID %s to group %s", inviter.fid, invitee.fid, group_id)
    return invitation, group, inviter, invitee


def respond_to_invitation(db: Session, invitation_id: str, fid: Optional[int], accept: bool) -> GroupInvitation:
    """Invitee accepts or declines. Expired invitations are marked and rejected."""
    profile = require_profile(db, fid)
    invitation = db.query(GroupInvitation).filter(GroupInvitation.id == invitation_id).first()
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")
    if invitation.invitee_id != profile.id:
        raise HTTPException(status_code=403, detail="This invitation is not addressed to you")
    if invitation.status != InvitationStatus.pending:
        raise HTTPException(status_code=400, detail=f"Invitation has already been {invitation.status.value}")

    now = utcnow()
    if as_utc(invitation.expires_at) <= now:
        invitation.status = InvitationStatus.expired
        db.commit()
        logger.info("Invitation %s expired before response", invitation_id)
        raise HTTPException(status_code=400, detail="Invitation has expired")

    if accept:
        group = invitation.group
        if _active_count(db, group.id) >= group.max_members:
            raise HTTPException(status_code=400, detail="Group is full")
        membership = get_membership(db, group.id, profile.id)
        if membership:
            membership.status = MembershipStatus.active
            membership.role = GroupRole.member
            membership.invited_by = invitation.inviter_id
            membership.joined_at = now
        else:
            db.add(GroupMember(
                group_id=group.id,
                user_id=profile.id,
                role=GroupRole.member,
                invited_by=invitation.inviter_id,
                joined_at=now,
            ))
        invitation.status = InvitationStatus.accepted
    else:
        invitation.status = InvitationStatus.declined
    invitation.responded_at = now
    db.commit()
    db.refresh(invitation)
    logger.info("FID %s %s invitation %s", profile.fid, invitation.status.value, invitation_id)
    return invitation


def remove_member(db: Session, group_id: str, member_fid: int, actor_fid: Optional[int]) -> None:
    """Self-leave, or removal by an admin. The last admin cannot leave."""
    actor = require_profile(db, actor_fid)
    get_group(db, group_id)
    target = get_profile_by_fid(db, member_fid)
    membership = get_membership(db, group_id, target.id) if target else None
    if not membership or membership.status != MembershipStatus.active:
        raise HTTPException(status_code=404, detail="Membership not found")

    if actor.id != target.id:
        actor_membership = get_membership(db, group_id, actor.id)
        if not actor_membership or actor_membership.role != GroupRole.admin:
            raise HTTPException(status_code=403, detail="Only group admins can remove members")

    if membership.role == GroupRole.admin:
        admins = (
            db.query(GroupMember)
            .filter(
                GroupMember.group_id == group_id,
                GroupMember.role == GroupRole.admin,
                GroupMember.status == MembershipStatus.active,
            )
            .count()
        )
        if admins <= 1:
            raise HTTPException(status_code=400, detail="The last admin cannot leave the group")

    db.delete(membership)
    db.commit()
    logger.info("Removed FID %s from group %s (by FID %s)", member_fid, group_id, actor.fid)
