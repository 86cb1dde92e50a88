"""Group management API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from gamelink.clients.deps import get_neynar_client
from gamelink.clients.neynar import NeynarClient
from gamelink.database import get_db
from gamelink.schemas.group import GroupCreate, GroupOut, InvitationCreate, InvitationOut, InvitationRespond
from gamelink.services import group_service, notification_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Create a new group. Creator is automatically added as admin."""
    group, creator = group_service.create_group(db, payload.fid, payload.model_dump(exclude={"fid"}))
    announcement = notification_service.group_creation_notification(group, creator)
    if announcement:
        notification, filters = announcement
        background_tasks.add_task(notification_service.dispatch, client, [], notification, filters)
    return group


@router.get("/", response_model=list[GroupOut])
def list_groups(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List public groups with their active members."""
    return group_service.list_groups(db, limit=limit, offset=offset)


@router.get("/{group_id}", response_model=GroupOut)
def get_group(group_id: str, db: Session = Depends(get_db)):
    return group_service.get_group(db, group_id)


@router.post("/{group_id}/invitations", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
def invite_member(
    group_id: str,
    payload: InvitationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Invite a user by FID and notify them."""
    invitation, group, inviter, invitee = group_service.invite(
        db, group_id, payload.fid, payload.invitee_fid, payload.message
    )
    outgoing = notification_service.group_invitation_notification(db, group, inviter, invitee)
    if outgoing:
        fids, notification = outgoing
        background_tasks.add_task(notification_service.dispatch, client, fids, notification)
    return invitation


@router.post("/invitations/{invitation_id}/respond", response_model=InvitationOut)
def respond_to_invitation(invitation_id: str, payload: InvitationRespond, db: Session = Depends(get_db)):
    return group_service.respond_to_invitation(db, invitation_id, payload.fid, payload.accept)


@router.delete("/{group_id}/members/{member_fid}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    group_id: str,
    member_fid: int,
    actor_fid: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    """Leave a group, or remove a member as an admin."""
    group_service.remove_member(db, group_id, member_fid, actor_fid)
