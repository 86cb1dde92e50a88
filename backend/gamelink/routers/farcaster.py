"""Farcaster lookup routes backed by Neynar."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query

from gamelink.clients.deps import get_neynar_client
from gamelink.clients.neynar import NeynarClient
from gamelink.schemas.farcaster import BulkUsersRequest, FarcasterUserOut, MutualFollowersOut, UsersOut
from gamelink.services import farcaster_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/user/{fid}", response_model=FarcasterUserOut)
def get_user(fid: int, client: NeynarClient = Depends(get_neynar_client)):
    user = client.fetch_user(fid)
    if not user:
        raise HTTPException(status_code=404, detail="Farcaster user not found")
    return user


@router.post("/users/bulk", response_model=UsersOut)
def get_users_bulk(payload: BulkUsersRequest, client: NeynarClient = Depends(get_neynar_client)):
    users = client.fetch_bulk_users(list(dict.fromkeys(payload.fids)))
    return UsersOut(users=users, count=len(users))


@router.get("/mutual-followers", response_model=MutualFollowersOut)
def get_mutual_followers(
    fid: int = Query(..., gt=0),
    refresh: bool = Query(False),
    client: NeynarClient = Depends(get_neynar_client),
):
    """Users who follow ``fid`` and whom ``fid`` follows back."""
    users = farcaster_service.get_mutual_followers(client, fid, use_cache=not refresh)
    return MutualFollowersOut(fid=fid, use_cache=not refresh, data=users, count=len(users))
