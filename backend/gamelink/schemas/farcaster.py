"""Pydantic schemas for Farcaster lookups."""
from typing import Optional
from pydantic import BaseModel, Field


class FarcasterUserOut(BaseModel):
    fid: int
    username: str
    display_name: str
    pfp_url: str = ""
    bio: str = ""
    follower_count: int = 0
    following_count: int = 0
    custody_address: Optional[str] = None
    is_verified: bool = False

    model_config = {"from_attributes": True}


class BulkUsersRequest(BaseModel):
    fids: list[int] = Field(..., min_length=1, max_length=1000)


class UsersOut(BaseModel):
    users: list[FarcasterUserOut]
    count: int


class MutualFollowersOut(BaseModel):
    fid: int
    use_cache: bool
    data: list[FarcasterUserOut]
    count: int
