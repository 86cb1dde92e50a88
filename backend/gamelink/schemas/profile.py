"""Pydantic schemas for Profiles."""
from typing import Optional
from pydantic import BaseModel

from gamelink.schemas.common import UTCDatetime


class ProfileUpsert(BaseModel):
    fid: int
    username: str
    display_name: Optional[str] = None
    pfp_url: Optional[str] = None
    bio: Optional[str] = None


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    display_name: Optional[str] = None
    pfp_url: Optional[str] = None
    bio: Optional[str] = None


class ProfileOut(BaseModel):
    id: str
    fid: int
    username: str
    display_name: Optional[str] = None
    pfp_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[UTCDatetime] = None
    updated_at: Optional[UTCDatetime] = None

    model_config = {"from_attributes": True}
