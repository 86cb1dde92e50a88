"""Pydantic schemas for notification preferences and the Farcaster webhook."""
from typing import Optional
from pydantic import BaseModel, Field


class PreferencesOut(BaseModel):
    user_fid: int
    messages_enabled: bool
    group_invites_enabled: bool
    events_enabled: bool
    groups_enabled: bool

    model_config = {"from_attributes": True}


class PreferencesUpdate(BaseModel):
    fid: Optional[int] = None
    messages_enabled: Optional[bool] = None
    group_invites_enabled: Optional[bool] = None
    events_enabled: Optional[bool] = None
    groups_enabled: Optional[bool] = None


class NotificationDetails(BaseModel):
    token: str
    url: Optional[str] = None


class WebhookEventData(BaseModel):
    fid: int
    notification_details: Optional[NotificationDetails] = Field(None, alias="notificationDetails")


class WebhookEvent(BaseModel):
    # Unknown types are acknowledged, so this is a plain string
    type: str
    data: WebhookEventData
    timestamp: Optional[str] = None


class WebhookPayload(BaseModel):
    event: WebhookEvent
    signature: Optional[str] = None
