"""Notification preference routes and the Farcaster Mini App webhook."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gamelink.database import get_db
from gamelink.schemas.notification import PreferencesOut, PreferencesUpdate, WebhookPayload
from gamelink.services import notification_service
from gamelink.services.profile_service import require_profile

logger = logging.getLogger(__name__)
router = APIRouter()
webhook_router = APIRouter()

TOKEN_STORING_EVENTS = ("frame_added", "notifications_enabled")
TOKEN_DISABLING_EVENTS = ("frame_removed", "notifications_disabled")


@router.get("/preferences", response_model=PreferencesOut)
def get_preferences(fid: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """Current preferences; defaults are created on first read."""
    profile = require_profile(db, fid)
    return notification_service.get_or_create_preferences(db, profile.fid)


@router.put("/preferences", response_model=PreferencesOut)
def update_preferences(payload: PreferencesUpdate, db: Session = Depends(get_db)):
    profile = require_profile(db, payload.fid)
    values = payload.model_dump(exclude={"fid"}, exclude_none=True)
    return notification_service.update_preferences(db, profile.fid, values)


@webhook_router.post("")
def receive_webhook(payload: WebhookPayload, db: Session = Depends(get_db)):
    """Store or disable push tokens from Mini App lifecycle events."""
    event = payload.event
    fid = event.data.fid
    details = event.data.notification_details
    logger.info("Webhook event %s for FID %s", event.type, fid)

    if event.type in TOKEN_STORING_EVENTS:
        if details:
            notification_service.store_notification_token(db, fid, details.token, details.url)
    elif event.type in TOKEN_DISABLING_EVENTS:
        if details:
            notification_service.disable_notification_token(db, details.token)
        elif event.type == "frame_removed":
            notification_service.disable_tokens_for_fid(db, fid)
    else:
        logger.warning("Ignoring unknown webhook event type %s", event.type)

    return {"success": True, "type": event.type}


@webhook_router.get("")
def webhook_status():
    return {
        "status": "ok",
        "message": "Farcaster webhook endpoint is active",
        "supported_events": list(TOKEN_STORING_EVENTS + TOKEN_DISABLING_EVENTS),
    }
