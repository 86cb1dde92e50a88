"""Push notifications via Neynar.

Builders here run inside the request: they read preferences and decide
recipients while the session is open. ``dispatch`` is what gets scheduled on
``BackgroundTasks``; it only talks to Neynar and never raises.
"""
import logging
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from gamelink.clients.neynar import NeynarClient, NotificationPayload
from gamelink.config import settings
from gamelink.models.event import Event, EventStatus
from gamelink.models.group import Group
from gamelink.models.notification import NotificationPreferences, NotificationToken, DEFAULT_TOKEN_URL
from gamelink.models.participant import EventParticipant, ParticipantStatus
from gamelink.models.profile import Profile

logger = logging.getLogger(__name__)

MESSAGE_PREVIEW_LENGTH = 100
MIN_USER_SCORE = 0.1

# Preference column per notification kind
PREFERENCE_FIELDS = {
    "messages": "messages_enabled",
    "group_invites": "group_invites_enabled",
    "events": "events_enabled",
    "groups": "groups_enabled",
}

NOTIFIABLE_PARTICIPANT_STATUSES = (
    ParticipantStatus.registered,
    ParticipantStatus.confirmed,
    ParticipantStatus.attended,
)


def deep_link(path: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/{path.lstrip('/')}"


def create_payload(title: str, body: str, path: str) -> NotificationPayload:
    return NotificationPayload(title=title, body=body, target_url=deep_link(path))


def truncate(text: str, limit: int = MESSAGE_PREVIEW_LENGTH) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


def dispatch(
    client: NeynarClient,
    target_fids: list[int],
    payload: NotificationPayload,
    filters: Optional[dict[str, Any]] = None,
) -> bool:
    """Best-effort publish. Failures are logged and reported as ``False``."""
    try:
        client.publish_frame_notifications(target_fids, payload, filters=filters)
    except Exception:
        logger.exception("Failed to send notification '%s' to %d recipients", payload.title, len(target_fids))
        return False
    logger.info("Sent notification '%s' to %s", payload.title,
                f"{len(target_fids)} recipients" if target_fids else "filtered audience")
    return True


# ── Preferences ────────────────────────────────────────────────────

def get_preferences(db: Session, fid: int) -> Optional[NotificationPreferences]:
    return db.query(NotificationPreferences).filter(NotificationPreferences.user_fid == fid).first()


def get_or_create_preferences(db: Session, fid: int) -> NotificationPreferences:
    prefs = get_preferences(db, fid)
    if prefs is None:
        prefs = NotificationPreferences(user_fid=fid)
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
        logger.info("Created default notification preferences for FID %s", fid)
    return prefs


def update_preferences(db: Session, fid: int, values: dict[str, bool]) -> NotificationPreferences:
    prefs = get_preferences(db, fid) or NotificationPreferences(user_fid=fid)
    for name, value in values.items():
        setattr(prefs, name, value)
    db.add(prefs)
    db.commit()
    db.refresh(prefs)
    logger.info("Updated notification preferences for FID %s", fid)
    return prefs


def filter_fids_by_preference(db: Session, fids: Iterable[int], kind: str) -> list[int]:
    """Keep the FIDs that have ``kind`` notifications enabled. No row means enabled."""
    fids = list(dict.fromkeys(fids))
    if not fids:
        return []
    column = getattr(NotificationPreferences, PREFERENCE_FIELDS[kind])
    disabled = {
        row.user_fid
        for row in db.query(NotificationPreferences.user_fid)
        .filter(NotificationPreferences.user_fid.in_(fids), column.is_(False))
        .all()
    }
    return [fid for fid in fids if fid not in disabled]


# ── Push tokens (webhook) ──────────────────────────────────────────

def store_notification_token(db: Session, fid: int, token: str, url: Optional[str] = None) -> NotificationToken:
    """Make ``token`` the single active token for ``fid``."""
    db.query(NotificationToken).filter(NotificationToken.fid == fid).update({"is_active": False})
    record = db.query(NotificationToken).filter(NotificationToken.token == token).first()
    if record:
        record.fid = fid
        record.url = url or record.url
        record.is_active = True
    else:
        record = NotificationToken(fid=fid, token=token, url=url or DEFAULT_TOKEN_URL, is_active=True)
        db.add(record)
    db.commit()
    logger.info("Stored notification token for FID %s", fid)
    return record


def disable_notification_token(db: Session, token: str) -> int:
    count = db.query(NotificationToken).filter(NotificationToken.token == token).update({"is_active": False})
    db.commit()
    logger.info("Disabled %d notification token(s) %s...", count, token[:10])
    return count


def disable_tokens_for_fid(db: Session, fid: int) -> int:
    count = db.query(NotificationToken).filter(NotificationToken.fid == fid).update({"is_active": False})
    db.commit()
    logger.info("Disabled %d notification token(s) for FID %s", count, fid)
    return count


# ── Builders ───────────────────────────────────────────────────────

def _event_participant_fids(db: Session, event: Event, statuses: Iterable[ParticipantStatus]) -> list[int]:
    rows = (
        db.query(Profile.fid)
        .join(EventParticipant, EventParticipant.user_id == Profile.id)
        .filter(EventParticipant.event_id == event.id, EventParticipant.status.in_(list(statuses)))
        .all()
    )
    return [row.fid for row in rows]


def _game_suffix(event: Event) -> str:
    return f" ({event.game})" if event.game else ""


def event_creation_notification(event: Event, organizer: Profile) -> Optional[tuple[NotificationPayload, dict]]:
    """Announce a public event to the organizer's followers."""
    if event.is_private:
        return None
    payload = create_payload(
        "New Gaming Event!",
        f"{organizer.name} just created: {event.title}{_game_suffix(event)}",
        f"/events/{event.id}",
    )
    return payload, {"following_fid": organizer.fid, "minimum_user_score": MIN_USER_SCORE}


STATUS_CHANGE_COPY = {
    EventStatus.live: ("🔴 Event is Live!", "{title}{game} has started! Join now."),
    EventStatus.completed: ("✅ Event Completed", "{title}{game} has ended. Thanks for participating!"),
    EventStatus.cancelled: ("❌ Event Cancelled", "{title}{game} has been cancelled by the organizer."),
}


def status_change_notification(db: Session, event: Event, new_status: EventStatus) -> Optional[tuple[list[int], NotificationPayload]]:
    copy = STATUS_CHANGE_COPY.get(EventStatus(new_status))
    if copy is None:
        return None
    fids = filter_fids_by_preference(db, _event_participant_fids(db, event, NOTIFIABLE_PARTICIPANT_STATUSES), "events")
    if not fids:
        logger.info("No participants to notify about event %s status change", event.id)
        return None
    title, body = copy
    payload = create_payload(title, body.format(title=event.title, game=_game_suffix(event)), f"/events/{event.id}")
    return fids, payload


def broadcast_notification(
    db: Session,
    event: Event,
    recipient_fids: list[int],
    title: str,
    message: str,
    organizer_name: str,
) -> Optional[tuple[list[int], NotificationPayload]]:
    fids = filter_fids_by_preference(db, recipient_fids, "events")
    if not fids:
        return None
    payload = create_payload(
        f"📢 {title}",
        truncate(f"{organizer_name} ({event.title}): {message}", 128),
        f"/events/{event.id}",
    )
    return fids, payload


def message_notification(
    db: Session,
    chat_id: str,
    participant_fids: list[int],
    sender: Profile,
    content: str,
) -> Optional[tuple[list[int], NotificationPayload]]:
    recipients = [fid for fid in participant_fids if fid != sender.fid]
    fids = filter_fids_by_preference(db, recipients, "messages")
    if not fids:
        return None
    payload = create_payload(f"💬 New message from {sender.name}", truncate(content), f"/messages/{chat_id}")
    return fids, payload


def group_creation_notification(group: Group, creator: Profile) -> Optional[tuple[NotificationPayload, dict]]:
    if group.is_private:
        return None
    payload = create_payload(
        "New Gaming Group!",
        f"{creator.name} just created a public group: {group.name}",
        f"/groups/{group.id}",
    )
    return payload, {"following_fid": creator.fid, "minimum_user_score": MIN_USER_SCORE}


def group_invitation_notification(
    db: Session,
    group: Group,
    inviter: Profile,
    invitee: Profile,
) -> Optional[tuple[list[int], NotificationPayload]]:
    if not filter_fids_by_preference(db, [invitee.fid], "group_invites"):
        return None
    payload = create_payload(
        f"🎮 Group Invitation: {group.name}",
        f'{inviter.name} invited you to join "{group.name}". Tap to accept or decline!',
        f"/groups/{group.id}",
    )
    return [invitee.fid], payload
