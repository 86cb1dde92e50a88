"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Creates all tables for GameLink:
profiles, groups, group_members, group_invitations, chats,
chat_participants, messages, events, event_participants,
notification_preferences, notification_tokens.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EVENT_STATUS = sa.Enum("draft", "upcoming", "live", "completed", "cancelled", name="eventstatus")
EVENT_TYPE = sa.Enum("casual", "tournament", "practice", "scrimmage", "ranked", name="eventtype")
SKILL_LEVEL = sa.Enum("beginner", "intermediate", "advanced", "expert", "any", name="skilllevel")
LOCATION_TYPE = sa.Enum("online", "in_person", "hybrid", name="locationtype")
PARTICIPANT_ROLE = sa.Enum("organizer", "moderator", "participant", "spectator", name="participantrole")
PARTICIPANT_STATUS = sa.Enum(
    "pending_approval", "registered", "confirmed", "attended", "no_show", "cancelled", name="participantstatus"
)
CHAT_TYPE = sa.Enum("direct", "group", name="chattype")
MESSAGE_TYPE = sa.Enum("text", "image", "file", "system", name="messagetype")
GROUP_ROLE = sa.Enum("admin", "moderator", "member", name="grouprole")
MEMBERSHIP_STATUS = sa.Enum("active", "inactive", "banned", "pending", name="membershipstatus")
INVITATION_STATUS = sa.Enum("pending", "accepted", "declined", "expired", name="invitationstatus")


def upgrade() -> None:
    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("fid", sa.Integer, nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(150), nullable=True),
        sa.Column("pfp_url", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_fid", "profiles", ["fid"], unique=True)

    # --- groups ---
    op.create_table(
        "groups",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("max_members", sa.Integer, nullable=False, server_default="50"),
        sa.Column("allow_member_invites", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("require_admin_approval", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("primary_game", sa.String(150), nullable=True),
        sa.Column("gaming_platform", sa.String(50), nullable=True),
        sa.Column("skill_level", SKILL_LEVEL, nullable=False, server_default="any"),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- group_members ---
    op.create_table(
        "group_members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("role", GROUP_ROLE, nullable=False, server_default="member"),
        sa.Column("status", MEMBERSHIP_STATUS, nullable=False, server_default="active"),
        sa.Column("invited_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )
    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])
    op.create_index("ix_group_members_user_id", "group_members", ["user_id"])

    # --- group_invitations ---
    op.create_table(
        "group_invitations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("inviter_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("invitee_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("status", INVITATION_STATUS, nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_group_invitations_group_id", "group_invitations", ["group_id"])
    op.create_index("ix_group_invitations_invitee_id", "group_invitations", ["invitee_id"])

    # --- chats ---
    op.create_table(
        "chats",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("type", CHAT_TYPE, nullable=False, server_default="group"),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_message_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- chat_participants ---
    op.create_table(
        "chat_participants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("chat_id", sa.String(36), sa.ForeignKey("chats.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("fid", sa.Integer, nullable=True),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_chat_participants_chat_id", "chat_participants", ["chat_id"])
    op.create_index("ix_chat_participants_user_id", "chat_participants", ["user_id"])

    # --- messages ---
    op.create_table(
        "messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("chat_id", sa.String(36), sa.ForeignKey("chats.id"), nullable=False),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("sender_fid", sa.Integer, nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("message_type", MESSAGE_TYPE, nullable=False, server_default="text"),
        sa.Column("reply_to", sa.String(36), sa.ForeignKey("messages.id"), nullable=True),
        sa.Column("is_edited", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_messages_chat_id", "messages", ["chat_id"])
    op.create_index("ix_messages_created_at", "messages", ["created_at"])

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("game", sa.String(150), nullable=True),
        sa.Column("gaming_platform", sa.String(50), nullable=False, server_default="PC"),
        sa.Column("event_type", EVENT_TYPE, nullable=False, server_default="casual"),
        sa.Column("skill_level", SKILL_LEVEL, nullable=False, server_default="any"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("max_participants", sa.Integer, nullable=False, server_default="8"),
        sa.Column("min_participants", sa.Integer, nullable=False, server_default="2"),
        sa.Column("require_approval", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("location_type", LOCATION_TYPE, nullable=False, server_default="online"),
        sa.Column("connection_details", sa.Text, nullable=True),
        sa.Column("physical_location", sa.String(500), nullable=True),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("allow_spectators", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", EVENT_STATUS, nullable=False, server_default="upcoming"),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("group_id", sa.String(36), sa.ForeignKey("groups.id"), nullable=True),
        sa.Column("chat_id", sa.String(36), sa.ForeignKey("chats.id"), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_events_start_time", "events", ["start_time"])
    op.create_index("ix_events_status", "events", ["status"])

    # --- event_participants ---
    op.create_table(
        "event_participants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("role", PARTICIPANT_ROLE, nullable=False, server_default="participant"),
        sa.Column("status", PARTICIPANT_STATUS, nullable=False, server_default="registered"),
        sa.Column("registration_message", sa.Text, nullable=True),
        sa.Column("approved_by", sa.String(36), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("placement", sa.Integer, nullable=True),
        sa.Column("score", sa.Float, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )
    op.create_index("ix_event_participants_event_id", "event_participants", ["event_id"])
    op.create_index("ix_event_participants_user_id", "event_participants", ["user_id"])

    # --- notification_preferences ---
    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_fid", sa.Integer, nullable=False),
        sa.Column("messages_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("group_invites_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("events_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("groups_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notification_preferences_user_fid", "notification_preferences", ["user_fid"], unique=True)

    # --- notification_tokens ---
    op.create_table(
        "notification_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("fid", sa.Integer, nullable=False),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notification_tokens_fid", "notification_tokens", ["fid"])


def downgrade() -> None:
    op.drop_table("notification_tokens")
    op.drop_table("notification_preferences")
    op.drop_table("event_participants")
    op.drop_table("events")
    op.drop_table("messages")
    op.drop_table("chat_participants")
    op.drop_table("chats")
    op.drop_table("group_invitations")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("profiles")
    bind = op.get_bind()
    for enum_type in (
        INVITATION_STATUS, MEMBERSHIP_STATUS, GROUP_ROLE, MESSAGE_TYPE, CHAT_TYPE,
        PARTICIPANT_STATUS, PARTICIPANT_ROLE, LOCATION_TYPE, SKILL_LEVEL, EVENT_TYPE, EVENT_STATUS,
    ):
        enum_type.drop(bind, checkfirst=True)
