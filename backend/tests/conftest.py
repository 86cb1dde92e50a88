"""Pytest fixtures: file-backed SQLite database and a recording Neynar client."""
import os
from datetime import datetime, timezone, timedelta

# The app engine is created at import time; keep it off Postgres
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from gamelink.clients.deps import get_neynar_client
from gamelink.clients.neynar import FarcasterUser
from gamelink.database import Base, get_db
from gamelink.main import app
from gamelink.services.farcaster_service import mutual_followers_cache

# Import all models so they register with Base.metadata
from gamelink.models.profile import Profile                     # noqa: F401
from gamelink.models.group import Group, GroupMember, GroupInvitation  # noqa: F401
from gamelink.models.chat import Chat, ChatParticipant, Message  # noqa: F401
from gamelink.models.event import Event                         # noqa: F401
from gamelink.models.participant import EventParticipant         # noqa: F401
from gamelink.models.notification import NotificationPreferences, NotificationToken  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


class FakeNeynarClient:
    """Stands in for NeynarClient; records published notifications."""

    def __init__(self):
        self.published = []
        self.users: dict[int, FarcasterUser] = {}
        self.followers: dict[int, list[int]] = {}
        self.following: dict[int, list[int]] = {}
        self.graph_calls = 0
        self.fail_publish = False

    def add_user(self, fid: int, username: str = None) -> FarcasterUser:
        username = username or f"user{fid}"
        user = FarcasterUser(fid=fid, username=username, display_name=username.title())
        self.users[fid] = user
        return user

    def fetch_bulk_users(self, fids):
        return [self.users[f] for f in fids if f in self.users]

    def fetch_user(self, fid):
        return self.users.get(fid)

    def fetch_followers(self, fid, max_results=None):
        self.graph_calls += 1
        return list(self.followers.get(fid, []))

    def fetch_following(self, fid, max_results=None):
        self.graph_calls += 1
        return list(self.following.get(fid, []))

    def publish_frame_notifications(self, target_fids, notification, filters=None):
        if self.fail_publish:
            raise RuntimeError("publish failed")
        self.published.append({"target_fids": list(target_fids), "notification": notification, "filters": filters})
        return {"notification_deliveries": []}


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def neynar():
    return FakeNeynarClient()


@pytest.fixture(scope="function")
def client(db_engine, neynar):
    """FastAPI TestClient with the database and Neynar dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_neynar_client] = lambda: neynar
    mutual_followers_cache.invalidate()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create records via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_profile(client: TestClient, fid: int, username: str = None) -> dict:
    """POST /api/profiles and return response JSON."""
    resp = client.post("/api/profiles/", json={
        "fid": fid,
        "username": username or f"gamer{fid}",
        "display_name": (username or f"Gamer {fid}").title(),
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


def future(minutes: int = 24 * 60) -> str:
    return (datetime.now(timezone.utc) + timedelta(minutes=minutes)).isoformat()


def event_payload(fid: int, **overrides) -> dict:
    payload = {
        "fid": fid,
        "title": "Friday Night Valorant",
        "game": "Valorant",
        "start_time": future(),
        "timezone": "UTC",
        "max_participants": 8,
        "min_participants": 2,
        "location_type": "online",
        "connection_details": "discord.gg/gamelink",
    }
    payload.update(overrides)
    return payload


def create_test_event(client: TestClient, fid: int, **overrides) -> dict:
    """POST /api/events and return response JSON."""
    resp = client.post("/api/events/", json=event_payload(fid, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


def rsvp(client: TestClient, event_id: str, fid: int, role: str = "participant"):
    return client.post(f"/api/events/{event_id}/rsvp", json={"fid": fid, "role": role})


def create_test_group(client: TestClient, fid: int, name: str = "Weekend Raiders", **overrides) -> dict:
    """POST /api/groups and return response JSON."""
    resp = client.post("/api/groups/", json={"fid": fid, "name": name, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()
