"""Tests for cron-driven status transitions, the cron secret and the organizer back-fill."""
from datetime import timedelta

from gamelink.config import settings
from gamelink.models.event import Event, EventStatus
from gamelink.models.participant import EventParticipant, ParticipantRole, ParticipantStatus
from gamelink.services import scheduler
from gamelink.timeutils import utcnow
from tests.conftest import create_test_event, create_test_profile, future, rsvp


def _event_with_player(client):
    create_test_profile(client, 100)
    create_test_profile(client, 200)
    event = create_test_event(client, 100, start_time=future(10), end_time=future(70))
    rsvp(client, event["id"], 200)
    return event


class TestProcessTransitions:

    def test_starts_due_events(self, client, db):
        event = _event_with_player(client)
        row = db.query(EventParticipant).filter(EventParticipant.role == ParticipantRole.participant).one()
        row.status = ParticipantStatus.registered
        db.commit()

        result = scheduler.process_scheduled_status_transitions(db, now=utcnow() + timedelta(minutes=15))
        assert result["success"] is True
        assert result["details"]["transitioned_to_live"] == 1
        assert result["processed"] == 1

        db.expire_all()
        assert db.get(Event, event["id"]).status == EventStatus.live
        assert db.get(EventParticipant, row.id).status == ParticipantStatus.confirmed

    def test_respects_buffer(self, client, db):
        _event_with_player(client)
        result = scheduler.process_scheduled_status_transitions(db, now=utcnow() + timedelta(minutes=11))
        assert result["details"]["transitioned_to_live"] == 0

    def test_completes_ended_events_and_marks_no_shows(self, client, db):
        event = _event_with_player(client)
        now = utcnow()
        record = db.get(Event, event["id"])
        record.status = EventStatus.live
        record.start_time = now - timedelta(hours=2)
        record.end_time = now - timedelta(hours=1)
        for p in db.query(EventParticipant).filter(EventParticipant.event_id == event["id"]):
            p.last_updated_at = now - timedelta(hours=2)
            if p.role == ParticipantRole.organizer:
                p.status = ParticipantStatus.attended
        db.commit()

        result = scheduler.process_scheduled_status_transitions(db, now=now)
        assert result["details"]["transitioned_to_completed"] == 1

        db.expire_all()
        assert db.get(Event, event["id"]).status == EventStatus.completed
        statuses = {p.role: p.status for p in db.query(EventParticipant).all()}
        assert statuses[ParticipantRole.organizer] == ParticipantStatus.attended
        assert statuses[ParticipantRole.participant] == ParticipantStatus.no_show

    def test_recently_updated_rows_are_not_no_shows(self, client, db):
        event = _event_with_player(client)
        now = utcnow()
        record = db.get(Event, event["id"])
        record.status = EventStatus.live
        record.end_time = now - timedelta(hours=1)
        db.commit()

        scheduler.process_scheduled_status_transitions(db, now=now)
        db.expire_all()
        assert all(p.status == ParticipantStatus.confirmed for p in db.query(EventParticipant).all())

    def test_live_events_without_end_stay_live(self, client, db):
        event = _event_with_player(client)
        record = db.get(Event, event["id"])
        record.status = EventStatus.live
        record.end_time = None
        db.commit()
        result = scheduler.process_scheduled_status_transitions(db, now=utcnow() + timedelta(days=2))
        assert result["processed"] == 0

    def test_failure_is_isolated(self, client, db, monkeypatch):
        first = _event_with_player(client)
        second = create_test_event(client, 100, start_time=future(20))

        real_start = scheduler._start_event

        def flaky_start(session, event_id):
            if event_id == first["id"]:
                raise RuntimeError("boom")
            return real_start(session, event_id)

        monkeypatch.setattr(scheduler, "_start_event", flaky_start)
        result = scheduler.process_scheduled_status_transitions(db, now=utcnow() + timedelta(minutes=30))
        assert result["success"] is False
        assert result["details"] == {"transitioned_to_live": 1, "transitioned_to_completed": 0, "failed": 1}
        assert "boom" in result["errors"][0]
        db.expire_all()
        assert db.get(Event, second["id"]).status == EventStatus.live


class TestSchedulerEndpoints:

    def test_run(self, client):
        resp = client.get("/api/scheduler/status-transitions")
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "processed": 0,
            "details": {"transitioned_to_live": 0, "transitioned_to_completed": 0, "failed": 0},
            "errors": [],
        }

    def test_partial_failure_returns_207(self, client, monkeypatch):
        def failing(db, now=None):
            return {
                "success": False,
                "processed": 1,
                "details": {"transitioned_to_live": 0, "transitioned_to_completed": 0, "failed": 1},
                "errors": ["Failed to start event x: boom"],
            }

        monkeypatch.setattr(scheduler, "process_scheduled_status_transitions", failing)
        resp = client.get("/api/scheduler/status-transitions")
        assert resp.status_code == 207
        assert resp.json()["errors"] == ["Failed to start event x: boom"]

    def test_secret_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
        assert client.get("/api/scheduler/status-transitions").status_code == 401
        resp = client.get("/api/scheduler/status-transitions", headers={"Authorization": "Bearer wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized"
        resp = client.get("/api/scheduler/status-transitions", headers={"Authorization": "Bearer s3cret"})
        assert resp.status_code == 200

    def test_health(self, client):
        resp = client.post("/api/scheduler/status-transitions")
        assert resp.status_code == 200
        assert resp.json()["healthy"] is True


class TestFixOrganizers:

    def test_backfills_missing_rows(self, client, db):
        event = _event_with_player(client)
        db.query(EventParticipant).filter(EventParticipant.role == ParticipantRole.organizer).delete()
        db.commit()
        create_test_event(client, 100)

        resp = client.post("/api/admin/fix-organizers")
        assert resp.status_code == 200
        assert resp.json() == {"total_events": 2, "fixed": 1, "already_fixed": 1, "errors": 0, "error_details": []}

        db.expire_all()
        organizer = (
            db.query(EventParticipant)
            .filter(EventParticipant.event_id == event["id"], EventParticipant.role == ParticipantRole.organizer)
            .one()
        )
        assert organizer.status == ParticipantStatus.confirmed

    def test_admin_guarded_by_cron_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
        assert client.post("/api/admin/fix-organizers").status_code == 401
