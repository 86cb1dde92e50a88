"""Tests for player statistics, trends, achievements and the history endpoint."""
from datetime import datetime, timezone, timedelta
from types import SimpleNamespace

from gamelink.models.participant import ParticipantRole, ParticipantStatus
from gamelink.services.statistics_service import (
    ACHIEVEMENTS,
    calculate_achievements,
    calculate_statistics,
    calculate_trends,
    unlocked_achievement_ids,
)
from tests.conftest import create_test_event, create_test_profile, rsvp

BASE = datetime(2026, 1, 10, 20, 0, tzinfo=timezone.utc)


def _participation(day, status=ParticipantStatus.attended, role=ParticipantRole.participant,
                   score=None, placement=None, game="Valorant", title=None):
    when = BASE + timedelta(days=day)
    event = SimpleNamespace(start_time=when, game=game, title=title or f"Event {day}")
    return SimpleNamespace(
        event_id=f"evt-{day}",
        event=event,
        status=status,
        role=role,
        score=score,
        placement=placement,
        registered_at=when - timedelta(days=1),
    )


class TestStatistics:

    def test_empty_history(self):
        stats = calculate_statistics([])
        assert stats["total_events"] == 0
        assert stats["attendance_rate"] == 0
        assert stats["favorite_game"] == ""
        assert stats["best_placement"] == 0

    def test_basic_counts(self):
        rows = [
            _participation(0, score=80, placement=2),
            _participation(1, score=95, placement=1, game="Chess"),
            _participation(2, status=ParticipantStatus.no_show),
            _participation(3, role=ParticipantRole.organizer, status=ParticipantStatus.confirmed),
        ]
        stats = calculate_statistics(rows)
        assert stats["total_events"] == 4
        assert stats["events_attended"] == 2
        assert stats["events_organized"] == 1
        assert stats["events_won"] == 1
        assert stats["average_score"] == 88
        assert stats["average_placement"] == 2
        assert stats["attendance_rate"] == 50
        assert stats["favorite_game"] == "Valorant"
        assert stats["total_score"] == 175
        assert stats["best_placement"] == 1

    def test_rounding_is_half_up(self):
        rows = [_participation(0, score=2), _participation(1, score=3)]
        assert calculate_statistics(rows)["average_score"] == 3

    def test_streaks(self):
        rows = [
            _participation(0),
            _participation(1),
            _participation(2),
            _participation(3, status=ParticipantStatus.no_show),
            _participation(4),
            _participation(5),
        ]
        stats = calculate_statistics(list(reversed(rows)))
        assert stats["longest_streak"] == 3
        assert stats["current_streak"] == 2

    def test_current_streak_broken_by_latest(self):
        rows = [_participation(0), _participation(1, status=ParticipantStatus.no_show)]
        assert calculate_statistics(rows)["current_streak"] == 0


class TestTrends:

    def test_histories_sorted_by_event_start(self):
        rows = [_participation(5, score=10, placement=3), _participation(0, score=20)]
        trends = calculate_trends(rows)
        assert [p["score"] for p in trends["score_history"]] == [20, 10]
        assert [p["placement"] for p in trends["placement_history"]] == [3]

    def test_monthly_attendance(self):
        rows = [
            _participation(0),
            _participation(1, status=ParticipantStatus.no_show),
            _participation(40),
        ]
        trends = calculate_trends(rows)
        assert trends["attendance_history"] == [
            {"month": "2026-01", "registered": 2, "attended": 1},
            {"month": "2026-02", "registered": 1, "attended": 1},
        ]

    def test_game_performance(self):
        rows = [
            _participation(0, score=50, placement=4, game="Chess"),
            _participation(1, score=71, placement=1, game="Chess"),
            _participation(2, game="Valorant"),
        ]
        games = {g["game"]: g for g in calculate_trends(rows)["game_performance"]}
        assert games["Chess"] == {"game": "Chess", "average_score": 61, "average_placement": 3, "events": 2}
        assert games["Valorant"]["events"] == 1
        assert games["Valorant"]["average_score"] == 0


class TestAchievements:

    def test_catalogue(self):
        assert len(ACHIEVEMENTS) == 12
        assert ACHIEVEMENTS["community_builder"].points == 500
        assert ACHIEVEMENTS["first_event"].points == 10

    def test_unlocks(self):
        rows = [_participation(day, placement=1 if day < 3 else None) for day in range(5)]
        stats = calculate_statistics(rows)
        unlocked = unlocked_achievement_ids(rows, stats)
        assert unlocked == [
            "first_event", "five_events", "first_win", "three_wins",
            "perfect_score", "perfect_attendance", "streak_master",
        ]

    def test_organizer_achievements(self):
        rows = [_participation(day, role=ParticipantRole.organizer, status=ParticipantStatus.confirmed) for day in range(5)]
        unlocked = unlocked_achievement_ids(rows, calculate_statistics(rows))
        assert "organizer" in unlocked
        assert "prolific_organizer" in unlocked
        assert "community_builder" not in unlocked

    def test_summary(self):
        rows = [_participation(0, score=100)]
        stats = calculate_statistics(rows)
        result = calculate_achievements(rows, stats)
        ids = [a["id"] for a in result["achievements"]]
        assert ids == ["first_event", "high_scorer", "perfect_score"]
        assert result["total_points"] == 10 + 150 + 200
        assert result["rarity_breakdown"] == {"common": 1, "epic": 1, "legendary": 1}
        assert result["category_breakdown"] == {"participation": 1, "performance": 2}
        assert result["achievements"][0]["unlocked_at"] == rows[0].registered_at

    def test_nothing_unlocked(self):
        result = calculate_achievements([], calculate_statistics([]))
        assert result == {"achievements": [], "total_points": 0, "rarity_breakdown": {}, "category_breakdown": {}}


class TestHistoryEndpoint:

    def test_history(self, client):
        create_test_profile(client, 100)
        create_test_profile(client, 200)
        event = create_test_event(client, 100, title="Cup Night")
        rsvp(client, event["id"], 200)

        resp = client.get("/api/events/history", params={"fid": 200})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert len(data["events"]) == 1
        entry = data["events"][0]
        assert entry["event"]["title"] == "Cup Night"
        assert entry["participation"]["status"] == "confirmed"
        assert entry["participant_count"] == 2
        assert data["statistics"]["total_events"] == 1
        assert [a["id"] for a in data["achievements"]["achievements"]] == ["first_event"]

    def test_organizer_history(self, client):
        create_test_profile(client, 100)
        create_test_event(client, 100)
        data = client.get("/api/events/history", params={"fid": 100}).json()
        assert data["statistics"]["events_organized"] == 1
        assert "organizer" in [a["id"] for a in data["achievements"]["achievements"]]

    def test_requires_fid(self, client):
        assert client.get("/api/events/history").status_code == 401
