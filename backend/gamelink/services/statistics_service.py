"""Player history: statistics, performance trends and achievements.

All calculations work on a list of ``EventParticipant`` rows with their
``event`` loaded; nothing here writes to the database.
"""
import logging
import math
from collections import Counter, OrderedDict
from typing import Any, NamedTuple, Optional

from sqlalchemy.orm import Session, joinedload

from gamelink.models.participant import EventParticipant, ParticipantRole, ParticipantStatus
from gamelink.services.profile_service import require_profile
from gamelink.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

COUNTED_STATUSES = (ParticipantStatus.registered, ParticipantStatus.confirmed, ParticipantStatus.attended)


class AchievementDefinition(NamedTuple):
    title: str
    description: str
    icon: str
    rarity: str
    category: str
    points: int


ACHIEVEMENTS: "OrderedDict[str, AchievementDefinition]" = OrderedDict([
    ("first_event", AchievementDefinition("Getting Started", "Participated in your first event", "🎯", "common", "participation", 10)),
    ("five_events", AchievementDefinition("Regular Player", "Participated in 5 events", "🎮", "common", "participation", 25)),
    ("ten_events", AchievementDefinition("Dedicated Gamer", "Participated in 10 events", "🏅", "rare", "participation", 50)),
    ("first_win", AchievementDefinition("Victory!", "Won your first event", "👑", "epic", "performance", 100)),
    ("three_wins", AchievementDefinition("Champion", "Won 3 events", "🏆", "epic", "performance", 250)),
    ("high_scorer", AchievementDefinition("High Scorer", "Achieved an average score of 100+", "⭐", "epic", "performance", 150)),
    ("perfect_score", AchievementDefinition("Perfectionist", "Achieved a perfect score in an event", "💯", "legendary", "performance", 200)),
    ("perfect_attendance", AchievementDefinition(
        "Perfect Attendance", "Attended every event you registered for (5+ events)", "🎖️", "rare", "social", 75)),
    ("streak_master", AchievementDefinition("Streak Master", "Attended 5 consecutive events", "🔥", "legendary", "social", 300)),
    ("organizer", AchievementDefinition("Event Organizer", "Organized your first event", "📋", "rare", "organizing", 100)),
    ("prolific_organizer", AchievementDefinition("Prolific Organizer", "Organized 5 events", "🎪", "epic", "organizing", 300)),
    ("community_builder", AchievementDefinition("Community Builder", "Organized 10 events", "🏗️", "legendary", "organizing", 500)),
])


def _round(value: float) -> int:
    # half-up, not banker's rounding
    return int(math.floor(value + 0.5))


def _mean(values: list[float]) -> int:
    return _round(sum(values) / len(values)) if values else 0


def _chronological(participations: list[EventParticipant]) -> list[EventParticipant]:
    return sorted(participations, key=lambda p: as_utc(p.registered_at) or utcnow())


def calculate_statistics(participations: list[EventParticipant]) -> dict[str, Any]:
    total = len(participations)
    attended = [p for p in participations if p.status == ParticipantStatus.attended]
    scores = [p.score for p in participations if p.score is not None]
    placements = [p.placement for p in participations if p.placement is not None]

    games = Counter(p.event.game for p in participations if p.event is not None and p.event.game)
    favorite_game = games.most_common(1)[0][0] if games else ""

    longest = running = 0
    for p in _chronological(participations):
        running = running + 1 if p.status == ParticipantStatus.attended else 0
        longest = max(longest, running)
    current = 0
    for p in reversed(_chronological(participations)):
        if p.status != ParticipantStatus.attended:
            break
        current += 1

    return {
        "total_events": total,
        "events_attended": len(attended),
        "events_organized": sum(1 for p in participations if p.role == ParticipantRole.organizer),
        "events_won": sum(1 for p in participations if p.placement == 1),
        "average_score": _mean(scores),
        "average_placement": _mean(placements),
        "attendance_rate": _round(len(attended) / total * 100) if total else 0,
        "favorite_game": favorite_game,
        "total_score": sum(scores),
        "best_placement": min(placements) if placements else 0,
        "current_streak": current,
        "longest_streak": longest,
    }


def calculate_trends(participations: list[EventParticipant]) -> dict[str, Any]:
    with_event = sorted(
        (p for p in participations if p.event is not None),
        key=lambda p: as_utc(p.event.start_time),
    )
    score_history = [
        {"date": as_utc(p.event.start_time), "score": p.score, "event": p.event.title}
        for p in with_event if p.score is not None
    ]
    placement_history = [
        {"date": as_utc(p.event.start_time), "placement": p.placement, "event": p.event.title}
        for p in with_event if p.placement is not None
    ]

    months: "OrderedDict[str, dict[str, int]]" = OrderedDict()
    games: "OrderedDict[str, dict[str, list]]" = OrderedDict()
    for p in with_event:
        month = as_utc(p.event.start_time).strftime("%Y-%m")
        bucket = months.setdefault(month, {"registered": 0, "attended": 0})
        bucket["registered"] += 1
        if p.status == ParticipantStatus.attended:
            bucket["attended"] += 1
        if p.event.game:
            stats = games.setdefault(p.event.game, {"scores": [], "placements": [], "events": []})
            stats["events"].append(p.event_id)
            if p.score is not None:
                stats["scores"].append(p.score)
            if p.placement is not None:
                stats["placements"].append(p.placement)

    return {
        "score_history": score_history,
        "placement_history": placement_history,
        "attendance_history": [{"month": m, **counts} for m, counts in months.items()],
        "game_performance": [
            {
                "game": game,
                "average_score": _mean(stats["scores"]),
                "average_placement": _mean(stats["placements"]),
                "events": len(stats["events"]),
            }
            for game, stats in games.items()
        ],
    }


def unlocked_achievement_ids(participations: list[EventParticipant], statistics: dict[str, Any]) -> list[str]:
    total = statistics["total_events"]
    won = statistics["events_won"]
    organized = statistics["events_organized"]
    checks = {
        "first_event": total >= 1,
        "five_events": total >= 5,
        "ten_events": total >= 10,
        "first_win": won >= 1,
        "three_wins": won >= 3,
        "high_scorer": statistics["average_score"] >= 100,
        "perfect_score": any(p.score == 100 or p.placement == 1 for p in participations),
        "perfect_attendance": statistics["attendance_rate"] == 100 and total >= 5,
        "streak_master": statistics["longest_streak"] >= 5,
        "organizer": organized >= 1,
        "prolific_organizer": organized >= 5,
        "community_builder": organized >= 10,
    }
    return [key for key in ACHIEVEMENTS if checks[key]]


def calculate_achievements(participations: list[EventParticipant], statistics: dict[str, Any]) -> dict[str, Any]:
    now = utcnow()
    chronological = _chronological(participations)
    first_registered = as_utc(chronological[0].registered_at) if chronological else None

    achievements = []
    for key in unlocked_achievement_ids(participations, statistics):
        definition = ACHIEVEMENTS[key]
        unlocked_at = (first_registered or now) if key == "first_event" else now
        achievements.append({"id": key, "unlocked_at": unlocked_at, **definition._asdict()})

    return {
        "achievements": achievements,
        "total_points": sum(a["points"] for a in achievements),
        "rarity_breakdown": dict(Counter(a["rarity"] for a in achievements)),
        "category_breakdown": dict(Counter(a["category"] for a in achievements)),
    }


def get_history(db: Session, fid: Optional[int]) -> dict[str, Any]:
    """The caller's participations, newest first, with derived statistics."""
    profile = require_profile(db, fid)
    participations = (
        db.query(EventParticipant)
        .options(joinedload(EventParticipant.event))
        .filter(EventParticipant.user_id == profile.id)
        .order_by(EventParticipant.registered_at.desc())
        .all()
    )

    event_ids = [p.event_id for p in participations]
    counts: Counter = Counter()
    if event_ids:
        rows = (
            db.query(EventParticipant.event_id)
            .filter(EventParticipant.event_id.in_(event_ids), EventParticipant.status.in_(COUNTED_STATUSES))
            .all()
        )
        counts.update(row.event_id for row in rows)

    statistics = calculate_statistics(participations)
    logger.info("Built event history for FID %s (%d participations)", fid, len(participations))
    return {
        "events": [
            {"event": p.event, "participation": p, "participant_count": counts.get(p.event_id, 0)}
            for p in participations
        ],
        "statistics": statistics,
        "trends": calculate_trends(participations),
        "achievements": calculate_achievements(participations, statistics),
    }
