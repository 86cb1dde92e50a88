"""Pydantic schemas for the event history endpoint."""
from typing import Optional
from pydantic import BaseModel

from gamelink.schemas.common import UTCDatetime
from gamelink.schemas.event import EventOut, ParticipantOut


class HistoryEntry(BaseModel):
    event: EventOut
    participation: ParticipantOut
    participant_count: int


class StatisticsOut(BaseModel):
    total_events: int
    events_attended: int
    events_organized: int
    events_won: int
    average_score: int
    average_placement: int
    attendance_rate: int
    favorite_game: str
    total_score: float
    best_placement: int
    current_streak: int
    longest_streak: int


class ScorePoint(BaseModel):
    date: UTCDatetime
    score: float
    event: str


class PlacementPoint(BaseModel):
    date: UTCDatetime
    placement: int
    event: str


class MonthlyAttendance(BaseModel):
    month: str
    registered: int
    attended: int


class GamePerformance(BaseModel):
    game: str
    average_score: int
    average_placement: int
    events: int


class TrendsOut(BaseModel):
    score_history: list[ScorePoint]
    placement_history: list[PlacementPoint]
    attendance_history: list[MonthlyAttendance]
    game_performance: list[GamePerformance]


class AchievementOut(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    rarity: str
    category: str
    points: int
    unlocked_at: Optional[UTCDatetime] = None


class AchievementsOut(BaseModel):
    achievements: list[AchievementOut]
    total_points: int
    rarity_breakdown: dict[str, int]
    category_breakdown: dict[str, int]


class HistoryOut(BaseModel):
    events: list[HistoryEntry]
    statistics: StatisticsOut
    trends: TrendsOut
    achievements: AchievementsOut
