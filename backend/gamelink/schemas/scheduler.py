"""Pydantic schemas for the scheduler and admin endpoints."""
from pydantic import BaseModel


class TransitionDetails(BaseModel):
    transitioned_to_live: int
    transitioned_to_completed: int
    failed: int


class SchedulerRunOut(BaseModel):
    success: bool
    processed: int
    details: TransitionDetails
    errors: list[str]


class HealthOut(BaseModel):
    healthy: bool
    message: str


class OrganizerFixOut(BaseModel):
    total_events: int
    fixed: int
    already_fixed: int
    errors: int
    error_details: list[str] = []
