"""History models."""

from pydantic import BaseModel
from typing import List
from datetime import datetime

from .plan import DailyPlan, DayName


DEFAULT_AFFIRMATION = "Keep it up!"


class PlanHistoryEntry(BaseModel):
    """Snapshot of one day's plan and checklist state."""

    date: datetime
    day_name: DayName
    plan: DailyPlan
    completed_checklist: List[bool]
    affirmation: str = DEFAULT_AFFIRMATION


class HistorySummary(BaseModel):
    """Aggregate completion over the recorded history."""

    total_days: int
    tasks_completed: int
    total_tasks: int
    completion_rate: float
