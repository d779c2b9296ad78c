"""Persisted store state and scheduler configuration."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Literal
from datetime import date, datetime

from .plan import DailyPlan, WeeklyPlan, GroceryItem
from .history import PlanHistoryEntry


HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class UserProfile(BaseModel):
    """Free-form profile answers used to build the goals text."""

    age: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    gender: Optional[str] = None
    fitness_goals: Optional[str] = None
    dietary_preferences: Optional[str] = None
    supplements: Optional[str] = None
    has_beard: Optional[bool] = None
    beard_length: Optional[str] = None
    beard_style: Optional[str] = None
    beard_care_preferences: Optional[str] = None
    other_preferences: Optional[str] = None
    additional_info: Optional[str] = None


class SchedulerConfig(BaseModel):
    """Inputs of the regeneration staleness check."""

    auto_regenerate_day: int = Field(0, ge=0, le=6)  # 0 = Sunday
    auto_regenerate_time: str = Field("06:00", pattern=HHMM_PATTERN)
    last_generated: Optional[datetime] = None
    goals: Optional[str] = None
    user_notes: Optional[str] = None


def _today_index() -> int:
    return date.today().weekday()


class StoreState(BaseModel):
    """Everything the store persists."""

    user_profile: UserProfile = Field(default_factory=UserProfile)
    goals: str = ""
    current_plan: Optional[DailyPlan] = None
    completed_checklist: List[bool] = []
    weekly_plan: Optional[WeeklyPlan] = None
    current_day_index: int = Field(default_factory=_today_index, ge=0, le=6)  # Monday = 0
    grocery_list: List[GroceryItem] = []
    last_generated: Optional[datetime] = None
    history: List[PlanHistoryEntry] = []
    weekly_checklist_completion: Dict[str, List[bool]] = {}
    reset_time: Literal["00:00", "06:00"] = "06:00"
    auto_regenerate_day: int = Field(0, ge=0, le=6)
    auto_regenerate_time: str = Field("06:00", pattern=HHMM_PATTERN)
    user_notes: str = ""

    def scheduler_config(self) -> SchedulerConfig:
        """Project the scheduler-relevant fields; blank text counts as absent."""
        return SchedulerConfig(
            auto_regenerate_day=self.auto_regenerate_day,
            auto_regenerate_time=self.auto_regenerate_time,
            last_generated=self.last_generated,
            goals=self.goals if self.goals.strip() else None,
            user_notes=self.user_notes if self.user_notes.strip() else None,
        )
