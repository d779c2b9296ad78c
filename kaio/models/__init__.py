"""Data models for Kaio Planner."""

from .plan import (
    DAY_NAMES,
    DayName,
    Meal,
    DailyPlan,
    WeeklyPlan,
    GroceryItem,
    GroceryListEntry,
    WeeklyPlanResponse,
)
from .history import PlanHistoryEntry, HistorySummary
from .state import UserProfile, SchedulerConfig, StoreState

__all__ = [
    "DAY_NAMES",
    "DayName",
    "Meal",
    "DailyPlan",
    "WeeklyPlan",
    "GroceryItem",
    "GroceryListEntry",
    "WeeklyPlanResponse",
    "PlanHistoryEntry",
    "HistorySummary",
    "UserProfile",
    "SchedulerConfig",
    "StoreState",
]
