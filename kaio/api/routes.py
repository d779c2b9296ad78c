"""API routes over the plan store."""

import logging
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kaio.config import get_settings
from kaio.db.storage import JsonFileStorage
from kaio.errors import (
    ConfigurationError,
    GenerationInProgress,
    PlanGenerationError,
)
from kaio.models.plan import DailyPlan, GroceryItem, WeeklyPlan
from kaio.models.history import HistorySummary, PlanHistoryEntry
from kaio.models.state import StoreState, UserProfile
from kaio.store import PlanStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Plan"])


@lru_cache()
def get_store() -> PlanStore:
    """Get the process-wide store backed by the configured storage file."""
    return PlanStore(storage=JsonFileStorage(get_settings().storage_path))


class GoalsRequest(BaseModel):
    """Goals and notes used for plan generation."""
    goals: Optional[str] = None
    user_notes: Optional[str] = None


class SettingsRequest(BaseModel):
    """Regeneration schedule and daily reset settings."""
    auto_regenerate_day: Optional[int] = None
    auto_regenerate_time: Optional[str] = None
    reset_time: Optional[str] = None


class GroceryUpdateRequest(BaseModel):
    """Editable grocery item fields."""
    name: Optional[str] = None
    category: Optional[str] = None


class DayView(BaseModel):
    """The currently viewed day of the weekly plan."""
    day_index: int
    day_name: str
    plan: Optional[DailyPlan] = None
    completed_checklist: List[bool] = []


class HistoryResponse(BaseModel):
    """History entries, newest first, with overall stats."""
    entries: List[PlanHistoryEntry]
    summary: HistorySummary


class CompletionResponse(BaseModel):
    """Completion of one day after a toggle."""
    day_name: str
    completed_checklist: List[bool] = Field(default_factory=list)


def _generation_http_error(error: PlanGenerationError) -> HTTPException:
    # user_message carries status and body for transport errors, a generic hint otherwise
    status_code = 503 if isinstance(error, ConfigurationError) else 502
    return HTTPException(status_code=status_code, detail=error.user_message)


def _day_view(store: PlanStore) -> DayView:
    day_name, plan, completion = store.current_day()
    return DayView(
        day_index=store.state.current_day_index,
        day_name=day_name,
        plan=plan,
        completed_checklist=completion,
    )


@router.get("/state", response_model=StoreState)
async def get_state(store: PlanStore = Depends(get_store)):
    """Full stored state."""
    return store.state


@router.put("/profile", response_model=UserProfile)
async def update_profile(profile: UserProfile, store: PlanStore = Depends(get_store)):
    store.set_user_profile(profile)
    return store.state.user_profile


@router.put("/goals", response_model=GoalsRequest)
async def update_goals(request: GoalsRequest, store: PlanStore = Depends(get_store)):
    if request.goals is not None:
        store.set_goals(request.goals)
    if request.user_notes is not None:
        store.set_user_notes(request.user_notes)
    return GoalsRequest(goals=store.state.goals, user_notes=store.state.user_notes)


@router.put("/settings", response_model=SettingsRequest)
async def update_settings(request: SettingsRequest, store: PlanStore = Depends(get_store)):
    try:
        if request.auto_regenerate_day is not None:
            store.set_auto_regenerate_day(request.auto_regenerate_day)
        if request.auto_regenerate_time is not None:
            store.set_auto_regenerate_time(request.auto_regenerate_time)
        if request.reset_time is not None:
            store.set_reset_time(request.reset_time)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return SettingsRequest(
        auto_regenerate_day=store.state.auto_regenerate_day,
        auto_regenerate_time=store.state.auto_regenerate_time,
        reset_time=store.state.reset_time,
    )


@router.post("/plan/weekly", response_model=WeeklyPlan)
async def generate_weekly_plan(request: GoalsRequest, store: PlanStore = Depends(get_store)):
    """
    Generate a new weekly plan and grocery list.

    Replaces the current week, resets checklist completion and points the
    view at today.
    """
    try:
        return await store.generate_weekly_plan(request.goals, request.user_notes)
    except GenerationInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PlanGenerationError as e:
        logger.error("Weekly plan generation failed: %s", e)
        raise _generation_http_error(e)


@router.post("/plan/daily", response_model=DailyPlan)
async def generate_daily_plan(request: GoalsRequest, store: PlanStore = Depends(get_store)):
    try:
        return await store.generate_daily_plan(request.goals)
    except GenerationInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PlanGenerationError as e:
        logger.error("Daily plan generation failed: %s", e)
        raise _generation_http_error(e)


@router.get("/plan/today", response_model=DayView)
async def get_current_day(store: PlanStore = Depends(get_store)):
    return _day_view(store)


@router.post("/checklist/{day_name}/{index}/toggle", response_model=CompletionResponse)
async def toggle_checklist_item(day_name: str, index: int, store: PlanStore = Depends(get_store)):
    try:
        store.toggle_checklist_item(day_name, index)
    except (KeyError, IndexError) as e:
        raise HTTPException(status_code=404, detail=f"No checklist item {index} for {day_name}: {e}")
    return CompletionResponse(
        day_name=day_name,
        completed_checklist=store.state.weekly_checklist_completion[day_name],
    )


@router.post("/days/next", response_model=DayView)
async def next_day(store: PlanStore = Depends(get_store)):
    store.next_day()
    return _day_view(store)


@router.post("/days/previous", response_model=DayView)
async def previous_day(store: PlanStore = Depends(get_store)):
    store.previous_day()
    return _day_view(store)


@router.get("/grocery", response_model=Dict[str, List[GroceryItem]])
async def get_grocery_list(store: PlanStore = Depends(get_store)):
    """Grocery items grouped by category."""
    return store.grocery_by_category()


@router.post("/grocery/{item_id}/toggle", response_model=List[GroceryItem])
async def toggle_grocery_item(item_id: str, store: PlanStore = Depends(get_store)):
    store.toggle_grocery_item(item_id)
    return store.state.grocery_list


@router.patch("/grocery/{item_id}", response_model=List[GroceryItem])
async def update_grocery_item(
    item_id: str, request: GroceryUpdateRequest, store: PlanStore = Depends(get_store)
):
    if request.name is not None and request.name.strip():
        store.update_grocery_item_name(item_id, request.name.strip())
    if request.category is not None and request.category.strip():
        store.update_grocery_item_category(item_id, request.category)
    return store.state.grocery_list


@router.delete("/grocery/{item_id}", response_model=List[GroceryItem])
async def delete_grocery_item(item_id: str, store: PlanStore = Depends(get_store)):
    store.delete_grocery_item(item_id)
    return store.state.grocery_list


@router.get("/history", response_model=HistoryResponse)
async def get_history(store: PlanStore = Depends(get_store)):
    return HistoryResponse(entries=store.state.history, summary=store.history_summary())


@router.delete("/history", response_model=HistoryResponse)
async def clear_history(store: PlanStore = Depends(get_store)):
    store.clear_history()
    return HistoryResponse(entries=[], summary=store.history_summary())


@router.delete("/data", response_model=StoreState)
async def clear_all_data(store: PlanStore = Depends(get_store)):
    """Forget plans, history, goals and profile; keeps schedule settings."""
    store.clear_all_data()
    return store.state
