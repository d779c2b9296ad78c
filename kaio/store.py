"""The persisted plan store."""

import json
import logging
import random
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from kaio.db.storage import StorageAdapter
from kaio.errors import GenerationInProgress, StorageUnavailable
from kaio.models.plan import DAY_NAMES, DailyPlan, GroceryItem, WeeklyPlan, WeeklyPlanResponse
from kaio.models.history import HistorySummary
from kaio.models.state import StoreState, UserProfile
from kaio.services import tracker
from kaio.services.affirmations import generate_affirmation
from kaio.services.ai_planner import AIPlanner
from kaio.services.calendar import day_index, parse_hhmm, week_start
from kaio.services.history import record_or_update, summarize
from kaio.services.scheduler import is_stale

logger = logging.getLogger(__name__)

STORAGE_VERSION = 0


class PlanStore:
    """Single owner of the plan state.

    Every mutation replaces the affected part of ``state`` in one step and
    then writes the whole state to ``storage``. Without storage, or after
    storage fails, the store keeps working in memory.
    """

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        planner: Optional[AIPlanner] = None,
        clock: Optional[Callable[[], datetime]] = None,
        initial_state: Optional[StoreState] = None,
        rng: Optional[random.Random] = None,
    ):
        self.storage = storage
        self.planner = planner
        self.clock = clock or datetime.now
        self.rng = rng
        self._generating = False
        self.state = initial_state if initial_state is not None else self._rehydrate()

    # Persistence

    def _rehydrate(self) -> StoreState:
        if self.storage is None:
            return StoreState()
        try:
            blob = self.storage.read()
        except StorageUnavailable as e:
            logger.warning("Storage unavailable, running in memory: %s", e)
            self.storage = None
            return StoreState()
        if blob is None:
            return StoreState()
        try:
            return StoreState.model_validate(json.loads(blob)["state"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable stored state: %s", e)
            return StoreState()

    def _persist(self) -> None:
        if self.storage is None:
            return
        blob = json.dumps({"state": self.state.model_dump(mode="json"), "version": STORAGE_VERSION})
        try:
            self.storage.write(blob)
        except StorageUnavailable as e:
            logger.warning("Storage unavailable, running in memory: %s", e)
            self.storage = None

    def _commit(self, **changes) -> None:
        self.state = self.state.model_copy(update=changes)
        self._persist()

    # Profile and settings

    def set_user_profile(self, profile: UserProfile) -> None:
        self._commit(user_profile=profile)

    def set_goals(self, goals: str) -> None:
        self._commit(goals=goals)

    def set_user_notes(self, notes: str) -> None:
        self._commit(user_notes=notes)

    def set_reset_time(self, time: str) -> None:
        if time not in ("00:00", "06:00"):
            raise ValueError(f"reset time must be 00:00 or 06:00, got {time!r}")
        self._commit(reset_time=time)

    def set_auto_regenerate_day(self, day: int) -> None:
        if not 0 <= day <= 6:
            raise ValueError(f"weekday must be between 0 (Sunday) and 6 (Saturday), got {day}")
        self._commit(auto_regenerate_day=day)

    def set_auto_regenerate_time(self, time: str) -> None:
        hour, minute = parse_hhmm(time)
        self._commit(auto_regenerate_time=f"{hour:02d}:{minute:02d}")

    # Plans

    def set_current_plan(self, plan: DailyPlan) -> None:
        self._commit(current_plan=plan, completed_checklist=[False] * len(plan.checklist))

    def install_weekly_plan(self, plan: WeeklyPlan) -> None:
        self._commit(weekly_plan=plan, weekly_checklist_completion=tracker.reset_completion(plan))

    def _install_generated(self, response: WeeklyPlanResponse, **extra) -> None:
        now = self.clock()
        plan = WeeklyPlan(start_date=week_start(now.date()), days=response.days())
        self._commit(
            weekly_plan=plan,
            weekly_checklist_completion=tracker.reset_completion(plan),
            grocery_list=tracker.build_grocery_list(response.grocery_list),
            last_generated=now,
            **extra,
        )

    def day_plan(self, day_name: str) -> DailyPlan:
        """Plan for ``day_name`` in the installed week; KeyError if there is none."""
        if self.state.weekly_plan is None:
            raise KeyError("no weekly plan installed")
        return self.state.weekly_plan.days[day_name]

    @property
    def current_day_name(self) -> str:
        return DAY_NAMES[self.state.current_day_index]

    def current_day(self) -> Tuple[str, Optional[DailyPlan], List[bool]]:
        """The viewed day's name, plan and completion."""
        day_name = self.current_day_name
        weekly = self.state.weekly_plan
        plan = weekly.days.get(day_name) if weekly else None
        return day_name, plan, list(self.state.weekly_checklist_completion.get(day_name, []))

    # Navigation

    def set_current_day_index(self, index: int) -> None:
        if not 0 <= index <= 6:
            raise ValueError(f"day index must be between 0 and 6, got {index}")
        self._commit(current_day_index=index)

    def next_day(self) -> None:
        """Advance the view, recording the day being left in history."""
        changes = {"current_day_index": (self.state.current_day_index + 1) % 7}
        if self.state.weekly_plan is not None:
            changes["history"] = self._recorded_history(self.current_day_name)
        self._commit(**changes)

    def previous_day(self) -> None:
        self._commit(current_day_index=(self.state.current_day_index - 1) % 7)

    # Checklists

    def toggle_current_checklist_item(self, index: int) -> None:
        self._commit(completed_checklist=tracker.toggle_completion(self.state.completed_checklist, index))

    def toggle_checklist_item(self, day_name: str, index: int) -> None:
        """Flip one checklist item of the weekly plan and record the day in history."""
        self.day_plan(day_name)  # KeyError for days outside the installed week
        completion = tracker.toggle_completion(
            self.state.weekly_checklist_completion.get(day_name, []), index
        )
        weekly_completion = {**self.state.weekly_checklist_completion, day_name: completion}
        self._commit(
            weekly_checklist_completion=weekly_completion,
            history=self._recorded_history(day_name, completion),
        )

    # History

    def _recorded_history(self, day_name: str, completion: Optional[List[bool]] = None):
        plan = self.day_plan(day_name)
        if completion is None:
            completion = self.state.weekly_checklist_completion.get(day_name, [])
        rate = tracker.completion_rate(completion, len(plan.checklist))
        return record_or_update(
            self.state.history,
            plan,
            completion,
            generate_affirmation(rate, self.rng),
            day_name,
            self.clock(),
        )

    def record_history(self, day_name: str) -> None:
        """Write today's history entry for ``day_name`` from its current completion."""
        self._commit(history=self._recorded_history(day_name))

    def clear_history(self) -> None:
        self._commit(history=[])

    def history_summary(self) -> HistorySummary:
        return summarize(self.state.history)

    # Grocery list

    def set_grocery_list(self, items: List[GroceryItem]) -> None:
        self._commit(grocery_list=list(items))

    def toggle_grocery_item(self, item_id: str) -> None:
        self._commit(grocery_list=tracker.toggle_grocery_item(self.state.grocery_list, item_id))

    def delete_grocery_item(self, item_id: str) -> None:
        self._commit(grocery_list=tracker.delete_grocery_item(self.state.grocery_list, item_id))

    def update_grocery_item_name(self, item_id: str, name: str) -> None:
        self._commit(grocery_list=tracker.rename_grocery_item(self.state.grocery_list, item_id, name))

    def update_grocery_item_category(self, item_id: str, category: str) -> None:
        self._commit(
            grocery_list=tracker.recategorize_grocery_item(self.state.grocery_list, item_id, category)
        )

    def grocery_by_category(self) -> Dict[str, List[GroceryItem]]:
        return tracker.group_by_category(self.state.grocery_list)

    # Generation

    def _get_planner(self) -> AIPlanner:
        if self.planner is None:
            self.planner = AIPlanner()
        return self.planner

    @property
    def is_generating(self) -> bool:
        return self._generating

    @contextmanager
    def _generation(self):
        if self._generating:
            raise GenerationInProgress("a plan generation is already running")
        self._generating = True
        try:
            yield
        finally:
            self._generating = False

    def check_and_regenerate_plan(self, now: Optional[datetime] = None) -> bool:
        """True when the scheduled regeneration slot has passed since the last generation."""
        return is_stale(self.state.scheduler_config(), now or self.clock())

    async def regenerate_weekly_plan(self) -> bool:
        """Replace the weekly plan from the stored goals and notes.

        Returns False without doing anything when there are no goals or a
        generation is already running. Generation errors propagate and leave
        the state untouched.
        """
        config = self.state.scheduler_config()
        if not config.goals:
            logger.info("No goals set, skipping regeneration.")
            return False
        if self._generating:
            logger.info("Plan generation already in progress, skipping regeneration.")
            return False

        logger.info("Regenerating weekly plan automatically...")
        with self._generation():
            response = await self._get_planner().generate_weekly_plan(config.goals, config.user_notes)
        self._install_generated(response)
        logger.info("Weekly plan regenerated successfully.")
        return True

    async def generate_weekly_plan(
        self, goals: Optional[str] = None, user_notes: Optional[str] = None
    ) -> WeeklyPlan:
        """Generate and install a weekly plan on request, jumping the view to today."""
        with self._generation():
            if goals is not None:
                self.set_goals(goals)
            if user_notes is not None:
                self.set_user_notes(user_notes)
            config = self.state.scheduler_config()
            if not config.goals:
                raise ValueError("goals are required to generate a plan")
            response = await self._get_planner().generate_weekly_plan(config.goals, config.user_notes)
            self._install_generated(response, current_day_index=day_index(self.clock().date()))
        return self.state.weekly_plan

    async def generate_daily_plan(self, goals: Optional[str] = None) -> DailyPlan:
        """Generate a single-day plan into ``current_plan``."""
        with self._generation():
            if goals is not None:
                self.set_goals(goals)
            config = self.state.scheduler_config()
            if not config.goals:
                raise ValueError("goals are required to generate a plan")
            plan = await self._get_planner().generate_daily_plan(config.goals)
            self.set_current_plan(plan)
        return plan

    def clear_all_data(self) -> None:
        """Forget everything except the schedule and reset-time settings."""
        self.state = StoreState(
            current_day_index=day_index(self.clock().date()),
            reset_time=self.state.reset_time,
            auto_regenerate_day=self.state.auto_regenerate_day,
            auto_regenerate_time=self.state.auto_regenerate_time,
        )
        self._persist()
