import asyncio
import json
import random
import tempfile
import unittest
from datetime import date, datetime, timedelta
from pathlib import Path

from kaio.db.storage import JsonFileStorage, MemoryStorage, StorageAdapter
from kaio.errors import (
    ConfigurationError,
    GenerationInProgress,
    MalformedResponseError,
    SchemaValidationError,
    StorageUnavailable,
    TransportError,
)
from kaio.models.plan import DAY_NAMES, GroceryItem, WeeklyPlan
from kaio.models.state import StoreState
from kaio.store import PlanStore
from kaio.tests.factories import FakeClock, FakePlanner, daily_plan, weekly_response

# Wednesday
NOW = datetime(2026, 10, 14, 9, 30)


class BrokenStorage(StorageAdapter):
    def __init__(self):
        self.writes = 0

    def read(self):
        raise StorageUnavailable("no disk")

    def write(self, blob):
        self.writes += 1
        raise StorageUnavailable("no disk")

    def clear(self):
        raise StorageUnavailable("no disk")


def installed_store(**kwargs) -> PlanStore:
    store = PlanStore(clock=FakeClock(NOW), rng=random.Random(1), **kwargs)
    response = weekly_response()
    store.install_weekly_plan(WeeklyPlan(start_date=date(2026, 10, 12), days=response.days()))
    return store


class TestPlanInstall(unittest.TestCase):
    def test_install_sizes_completion_from_checklists(self):
        store = installed_store()
        for day_name, day in store.state.weekly_plan.ordered_days():
            self.assertEqual(store.state.weekly_checklist_completion[day_name], [False] * len(day.checklist))

    def test_reinstall_drops_stale_completion(self):
        store = installed_store()
        store.toggle_checklist_item("Monday", 0)
        store.install_weekly_plan(store.state.weekly_plan)
        self.assertEqual(store.state.weekly_checklist_completion["Monday"], [False, False])

    def test_set_current_plan_resets_daily_completion(self):
        store = PlanStore()
        store.set_current_plan(daily_plan(5))
        store.toggle_current_checklist_item(4)
        self.assertEqual(store.state.completed_checklist, [False, False, False, False, True])
        store.set_current_plan(daily_plan(2))
        self.assertEqual(store.state.completed_checklist, [False, False])


class TestChecklistAndHistory(unittest.TestCase):
    def test_toggle_updates_completion_and_history(self):
        store = installed_store()
        store.toggle_checklist_item("Tuesday", 1)

        self.assertEqual(store.state.weekly_checklist_completion["Tuesday"], [False, True, False])
        self.assertEqual(len(store.state.history), 1)
        entry = store.state.history[0]
        self.assertEqual(entry.day_name, "Tuesday")
        self.assertEqual(entry.completed_checklist, [False, True, False])
        self.assertEqual(entry.plan, store.state.weekly_plan.days["Tuesday"])

    def test_repeated_toggles_update_single_entry(self):
        clock = FakeClock(NOW)
        store = installed_store()
        store.clock = clock
        store.toggle_checklist_item("Monday", 0)
        clock.now = NOW + timedelta(hours=2)
        store.toggle_checklist_item("Monday", 1)

        self.assertEqual(len(store.state.history), 1)
        self.assertEqual(store.state.history[0].date, NOW)
        self.assertEqual(store.state.history[0].completed_checklist, [True, True])

    def test_toggle_unknown_day_or_index(self):
        store = installed_store()
        with self.assertRaises(KeyError):
            store.toggle_checklist_item("Funday", 0)
        with self.assertRaises(IndexError):
            store.toggle_checklist_item("Monday", 2)
        self.assertEqual(store.state.history, [])

    def test_toggle_without_plan(self):
        with self.assertRaises(KeyError):
            PlanStore().toggle_checklist_item("Monday", 0)

    def test_next_day_records_current_day_and_advances(self):
        store = installed_store()
        store.set_current_day_index(6)
        store.next_day()

        self.assertEqual(store.state.current_day_index, 0)
        self.assertEqual(store.state.history[0].day_name, "Sunday")

    def test_previous_day_wraps(self):
        store = PlanStore()
        store.set_current_day_index(0)
        store.previous_day()
        self.assertEqual(store.current_day_name, "Sunday")

    def test_next_day_without_plan_only_moves(self):
        store = PlanStore()
        store.set_current_day_index(2)
        store.next_day()
        self.assertEqual(store.state.current_day_index, 3)
        self.assertEqual(store.state.history, [])

    def test_clear_history(self):
        store = installed_store()
        store.toggle_checklist_item("Monday", 0)
        store.clear_history()
        self.assertEqual(store.state.history, [])
        self.assertEqual(store.history_summary().total_days, 0)


class TestGroceryOperations(unittest.TestCase):
    def test_update_category_normalizes(self):
        store = PlanStore()
        store.set_grocery_list([GroceryItem(id="grocery-3", name="Chiken", category="protein")])
        store.update_grocery_item_category("grocery-3", "Protein ")
        store.update_grocery_item_name("grocery-3", "Chicken")

        item = store.state.grocery_list[0]
        self.assertEqual((item.name, item.category), ("Chicken", "protein"))

    def test_delete_missing_is_no_op(self):
        store = PlanStore()
        store.set_grocery_list([GroceryItem(id="grocery-0", name="Rice", category="grains")])
        store.delete_grocery_item("grocery-7")
        store.toggle_grocery_item("grocery-7")
        self.assertEqual(len(store.state.grocery_list), 1)
        self.assertFalse(store.state.grocery_list[0].purchased)


class TestSettings(unittest.TestCase):
    def test_regenerate_time_validation(self):
        store = PlanStore()
        store.set_auto_regenerate_time("07:05")
        self.assertEqual(store.state.auto_regenerate_time, "07:05")
        with self.assertRaises(ValueError):
            store.set_auto_regenerate_time("25:00")
        with self.assertRaises(ValueError):
            store.set_auto_regenerate_day(7)
        with self.assertRaises(ValueError):
            store.set_reset_time("03:00")

    def test_blank_goals_are_absent_for_scheduler(self):
        store = PlanStore(initial_state=StoreState(goals="   ", last_generated=NOW))
        self.assertIsNone(store.state.scheduler_config().goals)
        self.assertFalse(store.check_and_regenerate_plan(NOW + timedelta(days=10)))

    def test_clear_all_data_keeps_schedule(self):
        store = installed_store()
        store.set_goals("run a marathon")
        store.set_auto_regenerate_day(3)
        store.set_current_day_index(5)
        store.clear_all_data()

        self.assertIsNone(store.state.weekly_plan)
        self.assertEqual(store.state.goals, "")
        self.assertEqual(store.state.auto_regenerate_day, 3)
        self.assertEqual(store.state.current_day_index, 2)


class TestPersistence(unittest.TestCase):
    def test_state_survives_restart(self):
        storage = MemoryStorage()
        store = installed_store(storage=storage)
        store.set_goals("build muscle")
        store.toggle_checklist_item("Friday", 2)

        restored = PlanStore(storage=storage)
        self.assertEqual(restored.state.model_dump(), store.state.model_dump())
        self.assertEqual(json.loads(storage.blob)["version"], 0)

    def test_file_storage_round_trip(self):
        with tempfile.TemporaryDirectory() as tmp:
            storage = JsonFileStorage(Path(tmp) / "nested" / "plan.json")
            store = PlanStore(storage=storage)
            store.set_user_notes("travel on Friday")

            self.assertEqual(PlanStore(storage=JsonFileStorage(storage.path)).state.user_notes, "travel on Friday")

    def test_unreadable_storage_degrades_to_memory(self):
        store = PlanStore(storage=BrokenStorage())
        store.set_goals("lose weight")

        self.assertEqual(store.state.goals, "lose weight")
        self.assertIsNone(store.storage)

    def test_unwritable_storage_degrades_to_memory(self):
        storage = BrokenStorage()
        store = PlanStore(storage=storage, initial_state=StoreState())
        store.set_goals("lose weight")
        store.set_user_notes("no dairy")

        self.assertEqual(storage.writes, 1)
        self.assertEqual(store.state.user_notes, "no dairy")
        self.assertIsNone(store.storage)

    def test_unreadable_blob_falls_back_to_defaults(self):
        store = PlanStore(storage=MemoryStorage("{not json"))
        self.assertIsNone(store.state.weekly_plan)
        store = PlanStore(storage=MemoryStorage(json.dumps({"state": {"auto_regenerate_day": 12}})))
        self.assertEqual(store.state.auto_regenerate_day, 0)


class TestRegeneration(unittest.IsolatedAsyncioTestCase):
    def make_store(self, planner, **state):
        state.setdefault("goals", "build muscle")
        return PlanStore(
            storage=MemoryStorage(),
            planner=planner,
            clock=FakeClock(NOW),
            initial_state=StoreState(**state),
        )

    async def test_successful_regeneration_installs_everything(self):
        planner = FakePlanner(response=weekly_response())
        store = self.make_store(planner, user_notes="rest on Sunday")

        self.assertTrue(await store.regenerate_weekly_plan())

        state = store.state
        self.assertEqual(planner.calls, [("week", "build muscle", "rest on Sunday")])
        self.assertEqual(state.weekly_plan.start_date, date(2026, 10, 12))
        self.assertEqual(list(state.weekly_plan.days), list(DAY_NAMES))
        self.assertEqual([i.id for i in state.grocery_list], ["grocery-0", "grocery-1", "grocery-2"])
        self.assertEqual(state.last_generated, NOW)
        for day_name, day in state.weekly_plan.ordered_days():
            self.assertEqual(state.weekly_checklist_completion[day_name], [False] * len(day.checklist))

    async def test_regeneration_replaces_grocery_list(self):
        store = self.make_store(FakePlanner())
        store.set_grocery_list([GroceryItem(id="grocery-0", name="Old", category="other", purchased=True)])
        await store.regenerate_weekly_plan()
        self.assertFalse(any(i.purchased for i in store.state.grocery_list))
        self.assertNotIn("Old", [i.name for i in store.state.grocery_list])

    async def test_generated_grocery_categories_are_normalized(self):
        response = weekly_response([{"name": "Chicken", "category": " Protein "}])
        store = self.make_store(FakePlanner(response=response))
        await store.generate_weekly_plan()
        self.assertEqual(store.state.grocery_list[0].category, "protein")

    async def test_failed_generation_changes_nothing(self):
        errors = [
            SchemaValidationError("bad shape"),
            MalformedResponseError("not json"),
            TransportError("down", status_code=503, body="busy"),
            ConfigurationError("no key"),
        ]
        for error in errors:
            store = self.make_store(FakePlanner(error=error), last_generated=NOW - timedelta(days=9))
            store.install_weekly_plan(WeeklyPlan(start_date=date(2026, 10, 5), days=weekly_response().days()))
            store.set_grocery_list([GroceryItem(id="grocery-0", name="Rice", category="grains")])
            before = store.state.model_dump_json()
            blob_before = store.storage.blob

            with self.assertRaises(type(error)):
                await store.regenerate_weekly_plan()

            self.assertEqual(store.state.model_dump_json(), before)
            self.assertEqual(store.storage.blob, blob_before)
            self.assertFalse(store.is_generating)

    async def test_no_goals_skips_generation(self):
        planner = FakePlanner()
        store = self.make_store(planner, goals="")
        self.assertFalse(await store.regenerate_weekly_plan())
        self.assertEqual(planner.calls, [])

    async def test_single_flight(self):
        planner = FakePlanner()
        planner.gate = asyncio.Event()
        store = self.make_store(planner)

        first = asyncio.create_task(store.regenerate_weekly_plan())
        await asyncio.sleep(0)
        self.assertTrue(store.is_generating)

        self.assertFalse(await store.regenerate_weekly_plan())
        with self.assertRaises(GenerationInProgress):
            await store.generate_weekly_plan()

        planner.gate.set()
        self.assertTrue(await first)
        self.assertEqual(len(planner.calls), 1)
        self.assertFalse(store.is_generating)

    async def test_flag_released_after_unexpected_error(self):
        store = self.make_store(FakePlanner(error=RuntimeError("crash")))
        with self.assertRaises(RuntimeError):
            await store.regenerate_weekly_plan()
        self.assertFalse(store.is_generating)

    async def test_explicit_generation_sets_goals_and_today(self):
        planner = FakePlanner()
        store = self.make_store(planner, goals="")
        store.set_current_day_index(0)

        await store.generate_weekly_plan("gain strength", "vegetarian")

        self.assertEqual(store.state.goals, "gain strength")
        self.assertEqual(store.state.user_notes, "vegetarian")
        self.assertEqual(store.state.current_day_index, 2)
        self.assertEqual(planner.calls[0], ("week", "gain strength", "vegetarian"))

    async def test_explicit_generation_requires_goals(self):
        store = self.make_store(FakePlanner(), goals="")
        with self.assertRaises(ValueError):
            await store.generate_weekly_plan()

    async def test_daily_generation(self):
        store = self.make_store(FakePlanner(daily=daily_plan(4)))
        plan = await store.generate_daily_plan()
        self.assertEqual(store.state.current_plan, plan)
        self.assertEqual(store.state.completed_checklist, [False] * 4)
