"""Per-day history log."""

from datetime import datetime
from typing import List

from kaio.models.plan import DailyPlan
from kaio.models.history import PlanHistoryEntry, HistorySummary


HISTORY_LIMIT = 30


def record_or_update(
    history: List[PlanHistoryEntry],
    plan: DailyPlan,
    completed_checklist: List[bool],
    affirmation: str,
    day_name: str,
    now: datetime,
) -> List[PlanHistoryEntry]:
    """Return ``history`` with today's entry for ``day_name`` written.

    Entries are keyed by (calendar date of ``date``, ``day_name``). A matching
    entry keeps its first timestamp and takes the new content; otherwise a
    new entry is prepended and the log is cut to ``HISTORY_LIMIT``.
    """
    today = now.date()
    for index, entry in enumerate(history):
        if entry.date.date() == today and entry.day_name == day_name:
            updated = list(history)
            updated[index] = PlanHistoryEntry(
                date=entry.date,
                day_name=day_name,
                plan=plan,
                completed_checklist=list(completed_checklist),
                affirmation=affirmation,
            )
            return updated

    entry = PlanHistoryEntry(
        date=now,
        day_name=day_name,
        plan=plan,
        completed_checklist=list(completed_checklist),
        affirmation=affirmation,
    )
    return [entry, *history][:HISTORY_LIMIT]


def summarize(history: List[PlanHistoryEntry]) -> HistorySummary:
    """Overall checklist completion across the log."""
    tasks_completed = sum(sum(1 for done in e.completed_checklist if done) for e in history)
    total_tasks = sum(len(e.plan.checklist) for e in history)
    rate = tasks_completed / total_tasks * 100 if total_tasks else 0.0
    return HistorySummary(
        total_days=len(history),
        tasks_completed=tasks_completed,
        total_tasks=total_tasks,
        completion_rate=round(rate, 1),
    )
