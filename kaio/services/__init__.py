"""Services module."""

from .ai_planner import AIPlanner
from .scheduler import RegenerationScheduler, is_stale

__all__ = ["AIPlanner", "RegenerationScheduler", "is_stale"]
