"""Kaio Planner: weekly routine plans with automatic regeneration."""
