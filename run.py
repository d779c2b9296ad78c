#!/usr/bin/env python3
"""Run Kaio Planner."""

from kaio.main import run

if __name__ == "__main__":
    run()
