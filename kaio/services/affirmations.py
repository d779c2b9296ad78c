"""Motivational messages keyed by checklist completion rate."""

import random
from typing import List, Optional


PERFECT = [
    "Perfect! You crushed it today!",
    "Amazing! 100% completed!",
    "Incredible effort! You're unstoppable!",
    "Flawless execution! Keep it up!",
    "Champion mindset! All tasks done!",
]

EXCELLENT = [
    "Excellent work! Almost perfect!",
    "Great job! You're so close!",
    "Outstanding effort! Keep pushing!",
    "Very impressive! Nearly there!",
    "Fantastic day! Just a bit more!",
]

GOOD = [
    "Good effort! You're halfway there!",
    "Nice work! Keep improving!",
    "Solid progress! More next time!",
    "You're on the right track!",
    "Good foundation! Build on this!",
]

STARTED = [
    "It's okay! Try better next time!",
    "Small steps count! Don't give up!",
    "You got this! Push harder tomorrow!",
    "Every bit helps! Keep going!",
    "Learn from today! Better luck ahead!",
]

NOT_STARTED = [
    "Tomorrow is a new day! You got this!",
    "Don't give up! Try better next day!",
    "Reset and go again! You can do it!",
    "Every day is a fresh start!",
    "Come back stronger tomorrow!",
]


def messages_for(rate: float) -> List[str]:
    if rate >= 100:
        return PERFECT
    if rate >= 75:
        return EXCELLENT
    if rate >= 50:
        return GOOD
    if rate > 0:
        return STARTED
    return NOT_STARTED


def generate_affirmation(rate: float, rng: Optional[random.Random] = None) -> str:
    """Pick a message for a completion rate given in percent."""
    return (rng or random).choice(messages_for(rate))
