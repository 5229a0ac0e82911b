"""Level table for the game profile.

The web client draws its level bar from the same numbers; change both together.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import NamedTuple


class Level(NamedTuple):
    number: int
    title: str
    xp_required: int
    cumulative: int


LEVELS: tuple[Level, ...] = (
    Level(1, "Newcomer", 0, 0),
    Level(2, "Explorer", 50, 50),
    Level(3, "Scout", 100, 150),
    Level(4, "Tracker", 150, 300),
    Level(5, "Treasure Hunter", 200, 500),
    Level(6, "Pathfinder", 300, 800),
    Level(7, "Cartographer", 400, 1200),
    Level(8, "Relic Seeker", 600, 1800),
    Level(9, "Vault Breaker", 800, 2600),
    Level(10, "Gold Legend", 1400, 4000),
)

_CUMULATIVE = [lvl.cumulative for lvl in LEVELS]


def level_for(total_xp: int) -> Level:
    """Highest level whose cumulative requirement ``total_xp`` meets."""
    return LEVELS[max(bisect_right(_CUMULATIVE, total_xp) - 1, 0)]


def compute_level(total_xp: int) -> dict:
    """Level, title and progress toward the next level.

    At the top level ``next_level`` repeats the current one and
    ``xp_for_level`` is pinned to 1 so the client never divides by zero.
    """
    current = level_for(total_xp)
    upcoming = LEVELS[min(current.number, len(LEVELS) - 1)]
    span = upcoming.cumulative - current.cumulative
    return {
        "level": current.number,
        "title": current.title,
        "xp_into_level": total_xp - current.cumulative,
        "xp_for_level": span or 1,
        "next_level": upcoming.number,
        "next_title": upcoming.title,
    }
