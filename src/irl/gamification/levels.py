"""Level lookup and progress arithmetic.

Pure functions over anything exposing ``points_required`` (ORM ``Level``
rows in the service, plain objects in tests). ``levels`` may arrive in
any order.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Protocol, TypeVar


class HasThreshold(Protocol):
    points_required: int


L = TypeVar("L", bound=HasThreshold)


def find_current_level(levels: Iterable[L], total_points: int) -> L | None:
    """Highest level whose threshold is <= total_points, or None."""
    reached = [lvl for lvl in levels if lvl.points_required <= total_points]
    if not reached:
        return None
    return max(reached, key=lambda lvl: lvl.points_required)


def find_next_level(levels: Iterable[L], total_points: int) -> L | None:
    """Lowest level whose threshold is > total_points, or None at max level."""
    ahead = [lvl for lvl in levels if lvl.points_required > total_points]
    if not ahead:
        return None
    return min(ahead, key=lambda lvl: lvl.points_required)


def compute_progress_percent(
    total_points: int,
    current: HasThreshold | None,
    next_level: HasThreshold | None,
) -> int:
    """Linear progress from the current threshold to the next, clamped to [0, 100].

    With no current level the span starts at zero points. With no next
    level the user is at max level and progress is 100.
    """
    if next_level is None:
        return 100

    floor = current.points_required if current is not None else 0
    span = next_level.points_required - floor
    if span <= 0:
        return 100

    percent = math.floor((total_points - floor) / span * 100)
    return min(100, max(0, percent))
