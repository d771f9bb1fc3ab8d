"""Exponential level curve.

xp_for_level(n) = floor(100 * 1.5 ** (n - 1)), evaluated in integer
arithmetic (100 * 3**k // 2**k) so thresholds are exact at every level.
These values MUST match the client progress bars.
"""

from __future__ import annotations

BASE_XP = 100
MAX_LISTED_LEVEL = 50


def xp_for_level(level: int) -> int:
    """XP needed to advance from ``level`` to ``level + 1``."""
    if level < 1:
        msg = f"level must be >= 1, got {level}"
        raise ValueError(msg)
    k = level - 1
    return BASE_XP * 3**k // 2**k


def apply_xp(current_level: int, current_xp: int, amount: int) -> tuple[int, int, int, int]:
    """Add XP inside a level and cascade level-ups.

    Returns (level, xp_into_level, xp_to_next_level, levels_gained).
    """
    xp = current_xp + amount
    level = current_level
    threshold = xp_for_level(level)
    levels_gained = 0

    while xp >= threshold:
        xp -= threshold
        level += 1
        levels_gained += 1
        threshold = xp_for_level(level)

    return level, xp, threshold, levels_gained


def level_curve(max_level: int = MAX_LISTED_LEVEL) -> list[dict]:
    """Level table with per-level and cumulative XP requirements."""
    levels = []
    cumulative = 0
    for level in range(1, max_level + 1):
        levels.append({
            "level": level,
            "xp_to_next_level": xp_for_level(level),
            "cumulative": cumulative,
        })
        cumulative += xp_for_level(level)
    return levels
