"""
Funtan Game Formulas

Purpose
-------
Pure calculation functions for game mechanics: streak progression, daily and
work rewards, hunt chance, and cooldown arithmetic.

Design Notes
------------
- Pure functions only (no side effects)
- No database or config access (all parameters passed in)
- Deterministic and testable

Usage
-----
    from funtan.modules.shared.formulas import daily_reward, next_streak

    streak = next_streak(claim.streak, claim.last_claim_at, now, window)
    bronze = daily_reward(streak, base=50, per_streak=5)
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict, Optional


def next_streak(
    previous: int,
    last_at: Optional[datetime],
    now: datetime,
    window: timedelta,
    cap: Optional[int] = None,
) -> int:
    """
    Compute the streak after a new claim at `now`.

    A previous event within `window` (inclusive) continues the streak;
    anything older, or no previous event, resets it to 1.

    Example:
        >>> next_streak(1, now - timedelta(hours=30), now, timedelta(hours=48))
        2
        >>> next_streak(7, now - timedelta(hours=49), now, timedelta(hours=48))
        1
    """
    if last_at is not None and now - last_at <= window:
        streak = max(0, previous) + 1
    else:
        streak = 1

    if cap is not None:
        streak = min(streak, cap)
    return streak


def daily_reward(streak: int, base: int, per_streak: int) -> int:
    """
    Bronze for a daily claim: `base + (streak - 1) * per_streak`, floored at 0.

    Example:
        >>> daily_reward(1, 50, 5)
        50
        >>> daily_reward(2, 50, 5)
        55
    """
    return max(0, base + (streak - 1) * per_streak)


def work_streak_bonus(streak: int, per_day: int, cap_days: int) -> int:
    """
    Silver bonus for a work collection.

    `min(per_day * (cap_days - 1), per_day * (streak - 1))`, so the first day
    of a streak pays no bonus and the bonus stops growing at the streak cap.

    Example:
        >>> work_streak_bonus(1, 5, 30)
        0
        >>> work_streak_bonus(3, 5, 30)
        10
        >>> work_streak_bonus(45, 5, 30)
        145
    """
    return max(0, min(per_day * (cap_days - 1), per_day * (streak - 1)))


def hunt_win_chance(power: int, threshold: int, floor: float, ceiling: float) -> float:
    """
    Probability of winning a hunt under the chance policy.

    `power / threshold` clamped to [floor, ceiling]. A zero threshold always
    yields the ceiling.
    """
    if threshold <= 0:
        return ceiling
    return min(ceiling, max(floor, power / threshold))


def chance_win_payout(threshold: int) -> Dict[str, int]:
    """
    Bronze and silver paid on top of gems for a chance-policy win.

    Scales with the monster threshold; a zero threshold counts as 10.
    """
    basis = threshold or 10
    return {"bronze": max(1, basis // 10), "silver": max(0, basis // 20)}


def seconds_remaining(since: datetime, now: datetime, duration_seconds: int) -> int:
    """
    Whole seconds left before `since + duration_seconds`, never negative.

    Partial seconds round up so a caller is never told "0s" while still
    blocked.
    """
    elapsed = (now - since).total_seconds()
    return max(0, math.ceil(duration_seconds - elapsed))


def format_duration(seconds: float) -> str:
    """
    Human-readable duration for "wait" messages.

    Example:
        >>> format_duration(32399)
        '8h 59m 59s'
        >>> format_duration(45)
        '45s'
        >>> format_duration(0)
        '0s'
    """
    total = max(0, int(math.ceil(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)
