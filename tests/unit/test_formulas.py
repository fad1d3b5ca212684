"""
Unit tests for game formulas.

Streaks, daily and work rewards, hunt chance and cooldown arithmetic.
"""

from datetime import datetime, timedelta, timezone

import pytest

from funtan.modules.shared.formulas import (
    chance_win_payout,
    daily_reward,
    format_duration,
    hunt_win_chance,
    next_streak,
    seconds_remaining,
    work_streak_bonus,
)

pytestmark = pytest.mark.unit

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
WINDOW = timedelta(hours=48)


# ============================================================================
# STREAKS
# ============================================================================


class TestNextStreak:
    """Streak continuation and reset."""

    def test_first_event_starts_at_one(self):
        """No previous event starts a streak of 1."""
        assert next_streak(0, None, NOW, WINDOW) == 1

    def test_within_window_continues(self):
        """An event 30h after the last one continues the streak."""
        assert next_streak(1, NOW - timedelta(hours=30), NOW, WINDOW) == 2

    def test_window_boundary_is_inclusive(self):
        """Exactly 48h later still continues."""
        assert next_streak(4, NOW - WINDOW, NOW, WINDOW) == 5

    def test_outside_window_resets(self):
        """49h later resets to 1."""
        assert next_streak(7, NOW - timedelta(hours=49), NOW, WINDOW) == 1

    def test_cap_is_applied(self):
        """A capped streak never exceeds the cap."""
        assert next_streak(30, NOW - timedelta(hours=20), NOW, WINDOW, cap=30) == 30

    def test_negative_previous_is_floored(self):
        """Corrupt negative streaks continue from zero."""
        assert next_streak(-3, NOW - timedelta(hours=1), NOW, WINDOW) == 1


# ============================================================================
# REWARDS
# ============================================================================


class TestDailyReward:
    """Daily bronze formula."""

    @pytest.mark.parametrize(
        "streak,expected",
        [(1, 50), (2, 55), (3, 60), (11, 100)],
    )
    def test_reward_grows_with_streak(self, streak, expected):
        """base + (streak - 1) * bonus."""
        assert daily_reward(streak, base=50, per_streak=5) == expected

    def test_reward_never_negative(self):
        """A negative base floors at zero."""
        assert daily_reward(1, base=-10, per_streak=0) == 0


class TestWorkStreakBonus:
    """Work silver bonus."""

    def test_first_day_has_no_bonus(self):
        assert work_streak_bonus(1, 5, 30) == 0

    def test_second_day_pays_one_step(self):
        assert work_streak_bonus(2, 5, 30) == 5

    def test_bonus_caps_at_cap_days(self):
        """Streaks at or beyond the cap pay per_day * (cap - 1)."""
        assert work_streak_bonus(30, 5, 30) == 145
        assert work_streak_bonus(45, 5, 30) == 145


# ============================================================================
# HUNT CHANCE
# ============================================================================


class TestHuntWinChance:
    """Chance-policy probability."""

    def test_ratio_between_bounds(self):
        assert hunt_win_chance(10, 20, 0.05, 0.95) == pytest.approx(0.5)

    def test_overpowered_is_capped(self):
        assert hunt_win_chance(100, 20, 0.05, 0.95) == pytest.approx(0.95)

    def test_underpowered_is_floored(self):
        assert hunt_win_chance(0, 20, 0.05, 0.95) == pytest.approx(0.05)

    def test_zero_threshold_uses_ceiling(self):
        assert hunt_win_chance(7, 0, 0.05, 0.95) == pytest.approx(0.95)


# ============================================================================
# DURATIONS
# ============================================================================


class TestChanceWinPayout:
    def test_scales_with_threshold(self):
        assert chance_win_payout(715) == {"bronze": 71, "silver": 35}

    def test_small_threshold_pays_one_bronze(self):
        assert chance_win_payout(10) == {"bronze": 1, "silver": 0}

    def test_zero_threshold_counts_as_ten(self):
        assert chance_win_payout(0) == {"bronze": 1, "silver": 0}


class TestSecondsRemaining:
    """Cooldown arithmetic."""

    def test_full_duration_at_start(self):
        assert seconds_remaining(NOW, NOW, 60) == 60

    def test_partial_seconds_round_up(self):
        """Never report 0 while still blocked."""
        assert seconds_remaining(NOW, NOW + timedelta(seconds=59.2), 60) == 1

    def test_elapsed_is_zero(self):
        assert seconds_remaining(NOW, NOW + timedelta(hours=2), 60) == 0

    def test_time_until_deadline(self):
        """With zero duration, counts down to `since` itself."""
        assert seconds_remaining(NOW + timedelta(hours=9), NOW, 0) == 32400


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0s"), (45, "45s"), (60, "1m 0s"), (3600, "1h 0m 0s"), (32399, "8h 59m 59s")],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected
