"""
ConfigManager: game-balance configuration with dot-notation access.

Purpose
-------
Expose the game tunables (daily, work, hunt and player settings) to services
through a single `get("section.key", default)` interface. Defaults are taken
from the static `Config` class; per-engine overrides are deep-merged on top so
tests and alternative deployments can change timing or policy without
touching process environment.

Non-Responsibilities
--------------------
- Loading environment variables (handled by Config)
- Infrastructure settings such as DATABASE_URL (read directly from Config)

Examples
--------
>>> manager = ConfigManager({"hunt": {"policy": "chance"}})
>>> manager.get("hunt.policy")
'chance'
>>> manager.get("daily.base_bronze")
50
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from funtan.core.config.config import HUNT_POLICIES, Config
from funtan.core.exceptions import ConfigurationError
from funtan.core.logging.logger import get_logger

logger = get_logger(__name__)


def _defaults_from_config() -> Dict[str, Any]:
    return {
        "daily": {
            "base_bronze": Config.DAILY_BASE_BRONZE,
            "streak_bonus": Config.DAILY_STREAK_BONUS,
            "cooldown_seconds": Config.DAILY_COOLDOWN_SECONDS,
            "streak_window_seconds": Config.DAILY_STREAK_WINDOW_SECONDS,
            "streak_cap": None,
        },
        "work": {
            "duration_seconds": Config.WORK_DURATION_SECONDS,
            "cooldown_after_collect_seconds": Config.WORK_COOLDOWN_AFTER_COLLECT_SECONDS,
            "reward_silver": Config.WORK_REWARD_SILVER,
            "streak_window_seconds": Config.WORK_STREAK_WINDOW_SECONDS,
            "streak_bonus_per_day": Config.WORK_STREAK_BONUS_PER_DAY,
            "streak_cap_days": Config.WORK_STREAK_BONUS_CAP_DAYS,
        },
        "hunt": {
            "cooldown_seconds": Config.DEFAULT_HUNT_COOLDOWN_SECONDS,
            "policy": Config.HUNT_POLICY,
            "chance_floor": 0.05,
            "chance_ceiling": 0.95,
            "consolation_bronze": 1,
        },
        "player": {
            "starter_kit_enabled": Config.STARTER_KIT_ENABLED,
            "starter_weapon_id": "w0",
            "starter_gear_id": "g0",
            "prestige_max_level": Config.PRESTIGE_MAX_LEVEL,
        },
    }


class ConfigManager:
    """
    Layered configuration: overrides over Config-derived defaults.

    Args:
        overrides: Optional nested dict merged over the defaults.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        self._defaults = _defaults_from_config()
        self._values = self._deep_merge_dict(
            copy.deepcopy(self._defaults), overrides or {}
        )
        self._validate()

        logger.debug(
            "ConfigManager initialized",
            extra={
                "override_sections": sorted((overrides or {}).keys()),
                "hunt_policy": self._values["hunt"]["policy"],
            },
        )

    @classmethod
    def _deep_merge_dict(
        cls, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Recursively merge `override` into `base` (in place) and return it."""
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._deep_merge_dict(base[key], value)
            else:
                base[key] = value
        return base

    def _validate(self) -> None:
        policy = self._values["hunt"]["policy"]
        if policy not in HUNT_POLICIES:
            raise ConfigurationError(
                "hunt.policy", f"must be one of {HUNT_POLICIES}, got {policy!r}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Returns `default` if any segment of the path is missing.
        """
        value: Any = self._values
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return default if value is None else value

    def get_all_keys(self) -> List[str]:
        """Return the top-level configuration sections."""
        return sorted(self._values.keys())
