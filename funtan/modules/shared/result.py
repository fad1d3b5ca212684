"""
Uniform engine result contract.

Every public engine operation returns an `EngineResult`: a success flag,
an operation-specific payload, and on failure a human-readable message plus a
machine-readable `ReasonCode`. Dispatchers branch on `reason`, never on the
message text.

>>> result = await engine.claim_daily("42")
>>> if not result.success and result.reason.is_timing:
...     reply_info(result.error)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ReasonCode(str, Enum):
    """Fixed vocabulary of failure reasons."""

    INVALID_INPUT = "InvalidInput"
    INVALID_USER = "InvalidUser"
    INVALID_CURRENCY_TYPE = "InvalidCurrencyType"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    INVALID_TYPE = "InvalidType"
    COOLDOWN = "Cooldown"
    ALREADY_WORKING = "AlreadyWorking"
    COOLDOWN_AFTER_COLLECT = "CooldownAfterCollect"
    STILL_WORKING = "StillWorking"
    ALREADY_COLLECTED = "AlreadyCollected"
    NO_SESSION = "NoSession"
    NO_FINISHED_SESSION = "NoFinishedSession"
    MISSING_EQUIPMENT = "MissingEquipment"
    THRESHOLD_NOT_MET = "ThresholdNotMet"
    ERROR = "Error"

    @property
    def is_timing(self) -> bool:
        """True for "not yet" outcomes that should render as informational."""
        return self in _TIMING_REASONS


_TIMING_REASONS = frozenset(
    {
        ReasonCode.COOLDOWN,
        ReasonCode.ALREADY_WORKING,
        ReasonCode.COOLDOWN_AFTER_COLLECT,
        ReasonCode.STILL_WORKING,
        ReasonCode.ALREADY_COLLECTED,
    }
)


@dataclass(frozen=True)
class EngineResult:
    """Discriminated success/failure result returned by every engine operation."""

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    reason: Optional[ReasonCode] = None

    @classmethod
    def ok(cls, data: Optional[Dict[str, Any]] = None) -> "EngineResult":
        return cls(success=True, data=data or {})

    @classmethod
    def fail(
        cls,
        error: str,
        reason: ReasonCode = ReasonCode.ERROR,
        data: Optional[Dict[str, Any]] = None,
    ) -> "EngineResult":
        return cls(success=False, data=data or {}, error=error, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "reason": self.reason.value if self.reason else None,
        }
