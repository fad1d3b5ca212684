"""
Tier index over the monster catalog.

Groups monsters by tier and records each tier's minimum threshold, so
"strongest tier I qualify for" and "what can I beat" are answered by walking
tiers instead of scanning every monster.

Built once from the immutable catalog and shared read-only.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Tuple

from funtan.modules.catalog.data import Monster


def _monster_sort_key(monster: Monster) -> Tuple[int, str]:
    return (monster.threshold, monster.id)


@dataclass(frozen=True)
class TierIndex:
    """
    Attributes:
        tiers: Tier numbers, ascending
        min_thresholds: Lowest monster threshold per tier
        by_tier: Monsters per tier, sorted by (threshold, id)
    """

    tiers: Tuple[int, ...]
    min_thresholds: Mapping[int, int]
    by_tier: Mapping[int, Tuple[Monster, ...]]

    @classmethod
    def build(cls, monsters: Iterable[Monster]) -> "TierIndex":
        grouped: Dict[int, List[Monster]] = defaultdict(list)
        for monster in monsters:
            grouped[monster.tier].append(monster)

        by_tier = {
            tier: tuple(sorted(members, key=_monster_sort_key))
            for tier, members in grouped.items()
        }
        return cls(
            tiers=tuple(sorted(by_tier)),
            min_thresholds={tier: members[0].threshold for tier, members in by_tier.items()},
            by_tier=by_tier,
        )

    def best_tier(self, power: int) -> Tuple[int, Tuple[Monster, ...]]:
        """
        Highest tier whose minimum threshold is within `power`.

        Walks tiers ascending and stops at the first tier out of reach.
        Returns tier 0 (with its monsters, if any) when nothing qualifies.
        """
        best = 0
        for tier in self.tiers:
            if self.min_thresholds[tier] > power:
                break
            best = tier
        return best, self.by_tier.get(best, ())

    def eligible_monsters(self, power: int) -> Dict[int, List[Monster]]:
        """Monsters whose own threshold is within `power`, per tier; empty tiers omitted."""
        eligible: Dict[int, List[Monster]] = {}
        for tier in self.tiers:
            beatable = [m for m in self.by_tier[tier] if m.threshold <= power]
            if beatable:
                eligible[tier] = beatable
        return eligible
