"""Streak reward tiers.

Every value here is a pure function of the current streak length.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

# Streak length at which the progress bar is full.
PROGRESS_TARGET_DAYS = 100


@dataclass(frozen=True)
class RewardTier:
    threshold: int
    base_reward: int
    multiplier: int

    @property
    def total(self) -> int:
        return self.base_reward * self.multiplier


# Highest threshold first.
TIERS: Tuple[RewardTier, ...] = (
    RewardTier(threshold=100, base_reward=100, multiplier=5),
    RewardTier(threshold=30, base_reward=50, multiplier=3),
    RewardTier(threshold=7, base_reward=25, multiplier=2),
    RewardTier(threshold=0, base_reward=10, multiplier=1),
)

MILESTONES: Tuple[int, ...] = tuple(sorted(t.threshold for t in TIERS if t.threshold > 0))


def tier_for(streak: int) -> RewardTier:
    for tier in TIERS:
        if streak >= tier.threshold:
            return tier
    return TIERS[-1]


def base_reward(streak: int) -> int:
    return tier_for(streak).base_reward


def multiplier(streak: int) -> int:
    return tier_for(streak).multiplier


def total_reward(streak: int) -> int:
    return base_reward(streak) * multiplier(streak)


def next_tier(streak: int) -> Optional[RewardTier]:
    """Return the next tier above ``streak``, or None at the top tier."""
    for tier in reversed(TIERS):
        if tier.threshold > streak:
            return tier
    return None


def milestones_reached(streak: int) -> list[int]:
    return [m for m in MILESTONES if streak >= m]


def progress_percent(streak: int) -> float:
    return min(streak * 100 / PROGRESS_TARGET_DAYS, 100.0)
