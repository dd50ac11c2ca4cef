from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from progress_engine.config import DEFAULT_CONFIG, EngineConfig, Tier, TierTable, validate_tier_table


@dataclass(frozen=True)
class LevelInfo:
    level: int
    progress_within_level: int
    level_size: int
    progress_percent: float
    tier: str
    next_tier: Optional[str]
    points_to_next_tier: Optional[int]


def tier_for(points: int, tiers: TierTable) -> Tier:
    """Highest tier whose threshold is at or below `points`."""
    table = validate_tier_table(tiers)
    for tier in table:
        if points >= tier.min_points:
            return tier
    return table[-1]


def next_tier_for(points: int, tiers: TierTable) -> Optional[Tier]:
    above = [t for t in validate_tier_table(tiers) if t.min_points > points]
    return above[-1] if above else None


def level_info(points: int, config: EngineConfig = DEFAULT_CONFIG) -> LevelInfo:
    """Display-only classification derived from points alone."""
    points = max(0, int(points))
    within = points % config.level_size
    tier = tier_for(points, config.tiers)
    nxt = next_tier_for(points, config.tiers)
    return LevelInfo(
        level=points // config.level_size + 1,
        progress_within_level=within,
        level_size=config.level_size,
        progress_percent=round(within * 100.0 / config.level_size, 2),
        tier=tier.name,
        next_tier=nxt.name if nxt else None,
        points_to_next_tier=(nxt.min_points - points) if nxt else None,
    )
