from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Tier:
    name: str
    min_points: int


TierTable = Tuple[Tier, ...]

# Leaderboard tiers.
RANK_TIERS: TierTable = (
    Tier("ELITE", 5000),
    Tier("DIAMOND", 3500),
    Tier("PLATINUM", 2500),
    Tier("GOLD", 1500),
    Tier("SILVER", 500),
    Tier("BRONZE", 0),
)


def validate_tier_table(tiers: TierTable) -> TierTable:
    """Return the table sorted by threshold (highest first) or raise ValueError."""
    if not tiers:
        raise ValueError("Tier table is empty")
    names = [t.name for t in tiers]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate tier names: {names}")
    thresholds = [t.min_points for t in tiers]
    if len(set(thresholds)) != len(thresholds):
        raise ValueError(f"Duplicate tier thresholds: {thresholds}")
    if min(thresholds) != 0:
        raise ValueError("Tier table needs a base tier at 0 points")
    return tuple(sorted(tiers, key=lambda t: t.min_points, reverse=True))


def parse_tier_table(raw: str) -> TierTable:
    """
    Parse "ELITE:5000,DIAMOND:3500,...,BRONZE:0" into a validated table.
    """
    tiers = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, threshold = part.rpartition(":")
        if not sep or not name.strip():
            raise ValueError(f"Bad tier entry: {part!r}")
        tiers.append(Tier(name.strip(), int(threshold)))
    return validate_tier_table(tuple(tiers))


@dataclass(frozen=True)
class EngineConfig:
    daily_bonus_xp: int = 100
    block_xp: int = 25
    level_size: int = 500
    tiers: TierTable = RANK_TIERS

    def __post_init__(self) -> None:
        if self.level_size <= 0:
            raise ValueError("level_size must be positive")
        if self.daily_bonus_xp < 0 or self.block_xp < 0:
            raise ValueError("XP amounts cannot be negative")
        object.__setattr__(self, "tiers", validate_tier_table(self.tiers))


DEFAULT_CONFIG = EngineConfig()
