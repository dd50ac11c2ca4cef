from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from progress_engine.config import RANK_TIERS, TierTable
from progress_engine.models import Role, UserSummary
from progress_engine.tiers import tier_for


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    name: str
    points: int
    streak: int
    tier: str


def build_leaderboard(
    users: Iterable[UserSummary],
    tiers: TierTable = RANK_TIERS,
    search: str = "",
) -> List[LeaderboardEntry]:
    """
    Students ordered by points (desc), then name. Ranks are assigned over the
    full board before the name search narrows it, so a filtered row keeps its
    real position.
    """
    students = sorted(
        (u for u in users if u.role == Role.STUDENT),
        key=lambda u: (-u.points, u.name.lower(), u.id),
    )
    entries = [
        LeaderboardEntry(
            rank=idx,
            user_id=u.id,
            name=u.name,
            points=u.points,
            streak=u.streak,
            tier=tier_for(u.points, tiers).name,
        )
        for idx, u in enumerate(students, start=1)
    ]
    needle = search.strip().lower()
    if needle:
        entries = [e for e in entries if needle in e.name.lower()]
    return entries


def rank_of(entries: Iterable[LeaderboardEntry], user_id: str) -> Optional[int]:
    for e in entries:
        if e.user_id == user_id:
            return e.rank
    return None
