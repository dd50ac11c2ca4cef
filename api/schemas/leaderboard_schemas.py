from pydantic import BaseModel
from typing import Optional


class LeaderboardEntryModel(BaseModel):
    rank: int
    user_id: str
    name: str
    points: int
    streak: int
    tier: str


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryModel]
    current_user_rank: Optional[int] = None
