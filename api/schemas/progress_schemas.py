"""
Progress snapshot, transition result and sync schemas.
"""

from pydantic import BaseModel
from typing import Any, Optional


class UnitProgressModel(BaseModel):
    completed_block_ids: list[str] = []
    unlocked: bool = False
    module_completed: bool = False


class ProgressSnapshot(BaseModel):
    user_id: str
    points: int = 0
    current_streak: int = 0
    completed_daily_problem_ids: list[str] = []
    attempted_problem_ids: list[str] = []
    completed_dates: list[str] = []
    completed_module_ids: list[str] = []
    completed_track_ids: list[str] = []
    unit_progress: dict[str, UnitProgressModel] = {}
    last_challenge_date: Optional[str] = None
    version: int = 0


class LevelModel(BaseModel):
    level: int
    progress_within_level: int
    level_size: int
    progress_percent: float
    tier: str
    next_tier: Optional[str] = None
    points_to_next_tier: Optional[int] = None


class StreakDayModel(BaseModel):
    date: str
    completed: bool
    is_today: bool


class SyncStatusModel(BaseModel):
    status: str  # idle|syncing|error
    pending: bool
    last_error: Optional[str] = None
    version: int


class ProgressResponse(BaseModel):
    progress: ProgressSnapshot
    level: LevelModel
    effective_streak: int
    calendar: list[StreakDayModel]
    sync: SyncStatusModel


class EventModel(BaseModel):
    kind: str
    data: dict[str, Any] = {}


class TransitionResponse(BaseModel):
    progress: ProgressSnapshot
    events: list[EventModel]
    sync: SyncStatusModel


class SyncRequest(BaseModel):
    progress: ProgressSnapshot


class SyncResponse(BaseModel):
    progress: ProgressSnapshot
    conflict: bool
    sync: SyncStatusModel


class VerifyResponse(BaseModel):
    discovered: list[str]
    progress: ProgressSnapshot
    events: list[EventModel]
