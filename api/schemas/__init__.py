"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import ProgressResponse, TrackDetailResponse
    from api.schemas.progress_schemas import ProgressResponse
"""

from api.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
)
from api.schemas.user_schemas import User, UpdateHandlesRequest
from api.schemas.catalog_schemas import (
    ProblemResponse,
    ContentBlockResponse,
    ModuleResponse,
    TrackSummary,
    TrackListResponse,
    TrackDetailResponse,
    NextItemResponse,
    DailyChallengeResponse,
)
from api.schemas.progress_schemas import (
    UnitProgressModel,
    ProgressSnapshot,
    LevelModel,
    StreakDayModel,
    SyncStatusModel,
    ProgressResponse,
    EventModel,
    TransitionResponse,
    SyncRequest,
    SyncResponse,
    VerifyResponse,
)
from api.schemas.leaderboard_schemas import LeaderboardEntryModel, LeaderboardResponse

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "RegisterResponse",
    # user
    "User",
    "UpdateHandlesRequest",
    # catalog
    "ProblemResponse",
    "ContentBlockResponse",
    "ModuleResponse",
    "TrackSummary",
    "TrackListResponse",
    "TrackDetailResponse",
    "NextItemResponse",
    "DailyChallengeResponse",
    # progress
    "UnitProgressModel",
    "ProgressSnapshot",
    "LevelModel",
    "StreakDayModel",
    "SyncStatusModel",
    "ProgressResponse",
    "EventModel",
    "TransitionResponse",
    "SyncRequest",
    "SyncResponse",
    "VerifyResponse",
    # leaderboard
    "LeaderboardEntryModel",
    "LeaderboardResponse",
]
