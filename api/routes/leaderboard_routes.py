from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.leaderboard_schemas import LeaderboardEntryModel, LeaderboardResponse
from api.schemas.user_schemas import User
from api.services.progress_service import ProgressService, get_progress_service
from api.utils.auth import get_current_user

leaderboard_routes = APIRouter()


@leaderboard_routes.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    search: str = "",
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> LeaderboardResponse:
    """Students ranked by points. `search` filters by name without changing ranks."""
    entries = service.leaderboard(db, search)
    return LeaderboardResponse(
        entries=[
            LeaderboardEntryModel(
                rank=e.rank, user_id=e.user_id, name=e.name, points=e.points, streak=e.streak, tier=e.tier
            )
            for e in entries
        ],
        current_user_rank=service.rank_of(db, current_user.id),
    )
