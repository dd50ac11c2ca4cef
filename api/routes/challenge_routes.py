"""
Daily challenge read endpoints.
"""

from datetime import date as date_type

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.config import get_db
from api.schemas.catalog_schemas import DailyChallengeResponse
from api.schemas.user_schemas import User
from api.services.progress_service import ProgressService, get_progress_service
from api.utils.auth import get_current_user

challenge_routes = APIRouter()


async def _challenge(date: str, user: User, db: Session, service: ProgressService) -> DailyChallengeResponse:
    progress = None
    if user.role == "STUDENT":
        progress = (await service.session_for(user.id, db)).progress
    data = service.daily_challenge(db, date, progress)
    if data is None:
        raise HTTPException(status_code=404, detail="No daily challenge for this date")
    return DailyChallengeResponse(**data)


@challenge_routes.get("/challenges/today", response_model=DailyChallengeResponse)
async def get_today_challenge(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> DailyChallengeResponse:
    return await _challenge(service.today(), current_user, db, service)


@challenge_routes.get("/challenges/{date}", response_model=DailyChallengeResponse)
async def get_challenge(
    date: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: ProgressService = Depends(get_progress_service),
) -> DailyChallengeResponse:
    try:
        date_type.fromisoformat(date)
    except ValueError:
        raise HTTPException(status_code=422, detail="Date must be YYYY-MM-DD")
    return await _challenge(date, current_user, db, service)
