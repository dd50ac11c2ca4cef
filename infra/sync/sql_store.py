from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.models.models import User, UserProgressRecord
from progress_engine.models import UserProgress
from progress_engine.sync import StaleWriteError, SyncAdapter, SyncError

logger = logging.getLogger(__name__)


def record_to_progress(user_id: str, record: UserProgressRecord) -> UserProgress:
    return UserProgress.from_dict(
        {
            "user_id": user_id,
            "points": record.points,
            "current_streak": record.current_streak,
            "completed_daily_problem_ids": record.completed_daily_problem_ids,
            "attempted_problem_ids": record.attempted_problem_ids,
            "completed_dates": record.completed_dates,
            "completed_module_ids": record.completed_module_ids,
            "completed_track_ids": record.completed_track_ids,
            "unit_progress": record.unit_progress,
            "last_challenge_date": record.last_challenge_date,
            "version": record.version,
        }
    )


def _unit_json(progress: UserProgress) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for mid, unit in sorted(progress.unit_progress.items()):
        data = unit.to_dict()
        data.pop("module_id", None)
        out[mid] = data
    return out


class SqlProgressStore(SyncAdapter):
    """
    SyncAdapter over a SQLAlchemy session factory.

    Each call opens its own session in a worker thread so the event loop is
    never blocked by the driver.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    async def load_progress(self, user_id: str) -> UserProgress:
        return await asyncio.to_thread(self._load, user_id)

    async def save_progress(self, progress: UserProgress) -> int:
        return await asyncio.to_thread(self._save, progress)

    async def update_user_accumulators(self, user_id: str, points: int, streak: int) -> None:
        await asyncio.to_thread(self._update_user, user_id, points, streak)

    def _load(self, user_id: str) -> UserProgress:
        db = self._session_factory()
        try:
            record = db.get(UserProgressRecord, int(user_id))
            if record is None:
                return UserProgress.empty(user_id)
            return record_to_progress(user_id, record)
        except SQLAlchemyError as e:
            raise SyncError(f"load failed for user {user_id}: {e}") from e
        finally:
            db.close()

    def _save(self, progress: UserProgress) -> int:
        db = self._session_factory()
        try:
            record = db.get(UserProgressRecord, int(progress.user_id))
            if record is None:
                record = UserProgressRecord(user_id=int(progress.user_id), version=0)
                db.add(record)
            elif progress.version < int(record.version or 0):
                raise StaleWriteError(
                    f"stale write for user {progress.user_id}: "
                    f"version {progress.version} < stored {record.version}"
                )
            data = progress.to_dict()
            record.points = progress.points
            record.current_streak = progress.current_streak
            record.completed_daily_problem_ids = data["completed_daily_problem_ids"]
            record.attempted_problem_ids = data["attempted_problem_ids"]
            record.completed_dates = data["completed_dates"]
            record.completed_module_ids = data["completed_module_ids"]
            record.completed_track_ids = data["completed_track_ids"]
            record.unit_progress = _unit_json(progress)
            record.last_challenge_date = progress.last_challenge_date
            record.version = int(record.version or 0) + 1
            record.updated_at = datetime.utcnow()
            db.commit()
            logger.debug("progress saved user=%s version=%s", progress.user_id, record.version)
            return int(record.version)
        except SQLAlchemyError as e:
            db.rollback()
            raise SyncError(f"save failed for user {progress.user_id}: {e}") from e
        finally:
            db.close()

    def _update_user(self, user_id: str, points: int, streak: int) -> None:
        db = self._session_factory()
        try:
            user = db.get(User, int(user_id))
            if user is None:
                raise SyncError(f"user {user_id} not found")
            user.points = points
            user.streak = streak
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise SyncError(f"accumulator update failed for user {user_id}: {e}") from e
        finally:
            db.close()
