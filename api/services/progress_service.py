"""
Progress service: one live ProgressSession per user, backed by the SQL store.

Routes call into this service; it loads the catalog and daily sets the
transitions need, applies them through the user's session and pushes the
resulting events (and toast dismissals) to that user's WebSocket subscribers.
"""

import logging
import time
from dataclasses import asdict, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session as DBSession

from api.config import Settings, SessionLocal, settings as default_settings
from api.models.models import User as DbUser
from api.schemas.user_schemas import User
from api.services.catalog_service import find_problem, list_problems, load_catalog, load_daily_set, load_daily_sets
from api.utils.common import to_user_summary, today_iso
from api.ws.progress_broadcast import broadcast_progress
from infra.platforms.leetcode import LeetCodeSource
from infra.sync.sql_store import SqlProgressStore
from progress_engine.events import ProgressEvent, event_to_dict
from progress_engine.leaderboard import LeaderboardEntry, build_leaderboard, rank_of
from progress_engine.models import Platform, Problem, UserProgress
from progress_engine.notifications import Toast, ToastQueue
from progress_engine.reconcile import MergeResult
from progress_engine.streak import effective_streak, streak_calendar
from progress_engine.sync import ProgressSession, SessionRegistry
from progress_engine.tiers import level_info
from progress_engine.transitions import TransitionResult
from progress_engine.verification import SolvedProblemsSource, discover_new_completions

logger = logging.getLogger(__name__)


class ProblemNotFound(LookupError):
    pass


class ProgressService:
    def __init__(
        self,
        session_factory: Callable[[], DBSession] = SessionLocal,
        settings: Settings = default_settings,
        sources: Optional[Dict[Platform, SolvedProblemsSource]] = None,
    ):
        self.settings = settings
        self.config = settings.engine_config()
        self.store = SqlProgressStore(session_factory)
        self.registry = SessionRegistry(self._new_session)
        self.sources: Dict[Platform, SolvedProblemsSource] = (
            sources if sources is not None else {Platform.LEETCODE: LeetCodeSource(settings.LEETCODE_GRAPHQL_URL)}
        )
        self._toasts: Dict[str, ToastQueue] = {}
        self._last_sweep = time.monotonic()

    def _new_session(self, user_id: str) -> ProgressSession:
        return ProgressSession(
            user_id,
            self.store,
            config=self.config,
            max_retries=self.settings.SYNC_MAX_RETRIES,
            retry_base_delay=self.settings.SYNC_RETRY_BASE_DELAY,
        )

    def today(self) -> str:
        return today_iso(self.settings.TIMEZONE)

    # ----- sessions -----
    async def session_for(self, user_id: int, db: DBSession) -> ProgressSession:
        """Live session with a fresh catalog and the daily sets its dates refer to."""
        uid = str(user_id)
        await self._maybe_sweep()
        session = await self.registry.get_or_start(uid)
        session.start_auto_refresh(self.settings.SYNC_REFRESH_INTERVAL)
        dates = set(session.progress.completed_dates) | {self.today()}
        session.update_context(catalog=load_catalog(db), daily_sets=load_daily_sets(db, dates))
        return session

    async def _maybe_sweep(self) -> None:
        now = time.monotonic()
        if now - self._last_sweep < self.settings.SESSION_SWEEP_INTERVAL:
            return
        self._last_sweep = now
        await self.evict_idle()

    async def evict_idle(self) -> List[str]:
        """Flush and drop sessions (and their toast queues) idle past SESSION_IDLE_SECONDS."""
        evicted = await self.registry.evict_idle(self.settings.SESSION_IDLE_SECONDS)
        for uid in evicted:
            queue = self._toasts.pop(uid, None)
            if queue is not None:
                await queue.close()
        return evicted

    async def end_session(self, user_id: int) -> None:
        uid = str(user_id)
        queue = self._toasts.pop(uid, None)
        if queue is not None:
            await queue.close()
        await self.registry.evict(uid)

    async def close(self) -> None:
        for queue in list(self._toasts.values()):
            await queue.close()
        self._toasts.clear()
        await self.registry.close_all()

    # ----- events -----
    def _toast_queue(self, uid: str) -> ToastQueue:
        queue = self._toasts.get(uid)
        if queue is None:
            async def on_dismiss(toast: Toast) -> None:
                await broadcast_progress(uid, {"type": "toast_dismissed", "toast": toast.to_dict()})

            queue = ToastQueue(ttl=self.settings.TOAST_TTL_SECONDS, on_dismiss=on_dismiss)
            self._toasts[uid] = queue
        return queue

    async def publish(self, uid: str, events: List[ProgressEvent]) -> None:
        if not events:
            return
        toasts = self._toast_queue(uid).push_all(events)
        await broadcast_progress(
            uid,
            {
                "type": "progress_events",
                "events": [event_to_dict(e) for e in events],
                "toasts": [t.to_dict() for t in toasts],
            },
        )

    # ----- views -----
    def describe(self, session: ProgressSession) -> Dict[str, Any]:
        progress = session.progress
        today = self.today()
        info = level_info(progress.points, self.config)
        return {
            "progress": progress.to_dict(),
            "level": asdict(info),
            "effective_streak": effective_streak(progress, today),
            "calendar": [asdict(d) for d in streak_calendar(progress.completed_dates, today)],
            "sync": session.status_dict(),
        }

    # ----- transitions -----
    def _resolve_problem(self, session: ProgressSession, db: DBSession, problem_id: str) -> Problem:
        for problem in session.catalog.problems():
            if problem.id == problem_id:
                return problem
        for daily_set in session.daily_sets.values():
            for problem in daily_set.problems:
                if problem.id == problem_id:
                    return problem
        problem = find_problem(db, problem_id)
        if problem is None:
            raise ProblemNotFound(problem_id)
        return problem

    async def solve_problem(
        self, user: User, db: DBSession, problem_id: str, points: Optional[int] = None
    ) -> Tuple[ProgressSession, TransitionResult]:
        session = await self.session_for(user.id, db)
        problem = self._resolve_problem(session, db, problem_id)
        reward = problem.points if points is None else points
        result = session.solve_problem(problem.id, reward, self.today())
        await self.publish(session.user_id, result.events)
        return session, result

    async def attempt_problem(self, user: User, db: DBSession, problem_id: str) -> Tuple[ProgressSession, TransitionResult]:
        session = await self.session_for(user.id, db)
        self._resolve_problem(session, db, problem_id)
        return session, session.attempt_problem(problem_id)

    async def complete_block(
        self, user: User, db: DBSession, module_id: str, block_id: str
    ) -> Tuple[ProgressSession, TransitionResult]:
        session = await self.session_for(user.id, db)
        result = session.complete_block(module_id, block_id, self.today())
        await self.publish(session.user_id, result.events)
        return session, result

    async def absorb(self, user: User, db: DBSession, snapshot: UserProgress) -> Tuple[ProgressSession, MergeResult]:
        session = await self.session_for(user.id, db)
        return session, session.absorb(snapshot)

    async def refresh(self, user: User, db: DBSession) -> Tuple[ProgressSession, MergeResult]:
        session = await self.session_for(user.id, db)
        await session.flush()
        return session, await session.refresh()

    async def verify(self, user: User, db: DBSession) -> Tuple[ProgressSession, List[str], List[ProgressEvent]]:
        """Credit problems the user solved directly on a linked platform."""
        session = await self.session_for(user.id, db)
        handles = {
            Platform.LEETCODE: user.leetcode_username,
            Platform.GEEKSFORGEEKS: user.gfg_username,
        }
        discoveries = await discover_new_completions(
            handles, list_problems(db), session.progress.completed_daily_problem_ids, self.sources
        )
        today = self.today()
        events: List[ProgressEvent] = []
        for d in discoveries:
            events.extend(session.solve_problem(d.problem_id, d.points, today).events)
        if discoveries:
            logger.info("verified completions user=%s count=%s", user.id, len(discoveries))
        await self.publish(session.user_id, events)
        return session, [d.problem_id for d in discoveries], events

    # ----- reads -----
    def daily_challenge(self, db: DBSession, date: str, progress: Optional[UserProgress]) -> Optional[Dict[str, Any]]:
        daily_set = load_daily_set(db, date)
        if daily_set is None:
            return None
        solved = progress.completed_daily_problem_ids if progress else frozenset()
        solved_count = sum(1 for p in daily_set.problems if p.id in solved)
        return {
            "date": daily_set.date,
            "problems": [{**problem_dict(p), "solved": p.id in solved} for p in daily_set.problems],
            "solved_count": solved_count,
            "completed": bool(daily_set.problems) and solved_count == len(daily_set.problems),
            "credited": bool(progress and date in progress.completed_dates),
        }

    def leaderboard(self, db: DBSession, search: str = "") -> List[LeaderboardEntry]:
        summaries = []
        for row in db.query(DbUser).all():
            summary = to_user_summary(row)
            live = self.registry.get(summary.id)
            if live is not None:
                # Live sessions are ahead of the denormalized columns until their write lands.
                summary = replace(summary, points=live.progress.points, streak=live.progress.current_streak)
            summaries.append(summary)
        return build_leaderboard(summaries, self.config.tiers, search)

    def rank_of(self, db: DBSession, user_id: int) -> Optional[int]:
        return rank_of(self.leaderboard(db), str(user_id))


def problem_dict(problem: Problem) -> Dict[str, Any]:
    return {
        "id": problem.id,
        "title": problem.title,
        "points": problem.points,
        "difficulty": problem.difficulty.value,
        "platform": problem.platform.value,
        "external_link": problem.external_link,
        "description": problem.description,
        "topic": problem.topic,
    }


_service: Optional[ProgressService] = None


def get_progress_service() -> ProgressService:
    global _service
    if _service is None:
        _service = ProgressService()
    return _service


def set_progress_service(service: Optional[ProgressService]) -> None:
    global _service
    _service = service


async def shutdown_progress_service() -> None:
    if _service is not None:
        await _service.close()
