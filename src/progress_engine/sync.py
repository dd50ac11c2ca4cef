"""
Session-side progress state and its persistence.

A `ProgressSession` holds one user's snapshot in memory. Transitions are
applied synchronously in the order they arrive; persistence runs in the
background through a `SyncAdapter`, one write in flight per user, always
sending the newest snapshot (intermediate snapshots coalesce). A failed write
never rolls back local progress: it is retried with backoff and surfaced
through `status`. A write the store rejects as stale (the snapshot predates
the stored version) is merged onto a fresh read and sent again.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from progress_engine.config import DEFAULT_CONFIG, EngineConfig
from progress_engine.models import Catalog, DailyChallengeSet, UserProgress
from progress_engine.reconcile import MergeResult, merge_progress, rederive_modules
from progress_engine.transitions import (
    TransitionResult,
    mark_block_complete,
    mark_problem_attempted,
    mark_problem_solved,
)

logger = logging.getLogger(__name__)

# Anything with a `.progress` snapshot: transition results and merge results.
Outcome = Union[TransitionResult, MergeResult]


class SyncError(Exception):
    """Raised by adapters when a remote read or write fails."""


class StaleWriteError(SyncError):
    """A save was based on an older version than the one stored. Retrying it unchanged cannot succeed."""


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


class SyncAdapter(ABC):
    """
    Persistence contract the session needs. Implementations live in `infra`.
    """

    @abstractmethod
    async def load_progress(self, user_id: str) -> UserProgress:
        """Return the stored snapshot, or an empty one for a new user."""
        raise NotImplementedError

    @abstractmethod
    async def save_progress(self, progress: UserProgress) -> int:
        """
        Idempotent upsert by user id. Returns the acknowledged version, which
        must be greater than any version previously returned for the user.
        Raises `StaleWriteError` when `progress.version` is below the stored
        version, so a snapshot that never saw the stored state cannot replace it.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_user_accumulators(self, user_id: str, points: int, streak: int) -> None:
        """Write denormalized leaderboard fields back to the account record."""
        raise NotImplementedError


class ProgressSession:
    def __init__(
        self,
        user_id: str,
        adapter: SyncAdapter,
        *,
        catalog: Optional[Catalog] = None,
        daily_sets: Optional[Mapping[str, DailyChallengeSet]] = None,
        config: EngineConfig = DEFAULT_CONFIG,
        max_retries: int = 3,
        retry_base_delay: float = 0.5,
    ):
        self.user_id = user_id
        self.adapter = adapter
        self.catalog = catalog or Catalog()
        self.daily_sets: Dict[str, DailyChallengeSet] = dict(daily_sets or {})
        self.config = config
        self.max_retries = max(1, max_retries)
        self.retry_base_delay = retry_base_delay

        self._progress = UserProgress.empty(user_id)
        self._status = SyncStatus.IDLE
        self._last_error: Optional[str] = None
        self._local_seq = 0
        self._acked_seq = 0
        self._written_accumulators: Optional[Tuple[int, int]] = None
        self._writer: Optional[asyncio.Task] = None
        self._refresher: Optional[asyncio.Task] = None
        self._closed = False

    # ----- state -----
    @property
    def progress(self) -> UserProgress:
        return self._progress

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def pending(self) -> bool:
        """True while local changes have not been acknowledged by the adapter."""
        return self._acked_seq < self._local_seq

    def status_dict(self) -> Dict[str, Any]:
        return {
            "status": self._status.value,
            "pending": self.pending,
            "last_error": self._last_error,
            "version": self._progress.version,
        }

    def update_context(
        self,
        catalog: Optional[Catalog] = None,
        daily_sets: Optional[Mapping[str, DailyChallengeSet]] = None,
    ) -> None:
        if daily_sets is not None:
            self.daily_sets.update(daily_sets)
        if catalog is None or catalog == self.catalog:
            return
        self.catalog = catalog
        # Blocks added to or removed from a module change what "completed" means.
        rederived = rederive_modules(self._progress, catalog)
        if rederived != self._progress and not self._closed:
            logger.info("module completion re-derived after catalog change user=%s", self.user_id)
            self._progress = rederived
            self._schedule_save()

    # ----- lifecycle -----
    async def start(self) -> UserProgress:
        """Load the remote snapshot. A failed read starts from an empty snapshot."""
        try:
            remote = await self.adapter.load_progress(self.user_id)
        except Exception as e:
            logger.exception("progress load failed user=%s", self.user_id)
            self._progress = UserProgress.empty(self.user_id)
            self._set_error(e)
            return self._progress
        self._progress = remote
        self._written_accumulators = (remote.points, remote.current_streak)
        self._status = SyncStatus.IDLE
        return self._progress

    async def close(self) -> None:
        """Flush pending writes and cancel background tasks."""
        if self._closed:
            return
        if self._refresher is not None:
            self._refresher.cancel()
            try:
                await self._refresher
            except asyncio.CancelledError:
                pass
            self._refresher = None
        await self.flush()
        self._closed = True

    # ----- transitions -----
    def apply(self, transition: Callable[..., Outcome], *args: Any, **kwargs: Any) -> Outcome:
        """Run a transition against the current snapshot and persist the result."""
        if self._closed:
            raise RuntimeError(f"Session for {self.user_id} is closed")
        result = transition(self._progress, *args, **kwargs)
        if result.progress is not self._progress:
            self._progress = result.progress
            self._schedule_save()
        return result

    def solve_problem(self, problem_id: str, points: int, today: str) -> TransitionResult:
        return self.apply(mark_problem_solved, problem_id, points, today, self.daily_sets, self.config)

    def complete_block(self, module_id: str, block_id: str, today: Optional[str] = None) -> TransitionResult:
        return self.apply(
            mark_block_complete, self.catalog, module_id, block_id, today, self.daily_sets, self.config
        )

    def attempt_problem(self, problem_id: str) -> TransitionResult:
        return self.apply(mark_problem_attempted, problem_id)

    def absorb(self, snapshot: UserProgress) -> MergeResult:
        """
        Merge a snapshot pushed by another client into the live state.

        A client snapshot was never acknowledged by the store, so its version
        and accumulators carry no authority: only its completion sets are
        merged, and points or streak rise only as far as those sets imply.
        """
        snapshot = replace(snapshot, user_id=self.user_id, version=0, points=0, current_streak=0)
        return self.apply(
            merge_progress,
            snapshot,
            self.catalog,
            self.daily_sets,
            self.config,
            local_pending=True,
        )

    # ----- persistence -----
    def _schedule_save(self) -> None:
        self._local_seq += 1
        if self._writer is None or self._writer.done():
            self._writer = asyncio.get_running_loop().create_task(self._drain())

    async def flush(self) -> None:
        """Wait until every local change is acknowledged or the retries run out."""
        if self.pending and (self._writer is None or self._writer.done()):
            self._writer = asyncio.get_running_loop().create_task(self._drain())
        if self._writer is not None:
            await self._writer

    async def _drain(self) -> None:
        rebases = 0
        while self.pending:
            seq = self._local_seq
            snapshot = self._progress
            self._status = SyncStatus.SYNCING
            try:
                version = await self._persist(snapshot)
            except StaleWriteError as e:
                rebases += 1
                if rebases > self.max_retries or not await self._rebase():
                    self._set_error(e)
                    return
                continue
            except SyncError as e:
                self._set_error(e)
                return
            self._acked_seq = seq
            # Later mutations may have landed during the await; keep them.
            self._progress = replace(self._progress, version=max(self._progress.version, version))
        self._status = SyncStatus.IDLE
        self._last_error = None

    async def _persist(self, snapshot: UserProgress) -> int:
        attempt = 0
        while True:
            try:
                version = await self.adapter.save_progress(snapshot)
                accumulators = (snapshot.points, snapshot.current_streak)
                if accumulators != self._written_accumulators:
                    await self.adapter.update_user_accumulators(self.user_id, *accumulators)
                    self._written_accumulators = accumulators
                return version
            except StaleWriteError:
                raise
            except Exception as e:
                attempt += 1
                if attempt >= self.max_retries:
                    logger.exception("progress save failed user=%s attempts=%s", self.user_id, attempt)
                    raise SyncError(str(e)) from e
                delay = self.retry_base_delay * (2 ** (attempt - 1))
                logger.warning("progress save retry user=%s attempt=%s delay=%.2fs error=%s", self.user_id, attempt, delay, e)
                await asyncio.sleep(delay)

    async def _rebase(self) -> bool:
        """Merge the pending snapshot onto the stored one after a rejected write."""
        try:
            remote = await self.adapter.load_progress(self.user_id)
        except Exception as e:
            logger.exception("progress reload failed user=%s", self.user_id)
            self._set_error(e)
            return False
        logger.warning(
            "stale write user=%s local_version=%s stored_version=%s, merging",
            self.user_id,
            self._progress.version,
            remote.version,
        )
        result = merge_progress(
            self._progress, remote, self.catalog, self.daily_sets, self.config, local_pending=True
        )
        self._progress = result.progress
        if self._written_accumulators is None:
            self._written_accumulators = (remote.points, remote.current_streak)
        return True

    def _set_error(self, exc: BaseException) -> None:
        self._status = SyncStatus.ERROR
        self._last_error = str(exc) or exc.__class__.__name__

    # ----- remote refresh -----
    async def refresh(self) -> MergeResult:
        """
        Pull the remote snapshot and merge it into local state. In-flight local
        changes are kept; if the merge produced anything the remote lacks, it
        is written back.
        """
        try:
            remote = await self.adapter.load_progress(self.user_id)
        except Exception as e:
            logger.exception("progress refresh failed user=%s", self.user_id)
            self._set_error(e)
            return MergeResult(self._progress, False)

        result = merge_progress(
            self._progress,
            remote,
            self.catalog,
            self.daily_sets,
            self.config,
            local_pending=self.pending,
        )
        self._progress = result.progress
        if result.progress != remote:
            self._schedule_save()
        return result

    def start_auto_refresh(self, interval: float) -> None:
        if interval <= 0 or self._closed:
            return
        if self._refresher is not None and not self._refresher.done():
            return
        self._refresher = asyncio.get_running_loop().create_task(self._refresh_loop(interval))

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            if self.pending:
                await self.flush()
            await self.refresh()


class SessionRegistry:
    """One live `ProgressSession` per user id, with the time each was last used."""

    def __init__(self, factory: Callable[[str], ProgressSession], clock: Callable[[], float] = time.monotonic):
        self._factory = factory
        self._clock = clock
        self._sessions: Dict[str, ProgressSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._last_access: Dict[str, float] = {}

    def get(self, user_id: str) -> Optional[ProgressSession]:
        return self._sessions.get(user_id)

    async def get_or_start(self, user_id: str) -> ProgressSession:
        session = self._sessions.get(user_id)
        if session is None:
            lock = self._locks.setdefault(user_id, asyncio.Lock())
            async with lock:
                session = self._sessions.get(user_id)
                if session is None:
                    session = self._factory(user_id)
                    await session.start()
                    self._sessions[user_id] = session
        self._last_access[user_id] = self._clock()
        return session

    def idle_user_ids(self, max_idle: float) -> List[str]:
        now = self._clock()
        return [uid for uid in self._sessions if now - self._last_access.get(uid, now) > max_idle]

    async def evict(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        self._locks.pop(user_id, None)
        self._last_access.pop(user_id, None)
        if session is not None:
            await session.close()

    async def evict_idle(self, max_idle: float) -> List[str]:
        """Flush and drop every session unused for more than `max_idle` seconds."""
        idle = self.idle_user_ids(max_idle)
        for user_id in idle:
            await self.evict(user_id)
        if idle:
            logger.info("evicted idle progress sessions count=%s", len(idle))
        return idle

    async def close_all(self) -> None:
        for user_id in list(self._sessions):
            await self.evict(user_id)

    def __len__(self) -> int:
        return len(self._sessions)
