"""
Progress state transitions.

Every function here is pure: it takes the current snapshot plus catalog,
daily sets, date and config as arguments and returns a new snapshot with the
ordered list of events the UI should display. Repeating a completion that is
already recorded returns the input snapshot unchanged and no events, so
duplicate clicks and replayed sync messages are harmless.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Mapping, NamedTuple, Optional

from progress_engine.config import DEFAULT_CONFIG, EngineConfig
from progress_engine.events import (
    DailyChallengeCompleted,
    ModuleCompleted,
    ProgressEvent,
    TrackCompleted,
    XpAwarded,
    XpReason,
)
from progress_engine.models import BlockType, Catalog, DailyChallengeSet, Track, UserProgress, UserUnitProgress
from progress_engine.streak import continued_streak, is_daily_set_complete
from progress_engine.unlock import derive_module_completed, is_module_locked, is_track_completed, unlock_chain

logger = logging.getLogger(__name__)

DailySets = Mapping[str, DailyChallengeSet]


class TransitionResult(NamedTuple):
    progress: UserProgress
    events: List[ProgressEvent]


def _unchanged(progress: UserProgress) -> TransitionResult:
    return TransitionResult(progress, [])


def mark_problem_solved(
    progress: UserProgress,
    problem_id: str,
    reward_points: int,
    today: Optional[str],
    daily_sets: Optional[DailySets] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> TransitionResult:
    """
    Record a solved problem and award its points.

    When the solve completes every problem of today's daily set, the streak and
    the daily bonus are credited once for that date. Problems solved on earlier
    days count toward completing today's set.
    """
    if reward_points < 0:
        raise ValueError(f"reward_points must be >= 0, got {reward_points}")
    if problem_id in progress.completed_daily_problem_ids:
        logger.debug("problem already solved user=%s problem=%s", progress.user_id, problem_id)
        return _unchanged(progress)

    solved = progress.completed_daily_problem_ids | {problem_id}
    points = progress.points + reward_points
    events: List[ProgressEvent] = []
    if reward_points:
        events.append(XpAwarded(reward_points, XpReason.PROBLEM))
    updated = replace(progress, completed_daily_problem_ids=solved, points=points)
    logger.info("problem solved user=%s problem=%s xp=%s", progress.user_id, problem_id, reward_points)

    daily_set = (daily_sets or {}).get(today) if today else None
    if (
        daily_set is not None
        and problem_id in daily_set
        and is_daily_set_complete(daily_set, solved)
        and progress.last_challenge_date != today
    ):
        streak = continued_streak(progress.current_streak, progress.last_challenge_date, today)
        updated = replace(
            updated,
            current_streak=streak,
            points=updated.points + config.daily_bonus_xp,
            last_challenge_date=today,
            completed_dates=updated.completed_dates | {today},
        )
        if config.daily_bonus_xp:
            events.append(XpAwarded(config.daily_bonus_xp, XpReason.DAILY_BONUS))
        events.append(DailyChallengeCompleted(date=today, streak=streak))
        logger.info("daily challenge completed user=%s date=%s streak=%s", progress.user_id, today, streak)

    return TransitionResult(updated, events)


def _new_unit(track: Track, module_id: str) -> UserUnitProgress:
    chain = unlock_chain(track)
    first = chain[0].id if chain else None
    return UserUnitProgress(module_id=module_id, unlocked=module_id == first)


def mark_block_complete(
    progress: UserProgress,
    catalog: Catalog,
    module_id: str,
    block_id: str,
    today: Optional[str] = None,
    daily_sets: Optional[DailySets] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> TransitionResult:
    """
    Record a completed content block, award block XP and re-derive the
    module's completion. A problem block also runs `mark_problem_solved` for
    its problem so block-level and problem-level completion stay in step.
    """
    found = catalog.find_module(module_id)
    if found is None:
        logger.warning("block completion for unknown module user=%s module=%s", progress.user_id, module_id)
        return _unchanged(progress)
    track, module = found
    block = module.find_block(block_id)
    if block is None:
        logger.warning("unknown block user=%s module=%s block=%s", progress.user_id, module_id, block_id)
        return _unchanged(progress)
    if is_module_locked(track, module_id, progress):
        logger.warning("locked module access rejected user=%s module=%s", progress.user_id, module_id)
        return _unchanged(progress)

    unit = progress.unit_progress.get(module_id) or _new_unit(track, module_id)
    if block_id in unit.completed_block_ids:
        logger.debug("block already completed user=%s block=%s", progress.user_id, block_id)
        return _unchanged(progress)

    completed = unit.completed_block_ids | {block_id}
    events: List[ProgressEvent] = []
    points = progress.points
    if config.block_xp:
        points += config.block_xp
        events.append(XpAwarded(config.block_xp, XpReason.BLOCK))

    now_completed = derive_module_completed(module, completed)
    new_unit = replace(unit, completed_block_ids=completed, unlocked=True, module_completed=now_completed)
    updated = replace(
        progress,
        points=points,
        unit_progress={**progress.unit_progress, module_id: new_unit},
    )

    if now_completed and not unit.module_completed:
        updated = replace(updated, completed_module_ids=updated.completed_module_ids | {module_id})
        events.append(ModuleCompleted(module_id))
        logger.info("module completed user=%s module=%s", progress.user_id, module_id)
        if is_track_completed(track, updated) and track.id not in updated.completed_track_ids:
            updated = replace(updated, completed_track_ids=updated.completed_track_ids | {track.id})
            events.append(TrackCompleted(track.id))
            logger.info("track completed user=%s track=%s", progress.user_id, track.id)

    if block.type == BlockType.PROBLEM and block.problem is not None:
        solved = mark_problem_solved(
            updated,
            block.problem.id,
            block.problem.points,
            today,
            daily_sets,
            config,
        )
        updated = solved.progress
        events.extend(solved.events)

    return TransitionResult(updated, events)


def mark_problem_attempted(progress: UserProgress, problem_id: str) -> TransitionResult:
    """Remember that the user opened a problem on its platform. No points."""
    if problem_id in progress.attempted_problem_ids:
        return _unchanged(progress)
    return TransitionResult(
        replace(progress, attempted_problem_ids=progress.attempted_problem_ids | {problem_id}),
        [],
    )
