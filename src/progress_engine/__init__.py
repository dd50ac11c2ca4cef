"""
Progress engine: points, streaks, module unlocks and leaderboard accounting.

Pure transitions (no I/O):
- transitions: mark_problem_solved, mark_block_complete, mark_problem_attempted
- unlock: is_module_locked, module_states, next_item
- tiers: level_info, tier_for
- reconcile: merge_progress, implied_points
- leaderboard: build_leaderboard, rank_of
- streak: streak_calendar, effective_streak

Async session side:
- sync: SyncAdapter, ProgressSession, SessionRegistry
- notifications: ToastQueue
- verification: SolvedProblemsSource, discover_new_completions
"""

from progress_engine.config import DEFAULT_CONFIG, RANK_TIERS, EngineConfig, Tier, parse_tier_table
from progress_engine.events import (
    DailyChallengeCompleted,
    EventKind,
    ModuleCompleted,
    TrackCompleted,
    XpAwarded,
    XpReason,
    event_to_dict,
)
from progress_engine.leaderboard import LeaderboardEntry, build_leaderboard, rank_of
from progress_engine.models import (
    BlockType,
    Catalog,
    ContentBlock,
    DailyChallengeSet,
    Difficulty,
    Module,
    Platform,
    Problem,
    Role,
    Track,
    UserProgress,
    UserSummary,
    UserUnitProgress,
)
from progress_engine.reconcile import MergeResult, implied_points, merge_progress
from progress_engine.streak import StreakDay, effective_streak, streak_calendar
from progress_engine.tiers import LevelInfo, level_info, tier_for
from progress_engine.transitions import (
    TransitionResult,
    mark_block_complete,
    mark_problem_attempted,
    mark_problem_solved,
)
from progress_engine.unlock import ModuleState, is_module_locked, module_states, next_item

__all__ = [
    # config
    "DEFAULT_CONFIG",
    "RANK_TIERS",
    "EngineConfig",
    "Tier",
    "parse_tier_table",
    # events
    "DailyChallengeCompleted",
    "EventKind",
    "ModuleCompleted",
    "TrackCompleted",
    "XpAwarded",
    "XpReason",
    "event_to_dict",
    # models
    "BlockType",
    "Catalog",
    "ContentBlock",
    "DailyChallengeSet",
    "Difficulty",
    "Module",
    "Platform",
    "Problem",
    "Role",
    "Track",
    "UserProgress",
    "UserSummary",
    "UserUnitProgress",
    # transitions
    "TransitionResult",
    "mark_block_complete",
    "mark_problem_attempted",
    "mark_problem_solved",
    # queries
    "ModuleState",
    "is_module_locked",
    "module_states",
    "next_item",
    "LevelInfo",
    "level_info",
    "tier_for",
    "StreakDay",
    "effective_streak",
    "streak_calendar",
    "LeaderboardEntry",
    "build_leaderboard",
    "rank_of",
    # reconciliation
    "MergeResult",
    "implied_points",
    "merge_progress",
]
