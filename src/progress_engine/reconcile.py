"""
Reconciliation of a locally mutated snapshot with a remotely fetched one.

Completion sets only ever grow, so they merge by union. Points and streak are
accumulators and cannot be unioned: the side whose write was acknowledged
last (higher `version`, remote on ties) is authoritative, and the result is
then checked against what the merged completion sets imply.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Mapping, NamedTuple, Optional

from progress_engine.config import DEFAULT_CONFIG, EngineConfig
from progress_engine.models import Catalog, DailyChallengeSet, UserProgress, UserUnitProgress
from progress_engine.streak import streak_run
from progress_engine.unlock import derive_module_completed, is_track_completed

logger = logging.getLogger(__name__)


class MergeResult(NamedTuple):
    progress: UserProgress
    conflict: bool


def problem_points_index(
    catalog: Optional[Catalog],
    daily_sets: Optional[Mapping[str, DailyChallengeSet]] = None,
) -> Dict[str, int]:
    index: Dict[str, int] = {}
    if catalog is not None:
        for problem in catalog.problems():
            index[problem.id] = problem.points
    for daily_set in (daily_sets or {}).values():
        for problem in daily_set.problems:
            index.setdefault(problem.id, problem.points)
    return index


def implied_points(
    progress: UserProgress,
    catalog: Optional[Catalog] = None,
    daily_sets: Optional[Mapping[str, DailyChallengeSet]] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> int:
    """
    Lower bound on points given the completion sets. Blocks and problems the
    catalog no longer knows about are not counted.
    """
    total = 0
    if catalog is not None:
        for module_id, unit in progress.unit_progress.items():
            found = catalog.find_module(module_id)
            if found is None:
                continue
            known = {b.id for b in found[1].blocks}
            total += config.block_xp * len(unit.completed_block_ids & known)
    points_by_problem = problem_points_index(catalog, daily_sets)
    total += sum(points_by_problem.get(pid, 0) for pid in progress.completed_daily_problem_ids)
    total += config.daily_bonus_xp * len(progress.completed_dates)
    return total


def _merge_units(
    local: Mapping[str, UserUnitProgress],
    remote: Mapping[str, UserUnitProgress],
    catalog: Optional[Catalog],
) -> Dict[str, UserUnitProgress]:
    merged: Dict[str, UserUnitProgress] = {}
    for module_id in set(local) | set(remote):
        a = local.get(module_id)
        b = remote.get(module_id)
        blocks = (a.completed_block_ids if a else frozenset()) | (b.completed_block_ids if b else frozenset())
        found = catalog.find_module(module_id) if catalog is not None else None
        if found is not None:
            completed = derive_module_completed(found[1], blocks)
        else:
            completed = bool((a and a.module_completed) or (b and b.module_completed))
        merged[module_id] = UserUnitProgress(
            module_id=module_id,
            completed_block_ids=blocks,
            unlocked=bool((a and a.unlocked) or (b and b.unlocked)),
            module_completed=completed,
        )
    return merged


def _local_only(local: UserProgress, remote: UserProgress) -> UserProgress:
    """Completions recorded locally that the remote snapshot does not have."""
    units: Dict[str, UserUnitProgress] = {}
    for mid, unit in local.unit_progress.items():
        theirs = remote.unit_progress.get(mid)
        done = unit.completed_block_ids - (theirs.completed_block_ids if theirs else frozenset())
        units[mid] = replace(unit, completed_block_ids=done)
    return replace(
        local,
        completed_daily_problem_ids=local.completed_daily_problem_ids - remote.completed_daily_problem_ids,
        completed_dates=local.completed_dates - remote.completed_dates,
        unit_progress=units,
    )


def merge_progress(
    local: UserProgress,
    remote: UserProgress,
    catalog: Optional[Catalog] = None,
    daily_sets: Optional[Mapping[str, DailyChallengeSet]] = None,
    config: EngineConfig = DEFAULT_CONFIG,
    local_pending: bool = False,
) -> MergeResult:
    """
    Merge `remote` into `local`.

    `local_pending` says the local snapshot carries changes not yet
    acknowledged. Scalar accumulators come from:
    - local, when its acknowledged version is newer, or equal with pending changes
      (both sides share the same base and only local moved on);
    - remote otherwise. If local still had pending changes, the points those
      local-only completions imply are added on top of the remote value.
    Finally both scalars are raised to what the merged sets imply, and any
    such correction is reported as a conflict.
    """
    if local.user_id != remote.user_id:
        raise ValueError(f"Cannot merge progress of {local.user_id} with {remote.user_id}")

    units = _merge_units(local.unit_progress, remote.unit_progress, catalog)
    dates = local.completed_dates | remote.completed_dates
    last_dates = [d for d in (local.last_challenge_date, remote.last_challenge_date) if d]
    last = max(last_dates) if last_dates else None

    completed_modules = frozenset(mid for mid, u in units.items() if u.module_completed)
    # Modules the catalog no longer has keep whatever either side recorded.
    if catalog is not None:
        completed_modules |= frozenset(
            mid
            for mid in local.completed_module_ids | remote.completed_module_ids
            if catalog.find_module(mid) is None
        )
    else:
        completed_modules |= local.completed_module_ids | remote.completed_module_ids

    conflict = False
    local_wins = local.version > remote.version or (local.version == remote.version and local_pending)
    authoritative = local if local_wins else remote
    if not local_wins and local_pending and remote.version > local.version:
        carried = implied_points(_local_only(local, remote), catalog, daily_sets, config)
        if carried:
            logger.warning(
                "concurrent write user=%s remote_version=%s carrying local xp=%s",
                local.user_id,
                remote.version,
                carried,
            )
            authoritative = replace(remote, points=remote.points + carried)
            conflict = True
    merged = replace(
        authoritative,
        completed_daily_problem_ids=local.completed_daily_problem_ids | remote.completed_daily_problem_ids,
        attempted_problem_ids=local.attempted_problem_ids | remote.attempted_problem_ids,
        completed_dates=dates,
        completed_module_ids=completed_modules,
        completed_track_ids=local.completed_track_ids | remote.completed_track_ids,
        unit_progress=units,
        last_challenge_date=last,
        version=max(local.version, remote.version),
    )
    if catalog is not None:
        tracks = frozenset(t.id for t in catalog.tracks if is_track_completed(t, merged))
        merged = replace(merged, completed_track_ids=merged.completed_track_ids | tracks)

    floor = implied_points(merged, catalog, daily_sets, config)
    if merged.points < floor:
        logger.warning(
            "points conflict user=%s authoritative=%s implied=%s", merged.user_id, merged.points, floor
        )
        merged = replace(merged, points=floor)
        conflict = True
    run = streak_run(merged.completed_dates, merged.last_challenge_date)
    if merged.current_streak < run:
        logger.warning(
            "streak conflict user=%s authoritative=%s implied=%s", merged.user_id, merged.current_streak, run
        )
        merged = replace(merged, current_streak=run)
        conflict = True

    return MergeResult(merged, conflict)


def rederive_modules(progress: UserProgress, catalog: Catalog) -> UserProgress:
    """Re-derive every module's completion flag after a catalog change."""
    units: Dict[str, UserUnitProgress] = {}
    for mid, unit in progress.unit_progress.items():
        found = catalog.find_module(mid)
        if found is None:
            units[mid] = unit
            continue
        units[mid] = replace(unit, module_completed=derive_module_completed(found[1], unit.completed_block_ids))
    return replace(progress, unit_progress=units)
