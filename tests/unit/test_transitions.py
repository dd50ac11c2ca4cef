"""Unit tests for progress transitions (problem solve, block completion, attempts)."""
import pytest

from progress_engine.config import EngineConfig
from progress_engine.events import (
    DailyChallengeCompleted,
    ModuleCompleted,
    TrackCompleted,
    XpAwarded,
    XpReason,
    total_xp,
)
from progress_engine.models import DailyChallengeSet, Problem, UserProgress
from progress_engine.transitions import mark_block_complete, mark_problem_attempted, mark_problem_solved
from progress_engine.unlock import is_module_locked

TODAY = "2024-01-01"


@pytest.mark.unit
class TestMarkProblemSolved:
    def test_completing_daily_set_awards_bonus_and_streak(self, fresh, daily_sets):
        result = mark_problem_solved(fresh, "dp1", 10, TODAY, daily_sets)
        p = result.progress
        assert p.points == 110
        assert p.completed_daily_problem_ids == {"dp1"}
        assert p.current_streak == 1
        assert p.last_challenge_date == TODAY
        assert p.completed_dates == {TODAY}
        assert result.events == [
            XpAwarded(10, XpReason.PROBLEM),
            XpAwarded(100, XpReason.DAILY_BONUS),
            DailyChallengeCompleted(date=TODAY, streak=1),
        ]

    def test_resubmit_is_noop(self, fresh, daily_sets):
        first = mark_problem_solved(fresh, "dp1", 10, TODAY, daily_sets).progress
        again = mark_problem_solved(first, "dp1", 10, TODAY, daily_sets)
        assert again.progress is first
        assert again.events == []

    def test_non_daily_problem_awards_only_points(self, fresh, daily_sets):
        result = mark_problem_solved(fresh, "q1", 20, TODAY, daily_sets)
        assert result.progress.points == 20
        assert result.progress.current_streak == 0
        assert result.progress.completed_dates == frozenset()
        assert result.events == [XpAwarded(20, XpReason.PROBLEM)]

    def test_no_daily_set_today(self, fresh):
        result = mark_problem_solved(fresh, "dp1", 10, TODAY, {})
        assert result.progress.points == 10
        assert result.progress.last_challenge_date is None

    def test_today_none_skips_daily_step(self, fresh, daily_sets):
        result = mark_problem_solved(fresh, "dp1", 10, None, daily_sets)
        assert result.progress.points == 10
        assert result.progress.completed_dates == frozenset()

    def test_empty_daily_set_never_completes(self, fresh):
        sets = {TODAY: DailyChallengeSet(date=TODAY, problems=())}
        result = mark_problem_solved(fresh, "dp1", 10, TODAY, sets)
        assert result.progress.current_streak == 0

    def test_multi_problem_set_credits_on_last_solve(self, fresh):
        a = Problem(id="a", title="A", points=5)
        b = Problem(id="b", title="B", points=7)
        sets = {TODAY: DailyChallengeSet(date=TODAY, problems=(a, b))}
        first = mark_problem_solved(fresh, "a", 5, TODAY, sets)
        assert first.progress.current_streak == 0
        assert [e.kind.value for e in first.events] == ["xp_awarded"]
        second = mark_problem_solved(first.progress, "b", 7, TODAY, sets)
        assert second.progress.points == 5 + 7 + 100
        assert second.progress.current_streak == 1

    def test_problem_solved_on_earlier_day_counts_toward_today(self, fresh):
        a = Problem(id="a", title="A", points=5)
        b = Problem(id="b", title="B", points=5)
        sets = {TODAY: DailyChallengeSet(date=TODAY, problems=(a, b))}
        earlier = mark_problem_solved(fresh, "a", 5, "2023-12-20", sets).progress
        result = mark_problem_solved(earlier, "b", 5, TODAY, sets)
        assert result.progress.completed_dates == {TODAY}
        assert result.progress.points == 110

    def test_streak_continues_from_yesterday(self, daily_sets):
        start = UserProgress(user_id="u1", current_streak=4, last_challenge_date="2023-12-31")
        result = mark_problem_solved(start, "dp1", 10, TODAY, daily_sets)
        assert result.progress.current_streak == 5

    def test_streak_resets_after_gap(self, daily_sets):
        start = UserProgress(user_id="u1", current_streak=4, last_challenge_date="2023-12-28")
        result = mark_problem_solved(start, "dp1", 10, TODAY, daily_sets)
        assert result.progress.current_streak == 1
        assert result.events[-1] == DailyChallengeCompleted(date=TODAY, streak=1)

    def test_streak_credited_once_per_date(self, daily_sets):
        # Bonus already taken today (e.g. on another device) before dp1 arrives here.
        start = UserProgress(user_id="u1", current_streak=3, last_challenge_date=TODAY, completed_dates=frozenset({TODAY}))
        result = mark_problem_solved(start, "dp1", 10, TODAY, daily_sets)
        assert result.progress.current_streak == 3
        assert result.progress.points == 10
        assert total_xp(result.events) == 10

    def test_zero_reward_emits_no_xp_event(self, fresh):
        result = mark_problem_solved(fresh, "free", 0, TODAY)
        assert result.progress.completed_daily_problem_ids == {"free"}
        assert result.events == []

    def test_negative_reward_rejected(self, fresh):
        with pytest.raises(ValueError):
            mark_problem_solved(fresh, "q1", -5, TODAY)

    def test_zero_bonus_config_still_credits_streak(self, fresh, daily_sets):
        config = EngineConfig(daily_bonus_xp=0)
        result = mark_problem_solved(fresh, "dp1", 10, TODAY, daily_sets, config)
        assert result.progress.points == 10
        assert result.progress.current_streak == 1
        assert [type(e) for e in result.events] == [XpAwarded, DailyChallengeCompleted]

    def test_input_snapshot_not_mutated(self, fresh, daily_sets):
        mark_problem_solved(fresh, "dp1", 10, TODAY, daily_sets)
        assert fresh == UserProgress.empty("u1")


@pytest.mark.unit
class TestMarkBlockComplete:
    def test_module_completion_across_two_blocks(self, fresh, catalog):
        first = mark_block_complete(fresh, catalog, "mod-1", "v1", TODAY)
        assert first.events == [XpAwarded(25, XpReason.BLOCK)]
        assert not first.progress.unit_progress["mod-1"].module_completed

        second = mark_block_complete(first.progress, catalog, "mod-1", "p1", TODAY)
        unit = second.progress.unit_progress["mod-1"]
        assert unit.module_completed
        assert unit.completed_block_ids == {"v1", "p1"}
        assert second.events == [
            XpAwarded(25, XpReason.BLOCK),
            ModuleCompleted("mod-1"),
            XpAwarded(20, XpReason.PROBLEM),
        ]
        assert second.progress.points == 70
        assert total_xp(first.events) + total_xp(second.events) == 70
        assert second.progress.completed_module_ids == {"mod-1"}
        assert "q1" in second.progress.completed_daily_problem_ids

    def test_duplicate_block_is_noop(self, fresh, catalog):
        p = mark_block_complete(fresh, catalog, "mod-1", "v1").progress
        again = mark_block_complete(p, catalog, "mod-1", "v1")
        assert again.progress is p
        assert again.events == []

    def test_module_completed_fires_once(self, fresh, catalog):
        p = fresh
        fired = 0
        for block in ("v1", "p1", "v1", "p1"):
            result = mark_block_complete(p, catalog, "mod-1", block)
            fired += sum(isinstance(e, ModuleCompleted) for e in result.events)
            p = result.progress
        assert fired == 1

    def test_locked_module_rejected(self, fresh, catalog):
        result = mark_block_complete(fresh, catalog, "mod-2", "v2")
        assert result.progress is fresh
        assert result.events == []

    def test_unlocks_next_module_without_explicit_call(self, fresh, catalog, track):
        assert is_module_locked(track, "mod-2", fresh)
        p = mark_block_complete(fresh, catalog, "mod-1", "v1").progress
        assert is_module_locked(track, "mod-2", p)
        p = mark_block_complete(p, catalog, "mod-1", "p1").progress
        assert not is_module_locked(track, "mod-2", p)

    def test_unknown_module_and_block_are_noops(self, fresh, catalog):
        assert mark_block_complete(fresh, catalog, "nope", "v1").progress is fresh
        assert mark_block_complete(fresh, catalog, "mod-1", "nope").progress is fresh

    def test_hidden_block_does_not_gate_completion(self, fresh, catalog):
        p = mark_block_complete(fresh, catalog, "mod-1", "v1").progress
        p = mark_block_complete(p, catalog, "mod-1", "p1").progress
        result = mark_block_complete(p, catalog, "mod-2", "v2")
        assert result.progress.unit_progress["mod-2"].module_completed
        assert ModuleCompleted("mod-2") in result.events

    def test_track_completed_after_last_module(self, fresh, catalog):
        p = fresh
        events = []
        for module_id, block_id in [("mod-1", "v1"), ("mod-1", "p1"), ("mod-2", "v2"), ("mod-3", "v3")]:
            result = mark_block_complete(p, catalog, module_id, block_id)
            p = result.progress
            events.extend(result.events)
        assert TrackCompleted("dsa-01") in events
        assert p.completed_track_ids == {"dsa-01"}
        assert events.index(ModuleCompleted("mod-3")) < events.index(TrackCompleted("dsa-01"))

    def test_problem_already_solved_awards_only_block_xp(self, fresh, catalog):
        p = mark_problem_solved(fresh, "q1", 20, TODAY).progress
        p = mark_block_complete(p, catalog, "mod-1", "v1").progress
        result = mark_block_complete(p, catalog, "mod-1", "p1")
        assert total_xp(result.events) == 25
        assert result.progress.points == 20 + 25 + 25

    def test_problem_block_can_complete_daily_set(self, fresh, catalog, two_sum):
        sets = {TODAY: DailyChallengeSet(date=TODAY, problems=(two_sum,))}
        p = mark_block_complete(fresh, catalog, "mod-1", "v1", TODAY, sets).progress
        result = mark_block_complete(p, catalog, "mod-1", "p1", TODAY, sets)
        assert result.progress.current_streak == 1
        assert isinstance(result.events[-1], DailyChallengeCompleted)

    def test_points_never_decrease(self, fresh, catalog, daily_sets):
        steps = [
            lambda p: mark_block_complete(p, catalog, "mod-2", "v2"),
            lambda p: mark_block_complete(p, catalog, "mod-1", "v1"),
            lambda p: mark_problem_solved(p, "dp1", 10, TODAY, daily_sets),
            lambda p: mark_block_complete(p, catalog, "mod-1", "p1", TODAY, daily_sets),
            lambda p: mark_problem_solved(p, "dp1", 10, TODAY, daily_sets),
            lambda p: mark_block_complete(p, catalog, "mod-2", "v2"),
        ]
        p = fresh
        for step in steps:
            nxt = step(p).progress
            assert nxt.points >= p.points
            assert nxt.completed_daily_problem_ids >= p.completed_daily_problem_ids
            p = nxt

    def test_block_order_does_not_change_outcome(self, fresh, catalog):
        a = mark_block_complete(fresh, catalog, "mod-1", "v1").progress
        a = mark_block_complete(a, catalog, "mod-1", "p1").progress
        b = mark_block_complete(fresh, catalog, "mod-1", "p1").progress
        b = mark_block_complete(b, catalog, "mod-1", "v1").progress
        assert a == b


@pytest.mark.unit
class TestMarkProblemAttempted:
    def test_records_attempt_without_points(self, fresh):
        result = mark_problem_attempted(fresh, "q1")
        assert result.progress.attempted_problem_ids == {"q1"}
        assert result.progress.points == 0
        assert result.events == []

    def test_repeat_attempt_is_noop(self, fresh):
        p = mark_problem_attempted(fresh, "q1").progress
        assert mark_problem_attempted(p, "q1").progress is p
