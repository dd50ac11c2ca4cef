"""Unit tests for discovering externally solved problems."""
import pytest

from progress_engine.models import Platform, Problem
from progress_engine.verification import Discovery, SolvedProblemsSource, discover_new_completions


class FakeSource(SolvedProblemsSource):
    def __init__(self, solved):
        self.solved = solved
        self.calls = []

    async def solved_by_user(self, username):
        self.calls.append(username)
        return self.solved


class FailingSource(SolvedProblemsSource):
    async def solved_by_user(self, username):
        raise RuntimeError("platform down")


@pytest.fixture
def problems(two_sum, contains_duplicate):
    return [two_sum, contains_duplicate, Problem(id="g1", title="Kadane", platform=Platform.GEEKSFORGEEKS, points=15)]


@pytest.mark.unit
class TestDiscoverNewCompletions:
    @pytest.mark.asyncio
    async def test_matches_slugs_and_skips_already_solved(self, problems):
        source = FakeSource(["two-sum", "contains-duplicate"])
        found = await discover_new_completions(
            {Platform.LEETCODE: "neo"}, problems, {"dp1"}, {Platform.LEETCODE: source}
        )
        assert found == [Discovery(problem_id="q1", points=20)]
        assert source.calls == ["neo"]

    @pytest.mark.asyncio
    async def test_missing_handle_not_queried(self, problems):
        source = FakeSource(["two-sum"])
        found = await discover_new_completions(
            {Platform.LEETCODE: None}, problems, set(), {Platform.LEETCODE: source}
        )
        assert found == []
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_failing_source_skipped(self, problems):
        found = await discover_new_completions(
            {Platform.LEETCODE: "neo", Platform.GEEKSFORGEEKS: "neo_gfg"},
            problems,
            set(),
            {Platform.LEETCODE: FailingSource(), Platform.GEEKSFORGEEKS: FakeSource(["g1"])},
        )
        assert found == [Discovery(problem_id="g1", points=15)]

    @pytest.mark.asyncio
    async def test_platform_without_source_ignored(self, problems):
        found = await discover_new_completions({Platform.GEEKSFORGEEKS: "neo"}, problems, set(), {})
        assert found == []
