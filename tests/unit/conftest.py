"""
Unit test fixtures. Engine catalogs and snapshots built in memory; no DB, no network.
"""
import pytest

from progress_engine.models import (
    BlockType,
    Catalog,
    ContentBlock,
    DailyChallengeSet,
    Module,
    Problem,
    Track,
    UserProgress,
)

TODAY = "2024-01-01"


@pytest.fixture
def two_sum():
    return Problem(id="q1", title="Two Sum", points=20, external_link="https://leetcode.com/problems/two-sum/")


@pytest.fixture
def contains_duplicate():
    return Problem(
        id="dp1",
        title="Contains Duplicate",
        points=10,
        external_link="https://leetcode.com/problems/contains-duplicate/",
    )


@pytest.fixture
def track(two_sum):
    """
    dsa-01:
      mod-1: v1 (VIDEO), p1 (PROBLEM q1, 20 pts)
      mod-2: v2 (VIDEO), h2 (hidden PDF)
      mod-hidden: hidden module
      mod-3: v3 (VIDEO)
    """
    return Track(
        id="dsa-01",
        title="Data Structures & Algorithms",
        modules=(
            Module(
                id="mod-1",
                title="Complexity",
                blocks=(
                    ContentBlock(id="v1", type=BlockType.VIDEO, title="Big O"),
                    ContentBlock(id="p1", type=BlockType.PROBLEM, title="Two Sum", problem=two_sum),
                ),
            ),
            Module(
                id="mod-2",
                title="Arrays",
                blocks=(
                    ContentBlock(id="v2", type=BlockType.VIDEO),
                    ContentBlock(id="h2", type=BlockType.PDF, is_visible=False),
                ),
            ),
            Module(
                id="mod-hidden",
                title="Draft",
                blocks=(ContentBlock(id="vh", type=BlockType.VIDEO),),
                is_visible=False,
            ),
            Module(id="mod-3", title="Graphs", blocks=(ContentBlock(id="v3", type=BlockType.VIDEO),)),
        ),
    )


@pytest.fixture
def catalog(track):
    return Catalog(tracks=(track,))


@pytest.fixture
def daily_sets(contains_duplicate):
    return {TODAY: DailyChallengeSet(date=TODAY, problems=(contains_duplicate,), id="challenge-today")}


@pytest.fixture
def fresh():
    return UserProgress.empty("u1")
