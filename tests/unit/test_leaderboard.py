"""Unit tests for leaderboard ordering, tiers and search."""
import pytest

from progress_engine.leaderboard import build_leaderboard, rank_of
from progress_engine.models import Role, UserSummary


@pytest.fixture
def users():
    return [
        UserSummary(id="1", name="alice", points=1500, streak=3),
        UserSummary(id="2", name="Bob", points=2600),
        UserSummary(id="3", name="carol", points=1500),
        UserSummary(id="4", name="Admin", role=Role.ADMIN, points=99999),
        UserSummary(id="5", name="dave", points=0),
    ]


@pytest.mark.unit
class TestBuildLeaderboard:
    def test_orders_by_points_then_name(self, users):
        board = build_leaderboard(users)
        assert [e.user_id for e in board] == ["2", "1", "3", "5"]
        assert [e.rank for e in board] == [1, 2, 3, 4]

    def test_admins_excluded(self, users):
        assert "4" not in {e.user_id for e in build_leaderboard(users)}

    def test_tiers(self, users):
        tiers = {e.user_id: e.tier for e in build_leaderboard(users)}
        assert tiers == {"2": "PLATINUM", "1": "GOLD", "3": "GOLD", "5": "BRONZE"}

    def test_search_keeps_real_rank(self, users):
        board = build_leaderboard(users, search="  CAROL ")
        assert len(board) == 1
        assert board[0].rank == 3

    def test_search_without_match(self, users):
        assert build_leaderboard(users, search="zed") == []

    def test_empty(self):
        assert build_leaderboard([]) == []


@pytest.mark.unit
class TestRankOf:
    def test_found_and_missing(self, users):
        board = build_leaderboard(users)
        assert rank_of(board, "5") == 4
        assert rank_of(board, "4") is None
