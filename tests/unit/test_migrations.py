"""Unit tests for the progress-columns migration against a throwaway sqlite file."""
import sqlite3

import pytest

from migrations.add_progress_columns import run_migration


def _columns(path, table):
    conn = sqlite3.connect(path)
    try:
        return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
    finally:
        conn.close()


@pytest.fixture
def legacy_db(tmp_path):
    path = str(tmp_path / "legacy.db")
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, hashed_password TEXT, role TEXT)")
    conn.commit()
    conn.close()
    return path


@pytest.mark.unit
class TestAddProgressColumns:
    def test_adds_missing_columns_only(self, legacy_db):
        added = run_migration(legacy_db)
        assert "users.points" in added
        assert "users.role" not in added
        assert not any(a.startswith("user_progress.") for a in added)
        assert {"points", "streak", "is_blocked", "leetcode_username"} <= _columns(legacy_db, "users")

    def test_rerun_is_noop(self, legacy_db):
        run_migration(legacy_db)
        assert run_migration(legacy_db) == []
