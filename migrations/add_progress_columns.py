"""
Migration: bring pre-gamification databases up to the progress schema.

- users: role, name, is_blocked, points, streak, platform usernames.
- user_progress: attempted_problem_ids, completed_track_ids, version.

Tables that do not exist yet are skipped; `create_db()` builds them whole.
"""

import logging
import os
import sqlite3
from typing import Optional

logger = logging.getLogger(__name__)

COLUMNS = {
    "users": [
        ("role", "TEXT NOT NULL DEFAULT 'STUDENT'"),
        ("name", "TEXT"),
        ("is_blocked", "BOOLEAN NOT NULL DEFAULT 0"),
        ("points", "INTEGER NOT NULL DEFAULT 0"),
        ("streak", "INTEGER NOT NULL DEFAULT 0"),
        ("leetcode_username", "TEXT"),
        ("gfg_username", "TEXT"),
    ],
    "user_progress": [
        ("attempted_problem_ids", "TEXT DEFAULT '[]'"),
        ("completed_track_ids", "TEXT DEFAULT '[]'"),
        ("version", "INTEGER NOT NULL DEFAULT 0"),
    ],
}


def _table_exists(cursor: sqlite3.Cursor, table: str) -> bool:
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def run_migration(db_path: Optional[str] = None) -> list[str]:
    """Add missing columns. Returns the "table.column" names that were added."""
    db_path = db_path or os.getenv("DATABASE_URL", "sqlite:///./codenexus.db").replace("sqlite:///", "")
    added: list[str] = []
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        for table, columns in COLUMNS.items():
            if not _table_exists(cursor, table):
                logger.info("%s table not found. Skipping column add.", table)
                continue
            for name, ddl in columns:
                try:
                    cursor.execute(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}")
                    added.append(f"{table}.{name}")
                    logger.info("%s: added %s", table, name)
                except sqlite3.OperationalError as e:
                    if "duplicate column" not in str(e).lower():
                        raise
                    logger.debug("%s.%s already exists. Skipping.", table, name)
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        logger.exception("migration add_progress_columns failed")
        raise
    finally:
        conn.close()
    logger.info("migration add_progress_columns completed added=%s", added)
    return added


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_migration()
