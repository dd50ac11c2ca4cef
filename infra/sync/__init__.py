"""
Sync adapters (infra). `SqlProgressStore` persists engine snapshots through
SQLAlchemy.
"""

from infra.sync.sql_store import SqlProgressStore

__all__ = ["SqlProgressStore"]
