"""
Common utility functions used across multiple routes.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from api.models.models import User as DbUser
from progress_engine.models import Role, UserSummary

logger = logging.getLogger(__name__)


def display_name(user) -> str:
    """Name if set, else the email prefix."""
    name = getattr(user, "name", None)
    if isinstance(name, str) and name.strip():
        return name.strip()
    return (user.email or "").split("@", 1)[0]


def today_iso(tz_name: str = "UTC", now: Optional[datetime] = None) -> str:
    """Calendar date (YYYY-MM-DD) in the configured timezone."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown timezone %r, using UTC", tz_name)
        tz = timezone.utc
    now = now or datetime.now(timezone.utc)
    return now.astimezone(tz).date().isoformat()


def to_user_summary(user: DbUser) -> UserSummary:
    role = Role.ADMIN if user.role == Role.ADMIN.value else Role.STUDENT
    return UserSummary(
        id=str(user.id),
        name=display_name(user),
        role=role,
        points=int(user.points or 0),
        streak=int(user.streak or 0),
        is_blocked=bool(user.is_blocked),
    )
