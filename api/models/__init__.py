"""
API data models. Single import surface for DB entities.

Accounts (api.models.models):
- User, UserProgressRecord

Catalog (api.models.models):
- Track, Module, ContentBlock, Problem, DailyChallenge, DailyChallengeProblem
"""

from api.models.models import (
    User,
    Track,
    Module,
    ContentBlock,
    Problem,
    DailyChallenge,
    DailyChallengeProblem,
    UserProgressRecord,
)

__all__ = [
    "User",
    "Track",
    "Module",
    "ContentBlock",
    "Problem",
    "DailyChallenge",
    "DailyChallengeProblem",
    "UserProgressRecord",
]
