"""
Discovery of problems a user solved directly on an external platform.

A platform source only has to answer "which problems has this username
solved"; matching against our problems and applying completions is done here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AbstractSet, Iterable, List, Mapping, Optional

from progress_engine.models import Platform, Problem

logger = logging.getLogger(__name__)


class SolvedProblemsSource(ABC):
    """Contract for a platform profile reader."""

    @abstractmethod
    async def solved_by_user(self, username: str) -> List[str]:
        """Return slugs (or ids) of problems the user has solved."""
        raise NotImplementedError


@dataclass(frozen=True)
class Discovery:
    problem_id: str
    points: int


async def discover_new_completions(
    handles: Mapping[Platform, Optional[str]],
    problems: Iterable[Problem],
    already_solved: AbstractSet[str],
    sources: Mapping[Platform, SolvedProblemsSource],
) -> List[Discovery]:
    """
    Compare each platform's solved list with `problems` not yet solved.

    A failing source is logged and skipped; other platforms are still checked.
    """
    pending = [p for p in problems if p.id not in already_solved]
    discoveries: List[Discovery] = []
    seen: set[str] = set()
    for platform, username in handles.items():
        if not username:
            continue
        source = sources.get(platform)
        if source is None:
            logger.debug("no solved-problems source for platform=%s", platform.value)
            continue
        try:
            solved = set(await source.solved_by_user(username))
        except Exception:
            logger.exception("solved-problems fetch failed platform=%s user=%s", platform.value, username)
            continue
        for problem in pending:
            if problem.platform != platform or problem.id in seen:
                continue
            if problem.slug in solved or problem.id in solved:
                discoveries.append(Discovery(problem_id=problem.id, points=problem.points))
                seen.add(problem.id)
    return discoveries
