from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple


class Role(str, Enum):
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class Platform(str, Enum):
    LEETCODE = "LeetCode"
    GEEKSFORGEEKS = "GeeksforGeeks"


class BlockType(str, Enum):
    VIDEO = "VIDEO"
    PDF = "PDF"
    PROBLEM = "PROBLEM"


_SLUG_RE = re.compile(r"/problems/([^/?#]+)")


@dataclass(frozen=True)
class Problem:
    """
    A solvable problem hosted on an external platform.

    The same problem id may be referenced from curriculum modules and from
    daily challenge sets; completion is tracked globally by id.
    """

    id: str
    title: str
    points: int = 10
    difficulty: Difficulty = Difficulty.EASY
    platform: Platform = Platform.LEETCODE
    external_link: str = ""
    description: str = ""
    topic: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.points, int) or self.points <= 0:
            raise ValueError(f"Problem {self.id} points must be a positive integer, got {self.points!r}")

    @property
    def slug(self) -> str:
        """Platform slug taken from the external link, falling back to the id."""
        m = _SLUG_RE.search(self.external_link or "")
        return m.group(1) if m else self.id


@dataclass(frozen=True)
class ContentBlock:
    id: str
    type: BlockType
    title: str = ""
    url: Optional[str] = None
    problem: Optional[Problem] = None
    is_visible: bool = True

    def __post_init__(self) -> None:
        if self.type == BlockType.PROBLEM and self.problem is None:
            raise ValueError(f"Problem block {self.id} has no problem attached")


@dataclass(frozen=True)
class Module:
    id: str
    title: str
    blocks: Tuple[ContentBlock, ...] = ()
    is_visible: bool = True
    description: str = ""

    def visible_blocks(self) -> List[ContentBlock]:
        return [b for b in self.blocks if b.is_visible]

    def visible_block_ids(self) -> FrozenSet[str]:
        return frozenset(b.id for b in self.blocks if b.is_visible)

    def find_block(self, block_id: str) -> Optional[ContentBlock]:
        for b in self.blocks:
            if b.id == block_id:
                return b
        return None


@dataclass(frozen=True)
class Track:
    id: str
    title: str
    modules: Tuple[Module, ...] = ()
    is_visible: bool = True
    description: str = ""
    icon: str = ""

    def find_module(self, module_id: str) -> Optional[Module]:
        for m in self.modules:
            if m.id == module_id:
                return m
        return None


@dataclass(frozen=True)
class Catalog:
    """Read-only Track -> Module -> ContentBlock tree in stored order."""

    tracks: Tuple[Track, ...] = ()

    def get_track(self, track_id: str) -> Optional[Track]:
        for t in self.tracks:
            if t.id == track_id:
                return t
        return None

    def get_tracks(self) -> List[Track]:
        return [t for t in self.tracks if t.is_visible]

    def find_module(self, module_id: str) -> Optional[Tuple[Track, Module]]:
        for t in self.tracks:
            m = t.find_module(module_id)
            if m is not None:
                return t, m
        return None

    def problems(self) -> Iterator[Problem]:
        for t in self.tracks:
            for m in t.modules:
                for b in m.blocks:
                    if b.problem is not None:
                        yield b.problem


@dataclass(frozen=True)
class DailyChallengeSet:
    date: str  # ISO YYYY-MM-DD
    problems: Tuple[Problem, ...] = ()
    id: Optional[str] = None

    def problem_ids(self) -> FrozenSet[str]:
        return frozenset(p.id for p in self.problems)

    def __contains__(self, problem_id: object) -> bool:
        return any(p.id == problem_id for p in self.problems)


@dataclass(frozen=True)
class UserSummary:
    """Denormalized account fields the leaderboard reads."""

    id: str
    name: str
    role: Role = Role.STUDENT
    points: int = 0
    streak: int = 0
    is_blocked: bool = False


@dataclass(frozen=True)
class UserUnitProgress:
    module_id: str
    completed_block_ids: FrozenSet[str] = frozenset()
    unlocked: bool = False
    module_completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_id": self.module_id,
            "completed_block_ids": sorted(self.completed_block_ids),
            "unlocked": self.unlocked,
            "module_completed": self.module_completed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserUnitProgress":
        return cls(
            module_id=str(data["module_id"]),
            completed_block_ids=frozenset(data.get("completed_block_ids") or ()),
            unlocked=bool(data.get("unlocked", False)),
            module_completed=bool(data.get("module_completed", False)),
        )


@dataclass(frozen=True)
class UserProgress:
    """
    Per-user aggregate root.

    Snapshots are immutable: every transition returns a new instance built with
    `dataclasses.replace`. `unit_progress` is never mutated in place.
    `version` is the last write acknowledged by the sync adapter; scalar
    accumulators are provisional until a write carrying them is acknowledged.
    """

    user_id: str
    points: int = 0
    current_streak: int = 0
    completed_daily_problem_ids: FrozenSet[str] = frozenset()
    attempted_problem_ids: FrozenSet[str] = frozenset()
    completed_dates: FrozenSet[str] = frozenset()
    completed_module_ids: FrozenSet[str] = frozenset()
    completed_track_ids: FrozenSet[str] = frozenset()
    unit_progress: Mapping[str, UserUnitProgress] = field(default_factory=dict)
    last_challenge_date: Optional[str] = None
    version: int = 0

    @classmethod
    def empty(cls, user_id: str) -> "UserProgress":
        return cls(user_id=user_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "points": self.points,
            "current_streak": self.current_streak,
            "completed_daily_problem_ids": sorted(self.completed_daily_problem_ids),
            "attempted_problem_ids": sorted(self.attempted_problem_ids),
            "completed_dates": sorted(self.completed_dates),
            "completed_module_ids": sorted(self.completed_module_ids),
            "completed_track_ids": sorted(self.completed_track_ids),
            "unit_progress": {mid: up.to_dict() for mid, up in sorted(self.unit_progress.items())},
            "last_challenge_date": self.last_challenge_date,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProgress":
        units = data.get("unit_progress") or {}
        return cls(
            user_id=str(data["user_id"]),
            points=max(0, int(data.get("points") or 0)),
            current_streak=max(0, int(data.get("current_streak") or 0)),
            completed_daily_problem_ids=_ids(data.get("completed_daily_problem_ids")),
            attempted_problem_ids=_ids(data.get("attempted_problem_ids")),
            completed_dates=_ids(data.get("completed_dates")),
            completed_module_ids=_ids(data.get("completed_module_ids")),
            completed_track_ids=_ids(data.get("completed_track_ids")),
            unit_progress={
                str(mid): UserUnitProgress.from_dict({"module_id": mid, **(up or {})})
                for mid, up in units.items()
            },
            # The original client stored '' for "never credited".
            last_challenge_date=data.get("last_challenge_date") or None,
            version=int(data.get("version") or 0),
        )


def _ids(values: Optional[Iterable[Any]]) -> FrozenSet[str]:
    return frozenset(str(v) for v in (values or ()))
