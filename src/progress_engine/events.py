"""
Events returned by transitions, in the order the UI should show them.

Events carry only display data (amount, kind, ids), never engine internals.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Union


class EventKind(str, Enum):
    XP_AWARDED = "xp_awarded"
    MODULE_COMPLETED = "module_completed"
    DAILY_CHALLENGE_COMPLETED = "daily_challenge_completed"
    TRACK_COMPLETED = "track_completed"


class XpReason(str, Enum):
    BLOCK = "block"
    PROBLEM = "problem"
    DAILY_BONUS = "daily_bonus"


@dataclass(frozen=True)
class XpAwarded:
    amount: int
    reason: XpReason
    kind: EventKind = field(default=EventKind.XP_AWARDED, init=False)


@dataclass(frozen=True)
class ModuleCompleted:
    module_id: str
    kind: EventKind = field(default=EventKind.MODULE_COMPLETED, init=False)


@dataclass(frozen=True)
class DailyChallengeCompleted:
    date: str
    streak: int
    kind: EventKind = field(default=EventKind.DAILY_CHALLENGE_COMPLETED, init=False)


@dataclass(frozen=True)
class TrackCompleted:
    track_id: str
    kind: EventKind = field(default=EventKind.TRACK_COMPLETED, init=False)


ProgressEvent = Union[XpAwarded, ModuleCompleted, DailyChallengeCompleted, TrackCompleted]


def event_to_dict(event: ProgressEvent) -> Dict[str, Any]:
    payload = asdict(event)
    # Enums go out as their wire values.
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in payload.items()}


def total_xp(events) -> int:
    return sum(e.amount for e in events if isinstance(e, XpAwarded))
