"""
Catalog read schemas: tracks, modules, content blocks and daily challenges.
"""

from pydantic import BaseModel
from typing import Optional


class ProblemResponse(BaseModel):
    id: str
    title: str
    points: int
    difficulty: str
    platform: str
    external_link: str = ""
    description: str = ""
    topic: Optional[str] = None
    solved: bool = False


class ContentBlockResponse(BaseModel):
    id: str
    type: str  # VIDEO|PDF|PROBLEM
    title: str = ""
    url: Optional[str] = None
    problem: Optional[ProblemResponse] = None
    completed: bool = False


class ModuleResponse(BaseModel):
    id: str
    title: str
    description: str = ""
    locked: bool
    completed: bool
    completed_blocks: int
    total_blocks: int
    blocks: list[ContentBlockResponse] = []


class TrackSummary(BaseModel):
    id: str
    title: str
    description: str = ""
    icon: str = ""
    module_count: int
    completed: bool = False


class TrackListResponse(BaseModel):
    tracks: list[TrackSummary]


class TrackDetailResponse(BaseModel):
    id: str
    title: str
    description: str = ""
    icon: str = ""
    completed: bool
    modules: list[ModuleResponse]
    current_module_id: Optional[str] = None  # first unlocked module not yet completed


class NextItemResponse(BaseModel):
    """Next unlocked block after the given position; all fields None at the end of the track."""
    module_id: Optional[str] = None
    block_id: Optional[str] = None


class DailyChallengeResponse(BaseModel):
    date: str
    problems: list[ProblemResponse]
    solved_count: int
    completed: bool
    credited: bool  # streak/bonus already credited for this date
