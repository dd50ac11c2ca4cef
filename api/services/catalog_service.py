"""
Catalog service: maps curriculum and daily challenge rows onto engine types.

Reads degrade instead of failing: a broken catalog read yields an empty
catalog, and a missing or malformed daily challenge yields no set.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.models.models import (
    ContentBlock as DbBlock,
    DailyChallenge,
    Module as DbModule,
    Problem as DbProblem,
    Track as DbTrack,
)
from progress_engine.models import (
    BlockType,
    Catalog,
    ContentBlock,
    DailyChallengeSet,
    Difficulty,
    Module,
    Platform,
    Problem,
    Track,
)

logger = logging.getLogger(__name__)


def to_problem(row: DbProblem) -> Problem:
    return Problem(
        id=row.id,
        title=row.title,
        points=int(row.points or 10),
        difficulty=Difficulty(row.difficulty or "EASY"),
        platform=Platform(row.platform or Platform.LEETCODE.value),
        external_link=row.external_link or "",
        description=row.description or "",
        topic=row.topic,
    )


def _to_block(row: DbBlock) -> Optional[ContentBlock]:
    try:
        block_type = BlockType(row.type)
        problem = to_problem(row.problem) if row.problem is not None else None
        return ContentBlock(
            id=row.id,
            type=block_type,
            title=row.title or "",
            url=row.url,
            problem=problem,
            is_visible=bool(row.is_visible),
        )
    except ValueError as e:
        logger.warning("skipping content block id=%s: %s", row.id, e)
        return None


def _to_module(row: DbModule) -> Module:
    blocks = tuple(b for b in (_to_block(r) for r in row.blocks) if b is not None)
    return Module(
        id=row.id,
        title=row.title,
        blocks=blocks,
        is_visible=bool(row.is_visible),
        description=row.description or "",
    )


def _to_track(row: DbTrack) -> Track:
    return Track(
        id=row.id,
        title=row.title,
        modules=tuple(_to_module(m) for m in row.modules),
        is_visible=bool(row.is_visible),
        description=row.description or "",
        icon=row.icon or "",
    )


def load_catalog(db: Session) -> Catalog:
    try:
        rows = db.query(DbTrack).order_by(DbTrack.order_index.asc(), DbTrack.id.asc()).all()
        return Catalog(tracks=tuple(_to_track(r) for r in rows))
    except SQLAlchemyError:
        logger.exception("catalog read failed; serving empty catalog")
        return Catalog()


def load_daily_set(db: Session, date: str) -> Optional[DailyChallengeSet]:
    try:
        row = db.query(DailyChallenge).filter(DailyChallenge.date == date).first()
        if row is None:
            return None
        problems = tuple(to_problem(link.problem) for link in row.problems if link.problem is not None)
        return DailyChallengeSet(date=row.date, problems=problems, id=row.id)
    except SQLAlchemyError:
        logger.exception("daily challenge read failed date=%s", date)
        return None
    except ValueError as e:
        logger.warning("malformed daily challenge date=%s: %s", date, e)
        return None


def load_daily_sets(db: Session, dates: Iterable[str]) -> Dict[str, DailyChallengeSet]:
    out: Dict[str, DailyChallengeSet] = {}
    for d in dates:
        daily_set = load_daily_set(db, d)
        if daily_set is not None:
            out[d] = daily_set
    return out


def find_problem(db: Session, problem_id: str) -> Optional[Problem]:
    try:
        row = db.get(DbProblem, problem_id)
    except SQLAlchemyError:
        logger.exception("problem read failed id=%s", problem_id)
        return None
    if row is None:
        return None
    try:
        return to_problem(row)
    except ValueError as e:
        logger.warning("malformed problem id=%s: %s", problem_id, e)
        return None


def list_problems(db: Session) -> list[Problem]:
    out: list[Problem] = []
    for row in db.query(DbProblem).all():
        try:
            out.append(to_problem(row))
        except ValueError as e:
            logger.warning("skipping problem id=%s: %s", row.id, e)
    return out
