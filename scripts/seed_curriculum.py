#!/usr/bin/env python3
"""
Seed the starter curriculum and today's daily challenge.

Run: python scripts/seed_curriculum.py
     python scripts/seed_curriculum.py --date 2024-05-01 --admin admin@example.com:secret

Idempotent: rows are merged by id, so re-running only refreshes them.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

_project_root = Path(__file__).resolve().parent.parent
for _p in (_project_root, _project_root / "src"):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

from sqlalchemy.orm import Session  # noqa: E402

logger = logging.getLogger("seed_curriculum")

TRACKS = [
    {
        "id": "dsa-01",
        "title": "Data Structures & Algorithms",
        "description": "Master the core concepts of efficient computing.",
        "icon": "Binary",
        "modules": [
            {
                "id": "mod-1",
                "title": "Complexity Analysis (Big O)",
                "description": "Understand time and space complexity in depth.",
                "blocks": [
                    {"id": "b1", "type": "VIDEO", "title": "Big O Explained",
                     "url": "https://www.youtube.com/embed/v4cd1O4zkGw"},
                    {"id": "b2", "type": "PDF", "title": "Cheat Sheet",
                     "url": "https://www.adobe.com/support/products/enterprise/knowledgecenter/whitepapers/pdf/aem_6_0_architecture.pdf"},
                    {"id": "b3", "type": "PROBLEM", "title": "Two Sum", "problem_id": "q1"},
                ],
            }
        ],
    }
]

PROBLEMS = [
    {"id": "q1", "title": "Two Sum", "difficulty": "EASY", "points": 10, "platform": "LeetCode",
     "description": "Find two indices such that their values add up to target.",
     "external_link": "https://leetcode.com/problems/two-sum/"},
    {"id": "dp1", "title": "Contains Duplicate", "difficulty": "EASY", "points": 10, "platform": "LeetCode",
     "description": "Check if array contains any duplicates.",
     "external_link": "https://leetcode.com/problems/contains-duplicate/"},
]

DAILY_PROBLEM_IDS = ["dp1"]


def seed(db: Session, date: str, admin: Optional[tuple[str, str]] = None) -> None:
    from api.models.models import (
        ContentBlock,
        DailyChallenge,
        DailyChallengeProblem,
        Module,
        Problem,
        Track,
        User,
    )
    from api.utils.jwt import get_password_hash

    for p in PROBLEMS:
        db.merge(Problem(**p))
    db.flush()
    for t_idx, t in enumerate(TRACKS):
        db.merge(Track(id=t["id"], title=t["title"], description=t["description"], icon=t["icon"],
                       order_index=t_idx, is_visible=True))
        for m_idx, m in enumerate(t["modules"]):
            db.merge(Module(id=m["id"], track_id=t["id"], title=m["title"], description=m["description"],
                            order_index=m_idx, is_visible=True))
            for b_idx, b in enumerate(m["blocks"]):
                db.merge(ContentBlock(module_id=m["id"], order_index=b_idx, is_visible=True, **b))

    challenge = db.query(DailyChallenge).filter(DailyChallenge.date == date).first()
    if challenge is None:
        challenge = DailyChallenge(id=f"challenge-{date}", date=date)
        db.add(challenge)
        db.flush()
    existing = {link.problem_id for link in challenge.problems}
    for idx, pid in enumerate(DAILY_PROBLEM_IDS):
        if pid not in existing:
            db.add(DailyChallengeProblem(challenge_id=challenge.id, problem_id=pid, order_index=idx))

    if admin is not None:
        email, password = admin
        if db.query(User).filter(User.email == email.lower()).first() is None:
            db.add(User(email=email.lower(), hashed_password=get_password_hash(password), name="System Admin",
                        role="ADMIN"))
    db.commit()
    logger.info("seeded tracks=%s problems=%s daily=%s", len(TRACKS), len(PROBLEMS), date)


def main() -> int:
    from api.config import SessionLocal, create_db, settings
    from api.utils.common import today_iso

    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--date", default=None, help="Daily challenge date (YYYY-MM-DD), default today")
    parser.add_argument("--admin", default=None, help="Create an admin account: email:password")
    args = parser.parse_args()

    admin = None
    if args.admin:
        email, sep, password = args.admin.partition(":")
        if not sep or not email or not password:
            parser.error("--admin must look like email:password")
        admin = (email, password)

    logging.basicConfig(level=logging.INFO)
    create_db()
    db = SessionLocal()
    try:
        seed(db, args.date or today_iso(settings.TIMEZONE), admin)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
