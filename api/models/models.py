from api.config import Base
from sqlalchemy import Column, Integer, String, JSON, DateTime, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    name = Column(String, nullable=True)
    role = Column(String, default="STUDENT", nullable=False)  # STUDENT|ADMIN
    is_blocked = Column(Boolean, default=False, nullable=False)
    # Denormalized from UserProgressRecord for the leaderboard.
    points = Column(Integer, default=0, nullable=False)
    streak = Column(Integer, default=0, nullable=False)
    leetcode_username = Column(String, nullable=True)
    gfg_username = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Track(Base):
    __tablename__ = "tracks"
    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String, nullable=True)
    order_index = Column(Integer, default=0, nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)

    modules = relationship(
        "Module", backref="track", cascade="all, delete-orphan", order_by="Module.order_index"
    )


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)
    track_id = Column(String, ForeignKey("tracks.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)

    blocks = relationship(
        "ContentBlock", backref="module", cascade="all, delete-orphan", order_by="ContentBlock.order_index"
    )


class Problem(Base):
    __tablename__ = "problems"
    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(String, default="EASY", nullable=False)
    platform = Column(String, default="LeetCode", nullable=False)
    external_link = Column(String, nullable=True)
    points = Column(Integer, default=10, nullable=False)
    topic = Column(String, nullable=True)


class ContentBlock(Base):
    __tablename__ = "content_blocks"
    id = Column(String, primary_key=True, index=True)
    module_id = Column(String, ForeignKey("modules.id"), index=True, nullable=False)
    order_index = Column(Integer, nullable=False)
    type = Column(String, nullable=False)  # VIDEO|PDF|PROBLEM
    title = Column(String, nullable=True)
    url = Column(String, nullable=True)
    problem_id = Column(String, ForeignKey("problems.id"), nullable=True)
    is_visible = Column(Boolean, default=True, nullable=False)

    problem = relationship("Problem", foreign_keys=[problem_id])


class DailyChallenge(Base):
    __tablename__ = "daily_challenges"
    id = Column(String, primary_key=True, index=True)
    date = Column(String, unique=True, index=True, nullable=False)  # YYYY-MM-DD

    problems = relationship(
        "DailyChallengeProblem",
        backref="challenge",
        cascade="all, delete-orphan",
        order_by="DailyChallengeProblem.order_index",
    )


class DailyChallengeProblem(Base):
    __tablename__ = "daily_challenge_problems"
    __table_args__ = (UniqueConstraint("challenge_id", "problem_id"),)
    id = Column(Integer, primary_key=True, index=True)
    challenge_id = Column(String, ForeignKey("daily_challenges.id"), index=True, nullable=False)
    problem_id = Column(String, ForeignKey("problems.id"), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    problem = relationship("Problem", foreign_keys=[problem_id])


class UserProgressRecord(Base):
    __tablename__ = "user_progress"
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    points = Column(Integer, default=0, nullable=False)
    current_streak = Column(Integer, default=0, nullable=False)
    completed_daily_problem_ids = Column(JSON, nullable=True)  # list[str]
    attempted_problem_ids = Column(JSON, nullable=True)
    completed_dates = Column(JSON, nullable=True)
    completed_module_ids = Column(JSON, nullable=True)
    completed_track_ids = Column(JSON, nullable=True)
    unit_progress = Column(JSON, nullable=True)  # module_id -> {completed_block_ids, unlocked, module_completed}
    last_challenge_date = Column(String, nullable=True)
    version = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", backref="progress_record", foreign_keys=[user_id])
