from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

from progress_engine.config import RANK_TIERS, EngineConfig, parse_tier_table

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./codenexus.db"
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    DAILY_COMPLETION_BONUS_XP: int = 100
    BLOCK_COMPLETION_XP: int = 25
    LEVEL_SIZE: int = 500
    TIER_TABLE: Optional[str] = None  # "ELITE:5000,DIAMOND:3500,...,BRONZE:0"
    TIMEZONE: str = "UTC"

    SYNC_MAX_RETRIES: int = 3
    SYNC_RETRY_BASE_DELAY: float = 0.5
    SYNC_REFRESH_INTERVAL: float = 300.0
    SESSION_IDLE_SECONDS: float = 1800.0  # live sessions unused this long are flushed and dropped
    SESSION_SWEEP_INTERVAL: float = 60.0
    TOAST_TTL_SECONDS: float = 2.0

    LEETCODE_GRAPHQL_URL: str = "https://leetcode.com/graphql"
    LOG_LEVEL: str = "INFO"

    def engine_config(self) -> EngineConfig:
        tiers = parse_tier_table(self.TIER_TABLE) if self.TIER_TABLE else RANK_TIERS
        return EngineConfig(
            daily_bonus_xp=self.DAILY_COMPLETION_BONUS_XP,
            block_xp=self.BLOCK_COMPLETION_XP,
            level_size=self.LEVEL_SIZE,
            tiers=tiers,
        )


settings = Settings()

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def reset_db():
    Base.metadata.drop_all(bind=engine)
    create_db()


def create_db():
    # Registers the tables on Base before create_all.
    import api.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
