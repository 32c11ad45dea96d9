# muster/config/settings.py
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "development"
    DATABASE_URL: str = "sqlite:///./muster.db"  # read from .env or environment variable
    LOG_LEVEL: str = "INFO"

    ALLIANCES: List[str] = ["COB", "LUX", "GEW"]
    ADMIN_TOKEN: Optional[str] = None

    # grouping
    MIN_CAPACITY: int = 1
    MAX_CAPACITY: int = 6
    DEFAULT_TIME_SLOT: str = "at all times"
    DEFAULT_TIME_SLOTS: List[str] = ["at all times", "offline"]
    PROXIMITY_THRESHOLD_MS: int = 10000
    MATCH_TIME_SLOTS: bool = True
    SOFT_DELETE: bool = True
    LEADER_SLOT: bool = True
    GROUP_LABEL_TEMPLATE: str = "Group {index}"

    # placement
    JOIN_JITTER_MS: int = 1000
    NEW_GROUP_OFFSET_MS: int = 60000
    NEW_GROUP_JITTER_MS: int = 60000

    # recovery
    PURGE_AFTER_DAYS: int = 30

    class Config:
        env_file = ".env"


settings = Settings()
