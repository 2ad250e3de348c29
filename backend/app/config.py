"""
backend/app/config.py

Purpose:
    Central settings loading for the match batch API.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    MONGO_URI: str = ""  # Empty = storage unavailable until configured
    MONGO_DB: str = "matchbatch"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGO_CONNECT_TIMEOUT_MS: int = 10000
    MONGO_MAX_POOL_SIZE: int = 10
    BACKEND_CORS_ORIGINS: str = "*"

    # Partitioning: one collection per league
    DEFAULT_PARTITION: str = "matches"
    PARTITION_SUFFIX: str = "_matches"

    # Read caps
    UNFILTERED_QUERY_LIMIT: int = 2000
    MATCHUP_HISTORY_LIMIT: int = 50

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
