# findme/core/config.py
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    SECRET_KEY: str = "change-me"  # override in .env / secrets
    LOG_LEVEL: str = "INFO"

    # Auth
    # Access token expiry (minutes). Environment values are often strings,
    # pydantic will coerce to int.
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    # one-time codes handed to /auth/callback
    AUTH_CODE_EXPIRE_MINUTES: int = 10

    # MongoDB
    MONGODB_URI: Optional[str] = "mongodb://localhost:27017/findme"
    MONGODB_DB: Optional[str] = "findme"

    # Redis (realtime message feed when REALTIME_BACKEND=redis)
    REDIS_URL: str = "redis://localhost:6379/0"
    # 'memory' (single process) or 'redis'
    REALTIME_BACKEND: str = "memory"

    # Swipe deck
    CANDIDATE_LIMIT: int = 20

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# single shared settings instance
settings = Settings()
